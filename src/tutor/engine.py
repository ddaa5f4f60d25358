"""
TutorEngine: the service object callers hold.

Owns one registry, cache, rate limiter, progress engine and planner. There is
no module-level singleton; construct an engine and pass it around.

Example:
    engine = TutorEngine.create(chat_completion)
    plan = await engine.create_learning_plan("Quadratic Equations")
    lesson = plan.current_lesson
    content = await engine.generate_lesson_content(plan.subject, lesson, "multiple-choice")
    progress = engine.update_progress(plan.subject, is_correct=True, lesson_id=lesson.id)
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger

from config import Settings, get_settings
from src.tutor.cache import ResponseCache
from src.tutor.client import ChatCompletion
from src.tutor.content import LessonContent
from src.tutor.models import (
    ContentVarietyStats,
    GeneratedContentRecord,
    LearningProgress,
    Lesson,
    LessonPlan,
    ProgressCriteria,
)
from src.tutor.planner import ContentPlanner
from src.tutor.progress import ProgressEngine
from src.tutor.rate_limiter import RateLimiter
from src.tutor.registry import SubjectRegistry


class TutorEngine:
    """Facade over ContentPlanner, ProgressEngine and the subject registry."""

    def __init__(
        self,
        planner: ContentPlanner,
        progress: ProgressEngine,
        registry: SubjectRegistry,
    ):
        self.planner = planner
        self.progress = progress
        self.registry = registry

    @classmethod
    def create(
        cls,
        chat_completion: ChatCompletion,
        settings: Settings | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> TutorEngine:
        """Wire a complete engine around a model-call callable."""
        settings = settings or get_settings()
        registry = SubjectRegistry()
        progress = ProgressEngine(registry, clock=clock) if clock else ProgressEngine(registry)
        cache = ResponseCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
            key_max_chars=settings.cache_key_max_chars,
        )
        rate_limiter = RateLimiter(settings.rate_limit_min_delay_seconds, sleep=sleep)
        planner = ContentPlanner(
            chat_completion,
            registry,
            progress,
            cache=cache,
            rate_limiter=rate_limiter,
            settings=settings,
            sleep=sleep,
        )
        return cls(planner, progress, registry)

    # =========================================================================
    # Generation
    # =========================================================================

    async def create_learning_plan(self, subject: str) -> LessonPlan:
        return await self.planner.create_learning_plan(subject)

    async def generate_lesson_content(
        self, subject: str, lesson: Lesson, content_type: str
    ) -> LessonContent:
        return await self.planner.generate_lesson_content(subject, lesson, content_type)

    async def generate_tutor_response(
        self, subject: str, action: str, data: Any, context: Any = None
    ) -> str:
        return await self.planner.generate_tutor_response(subject, action, data, context)

    async def generate_welcome_message(
        self,
        subject: str,
        current_lesson_title: str,
        current_lesson_index: int,
        correct_answers: int,
        total_attempts: int,
        is_returning_user: bool = True,
    ) -> str:
        return await self.planner.generate_welcome_message(
            subject,
            current_lesson_title,
            current_lesson_index,
            correct_answers,
            total_attempts,
            is_returning_user,
        )

    async def generate_direct_educational_response(
        self,
        question: str,
        subject: str | None = None,
        current_lesson: str | None = None,
        difficulty: str | None = None,
    ) -> str:
        return await self.planner.generate_direct_educational_response(
            question, subject, current_lesson, difficulty
        )

    # =========================================================================
    # Progress
    # =========================================================================

    def update_progress(
        self, subject: str, is_correct: bool, lesson_id: str | None = None
    ) -> LearningProgress | None:
        return self.progress.update_progress(subject, is_correct, lesson_id)

    def record_generated_content(
        self, subject: str, lesson_id: str, record: GeneratedContentRecord
    ) -> None:
        self.progress.record_generated_content(subject, lesson_id, record)

    def advance_to_next_lesson(self, subject: str) -> bool:
        return self.progress.advance_to_next_lesson(subject)

    def advance_concept(self, subject: str) -> bool:
        return self.progress.advance_concept(subject)

    def content_variety_stats(self, subject: str, lesson_id: str) -> ContentVarietyStats:
        return self.progress.content_variety_stats(subject, lesson_id)

    # =========================================================================
    # Subject state
    # =========================================================================

    def get_lesson_plan(self, subject: str) -> LessonPlan | None:
        return self.registry.get_lesson_plan(subject)

    def get_progress(self, subject: str) -> LearningProgress | None:
        return self.registry.get_progress(subject)

    def get_criteria(self, subject: str) -> ProgressCriteria | None:
        return self.registry.get_criteria(subject)

    def cached_subjects(self) -> list[str]:
        return self.registry.cached_subjects()

    def export_subject(self, subject: str) -> dict[str, Any] | None:
        return self.registry.export_subject(subject)

    def load_lesson_plan(self, plan: LessonPlan | dict[str, Any]) -> LessonPlan:
        return self.registry.load_lesson_plan(plan)

    def load_progress(
        self, subject: str, progress: LearningProgress | dict[str, Any]
    ) -> LearningProgress:
        return self.registry.load_progress(subject, progress)

    def clear_subject_data(self, subject: str) -> None:
        self.registry.clear_subject_data(subject)

    def clear_all_data(self) -> None:
        """Drop all subject state and let the next model call go out immediately."""
        self.registry.clear_all_data()
        self.planner.rate_limiter.reset()

    def clear_cache(self, type: str | None = None) -> None:
        self.planner.cache.clear(type)
        logger.debug(f"Cleared response cache ({type or 'all types'})")
