"""
ContentPlanner: every model-backed generation path of the tutor.

Each call goes through the same pipeline:

    cache lookup -> in-flight de-duplication -> rate limit -> model call
    with retry -> JSON repair -> validation -> cache store -> return

Only validated payloads are cached, and they are cached as plain data, so
every caller gets a fresh domain object. Generation failures never reach the
caller: plans fall back to a retry plan, content to a retry_prompt
placeholder, and text responses to deterministic fallback text. The only
exception raised is InvalidSubjectInput for unusable arguments.
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Awaitable, Callable

from loguru import logger

from config import Settings, get_settings
from src.tutor.cache import ResponseCache
from src.tutor.client import ChatCompletion, ChatCompletionRequest, extract_message_content
from src.tutor.content import (
    LessonContent,
    RetryPromptContent,
    normalize_content_type,
    parse_content,
    retry_prompt,
)
from src.tutor.errors import (
    InvalidContentStructure,
    InvalidPlanStructure,
    InvalidSubjectInput,
    MalformedContent,
    NoUsableCriteria,
)
from src.tutor.fallbacks import (
    direct_answer_fallback,
    retry_concept,
    retry_plan,
    tutor_fallback_response,
    welcome_fallback,
)
from src.tutor.json_repair import parse_json
from src.tutor.models import (
    AdaptiveFactors,
    ConceptInfo,
    Difficulty,
    Lesson,
    LessonPlan,
    PlanStructure,
    ProgressCriteria,
)
from src.tutor.progress import ProgressEngine, get_adaptive_defaults
from src.tutor import prompts
from src.tutor.rate_limiter import RateLimiter
from src.tutor.registry import SubjectRegistry
from src.tutor.retry import with_retry

MIN_RECOMMENDED_LESSONS = 6
MAX_RECOMMENDED_LESSONS = 15

# (min, max) accepted for each AI-derived criterion
CRITERIA_BOUNDS = {
    "minCorrectAnswers": (2, 5),
    "minTotalAttempts": (3, 6),
    "minAccuracy": (0.6, 0.8),
    "difficultyAdjustment": (0.8, 1.2),
    "engagementWeight": (0.1, 0.3),
    "retentionFactor": (0.7, 0.9),
}


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return min(max(value, low), high)


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def _string_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value if item)


# =============================================================================
# Payload validation
# =============================================================================


def plan_structure_from_dict(data: Any, default_lessons: int = 8) -> PlanStructure:
    """Build a PlanStructure from analysis output, clamping the lesson count to 6-15."""
    if not isinstance(data, dict):
        raise MalformedContent("Structure analysis did not return a JSON object")

    lessons = _number(data.get("recommendedLessons"))
    lesson_count = round(lessons) if lessons is not None else default_lessons
    hours = _number(data.get("estimatedHoursPerLesson"))

    return PlanStructure(
        recommended_lessons=int(
            _clamp(lesson_count, (MIN_RECOMMENDED_LESSONS, MAX_RECOMMENDED_LESSONS))
        ),
        complexity=Difficulty.coerce(data.get("complexity")),
        focus_areas=_string_tuple(data.get("focusAreas")),
        learning_objectives=_string_tuple(data.get("learningObjectives")),
        estimated_hours_per_lesson=hours if hours is not None else 1.0,
        prerequisites=_string_tuple(data.get("prerequisites")),
        reasoning=str(data.get("reasoning") or ""),
    )


def validate_plan_payload(data: Any, min_lessons: int = 3) -> dict[str, Any]:
    """
    Check the raw plan shape before it is cached.

    Raises:
        InvalidPlanStructure: If subject or lessons are missing or too few lessons
    """
    if not isinstance(data, dict):
        raise InvalidPlanStructure("Lesson plan is not a JSON object")
    if not data.get("subject"):
        raise InvalidPlanStructure("Lesson plan has no subject")
    lessons = data.get("lessons")
    if not isinstance(lessons, list):
        raise InvalidPlanStructure("Lesson plan has no lessons array")
    if len(lessons) < min_lessons:
        raise InvalidPlanStructure(f"Too few lessons generated: {len(lessons)}")
    return data


def _build_concepts(raw_concepts: Any, lesson_title: str) -> list[ConceptInfo]:
    concepts = []
    if isinstance(raw_concepts, list):
        for index, raw in enumerate(raw_concepts, start=1):
            if not isinstance(raw, dict):
                continue
            name = raw.get("name") or raw.get("title")
            if not name:
                continue
            concepts.append(
                ConceptInfo(
                    id=str(raw.get("id") or f"concept-{index}"),
                    name=str(name),
                    description=str(raw.get("description") or ""),
                    difficulty=raw.get("difficulty"),
                    estimated_practice_items=_number(raw.get("estimatedPracticeItems")) or 0,
                )
            )
    return concepts or [retry_concept(lesson_title)]


def build_lesson_plan(subject: str, data: dict[str, Any]) -> LessonPlan:
    """Turn a validated plan payload into a LessonPlan, filling missing fields."""
    lessons = []
    for index, raw in enumerate(data["lessons"], start=1):
        raw = raw if isinstance(raw, dict) else {}
        title = str(raw.get("title") or f"Lesson {index}")
        lessons.append(
            Lesson(
                id=str(raw.get("id") or f"lesson-{index}"),
                title=title,
                description=str(raw.get("description") or "Learn the fundamentals of this topic."),
                concepts=_build_concepts(raw.get("concepts"), title),
            )
        )
    return LessonPlan(subject=subject, lessons=lessons, current_lesson_index=0)


def criteria_from_dict(data: Any) -> ProgressCriteria:
    """
    Clamp AI-derived criteria into the ranges the prompt asked for.

    Raises:
        NoUsableCriteria: If a threshold is missing or not a number
    """
    if not isinstance(data, dict):
        raise NoUsableCriteria("Progress criteria is not a JSON object")

    values: dict[str, float] = {}
    for key in ("minCorrectAnswers", "minTotalAttempts", "minAccuracy"):
        number = _number(data.get(key))
        if number is None:
            raise NoUsableCriteria(f"Progress criteria missing {key}")
        values[key] = _clamp(number, CRITERIA_BOUNDS[key])

    defaults = AdaptiveFactors()
    raw_factors = data.get("adaptiveFactors")
    raw_factors = raw_factors if isinstance(raw_factors, dict) else {}
    factors = {}
    for key, default in (
        ("difficultyAdjustment", defaults.difficulty_adjustment),
        ("engagementWeight", defaults.engagement_weight),
        ("retentionFactor", defaults.retention_factor),
    ):
        number = _number(raw_factors.get(key))
        factors[key] = _clamp(number, CRITERIA_BOUNDS[key]) if number is not None else default

    reasoning = data.get("reasoning")
    return ProgressCriteria(
        min_correct_answers=round(values["minCorrectAnswers"]),
        min_total_attempts=round(values["minTotalAttempts"]),
        min_accuracy=values["minAccuracy"],
        adaptive_factors=AdaptiveFactors(
            difficulty_adjustment=factors["difficultyAdjustment"],
            engagement_weight=factors["engagementWeight"],
            retention_factor=factors["retentionFactor"],
        ),
        reasoning=str(reasoning) if reasoning else None,
    )


# =============================================================================
# Planner
# =============================================================================


class ContentPlanner:
    """Single entry point for AI-backed plans, lesson content and tutor replies."""

    def __init__(
        self,
        chat_completion: ChatCompletion,
        registry: SubjectRegistry,
        progress: ProgressEngine,
        cache: ResponseCache | None = None,
        rate_limiter: RateLimiter | None = None,
        settings: Settings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.progress = progress
        self.cache = cache or ResponseCache(
            ttl_seconds=self.settings.cache_ttl_seconds,
            max_entries=self.settings.cache_max_entries,
            key_max_chars=self.settings.cache_key_max_chars,
        )
        self.rate_limiter = rate_limiter or RateLimiter(self.settings.rate_limit_min_delay_seconds)
        self._chat_completion = chat_completion
        self._sleep = sleep
        self._in_flight: dict[str, asyncio.Task] = {}

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _cached_call(
        self, type: str, params: Any, producer: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Serve from cache, join an identical in-flight call, or run producer."""
        cached = self.cache.get(type, params)
        if cached is not None:
            return cached

        key = self.cache.make_key(type, params)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._produce(type, params, producer))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug(f"Joining in-flight {type} request")
        return await task

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _produce(self, type: str, params: Any, producer: Callable[[], Awaitable[Any]]) -> Any:
        result = await producer()
        self.cache.set(type, params, result)
        return result

    async def _complete(
        self,
        operation_name: str,
        system: str,
        user: str,
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Rate-limited model call with retry; returns the message text."""
        request = ChatCompletionRequest.build(
            system,
            user,
            temperature=temperature,
            max_tokens=max_tokens,
            model=self.settings.ai_model,
        ).to_dict()

        async def attempt() -> str:
            await self.rate_limiter.throttle()
            response = await self._chat_completion(request)
            return extract_message_content(response)

        return await with_retry(
            attempt,
            **self.settings.get_retry_config(),
            operation_name=operation_name,
            sleep=self._sleep,
        )

    # -------------------------------------------------------------------------
    # Lesson plans
    # -------------------------------------------------------------------------

    async def create_learning_plan(self, subject: str) -> LessonPlan:
        """
        Create (or rebuild from cache) a lesson plan and register it.

        Always returns a plan. When generation fails the plan has one lesson
        whose content is a retry_prompt for ``create_learning_plan``.
        """
        subject = self._require_subject(subject)
        logger.info(f"Creating lesson plan for: {subject}")

        structure = await self._analyze_structure(subject)
        max_tokens = structure.token_budget()
        logger.debug(
            f"Planning {structure.recommended_lessons} lessons for {subject} "
            f"({structure.complexity.value}, {max_tokens} tokens)"
        )

        params = {
            "subject": subject,
            "expectedLessons": structure.recommended_lessons,
            "maxTokens": max_tokens,
            "complexity": structure.complexity.value,
            "focusAreas": list(structure.focus_areas),
        }

        async def request_plan() -> dict[str, Any]:
            system, user = prompts.plan_prompts(subject, structure)
            text = await self._complete(
                f"lesson-plan[{subject}]", system, user, temperature=0.3, max_tokens=max_tokens
            )
            return validate_plan_payload(parse_json(text), self.settings.min_plan_lessons)

        try:
            data = await self._cached_call("lesson-plan", params, request_plan)
            plan = build_lesson_plan(subject, data)
        except Exception as e:
            logger.warning(f"Lesson plan generation failed for {subject}, using retry plan: {e}")
            self.registry.store_plan(retry_plan(subject), get_adaptive_defaults(subject))
            return self.registry.get_lesson_plan(subject)

        criteria = await self._derive_criteria(subject, structure.complexity.value)
        self.registry.store_plan(plan, criteria)
        logger.info(f"Lesson plan created for {subject}: {len(plan.lessons)} lessons")
        logger.debug(f"Cache stats: {self.cache.stats()}")
        return self.registry.get_lesson_plan(subject)

    async def _analyze_structure(self, subject: str) -> PlanStructure:
        async def request_structure() -> dict[str, Any]:
            system, user = prompts.structure_prompts(subject)
            text = await self._complete(
                f"lesson-structure[{subject}]", system, user, temperature=0.4, max_tokens=800
            )
            data = parse_json(text)
            plan_structure_from_dict(data, self.settings.default_lesson_count)
            return data

        try:
            data = await self._cached_call("lesson-structure", {"subject": subject}, request_structure)
            return plan_structure_from_dict(data, self.settings.default_lesson_count)
        except Exception as e:
            logger.warning(f"Structure analysis failed for {subject}, using defaults: {e}")
            return PlanStructure(recommended_lessons=self.settings.default_lesson_count)

    async def _derive_criteria(self, subject: str, complexity: str) -> ProgressCriteria:
        async def request_criteria() -> dict[str, Any]:
            system, user = prompts.criteria_prompts(subject, complexity)
            text = await self._complete(
                f"progress-criteria[{subject}]", system, user, temperature=0.3, max_tokens=400
            )
            data = parse_json(text)
            criteria_from_dict(data)
            return data

        try:
            data = await self._cached_call(
                "progress-criteria", {"subject": subject, "complexity": complexity}, request_criteria
            )
            return criteria_from_dict(data)
        except Exception as e:
            logger.warning(f"Progress criteria unavailable for {subject}, using adaptive defaults: {e}")
            return get_adaptive_defaults(subject)

    # -------------------------------------------------------------------------
    # Lesson content
    # -------------------------------------------------------------------------

    async def generate_lesson_content(
        self, subject: str, lesson: Lesson, content_type: str
    ) -> LessonContent:
        """
        Generate content of ``content_type`` for the lesson's current concept.

        The lesson is resolved by id against the stored plan when there is
        one. On success the content is attached to that lesson and logged for
        variety tracking. On failure a RetryPromptContent is returned and
        nothing is logged.

        Raises:
            InvalidSubjectInput: If the subject is blank or the lesson has no id
        """
        subject = self._require_subject(subject)
        if lesson is None or not getattr(lesson, "id", None):
            raise InvalidSubjectInput("Lesson content requires a lesson with an id")

        normalized = normalize_content_type(content_type)
        plan = self.registry.plan_state(subject)
        stored = plan.find_lesson(lesson.id) if plan is not None else None
        if stored is not None:
            lesson = stored
        concept = lesson.current_concept
        params = {
            "subject": subject,
            "lessonId": lesson.id,
            "conceptId": concept.id,
            "contentType": normalized,
            "lessonTitle": lesson.title,
        }
        logger.debug(f"Generating {normalized} content for {subject}: {lesson.title} / {concept.name}")

        async def request_content() -> dict[str, Any]:
            user = prompts.content_prompt(subject, lesson, concept, normalized)
            text = await self._complete(
                f"lesson-content[{subject}/{lesson.id}]",
                prompts.CONTENT_SYSTEM_PROMPT,
                user,
                temperature=0.6,
                max_tokens=1500,
            )
            content = parse_content(parse_json(text), default_type=normalized)
            if isinstance(content, RetryPromptContent):
                raise InvalidContentStructure("Model returned a retry placeholder as content")
            return content.model_dump(by_alias=True)

        try:
            payload = await self._cached_call("lesson-content", params, request_content)
            content = parse_content(payload)
        except Exception as e:
            logger.warning(f"Content generation failed for {subject}/{lesson.id}, returning retry prompt: {e}")
            return retry_prompt(
                "generate_lesson_content",
                {"subject": subject, "lessonId": lesson.id, "contentType": content_type},
            )

        lesson.content = content
        self.progress.record_content(subject, lesson.id, content)
        return content

    # -------------------------------------------------------------------------
    # Text responses
    # -------------------------------------------------------------------------

    async def generate_tutor_response(
        self, subject: str, action: str, data: Any, context: Any = None
    ) -> str:
        """Short tutor reply to a learner action, or a fixed fallback line."""
        subject = self._require_subject(subject)
        params = {"subject": subject, "action": action, "data": data, "context": context}

        async def request_response() -> str:
            user = prompts.tutor_response_prompt(subject, action, data, context)
            return await self._complete(
                f"tutor-response[{action}]",
                prompts.TUTOR_SYSTEM_PROMPT,
                user,
                temperature=0.3,
                max_tokens=100,
            )

        try:
            return await self._cached_call("tutor-response", params, request_response)
        except Exception as e:
            logger.warning(f"Tutor response failed for {subject} ({action}), using fallback: {e}")
            return tutor_fallback_response(action, data)

    async def generate_welcome_message(
        self,
        subject: str,
        current_lesson_title: str,
        current_lesson_index: int,
        correct_answers: int,
        total_attempts: int,
        is_returning_user: bool = True,
    ) -> str:
        subject = self._require_subject(subject)
        params = {
            "subject": subject,
            "progress": {"correctAnswers": correct_answers, "totalAttempts": total_attempts},
            "isReturningUser": is_returning_user,
            "currentLesson": {"index": current_lesson_index, "title": current_lesson_title},
        }

        async def request_welcome() -> str:
            user = prompts.welcome_prompt(
                subject,
                current_lesson_title,
                current_lesson_index,
                correct_answers,
                total_attempts,
                is_returning_user,
            )
            return await self._complete(
                f"welcome-message[{subject}]",
                prompts.WELCOME_SYSTEM_PROMPT,
                user,
                temperature=0.3,
                max_tokens=80,
            )

        try:
            return await self._cached_call("welcome-message", params, request_welcome)
        except Exception as e:
            logger.warning(f"Welcome message failed for {subject}, using template: {e}")
            return welcome_fallback(subject, current_lesson_title, is_returning_user)

    async def generate_direct_educational_response(
        self,
        question: str,
        subject: str | None = None,
        current_lesson: str | None = None,
        difficulty: str | None = None,
    ) -> str:
        """Answer a free-form learner question directly."""
        if not question or not question.strip():
            raise InvalidSubjectInput("Question must not be blank")

        params = {
            "subject": subject,
            "question": question,
            "context": {"currentLesson": current_lesson, "difficulty": difficulty},
        }

        async def request_answer() -> str:
            user = prompts.direct_answer_prompt(question, subject, current_lesson, difficulty)
            return await self._complete(
                "direct-educational-response",
                prompts.EDUCATOR_SYSTEM_PROMPT,
                user,
                temperature=0.4,
                max_tokens=400,
            )

        try:
            return await self._cached_call("direct-educational-response", params, request_answer)
        except Exception as e:
            logger.warning(f"Direct educational response failed ({subject or 'no subject'}): {e}")
            return direct_answer_fallback(subject)

    @staticmethod
    def _require_subject(subject: str) -> str:
        if not isinstance(subject, str) or not subject.strip():
            raise InvalidSubjectInput("Subject must be a non-blank string")
        return subject.strip()
