"""
In-memory per-subject state: lesson plans, progress, criteria and content logs.

One registry is owned by each TutorEngine. Nothing here persists; callers
snapshot state with ``export_subject`` and restore it with
``load_lesson_plan`` / ``load_progress``.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import replace
from typing import Any

from loguru import logger

from src.tutor.errors import InvalidSubjectInput
from src.tutor.models import (
    GeneratedContentRecord,
    LearningProgress,
    LessonPlan,
    ProgressCriteria,
)


class SubjectRegistry:
    """Subject-keyed maps mutated only through ProgressEngine and ContentPlanner."""

    def __init__(self):
        self._plans: dict[str, LessonPlan] = {}
        self._progress: dict[str, LearningProgress] = {}
        self._criteria: dict[str, ProgressCriteria] = {}
        self._content_logs: dict[tuple[str, str], list[GeneratedContentRecord]] = {}

    # =========================================================================
    # Reads
    # =========================================================================

    def get_lesson_plan(self, subject: str) -> LessonPlan | None:
        """A copy of the subject's plan."""
        plan = self._plans.get(subject)
        return deepcopy(plan) if plan is not None else None

    def get_progress(self, subject: str) -> LearningProgress | None:
        """A copy of the subject's progress."""
        progress = self._progress.get(subject)
        return replace(progress) if progress is not None else None

    def get_criteria(self, subject: str) -> ProgressCriteria | None:
        return self._criteria.get(subject)

    def cached_subjects(self) -> list[str]:
        return list(self._plans)

    def content_log(self, subject: str, lesson_id: str) -> list[GeneratedContentRecord]:
        return list(self._content_logs.get((subject, lesson_id), []))

    def export_subject(self, subject: str) -> dict[str, Any] | None:
        """JSON-ready snapshot for the persistence layer."""
        plan = self._plans.get(subject)
        if plan is None:
            return None

        criteria = self._criteria.get(subject)
        progress = self._progress.get(subject, LearningProgress())
        return {
            "subject": subject,
            "lessonPlan": plan.to_dict(),
            "progress": progress.to_dict(),
            "criteria": criteria.to_dict() if criteria else None,
        }

    # =========================================================================
    # Writes
    # =========================================================================

    def store_plan(self, plan: LessonPlan, criteria: ProgressCriteria) -> None:
        """Install a freshly created plan with zeroed progress."""
        self._plans[plan.subject] = plan
        self._progress[plan.subject] = LearningProgress()
        self._criteria[plan.subject] = criteria
        logger.debug(f"Stored lesson plan for {plan.subject} ({len(plan.lessons)} lessons)")

    def set_criteria(self, subject: str, criteria: ProgressCriteria) -> None:
        self._criteria[subject] = criteria

    def load_lesson_plan(self, plan: LessonPlan | dict[str, Any]) -> LessonPlan:
        """Resume a plan the caller persisted earlier. Returns a copy."""
        if isinstance(plan, dict):
            try:
                plan = LessonPlan.from_dict(plan)
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidSubjectInput(f"Cannot load lesson plan: {e}") from e
        else:
            plan = deepcopy(plan)

        self._plans[plan.subject] = plan
        self._progress.setdefault(plan.subject, LearningProgress())
        logger.debug(f"Loaded lesson plan for {plan.subject}")
        return deepcopy(plan)

    def load_progress(
        self, subject: str, progress: LearningProgress | dict[str, Any]
    ) -> LearningProgress:
        """Resume progress the caller persisted earlier."""
        if isinstance(progress, dict):
            progress = LearningProgress.from_dict(progress)
        self._progress[subject] = progress
        return replace(progress)

    def plan_state(self, subject: str) -> LessonPlan | None:
        """The live plan. Only ProgressEngine and ContentPlanner should mutate it."""
        return self._plans.get(subject)

    def progress_state(self, subject: str) -> LearningProgress | None:
        """The live progress object. Only ProgressEngine should mutate it."""
        return self._progress.get(subject)

    def reset_progress(self, subject: str) -> None:
        self._progress[subject] = LearningProgress()

    def append_record(self, subject: str, lesson_id: str, record: GeneratedContentRecord) -> int:
        """Append to a lesson's content log and return the new log length."""
        log = self._content_logs.setdefault((subject, lesson_id), [])
        log.append(record)
        return len(log)

    def clear_content_log(self, subject: str, lesson_id: str) -> None:
        self._content_logs.pop((subject, lesson_id), None)

    def clear_subject_data(self, subject: str) -> None:
        """Drop everything held for one subject."""
        self._plans.pop(subject, None)
        self._progress.pop(subject, None)
        self._criteria.pop(subject, None)
        for key in [k for k in self._content_logs if k[0] == subject]:
            del self._content_logs[key]
        logger.info(f"Cleared data for subject: {subject}")

    def clear_all_data(self) -> None:
        self._plans.clear()
        self._progress.clear()
        self._criteria.clear()
        self._content_logs.clear()
        logger.info("Cleared all subject data")
