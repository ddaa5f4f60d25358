"""
Per-subject mastery tracking with subject-adaptive advancement criteria.

Readiness for the next lesson combines four checks:

1. enough correct answers (scaled by the subject's difficulty adjustment)
2. enough attempts
3. accuracy above a threshold that shifts with engagement
4. enough content variety for the learner's accuracy tier

Progress is scoped to the current lesson and resets when the learner
advances.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable

from loguru import logger

from src.tutor.content import LessonContent
from src.tutor.models import (
    AdaptiveFactors,
    ContentVarietyStats,
    GeneratedContentRecord,
    LearningProgress,
    ProgressCriteria,
)
from src.tutor.registry import SubjectRegistry

ENGAGEMENT_WINDOW = 5
RECENCY_DECAY_HOURS = 24.0
NEUTRAL_ENGAGEMENT = 0.5
REVIEW_MARGIN = 0.8


# =============================================================================
# Subject classification
# =============================================================================

SUBJECT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "math_science": (
        "math",
        "physics",
        "chemistry",
        "calculus",
        "algebra",
        "geometry",
        "statistics",
        "equation",
        "quadratic",
        "trigonometry",
        "biology",
        "science",
    ),
    "language_arts": ("language", "literature", "writing", "english", "spanish", "french", "poetry"),
    "creative": ("art", "music", "design", "creative", "drawing", "painting"),
    "social": ("history", "geography", "social", "politics", "economics", "culture"),
}

DEFAULT_CRITERIA: dict[str, ProgressCriteria] = {
    "math_science": ProgressCriteria(4, 5, 0.75, AdaptiveFactors(1.0, 0.15, 0.85)),
    "language_arts": ProgressCriteria(3, 4, 0.6, AdaptiveFactors(0.9, 0.25, 0.75)),
    "creative": ProgressCriteria(2, 3, 0.55, AdaptiveFactors(0.8, 0.3, 0.7)),
    "social": ProgressCriteria(3, 4, 0.65, AdaptiveFactors(0.95, 0.2, 0.8)),
    "general": ProgressCriteria(3, 4, 0.65, AdaptiveFactors(1.0, 0.2, 0.75)),
}


def classify_subject(subject: str) -> str:
    """Bucket a subject name by keyword; first matching category wins."""
    subject_lower = subject.lower()
    for category, keywords in SUBJECT_KEYWORDS.items():
        if any(term in subject_lower for term in keywords):
            return category
    return "general"


def get_adaptive_defaults(subject: str) -> ProgressCriteria:
    """Deterministic criteria used whenever AI-derived criteria are unavailable."""
    return DEFAULT_CRITERIA[classify_subject(subject)]


def record_from_content(
    content_type: str, content: LessonContent, timestamp: float
) -> GeneratedContentRecord:
    """Digest generated content into a content-log entry."""
    question, topic, difficulty = content.describe()
    return GeneratedContentRecord(
        type=content_type,
        question=question,
        topic=topic,
        difficulty=difficulty,
        timestamp=timestamp,
    )


@dataclass(frozen=True)
class AdjustedThresholds:
    """Criteria after applying difficulty and engagement adjustments."""

    min_correct: int
    min_attempts: int
    min_accuracy: float
    engagement: float


# =============================================================================
# Progress engine
# =============================================================================


class ProgressEngine:
    """Mutates LearningProgress and lesson cursors held in a SubjectRegistry."""

    def __init__(self, registry: SubjectRegistry, clock: Callable[[], float] = time.time):
        self.registry = registry
        self._clock = clock

    def criteria_for(self, subject: str) -> ProgressCriteria:
        return self.registry.get_criteria(subject) or get_adaptive_defaults(subject)

    # -------------------------------------------------------------------------
    # Scoring
    # -------------------------------------------------------------------------

    def engagement_score(self, subject: str, lesson_id: str | None = None) -> float:
        """
        Blend of recency, variety and consistency over the last five records.

        Returns 0.5 when there is no lesson or nothing has been generated yet.
        """
        if not lesson_id:
            return NEUTRAL_ENGAGEMENT

        recent = self.registry.content_log(subject, lesson_id)[-ENGAGEMENT_WINDOW:]
        if not recent:
            return NEUTRAL_ENGAGEMENT

        now = self._clock()
        recency = sum(
            max(0.0, 1 - ((now - item.timestamp) / 3600) / RECENCY_DECAY_HOURS)
            for item in recent
        ) / len(recent)
        variety = min(1.0, len({item.type for item in recent}) / 3)
        consistency = min(1.0, len(recent) / 3)

        return recency * 0.4 + variety * 0.3 + consistency * 0.3

    def has_content_variety(self, subject: str, lesson_id: str | None, accuracy: float) -> bool:
        """
        Variety gate, stricter for learners with lower accuracy.

        - accuracy >= 0.8: two items spanning two types
        - accuracy >= 0.6: three items spanning two types
        - otherwise: four items spanning three types
        """
        if not lesson_id:
            return True

        history = self.registry.content_log(subject, lesson_id)
        types = {item.type for item in history}

        if accuracy >= 0.8:
            return len(history) >= 2 and len(types) >= 2
        if accuracy >= 0.6:
            return len(history) >= 3 and len(types) >= 2
        return len(history) >= 4 and len(types) >= 3

    def adjusted_thresholds(self, subject: str, lesson_id: str | None = None) -> AdjustedThresholds:
        criteria = self.criteria_for(subject)
        factors = criteria.adaptive_factors
        engagement = self.engagement_score(subject, lesson_id)

        min_correct = math.ceil(criteria.min_correct_answers * factors.difficulty_adjustment)
        min_accuracy = criteria.min_accuracy * (
            1 + (engagement - NEUTRAL_ENGAGEMENT) * factors.engagement_weight
        )
        min_attempts = max(criteria.min_total_attempts, min_correct + 1)
        return AdjustedThresholds(min_correct, min_attempts, min_accuracy, engagement)

    def _evaluate(self, subject: str, progress: LearningProgress, lesson_id: str | None) -> None:
        accuracy = progress.accuracy
        thresholds = self.adjusted_thresholds(subject, lesson_id)
        has_variety = self.has_content_variety(subject, lesson_id, accuracy)

        progress.ready_for_next = (
            progress.correct_answers >= thresholds.min_correct
            and progress.total_attempts >= thresholds.min_attempts
            and accuracy >= thresholds.min_accuracy
            and has_variety
        )
        progress.needs_review = accuracy < thresholds.min_accuracy * REVIEW_MARGIN

        logger.debug(
            f"Progress for {subject}: {progress.correct_answers}/{progress.total_attempts} "
            f"({accuracy:.0%}) ready={progress.ready_for_next} review={progress.needs_review} "
            f"[min_correct={thresholds.min_correct} min_attempts={thresholds.min_attempts} "
            f"min_accuracy={thresholds.min_accuracy:.3f} engagement={thresholds.engagement:.2f} "
            f"variety={has_variety}]"
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def update_progress(
        self, subject: str, is_correct: bool, lesson_id: str | None = None
    ) -> LearningProgress | None:
        """
        Record one answer and recompute the readiness and review flags.

        Returns a copy of the updated progress, or None when the subject has
        no plan yet.
        """
        progress = self.registry.progress_state(subject)
        if progress is None:
            logger.debug(f"No progress found for subject: {subject}")
            return None

        progress.total_attempts += 1
        if is_correct:
            progress.correct_answers += 1

        self._evaluate(subject, progress, lesson_id)
        return self.registry.get_progress(subject)

    def record_generated_content(
        self, subject: str, lesson_id: str, record: GeneratedContentRecord
    ) -> None:
        """
        Append to the lesson's content log.

        If the learner is already answering on this lesson, the flags are
        re-evaluated so new variety can unlock advancement. Counters are not
        touched.
        """
        count = self.registry.append_record(subject, lesson_id, record)
        logger.debug(f"Tracked generated {record.type} for {subject}/{lesson_id} ({count} items)")

        plan = self.registry.plan_state(subject)
        progress = self.registry.progress_state(subject)
        if plan is None or progress is None or progress.total_attempts == 0:
            return
        if plan.current_lesson.id == lesson_id:
            self._evaluate(subject, progress, lesson_id)

    def record_content(self, subject: str, lesson_id: str, content: LessonContent) -> GeneratedContentRecord:
        """Log freshly generated content, timestamped now."""
        record = record_from_content(content.type, content, self._clock())
        self.record_generated_content(subject, lesson_id, record)
        return record

    def advance_to_next_lesson(self, subject: str) -> bool:
        """
        Complete the current lesson and move to the next one.

        Returns False, changing nothing, when there is no plan or the current
        lesson is the last one.
        """
        plan = self.registry.plan_state(subject)
        if plan is None:
            logger.debug(f"No lesson plan found for subject: {subject}")
            return False

        if plan.is_last_lesson:
            logger.debug(f"Already at the last lesson of {subject}, course completed")
            return False

        completed = plan.current_lesson
        completed.completed = True
        self.registry.clear_content_log(subject, completed.id)

        plan.current_lesson_index += 1
        self.registry.reset_progress(subject)

        logger.info(
            f"Advanced {subject} from lesson {plan.current_lesson_index} to "
            f"{plan.current_lesson_index + 1}: {plan.current_lesson.title}"
        )
        return True

    def advance_concept(self, subject: str) -> bool:
        """Move the current lesson to its next concept; False at the last one."""
        plan = self.registry.plan_state(subject)
        if plan is None:
            return False

        lesson = plan.current_lesson
        if lesson.current_concept_index >= len(lesson.concepts) - 1:
            return False

        lesson.current_concept_index += 1
        logger.debug(f"{subject}/{lesson.id} now on concept: {lesson.current_concept.name}")
        return True

    def content_variety_stats(self, subject: str, lesson_id: str) -> ContentVarietyStats:
        history = self.registry.content_log(subject, lesson_id)

        by_type: dict[str, int] = {}
        topics: list[str] = []
        for item in history:
            by_type[item.type] = by_type.get(item.type, 0) + 1
            if item.topic and item.topic not in topics:
                topics.append(item.topic)

        return ContentVarietyStats(
            total_items=len(history),
            by_type=by_type,
            unique_topics=topics,
            recent_questions=[item.question or "N/A" for item in history[-3:]],
            has_minimum_variety=self.has_content_variety(subject, lesson_id, accuracy=1.0),
        )
