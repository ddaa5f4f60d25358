"""
Domain models for lesson plans and learner progress.

All models are plain dataclasses. ``to_dict`` / ``from_dict`` produce and
consume the camelCase JSON shapes handed to the persistence layer, so those
shapes must stay stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.tutor.content import LessonContent, parse_content


class Difficulty(str, Enum):
    """Concept and content difficulty tiers."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

    @classmethod
    def coerce(cls, value: Any) -> Difficulty:
        """Map free-form model output onto a tier, defaulting to intermediate."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.INTERMEDIATE


@dataclass
class ConceptInfo:
    """A sub-topic within a lesson; content generation targets one at a time."""

    id: str
    name: str
    description: str = ""
    difficulty: Difficulty = Difficulty.INTERMEDIATE
    estimated_practice_items: int = 0

    def __post_init__(self) -> None:
        self.difficulty = Difficulty.coerce(self.difficulty)
        self.estimated_practice_items = max(0, int(self.estimated_practice_items or 0))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "difficulty": self.difficulty.value,
            "estimatedPracticeItems": self.estimated_practice_items,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConceptInfo:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            description=str(data.get("description") or ""),
            difficulty=data.get("difficulty", Difficulty.INTERMEDIATE),
            estimated_practice_items=data.get("estimatedPracticeItems", 0),
        )


@dataclass
class Lesson:
    """One step of a lesson plan."""

    id: str
    title: str
    description: str
    concepts: list[ConceptInfo]
    completed: bool = False
    current_concept_index: int = 0
    content: LessonContent | None = None

    def __post_init__(self) -> None:
        if not self.concepts:
            raise ValueError(f"Lesson {self.id!r} must have at least one concept")

    @property
    def current_concept(self) -> ConceptInfo:
        """Concept under the cursor, clamped into range."""
        index = min(max(self.current_concept_index, 0), len(self.concepts) - 1)
        return self.concepts[index]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "concepts": [concept.to_dict() for concept in self.concepts],
            "currentConceptIndex": self.current_concept_index,
        }
        if self.content is not None:
            data["content"] = self.content.model_dump(by_alias=True)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Lesson:
        content = data.get("content")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            concepts=[ConceptInfo.from_dict(c) for c in data.get("concepts") or []],
            completed=bool(data.get("completed", False)),
            current_concept_index=int(data.get("currentConceptIndex", 0)),
            content=parse_content(content) if content else None,
        )


@dataclass
class LessonPlan:
    """Ordered curriculum for a subject with a cursor to the active lesson."""

    subject: str
    lessons: list[Lesson]
    current_lesson_index: int = 0

    def __post_init__(self) -> None:
        if not self.lessons:
            raise ValueError(f"Lesson plan for {self.subject!r} has no lessons")
        if not 0 <= self.current_lesson_index < len(self.lessons):
            raise ValueError(
                f"current_lesson_index {self.current_lesson_index} out of range "
                f"for {len(self.lessons)} lessons"
            )

    @property
    def current_lesson(self) -> Lesson:
        return self.lessons[self.current_lesson_index]

    @property
    def is_last_lesson(self) -> bool:
        return self.current_lesson_index >= len(self.lessons) - 1

    def find_lesson(self, lesson_id: str) -> Lesson | None:
        for lesson in self.lessons:
            if lesson.id == lesson_id:
                return lesson
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "lessons": [lesson.to_dict() for lesson in self.lessons],
            "currentLessonIndex": self.current_lesson_index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LessonPlan:
        return cls(
            subject=str(data["subject"]),
            lessons=[Lesson.from_dict(item) for item in data.get("lessons", [])],
            current_lesson_index=int(data.get("currentLessonIndex", 0)),
        )


@dataclass
class LearningProgress:
    """Mastery counters for the active lesson of a subject."""

    correct_answers: int = 0
    total_attempts: int = 0
    needs_review: bool = False
    ready_for_next: bool = False

    @property
    def accuracy(self) -> float:
        if self.total_attempts == 0:
            return 0.0
        return self.correct_answers / self.total_attempts

    def to_dict(self) -> dict[str, Any]:
        return {
            "correctAnswers": self.correct_answers,
            "totalAttempts": self.total_attempts,
            "needsReview": self.needs_review,
            "readyForNext": self.ready_for_next,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LearningProgress:
        total = max(0, int(data.get("totalAttempts", 0)))
        correct = min(max(0, int(data.get("correctAnswers", 0))), total)
        return cls(
            correct_answers=correct,
            total_attempts=total,
            needs_review=bool(data.get("needsReview", False)),
            ready_for_next=bool(data.get("readyForNext", False)),
        )


@dataclass(frozen=True)
class AdaptiveFactors:
    """Multipliers that bend the base criteria for a subject."""

    difficulty_adjustment: float = 1.0
    engagement_weight: float = 0.2
    retention_factor: float = 0.75

    def to_dict(self) -> dict[str, float]:
        return {
            "difficultyAdjustment": self.difficulty_adjustment,
            "engagementWeight": self.engagement_weight,
            "retentionFactor": self.retention_factor,
        }


@dataclass(frozen=True)
class ProgressCriteria:
    """Advancement thresholds derived once per subject."""

    min_correct_answers: int
    min_total_attempts: int
    min_accuracy: float
    adaptive_factors: AdaptiveFactors = field(default_factory=AdaptiveFactors)
    reasoning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "minCorrectAnswers": self.min_correct_answers,
            "minTotalAttempts": self.min_total_attempts,
            "minAccuracy": self.min_accuracy,
            "adaptiveFactors": self.adaptive_factors.to_dict(),
        }
        if self.reasoning:
            data["reasoning"] = self.reasoning
        return data


@dataclass(frozen=True)
class PlanStructure:
    """Result of the lightweight structure-analysis call."""

    recommended_lessons: int = 8
    complexity: Difficulty = Difficulty.INTERMEDIATE
    focus_areas: tuple[str, ...] = ()
    learning_objectives: tuple[str, ...] = ()
    estimated_hours_per_lesson: float = 1.0
    prerequisites: tuple[str, ...] = ()
    reasoning: str = ""

    def token_budget(self) -> int:
        """Max tokens for the plan call, sized to the expected plan."""
        if self.recommended_lessons >= 12:
            return 2500
        if self.complexity is Difficulty.ADVANCED:
            return 2200
        if self.complexity is Difficulty.BEGINNER:
            return 1200
        return 1600


@dataclass(frozen=True)
class GeneratedContentRecord:
    """One entry of the per-lesson content log used for variety and engagement."""

    type: str
    question: str | None
    topic: str | None
    difficulty: str
    timestamp: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "question": self.question,
            "topic": self.topic,
            "difficulty": self.difficulty,
            "timestamp": self.timestamp,
        }


@dataclass
class ContentVarietyStats:
    """Summary of what has been generated for a lesson so far."""

    total_items: int
    by_type: dict[str, int]
    unique_topics: list[str]
    recent_questions: list[str]
    has_minimum_variety: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalItems": self.total_items,
            "byType": dict(self.by_type),
            "uniqueTopics": list(self.unique_topics),
            "recentQuestions": list(self.recent_questions),
            "hasMinimumVariety": self.has_minimum_variety,
        }
