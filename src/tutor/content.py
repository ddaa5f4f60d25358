"""
Lesson content variants.

Model output is untyped JSON. It is validated here into one of a closed set
of content shapes, tagged by ``type``:

- multiple-choice
- concept-card
- step-solver
- fill-blank
- explainer
- retry_prompt (placeholder returned when generation fails)

Anything else is rejected with InvalidContentStructure, so no untyped payload
leaves the planner.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.tutor.errors import InvalidContentStructure

# Requested content types that the model knows under another name
CONTENT_TYPE_ALIASES = {
    "quiz": "multiple-choice",
    "practice": "step-solver",
}

_DIFFICULTIES = ("beginner", "intermediate", "advanced")


def normalize_content_type(content_type: str) -> str:
    """Resolve request aliases (``quiz``, ``practice``) to variant tags."""
    key = content_type.strip().lower()
    return CONTENT_TYPE_ALIASES.get(key, key)


def _coerce_difficulty(value: Any) -> str:
    text = str(value or "").strip().lower()
    return text if text in _DIFFICULTIES else "intermediate"


NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
StrId = Annotated[str, BeforeValidator(lambda value: str(value))]
DifficultyLevel = Annotated[
    Literal["beginner", "intermediate", "advanced"],
    BeforeValidator(_coerce_difficulty),
]


class _ContentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Variant payloads
# =============================================================================


class MultipleChoiceData(_ContentModel):
    question: NonBlank
    options: list[NonBlank] = Field(min_length=2)
    correct_answer: int = Field(ge=0)
    explanation: str = ""
    difficulty: DifficultyLevel = "intermediate"
    category: str | None = None

    @model_validator(mode="after")
    def _answer_in_range(self) -> MultipleChoiceData:
        if self.correct_answer >= len(self.options):
            raise ValueError(
                f"correctAnswer {self.correct_answer} out of range for {len(self.options)} options"
            )
        return self


class ConceptCardData(_ContentModel):
    title: NonBlank
    summary: NonBlank
    details: str = ""
    examples: list[str] = Field(default_factory=list)
    key_points: list[str] = Field(default_factory=list)
    difficulty: DifficultyLevel = "intermediate"


class SolverStep(_ContentModel):
    id: StrId = ""
    description: NonBlank
    calculation: str = ""
    result: str = ""
    explanation: str = ""


class StepSolverData(_ContentModel):
    problem: NonBlank
    problem_type: str | None = None
    steps: list[SolverStep] = Field(min_length=1)
    final_answer: str = ""
    difficulty: DifficultyLevel = "intermediate"
    learning_objective: str | None = None


class FillBlankData(_ContentModel):
    question: NonBlank
    template: NonBlank
    answers: list[NonBlank] = Field(min_length=1)
    hints: list[str] = Field(default_factory=list)
    explanation: str = ""
    category: str | None = None
    difficulty: DifficultyLevel = "intermediate"


class ExplainerSection(_ContentModel):
    heading: NonBlank
    paragraphs: list[str] = Field(min_length=1)


class ExplainerData(_ContentModel):
    title: NonBlank
    overview: str = ""
    sections: list[ExplainerSection] = Field(min_length=1)
    conclusion: str = ""
    difficulty: DifficultyLevel = "intermediate"
    estimated_read_time: int | None = None


# =============================================================================
# Tagged variants
# =============================================================================


class _TaggedContent(_ContentModel):
    def describe(self) -> tuple[str | None, str | None, str]:
        """(question, topic, difficulty) digest used by the content log."""
        data = getattr(self, "data", None)
        question = (
            getattr(data, "question", None)
            or getattr(data, "problem", None)
            or getattr(data, "title", None)
        )
        topic = getattr(data, "category", None) or getattr(data, "problem_type", None)
        difficulty = getattr(data, "difficulty", None) or "intermediate"
        return question, topic, difficulty


class MultipleChoiceContent(_TaggedContent):
    type: Literal["multiple-choice"]
    data: MultipleChoiceData


class ConceptCardContent(_TaggedContent):
    type: Literal["concept-card"]
    data: ConceptCardData


class StepSolverContent(_TaggedContent):
    type: Literal["step-solver"]
    data: StepSolverData


class FillBlankContent(_TaggedContent):
    type: Literal["fill-blank"]
    data: FillBlankData


class ExplainerContent(_TaggedContent):
    type: Literal["explainer"]
    data: ExplainerData


class RetryPromptContent(_TaggedContent):
    """Placeholder that tells the caller to offer a retry."""

    type: Literal["retry_prompt"] = "retry_prompt"
    message: str
    action: Literal["retry"] = "retry"
    original_action: str
    original_data: dict[str, Any] = Field(default_factory=dict)

    def describe(self) -> tuple[str | None, str | None, str]:
        return self.message, None, "intermediate"


LessonContent = Annotated[
    Union[
        MultipleChoiceContent,
        ConceptCardContent,
        StepSolverContent,
        FillBlankContent,
        ExplainerContent,
        RetryPromptContent,
    ],
    Field(discriminator="type"),
]

_LESSON_CONTENT_ADAPTER: TypeAdapter[LessonContent] = TypeAdapter(LessonContent)


def parse_content(payload: Any, default_type: str | None = None) -> LessonContent:
    """
    Validate a parsed model payload into a content variant.

    Args:
        payload: Parsed JSON from the model (or from persistence)
        default_type: Tag to assume when the payload carries ``data`` but no ``type``

    Raises:
        InvalidContentStructure: If the payload matches no variant
    """
    if not isinstance(payload, dict):
        raise InvalidContentStructure(
            f"Expected a JSON object for lesson content, got {type(payload).__name__}"
        )

    payload = dict(payload)
    if "type" in payload and isinstance(payload["type"], str):
        payload["type"] = normalize_content_type(payload["type"])
    elif default_type is not None:
        payload["type"] = normalize_content_type(default_type)

    try:
        return _LESSON_CONTENT_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise InvalidContentStructure(
            f"Lesson content failed validation ({e.error_count()} errors): {e}"
        ) from e


def retry_prompt(
    original_action: str,
    original_data: dict[str, Any],
    message: str = "We couldn't generate this content right now. Please try again.",
) -> RetryPromptContent:
    """Build the retry placeholder for a failed generation."""
    return RetryPromptContent(
        message=message,
        original_action=original_action,
        original_data=original_data,
    )
