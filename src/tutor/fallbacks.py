"""
Deterministic text and plans used when the model is unavailable.
"""
from __future__ import annotations

from typing import Any

from src.tutor.content import retry_prompt
from src.tutor.models import ConceptInfo, Difficulty, Lesson, LessonPlan
from src.tutor.prompts import RESET_ACTIONS

PLAN_RETRY_MESSAGE = "We couldn't create a lesson plan right now. Please try again."

_FALLBACK_GROUPS = (
    (("needs_more_practice", "continue_practicing"), "Keep practicing - you're making progress!"),
    (("ready_for_practice", "ready_for_next"), "Great! Let's continue."),
    (
        (
            "concept_expanded",
            "examples_requested",
            "explain_more",
            "question_requested",
            "detail_expanded",
            "contextual_content_request",
        ),
        "I'll help you understand this better.",
    ),
    (tuple(RESET_ACTIONS), "Reset complete. Try again!"),
    (("next_question", "next_exercise", "next_problem"), "Ready for more practice!"),
    (("quiz_started",), "Good luck on your quiz!"),
    (("highlights_checked",), "Good work analyzing the text!"),
    (("graph_control_changed",), "Great exploration!"),
)

FALLBACK_RESPONSES = {action: text for actions, text in _FALLBACK_GROUPS for action in actions}

SUBMISSION_ACTIONS = frozenset(
    {"answer_submitted", "fill_blank_submitted", "drag_drop_submitted", "quiz_submitted"}
)
DEFAULT_RESPONSE = "Keep exploring!"


def tutor_fallback_response(action: str, data: Any = None) -> str:
    """Minimal reply for an action when no model response is available."""
    if action in SUBMISSION_ACTIONS:
        if isinstance(data, dict) and "correct" in data:
            return "Correct! Well done." if data["correct"] else "Not quite - keep trying!"
        return "Thanks for your response!"
    return FALLBACK_RESPONSES.get(action, DEFAULT_RESPONSE)


def welcome_fallback(subject: str, lesson_title: str, is_returning_user: bool) -> str:
    if is_returning_user:
        return f'Back to {subject}. Current lesson: "{lesson_title}".'
    return f'Starting {subject}. First lesson: "{lesson_title}".'


def direct_answer_fallback(subject: str | None) -> str:
    if subject:
        return (
            f"Let me help you with {subject}. "
            "I'll create some interactive content to explore this topic together."
        )
    return (
        "That's a great question! "
        "Let me create some interactive content to help you explore this topic."
    )


def retry_concept(lesson_title: str) -> ConceptInfo:
    """Placeholder concept for a lesson the model returned without any."""
    return ConceptInfo(
        id="concept-retry",
        name=lesson_title or "Review",
        description="Concepts for this lesson could not be generated. Retry to refresh them.",
        difficulty=Difficulty.INTERMEDIATE,
        estimated_practice_items=0,
    )


def retry_plan(subject: str) -> LessonPlan:
    """Single-lesson plan whose content asks the caller to retry plan creation."""
    title = f"Introduction to {subject}"
    lesson = Lesson(
        id="lesson-1",
        title=title,
        description=f"Learn the fundamentals of {subject}",
        concepts=[retry_concept(title)],
        content=retry_prompt(
            "create_learning_plan",
            {"subject": subject},
            message=PLAN_RETRY_MESSAGE,
        ),
    )
    return LessonPlan(subject=subject, lessons=[lesson], current_lesson_index=0)
