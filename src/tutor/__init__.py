"""
Adaptive tutoring engine.

Generates and caches AI-produced lesson plans and content, repairs truncated
model JSON, tracks per-lesson mastery with subject-adaptive thresholds, and
paces and retries calls to the generative model.
"""

from src.tutor.cache import ResponseCache
from src.tutor.content import LessonContent, RetryPromptContent, parse_content
from src.tutor.engine import TutorEngine
from src.tutor.errors import (
    EmptyCompletion,
    InvalidContentStructure,
    InvalidPlanStructure,
    InvalidSubjectInput,
    MalformedContent,
    NoUsableCriteria,
    TransientCallFailure,
    TutorEngineError,
)
from src.tutor.json_repair import parse_json, repair
from src.tutor.models import (
    ConceptInfo,
    LearningProgress,
    Lesson,
    LessonPlan,
    ProgressCriteria,
)
from src.tutor.planner import ContentPlanner
from src.tutor.progress import ProgressEngine
from src.tutor.rate_limiter import RateLimiter
from src.tutor.retry import with_retry

__all__ = [
    "TutorEngine",
    "ContentPlanner",
    "ProgressEngine",
    "ResponseCache",
    "RateLimiter",
    "with_retry",
    "repair",
    "parse_json",
    "parse_content",
    "LessonContent",
    "RetryPromptContent",
    "ConceptInfo",
    "Lesson",
    "LessonPlan",
    "LearningProgress",
    "ProgressCriteria",
    "TutorEngineError",
    "TransientCallFailure",
    "EmptyCompletion",
    "MalformedContent",
    "InvalidPlanStructure",
    "InvalidContentStructure",
    "NoUsableCriteria",
    "InvalidSubjectInput",
]
