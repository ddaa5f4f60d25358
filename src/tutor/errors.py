"""
Error taxonomy for the tutor engine.

Only TransientCallFailure is retried. Every other failure is converted into a
typed fallback at the ContentPlanner boundary, except InvalidSubjectInput,
which means the caller passed something unusable.
"""

from __future__ import annotations


class TutorEngineError(Exception):
    """Base class for all tutor engine failures."""


class TransientCallFailure(TutorEngineError):
    """Network, rate-limit or server-side failure of the model call."""


class EmptyCompletion(TransientCallFailure):
    """The model answered but the message content was missing or blank."""

    def __init__(self, message: str = "No content received"):
        super().__init__(message)


class MalformedContent(TutorEngineError):
    """Model output could not be repaired into parseable JSON."""


class InvalidPlanStructure(TutorEngineError):
    """A parsed lesson plan is missing required fields or has too few lessons."""


class InvalidContentStructure(TutorEngineError):
    """Parsed lesson content does not match any known content variant."""


class NoUsableCriteria(TutorEngineError):
    """AI-derived progress criteria were unavailable or unusable."""


class InvalidSubjectInput(TutorEngineError, ValueError):
    """The subject or lesson passed by the caller is structurally invalid."""
