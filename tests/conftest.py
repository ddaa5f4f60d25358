"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import json
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full engine wiring)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Fake model
# =============================================================================

# System-prompt fragments that identify each kind of model call
REQUEST_KINDS = {
    "Analyze the subject": "structure",
    "comprehensive learning plan": "plan",
    "learning analytics": "criteria",
    "educational content creator": "content",
    "direct, helpful tutor": "tutor",
    "Create brief, informative welcome": "welcome",
    "expert educator": "direct",
}


def completion(text):
    """Wrap text the way the chat endpoint does."""
    return {"choices": [{"message": {"content": text}}]}


def request_kind(request):
    system = request["messages"][0]["content"]
    for fragment, kind in REQUEST_KINDS.items():
        if fragment in system:
            return kind
    raise AssertionError(f"Unrecognized request: {system[:60]}")


class FakeChatModel:
    """
    Scripted stand-in for the chat completion call.

    ``responses`` maps a request kind to a string, a dict (sent as JSON), an
    exception (raised) or a list of those (consumed one per call).
    """

    def __init__(self, **responses):
        self.responses = responses
        self.requests = []

    def calls(self, kind):
        return [r for r in self.requests if request_kind(r) == kind]

    async def __call__(self, request):
        self.requests.append(request)
        kind = request_kind(request)
        if kind not in self.responses:
            raise AssertionError(f"No scripted response for {kind}")

        response = self.responses[kind]
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, dict):
            return completion(json.dumps(response))
        return completion(response)


async def no_sleep(seconds):
    return None


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def fast_settings():
    """Settings with pacing and backoff disabled."""
    return Settings(
        _env_file=None,
        rate_limit_min_delay_ms=0,
        retry_base_delay_seconds=0,
        retry_jitter=0,
    )


@pytest.fixture
def make_model():
    """Factory for FakeChatModel instances."""
    return FakeChatModel


@pytest.fixture
def make_engine(fast_settings):
    """Factory wiring a TutorEngine around a fake model, with sleeps disabled."""
    from src.tutor.engine import TutorEngine

    def factory(model, clock=None):
        return TutorEngine.create(model, settings=fast_settings, clock=clock, sleep=no_sleep)

    return factory


@pytest.fixture
def structure_payload():
    return {
        "recommendedLessons": 6,
        "complexity": "intermediate",
        "focusAreas": ["factoring", "quadratic formula"],
        "learningObjectives": ["solve quadratics"],
        "estimatedHoursPerLesson": 1,
        "prerequisites": ["linear equations"],
        "reasoning": "Builds from factoring to the formula",
    }


@pytest.fixture
def plan_payload():
    """A valid three-lesson plan as the model returns it."""
    return {
        "subject": "Quadratic Equations",
        "lessons": [
            {
                "id": "lesson-1",
                "title": "What Makes an Equation Quadratic",
                "description": "Recognize the standard form",
                "completed": False,
                "concepts": [
                    {
                        "id": "concept-1",
                        "name": "Standard form",
                        "description": "ax^2 + bx + c = 0",
                        "difficulty": "beginner",
                        "estimatedPracticeItems": 3,
                    },
                    {"id": "concept-2", "name": "Coefficients", "difficulty": "beginner"},
                ],
            },
            {
                "id": "lesson-2",
                "title": "Solving by Factoring",
                "description": "Factor and apply the zero product property",
                "concepts": [{"id": "concept-1", "name": "Zero product property"}],
            },
            {
                "id": "lesson-3",
                "title": "The Quadratic Formula",
                "description": "Solve any quadratic",
            },
        ],
    }


@pytest.fixture
def criteria_payload():
    return {
        "minCorrectAnswers": 4,
        "minTotalAttempts": 5,
        "minAccuracy": 0.75,
        "adaptiveFactors": {
            "difficultyAdjustment": 1.0,
            "engagementWeight": 0.15,
            "retentionFactor": 0.85,
        },
        "reasoning": "Precision matters in algebra",
    }


@pytest.fixture
def multiple_choice_payload():
    return {
        "type": "multiple-choice",
        "data": {
            "question": "Which equation is quadratic?",
            "options": ["x + 1 = 0", "x^2 - 4 = 0", "2x = 3", "x^3 = 1"],
            "correctAnswer": 1,
            "explanation": "Only x^2 - 4 = 0 has degree two.",
            "difficulty": "beginner",
            "category": "What Makes an Equation Quadratic",
        },
    }


@pytest.fixture
def concept_card_payload():
    return {
        "type": "concept-card",
        "data": {
            "title": "Standard form",
            "summary": "A quadratic is written ax^2 + bx + c = 0 with a != 0.",
            "details": "The leading coefficient a decides the parabola's direction.",
            "examples": ["x^2 - 5x + 6 = 0"],
            "keyPoints": ["a cannot be zero"],
            "difficulty": "beginner",
        },
    }
