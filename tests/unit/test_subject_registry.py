"""
Unit tests for subject state: registry hand-off and engine-level clearing.
"""

import pytest

from src.tutor.content import RetryPromptContent
from src.tutor.errors import InvalidSubjectInput
from src.tutor.fallbacks import retry_plan
from src.tutor.models import GeneratedContentRecord, LearningProgress
from src.tutor.progress import get_adaptive_defaults
from src.tutor.registry import SubjectRegistry


def record(lesson_type="multiple-choice"):
    return GeneratedContentRecord(lesson_type, "q", None, "beginner", 0.0)


@pytest.fixture
def registry():
    registry = SubjectRegistry()
    registry.store_plan(retry_plan("Biology"), get_adaptive_defaults("Biology"))
    registry.store_plan(retry_plan("French"), get_adaptive_defaults("French"))
    return registry


class TestExportAndLoad:
    def test_export_snapshot(self, registry):
        snapshot = registry.export_subject("Biology")

        assert snapshot["subject"] == "Biology"
        assert snapshot["progress"] == {
            "correctAnswers": 0,
            "totalAttempts": 0,
            "needsReview": False,
            "readyForNext": False,
        }
        assert snapshot["lessonPlan"]["lessons"][0]["content"]["originalAction"] == "create_learning_plan"
        assert snapshot["criteria"]["minCorrectAnswers"] == 4

    def test_export_unknown_subject(self, registry):
        assert registry.export_subject("Astronomy") is None

    def test_load_round_trip(self, registry):
        snapshot = registry.export_subject("Biology")
        fresh = SubjectRegistry()

        plan = fresh.load_lesson_plan(snapshot["lessonPlan"])
        fresh.load_progress("Biology", {"correctAnswers": 2, "totalAttempts": 3})

        assert isinstance(plan.lessons[0].content, RetryPromptContent)
        assert fresh.get_progress("Biology") == LearningProgress(2, 3, False, False)
        assert fresh.cached_subjects() == ["Biology"]

    def test_load_invalid_plan_raises(self):
        with pytest.raises(InvalidSubjectInput):
            SubjectRegistry().load_lesson_plan({"subject": "Biology", "lessons": []})


class TestClearing:
    def test_clear_subject_data(self, registry):
        registry.append_record("Biology", "lesson-1", record())
        registry.append_record("French", "lesson-1", record())

        registry.clear_subject_data("Biology")

        assert registry.get_lesson_plan("Biology") is None
        assert registry.get_progress("Biology") is None
        assert registry.get_criteria("Biology") is None
        assert registry.content_log("Biology", "lesson-1") == []
        assert len(registry.content_log("French", "lesson-1")) == 1
        assert registry.cached_subjects() == ["French"]

    def test_clear_all_data(self, registry):
        registry.append_record("French", "lesson-1", record())

        registry.clear_all_data()

        assert registry.cached_subjects() == []
        assert registry.content_log("French", "lesson-1") == []

    def test_get_progress_returns_copy(self, registry):
        progress = registry.get_progress("Biology")
        progress.total_attempts = 10

        assert registry.get_progress("Biology").total_attempts == 0

    def test_get_lesson_plan_returns_copy(self, registry):
        plan = registry.get_lesson_plan("Biology")
        plan.lessons[0].completed = True
        plan.lessons[0].current_concept_index = 3

        stored = registry.get_lesson_plan("Biology")
        assert stored.lessons[0].completed is False
        assert stored.lessons[0].current_concept_index == 0
        assert registry.plan_state("Biology") is not plan

    def test_loaded_plan_is_not_shared_with_caller(self):
        registry = SubjectRegistry()
        plan = retry_plan("Biology")

        registry.load_lesson_plan(plan)
        plan.lessons[0].completed = True

        assert registry.get_lesson_plan("Biology").lessons[0].completed is False


class TestEngineClearAll:
    @pytest.mark.asyncio
    async def test_clear_all_resets_rate_limiter(self, make_engine, make_model):
        engine = make_engine(make_model(tutor="ok"))
        await engine.generate_tutor_response("Biology", "quiz_started", {})
        assert engine.planner.rate_limiter.last_call is not None

        engine.clear_all_data()

        assert engine.planner.rate_limiter.last_call is None
