"""
Unit tests for the response cache.
"""

import pytest

from src.tutor.cache import ResponseCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResponseCache(ttl_seconds=30 * 60, max_entries=200, clock=clock)


class TestExpiry:
    """TTL behavior."""

    def test_set_then_get_returns_data(self, cache):
        cache.set("lesson-plan", {"subject": "Algebra"}, {"lessons": [1, 2, 3]})

        assert cache.get("lesson-plan", {"subject": "Algebra"}) == {"lessons": [1, 2, 3]}

    def test_entry_expires_after_ttl(self, cache, clock):
        cache.set("lesson-plan", {"subject": "Algebra"}, "plan")

        clock.advance(30 * 60 - 1)
        assert cache.get("lesson-plan", {"subject": "Algebra"}) == "plan"

        clock.advance(1)
        assert cache.get("lesson-plan", {"subject": "Algebra"}) is None

    def test_expired_entry_is_purged_on_lookup(self, cache, clock):
        cache.set("tutor-response", {"action": "quiz_started"}, "Good luck!")
        clock.advance(31 * 60)

        cache.get("tutor-response", {"action": "quiz_started"})

        assert len(cache) == 0

    def test_miss_for_unknown_key(self, cache):
        assert cache.get("lesson-plan", {"subject": "Biology"}) is None


class TestCapacity:
    """FIFO eviction at capacity."""

    def test_201_inserts_keep_200_and_evict_first(self, cache):
        for i in range(201):
            cache.set("lesson-content", {"n": i}, i)

        assert len(cache) == 200
        assert cache.get("lesson-content", {"n": 0}) is None
        assert cache.get("lesson-content", {"n": 1}) == 1
        assert cache.get("lesson-content", {"n": 200}) == 200

    def test_reading_does_not_protect_from_eviction(self):
        cache = ResponseCache(max_entries=2)
        cache.set("t", {"n": 1}, "a")
        cache.set("t", {"n": 2}, "b")
        cache.get("t", {"n": 1})

        cache.set("t", {"n": 3}, "c")

        assert cache.get("t", {"n": 1}) is None
        assert cache.get("t", {"n": 2}) == "b"

    def test_resetting_existing_key_does_not_evict(self):
        cache = ResponseCache(max_entries=2)
        cache.set("t", {"n": 1}, "a")
        cache.set("t", {"n": 2}, "b")

        cache.set("t", {"n": 1}, "a2")

        assert len(cache) == 2
        assert cache.get("t", {"n": 1}) == "a2"
        assert cache.get("t", {"n": 2}) == "b"

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            ResponseCache(max_entries=0)


class TestKeys:
    """Key derivation."""

    def test_keys_ignore_case(self, cache):
        assert cache.make_key("t", {"subject": "Algebra", "a": "X"}) == cache.make_key(
            "t", {"subject": "ALGEBRA", "a": "x"}
        )

    @pytest.mark.parametrize(
        "cache_type, params",
        [
            (
                "lesson-content",
                {
                    "lessonId": "lesson-1",
                    "conceptId": "concept-1",
                    "contentType": "multiple-choice",
                    "lessonTitle": "Introduction and Core Vocabulary for Beginners",
                },
            ),
            (
                "welcome-message",
                {
                    "progress": {"correctAnswers": 0, "totalAttempts": 0},
                    "isReturningUser": False,
                    "currentLesson": {"index": 0, "title": "Introduction and Core Vocabulary for Beginners"},
                },
            ),
        ],
    )
    def test_subject_is_part_of_key(self, cache, cache_type, params):
        algebra = cache.make_key(cache_type, {"subject": "Algebra", **params})
        spanish = cache.make_key(cache_type, {"subject": "Spanish Literature", **params})

        assert algebra != spanish

    def test_long_subject_keeps_identifying_params(self, cache):
        subject = "Introduction to Quadratic Equations and Polynomial Functions for High School"
        params = {"subject": subject, "lessonId": "lesson-1", "conceptId": "concept-1"}

        quiz = cache.make_key("lesson-content", {**params, "contentType": "quiz"})
        card = cache.make_key("lesson-content", {**params, "contentType": "concept-card"})

        assert quiz != card

    def test_type_is_part_of_key(self, cache):
        assert cache.make_key("lesson-plan", {"s": 1}) != cache.make_key("lesson-content", {"s": 1})

    def test_long_params_collide_past_truncation(self, cache):
        prefix = "q" * 200
        cache.set("direct-educational-response", {"question": prefix + "one"}, "first")

        assert cache.get("direct-educational-response", {"question": prefix + "two"}) == "first"


class TestClearAndStats:
    def test_clear_by_type(self, cache):
        cache.set("lesson-plan", {"s": 1}, "plan")
        cache.set("tutor-response", {"s": 1}, "reply")

        cache.clear("lesson-plan")

        assert cache.get("lesson-plan", {"s": 1}) is None
        assert cache.get("tutor-response", {"s": 1}) == "reply"

    def test_clear_all(self, cache):
        cache.set("lesson-plan", {"s": 1}, "plan")
        cache.set("tutor-response", {"s": 1}, "reply")

        cache.clear()

        assert len(cache) == 0

    def test_stats_counts_per_type(self, cache):
        cache.set("lesson-plan", {"s": 1}, "plan")
        cache.set("tutor-response", {"s": 1}, "a")
        cache.set("tutor-response", {"s": 2}, "b")

        assert cache.stats() == {"size": 3, "types": {"lesson-plan": 1, "tutor-response": 2}}
