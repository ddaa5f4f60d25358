"""
Unit tests for JSON repair of model output.
"""

import json

import pytest

from src.tutor.errors import MalformedContent
from src.tutor.json_repair import parse_json, repair, strip_code_fences


class TestStripCodeFences:
    def test_strips_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_bare_fence(self):
        assert strip_code_fences('```\n[1, 2]\n```') == "[1, 2]"

    def test_leaves_plain_text(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


class TestRepairIdempotence:
    """Valid JSON is returned unchanged."""

    @pytest.mark.parametrize(
        "text",
        [
            '{"subject": "Algebra", "lessons": []}',
            "[1, 2, 3]",
            '"just a string"',
            '{"nested": {"list": [{"a": "b,"}]}}',
        ],
    )
    def test_valid_json_unchanged(self, text):
        assert repair(text) == text
        assert json.loads(repair(text)) == json.loads(text)


class TestTruncationRecovery:
    def test_truncated_lesson_plan(self):
        text = '{"subject":"Algebra","lessons":[{"id":"lesson-1","title":"Intro"'

        data = parse_json(text)

        assert data["subject"] == "Algebra"
        assert len(data["lessons"]) == 1
        assert data["lessons"][0]["title"] == "Intro"

    def test_drops_dangling_lesson_reference(self):
        text = '{"subject":"Algebra","lessons":[{"id":"lesson-1","title":"Intro"}, {"id": "lesson-'

        data = parse_json(text)

        assert [lesson["id"] for lesson in data["lessons"]] == ["lesson-1"]

    def test_drops_trailing_comma(self):
        data = parse_json('{"lessons": [1, 2,')

        assert data == {"lessons": [1, 2]}

    def test_closes_unterminated_string(self):
        data = parse_json('{"subject": "Algebra", "description": "Learn to fac')

        assert data == {"subject": "Algebra", "description": "Learn to fac"}

    def test_fenced_and_truncated(self):
        data = parse_json('```json\n{"type": "concept-card", "data": {"title": "Roots"')

        assert data == {"type": "concept-card", "data": {"title": "Roots"}}

    def test_braces_inside_strings_are_ignored(self):
        data = parse_json('{"template": "f(x) = {x}", "items": ["[a]"')

        assert data == {"template": "f(x) = {x}", "items": ["[a]"]}


class TestUnrepairable:
    def test_raises_malformed_content(self):
        with pytest.raises(MalformedContent):
            repair("this is not json at all")

    def test_dangling_key_is_not_fabricated(self):
        with pytest.raises(MalformedContent):
            repair('{"subject": "Algebra", "lessons":')
