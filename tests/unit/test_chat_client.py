"""
Unit tests for the model-call request and response helpers.
"""

import pytest

from src.tutor.client import ChatCompletionRequest, extract_message_content
from src.tutor.errors import EmptyCompletion


class TestChatCompletionRequest:
    def test_to_dict(self):
        request = ChatCompletionRequest.build(
            "You are a tutor.", "Explain roots.", temperature=0.3, max_tokens=100, model="gpt-4o-mini"
        )

        assert request.to_dict() == {
            "messages": [
                {"role": "system", "content": "You are a tutor."},
                {"role": "user", "content": "Explain roots."},
            ],
            "model": "gpt-4o-mini",
            "temperature": 0.3,
            "max_tokens": 100,
        }

    def test_unset_options_are_omitted(self):
        assert ChatCompletionRequest().to_dict() == {"messages": []}


class TestExtractMessageContent:
    def test_returns_stripped_content(self):
        response = {"choices": [{"message": {"content": "  Hello  "}}]}

        assert extract_message_content(response) == "Hello"

    @pytest.mark.parametrize(
        "response",
        [
            {"choices": []},
            {"choices": [{"message": {}}]},
            {"choices": [{"message": {"content": None}}]},
            {"choices": [{"message": {"content": "   "}}]},
            None,
        ],
    )
    def test_missing_content_raises(self, response):
        with pytest.raises(EmptyCompletion, match="No content received"):
            extract_message_content(response)
