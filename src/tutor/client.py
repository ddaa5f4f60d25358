"""
Contract for the generative-model call.

The transport is supplied by the caller as a single async callable taking an
OpenAI-style chat request dict and returning the raw response dict. It may
raise httpx errors, which the retry wrapper classifies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from src.tutor.errors import EmptyCompletion

ChatCompletion = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


@dataclass
class ChatMessage:
    role: str  # "system" or "user"
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatCompletionRequest:
    """Request payload for one model call."""

    messages: list[ChatMessage] = field(default_factory=list)
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None

    @classmethod
    def build(
        cls,
        system: str,
        user: str,
        *,
        temperature: float,
        max_tokens: int,
        model: str | None = None,
    ) -> ChatCompletionRequest:
        return cls(
            messages=[ChatMessage("system", system), ChatMessage("user", user)],
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert request to API payload format, omitting unset options."""
        payload: dict[str, Any] = {"messages": [m.to_dict() for m in self.messages]}
        if self.model is not None:
            payload["model"] = self.model
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        return payload


def extract_message_content(response: Any) -> str:
    """
    Pull ``choices[0].message.content`` out of a chat response.

    Raises:
        EmptyCompletion: If the content is missing or blank
    """
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise EmptyCompletion() from e

    if not isinstance(content, str) or not content.strip():
        raise EmptyCompletion()
    return content.strip()
