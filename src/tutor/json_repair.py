"""
Best-effort repair of truncated or fenced JSON returned by the model.

Recovers the usual truncation patterns (cut-off lesson objects, trailing
commas, unterminated strings, unclosed arrays and objects). It is not a
general JSON grammar repair; anything it cannot fix raises MalformedContent.
"""

from __future__ import annotations

import json
import re
from typing import Any

from loguru import logger

from src.tutor.errors import MalformedContent

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")
_DANGLING_LESSON = re.compile(r',\s*\{\s*"id"\s*:\s*"lesson-[^"]*"?\s*$')
_CLOSERS = {"{": "}", "[": "]"}


def strip_code_fences(text: str) -> str:
    """Remove Markdown ```json / ``` fences around a model response."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned)
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    return cleaned.strip()


def _parses(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def _unescaped_quote_positions(text: str) -> list[int]:
    positions = []
    escaped = False
    for i, char in enumerate(text):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            positions.append(i)
    return positions


def _close_unterminated_string(text: str) -> str:
    quotes = _unescaped_quote_positions(text)
    if len(quotes) % 2 == 0:
        return text

    last_quote = quotes[-1]
    head, tail = text[: last_quote + 1], text[last_quote + 1 :]
    if tail.endswith("\\"):
        tail = tail[:-1]
    return head + tail.rstrip(", \t\r\n") + '"'


def _open_delimiters(text: str) -> list[str]:
    """Stack of delimiters still open at the end of text, ignoring strings."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(char)
        elif char in "}]" and stack and _CLOSERS[stack[-1]] == char:
            stack.pop()
    return stack


def repair(text: str) -> str:
    """
    Return text that json.loads accepts.

    Text that already parses comes back unchanged (apart from fence and
    whitespace stripping).

    Raises:
        MalformedContent: If no heuristic produces parseable JSON
    """
    cleaned = strip_code_fences(text)
    if _parses(cleaned):
        return cleaned

    logger.debug("Attempting to fix incomplete JSON")

    fixed = _DANGLING_LESSON.sub("", cleaned.rstrip())
    fixed = fixed.rstrip()
    if fixed.endswith(","):
        fixed = fixed[:-1].rstrip()
    fixed = _close_unterminated_string(fixed)

    missing_brackets = fixed.count("[") - fixed.count("]")
    missing_braces = fixed.count("{") - fixed.count("}")
    balanced = fixed + "]" * max(missing_brackets, 0) + "}" * max(missing_braces, 0)
    if _parses(balanced):
        logger.debug("Fixed incomplete JSON by balancing delimiters")
        return balanced

    nested = fixed + "".join(_CLOSERS[d] for d in reversed(_open_delimiters(fixed)))
    if _parses(nested):
        logger.debug("Fixed incomplete JSON by closing delimiters in nesting order")
        return nested

    logger.debug("Could not fix JSON, caller will use fallback")
    raise MalformedContent(f"Unable to repair JSON response ({len(cleaned)} chars)")


def parse_json(text: str) -> Any:
    """Strip fences, repair if needed and decode a model response."""
    return json.loads(repair(text))
