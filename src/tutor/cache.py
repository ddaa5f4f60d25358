"""
Time-expiring response cache for model calls.

Keys are a digest of the operation type, the subject and a truncated,
lower-cased serialization of the remaining request params. The subject is
kept whole. The remaining params are serialized in the order the caller
builds them, identifying fields first.
Two long requests that only differ past the truncation boundary share a key,
so false hits are possible for very similar long inputs.

Eviction is FIFO by insertion, not LRU.
"""

from __future__ import annotations

import hashlib
import json
import time
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger


@dataclass
class CacheEntry:
    """A cached response and when it was stored."""

    data: Any
    timestamp: float
    type: str


class ResponseCache:
    """Bounded TTL cache keyed by (operation type, normalized params)."""

    DEFAULT_TTL_SECONDS = 30 * 60
    DEFAULT_MAX_ENTRIES = 200
    DEFAULT_KEY_MAX_CHARS = 100

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        key_max_chars: int = DEFAULT_KEY_MAX_CHARS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.key_max_chars = key_max_chars
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def make_key(self, type: str, params: Any) -> str:
        """Stable digest of the type, the subject and the truncated, lower-cased params."""
        scope = ""
        if isinstance(params, dict) and "subject" in params:
            params = dict(params)
            scope = str(params.pop("subject") or "").lower()
        serialized = json.dumps(params, separators=(",", ":"), default=str).lower()
        truncated = serialized[: self.key_max_chars]
        digest = hashlib.sha256(f"{type}:{scope}:{truncated}".encode("utf-8")).hexdigest()
        return f"{type}:{digest}"

    def get(self, type: str, params: Any) -> Any | None:
        """Return cached data, or None on a miss or an expired entry."""
        key = self.make_key(type, params)
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.timestamp < self.ttl_seconds:
            logger.debug(f"Cache hit for {type}")
            return entry.data

        del self._entries[key]
        logger.debug(f"Cache entry for {type} expired")
        return None

    def set(self, type: str, params: Any, data: Any) -> None:
        """Store data, evicting the oldest entry when at capacity."""
        key = self.make_key(type, params)

        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_entries:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]

        self._entries[key] = CacheEntry(data=data, timestamp=self._clock(), type=type)
        logger.debug(f"Cached {type} response (cache size: {len(self._entries)})")

    def clear(self, type: str | None = None) -> None:
        """Drop every entry, or only those of one operation type."""
        if type is None:
            self._entries.clear()
            return

        for key in [k for k, entry in self._entries.items() if entry.type == type]:
            del self._entries[key]

    def stats(self) -> dict[str, Any]:
        """Entry count overall and per operation type."""
        types: dict[str, int] = {}
        for entry in self._entries.values():
            types[entry.type] = types.get(entry.type, 0) + 1
        return {"size": len(self._entries), "types": types}
