"""Coarse in-memory TTL cache for outbound provider responses.

Process-local and best-effort: each worker keeps its own copy, entries are
never shared across processes, and a restart starts cold.
"""

import time
from typing import Any, Callable

_MISSING = object()


class TTLCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        # Expired entries are dropped on every write
        expired = [k for k, (_, stored_at) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for k in expired:
            del self._entries[k]
        self._entries[key] = (value, now)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def clear(self) -> None:
        self._entries.clear()
