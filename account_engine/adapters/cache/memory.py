"""In-memory cache adapter with per-key expiry, for tests and local runs."""

import copy
import threading
import time
from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")


class InMemoryCache:
    """
    Implements Cache protocol with a dict of (expires_at, value).

    Values are copied on the way in and out, matching the isolation a
    serialized Redis value gives.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, object]] = {}

    def get(self, key: str, model: type[T]) -> T | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            if not isinstance(value, model):
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, copy.deepcopy(value))

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() < entry[0]
