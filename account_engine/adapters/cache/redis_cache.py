"""
Redis cache adapter - Implements Cache protocol.

Values are stored as JSON produced by pydantic TypeAdapters, so domain
dataclasses (with enums and datetimes) round-trip without hand-written
serializers.
"""

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter
from redis import Redis

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


class RedisCache:
    """
    Implements Cache protocol via redis-py.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Timeouts are governed by the client's socket_timeout.
    """

    def __init__(self, client: Redis) -> None:
        self._client = client

    def get(self, key: str, model: type[T]) -> T | None:
        raw = self._client.get(key)
        if raw is None:
            return None
        return _adapter(model).validate_json(raw)

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        payload = _adapter(type(value)).dump_json(value)
        self._client.set(key, payload, ex=ttl_seconds)

    def delete(self, key: str) -> None:
        self._client.delete(key)
