"""Cache adapters - Redis and in-memory implementations."""

from .memory import InMemoryCache
from .redis_cache import RedisCache

__all__ = ["InMemoryCache", "RedisCache"]
