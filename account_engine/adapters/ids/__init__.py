"""ID generation adapters."""

from .snowflake import ClockMovedBackwards, SnowflakeGenerator

__all__ = ["ClockMovedBackwards", "SnowflakeGenerator"]
