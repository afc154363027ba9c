"""
Snowflake ID generator - Implements IdGenerator protocol.

Layout of a generated ID (63 usable bits):

    | 41 bits: ms since EPOCH_MS | 10 bits: machine ID | 12 bits: sequence |

IDs from one generator are unique and strictly increasing. The lock is
the only synchronization point; calls within the same millisecond
increment the sequence, and when the 4096 sequence values of one
millisecond are spent the call spins until the clock advances.
"""

import threading
import time
from collections.abc import Callable

EPOCH_MS = 1609459200000  # 2021-01-01 00:00:00 UTC

MACHINE_ID_BITS = 10
SEQUENCE_BITS = 12
MACHINE_ID_SHIFT = SEQUENCE_BITS
TIMESTAMP_SHIFT = SEQUENCE_BITS + MACHINE_ID_BITS
SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1
MAX_MACHINE_ID = (1 << MACHINE_ID_BITS) - 1


class ClockMovedBackwards(RuntimeError):
    """System clock is behind the last timestamp used for an ID."""


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class SnowflakeGenerator:
    """
    Implements IdGenerator protocol.

    Uses structural subtyping - no explicit inheritance from Protocol.
    One instance is shared per process and injected where IDs are needed.
    """

    def __init__(self, machine_id: int, clock: Callable[[], int] = _now_ms) -> None:
        """
        Args:
            machine_id: Worker identifier in [0, 1023]
            clock: Millisecond clock (overridable for tests)
        """
        if machine_id < 0 or machine_id > MAX_MACHINE_ID:
            raise ValueError(f"machine ID must be between 0 and {MAX_MACHINE_ID}")
        self._machine_id = machine_id
        self._clock = clock
        self._lock = threading.Lock()
        self._sequence = 0
        self._last_stamp = -1

    @property
    def machine_id(self) -> int:
        return self._machine_id

    def next_id(self) -> int:
        """
        Generate the next ID.

        Raises:
            ClockMovedBackwards: If the clock is behind the last used timestamp
        """
        with self._lock:
            timestamp = self._clock()

            if timestamp < self._last_stamp:
                raise ClockMovedBackwards(
                    f"clock moved backwards by {self._last_stamp - timestamp} ms"
                )

            if timestamp == self._last_stamp:
                self._sequence = (self._sequence + 1) & SEQUENCE_MASK
                if self._sequence == 0:
                    # Sequence exhausted for this millisecond
                    while timestamp <= self._last_stamp:
                        timestamp = self._clock()
            else:
                self._sequence = 0

            self._last_stamp = timestamp

            return (
                ((timestamp - EPOCH_MS) << TIMESTAMP_SHIFT)
                | (self._machine_id << MACHINE_ID_SHIFT)
                | self._sequence
            )


def decompose(snowflake_id: int) -> tuple[int, int, int]:
    """Split an ID into (unix timestamp ms, machine ID, sequence)."""
    return (
        (snowflake_id >> TIMESTAMP_SHIFT) + EPOCH_MS,
        (snowflake_id >> MACHINE_ID_SHIFT) & MAX_MACHINE_ID,
        snowflake_id & SEQUENCE_MASK,
    )
