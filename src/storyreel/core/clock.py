"""Time source and identifier generation.

Every job id and audit timestamp is derived from an injected ``TimeSource`` so
the whole system can be driven by a fake clock in tests.
"""
import itertools
import random
import string
from datetime import datetime, timezone
from typing import Protocol

_BASE36 = string.digits + string.ascii_lowercase


class TimeSource(Protocol):
    """Provides the current time."""

    def get_current_time(self) -> datetime:
        ...


class IdGenerator(Protocol):
    """Generates identifiers unique within the process lifetime."""

    def new_id(self, prefix: str = "job") -> str:
        ...


class SystemClock:
    """Wall clock in UTC."""

    def get_current_time(self) -> datetime:
        return datetime.now(timezone.utc)


class TimestampIdGenerator:
    """
    Timestamp plus random suffix ids, e.g. ``job_1718000000000_k3j9x0a2b``.

    A process-local counter breaks ties when the clock does not move between
    two calls and the random suffixes collide.
    """

    def __init__(self, clock: TimeSource, suffix_length: int = 9):
        self.clock = clock
        self.suffix_length = suffix_length
        self._issued: set = set()
        self._random = random.SystemRandom()

    def new_id(self, prefix: str = "job") -> str:
        millis = int(self.clock.get_current_time().timestamp() * 1000)
        attempt = 0
        while True:
            suffix = "".join(
                self._random.choice(_BASE36) for _ in range(self.suffix_length)
            )
            candidate = f"{prefix}_{millis}_{suffix}"
            if attempt:
                candidate = f"{candidate}{attempt}"
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate
            attempt += 1


class SequentialIdGenerator:
    """Deterministic ``{prefix}_{n}`` ids."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def new_id(self, prefix: str = "job") -> str:
        return f"{prefix}_{next(self._counter)}"
