"""
Clock -- injectable time source.

Responsibility:
    Lets services stamp ``savedAt``, ``returnedAt``, ``cashAt``, history
    entries and packing marks without calling ``datetime.now()``
    themselves, so every timestamp is reproducible in tests.

Architecture position:
    Kernel > Domain -- pure, zero I/O (except SystemClock, the one
    sanctioned boundary for time).

Failure modes:
    - SequentialClock raises ValueError when built from an empty list.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Iterable


class Clock(ABC):
    """Source of timezone-aware "now" values."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock that only moves when told to.

    Guarantees:
        - ``now()`` is stable until ``advance()``, ``advance_days()`` or
          ``set_time()`` is called.
        - ``tick()`` moves exactly one second forward.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        self._current = start or self.DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        self._current = moment

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        self._current += timedelta(days=days)

    def tick(self) -> datetime:
        self.advance(1)
        return self._current


class SequentialClock(Clock):
    """Hands out the given times in order, then keeps repeating the last."""

    def __init__(self, times: Iterable[datetime]):
        self._pending = list(times)
        if not self._pending:
            raise ValueError("SequentialClock requires at least one time")
        self._pending.reverse()

    def now(self) -> datetime:
        if len(self._pending) > 1:
            return self._pending.pop()
        return self._pending[0]
