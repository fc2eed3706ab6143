"""Wall-clock timers accumulated into named slots."""

from __future__ import annotations

import time
from enum import IntEnum
from typing import Callable, Optional


class TimerSlot(IntEnum):
    """Slots of the timer array."""

    TOTAL = 0
    COMM = 1
    FORCE = 2
    NEIGH = 3
    TEST = 4


class Timer:
    """Accumulates elapsed time per slot.

    ``clock`` returns the current time in seconds; ``barrier`` is called
    to synchronise processes before barrier timings.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None,
                 barrier: Optional[Callable[[], None]] = None) -> None:
        self.array = [0.0] * len(TimerSlot)
        self._clock = clock if clock is not None else time.perf_counter
        self._barrier = barrier
        self._previous: Optional[float] = None
        self._previous_extra: Optional[float] = None

    def _sync(self) -> None:
        if self._barrier is not None:
            self._barrier()

    def stamp(self, which: Optional[int] = None) -> None:
        """Mark the current time; with ``which``, add time since the last mark."""
        now = self._clock()
        if which is not None:
            if self._previous is None:
                raise RuntimeError("stamp() must be called before timing a slot")
            self.array[which] += now - self._previous
        self._previous = now

    def stamp_extra_start(self) -> None:
        """Mark the start of an independent extra timing."""
        self._previous_extra = self._clock()

    def stamp_extra_stop(self, which: int) -> None:
        """Add time since the last extra mark to slot ``which``."""
        if self._previous_extra is None:
            raise RuntimeError("stamp_extra_start() must be called first")
        now = self._clock()
        self.array[which] += now - self._previous_extra
        self._previous_extra = now

    def barrier_start(self, which: int) -> None:
        """Synchronise, then store the current time in slot ``which``."""
        self._sync()
        self.array[which] = self._clock()

    def barrier_stop(self, which: int) -> None:
        """Synchronise, then replace slot ``which`` with the time since its start."""
        self._sync()
        self.array[which] = self._clock() - self.array[which]