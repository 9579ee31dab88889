"""Time sources for the engine and controller"""

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Wall-clock source in unix seconds"""

    @abstractmethod
    def now(self) -> float:
        pass


class SystemClock(Clock):
    def now(self) -> float:
        return time.time()


class ManualClock(Clock):
    """
    Clock that only moves when told to.

    Used for dry runs and tests where epochs and feed staleness must be
    controlled exactly.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def set(self, timestamp: float):
        self._now = float(timestamp)

    def advance(self, seconds: float) -> float:
        self._now += seconds
        return self._now
