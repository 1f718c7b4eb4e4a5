"""
Period clock for fixed-length 15-minute windows.

All assets share one period grid aligned to the Unix epoch, so the
period start is also the timestamp embedded in each market slug.
"""
import math
import time
from typing import Callable, Optional

PERIOD_LENGTH_SECONDS = 900


def period_start(now: float, period_length: int = PERIOD_LENGTH_SECONDS) -> int:
    """Canonical start of the period containing ``now``."""
    return int(math.floor(now / period_length) * period_length)


def elapsed(now: float, period_length: int = PERIOD_LENGTH_SECONDS) -> float:
    """Seconds elapsed since the start of the current period."""
    return now - period_start(now, period_length)


def remaining(now: float, period_length: int = PERIOD_LENGTH_SECONDS) -> float:
    """Seconds left in the current period."""
    return period_length - elapsed(now, period_length)


def remaining_until(period_ts: int, now: float, period_length: int = PERIOD_LENGTH_SECONDS) -> float:
    """Seconds left in the period starting at ``period_ts``, clamped at zero."""
    return max(0.0, period_ts + period_length - now)


class PeriodClock:
    """Wall clock bound to a period length.

    Usage:
        clock = PeriodClock()
        start = clock.period_start()
        left = clock.remaining()
    """

    def __init__(
        self,
        period_length: int = PERIOD_LENGTH_SECONDS,
        time_source: Optional[Callable[[], float]] = None,
    ) -> None:
        self.period_length = period_length
        self._time = time_source or time.time

    def now(self) -> float:
        return self._time()

    def period_start(self, now: Optional[float] = None) -> int:
        return period_start(self.now() if now is None else now, self.period_length)

    def elapsed(self, now: Optional[float] = None) -> float:
        return elapsed(self.now() if now is None else now, self.period_length)

    def remaining(self, now: Optional[float] = None) -> float:
        return remaining(self.now() if now is None else now, self.period_length)

    def next_period_start(self, now: Optional[float] = None) -> int:
        return self.period_start(now) + self.period_length
