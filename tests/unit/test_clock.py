"""Unit tests for the period clock."""
import pytest

from janus.core.clock import (
    PERIOD_LENGTH_SECONDS,
    PeriodClock,
    elapsed,
    period_start,
    remaining,
    remaining_until,
)

PERIOD_TS = 1737158400

SAMPLE_TIMES = [
    PERIOD_TS,
    PERIOD_TS + 0.001,
    PERIOD_TS + 1.5,
    PERIOD_TS + 450,
    PERIOD_TS + 899.999,
    PERIOD_TS + 900,
    1700000123.25,
]


class TestPeriodMath:
    """Tests for the module-level period functions."""

    @pytest.mark.parametrize("now", SAMPLE_TIMES)
    def test_period_start_is_aligned(self, now):
        start = period_start(now)
        assert start % PERIOD_LENGTH_SECONDS == 0
        assert start <= now < start + PERIOD_LENGTH_SECONDS

    @pytest.mark.parametrize("now", SAMPLE_TIMES)
    def test_elapsed_plus_remaining_is_period_length(self, now):
        assert elapsed(now) + remaining(now) == pytest.approx(PERIOD_LENGTH_SECONDS)
        assert 0 <= elapsed(now) < PERIOD_LENGTH_SECONDS
        assert 0 < remaining(now) <= PERIOD_LENGTH_SECONDS

    def test_boundary_belongs_to_new_period(self):
        assert period_start(PERIOD_TS) == PERIOD_TS
        assert period_start(PERIOD_TS - 0.001) == PERIOD_TS - 900
        assert elapsed(PERIOD_TS) == 0

    def test_period_start_returns_int(self):
        assert isinstance(period_start(PERIOD_TS + 12.7), int)

    def test_remaining_until_current_period(self):
        assert remaining_until(PERIOD_TS, PERIOD_TS + 100) == pytest.approx(800)

    def test_remaining_until_past_period_clamps_to_zero(self):
        """A market from the previous period reads as closed."""
        assert remaining_until(PERIOD_TS - 900, PERIOD_TS + 1) == 0
        assert remaining_until(PERIOD_TS - 2700, PERIOD_TS + 1) == 0

    def test_custom_period_length(self):
        assert period_start(125, period_length=60) == 120
        assert remaining(125, period_length=60) == 55


class TestPeriodClock:
    """Tests for PeriodClock."""

    def test_uses_time_source(self):
        clock = PeriodClock(time_source=lambda: PERIOD_TS + 30.0)
        assert clock.now() == PERIOD_TS + 30.0
        assert clock.period_start() == PERIOD_TS
        assert clock.elapsed() == pytest.approx(30.0)
        assert clock.remaining() == pytest.approx(870.0)

    def test_explicit_now_overrides_source(self):
        clock = PeriodClock(time_source=lambda: 0.0)
        assert clock.period_start(PERIOD_TS + 5) == PERIOD_TS

    def test_next_period_start(self):
        clock = PeriodClock(time_source=lambda: PERIOD_TS + 899.0)
        assert clock.next_period_start() == PERIOD_TS + 900

    def test_period_length_attribute(self):
        assert PeriodClock().period_length == PERIOD_LENGTH_SECONDS
        assert PeriodClock(period_length=300).period_length == 300
