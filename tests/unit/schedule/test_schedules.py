"""Tests for schedules and scheduling strategies."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from cadence.schedule import (
    CronSchedule,
    ImmediateSchedule,
    IntervalSchedule,
    OnceSchedule,
    schedule_from_config,
)
from cadence.strategy import (
    AllowParallelStrategy,
    CancelCurrentStrategy,
    SequentialStrategy,
    SkipIfRunningStrategy,
    StrategyDecision,
    strategy_from_name,
)
from cadence.task.models import RunHistory, TaskStatus

REGISTERED = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def history() -> RunHistory:
    return RunHistory(registered_at=REGISTERED)


class TestIntervalSchedule:
    """Tests for fixed-interval firing."""

    def test_first_fire_is_one_period_after_registration(self, history: RunHistory) -> None:
        assert IntervalSchedule(60).next_fire_time(history) == REGISTERED + timedelta(seconds=60)

    def test_explicit_start(self, history: RunHistory) -> None:
        start = REGISTERED + timedelta(seconds=5)
        assert IntervalSchedule(60, start=start).next_fire_time(history) == start

    def test_anchored_on_last_fire(self, history: RunHistory) -> None:
        """Later fires follow the previous fire time, not completion."""
        schedule = IntervalSchedule(timedelta(minutes=1))
        history.record_fire(REGISTERED + timedelta(minutes=1))
        history.record_outcome(TaskStatus.COMPLETED, REGISTERED + timedelta(minutes=1, seconds=50))

        assert schedule.next_fire_time(history) == REGISTERED + timedelta(minutes=2)

    def test_jitter_offsets_within_bound(self, history: RunHistory) -> None:
        schedule = IntervalSchedule(60, jitter=10)
        with patch("cadence.schedule.interval.random.uniform", return_value=7.0):
            assert schedule.next_fire_time(history) == REGISTERED + timedelta(seconds=67)

    @pytest.mark.parametrize(
        "period",
        [
            timedelta(milliseconds=10),
            timedelta(milliseconds=250),
            timedelta(seconds=1),
            timedelta(seconds=7.5),
            timedelta(minutes=1),
            timedelta(hours=1),
            timedelta(days=1),
            timedelta(days=3, hours=5),
        ],
    )
    def test_successive_fires_follow_period(self, period: timedelta) -> None:
        """Feeding each fire time back in yields t0 + kT for every k."""
        history = RunHistory(registered_at=REGISTERED)
        schedule = IntervalSchedule(period)

        for k in range(1, 51):
            fire_at = schedule.next_fire_time(history)
            assert fire_at == REGISTERED + k * period
            history.record_fire(fire_at)

    def test_jitter_does_not_accumulate(self, history: RunHistory) -> None:
        """Each jittered fire stays within its own slot of the unjittered grid."""
        schedule = IntervalSchedule(60, jitter=10)

        with patch("cadence.schedule.interval.random.uniform", return_value=9.0):
            for k in range(1, 21):
                fire_at = schedule.next_fire_time(history)
                assert fire_at == REGISTERED + timedelta(seconds=60 * k + 9)
                history.record_fire(fire_at)

    def test_rejects_jitter_not_below_period(self) -> None:
        with pytest.raises(ValueError):
            IntervalSchedule(10, jitter=10)

    def test_rejects_non_positive_period(self) -> None:
        with pytest.raises(ValueError):
            IntervalSchedule(0)


class TestOneShotSchedules:
    """Tests for ImmediateSchedule and OnceSchedule."""

    def test_immediate_fires_once(self, history: RunHistory) -> None:
        schedule = ImmediateSchedule()
        assert schedule.next_fire_time(history) == REGISTERED
        history.record_fire(REGISTERED)
        assert schedule.next_fire_time(history) is None

    def test_immediate_ends_even_after_skipped_firing(self, history: RunHistory) -> None:
        """A skipped firing still consumes the one-shot."""
        history.record_fire(REGISTERED, counted=False)
        assert history.fires == 0
        assert ImmediateSchedule().next_fire_time(history) is None

    def test_once_fires_at_instant(self, history: RunHistory) -> None:
        at = REGISTERED + timedelta(hours=3)
        schedule = OnceSchedule(at)
        assert schedule.next_fire_time(history) == at
        history.record_fire(at)
        assert schedule.next_fire_time(history) is None

    def test_once_requires_aware_datetime(self) -> None:
        with pytest.raises(ValueError):
            OnceSchedule(datetime(2024, 1, 1))


class TestCronSchedule:
    """Tests for cron expressions."""

    def test_next_match_after_registration(self, history: RunHistory) -> None:
        schedule = CronSchedule("*/5 * * * *")
        assert schedule.next_fire_time(history) == REGISTERED + timedelta(minutes=5)

    def test_next_match_after_last_fire(self, history: RunHistory) -> None:
        schedule = CronSchedule("0 9 * * *")
        history.record_fire(datetime(2024, 1, 1, 9, tzinfo=UTC))
        assert schedule.next_fire_time(history) == datetime(2024, 1, 2, 9, tzinfo=UTC)

    def test_seconds_field(self, history: RunHistory) -> None:
        schedule = CronSchedule("* * * * * */10")
        assert schedule.next_fire_time(history) == REGISTERED + timedelta(seconds=10)

    def test_invalid_expression(self) -> None:
        with pytest.raises(ValueError, match="Invalid cron expression"):
            CronSchedule("not a cron")


class TestScheduleConfig:
    """Tests for config round-trips used by persistence."""

    @pytest.mark.parametrize(
        "schedule",
        [
            IntervalSchedule(30, start=REGISTERED, jitter=2),
            ImmediateSchedule(),
            OnceSchedule(REGISTERED),
            CronSchedule("0 * * * *"),
        ],
    )
    def test_from_config_restores_equivalent_schedule(self, schedule, history: RunHistory) -> None:
        restored = schedule_from_config(schedule.to_config())
        assert type(restored) is type(schedule)
        assert restored.to_config() == schedule.to_config()

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            schedule_from_config({"type": "lunar"})


class TestStrategies:
    """Tests for overlap decisions."""

    @pytest.mark.parametrize(
        ("strategy", "idle", "busy"),
        [
            (SequentialStrategy(), StrategyDecision.PROCEED, StrategyDecision.DEFER),
            (CancelCurrentStrategy(), StrategyDecision.PROCEED, StrategyDecision.CANCEL_AND_RESTART),
            (SkipIfRunningStrategy(), StrategyDecision.PROCEED, StrategyDecision.SKIP),
            (AllowParallelStrategy(), StrategyDecision.PROCEED, StrategyDecision.PROCEED),
        ],
    )
    def test_decisions(self, strategy, idle, busy) -> None:
        assert strategy.decide(0) == idle
        assert strategy.decide(2) == busy

    def test_lookup_by_name(self) -> None:
        assert strategy_from_name("skip_if_running") == SkipIfRunningStrategy()
        with pytest.raises(ValueError):
            strategy_from_name("round_robin")
