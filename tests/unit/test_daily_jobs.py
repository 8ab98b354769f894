"""Unit tests for daily sweeps (farmfocus/scheduler/daily_jobs.py)"""
import asyncio
import pytest
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

from farmfocus import config
from farmfocus.exceptions import ConfigurationError, ValidationError
from farmfocus.models.tasks import Habit, HabitPeriod
from farmfocus.scheduler.daily_jobs import (
    DROUGHT_CHECK,
    HABIT_RESET,
    SHOP_RESTOCK,
    DailyJob,
    SchedulerSet,
    should_reset_habit,
)


UTC = ZoneInfo("UTC")


@pytest.fixture
def schedulers(container):
    return container.schedulers


# ============================================================================
# Habit Reset Rule Tests
# ============================================================================

def _habit(period, start, done=True):
    return Habit(user_id=42, title="Floss", period=period, start_date=start, done=done)


def test_should_reset_skips_not_done_habit():
    assert should_reset_habit(_habit(HabitPeriod.DAY, date(2025, 3, 1), done=False), date(2025, 3, 12)) is False


def test_should_reset_daily_habit_every_day():
    assert should_reset_habit(_habit(HabitPeriod.DAY, date(2025, 3, 1)), date(2025, 3, 12)) is True


def test_should_reset_weekly_habit_on_start_weekday():
    # 2025-03-05 and 2025-03-12 are both Wednesdays
    habit = _habit(HabitPeriod.WEEK, date(2025, 3, 5))

    assert should_reset_habit(habit, date(2025, 3, 12)) is True
    assert should_reset_habit(habit, date(2025, 3, 13)) is False


def test_should_reset_monthly_habit_on_start_day():
    habit = _habit(HabitPeriod.MONTH, date(2025, 1, 12))

    assert should_reset_habit(habit, date(2025, 3, 12)) is True
    assert should_reset_habit(habit, date(2025, 3, 1)) is False


# ============================================================================
# DailyJob Tests
# ============================================================================

def test_daily_job_rejects_bad_trigger(store, clock):
    with pytest.raises(ConfigurationError) as exc_info:
        DailyJob("broken", "25:00", AsyncMock(), store, clock, config_key="DROUGHT_CHECK_TIME")

    assert exc_info.value.config_key == "DROUGHT_CHECK_TIME"


def test_cron_trigger_fires_daily_at_trigger_time(store, clock, monkeypatch):
    monkeypatch.setattr(config, "APP_TIMEZONE", "Europe/Berlin")
    job = DailyJob("job", "00:05", AsyncMock(), store, clock)

    trigger = job.cron_trigger()
    fields = {f.name: str(f) for f in trigger.fields}

    assert (fields["hour"], fields["minute"]) == ("0", "5")
    assert fields["day"] == "*"
    assert str(trigger.timezone) == "Europe/Berlin"


def test_cron_trigger_next_run_later_today(store, clock):
    job = DailyJob("job", "10:00", AsyncMock(), store, clock)

    fire = job.cron_trigger().get_next_fire_time(None, clock())

    assert fire == datetime(2025, 3, 12, 10, 0, tzinfo=UTC)


def test_cron_trigger_next_run_tomorrow(store, clock):
    """Test a trigger already passed today fires on tomorrow's occurrence"""
    job = DailyJob("job", "00:05", AsyncMock(), store, clock)

    fire = job.cron_trigger().get_next_fire_time(None, clock())

    assert fire == datetime(2025, 3, 13, 0, 5, tzinfo=UTC)


def test_cron_trigger_follows_wall_clock_across_dst(store, clock, monkeypatch):
    """Test the next run keeps 12:00 local when the clocks go forward"""
    monkeypatch.setattr(config, "APP_TIMEZONE", "Europe/Berlin")
    berlin = ZoneInfo("Europe/Berlin")
    job = DailyJob("job", "12:00", AsyncMock(), store, clock)
    # Clocks go forward at 02:00 on 2025-03-30, so that day is 23h long
    now = datetime(2025, 3, 29, 12, 0, 1, tzinfo=berlin)

    fire = job.cron_trigger().get_next_fire_time(None, now)

    assert fire == datetime(2025, 3, 30, 12, 0, tzinfo=berlin)
    assert fire.astimezone(timezone.utc) - now.astimezone(timezone.utc) == timedelta(hours=23, seconds=-1)


@pytest.mark.asyncio
async def test_run_once_visits_every_active_user(container, store, clock):
    for user_id in (1, 2, 3):
        await container.user_service.onboard(user_id)
    per_user = AsyncMock()
    job = DailyJob("job", "00:00", per_user, store, clock)

    report = await job.run_once()

    assert report.processed == 3
    assert report.failed == 0
    assert [c.args[0] for c in per_user.await_args_list] == [1, 2, 3]


@pytest.mark.asyncio
async def test_run_once_continues_after_user_failure(container, store, clock):
    for user_id in (1, 2, 3):
        await container.user_service.onboard(user_id)

    async def per_user(user_id):
        if user_id == 2:
            raise RuntimeError("boom")

    job = DailyJob("job", "00:00", per_user, store, clock)

    report = await job.run_once()

    assert report.processed == 2
    assert report.failed == 1


@pytest.mark.asyncio
async def test_run_once_listing_failure_skips_run(store, clock):
    store.list_active_users = AsyncMock(side_effect=RuntimeError("db down"))
    per_user = AsyncMock()
    job = DailyJob("job", "00:00", per_user, store, clock)

    report = await job.run_once()

    assert report.processed == 0
    per_user.assert_not_awaited()


# ============================================================================
# SchedulerSet Tests
# ============================================================================

def test_scheduler_set_default_triggers(schedulers):
    assert set(schedulers.jobs) == {DROUGHT_CHECK, HABIT_RESET, SHOP_RESTOCK}
    assert schedulers.jobs[DROUGHT_CHECK].trigger == "00:05"
    assert schedulers.jobs[HABIT_RESET].trigger == "00:10"
    assert schedulers.jobs[SHOP_RESTOCK].trigger == "00:00"


def test_scheduler_set_trigger_overrides(container):
    schedulers = SchedulerSet(
        container.store,
        container.streaks,
        container.shop_service,
        container.clock,
        drought_check_time="01:00",
    )

    assert (schedulers.jobs[DROUGHT_CHECK].hour, schedulers.jobs[DROUGHT_CHECK].minute) == (1, 0)


@pytest.mark.asyncio
async def test_start_schedules_each_job_once_a_day(schedulers):
    expected = {DROUGHT_CHECK: ("0", "5"), HABIT_RESET: ("0", "10"), SHOP_RESTOCK: ("0", "0")}

    schedulers.start()
    try:
        assert schedulers.running is True
        for name, (hour, minute) in expected.items():
            job = schedulers.scheduled_job(name)
            fields = {f.name: str(f) for f in job.trigger.fields}
            assert (fields["hour"], fields["minute"]) == (hour, minute)
            assert job.max_instances == 1
            assert job.coalesce is True
            assert job.args == (name,)
    finally:
        await asyncio.wait_for(schedulers.stop(), timeout=2)

    assert schedulers.running is False
    assert schedulers.scheduled_job(DROUGHT_CHECK) is None


@pytest.mark.asyncio
async def test_start_twice_keeps_one_scheduler(schedulers):
    schedulers.start()
    first = schedulers._scheduler
    schedulers.start()

    assert schedulers._scheduler is first
    await schedulers.stop()


@pytest.mark.asyncio
async def test_stop_without_start(schedulers):
    await schedulers.stop()

    assert schedulers.running is False


@pytest.mark.asyncio
async def test_scheduled_callable_runs_the_sweep(schedulers, container, onboarded_user):
    [good, *_] = await container.shop_service.list_goods(onboarded_user)
    await container.store.take_good(good.id)

    schedulers.start()
    try:
        job = schedulers.scheduled_job(SHOP_RESTOCK)
        report = await job.func(*job.args)
    finally:
        await schedulers.stop()

    assert report.processed == 1
    assert (await container.store.get_good(good.id)).quantity == good.quantity


@pytest.mark.asyncio
async def test_stop_waits_for_running_sweep(schedulers, onboarded_user):
    """Test stop() lets a sweep already in progress finish"""
    entered = asyncio.Event()
    release = asyncio.Event()

    async def slow_restock(user_id):
        entered.set()
        await release.wait()

    schedulers.jobs[SHOP_RESTOCK].per_user = slow_restock
    schedulers.start()
    job = schedulers.scheduled_job(SHOP_RESTOCK)
    sweep = asyncio.create_task(job.func(*job.args))
    await asyncio.wait_for(entered.wait(), timeout=2)

    stopping = asyncio.create_task(schedulers.stop())
    await asyncio.sleep(0.05)
    assert stopping.done() is False

    release.set()
    await asyncio.wait_for(stopping, timeout=2)
    report = await sweep

    assert report.processed == 1
    assert schedulers.running is False


@pytest.mark.asyncio
async def test_run_now_unknown_job(schedulers):
    with pytest.raises(ValidationError):
        await schedulers.run_now("weekly_report")


@pytest.mark.asyncio
async def test_drought_check_sweep(schedulers, container, clock, onboarded_user):
    await container.progress_service.create_task(onboarded_user, "Yesterday's chore", due_date=date(2025, 3, 11))

    report = await schedulers.run_now(DROUGHT_CHECK)

    assert report.processed == 1
    assert (await container.store.get_stat(onboarded_user)).is_drought is True


@pytest.mark.asyncio
async def test_habit_reset_sweep(schedulers, container, clock, onboarded_user):
    progress = container.progress_service
    habit = await progress.create_habit(onboarded_user, "Journal")
    await progress.complete_habit(onboarded_user, habit.id)
    clock.advance(days=1)

    await schedulers.run_now(HABIT_RESET)

    stored = await container.store.get_habit(habit.id)
    assert stored.done is False
    assert stored.count == 1


@pytest.mark.asyncio
async def test_shop_restock_sweep(schedulers, container, onboarded_user):
    [good, *_] = await container.shop_service.list_goods(onboarded_user)
    await container.store.take_good(good.id)

    await schedulers.run_now(SHOP_RESTOCK)

    assert (await container.store.get_good(good.id)).quantity == good.quantity
