"""
Daily sweeps over all active users

Three jobs, each firing once a day at an HH:MM wall-clock time in
APP_TIMEZONE:
- drought_check: apply drought to users who missed yesterday's obligations
- habit_reset: mark habits not done when their period elapses today
- shop_restock: reset every user's shop to the catalog

The jobs are cron-triggered on an APScheduler AsyncIOScheduler in the
application timezone. A run that misses its slot (process asleep, event
loop busy) is coalesced into one and never overlaps a run still going.
"""

import asyncio
import logging
import time as _time
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from farmfocus import config
from farmfocus.db.stores import Store
from farmfocus.exceptions import ValidationError
from farmfocus.gamification.streak_system import StreakDroughtStateMachine
from farmfocus.models.tasks import Habit, HabitPeriod
from farmfocus.observability.metrics import (
    get_sweep_status,
    scheduler_run_duration_seconds,
    scheduler_runs_total,
    scheduler_user_failures_total,
)
from farmfocus.services.shop_service import ShopService
from farmfocus.utils.datetime_helpers import Clock, local_date, now_local

logger = logging.getLogger(__name__)

DROUGHT_CHECK = "drought_check"
HABIT_RESET = "habit_reset"
SHOP_RESTOCK = "shop_restock"

# A run delayed by more than this is skipped until the next day
MISFIRE_GRACE_SECONDS = 3600


@dataclass
class SweepReport:
    """Outcome of one sweep run"""
    job: str
    processed: int = 0
    failed: int = 0


def should_reset_habit(habit: Habit, today: date) -> bool:
    """
    Whether a done habit's period elapses today

    - day: every day
    - week: today's weekday is the start date's weekday
    - month: today's day of the month is the start date's
    """
    if not habit.done:
        return False

    if habit.period == HabitPeriod.DAY:
        return True
    if habit.period == HabitPeriod.WEEK:
        return today.weekday() == habit.start_date.weekday()
    if habit.period == HabitPeriod.MONTH:
        return today.day == habit.start_date.day
    return False


class DailyJob:
    """One sweep, fired daily at a fixed wall-clock time"""

    def __init__(
        self,
        name: str,
        trigger: str,
        per_user: Callable[[int], Awaitable[Any]],
        store: Store,
        clock: Clock = now_local,
        config_key: Optional[str] = None,
    ):
        self.name = name
        self.trigger = trigger
        self.hour, self.minute = config.parse_time_of_day(trigger, config_key or name)
        self.per_user = per_user
        self.store = store
        self.clock = clock

    def cron_trigger(self) -> CronTrigger:
        """Fires daily at HH:MM wall-clock time in APP_TIMEZONE, DST included"""
        return CronTrigger(hour=self.hour, minute=self.minute, timezone=config.get_timezone())

    async def run_once(self) -> SweepReport:
        """
        Run the sweep over every active user, sequentially

        A failing user is logged and counted; the sweep moves on. Failing
        to list users aborts this run only.
        """
        report = SweepReport(job=self.name)
        started = _time.perf_counter()

        try:
            users = await self.store.list_active_users()
        except Exception as e:
            logger.error(f"[{self.name}] Failed to list active users, skipping run: {e}", exc_info=True)
            scheduler_runs_total.labels(job=self.name, status="error").inc()
            return report

        logger.info(f"[{self.name}] Sweeping {len(users)} users")

        for user in users:
            try:
                await self.per_user(user.id)
                report.processed += 1
            except Exception as e:
                report.failed += 1
                scheduler_user_failures_total.labels(job=self.name).inc()
                logger.error(f"[{self.name}] Failed for user {user.id}: {e}", exc_info=True)

        scheduler_run_duration_seconds.labels(job=self.name).observe(_time.perf_counter() - started)
        scheduler_runs_total.labels(job=self.name, status=get_sweep_status(report.processed, report.failed)).inc()
        logger.info(f"[{self.name}] Sweep complete: {report.processed} processed, {report.failed} failed")
        return report


class SchedulerSet:
    """
    The three daily sweeps, started and stopped as a unit

    Example:
        schedulers = SchedulerSet(store, streaks, shop)
        schedulers.start()
        ...
        await schedulers.stop()
    """

    def __init__(
        self,
        store: Store,
        streaks: StreakDroughtStateMachine,
        shop: ShopService,
        clock: Clock = now_local,
        drought_check_time: Optional[str] = None,
        habit_reset_time: Optional[str] = None,
        shop_restock_time: Optional[str] = None,
    ):
        self.store = store
        self.streaks = streaks
        self.shop = shop
        self.clock = clock

        self.jobs: Dict[str, DailyJob] = {
            DROUGHT_CHECK: DailyJob(
                DROUGHT_CHECK,
                drought_check_time or config.DROUGHT_CHECK_TIME,
                streaks.check_user,
                store,
                clock,
                config_key="DROUGHT_CHECK_TIME",
            ),
            HABIT_RESET: DailyJob(
                HABIT_RESET,
                habit_reset_time or config.HABIT_RESET_TIME,
                self.reset_habits,
                store,
                clock,
                config_key="HABIT_RESET_TIME",
            ),
            SHOP_RESTOCK: DailyJob(
                SHOP_RESTOCK,
                shop_restock_time or config.SHOP_RESTOCK_TIME,
                shop.restock,
                store,
                clock,
                config_key="SHOP_RESTOCK_TIME",
            ),
        }

        self._scheduler: Optional[AsyncIOScheduler] = None
        self._in_flight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def scheduled_job(self, job_name: str) -> Optional[Job]:
        """The APScheduler job of a sweep while the scheduler runs"""
        if self._scheduler is None:
            return None
        return self._scheduler.get_job(job_name)

    async def reset_habits(self, user_id: int) -> int:
        """
        Mark habits not done when their period elapses today

        Returns:
            Number of habits reset
        """
        today = local_date(self.clock())
        reset = 0
        for habit in await self.store.list_habits(user_id):
            if should_reset_habit(habit, today):
                await self.store.reset_habit(habit.id)
                reset += 1

        if reset:
            logger.info(f"Reset {reset} habits for user {user_id}")
        return reset

    def start(self) -> None:
        """Schedule every job on a fresh AsyncIOScheduler; needs a running event loop"""
        if self.running:
            logger.warning("Schedulers already running")
            return

        scheduler = AsyncIOScheduler(timezone=config.get_timezone())
        for name, job in self.jobs.items():
            scheduler.add_job(
                self._run_scheduled,
                job.cron_trigger(),
                args=[name],
                id=name,
                name=name,
                max_instances=1,
                coalesce=True,
                misfire_grace_time=MISFIRE_GRACE_SECONDS,
            )
            logger.info(f"[{name}] Scheduled daily at {job.trigger}")

        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"Started {len(self.jobs)} daily schedulers")

    async def stop(self) -> None:
        """Stop firing new runs and wait for the sweeps already running"""
        if self._scheduler is None:
            return

        # Shutting the executor down cancels its pending runs, so drain them first
        self._scheduler.pause()
        if self._in_flight:
            results = await asyncio.gather(*self._in_flight, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Scheduled sweep ended with error: {result}", exc_info=result)
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Daily schedulers stopped")

    async def _run_scheduled(self, job_name: str) -> SweepReport:
        """Job callable handed to APScheduler"""
        task = asyncio.current_task()
        self._in_flight.add(task)
        try:
            return await self.jobs[job_name].run_once()
        finally:
            self._in_flight.discard(task)

    async def run_now(self, job_name: str) -> SweepReport:
        """Run one sweep immediately"""
        job = self.jobs.get(job_name)
        if job is None:
            raise ValidationError(
                message=f"unknown scheduler job, expected one of {', '.join(self.jobs)}",
                field="job_name",
                value=job_name,
            )
        return await job.run_once()
