"""
Streak & Drought State Machine

Tracks the daily-activity streak of a user and the drought penalty:
- NORMAL -> DROUGHT: the daily drought check finds missed obligations
  (unfinished tasks dated yesterday, habits due yesterday and not done)
- DROUGHT -> NORMAL: the first completion of a new calendar day
- Drought withers every plant and resets the current streak
- Withered plants are restored on demand once a task was completed today

The first-completion-of-the-day check and the streak increment are one
atomic conditional update (ProgressionStore.claim_daily_streak).
"""

from enum import Enum
from typing import List
from datetime import date, timedelta
import logging

from farmfocus.db.stores import Store
from farmfocus.exceptions import NotFoundError, ValidationError
from farmfocus.gamification.ledger import ActivityLedger
from farmfocus.models.activity import RefKind
from farmfocus.models.progression import ProgressionStat, StreakUpdate
from farmfocus.models.tasks import Habit, HabitPeriod
from farmfocus.observability.metrics import (
    drought_transitions_total,
    plants_recovered_total,
    streak_increments_total,
)
from farmfocus.utils.datetime_helpers import Clock, local_date, now_local

logger = logging.getLogger(__name__)


class DroughtState(str, Enum):
    NORMAL = "normal"
    DROUGHT = "drought"


def drought_state(stat: ProgressionStat) -> DroughtState:
    return DroughtState.DROUGHT if stat.is_drought else DroughtState.NORMAL


def is_habit_due_on(habit: Habit, day: date) -> bool:
    """
    Whether a habit's recurrence required completion on `day`

    - day: every day from start_date on
    - week: every 7th day counted from start_date
    - month: the start_date's day of the month

    A habit is never due before its start date.
    """
    if day < habit.start_date:
        return False

    if habit.period == HabitPeriod.DAY:
        return True
    if habit.period == HabitPeriod.WEEK:
        return (day - habit.start_date).days % 7 == 0
    if habit.period == HabitPeriod.MONTH:
        return day.day == habit.start_date.day
    return False


class StreakDroughtStateMachine:
    """Streak counting, drought transitions and plant recovery for one store"""

    def __init__(self, store: Store, ledger: ActivityLedger, clock: Clock = now_local):
        self.store = store
        self.ledger = ledger
        self.clock = clock

    async def _require_stat(self, user_id: int) -> ProgressionStat:
        stat = await self.store.get_stat(user_id)
        if stat is None:
            raise NotFoundError(
                message=f"No progression stats for user {user_id}",
                record_type="ProgressionStat",
                record_id=user_id,
                user_id=user_id,
            )
        return stat

    async def get_state(self, user_id: int) -> DroughtState:
        return drought_state(await self._require_stat(user_id))

    # ==========================================
    # Foreground: completions
    # ==========================================

    async def on_completion(self, user_id: int) -> StreakUpdate:
        """
        Count today towards the streak if it has not been counted yet

        Must run before the completion event is recorded. Leaves DROUGHT
        immediately when the claim succeeds.

        Args:
            user_id: User completing a task or habit

        Returns:
            StreakUpdate with the streak after this completion
        """
        today = local_date(self.clock())
        claimed = await self.store.claim_daily_streak(user_id, today)

        if claimed is None:
            stat = await self._require_stat(user_id)
            return StreakUpdate(
                streak_incremented=False,
                current_streak=stat.current_streak,
                longest_streak=stat.longest_streak,
            )

        stat, was_drought = claimed
        streak_increments_total.inc()
        logger.info(f"User {user_id} streak is now {stat.current_streak} (longest {stat.longest_streak})")

        if was_drought:
            drought_transitions_total.labels(direction="cleared").inc()
            logger.info(f"User {user_id} left drought with first completion of {today.isoformat()}")

        return StreakUpdate(
            streak_incremented=True,
            current_streak=stat.current_streak,
            longest_streak=stat.longest_streak,
            drought_cleared=was_drought,
        )

    # ==========================================
    # Scheduled: drought check
    # ==========================================

    async def obligations_missed(self, user_id: int, day: date) -> List[str]:
        """
        Titles of the obligations left undone on `day`

        Tasks dated `day` that are not done, plus habits due on `day`
        (see is_habit_due_on) that are not done.
        """
        missed = []

        for task in await self.store.list_tasks_on(user_id, day):
            if not task.done:
                missed.append(task.title)

        for habit in await self.store.list_habits(user_id):
            if is_habit_due_on(habit, day) and not habit.done:
                missed.append(habit.title)

        return missed

    async def apply_drought(self, user_id: int) -> int:
        """
        Enter drought: wither plants, reset the streak

        Returns:
            Number of plants newly withered
        """
        withered = 0
        for plant in await self.store.get_plants_by_user(user_id):
            if not plant.is_withered:
                await self.store.mark_withered(plant.id)
                withered += 1

        await self.store.reset_streak(user_id)
        await self.store.set_drought(user_id, True)

        drought_transitions_total.labels(direction="entered").inc()
        logger.info(f"Applied drought for user {user_id}: withered {withered} plants, streak reset")
        return withered

    async def check_user(self, user_id: int) -> bool:
        """
        Daily drought check for yesterday

        Never clears an existing drought; only a completion does that.

        Returns:
            True if drought was applied
        """
        yesterday = local_date(self.clock()) - timedelta(days=1)
        missed = await self.obligations_missed(user_id, yesterday)

        if not missed:
            logger.debug(f"No drought for user {user_id}: all obligations of {yesterday.isoformat()} met")
            return False

        logger.info(f"User {user_id} missed {len(missed)} obligations on {yesterday.isoformat()}: {', '.join(missed)}")
        await self.apply_drought(user_id)
        return True

    # ==========================================
    # Foreground: recovery
    # ==========================================

    async def recover_plants(self, user_id: int) -> int:
        """
        Restore withered plants

        Allowed only after at least one task was completed today.

        Raises:
            ValidationError: No task completed today

        Returns:
            Number of plants restored
        """
        if not await self.ledger.has_completed_today(user_id, RefKind.TASK):
            raise ValidationError(
                message="must complete at least one task today",
                field="tasks_completed_today",
                value=0,
                user_id=user_id,
                operation="recover_plants",
            )

        restored = await self.store.reset_withered(user_id)
        plants_recovered_total.inc(restored)
        logger.info(f"Restored {restored} withered plants for user {user_id}")
        return restored
