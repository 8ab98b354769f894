"""
ProgressService - Task & Habit Progress Business Logic

Ties the progression components together for foreground actions:
- Task/habit creation with their stored XP reward
- Completion: streak check, ledger event, XP, plant growth
- Undo: reverse exactly the XP of the last completion
- Deletion together with the ledger events of the task/habit
"""

import logging
from datetime import date
from typing import List, Optional

from farmfocus.db.stores import Store
from farmfocus.exceptions import ConflictError, NotFoundError, ValidationError
from farmfocus.gamification.ledger import ActivityLedger
from farmfocus.gamification.plant_system import PlantLifecycleManager
from farmfocus.gamification.streak_system import StreakDroughtStateMachine
from farmfocus.gamification.xp_system import (
    calculate_habit_xp,
    calculate_level,
    calculate_task_xp,
    get_base_xp,
)
from farmfocus.models.activity import RefKind
from farmfocus.models.progression import ProgressionStat, StreakUpdate
from farmfocus.models.tasks import (
    CompletionResult,
    Difficulty,
    Habit,
    HabitPeriod,
    Task,
    UndoResult,
)
from farmfocus.observability.metrics import xp_awarded_total, xp_revoked_total
from farmfocus.utils.datetime_helpers import local_date

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Service for task and habit progress.

    Responsibilities:
    - Creating and deleting tasks and habits
    - Completing tasks and habits (XP, streak, drought, plant growth)
    - Undoing completions through the activity ledger
    - Habit count maintenance
    """

    def __init__(
        self,
        store: Store,
        ledger: ActivityLedger,
        streaks: StreakDroughtStateMachine,
        plants: PlantLifecycleManager,
    ):
        """
        Initialize ProgressService.

        Args:
            store: Store implementing every store protocol
            ledger: Activity ledger sharing the same store
            streaks: Streak/drought state machine
            plants: Plant lifecycle manager used to grow plants on completion
        """
        self.store = store
        self.ledger = ledger
        self.streaks = streaks
        self.plants = plants
        logger.debug("ProgressService initialized")

    # ==========================================
    # Lookups
    # ==========================================

    async def _owned_task(self, user_id: int, task_id: int) -> Task:
        task = await self.store.get_task(task_id)
        if task is None or task.user_id != user_id:
            raise NotFoundError(
                message=f"Task {task_id} not found",
                record_type="Task",
                record_id=task_id,
                user_id=user_id,
            )
        return task

    async def _owned_habit(self, user_id: int, habit_id: int) -> Habit:
        habit = await self.store.get_habit(habit_id)
        if habit is None or habit.user_id != user_id:
            raise NotFoundError(
                message=f"Habit {habit_id} not found",
                record_type="Habit",
                record_id=habit_id,
                user_id=user_id,
            )
        return habit

    async def _stat(self, user_id: int) -> ProgressionStat:
        stat = await self.store.get_stat(user_id)
        if stat is None:
            raise NotFoundError(
                message=f"No progression stats for user {user_id}",
                record_type="ProgressionStat",
                record_id=user_id,
                user_id=user_id,
            )
        return stat

    # ==========================================
    # Tasks
    # ==========================================

    async def create_task(
        self,
        user_id: int,
        title: str,
        difficulty: Difficulty = Difficulty.NORMAL,
        due_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Task:
        task = Task(
            user_id=user_id,
            title=title,
            description=description,
            difficulty=difficulty,
            due_date=due_date,
            xp_reward=get_base_xp(difficulty),
        )
        created = await self.store.create_task(task)
        logger.info(f"User {user_id} created task {created.id} ({difficulty.value}, {created.xp_reward} XP)")
        return created

    async def list_tasks_on(self, user_id: int, day: date) -> List[Task]:
        return await self.store.list_tasks_on(user_id, day)

    async def complete_task(self, user_id: int, task_id: int) -> CompletionResult:
        """
        Mark a task done and grant its rewards.

        Args:
            user_id: Owner of the task
            task_id: Task to complete

        Returns:
            CompletionResult with XP earned, plants grown and streak info

        Raises:
            NotFoundError: Missing or foreign task
            ConflictError: Task is already done
        """
        async with self.store.transaction():
            task = await self._owned_task(user_id, task_id)
            if task.done or not await self.store.set_task_done(task_id, True):
                raise self._lost_race("task is already done", user_id, "complete_task", task_id=task_id)

            stat = await self._stat(user_id)
            xp = calculate_task_xp(task.xp_reward, stat.level)

            streak = await self.streaks.on_completion(user_id)
            await self.ledger.record(user_id, RefKind.TASK, task_id, xp)
            experience = await self.store.add_experience(user_id, xp)
            await self.store.increment_tasks_completed(user_id)

        # Growth failures are per-plant and must not undo the completion
        plants_grown = await self.plants.grow_all(user_id, 1)

        return self._completion_result(user_id, task_id, xp, stat, experience, streak, plants_grown, RefKind.TASK)

    async def undo_task(self, user_id: int, task_id: int) -> UndoResult:
        """
        Mark a task not done and remove the XP its last completion granted.

        Raises:
            NotFoundError: Missing or foreign task
            ValidationError: No completion to reverse
            ConflictError: A concurrent undo reversed it first
        """
        async with self.store.transaction():
            await self._owned_task(user_id, task_id)
            event = await self.ledger.last_positive_event(RefKind.TASK, task_id)

            if not await self.store.set_task_done(task_id, False):
                raise self._lost_race("task was already undone", user_id, "undo_task", task_id=task_id)
            await self.store.remove_experience(user_id, event.xp_delta)
            await self.store.decrement_tasks_completed(user_id)
            await self.ledger.record(user_id, RefKind.TASK, task_id, -event.xp_delta, -event.gold_delta)

        xp_revoked_total.labels(ref_kind=RefKind.TASK.value).inc(event.xp_delta)
        logger.info(f"User {user_id} undid task {task_id}: -{event.xp_delta} XP")
        return UndoResult(ref_id=task_id, xp_earned=-event.xp_delta)

    async def delete_task(self, user_id: int, task_id: int) -> None:
        async with self.store.transaction():
            await self._owned_task(user_id, task_id)
            await self.ledger.delete_for_ref(RefKind.TASK, task_id)
            await self.store.delete_task(task_id)
        logger.info(f"User {user_id} deleted task {task_id}")

    # ==========================================
    # Habits
    # ==========================================

    async def create_habit(
        self,
        user_id: int,
        title: str,
        difficulty: Difficulty = Difficulty.NORMAL,
        period: HabitPeriod = HabitPeriod.DAY,
        start_date: Optional[date] = None,
        every: int = 1,
        count: int = 0,
        description: Optional[str] = None,
    ) -> Habit:
        """
        Create a habit.

        The stored XP reward grows with the habit's starting count.
        """
        habit = Habit(
            user_id=user_id,
            title=title,
            description=description,
            difficulty=difficulty,
            period=period,
            every=every,
            count=count,
            start_date=start_date or local_date(self.ledger.clock()),
            xp_reward=calculate_habit_xp(get_base_xp(difficulty), count),
        )
        created = await self.store.create_habit(habit)
        logger.info(
            f"User {user_id} created habit {created.id} "
            f"({period.value}, {difficulty.value}, {created.xp_reward} XP)"
        )
        return created

    async def list_habits(self, user_id: int) -> List[Habit]:
        return await self.store.list_habits(user_id)

    async def complete_habit(self, user_id: int, habit_id: int) -> CompletionResult:
        """
        Mark a habit done, increment its count and grant its rewards.

        Raises:
            NotFoundError: Missing or foreign habit
            ConflictError: Habit is already done for this period
        """
        async with self.store.transaction():
            habit = await self._owned_habit(user_id, habit_id)
            if habit.done or await self.store.mark_habit_done(habit_id) is None:
                raise self._lost_race("habit is already done", user_id, "complete_habit", habit_id=habit_id)

            stat = await self._stat(user_id)
            xp = calculate_task_xp(habit.xp_reward, stat.level)

            streak = await self.streaks.on_completion(user_id)
            await self.ledger.record(user_id, RefKind.HABIT, habit_id, xp)
            experience = await self.store.add_experience(user_id, xp)

        plants_grown = await self.plants.grow_all(user_id, 1)

        return self._completion_result(user_id, habit_id, xp, stat, experience, streak, plants_grown, RefKind.HABIT)

    async def undo_habit(self, user_id: int, habit_id: int) -> UndoResult:
        """
        Undo the last completion of a habit.

        Raises:
            NotFoundError: Missing or foreign habit
            ValidationError: Habit not done, count already 0, or no completion to reverse
            ConflictError: A concurrent undo reversed it first
        """
        async with self.store.transaction():
            habit = await self._owned_habit(user_id, habit_id)
            if not habit.done:
                raise ValidationError(
                    message="habit is not marked as done",
                    field="done",
                    value=habit.done,
                    user_id=user_id,
                    operation="undo_habit",
                )
            if habit.count <= 0:
                raise ValidationError(
                    message="habit count is already 0",
                    field="count",
                    value=habit.count,
                    user_id=user_id,
                    operation="undo_habit",
                )

            event = await self.ledger.last_positive_event(RefKind.HABIT, habit_id)

            if await self.store.mark_habit_undone(habit_id) is None:
                raise self._lost_race("habit was already undone", user_id, "undo_habit", habit_id=habit_id)
            await self.store.remove_experience(user_id, event.xp_delta)
            await self.ledger.record(user_id, RefKind.HABIT, habit_id, -event.xp_delta, -event.gold_delta)

        xp_revoked_total.labels(ref_kind=RefKind.HABIT.value).inc(event.xp_delta)
        logger.info(f"User {user_id} undid habit {habit_id}: -{event.xp_delta} XP")
        return UndoResult(ref_id=habit_id, xp_earned=-event.xp_delta)

    async def increment_habit_count(self, user_id: int, habit_id: int) -> Habit:
        habit = await self._owned_habit(user_id, habit_id)
        return await self.store.set_habit_count(habit_id, habit.count + 1)

    async def reset_habit_count(self, user_id: int, habit_id: int) -> Habit:
        await self._owned_habit(user_id, habit_id)
        habit = await self.store.set_habit_count(habit_id, 0)
        logger.info(f"User {user_id} reset count of habit {habit_id}")
        return habit

    async def delete_habit(self, user_id: int, habit_id: int) -> None:
        async with self.store.transaction():
            await self._owned_habit(user_id, habit_id)
            await self.ledger.delete_for_ref(RefKind.HABIT, habit_id)
            await self.store.delete_habit(habit_id)
        logger.info(f"User {user_id} deleted habit {habit_id}")

    # ==========================================
    # Helpers
    # ==========================================

    def _lost_race(self, message: str, user_id: int, operation: str, **context) -> ConflictError:
        """The done flag already held the requested value, possibly set by a concurrent request"""
        return ConflictError(message=message, user_id=user_id, operation=operation, context=context)

    def _completion_result(
        self,
        user_id: int,
        ref_id: int,
        xp: int,
        before: ProgressionStat,
        experience: int,
        streak: StreakUpdate,
        plants_grown: int,
        ref_kind: RefKind,
    ) -> CompletionResult:
        new_level = calculate_level(experience)
        leveled_up = new_level > before.level

        xp_awarded_total.labels(ref_kind=ref_kind.value).inc(xp)
        logger.info(
            f"User {user_id} completed {ref_kind.value} {ref_id}: +{xp} XP, "
            f"{plants_grown} plants grown, streak {streak.current_streak}"
        )
        if leveled_up:
            logger.info(f"User {user_id} leveled up: {before.level} -> {new_level}")

        return CompletionResult(
            ref_id=ref_id,
            xp_earned=xp,
            plants_grown=plants_grown,
            current_streak=streak.current_streak,
            streak_incremented=streak.streak_incremented,
            drought_cleared=streak.drought_cleared,
            leveled_up=leveled_up,
            new_level=new_level,
        )
