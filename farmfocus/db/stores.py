"""
Store protocols the engine depends on

The engine never talks to a database directly. Each protocol below names
the operations a collaborator must provide; MemoryStore and the PostgreSQL
stores in farmfocus.db.queries implement all of them.

Conventions:
- Single-row mutators are atomic on their own (one statement).
- Lookups by id return None when the row does not exist; ownership checks
  and NotFoundError belong to the callers.
- transaction() groups several calls into one all-or-nothing unit.
"""

from datetime import date, datetime
from typing import AsyncContextManager, Optional, Protocol

from farmfocus.models.activity import ActivityEvent, RefKind
from farmfocus.models.garden import Bed, Plant, Seed
from farmfocus.models.progression import ProgressionStat
from farmfocus.models.shop import Good, GoodKind
from farmfocus.models.tasks import Habit, Task
from farmfocus.models.user import User


class Transactional(Protocol):
    def transaction(self) -> AsyncContextManager[None]:
        """Run the enclosed store calls atomically; roll back on exception"""
        ...


class ProgressionStore(Transactional, Protocol):
    async def get_stat(self, user_id: int) -> Optional[ProgressionStat]: ...

    async def create_stat(self, stat: ProgressionStat) -> ProgressionStat: ...

    async def add_experience(self, user_id: int, amount: int) -> int:
        """Add experience, return the new total"""
        ...

    async def remove_experience(self, user_id: int, amount: int) -> int:
        """Subtract experience floored at 0, return the new total"""
        ...

    async def add_gold(self, user_id: int, amount: int) -> int: ...

    async def spend_gold(self, user_id: int, amount: int) -> Optional[int]:
        """Debit only if gold >= amount; new balance, or None when refused"""
        ...

    async def claim_daily_streak(self, user_id: int, day: date) -> Optional[tuple[ProgressionStat, bool]]:
        """
        Count `day` towards the streak, once

        In one atomic update: when last_streak_date != day, increment
        current_streak, raise longest_streak, set last_streak_date = day and
        clear is_drought. Returns (updated stat, was_in_drought), or None
        when the day was already counted.
        """
        ...

    async def reset_streak(self, user_id: int) -> None: ...

    async def set_drought(self, user_id: int, is_drought: bool) -> None: ...

    async def increment_tasks_completed(self, user_id: int) -> None: ...

    async def decrement_tasks_completed(self, user_id: int) -> None:
        """total_tasks_completed - 1, floored at 0"""
        ...

    async def increment_plants_harvested(self, user_id: int) -> None: ...


class ActivityStore(Transactional, Protocol):
    async def record_event(self, event: ActivityEvent) -> ActivityEvent: ...

    async def has_event_between(
        self, user_id: int, ref_kind: RefKind, start: datetime, end: datetime
    ) -> bool: ...

    async def last_event(self, ref_kind: RefKind, ref_id: int) -> Optional[ActivityEvent]: ...

    async def last_positive_event(self, ref_kind: RefKind, ref_id: int) -> Optional[ActivityEvent]: ...

    async def delete_events_for_ref(self, ref_kind: RefKind, ref_id: int) -> int: ...

    async def list_events(self, user_id: int, since: datetime) -> list[ActivityEvent]:
        """Events since a moment, newest first"""
        ...


class TaskStore(Transactional, Protocol):
    async def create_task(self, task: Task) -> Task: ...

    async def get_task(self, task_id: int) -> Optional[Task]: ...

    async def list_tasks_on(self, user_id: int, day: date) -> list[Task]: ...

    async def set_task_done(self, task_id: int, done: bool) -> bool:
        """Set done only when it differs; False when it already had that value"""
        ...

    async def delete_task(self, task_id: int) -> None: ...

    async def create_habit(self, habit: Habit) -> Habit: ...

    async def get_habit(self, habit_id: int) -> Optional[Habit]: ...

    async def list_habits(self, user_id: int) -> list[Habit]: ...

    async def mark_habit_done(self, habit_id: int) -> Optional[Habit]:
        """done = true, count + 1; None when the habit was already done"""
        ...

    async def mark_habit_undone(self, habit_id: int) -> Optional[Habit]:
        """done = false, count - 1 floored at 0; None when the habit was not done"""
        ...

    async def reset_habit(self, habit_id: int) -> None:
        """done = false, count untouched"""
        ...

    async def set_habit_count(self, habit_id: int, count: int) -> Habit: ...

    async def delete_habit(self, habit_id: int) -> None: ...


class PlantStore(Transactional, Protocol):
    async def create_plant(self, plant: Plant) -> Plant: ...

    async def get_plant(self, plant_id: int) -> Optional[Plant]: ...

    async def get_plants_by_user(self, user_id: int) -> list[Plant]: ...

    async def get_plant_by_bed(self, bed_id: int) -> Optional[Plant]: ...

    async def get_plant_with_seed(self, plant_id: int) -> Optional[tuple[Plant, Seed]]: ...

    async def add_growth(self, plant_id: int, amount: int) -> int:
        """Increment stored growth, return the new value"""
        ...

    async def mark_withered(self, plant_id: int) -> None: ...

    async def reset_withered(self, user_id: int) -> int:
        """Clear is_withered on all of a user's plants, return how many changed"""
        ...

    async def delete_plant(self, plant_id: int) -> None: ...


class InventoryStore(Transactional, Protocol):
    async def get_seed(self, seed_id: int) -> Optional[Seed]: ...

    async def list_seeds(self) -> list[Seed]: ...

    async def get_seed_quantity(self, user_id: int, seed_id: int) -> int: ...

    async def add_seed_quantity(self, user_id: int, seed_id: int, amount: int) -> int: ...

    async def take_seed(self, user_id: int, seed_id: int) -> bool:
        """Decrement by one only if quantity >= 1"""
        ...

    async def create_initial_beds(self, user_id: int, count: int) -> None:
        """Cells 1..count, only cell 1 unlocked; existing cells are kept"""
        ...

    async def list_beds(self, user_id: int) -> list[Bed]: ...

    async def get_bed_by_cell(self, user_id: int, cell_number: int) -> Optional[Bed]: ...

    async def unlock_next_bed(self, user_id: int) -> Optional[Bed]:
        """Unlock the locked bed with the lowest cell number"""
        ...

    async def get_good(self, good_id: int) -> Optional[Good]: ...

    async def get_good_by_ref(self, user_id: int, kind: GoodKind, ref_id: int) -> Optional[Good]: ...

    async def list_goods(self, user_id: int) -> list[Good]: ...

    async def upsert_good(self, good: Good) -> Good:
        """Create, or overwrite quantity and cost of the (user, kind, ref) row"""
        ...

    async def take_good(self, good_id: int) -> Optional[int]:
        """Decrement stock only if quantity >= 1; new quantity, or None when refused"""
        ...


class UserDirectory(Transactional, Protocol):
    async def get_user(self, user_id: int) -> Optional[User]: ...

    async def create_user(self, user: User) -> User: ...

    async def list_active_users(self) -> list[User]: ...


class Store(
    ProgressionStore,
    ActivityStore,
    TaskStore,
    PlantStore,
    InventoryStore,
    UserDirectory,
    Protocol,
):
    """Everything the engine needs, as implemented by a single backend"""
