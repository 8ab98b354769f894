"""
In-process store

Implements every store protocol on plain dictionaries. Used by the test
suite and by STORE_BACKEND=memory for local runs; nothing is persisted.
Returned models are copies, so callers cannot mutate stored state.
"""

import asyncio
import copy
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import date, datetime
from typing import AsyncIterator, Iterable, Optional

from farmfocus.models.activity import ActivityEvent, RefKind
from farmfocus.models.garden import DEFAULT_SEEDS, Bed, Plant, Seed
from farmfocus.models.progression import ProgressionStat
from farmfocus.models.shop import Good, GoodKind
from farmfocus.models.tasks import Habit, Task
from farmfocus.models.user import User

logger = logging.getLogger(__name__)

_in_transaction: ContextVar[bool] = ContextVar("memory_store_in_transaction", default=False)


class MemoryStore:
    """In-memory implementation of farmfocus.db.stores.Store"""

    def __init__(self, seeds: Optional[Iterable[Seed]] = None):
        self._seeds: dict[int, Seed] = {s.id: s for s in (seeds if seeds is not None else DEFAULT_SEEDS)}
        self._users: dict[int, User] = {}
        self._stats: dict[int, ProgressionStat] = {}
        self._events: list[ActivityEvent] = []
        self._tasks: dict[int, Task] = {}
        self._habits: dict[int, Habit] = {}
        self._plants: dict[int, Plant] = {}
        self._beds: dict[int, Bed] = {}
        self._goods: dict[int, Good] = {}
        self._inventory: dict[tuple[int, int], int] = {}
        self._ids: dict[str, int] = {}
        self._lock = asyncio.Lock()

    def _next_id(self, table: str) -> int:
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]

    def _state_names(self) -> list[str]:
        return ["_users", "_stats", "_events", "_tasks", "_habits", "_plants", "_beds", "_goods", "_inventory", "_ids"]

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Snapshot state, restore it if the block raises; nested calls join the outer one"""
        if _in_transaction.get():
            yield
            return

        async with self._lock:
            snapshot = {name: copy.deepcopy(getattr(self, name)) for name in self._state_names()}
            token = _in_transaction.set(True)
            try:
                yield
            except BaseException:
                for name, value in snapshot.items():
                    setattr(self, name, value)
                logger.debug("Memory store transaction rolled back")
                raise
            finally:
                _in_transaction.reset(token)

    # ==========================================
    # Users
    # ==========================================

    async def get_user(self, user_id: int) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def create_user(self, user: User) -> User:
        self._users.setdefault(user.id, user.model_copy())
        return self._users[user.id].model_copy()

    async def list_active_users(self) -> list[User]:
        return [u.model_copy() for u in sorted(self._users.values(), key=lambda u: u.id) if u.is_active]

    # ==========================================
    # Progression
    # ==========================================

    def _update_stat(self, user_id: int, **changes) -> ProgressionStat:
        stat = self._stats.get(user_id)
        if stat is None:
            raise KeyError(f"no progression stat for user {user_id}")
        # model_validate re-applies the ge=0 constraints
        updated = ProgressionStat.model_validate({**stat.model_dump(), **changes, "updated_at": datetime.now()})
        self._stats[user_id] = updated
        return updated

    async def get_stat(self, user_id: int) -> Optional[ProgressionStat]:
        stat = self._stats.get(user_id)
        return stat.model_copy() if stat else None

    async def create_stat(self, stat: ProgressionStat) -> ProgressionStat:
        self._stats.setdefault(stat.user_id, stat.model_copy())
        return self._stats[stat.user_id].model_copy()

    async def add_experience(self, user_id: int, amount: int) -> int:
        stat = self._stats[user_id]
        return self._update_stat(user_id, experience=max(stat.experience + amount, 0)).experience

    async def remove_experience(self, user_id: int, amount: int) -> int:
        stat = self._stats[user_id]
        return self._update_stat(user_id, experience=max(stat.experience - amount, 0)).experience

    async def add_gold(self, user_id: int, amount: int) -> int:
        stat = self._stats[user_id]
        return self._update_stat(user_id, gold=stat.gold + amount).gold

    async def spend_gold(self, user_id: int, amount: int) -> Optional[int]:
        stat = self._stats[user_id]
        if stat.gold < amount:
            return None
        return self._update_stat(user_id, gold=stat.gold - amount).gold

    async def claim_daily_streak(self, user_id: int, day: date) -> Optional[tuple[ProgressionStat, bool]]:
        stat = self._stats[user_id]
        if stat.last_streak_date == day:
            return None
        streak = stat.current_streak + 1
        updated = self._update_stat(
            user_id,
            current_streak=streak,
            longest_streak=max(stat.longest_streak, streak),
            last_streak_date=day,
            is_drought=False,
        )
        return updated.model_copy(), stat.is_drought

    async def reset_streak(self, user_id: int) -> None:
        self._update_stat(user_id, current_streak=0)

    async def set_drought(self, user_id: int, is_drought: bool) -> None:
        self._update_stat(user_id, is_drought=is_drought)

    async def increment_tasks_completed(self, user_id: int) -> None:
        stat = self._stats[user_id]
        self._update_stat(user_id, total_tasks_completed=stat.total_tasks_completed + 1)

    async def decrement_tasks_completed(self, user_id: int) -> None:
        stat = self._stats[user_id]
        self._update_stat(user_id, total_tasks_completed=max(stat.total_tasks_completed - 1, 0))

    async def increment_plants_harvested(self, user_id: int) -> None:
        stat = self._stats[user_id]
        self._update_stat(user_id, total_plants_harvested=stat.total_plants_harvested + 1)

    # ==========================================
    # Activity ledger
    # ==========================================

    async def record_event(self, event: ActivityEvent) -> ActivityEvent:
        stored = event.model_copy(update={"id": self._next_id("events")})
        self._events.append(stored)
        return stored

    async def has_event_between(self, user_id: int, ref_kind: RefKind, start: datetime, end: datetime) -> bool:
        return any(
            e.user_id == user_id and e.ref_kind == ref_kind and start <= e.created_at < end
            for e in self._events
        )

    def _events_for_ref(self, ref_kind: RefKind, ref_id: int) -> list[ActivityEvent]:
        return [e for e in self._events if e.ref_kind == ref_kind and e.ref_id == ref_id]

    async def last_event(self, ref_kind: RefKind, ref_id: int) -> Optional[ActivityEvent]:
        events = self._events_for_ref(ref_kind, ref_id)
        return events[-1] if events else None

    async def last_positive_event(self, ref_kind: RefKind, ref_id: int) -> Optional[ActivityEvent]:
        for event in reversed(self._events_for_ref(ref_kind, ref_id)):
            if event.xp_delta > 0:
                return event
        return None

    async def delete_events_for_ref(self, ref_kind: RefKind, ref_id: int) -> int:
        before = len(self._events)
        self._events = [e for e in self._events if not (e.ref_kind == ref_kind and e.ref_id == ref_id)]
        return before - len(self._events)

    async def list_events(self, user_id: int, since: datetime) -> list[ActivityEvent]:
        return [e for e in reversed(self._events) if e.user_id == user_id and e.created_at >= since]

    # ==========================================
    # Tasks and habits
    # ==========================================

    async def create_task(self, task: Task) -> Task:
        stored = task.model_copy(update={"id": self._next_id("tasks")})
        self._tasks[stored.id] = stored
        return stored.model_copy()

    async def get_task(self, task_id: int) -> Optional[Task]:
        task = self._tasks.get(task_id)
        return task.model_copy() if task else None

    async def list_tasks_on(self, user_id: int, day: date) -> list[Task]:
        return [t.model_copy() for t in self._tasks.values() if t.user_id == user_id and t.due_date == day]

    async def set_task_done(self, task_id: int, done: bool) -> bool:
        task = self._tasks[task_id]
        if task.done == done:
            return False
        self._tasks[task_id] = task.model_copy(update={"done": done})
        return True

    async def delete_task(self, task_id: int) -> None:
        self._tasks.pop(task_id, None)

    async def create_habit(self, habit: Habit) -> Habit:
        stored = habit.model_copy(update={"id": self._next_id("habits")})
        self._habits[stored.id] = stored
        return stored.model_copy()

    async def get_habit(self, habit_id: int) -> Optional[Habit]:
        habit = self._habits.get(habit_id)
        return habit.model_copy() if habit else None

    async def list_habits(self, user_id: int) -> list[Habit]:
        return [h.model_copy() for h in self._habits.values() if h.user_id == user_id]

    async def mark_habit_done(self, habit_id: int) -> Optional[Habit]:
        habit = self._habits[habit_id]
        if habit.done:
            return None
        self._habits[habit_id] = habit.model_copy(update={"done": True, "count": habit.count + 1})
        return self._habits[habit_id].model_copy()

    async def mark_habit_undone(self, habit_id: int) -> Optional[Habit]:
        habit = self._habits[habit_id]
        if not habit.done:
            return None
        self._habits[habit_id] = habit.model_copy(update={"done": False, "count": max(habit.count - 1, 0)})
        return self._habits[habit_id].model_copy()

    async def reset_habit(self, habit_id: int) -> None:
        self._habits[habit_id] = self._habits[habit_id].model_copy(update={"done": False})

    async def set_habit_count(self, habit_id: int, count: int) -> Habit:
        self._habits[habit_id] = self._habits[habit_id].model_copy(update={"count": max(count, 0)})
        return self._habits[habit_id].model_copy()

    async def delete_habit(self, habit_id: int) -> None:
        self._habits.pop(habit_id, None)

    # ==========================================
    # Plants
    # ==========================================

    async def create_plant(self, plant: Plant) -> Plant:
        stored = plant.model_copy(update={"id": self._next_id("plants")})
        self._plants[stored.id] = stored
        return stored.model_copy()

    async def get_plant(self, plant_id: int) -> Optional[Plant]:
        plant = self._plants.get(plant_id)
        return plant.model_copy() if plant else None

    async def get_plants_by_user(self, user_id: int) -> list[Plant]:
        return [p.model_copy() for p in self._plants.values() if p.user_id == user_id]

    async def get_plant_by_bed(self, bed_id: int) -> Optional[Plant]:
        for plant in self._plants.values():
            if plant.bed_id == bed_id:
                return plant.model_copy()
        return None

    async def get_plant_with_seed(self, plant_id: int) -> Optional[tuple[Plant, Seed]]:
        plant = self._plants.get(plant_id)
        if plant is None or plant.seed_id not in self._seeds:
            return None
        return plant.model_copy(), self._seeds[plant.seed_id]

    async def add_growth(self, plant_id: int, amount: int) -> int:
        plant = self._plants[plant_id]
        self._plants[plant_id] = plant.model_copy(update={"current_growth": plant.current_growth + amount})
        return self._plants[plant_id].current_growth

    async def mark_withered(self, plant_id: int) -> None:
        self._plants[plant_id] = self._plants[plant_id].model_copy(update={"is_withered": True})

    async def reset_withered(self, user_id: int) -> int:
        restored = 0
        for plant_id, plant in self._plants.items():
            if plant.user_id == user_id and plant.is_withered:
                self._plants[plant_id] = plant.model_copy(update={"is_withered": False})
                restored += 1
        return restored

    async def delete_plant(self, plant_id: int) -> None:
        self._plants.pop(plant_id, None)

    # ==========================================
    # Seeds, beds and goods
    # ==========================================

    async def get_seed(self, seed_id: int) -> Optional[Seed]:
        return self._seeds.get(seed_id)

    async def list_seeds(self) -> list[Seed]:
        return sorted(self._seeds.values(), key=lambda s: s.id)

    async def get_seed_quantity(self, user_id: int, seed_id: int) -> int:
        return self._inventory.get((user_id, seed_id), 0)

    async def add_seed_quantity(self, user_id: int, seed_id: int, amount: int) -> int:
        key = (user_id, seed_id)
        self._inventory[key] = max(self._inventory.get(key, 0) + amount, 0)
        return self._inventory[key]

    async def take_seed(self, user_id: int, seed_id: int) -> bool:
        key = (user_id, seed_id)
        if self._inventory.get(key, 0) < 1:
            return False
        self._inventory[key] -= 1
        return True

    async def create_initial_beds(self, user_id: int, count: int) -> None:
        existing = {b.cell_number for b in self._beds.values() if b.user_id == user_id}
        for cell in range(1, count + 1):
            if cell in existing:
                continue
            bed_id = self._next_id("beds")
            self._beds[bed_id] = Bed(id=bed_id, user_id=user_id, cell_number=cell, is_locked=cell > 1)

    async def list_beds(self, user_id: int) -> list[Bed]:
        beds = [b for b in self._beds.values() if b.user_id == user_id]
        return [b.model_copy() for b in sorted(beds, key=lambda b: b.cell_number)]

    async def get_bed_by_cell(self, user_id: int, cell_number: int) -> Optional[Bed]:
        for bed in self._beds.values():
            if bed.user_id == user_id and bed.cell_number == cell_number:
                return bed.model_copy()
        return None

    async def unlock_next_bed(self, user_id: int) -> Optional[Bed]:
        locked = [b for b in await self.list_beds(user_id) if b.is_locked]
        if not locked:
            return None
        bed = locked[0]
        self._beds[bed.id] = bed.model_copy(update={"is_locked": False})
        return self._beds[bed.id].model_copy()

    async def get_good(self, good_id: int) -> Optional[Good]:
        good = self._goods.get(good_id)
        return good.model_copy() if good else None

    async def get_good_by_ref(self, user_id: int, kind: GoodKind, ref_id: int) -> Optional[Good]:
        for good in self._goods.values():
            if good.user_id == user_id and good.kind == kind and good.ref_id == ref_id:
                return good.model_copy()
        return None

    async def list_goods(self, user_id: int) -> list[Good]:
        return [g.model_copy() for g in self._goods.values() if g.user_id == user_id]

    async def upsert_good(self, good: Good) -> Good:
        existing = await self.get_good_by_ref(good.user_id, good.kind, good.ref_id)
        if existing is None:
            stored = good.model_copy(update={"id": self._next_id("goods"), "updated_at": datetime.now()})
        else:
            stored = existing.model_copy(
                update={"quantity": good.quantity, "cost": good.cost, "updated_at": datetime.now()}
            )
        self._goods[stored.id] = stored
        return stored.model_copy()

    async def take_good(self, good_id: int) -> Optional[int]:
        good = self._goods[good_id]
        if good.quantity < 1:
            return None
        self._goods[good_id] = good.model_copy(update={"quantity": good.quantity - 1, "updated_at": datetime.now()})
        return self._goods[good_id].quantity
