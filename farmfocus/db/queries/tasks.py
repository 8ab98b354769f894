"""Task and habit queries"""
import logging
from datetime import date
from typing import Optional

from farmfocus.db.queries.base import PostgresQueries
from farmfocus.exceptions import NotFoundError
from farmfocus.models.tasks import Habit, Task

logger = logging.getLogger(__name__)

_TASK_COLUMNS = "id, user_id, title, description, difficulty, due_date, done, xp_reward, created_at"
_HABIT_COLUMNS = (
    "id, user_id, title, description, difficulty, done, count, period, every, start_date, xp_reward, created_at"
)


def _habit_not_found(habit_id: int) -> NotFoundError:
    return NotFoundError(message=f"Habit {habit_id} not found", record_type="Habit", record_id=habit_id)


class TaskQueries(PostgresQueries):
    """TaskStore on the task and habit tables"""

    # ==========================================
    # Tasks
    # ==========================================

    async def create_task(self, task: Task) -> Task:
        row = await self._fetchone(
            "create_task",
            f"""
            INSERT INTO task (user_id, title, description, difficulty, due_date, done, xp_reward, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {_TASK_COLUMNS}
            """,
            (
                task.user_id, task.title, task.description, task.difficulty.value,
                task.due_date, task.done, task.xp_reward, task.created_at,
            )
        )
        return Task(**row)

    async def get_task(self, task_id: int) -> Optional[Task]:
        row = await self._fetchone(
            "get_task",
            f"SELECT {_TASK_COLUMNS} FROM task WHERE id = %s",
            (task_id,)
        )
        return Task(**row) if row else None

    async def list_tasks_on(self, user_id: int, day: date) -> list[Task]:
        rows = await self._fetchall(
            "list_tasks_on",
            f"SELECT {_TASK_COLUMNS} FROM task WHERE user_id = %s AND due_date = %s ORDER BY id",
            (user_id, day)
        )
        return [Task(**row) for row in rows]

    async def set_task_done(self, task_id: int, done: bool) -> bool:
        """Flip the flag only when it differs; False when another request flipped it first"""
        updated = await self._execute(
            "set_task_done",
            "UPDATE task SET done = %s WHERE id = %s AND done <> %s",
            (done, task_id, done)
        )
        return updated == 1

    async def delete_task(self, task_id: int) -> None:
        await self._execute("delete_task", "DELETE FROM task WHERE id = %s", (task_id,))

    # ==========================================
    # Habits
    # ==========================================

    async def create_habit(self, habit: Habit) -> Habit:
        row = await self._fetchone(
            "create_habit",
            f"""
            INSERT INTO habit (
                user_id, title, description, difficulty, done, count, period, every,
                start_date, xp_reward, created_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {_HABIT_COLUMNS}
            """,
            (
                habit.user_id, habit.title, habit.description, habit.difficulty.value, habit.done,
                habit.count, habit.period.value, habit.every, habit.start_date, habit.xp_reward,
                habit.created_at,
            )
        )
        return Habit(**row)

    async def get_habit(self, habit_id: int) -> Optional[Habit]:
        row = await self._fetchone(
            "get_habit",
            f"SELECT {_HABIT_COLUMNS} FROM habit WHERE id = %s",
            (habit_id,)
        )
        return Habit(**row) if row else None

    async def list_habits(self, user_id: int) -> list[Habit]:
        rows = await self._fetchall(
            "list_habits",
            f"SELECT {_HABIT_COLUMNS} FROM habit WHERE user_id = %s ORDER BY id",
            (user_id,)
        )
        return [Habit(**row) for row in rows]

    async def mark_habit_done(self, habit_id: int) -> Optional[Habit]:
        row = await self._fetchone(
            "mark_habit_done",
            f"""
            UPDATE habit SET done = TRUE, count = count + 1
            WHERE id = %s AND done = FALSE
            RETURNING {_HABIT_COLUMNS}
            """,
            (habit_id,)
        )
        return Habit(**row) if row else None

    async def mark_habit_undone(self, habit_id: int) -> Optional[Habit]:
        row = await self._fetchone(
            "mark_habit_undone",
            f"""
            UPDATE habit SET done = FALSE, count = GREATEST(count - 1, 0)
            WHERE id = %s AND done = TRUE
            RETURNING {_HABIT_COLUMNS}
            """,
            (habit_id,)
        )
        return Habit(**row) if row else None

    async def reset_habit(self, habit_id: int) -> None:
        await self._execute("reset_habit", "UPDATE habit SET done = FALSE WHERE id = %s", (habit_id,))

    async def set_habit_count(self, habit_id: int, count: int) -> Habit:
        row = await self._fetchone(
            "set_habit_count",
            f"UPDATE habit SET count = GREATEST(%s, 0) WHERE id = %s RETURNING {_HABIT_COLUMNS}",
            (count, habit_id)
        )
        if row is None:
            raise _habit_not_found(habit_id)
        return Habit(**row)

    async def delete_habit(self, habit_id: int) -> None:
        await self._execute("delete_habit", "DELETE FROM habit WHERE id = %s", (habit_id,))
