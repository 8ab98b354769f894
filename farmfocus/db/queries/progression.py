"""Progression (user_stat) queries"""
import logging
from datetime import date
from typing import Optional

from farmfocus.db.queries.base import PostgresQueries
from farmfocus.models.progression import ProgressionStat

logger = logging.getLogger(__name__)

_STAT_COLUMNS = """
    user_id, experience, gold, current_streak, longest_streak, is_drought,
    total_tasks_completed, total_plants_harvested, last_streak_date, updated_at
"""
_STAT_COLUMNS_QUALIFIED = ", ".join("s." + c.strip() for c in _STAT_COLUMNS.split(","))


class ProgressionQueries(PostgresQueries):
    """ProgressionStore on the user_stat table"""

    async def get_stat(self, user_id: int) -> Optional[ProgressionStat]:
        row = await self._fetchone(
            "get_stat",
            f"SELECT {_STAT_COLUMNS} FROM user_stat WHERE user_id = %s",
            (user_id,)
        )
        return ProgressionStat(**row) if row else None

    async def create_stat(self, stat: ProgressionStat) -> ProgressionStat:
        await self._execute(
            "create_stat",
            """
            INSERT INTO user_stat (
                user_id, experience, gold, current_streak, longest_streak, is_drought,
                total_tasks_completed, total_plants_harvested, last_streak_date
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (user_id) DO NOTHING
            """,
            (
                stat.user_id, stat.experience, stat.gold, stat.current_streak, stat.longest_streak,
                stat.is_drought, stat.total_tasks_completed, stat.total_plants_harvested,
                stat.last_streak_date,
            )
        )
        return await self.get_stat(stat.user_id)

    async def add_experience(self, user_id: int, amount: int) -> int:
        row = await self._fetchone(
            "add_experience",
            """
            UPDATE user_stat
            SET experience = GREATEST(experience + %s, 0), updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            RETURNING experience
            """,
            (amount, user_id)
        )
        return row["experience"] if row else 0

    async def remove_experience(self, user_id: int, amount: int) -> int:
        row = await self._fetchone(
            "remove_experience",
            """
            UPDATE user_stat
            SET experience = GREATEST(experience - %s, 0), updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            RETURNING experience
            """,
            (amount, user_id)
        )
        return row["experience"] if row else 0

    async def add_gold(self, user_id: int, amount: int) -> int:
        row = await self._fetchone(
            "add_gold",
            """
            UPDATE user_stat
            SET gold = gold + %s, updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            RETURNING gold
            """,
            (amount, user_id)
        )
        return row["gold"] if row else 0

    async def spend_gold(self, user_id: int, amount: int) -> Optional[int]:
        row = await self._fetchone(
            "spend_gold",
            """
            UPDATE user_stat
            SET gold = gold - %s, updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s AND gold >= %s
            RETURNING gold
            """,
            (amount, user_id, amount)
        )
        return row["gold"] if row else None

    async def claim_daily_streak(self, user_id: int, day: date) -> Optional[tuple[ProgressionStat, bool]]:
        # The CTE reads the pre-update drought flag; the UPDATE only matches
        # when the day has not been counted yet
        row = await self._fetchone(
            "claim_daily_streak",
            f"""
            WITH before AS (
                SELECT user_id, is_drought FROM user_stat WHERE user_id = %s
            )
            UPDATE user_stat s
            SET current_streak = s.current_streak + 1,
                longest_streak = GREATEST(s.longest_streak, s.current_streak + 1),
                last_streak_date = %s,
                is_drought = FALSE,
                updated_at = CURRENT_TIMESTAMP
            FROM before
            WHERE s.user_id = before.user_id
              AND s.last_streak_date IS DISTINCT FROM %s
            RETURNING {_STAT_COLUMNS_QUALIFIED},
                      before.is_drought AS was_drought
            """,
            (user_id, day, day)
        )
        if row is None:
            return None
        was_drought = row.pop("was_drought")
        return ProgressionStat(**row), was_drought

    async def reset_streak(self, user_id: int) -> None:
        await self._execute(
            "reset_streak",
            "UPDATE user_stat SET current_streak = 0, updated_at = CURRENT_TIMESTAMP WHERE user_id = %s",
            (user_id,)
        )

    async def set_drought(self, user_id: int, is_drought: bool) -> None:
        await self._execute(
            "set_drought",
            "UPDATE user_stat SET is_drought = %s, updated_at = CURRENT_TIMESTAMP WHERE user_id = %s",
            (is_drought, user_id)
        )

    async def increment_tasks_completed(self, user_id: int) -> None:
        await self._execute(
            "increment_tasks_completed",
            """
            UPDATE user_stat
            SET total_tasks_completed = total_tasks_completed + 1, updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            """,
            (user_id,)
        )

    async def decrement_tasks_completed(self, user_id: int) -> None:
        await self._execute(
            "decrement_tasks_completed",
            """
            UPDATE user_stat
            SET total_tasks_completed = GREATEST(total_tasks_completed - 1, 0), updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            """,
            (user_id,)
        )

    async def increment_plants_harvested(self, user_id: int) -> None:
        await self._execute(
            "increment_plants_harvested",
            """
            UPDATE user_stat
            SET total_plants_harvested = total_plants_harvested + 1, updated_at = CURRENT_TIMESTAMP
            WHERE user_id = %s
            """,
            (user_id,)
        )
