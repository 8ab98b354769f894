"""Activity ledger (progress_log) queries"""
import logging
from datetime import datetime
from typing import Optional

from farmfocus.db.queries.base import PostgresQueries
from farmfocus.models.activity import ActivityEvent, RefKind

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = "id, user_id, ref_kind, ref_id, xp_delta, gold_delta, created_at"


class ActivityQueries(PostgresQueries):
    """ActivityStore on the append-only progress_log table"""

    async def record_event(self, event: ActivityEvent) -> ActivityEvent:
        row = await self._fetchone(
            "record_event",
            f"""
            INSERT INTO progress_log (user_id, ref_kind, ref_id, xp_delta, gold_delta, created_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {_EVENT_COLUMNS}
            """,
            (event.user_id, event.ref_kind.value, event.ref_id, event.xp_delta, event.gold_delta, event.created_at)
        )
        return ActivityEvent(**row)

    async def has_event_between(self, user_id: int, ref_kind: RefKind, start: datetime, end: datetime) -> bool:
        row = await self._fetchone(
            "has_event_between",
            """
            SELECT EXISTS (
                SELECT 1 FROM progress_log
                WHERE user_id = %s AND ref_kind = %s AND created_at >= %s AND created_at < %s
            ) AS found
            """,
            (user_id, ref_kind.value, start, end)
        )
        return bool(row and row["found"])

    async def last_event(self, ref_kind: RefKind, ref_id: int) -> Optional[ActivityEvent]:
        row = await self._fetchone(
            "last_event",
            f"""
            SELECT {_EVENT_COLUMNS} FROM progress_log
            WHERE ref_kind = %s AND ref_id = %s
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (ref_kind.value, ref_id)
        )
        return ActivityEvent(**row) if row else None

    async def last_positive_event(self, ref_kind: RefKind, ref_id: int) -> Optional[ActivityEvent]:
        row = await self._fetchone(
            "last_positive_event",
            f"""
            SELECT {_EVENT_COLUMNS} FROM progress_log
            WHERE ref_kind = %s AND ref_id = %s AND xp_delta > 0
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (ref_kind.value, ref_id)
        )
        return ActivityEvent(**row) if row else None

    async def delete_events_for_ref(self, ref_kind: RefKind, ref_id: int) -> int:
        return await self._execute(
            "delete_events_for_ref",
            "DELETE FROM progress_log WHERE ref_kind = %s AND ref_id = %s",
            (ref_kind.value, ref_id)
        )

    async def list_events(self, user_id: int, since: datetime) -> list[ActivityEvent]:
        rows = await self._fetchall(
            "list_events",
            f"""
            SELECT {_EVENT_COLUMNS} FROM progress_log
            WHERE user_id = %s AND created_at >= %s
            ORDER BY created_at DESC, id DESC
            """,
            (user_id, since)
        )
        return [ActivityEvent(**row) for row in rows]
