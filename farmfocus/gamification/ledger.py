"""
Activity Ledger

Append-only record of reward-granting events (task and habit completions
and their reversals). Answers two questions for the rest of the engine:
- did the user complete a task/habit today (streaks, plant recovery)
- how much exactly must be reversed when a completion is undone
"""

from typing import List
from datetime import timedelta
import logging

from farmfocus.db.stores import ActivityStore
from farmfocus.exceptions import ValidationError
from farmfocus.models.activity import ActivityEvent, RefKind
from farmfocus.utils.datetime_helpers import Clock, day_bounds, local_date, now_local

logger = logging.getLogger(__name__)


class ActivityLedger:
    """Ledger of ActivityEvents backed by an ActivityStore"""

    def __init__(self, store: ActivityStore, clock: Clock = now_local):
        self.store = store
        self.clock = clock

    async def record(
        self,
        user_id: int,
        ref_kind: RefKind,
        ref_id: int,
        xp_delta: int,
        gold_delta: int = 0,
    ) -> ActivityEvent:
        """
        Append an event

        Args:
            user_id: Owner of the task/habit
            ref_kind: TASK or HABIT
            ref_id: Task or habit id
            xp_delta: XP granted (negative for a reversal)
            gold_delta: Gold granted (negative for a reversal)

        Returns:
            The stored event
        """
        event = ActivityEvent(
            user_id=user_id,
            ref_kind=ref_kind,
            ref_id=ref_id,
            xp_delta=xp_delta,
            gold_delta=gold_delta,
            created_at=self.clock(),
        )
        stored = await self.store.record_event(event)
        logger.debug(f"Recorded {ref_kind.value} {ref_id} event for user {user_id}: xp {xp_delta:+d}, gold {gold_delta:+d}")
        return stored

    async def has_completed_today(self, user_id: int, ref_kind: RefKind) -> bool:
        """True if any event of this kind was recorded on the current calendar day"""
        start, end = day_bounds(local_date(self.clock()))
        return await self.store.has_event_between(user_id, ref_kind, start, end)

    async def last_positive_event(self, ref_kind: RefKind, ref_id: int) -> ActivityEvent:
        """
        The completion an undo must reverse

        The positive event must also be the newest one for the ref: a later
        negative event means that completion was already reversed.

        Raises:
            ValidationError: No completion to reverse (never completed or already undone)
        """
        event = await self.store.last_positive_event(ref_kind, ref_id)
        if event is None:
            raise ValidationError(
                message=f"No completion record found for this {ref_kind.value}",
                field="ref_id",
                value=ref_id,
                operation="undo",
            )

        latest = await self.store.last_event(ref_kind, ref_id)
        if latest is not None and latest.id != event.id:
            raise ValidationError(
                message=f"{ref_kind.value.capitalize()} was not completed or already undone",
                field="ref_id",
                value=ref_id,
                operation="undo",
            )
        return event

    async def delete_for_ref(self, ref_kind: RefKind, ref_id: int) -> int:
        """Drop all events of a deleted task or habit"""
        deleted = await self.store.delete_events_for_ref(ref_kind, ref_id)
        logger.info(f"Deleted {deleted} ledger events for {ref_kind.value} {ref_id}")
        return deleted

    async def history(self, user_id: int, days: int = 7) -> List[ActivityEvent]:
        """
        Get recent ledger history

        Args:
            user_id: User id
            days: Number of days of history to retrieve

        Returns:
            Events sorted by date (newest first)
        """
        since = self.clock() - timedelta(days=days)
        return await self.store.list_events(user_id, since)
