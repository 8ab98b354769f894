"""Unit tests for Activity Ledger (farmfocus/gamification/ledger.py)"""
import pytest

from farmfocus.exceptions import ValidationError
from farmfocus.gamification.ledger import ActivityLedger
from farmfocus.models.activity import RefKind


@pytest.fixture
def ledger(store, clock):
    return ActivityLedger(store, clock)


# ============================================================================
# Recording Tests
# ============================================================================

@pytest.mark.asyncio
async def test_record_stamps_event_with_clock(ledger, clock):
    """Test recorded events carry an id and the injected clock's moment"""
    event = await ledger.record(42, RefKind.TASK, 7, 30)

    assert event.id is not None
    assert event.created_at == clock()
    assert event.xp_delta == 30
    assert event.gold_delta == 0


@pytest.mark.asyncio
async def test_has_completed_today_only_counts_current_day(ledger, clock):
    """Test an event from yesterday does not count as today's completion"""
    clock.advance(days=-1)
    await ledger.record(42, RefKind.TASK, 1, 30)
    clock.advance(days=1)

    assert await ledger.has_completed_today(42, RefKind.TASK) is False

    await ledger.record(42, RefKind.TASK, 2, 30)
    assert await ledger.has_completed_today(42, RefKind.TASK) is True


@pytest.mark.asyncio
async def test_has_completed_today_filters_kind_and_user(ledger):
    await ledger.record(42, RefKind.HABIT, 1, 30)
    await ledger.record(99, RefKind.TASK, 2, 30)

    assert await ledger.has_completed_today(42, RefKind.TASK) is False
    assert await ledger.has_completed_today(42, RefKind.HABIT) is True


# ============================================================================
# Undo Lookup Tests
# ============================================================================

@pytest.mark.asyncio
async def test_last_positive_event_returns_latest_completion(ledger):
    await ledger.record(42, RefKind.TASK, 5, 30)
    await ledger.record(42, RefKind.TASK, 5, -30)
    latest = await ledger.record(42, RefKind.TASK, 5, 33)

    event = await ledger.last_positive_event(RefKind.TASK, 5)

    assert event.id == latest.id
    assert event.xp_delta == 33


@pytest.mark.asyncio
async def test_last_positive_event_without_completion(ledger):
    with pytest.raises(ValidationError) as exc_info:
        await ledger.last_positive_event(RefKind.TASK, 5)

    assert "No completion record found" in exc_info.value.message


@pytest.mark.asyncio
async def test_last_positive_event_already_undone(ledger):
    """Test a reversal newer than the completion blocks a second undo"""
    await ledger.record(42, RefKind.HABIT, 3, 30)
    await ledger.record(42, RefKind.HABIT, 3, -30)

    with pytest.raises(ValidationError) as exc_info:
        await ledger.last_positive_event(RefKind.HABIT, 3)

    assert exc_info.value.message == "Habit was not completed or already undone"


# ============================================================================
# Deletion & History Tests
# ============================================================================

@pytest.mark.asyncio
async def test_delete_for_ref_removes_only_that_ref(ledger):
    await ledger.record(42, RefKind.TASK, 1, 30)
    await ledger.record(42, RefKind.TASK, 1, -30)
    await ledger.record(42, RefKind.TASK, 2, 15)
    await ledger.record(42, RefKind.HABIT, 1, 10)

    deleted = await ledger.delete_for_ref(RefKind.TASK, 1)

    assert deleted == 2
    remaining = await ledger.history(42)
    assert {(e.ref_kind, e.ref_id) for e in remaining} == {(RefKind.TASK, 2), (RefKind.HABIT, 1)}


@pytest.mark.asyncio
async def test_history_is_newest_first_and_windowed(ledger, clock):
    clock.advance(days=-10)
    await ledger.record(42, RefKind.TASK, 1, 30)
    clock.advance(days=9)
    await ledger.record(42, RefKind.TASK, 2, 30)
    clock.advance(hours=2)
    await ledger.record(42, RefKind.TASK, 3, 30)
    clock.advance(days=1)

    events = await ledger.history(42, days=7)

    assert [e.ref_id for e in events] == [3, 2]
