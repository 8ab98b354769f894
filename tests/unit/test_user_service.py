"""Unit tests for UserService (farmfocus/services/user_service.py)"""
import pytest
from unittest.mock import AsyncMock

from farmfocus.exceptions import NotFoundError, ValidationError
from farmfocus.models.garden import WHEAT_SEED_ID
from farmfocus.services.shop_service import SHOP_CATALOG
from farmfocus.services.user_service import STARTER_SEED_QUANTITY


@pytest.fixture
def users(container):
    return container.user_service


# ============================================================================
# Onboarding Tests
# ============================================================================

@pytest.mark.asyncio
async def test_onboard_creates_starting_state(users, store, test_user_id):
    user = await users.onboard(test_user_id, "farmer")

    assert user.id == test_user_id
    assert user.username == "farmer"

    stat = await store.get_stat(test_user_id)
    assert stat.gold == 10
    assert stat.experience == 0
    assert stat.level == 1

    beds = await store.list_beds(test_user_id)
    assert len(beds) == 9
    assert [b.cell_number for b in beds if not b.is_locked] == [1]

    assert await store.get_seed_quantity(test_user_id, WHEAT_SEED_ID) == STARTER_SEED_QUANTITY
    assert len(await store.list_goods(test_user_id)) == len(SHOP_CATALOG)


@pytest.mark.asyncio
async def test_onboard_is_idempotent(users, store, test_user_id):
    await users.onboard(test_user_id)
    await store.add_gold(test_user_id, 5)

    await users.onboard(test_user_id)

    assert (await store.get_stat(test_user_id)).gold == 15
    assert len(await store.list_beds(test_user_id)) == 9


@pytest.mark.asyncio
async def test_onboard_failure_leaves_nothing_behind(users, store, test_user_id):
    store.create_initial_beds = AsyncMock(side_effect=RuntimeError("timeout"))

    with pytest.raises(RuntimeError):
        await users.onboard(test_user_id)

    assert await store.get_user(test_user_id) is None
    assert await store.get_stat(test_user_id) is None


@pytest.mark.asyncio
async def test_get_stat_unknown_user(users):
    with pytest.raises(NotFoundError):
        await users.get_stat(999)


# ============================================================================
# Summary Tests
# ============================================================================

@pytest.mark.asyncio
async def test_summary_of_new_player(users, onboarded_user):
    summary = await users.get_summary(onboarded_user)

    assert summary["level"]["current_level"] == 1
    assert summary["gold"] == 10
    assert summary["drought_state"] == "normal"
    assert summary["did_task_today"] is False
    assert summary["plants"] == []
    assert summary["beds"] == {"unlocked": 1, "locked": 8}
    assert summary["inventory"] == [{"seed_id": WHEAT_SEED_ID, "quantity": 10}]


@pytest.mark.asyncio
async def test_summary_after_planting_and_task(users, container, onboarded_user):
    await users.plant_seed(onboarded_user, WHEAT_SEED_ID, 1)
    task = await container.progress_service.create_task(onboarded_user, "Sweep")
    await container.progress_service.complete_task(onboarded_user, task.id)

    summary = await users.get_summary(onboarded_user)

    assert summary["did_task_today"] is True
    assert summary["experience"] == 30
    assert summary["current_streak"] == 1
    assert summary["total_tasks_completed"] == 1
    assert summary["plants"] == [
        {"plant_id": 1, "seed": "Wheat", "growth_percent": 20, "is_ready": False, "is_withered": False}
    ]
    assert summary["inventory"] == [{"seed_id": WHEAT_SEED_ID, "quantity": 9}]


# ============================================================================
# Garden Action Tests
# ============================================================================

@pytest.mark.asyncio
async def test_recover_plants_without_task_today(users, container, onboarded_user):
    await users.plant_seed(onboarded_user, WHEAT_SEED_ID, 1)
    await container.streaks.apply_drought(onboarded_user)

    with pytest.raises(ValidationError):
        await users.recover_plants(onboarded_user)


@pytest.mark.asyncio
async def test_harvest_through_user_service(users, container, store, onboarded_user):
    details = await users.plant_seed(onboarded_user, WHEAT_SEED_ID, 1)
    await container.plants.add_growth(onboarded_user, details.plant.id, 5)

    result = await users.harvest(onboarded_user, details.plant.id)

    assert result.gold_earned == 2
    assert (await store.get_stat(onboarded_user)).gold == 12
