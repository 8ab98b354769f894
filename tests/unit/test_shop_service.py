"""Unit tests for ShopService (farmfocus/services/shop_service.py)"""
import pytest
from unittest.mock import AsyncMock
from prometheus_client import REGISTRY

from farmfocus.exceptions import ConflictError, NotFoundError, ValidationError
from farmfocus.models.garden import AUBERGINE_SEED_ID, WHEAT_SEED_ID
from farmfocus.models.progression import ProgressionStat
from farmfocus.models.shop import Good, GoodKind
from farmfocus.services.shop_service import SHOP_CATALOG, ShopService


USER_ID = 42


@pytest.fixture
def shop(store):
    return ShopService(store)


@pytest.fixture
async def customer(store, shop):
    """User with 10 gold, 3 beds (cell 1 unlocked) and a restocked shop"""
    await store.create_stat(ProgressionStat(user_id=USER_ID, gold=10))
    await store.create_initial_beds(USER_ID, 3)
    await shop.restock(USER_ID)
    return USER_ID


async def _good(store, kind, ref_id):
    return await store.get_good_by_ref(USER_ID, kind, ref_id)


def _purchases(kind, status):
    return REGISTRY.get_sample_value("purchases_total", {"kind": kind, "status": status}) or 0.0


# ============================================================================
# Restock Tests
# ============================================================================

@pytest.mark.asyncio
async def test_restock_creates_catalog(shop, customer):
    goods = await shop.list_goods(USER_ID)

    assert len(goods) == len(SHOP_CATALOG)
    aubergine = next(g for g in goods if g.kind == GoodKind.SEED and g.ref_id == AUBERGINE_SEED_ID)
    assert aubergine.quantity == 5
    assert aubergine.cost == 4


@pytest.mark.asyncio
async def test_restock_resets_quantities_without_duplicates(shop, store, customer):
    wheat = await _good(store, GoodKind.SEED, WHEAT_SEED_ID)
    await shop.purchase(USER_ID, wheat.id)

    await shop.restock(USER_ID)

    goods = await shop.list_goods(USER_ID)
    assert len(goods) == len(SHOP_CATALOG)
    assert (await store.get_good(wheat.id)).quantity == 10


# ============================================================================
# Purchase Tests
# ============================================================================

@pytest.mark.asyncio
async def test_purchase_seed(shop, store, customer):
    good = await _good(store, GoodKind.SEED, AUBERGINE_SEED_ID)
    before = _purchases("seed", "success")

    result = await shop.purchase(USER_ID, good.id)

    assert result.kind == GoodKind.SEED
    assert result.total_cost == 4
    assert result.gold_left == 6
    assert result.remaining == 4
    assert result.item.name == "Aubergine"
    assert await store.get_seed_quantity(USER_ID, AUBERGINE_SEED_ID) == 1
    assert _purchases("seed", "success") == before + 1


@pytest.mark.asyncio
async def test_purchase_bed_unlocks_lowest_locked_cell(shop, store, customer):
    await store.add_gold(USER_ID, 30)
    good = await _good(store, GoodKind.BED, 0)

    result = await shop.purchase(USER_ID, good.id)

    assert result.item.cell_number == 2
    assert result.item.is_locked is False
    assert result.gold_left == 10


@pytest.mark.asyncio
async def test_purchase_not_enough_gold(shop, store, customer):
    good = await _good(store, GoodKind.BED, 0)
    before = _purchases("bed", "rejected")

    with pytest.raises(ValidationError) as exc_info:
        await shop.purchase(USER_ID, good.id)

    assert exc_info.value.message == "not enough gold"
    assert (await store.get_stat(USER_ID)).gold == 10
    assert (await store.get_good(good.id)).quantity == 1
    assert _purchases("bed", "rejected") == before + 1


@pytest.mark.asyncio
async def test_purchase_out_of_stock(shop, store, customer):
    await store.add_gold(USER_ID, 100)
    good = await _good(store, GoodKind.BED, 0)
    await shop.purchase(USER_ID, good.id)

    with pytest.raises(ValidationError) as exc_info:
        await shop.purchase(USER_ID, good.id)

    assert exc_info.value.message == "good is out of stock"


@pytest.mark.asyncio
async def test_purchase_foreign_good(shop, store, customer):
    foreign = await store.upsert_good(Good(user_id=7, kind=GoodKind.SEED, ref_id=WHEAT_SEED_ID, quantity=3, cost=1))

    with pytest.raises(NotFoundError):
        await shop.purchase(USER_ID, foreign.id)


@pytest.mark.asyncio
async def test_purchase_missing_good(shop, customer):
    with pytest.raises(NotFoundError):
        await shop.purchase(USER_ID, 999)


@pytest.mark.asyncio
async def test_purchase_bed_without_locked_beds_rolls_back(shop, store, customer):
    """Test gold and stock are restored when the bed cannot be granted"""
    await store.add_gold(USER_ID, 100)
    await store.unlock_next_bed(USER_ID)
    await store.unlock_next_bed(USER_ID)
    good = await _good(store, GoodKind.BED, 0)

    with pytest.raises(ValidationError) as exc_info:
        await shop.purchase(USER_ID, good.id)

    assert exc_info.value.message == "no locked beds available"
    assert (await store.get_stat(USER_ID)).gold == 110
    assert (await store.get_good(good.id)).quantity == 1


@pytest.mark.asyncio
async def test_purchase_unsupported_kind_rolls_back(shop, store, customer):
    tool = await store.upsert_good(Good(user_id=USER_ID, kind=GoodKind.TOOL, ref_id=1, quantity=2, cost=3))

    with pytest.raises(ValidationError) as exc_info:
        await shop.purchase(USER_ID, tool.id)

    assert exc_info.value.message == "unsupported good type"
    assert (await store.get_stat(USER_ID)).gold == 10
    assert (await store.get_good(tool.id)).quantity == 2


@pytest.mark.asyncio
async def test_purchase_lost_gold_race(shop, store, customer):
    """Test the guarded debit failing surfaces as a conflict"""
    good = await _good(store, GoodKind.SEED, WHEAT_SEED_ID)
    store.spend_gold = AsyncMock(return_value=None)

    with pytest.raises(ConflictError) as exc_info:
        await shop.purchase(USER_ID, good.id)

    assert exc_info.value.message == "gold changed during purchase"
    assert (await store.get_good(good.id)).quantity == 10


@pytest.mark.asyncio
async def test_purchase_lost_stock_race_restores_gold(shop, store, customer):
    good = await _good(store, GoodKind.SEED, WHEAT_SEED_ID)
    store.take_good = AsyncMock(return_value=None)

    with pytest.raises(ConflictError):
        await shop.purchase(USER_ID, good.id)

    assert (await store.get_stat(USER_ID)).gold == 10


@pytest.mark.asyncio
async def test_purchase_store_failure_counts_error(shop, store, customer):
    good = await _good(store, GoodKind.SEED, WHEAT_SEED_ID)
    store.add_seed_quantity = AsyncMock(side_effect=RuntimeError("connection reset"))
    before = _purchases("seed", "error")

    with pytest.raises(RuntimeError):
        await shop.purchase(USER_ID, good.id)

    assert _purchases("seed", "error") == before + 1
    assert (await store.get_stat(USER_ID)).gold == 10
