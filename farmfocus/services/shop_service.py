"""
ShopService - Shop Business Logic

Handles the purchase of goods and the daily restock of each user's shop.

A purchase debits gold, decrements stock and grants the item inside one
store transaction: any failure rolls all three back together.
"""

import logging
from typing import Any, Dict, List, Union, assert_never

from farmfocus.db.stores import Store
from farmfocus.exceptions import ConflictError, FarmFocusError, NotFoundError, ValidationError
from farmfocus.models.garden import AUBERGINE_SEED_ID, WHEAT_SEED_ID, Bed, Seed
from farmfocus.models.shop import Good, GoodKind, PurchaseResult
from farmfocus.observability.metrics import gold_spent_total, purchases_total

logger = logging.getLogger(__name__)

# Stock every user's shop is reset to (onboarding and daily restock)
SHOP_CATALOG: List[Dict[str, Any]] = [
    {"kind": GoodKind.SEED, "ref_id": AUBERGINE_SEED_ID, "quantity": 5, "cost": 4},
    {"kind": GoodKind.SEED, "ref_id": WHEAT_SEED_ID, "quantity": 10, "cost": 1},
    {"kind": GoodKind.BED, "ref_id": 0, "quantity": 1, "cost": 30},
]


class ShopService:
    """
    Service for the shop.

    Responsibilities:
    - Purchasing one unit of a good
    - Restocking a user's goods to the catalog
    - Listing a user's goods
    """

    def __init__(self, store: Store):
        """
        Initialize ShopService.

        Args:
            store: Store implementing every store protocol
        """
        self.store = store
        logger.debug("ShopService initialized")

    async def purchase(self, user_id: int, good_id: int) -> PurchaseResult:
        """
        Buy one unit of a good.

        Args:
            user_id: Buyer
            good_id: Good to buy

        Returns:
            PurchaseResult with the granted item, remaining stock and gold

        Raises:
            NotFoundError: Good missing or owned by another user
            ValidationError: Out of stock, not enough gold, nothing to grant
            ConflictError: A concurrent purchase took the gold or the stock first
        """
        kind_label = "unknown"
        try:
            async with self.store.transaction():
                good = await self._load_good(user_id, good_id)
                kind_label = good.kind.value

                stat = await self.store.get_stat(user_id)
                if stat is None:
                    raise NotFoundError(
                        message=f"No progression stats for user {user_id}",
                        record_type="ProgressionStat",
                        record_id=user_id,
                        user_id=user_id,
                    )
                if stat.gold < good.cost:
                    raise ValidationError(
                        message="not enough gold",
                        field="gold",
                        value=stat.gold,
                        user_id=user_id,
                        operation="purchase",
                    )

                gold_left = await self.store.spend_gold(user_id, good.cost)
                if gold_left is None:
                    raise ConflictError(
                        message="gold changed during purchase",
                        user_id=user_id,
                        operation="purchase",
                    )

                remaining = await self.store.take_good(good.id)
                if remaining is None:
                    raise ConflictError(
                        message="stock changed during purchase",
                        user_id=user_id,
                        operation="purchase",
                    )

                item = await self._grant(user_id, good)

        except FarmFocusError:
            purchases_total.labels(kind=kind_label, status="rejected").inc()
            raise
        except Exception:
            purchases_total.labels(kind=kind_label, status="error").inc()
            raise

        purchases_total.labels(kind=kind_label, status="success").inc()
        gold_spent_total.inc(good.cost)
        logger.info(
            f"User {user_id} bought {good.kind.value} {good.ref_id} for {good.cost} gold "
            f"({remaining} left in stock, {gold_left} gold left)"
        )

        return PurchaseResult(
            good_id=good.id,
            kind=good.kind,
            ref_id=good.ref_id,
            total_cost=good.cost,
            remaining=remaining,
            gold_left=gold_left,
            item=item,
        )

    async def _load_good(self, user_id: int, good_id: int) -> Good:
        good = await self.store.get_good(good_id)
        if good is None or good.user_id != user_id:
            raise NotFoundError(
                message=f"Good {good_id} not found",
                record_type="Good",
                record_id=good_id,
                user_id=user_id,
            )
        if good.quantity < 1:
            raise ValidationError(
                message="good is out of stock",
                field="quantity",
                value=good.quantity,
                user_id=user_id,
                operation="purchase",
            )
        return good

    async def _grant(self, user_id: int, good: Good) -> Union[Seed, Bed]:
        """Hand the purchased item to the user"""
        match good.kind:
            case GoodKind.SEED:
                seed = await self.store.get_seed(good.ref_id)
                if seed is None:
                    raise NotFoundError(
                        message=f"Seed {good.ref_id} not found",
                        record_type="Seed",
                        record_id=good.ref_id,
                        user_id=user_id,
                    )
                await self.store.add_seed_quantity(user_id, seed.id, 1)
                return seed

            case GoodKind.BED:
                bed = await self.store.unlock_next_bed(user_id)
                if bed is None:
                    raise ValidationError(
                        message="no locked beds available",
                        field="kind",
                        value=good.kind.value,
                        user_id=user_id,
                        operation="purchase",
                    )
                return bed

            case GoodKind.TOOL | GoodKind.FERTILIZER:
                raise ValidationError(
                    message="unsupported good type",
                    field="kind",
                    value=good.kind.value,
                    user_id=user_id,
                    operation="purchase",
                )

            case _:
                assert_never(good.kind)

    async def restock(self, user_id: int) -> List[Good]:
        """
        Reset the user's goods to the catalog quantities and prices.

        Returns:
            The restocked goods
        """
        goods = []
        async with self.store.transaction():
            for entry in SHOP_CATALOG:
                goods.append(await self.store.upsert_good(Good(user_id=user_id, **entry)))

        logger.info(f"Restocked {len(goods)} goods for user {user_id}")
        return goods

    async def list_goods(self, user_id: int) -> List[Good]:
        return await self.store.list_goods(user_id)
