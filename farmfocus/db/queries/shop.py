"""Shop (good) queries"""
import logging
from typing import Optional

from farmfocus.db.queries.base import PostgresQueries
from farmfocus.models.shop import Good, GoodKind

logger = logging.getLogger(__name__)

_GOOD_COLUMNS = "id, user_id, kind, ref_id, quantity, cost, updated_at"


class ShopQueries(PostgresQueries):
    """The goods half of InventoryStore"""

    async def get_good(self, good_id: int) -> Optional[Good]:
        row = await self._fetchone(
            "get_good",
            f"SELECT {_GOOD_COLUMNS} FROM good WHERE id = %s",
            (good_id,)
        )
        return Good(**row) if row else None

    async def get_good_by_ref(self, user_id: int, kind: GoodKind, ref_id: int) -> Optional[Good]:
        row = await self._fetchone(
            "get_good_by_ref",
            f"SELECT {_GOOD_COLUMNS} FROM good WHERE user_id = %s AND kind = %s AND ref_id = %s",
            (user_id, kind.value, ref_id)
        )
        return Good(**row) if row else None

    async def list_goods(self, user_id: int) -> list[Good]:
        rows = await self._fetchall(
            "list_goods",
            f"SELECT {_GOOD_COLUMNS} FROM good WHERE user_id = %s ORDER BY id",
            (user_id,)
        )
        return [Good(**row) for row in rows]

    async def upsert_good(self, good: Good) -> Good:
        row = await self._fetchone(
            "upsert_good",
            f"""
            INSERT INTO good (user_id, kind, ref_id, quantity, cost, updated_at)
            VALUES (%s, %s, %s, %s, %s, CURRENT_TIMESTAMP)
            ON CONFLICT (user_id, kind, ref_id) DO UPDATE SET
                quantity = EXCLUDED.quantity,
                cost = EXCLUDED.cost,
                updated_at = CURRENT_TIMESTAMP
            RETURNING {_GOOD_COLUMNS}
            """,
            (good.user_id, good.kind.value, good.ref_id, good.quantity, good.cost)
        )
        return Good(**row)

    async def take_good(self, good_id: int) -> Optional[int]:
        row = await self._fetchone(
            "take_good",
            """
            UPDATE good SET quantity = quantity - 1, updated_at = CURRENT_TIMESTAMP
            WHERE id = %s AND quantity >= 1
            RETURNING quantity
            """,
            (good_id,)
        )
        return row["quantity"] if row else None
