"""Garden queries: seed catalog, user seeds, beds and plants"""
import logging
from typing import Optional

from farmfocus.db.queries.base import PostgresQueries
from farmfocus.exceptions import NotFoundError
from farmfocus.models.garden import Bed, Plant, Seed

logger = logging.getLogger(__name__)

_SEED_COLUMNS = "id, name, target_growth, gold_reward, xp_reward, rarity, level_required"
_PLANT_COLUMNS = "id, user_id, seed_id, bed_id, current_growth, is_withered, created_at"
_BED_COLUMNS = "id, user_id, cell_number, is_locked"


class GardenQueries(PostgresQueries):
    """PlantStore and the seed/bed half of InventoryStore"""

    # ==========================================
    # Plants
    # ==========================================

    async def create_plant(self, plant: Plant) -> Plant:
        row = await self._fetchone(
            "create_plant",
            f"""
            INSERT INTO user_plant (user_id, seed_id, bed_id, current_growth, is_withered, created_at)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {_PLANT_COLUMNS}
            """,
            (plant.user_id, plant.seed_id, plant.bed_id, plant.current_growth, plant.is_withered, plant.created_at)
        )
        return Plant(**row)

    async def get_plant(self, plant_id: int) -> Optional[Plant]:
        row = await self._fetchone(
            "get_plant",
            f"SELECT {_PLANT_COLUMNS} FROM user_plant WHERE id = %s",
            (plant_id,)
        )
        return Plant(**row) if row else None

    async def get_plants_by_user(self, user_id: int) -> list[Plant]:
        rows = await self._fetchall(
            "get_plants_by_user",
            f"SELECT {_PLANT_COLUMNS} FROM user_plant WHERE user_id = %s ORDER BY id",
            (user_id,)
        )
        return [Plant(**row) for row in rows]

    async def get_plant_by_bed(self, bed_id: int) -> Optional[Plant]:
        row = await self._fetchone(
            "get_plant_by_bed",
            f"SELECT {_PLANT_COLUMNS} FROM user_plant WHERE bed_id = %s",
            (bed_id,)
        )
        return Plant(**row) if row else None

    async def get_plant_with_seed(self, plant_id: int) -> Optional[tuple[Plant, Seed]]:
        row = await self._fetchone(
            "get_plant_with_seed",
            """
            SELECT up.id, up.user_id, up.seed_id, up.bed_id, up.current_growth, up.is_withered, up.created_at,
                   s.name AS seed_name, s.target_growth, s.gold_reward, s.xp_reward, s.rarity, s.level_required
            FROM user_plant up
            INNER JOIN seed s ON up.seed_id = s.id
            WHERE up.id = %s
            """,
            (plant_id,)
        )
        if row is None:
            return None

        seed = Seed(
            id=row["seed_id"],
            name=row["seed_name"],
            target_growth=row["target_growth"],
            gold_reward=row["gold_reward"],
            xp_reward=row["xp_reward"],
            rarity=row["rarity"],
            level_required=row["level_required"],
        )
        plant = Plant(
            id=row["id"],
            user_id=row["user_id"],
            seed_id=row["seed_id"],
            bed_id=row["bed_id"],
            current_growth=row["current_growth"],
            is_withered=row["is_withered"],
            created_at=row["created_at"],
        )
        return plant, seed

    async def add_growth(self, plant_id: int, amount: int) -> int:
        row = await self._fetchone(
            "add_growth",
            "UPDATE user_plant SET current_growth = current_growth + %s WHERE id = %s RETURNING current_growth",
            (amount, plant_id)
        )
        if row is None:
            raise NotFoundError(message=f"Plant {plant_id} not found", record_type="Plant", record_id=plant_id)
        return row["current_growth"]

    async def mark_withered(self, plant_id: int) -> None:
        await self._execute(
            "mark_withered",
            "UPDATE user_plant SET is_withered = TRUE WHERE id = %s",
            (plant_id,)
        )

    async def reset_withered(self, user_id: int) -> int:
        return await self._execute(
            "reset_withered",
            "UPDATE user_plant SET is_withered = FALSE WHERE user_id = %s AND is_withered = TRUE",
            (user_id,)
        )

    async def delete_plant(self, plant_id: int) -> None:
        await self._execute("delete_plant", "DELETE FROM user_plant WHERE id = %s", (plant_id,))

    # ==========================================
    # Seed catalog and user seeds
    # ==========================================

    async def get_seed(self, seed_id: int) -> Optional[Seed]:
        row = await self._fetchone(
            "get_seed",
            f"SELECT {_SEED_COLUMNS} FROM seed WHERE id = %s",
            (seed_id,)
        )
        return Seed(**row) if row else None

    async def list_seeds(self) -> list[Seed]:
        rows = await self._fetchall("list_seeds", f"SELECT {_SEED_COLUMNS} FROM seed ORDER BY id")
        return [Seed(**row) for row in rows]

    async def get_seed_quantity(self, user_id: int, seed_id: int) -> int:
        row = await self._fetchone(
            "get_seed_quantity",
            "SELECT quantity FROM user_seed WHERE user_id = %s AND seed_id = %s",
            (user_id, seed_id)
        )
        return row["quantity"] if row else 0

    async def add_seed_quantity(self, user_id: int, seed_id: int, amount: int) -> int:
        row = await self._fetchone(
            "add_seed_quantity",
            """
            INSERT INTO user_seed (user_id, seed_id, quantity)
            VALUES (%s, %s, GREATEST(%s, 0))
            ON CONFLICT (user_id, seed_id)
            DO UPDATE SET quantity = GREATEST(user_seed.quantity + %s, 0)
            RETURNING quantity
            """,
            (user_id, seed_id, amount, amount)
        )
        return row["quantity"]

    async def take_seed(self, user_id: int, seed_id: int) -> bool:
        updated = await self._execute(
            "take_seed",
            """
            UPDATE user_seed SET quantity = quantity - 1
            WHERE user_id = %s AND seed_id = %s AND quantity >= 1
            """,
            (user_id, seed_id)
        )
        return updated == 1

    # ==========================================
    # Beds
    # ==========================================

    async def create_initial_beds(self, user_id: int, count: int) -> None:
        await self._execute(
            "create_initial_beds",
            """
            INSERT INTO bed (user_id, cell_number, is_locked)
            SELECT %s, cell, cell > 1 FROM generate_series(1, %s) AS cell
            ON CONFLICT (user_id, cell_number) DO NOTHING
            """,
            (user_id, count)
        )

    async def list_beds(self, user_id: int) -> list[Bed]:
        rows = await self._fetchall(
            "list_beds",
            f"SELECT {_BED_COLUMNS} FROM bed WHERE user_id = %s ORDER BY cell_number",
            (user_id,)
        )
        return [Bed(**row) for row in rows]

    async def get_bed_by_cell(self, user_id: int, cell_number: int) -> Optional[Bed]:
        row = await self._fetchone(
            "get_bed_by_cell",
            f"SELECT {_BED_COLUMNS} FROM bed WHERE user_id = %s AND cell_number = %s",
            (user_id, cell_number)
        )
        return Bed(**row) if row else None

    async def unlock_next_bed(self, user_id: int) -> Optional[Bed]:
        row = await self._fetchone(
            "unlock_next_bed",
            f"""
            UPDATE bed SET is_locked = FALSE
            WHERE id = (
                SELECT id FROM bed
                WHERE user_id = %s AND is_locked = TRUE
                ORDER BY cell_number
                LIMIT 1
                FOR UPDATE SKIP LOCKED
            )
            RETURNING {_BED_COLUMNS}
            """,
            (user_id,)
        )
        return Bed(**row) if row else None
