"""
Plant Lifecycle Manager

Plants move through: planted (growth 0) -> growing -> ready -> harvested.
- Growth is added on every task/habit completion (+1 per plant)
- Stored growth is never clamped; percent and readiness are derived
  from the seed's target_growth
- Harvest pays the seed rewards prorated by growth percent (capped at 100)
  and removes the plant
"""

from typing import List
import logging

from farmfocus.db.stores import Store
from farmfocus.exceptions import NotFoundError, ValidationError
from farmfocus.models.garden import HarvestResult, Plant, PlantDetails, Seed
from farmfocus.observability.metrics import harvests_total, seeds_planted_total

logger = logging.getLogger(__name__)


def calculate_growth_percent(current_growth: int, target_growth: int) -> int:
    """
    Growth as an integer percentage of the target, capped at 100

    Returns 0 for a non-positive target.
    """
    if target_growth <= 0:
        return 0
    return min(100, current_growth * 100 // target_growth)


def is_ready_for_harvest(current_growth: int, target_growth: int) -> bool:
    return current_growth >= target_growth


def build_details(plant: Plant, seed: Seed) -> PlantDetails:
    return PlantDetails(
        plant=plant,
        seed=seed,
        growth_percent=calculate_growth_percent(plant.current_growth, seed.target_growth),
        is_ready=is_ready_for_harvest(plant.current_growth, seed.target_growth),
    )


class PlantLifecycleManager:
    """Planting, growth and harvest of a user's plants"""

    def __init__(self, store: Store):
        self.store = store

    async def _owned_plant(self, user_id: int, plant_id: int) -> Plant:
        plant = await self.store.get_plant(plant_id)
        if plant is None or plant.user_id != user_id:
            raise NotFoundError(
                message=f"Plant {plant_id} not found",
                record_type="Plant",
                record_id=plant_id,
                user_id=user_id,
            )
        return plant

    async def add_growth(self, user_id: int, plant_id: int, amount: int) -> int:
        """
        Add growth to one of the user's plants

        Args:
            user_id: Owner of the plant
            plant_id: Plant to grow
            amount: Growth to add, must be positive

        Returns:
            New stored growth (unclamped)
        """
        await self._owned_plant(user_id, plant_id)
        if amount <= 0:
            raise ValidationError(
                message="invalid amount",
                field="amount",
                value=amount,
                user_id=user_id,
                operation="add_growth",
            )
        return await self.store.add_growth(plant_id, amount)

    async def grow_all(self, user_id: int, amount: int = 1) -> int:
        """
        Grow every plant of the user

        A plant that fails to grow is logged and skipped; the others still grow.

        Returns:
            Number of plants grown
        """
        grown = 0
        for plant in await self.store.get_plants_by_user(user_id):
            try:
                await self.store.add_growth(plant.id, amount)
                grown += 1
            except Exception as e:
                logger.warning(f"Failed to grow plant {plant.id} for user {user_id}: {e}", exc_info=True)

        logger.debug(f"Grew {grown} plants for user {user_id} by {amount}")
        return grown

    async def plant_seed(self, user_id: int, seed_id: int, cell_number: int) -> PlantDetails:
        """
        Plant one seed from the user's inventory into a bed

        The seed unit is consumed and the plant created in one transaction.

        Raises:
            NotFoundError: No such bed or seed
            ValidationError: Bed locked or occupied, or no seeds left
        """
        seed = await self.store.get_seed(seed_id)
        if seed is None:
            raise NotFoundError(
                message=f"Seed {seed_id} not found",
                record_type="Seed",
                record_id=seed_id,
                user_id=user_id,
            )

        async with self.store.transaction():
            bed = await self.store.get_bed_by_cell(user_id, cell_number)
            if bed is None:
                raise NotFoundError(
                    message=f"Bed not found for cell {cell_number}",
                    record_type="Bed",
                    record_id=cell_number,
                    user_id=user_id,
                )
            if bed.is_locked:
                raise ValidationError(
                    message="bed is locked",
                    field="cell_number",
                    value=cell_number,
                    user_id=user_id,
                    operation="plant_seed",
                )
            if await self.store.get_plant_by_bed(bed.id) is not None:
                raise ValidationError(
                    message="bed is already occupied",
                    field="cell_number",
                    value=cell_number,
                    user_id=user_id,
                    operation="plant_seed",
                )
            if not await self.store.take_seed(user_id, seed_id):
                raise ValidationError(
                    message="not enough seeds",
                    field="seed_id",
                    value=seed_id,
                    user_id=user_id,
                    operation="plant_seed",
                )

            plant = await self.store.create_plant(
                Plant(user_id=user_id, seed_id=seed_id, bed_id=bed.id, current_growth=0)
            )

        seeds_planted_total.labels(seed=seed.name).inc()
        logger.info(f"User {user_id} planted {seed.name} in cell {cell_number} (plant {plant.id})")
        return build_details(plant, seed)

    async def harvest(self, user_id: int, plant_id: int) -> HarvestResult:
        """
        Harvest a ready plant

        Credits gold and XP prorated by growth percent, counts the harvest
        and removes the plant, all in one transaction.

        Raises:
            NotFoundError: Missing or foreign plant
            ValidationError: Plant has not reached its target growth
        """
        async with self.store.transaction():
            await self._owned_plant(user_id, plant_id)
            joined = await self.store.get_plant_with_seed(plant_id)
            if joined is None:
                raise NotFoundError(
                    message=f"Seed of plant {plant_id} not found",
                    record_type="Seed",
                    record_id=plant_id,
                    user_id=user_id,
                )
            plant, seed = joined

            if not is_ready_for_harvest(plant.current_growth, seed.target_growth):
                raise ValidationError(
                    message="plant is not ready for harvest",
                    field="current_growth",
                    value=plant.current_growth,
                    user_id=user_id,
                    operation="harvest",
                )

            percent = calculate_growth_percent(plant.current_growth, seed.target_growth)
            gold_earned = seed.gold_reward * percent // 100
            xp_earned = seed.xp_reward * percent // 100

            if gold_earned > 0:
                await self.store.add_gold(user_id, gold_earned)
            if xp_earned > 0:
                await self.store.add_experience(user_id, xp_earned)
            await self.store.increment_plants_harvested(user_id)
            await self.store.delete_plant(plant_id)

        harvests_total.labels(seed=seed.name).inc()
        logger.info(f"User {user_id} harvested {seed.name} (plant {plant_id}): +{gold_earned} gold, +{xp_earned} XP")

        return HarvestResult(
            plant_id=plant_id,
            seed_id=seed.id,
            growth_percent=percent,
            gold_earned=gold_earned,
            xp_earned=xp_earned,
        )

    async def plant_details(self, user_id: int) -> List[PlantDetails]:
        """All of the user's plants with seed data, growth percent and readiness"""
        seeds = {s.id: s for s in await self.store.list_seeds()}
        details = []
        for plant in await self.store.get_plants_by_user(user_id):
            seed = seeds.get(plant.seed_id)
            if seed is None:
                logger.warning(f"Plant {plant.id} references unknown seed {plant.seed_id}")
                continue
            details.append(build_details(plant, seed))
        return details

    async def ready_for_harvest(self, user_id: int) -> List[PlantDetails]:
        return [d for d in await self.plant_details(user_id) if d.is_ready]

    async def growing(self, user_id: int) -> List[PlantDetails]:
        return [d for d in await self.plant_details(user_id) if not d.is_ready]
