"""
UserService - Player Lifecycle Business Logic

Handles onboarding, the dashboard summary and the garden actions a player
triggers directly (planting, recovering withered plants, harvesting).
"""

import logging
from typing import Any, Dict, List, Optional

from farmfocus import config
from farmfocus.db.stores import Store
from farmfocus.exceptions import NotFoundError
from farmfocus.gamification.ledger import ActivityLedger
from farmfocus.gamification.plant_system import PlantLifecycleManager
from farmfocus.gamification.streak_system import StreakDroughtStateMachine, drought_state
from farmfocus.gamification.xp_system import calculate_level_from_xp
from farmfocus.models.activity import RefKind
from farmfocus.models.garden import WHEAT_SEED_ID, HarvestResult, InventorySeed, PlantDetails
from farmfocus.models.progression import ProgressionStat
from farmfocus.models.user import User
from farmfocus.services.shop_service import ShopService

logger = logging.getLogger(__name__)

STARTER_SEED_QUANTITY = 10


class UserService:
    """
    Service for player lifecycle.

    Responsibilities:
    - Onboarding (stats, beds, starter seeds, shop catalog)
    - Dashboard summary
    - Planting, plant recovery and harvest
    """

    def __init__(
        self,
        store: Store,
        ledger: ActivityLedger,
        streaks: StreakDroughtStateMachine,
        plants: PlantLifecycleManager,
        shop: ShopService,
    ):
        """
        Initialize UserService.

        Args:
            store: Store implementing every store protocol
            ledger: Activity ledger (did the user complete a task today)
            streaks: Streak/drought state machine (plant recovery)
            plants: Plant lifecycle manager
            shop: Shop service (initial catalog)
        """
        self.store = store
        self.ledger = ledger
        self.streaks = streaks
        self.plants = plants
        self.shop = shop

    async def onboard(self, user_id: int, username: Optional[str] = None) -> User:
        """
        Create a player with starting gold, beds, seeds and shop stock.

        Calling it again for an existing player changes nothing.

        Args:
            user_id: Trusted id supplied by the caller
            username: Optional display name

        Returns:
            The (new or existing) user
        """
        existing = await self.store.get_user(user_id)
        if existing is not None:
            logger.info(f"User {user_id} already onboarded")
            return existing

        async with self.store.transaction():
            user = await self.store.create_user(User(id=user_id, username=username))
            await self.store.create_stat(ProgressionStat(user_id=user_id, gold=config.STARTING_GOLD))
            await self.store.create_initial_beds(user_id, config.INITIAL_BED_COUNT)
            await self.store.add_seed_quantity(user_id, WHEAT_SEED_ID, STARTER_SEED_QUANTITY)
            await self.shop.restock(user_id)

        logger.info(
            f"Onboarded user {user_id}: {config.STARTING_GOLD} gold, "
            f"{config.INITIAL_BED_COUNT} beds, {STARTER_SEED_QUANTITY} starter seeds"
        )
        return user

    async def get_stat(self, user_id: int) -> ProgressionStat:
        stat = await self.store.get_stat(user_id)
        if stat is None:
            raise NotFoundError(
                message=f"No progression stats for user {user_id}",
                record_type="ProgressionStat",
                record_id=user_id,
                user_id=user_id,
            )
        return stat

    async def get_inventory(self, user_id: int) -> List[InventorySeed]:
        """Seeds the user holds, one entry per catalog seed with a positive quantity"""
        inventory = []
        for seed in await self.store.list_seeds():
            quantity = await self.store.get_seed_quantity(user_id, seed.id)
            if quantity > 0:
                inventory.append(InventorySeed(user_id=user_id, seed_id=seed.id, quantity=quantity))
        return inventory

    async def get_summary(self, user_id: int) -> Dict[str, Any]:
        """
        Dashboard summary of a player.

        Returns:
            {
                'level': {...calculate_level_from_xp...},
                'experience': int,
                'gold': int,
                'current_streak': int,
                'longest_streak': int,
                'drought_state': str,
                'is_drought': bool,
                'did_task_today': bool,
                'total_tasks_completed': int,
                'total_plants_harvested': int,
                'plants': [{'plant_id', 'seed', 'growth_percent', 'is_ready', 'is_withered'}],
                'beds': {'unlocked': int, 'locked': int},
                'inventory': [{'seed_id', 'quantity'}]
            }
        """
        stat = await self.get_stat(user_id)
        plants = await self.plants.plant_details(user_id)
        beds = await self.store.list_beds(user_id)
        inventory = await self.get_inventory(user_id)

        return {
            "level": calculate_level_from_xp(stat.experience),
            "experience": stat.experience,
            "gold": stat.gold,
            "current_streak": stat.current_streak,
            "longest_streak": stat.longest_streak,
            "drought_state": drought_state(stat).value,
            "is_drought": stat.is_drought,
            "did_task_today": await self.ledger.has_completed_today(user_id, RefKind.TASK),
            "total_tasks_completed": stat.total_tasks_completed,
            "total_plants_harvested": stat.total_plants_harvested,
            "plants": [
                {
                    "plant_id": d.plant.id,
                    "seed": d.seed.name,
                    "growth_percent": d.growth_percent,
                    "is_ready": d.is_ready,
                    "is_withered": d.plant.is_withered,
                }
                for d in plants
            ],
            "beds": {
                "unlocked": sum(1 for b in beds if not b.is_locked),
                "locked": sum(1 for b in beds if b.is_locked),
            },
            "inventory": [{"seed_id": i.seed_id, "quantity": i.quantity} for i in inventory],
        }

    async def plant_seed(self, user_id: int, seed_id: int, cell_number: int) -> PlantDetails:
        return await self.plants.plant_seed(user_id, seed_id, cell_number)

    async def recover_plants(self, user_id: int) -> int:
        return await self.streaks.recover_plants(user_id)

    async def harvest(self, user_id: int, plant_id: int) -> HarvestResult:
        return await self.plants.harvest(user_id, plant_id)
