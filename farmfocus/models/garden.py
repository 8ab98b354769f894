"""Garden models: seed catalog, beds, plants, seed inventory"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class Rarity(str, Enum):
    """Seed rarity"""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    LEGENDARY = "legendary"
    UNIQUE = "unique"


class Seed(BaseModel):
    """Catalog entry, never modified by gameplay"""
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    target_growth: int = Field(gt=0)
    gold_reward: int = Field(default=0, ge=0)
    xp_reward: int = Field(default=0, ge=0)
    rarity: Rarity = Rarity.COMMON
    level_required: int = Field(default=1, ge=1)


class Bed(BaseModel):
    """Garden cell; holds at most one plant"""
    id: Optional[int] = None
    user_id: int
    cell_number: int = Field(ge=1)
    is_locked: bool = True


class Plant(BaseModel):
    """
    A planted seed

    current_growth is stored unclamped; percent and readiness are computed
    against the seed's target_growth.
    """
    id: Optional[int] = None
    user_id: int
    seed_id: int
    bed_id: int
    current_growth: int = Field(default=0, ge=0)
    is_withered: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class InventorySeed(BaseModel):
    """Seeds a user holds and can plant"""
    user_id: int
    seed_id: int
    quantity: int = Field(default=0, ge=0)


class PlantDetails(BaseModel):
    """Plant joined with its seed plus derived growth data"""
    plant: Plant
    seed: Seed
    growth_percent: int
    is_ready: bool


class HarvestResult(BaseModel):
    """Prorated rewards credited by a harvest"""
    plant_id: int
    seed_id: int
    growth_percent: int
    gold_earned: int
    xp_earned: int


WHEAT_SEED_ID = 1
AUBERGINE_SEED_ID = 2

# Catalog shipped with every store; the PostgreSQL seed table holds the same rows
DEFAULT_SEEDS = [
    Seed(id=WHEAT_SEED_ID, name="Wheat", target_growth=5, gold_reward=2, xp_reward=5),
    Seed(
        id=AUBERGINE_SEED_ID,
        name="Aubergine",
        target_growth=10,
        gold_reward=8,
        xp_reward=15,
        rarity=Rarity.UNCOMMON,
    ),
]
