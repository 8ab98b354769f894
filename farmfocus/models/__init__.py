"""Pydantic models shared by the engine, its stores and its callers"""

from farmfocus.models.activity import ActivityEvent, RefKind
from farmfocus.models.garden import Bed, HarvestResult, InventorySeed, Plant, PlantDetails, Rarity, Seed
from farmfocus.models.progression import ProgressionStat, StreakUpdate
from farmfocus.models.shop import Good, GoodKind, PurchaseResult
from farmfocus.models.tasks import CompletionResult, Difficulty, Habit, HabitPeriod, Task, UndoResult
from farmfocus.models.user import User

__all__ = [
    "ActivityEvent",
    "RefKind",
    "Bed",
    "HarvestResult",
    "InventorySeed",
    "Plant",
    "PlantDetails",
    "Rarity",
    "Seed",
    "ProgressionStat",
    "StreakUpdate",
    "Good",
    "GoodKind",
    "PurchaseResult",
    "CompletionResult",
    "Difficulty",
    "Habit",
    "HabitPeriod",
    "Task",
    "UndoResult",
    "User",
]
