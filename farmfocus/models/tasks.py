"""Task and habit models"""
from enum import Enum
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    """Difficulty tiers, each with a fixed base XP"""
    TRIFLE = "trifle"
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"


class HabitPeriod(str, Enum):
    """Recurrence period of a habit, anchored on its start date"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Task(BaseModel):
    """One-off task, optionally scheduled for a date"""
    id: Optional[int] = None
    user_id: int
    title: str
    description: Optional[str] = None
    difficulty: Difficulty = Difficulty.NORMAL
    due_date: Optional[date] = None
    done: bool = False
    xp_reward: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)


class Habit(BaseModel):
    """Recurring habit"""
    id: Optional[int] = None
    user_id: int
    title: str
    description: Optional[str] = None
    difficulty: Difficulty = Difficulty.NORMAL
    done: bool = False
    count: int = Field(default=0, ge=0)
    period: HabitPeriod = HabitPeriod.DAY
    every: int = Field(default=1, ge=1)
    start_date: date
    xp_reward: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)


class CompletionResult(BaseModel):
    """Returned to the caller after a task or habit completion"""
    ref_id: int
    xp_earned: int
    plants_grown: int
    current_streak: int
    streak_incremented: bool
    drought_cleared: bool = False
    leveled_up: bool = False
    new_level: int = 1


class UndoResult(BaseModel):
    """Returned after undoing a completion; xp_earned is negative"""
    ref_id: int
    xp_earned: int
