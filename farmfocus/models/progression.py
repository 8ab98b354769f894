"""Progression models (experience, gold, streaks, drought)"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from farmfocus.gamification.xp_system import (
    calculate_level,
    experience_for_next_level,
    progress_percent,
)


class ProgressionStat(BaseModel):
    """Per-user progression state, one row per user"""
    user_id: int
    experience: int = Field(default=0, ge=0)
    gold: int = Field(default=0, ge=0)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    is_drought: bool = False
    total_tasks_completed: int = Field(default=0, ge=0)
    total_plants_harvested: int = Field(default=0, ge=0)
    last_streak_date: Optional[date] = None  # day the streak was last counted
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def level(self) -> int:
        return calculate_level(self.experience)

    @property
    def experience_for_next_level(self) -> int:
        return experience_for_next_level(self.experience)

    @property
    def progress_percent(self) -> float:
        return progress_percent(self.experience)


class StreakUpdate(BaseModel):
    """Outcome of the first-completion-of-the-day check"""
    streak_incremented: bool
    current_streak: int
    longest_streak: int
    drought_cleared: bool = False
