"""
Gamification system for FarmFocus

This package implements the progression engine:
- XP and leveling (xp_system)
- Activity ledger of reward-granting events (ledger)
- Streak and drought state machine (streak_system)
- Plant growth, withering and harvest (plant_system)

Only the pure leveling functions are re-exported here; the stateful
components are imported from their modules.
"""

from farmfocus.gamification.xp_system import (
    calculate_level,
    calculate_level_from_xp,
    experience_for_next_level,
    progress_percent,
    get_base_xp,
    calculate_task_xp,
    calculate_habit_xp,
)

__all__ = [
    "calculate_level",
    "calculate_level_from_xp",
    "experience_for_next_level",
    "progress_percent",
    "get_base_xp",
    "calculate_task_xp",
    "calculate_habit_xp",
]
