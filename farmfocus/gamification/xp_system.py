"""
XP and Leveling System

Pure functions for the experience curve and XP reward formulas.

Leveling Curve (linear):
- Every level costs 100 XP: level = experience // 100 + 1
- Level 1 at 0 XP, capped at level 100

XP Award Rules:
- Base XP by difficulty: trifle 10, easy 15, normal 30, hard 50
- Tasks and habits: +10% of base per level above 1
- Habits with count > 1: logarithmic bonus, never less than +10%
"""

from typing import Any, Dict
import math

from farmfocus.exceptions import ValidationError

XP_PER_LEVEL = 100
MAX_LEVEL = 100

# Keyed by Difficulty value
BASE_XP: Dict[str, int] = {
    "trifle": 10,
    "easy": 15,
    "normal": 30,
    "hard": 50,
}

LEVEL_BONUS_PER_LEVEL = 0.1
HABIT_COUNT_FACTOR = 0.3
HABIT_MIN_BONUS = 0.1


def calculate_level(experience: int) -> int:
    """Level for a total amount of experience (1..MAX_LEVEL)"""
    if experience <= 0:
        return 1
    return min(experience // XP_PER_LEVEL + 1, MAX_LEVEL)


def experience_for_level(level: int) -> int:
    """Total experience at which a level starts"""
    if level <= 1:
        return 0
    return (min(level, MAX_LEVEL) - 1) * XP_PER_LEVEL


def experience_for_next_level(experience: int) -> int:
    """Experience still needed to reach the next level, 0 at max level"""
    level = calculate_level(experience)
    if level >= MAX_LEVEL:
        return 0
    return experience_for_level(level + 1) - max(experience, 0)


def progress_percent(experience: int) -> float:
    """Progress through the current level in percent, 100 at max level"""
    level = calculate_level(experience)
    if level >= MAX_LEVEL:
        return 100.0
    floor = experience_for_level(level)
    ceiling = experience_for_level(level + 1)
    return (max(experience, 0) - floor) / (ceiling - floor) * 100


def calculate_level_from_xp(experience: int) -> Dict[str, Any]:
    """
    Calculate level summary from total XP

    Returns:
        {
            'current_level': int,
            'is_max_level': bool,
            'level_floor_xp': int,
            'next_level_xp': int | None,
            'xp_to_next_level': int,
            'progress_percent': float
        }
    """
    level = calculate_level(experience)
    is_max = level >= MAX_LEVEL
    return {
        "current_level": level,
        "is_max_level": is_max,
        "level_floor_xp": experience_for_level(level),
        "next_level_xp": None if is_max else experience_for_level(level + 1),
        "xp_to_next_level": experience_for_next_level(experience),
        "progress_percent": progress_percent(experience),
    }


def get_base_xp(difficulty: str) -> int:
    """Base XP for a difficulty tier"""
    try:
        return BASE_XP[getattr(difficulty, "value", difficulty)]
    except KeyError:
        raise ValidationError(message=f"unknown difficulty {difficulty!r}", field="difficulty", value=difficulty)


def calculate_task_xp(base_xp: int, level: int) -> int:
    """
    XP for completing a task or habit at the given level

    base * (1 + (level - 1) * 0.1), rounded half up.
    """
    multiplier = 1.0 + (max(level, 1) - 1) * LEVEL_BONUS_PER_LEVEL
    return math.floor(base_xp * multiplier + 0.5)


def calculate_habit_xp(base_xp: int, count: int) -> int:
    """
    Base XP of a habit given how many times it has been done

    Args:
        base_xp: Base XP of the habit's difficulty
        count: Completion count

    Returns:
        base_xp when count <= 1, otherwise
        base_xp + floor(base_xp * max(log2(count) * 0.3, 0.1))
    """
    if count <= 1:
        return base_xp
    factor = max(math.log2(count) * HABIT_COUNT_FACTOR, HABIT_MIN_BONUS)
    return base_xp + math.floor(base_xp * factor)
