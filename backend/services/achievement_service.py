"""
Achievement Service

Static achievement catalogue plus XP / level arithmetic.  Unlocks are
derived from the user's stats every time (nothing is stored): a streak
achievement stays unlocked only while the current streak holds.
"""
from typing import Optional

XP_PER_LEVEL = 1000

CATEGORIES = ["Streaks", "Fitness", "Nutrition"]

# Each entry unlocks when stats[metric] >= threshold.
ACHIEVEMENTS: list[dict] = [
    {"id": "streak_3",   "category": "Streaks",   "name": "Getting Started",
     "description": "Log your meals for 3 days in a row", "icon": "🔥",
     "rarity": "common", "xp": 50,  "metric": "current_streak", "threshold": 3},
    {"id": "streak_7",   "category": "Streaks",   "name": "Week Warrior",
     "description": "Maintain a 7-day logging streak", "icon": "🔥",
     "rarity": "common", "xp": 100, "metric": "current_streak", "threshold": 7},
    {"id": "streak_30",  "category": "Streaks",   "name": "Monthly Master",
     "description": "Achieve a 30-day streak", "icon": "🔥",
     "rarity": "rare",   "xp": 500, "metric": "current_streak", "threshold": 30},
    {"id": "workout_1",  "category": "Fitness",   "name": "First Rep",
     "description": "Complete your first workout", "icon": "💪",
     "rarity": "common", "xp": 25,  "metric": "total_workouts", "threshold": 1},
    {"id": "workout_10", "category": "Fitness",   "name": "Getting Strong",
     "description": "Complete 10 workouts", "icon": "🏋️",
     "rarity": "common", "xp": 150, "metric": "total_workouts", "threshold": 10},
    {"id": "workout_50", "category": "Fitness",   "name": "Iron Will",
     "description": "Complete 50 workouts", "icon": "⚡",
     "rarity": "rare",   "xp": 750, "metric": "total_workouts", "threshold": 50},
    {"id": "meal_10",    "category": "Nutrition", "name": "Meal Logger",
     "description": "Log 10 meals", "icon": "🍎",
     "rarity": "common", "xp": 50,  "metric": "total_meals", "threshold": 10},
    {"id": "meal_50",    "category": "Nutrition", "name": "Nutrition Tracker",
     "description": "Log 50 meals", "icon": "🥗",
     "rarity": "common", "xp": 200, "metric": "total_meals", "threshold": 50},
    {"id": "meal_100",   "category": "Nutrition", "name": "Meal Prep Master",
     "description": "Log 100 meals", "icon": "🍱",
     "rarity": "rare",   "xp": 400, "metric": "total_meals", "threshold": 100},
]


def is_unlocked(achievement: dict, stats: dict) -> bool:
    return stats.get(achievement["metric"], 0) >= achievement["threshold"]


def level_for_xp(total_xp: int) -> tuple[int, int]:
    """Return (level, xp into the current level).  Level 1 starts at 0 XP."""
    return total_xp // XP_PER_LEVEL + 1, total_xp % XP_PER_LEVEL


def evaluate(stats: dict, category: Optional[str] = None) -> dict:
    """
    Score a user's stats against the catalogue.

    `stats` holds current_streak, longest_streak, total_workouts, total_meals.
    XP and level always count every achievement; `category` only filters the
    returned list.
    """
    total_xp = sum(a["xp"] for a in ACHIEVEMENTS if is_unlocked(a, stats))
    level, xp = level_for_xp(total_xp)

    listed = [a for a in ACHIEVEMENTS if category in (None, "All") or a["category"] == category]
    return {
        "level": level,
        "xp": xp,
        "xp_to_next_level": XP_PER_LEVEL,
        "total_xp": total_xp,
        "unlocked_count": sum(1 for a in ACHIEVEMENTS if is_unlocked(a, stats)),
        "achievements": [
            {**{k: v for k, v in a.items() if k != "metric"}, "unlocked": is_unlocked(a, stats)}
            for a in listed
        ],
    }
