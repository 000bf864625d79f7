"""
Achievements Router

GET /api/achievements  — level, XP and the achievement catalogue with unlock flags
"""
from typing import Optional

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from db.database import get_db
from db.repositories import ActivityRepository
from models.schemas import AchievementsResponse, ActivityKind
from services.achievement_service import CATEGORIES, evaluate
from services.auth_service import CurrentSession, get_current_session
from services.streak_service import compute_streaks

router = APIRouter()

# Streak achievements are about logging meals day after day
STREAK_KIND = ActivityKind.meals


@router.get("", response_model=AchievementsResponse)
async def get_achievements(
    category: Optional[str] = Query(default=None),
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    if category not in (None, "All") and category not in CATEGORIES:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid category. Must be one of: All, {', '.join(CATEGORIES)}",
        )

    activity = ActivityRepository(db)
    streaks = compute_streaks(await activity.list_dates(session.user_id, STREAK_KIND.value))
    stats = {
        "current_streak": streaks.current_streak,
        "longest_streak": streaks.longest_streak,
        "total_workouts": await activity.count(session.user_id, ActivityKind.workouts.value),
        "total_meals": await activity.count(session.user_id, ActivityKind.meals.value),
    }
    return AchievementsResponse(**stats, **evaluate(stats, category))
