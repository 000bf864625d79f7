"""
Streaks Router

GET  /api/streaks                  — current/longest streak for every activity kind
GET  /api/streaks/{kind}           — streaks for one kind
POST /api/streaks/{kind}/activity  — record an activity (default today), return new streaks
"""
import logging
from datetime import date
from typing import Optional

import aiosqlite
from fastapi import APIRouter, Depends

from db.database import get_db
from db.repositories import ActivityRepository
from models.schemas import ActivityCreate, ActivityKind, StreakSummary
from services.auth_service import CurrentSession, get_current_session
from services.streak_service import compute_streaks

logger = logging.getLogger("vitalog.streaks")
router = APIRouter()


async def load_streak(db: aiosqlite.Connection, user_id: str, kind: ActivityKind) -> StreakSummary:
    """Recompute a streak from the full history; nothing incremental is stored."""
    days = await ActivityRepository(db).list_dates(user_id, kind.value)
    result = compute_streaks(days)
    return StreakSummary(
        kind=kind,
        current_streak=result.current_streak,
        longest_streak=result.longest_streak,
        last_activity_date=days[0] if days else None,
    )


@router.get("", response_model=list[StreakSummary])
async def all_streaks(
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    return [await load_streak(db, session.user_id, kind) for kind in ActivityKind]


@router.get("/{kind}", response_model=StreakSummary)
async def get_streak(
    kind: ActivityKind,
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    return await load_streak(db, session.user_id, kind)


@router.post("/{kind}/activity", response_model=StreakSummary, status_code=201)
async def record_activity(
    kind: ActivityKind,
    body: Optional[ActivityCreate] = None,
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    day = (body.activity_date if body else None) or date.today()
    await ActivityRepository(db).record(session.user_id, kind.value, day)
    logger.debug("Recorded %s activity for user=%s on %s", kind.value, session.user_id, day)
    return await load_streak(db, session.user_id, kind)
