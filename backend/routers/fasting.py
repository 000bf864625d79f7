"""
Fasting Router

PUT /api/fasting/plan    — set the active eating window
GET /api/fasting/status  — fasting/eating phase right now + fasting streak
"""
from datetime import datetime

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from db.database import get_db
from db.repositories import ActivityRepository, FastingPlanRepository
from models.schemas import ActivityKind, FastingPlan, FastingPlanIn, FastingStatusResponse
from services.auth_service import CurrentSession, get_current_session
from services.fasting_service import fasting_status, parse_time
from services.streak_service import compute_streaks

router = APIRouter()


@router.put("/plan", response_model=FastingPlan)
async def set_plan(
    body: FastingPlanIn,
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    if parse_time(body.eating_window_start) == parse_time(body.eating_window_end):
        raise HTTPException(status_code=422, detail="Eating window start and end must differ")

    await FastingPlanRepository(db).upsert(
        session.user_id, body.plan_type, body.eating_window_start, body.eating_window_end,
    )
    return FastingPlan(**body.model_dump(), is_active=True)


@router.get("/status", response_model=FastingStatusResponse)
async def get_status(
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    row = await FastingPlanRepository(db).get_active(session.user_id)
    if not row:
        raise HTTPException(status_code=404, detail="No fasting plan set up yet")

    status = fasting_status(row["eating_window_start"], row["eating_window_end"], datetime.now())
    days = await ActivityRepository(db).list_dates(session.user_id, ActivityKind.fasting.value)
    streaks = compute_streaks(days)

    return FastingStatusResponse(
        plan=FastingPlan(
            plan_type=row["plan_type"],
            eating_window_start=row["eating_window_start"],
            eating_window_end=row["eating_window_end"],
            is_active=bool(row["is_active"]),
        ),
        is_fasting=status.is_fasting,
        elapsed_minutes=status.elapsed_minutes,
        total_minutes=status.total_minutes,
        remaining_minutes=status.remaining_minutes,
        progress=status.progress,
        current_streak=streaks.current_streak,
        longest_streak=streaks.longest_streak,
    )
