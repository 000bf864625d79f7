"""
Shopping Lists Router

POST /api/shopping-lists         — record a shopping list's estimated cost
GET  /api/shopping-lists/active  — the estimate the next receipt scan compares against
"""
import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from db.database import get_db
from db.repositories import ShoppingListRepository
from models.schemas import ShoppingList, ShoppingListCreate
from services.auth_service import CurrentSession, get_current_session

router = APIRouter()


def _to_model(row) -> ShoppingList:
    return ShoppingList(
        id=row["id"],
        name=row["name"],
        total_estimated_cost=row["total_estimated_cost"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"] or "",
    )


@router.post("", response_model=ShoppingList, status_code=201)
async def create_shopping_list(
    body: ShoppingListCreate,
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    repo = ShoppingListRepository(db)
    name = body.name.strip() or "Shopping List"
    await repo.create(session.user_id, name, round(body.total_estimated_cost, 2))
    return _to_model(await repo.get_active(session.user_id))


@router.get("/active", response_model=ShoppingList)
async def active_shopping_list(
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    row = await ShoppingListRepository(db).get_active(session.user_id)
    if not row:
        raise HTTPException(status_code=404, detail="No active shopping list")
    return _to_model(row)
