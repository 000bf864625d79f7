"""
Shared fixtures for backend tests.

Every test gets a fresh in-memory SQLite database built from the production
schema in db/database.py, so tests start from a clean slate (unless a
fixture adds rows).  Router tests authenticate as USER_ID by overriding the
session dependency.
"""
import pytest
import aiosqlite

from db.database import SCHEMA

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
async def db():
    """Yield a fresh in-memory SQLite connection with the full schema."""
    async with aiosqlite.connect(":memory:") as conn:
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.executescript(SCHEMA)
        yield conn


def build_app(db, *routers, user_id=USER_ID):
    """FastAPI app with the given (router, prefix) pairs, wired to the test DB."""
    from fastapi import FastAPI
    from db.database import get_db
    from services.auth_service import CurrentSession, get_current_session

    test_app = FastAPI()
    for router, prefix in routers:
        test_app.include_router(router, prefix=prefix)

    async def override_get_db():
        yield db

    async def override_session():
        return CurrentSession(user_id=user_id)

    test_app.dependency_overrides[get_db] = override_get_db
    if user_id is not None:
        test_app.dependency_overrides[get_current_session] = override_session
    return test_app
