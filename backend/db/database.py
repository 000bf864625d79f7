import logging
import aiosqlite
import os

logger = logging.getLogger("vitalog.db")
DB_PATH = os.environ.get("DB_PATH", "/data/vitalog.db")

async def get_db() -> aiosqlite.Connection:
    """Dependency: yields an open DB connection."""
    async with aiosqlite.connect(DB_PATH) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        yield db

async def init_db():
    """Create the data directory and all tables if they don't exist."""
    db_dir = os.path.dirname(DB_PATH)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    async with aiosqlite.connect(DB_PATH) as db:
        await db.executescript(SCHEMA)
    logger.info("Initialized at %s", DB_PATH)


SCHEMA = """
-- ── Activity history (one row per user action; streaks collapse per day) ──
CREATE TABLE IF NOT EXISTS activity_events (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT NOT NULL,
    kind            TEXT NOT NULL,          -- meals | fasting | journal | workouts | compliance
    activity_date   TEXT NOT NULL,          -- ISO calendar date
    created_at      TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_activity_user_kind
    ON activity_events (user_id, kind, activity_date);

-- Scanned receipts (never updated after insert)
CREATE TABLE IF NOT EXISTS receipts (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT NOT NULL,
    store_name      TEXT NOT NULL,
    receipt_date    TEXT,                   -- as printed on the receipt, or scan date
    items           TEXT NOT NULL DEFAULT '[]',  -- JSON array of {name, price}
    subtotal        REAL,
    tax             REAL,
    total           REAL NOT NULL,
    estimated_total REAL,
    difference      REAL,
    savings         REAL,
    ocr_raw         TEXT,
    scanned_at      TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_receipts_user ON receipts (user_id);

-- Shopping list estimates; the newest active one is compared against scans
CREATE TABLE IF NOT EXISTS shopping_lists (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id              TEXT NOT NULL,
    name                 TEXT NOT NULL DEFAULT 'Shopping List',
    total_estimated_cost REAL NOT NULL,
    is_active            INTEGER NOT NULL DEFAULT 1,
    created_at           TEXT DEFAULT (datetime('now'))
);

-- One active fasting plan per user
CREATE TABLE IF NOT EXISTS fasting_plans (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id             TEXT NOT NULL UNIQUE,
    plan_type           TEXT NOT NULL DEFAULT '16:8',
    eating_window_start TEXT NOT NULL,      -- HH:MM
    eating_window_end   TEXT NOT NULL,      -- HH:MM
    is_active           INTEGER NOT NULL DEFAULT 1,
    updated_at          TEXT DEFAULT (datetime('now'))
);
"""
