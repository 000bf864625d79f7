"""
Repositories — one narrow class per table.

Every method takes the user id explicitly (from the request's
CurrentSession); none of them knows who "the current user" is.  Services
stay pure and receive plain values loaded through these.
"""
import json
import logging
from datetime import date
from typing import Optional

import aiosqlite

logger = logging.getLogger("vitalog.db")


class ActivityRepository:
    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def record(self, user_id: str, kind: str, day: date) -> int:
        cur = await self.db.execute(
            "INSERT INTO activity_events (user_id, kind, activity_date) VALUES (?, ?, ?)",
            (user_id, kind, day.isoformat()),
        )
        await self.db.commit()
        return cur.lastrowid

    async def list_dates(self, user_id: str, kind: str) -> list[date]:
        """Distinct activity days, most recent first."""
        async with self.db.execute(
            """SELECT DISTINCT activity_date FROM activity_events
               WHERE user_id = ? AND kind = ?
               ORDER BY activity_date DESC""",
            (user_id, kind),
        ) as cur:
            rows = await cur.fetchall()
        days = []
        for row in rows:
            try:
                days.append(date.fromisoformat(row["activity_date"][:10]))
            except (TypeError, ValueError):
                logger.warning("Bad activity_date %r for user=%s kind=%s",
                               row["activity_date"], user_id, kind)
        return days

    async def count(self, user_id: str, kind: str) -> int:
        async with self.db.execute(
            "SELECT COUNT(*) FROM activity_events WHERE user_id = ? AND kind = ?",
            (user_id, kind),
        ) as cur:
            return (await cur.fetchone())[0]

    async def last_date(self, user_id: str, kind: str) -> Optional[date]:
        days = await self.list_dates(user_id, kind)
        return days[0] if days else None


class ReceiptRepository:
    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def insert(self, user_id: str, receipt, ocr_raw: Optional[str] = None) -> int:
        """Persist a ParsedReceipt.  Receipts are write-once."""
        cur = await self.db.execute(
            """INSERT INTO receipts
               (user_id, store_name, receipt_date, items, subtotal, tax, total,
                estimated_total, difference, savings, ocr_raw)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (user_id, receipt.store_name, receipt.receipt_date, json.dumps(receipt.items),
             receipt.subtotal, receipt.tax, receipt.total,
             receipt.estimated_total, receipt.difference, receipt.savings, ocr_raw),
        )
        await self.db.commit()
        return cur.lastrowid

    async def list_for_user(self, user_id: str, limit: int = 50, offset: int = 0) -> list[aiosqlite.Row]:
        async with self.db.execute(
            """SELECT id, store_name, receipt_date, scanned_at, items, total, savings
               FROM receipts
               WHERE user_id = ?
               ORDER BY scanned_at DESC, id DESC
               LIMIT ? OFFSET ?""",
            (user_id, limit, offset),
        ) as cur:
            return await cur.fetchall()

    async def get(self, user_id: str, receipt_id: int) -> Optional[aiosqlite.Row]:
        async with self.db.execute(
            "SELECT * FROM receipts WHERE id = ? AND user_id = ?", (receipt_id, user_id)
        ) as cur:
            return await cur.fetchone()


class ShoppingListRepository:
    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def create(self, user_id: str, name: str, total_estimated_cost: float) -> int:
        cur = await self.db.execute(
            """INSERT INTO shopping_lists (user_id, name, total_estimated_cost, is_active)
               VALUES (?, ?, ?, 1)""",
            (user_id, name, total_estimated_cost),
        )
        await self.db.commit()
        return cur.lastrowid

    async def get_active(self, user_id: str) -> Optional[aiosqlite.Row]:
        """Most recently created active list."""
        async with self.db.execute(
            """SELECT * FROM shopping_lists
               WHERE user_id = ? AND is_active = 1
               ORDER BY created_at DESC, id DESC
               LIMIT 1""",
            (user_id,),
        ) as cur:
            return await cur.fetchone()

    async def active_estimate(self, user_id: str) -> Optional[float]:
        row = await self.get_active(user_id)
        return row["total_estimated_cost"] if row else None


class FastingPlanRepository:
    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    async def upsert(self, user_id: str, plan_type: str, window_start: str, window_end: str):
        await self.db.execute(
            """
            INSERT INTO fasting_plans (user_id, plan_type, eating_window_start, eating_window_end, is_active)
            VALUES (?, ?, ?, ?, 1)
            ON CONFLICT(user_id) DO UPDATE SET
                plan_type           = excluded.plan_type,
                eating_window_start = excluded.eating_window_start,
                eating_window_end   = excluded.eating_window_end,
                is_active           = 1,
                updated_at          = datetime('now')
            """,
            (user_id, plan_type, window_start, window_end),
        )
        await self.db.commit()

    async def get_active(self, user_id: str) -> Optional[aiosqlite.Row]:
        async with self.db.execute(
            "SELECT * FROM fasting_plans WHERE user_id = ? AND is_active = 1", (user_id,)
        ) as cur:
            return await cur.fetchone()
