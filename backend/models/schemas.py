from datetime import date
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field, field_validator


# ── Activity / Streaks ─────────────────────────────────
class ActivityKind(str, Enum):
    meals = "meals"
    fasting = "fasting"
    journal = "journal"
    workouts = "workouts"
    compliance = "compliance"

class ActivityCreate(BaseModel):
    activity_date: Optional[date] = None   # defaults to today

    @field_validator("activity_date")
    @classmethod
    def _not_in_future(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v > date.today():
            raise ValueError("activity_date cannot be in the future")
        return v

class StreakSummary(BaseModel):
    kind: ActivityKind
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: Optional[date] = None


# ── Receipt ────────────────────────────────────────────
class ReceiptItem(BaseModel):
    name: str = Field(max_length=50)
    price: float

class ReceiptBase(BaseModel):
    store_name: str
    receipt_date: Optional[str] = None
    items: List[ReceiptItem] = []
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    estimated_total: Optional[float] = None
    difference: Optional[float] = None
    savings: Optional[float] = None

class ReceiptTextIn(BaseModel):
    """OCR text produced on the device, plus an optional estimate override."""
    ocr_text: str
    estimated_total: Optional[float] = Field(default=None, ge=0)

class Receipt(ReceiptBase):
    id: int
    scanned_at: str
    ocr_raw: Optional[str] = None

class ReceiptSummary(BaseModel):
    id: int
    store_name: str
    receipt_date: Optional[str]
    scanned_at: str
    total: float
    savings: Optional[float] = None
    item_count: int


# ── Upload / Processing ────────────────────────────────
class ScanResult(ReceiptBase):
    receipt_id: Optional[int] = None   # None when persisting failed
    saved: bool = False
    ocr_raw: str = ""


# ── Shopping Lists ─────────────────────────────────────
class ShoppingListCreate(BaseModel):
    name: str = "Shopping List"
    total_estimated_cost: float = Field(ge=0)

class ShoppingList(BaseModel):
    id: int
    name: str
    total_estimated_cost: float
    is_active: bool
    created_at: str


# ── Achievements ───────────────────────────────────────
class Achievement(BaseModel):
    id: str
    category: str
    name: str
    description: str
    icon: str
    rarity: str
    xp: int
    threshold: int
    unlocked: bool

class AchievementsResponse(BaseModel):
    level: int
    xp: int
    xp_to_next_level: int
    total_xp: int
    current_streak: int
    longest_streak: int
    total_workouts: int
    total_meals: int
    unlocked_count: int
    achievements: List[Achievement]


# ── Fasting ────────────────────────────────────────────
class FastingPlanIn(BaseModel):
    plan_type: str = "16:8"
    eating_window_start: str   # HH:MM
    eating_window_end: str     # HH:MM

    @field_validator("eating_window_start", "eating_window_end")
    @classmethod
    def _valid_time(cls, v: str) -> str:
        from services.fasting_service import parse_time
        parse_time(v)   # raises ValueError → 422
        return v.strip()

class FastingPlan(FastingPlanIn):
    is_active: bool = True

class FastingStatusResponse(BaseModel):
    plan: FastingPlan
    is_fasting: bool
    elapsed_minutes: int
    total_minutes: int
    remaining_minutes: int
    progress: int
    current_streak: int
    longest_streak: int
