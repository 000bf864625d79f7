"""
Receipts Router

POST /api/receipts/scan   — upload a receipt photo, run OCR + parsing, save
POST /api/receipts/text   — parse OCR text produced on the device, save
GET  /api/receipts        — list the current user's receipts (summary)
GET  /api/receipts/{id}   — one receipt with its items
"""
import json
import logging
from typing import Optional

import aiosqlite
from fastapi import APIRouter, File, UploadFile, Depends, HTTPException, Form

from db.database import get_db
from db.repositories import ReceiptRepository, ShoppingListRepository
from models.schemas import ReceiptSummary, Receipt, ReceiptItem, ReceiptTextIn, ScanResult
from services.auth_service import CurrentSession, get_current_session
from services.ocr_service import OCRError, recognize
from services.receipt_parser import ParsedReceipt, parse_receipt_text

logger = logging.getLogger("vitalog.receipts")
router = APIRouter()

RETRY_MESSAGE = "Error processing receipt. Please try again with a clearer image."


def _load_items(raw: Optional[str]) -> list[ReceiptItem]:
    try:
        return [ReceiptItem(**i) for i in json.loads(raw or "[]")]
    except (ValueError, TypeError):
        logger.warning("Unreadable items JSON on stored receipt: %r", raw)
        return []


async def _process_text(
    text: str,
    estimated_total: Optional[float],
    session: CurrentSession,
    db: aiosqlite.Connection,
) -> ScanResult:
    """Parse, compare against the estimate, then save once (fire-and-forget)."""
    if estimated_total is None:
        estimated_total = await ShoppingListRepository(db).active_estimate(session.user_id)

    parsed: ParsedReceipt = parse_receipt_text(text, estimated_total=estimated_total)

    receipt_id = None
    try:
        receipt_id = await ReceiptRepository(db).insert(session.user_id, parsed, ocr_raw=text)
    except Exception:
        # A failed save must not cost the user their parsed result
        logger.exception("Failed to save receipt for user=%s", session.user_id)

    if parsed.savings:
        logger.info("Receipt for user=%s came in $%.2f under estimate", session.user_id, parsed.savings)

    return ScanResult(
        receipt_id=receipt_id,
        saved=receipt_id is not None,
        ocr_raw=text,
        store_name=parsed.store_name,
        receipt_date=parsed.receipt_date,
        items=[ReceiptItem(**i) for i in parsed.items],
        subtotal=parsed.subtotal,
        tax=parsed.tax,
        total=parsed.total,
        estimated_total=parsed.estimated_total,
        difference=parsed.difference,
        savings=parsed.savings,
    )


# ── Scan & Parse ──────────────────────────────────────────────────────────────

@router.post("/scan", response_model=ScanResult)
async def scan_receipt(
    file: UploadFile = File(...),
    estimated_total: Optional[float] = Form(None, ge=0),
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    """
    Accept a receipt photo, OCR it, parse it and save the result.
    OCR failures come back as a retry prompt; nothing is retried automatically.
    """
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=422, detail=RETRY_MESSAGE)

    def on_progress(pct: int):
        logger.debug("OCR %s: %d%%", file.filename, pct)

    try:
        ocr_text = await recognize(contents, on_progress=on_progress)
    except OCRError as e:
        logger.warning("OCR failed for %s: %s", file.filename, e)
        if "tesseract binary" in str(e).lower():
            raise HTTPException(status_code=500,
                detail="Tesseract OCR not installed on the server (apt install tesseract-ocr)")
        raise HTTPException(status_code=422, detail=RETRY_MESSAGE)

    return await _process_text(ocr_text, estimated_total, session, db)


@router.post("/text", response_model=ScanResult)
async def parse_receipt(
    body: ReceiptTextIn,
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    """Same pipeline as /scan for clients that ran OCR on the device."""
    return await _process_text(body.ocr_text, body.estimated_total, session, db)


# ── List Receipts ─────────────────────────────────────────────────────────────

@router.get("", response_model=list[ReceiptSummary])
async def list_receipts(
    limit: int = 50,
    offset: int = 0,
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    rows = await ReceiptRepository(db).list_for_user(session.user_id, limit, offset)
    results = [
        ReceiptSummary(
            id=row["id"],
            store_name=row["store_name"] or "Unknown Store",
            receipt_date=row["receipt_date"],
            scanned_at=row["scanned_at"] or "",
            total=row["total"] or 0.0,
            savings=row["savings"],
            item_count=len(_load_items(row["items"])),
        )
        for row in rows
    ]
    logger.debug("list_receipts returning %d receipts", len(results))
    return results


# ── Get Single Receipt ────────────────────────────────────────────────────────

@router.get("/{receipt_id}", response_model=Receipt)
async def get_receipt(
    receipt_id: int,
    session: CurrentSession = Depends(get_current_session),
    db: aiosqlite.Connection = Depends(get_db),
):
    row = await ReceiptRepository(db).get(session.user_id, receipt_id)
    if not row:
        raise HTTPException(status_code=404, detail="Receipt not found")

    return Receipt(
        id=row["id"],
        store_name=row["store_name"],
        receipt_date=row["receipt_date"],
        scanned_at=row["scanned_at"],
        ocr_raw=row["ocr_raw"],
        items=_load_items(row["items"]),
        subtotal=row["subtotal"] or 0.0,
        tax=row["tax"] or 0.0,
        total=row["total"],
        estimated_total=row["estimated_total"],
        difference=row["difference"],
        savings=row["savings"],
    )
