"""
Receipt Parser — turns noisy OCR text into a structured receipt.

Heuristics only, no grammar: the goal is a best-effort extraction that
degrades to defaults ("Unknown Store", today's date, zero totals) instead
of failing.  Each stage is a small function so its edge cases can be
tested on their own:

    split_lines → detect_store / extract_date → extract_items → resolve_totals
                → compare_to_estimate
"""
import logging
import re
from datetime import date
from typing import Optional

logger = logging.getLogger("vitalog.parser")

UNKNOWN_STORE = "Unknown Store"
MAX_ITEMS = 20
MAX_NAME_LENGTH = 50
MAX_ITEM_PRICE = 500.0

# Store names are printed in the header, so only the first few lines count.
STORE_HEADER_LINES = 3

PRICE_RE = re.compile(r'\$?\d+\.\d{2}')
DATE_RE  = re.compile(r'\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}')
TOTAL_RE = re.compile(r'total[:\s]*\$?(\d+\.\d{2})', re.IGNORECASE)
TAX_RE   = re.compile(r'tax[:\s]*\$?(\d+\.\d{2})', re.IGNORECASE)

# Lines carrying these words belong to the totals block, never to items.
RESERVED_KEYWORDS = ("total", "tax")


class ParsedReceipt:
    def __init__(self):
        self.store_name: str = UNKNOWN_STORE
        self.receipt_date: str = ""
        self.items: list[dict] = []          # [{name, price}]
        self.subtotal: float = 0.0
        self.tax: float = 0.0
        self.total: float = 0.0
        self.estimated_total: Optional[float] = None
        self.difference: Optional[float] = None
        self.savings: Optional[float] = None
        self.raw_text: str = ""


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def detect_store(lines: list[str]) -> str:
    """First header line of plausible store-name length (4–29 chars)."""
    for line in lines[:STORE_HEADER_LINES]:
        if 3 < len(line) < 30:
            return line
    return UNKNOWN_STORE


def format_scan_date(day: date) -> str:
    """Scan-date fallback in the same M/D/YYYY shape receipts print."""
    return f"{day.month}/{day.day}/{day.year}"


def extract_date(text: str, today: Optional[date] = None) -> str:
    m = DATE_RE.search(text or "")
    if m:
        return m.group(0)
    return format_scan_date(today or date.today())


def _to_price(token: str) -> float:
    return float(token.lstrip("$"))


def is_item_line(line: str) -> bool:
    """
    A candidate item line has a price token, is longer than 5 characters and
    is not part of the totals block (total/tax lines would become phantom items).
    """
    if len(line) <= 5 or not PRICE_RE.search(line):
        return False
    lower = line.lower()
    return not any(kw in lower for kw in RESERVED_KEYWORDS)


def extract_line_price(line: str) -> Optional[float]:
    """
    Price of an item line: the LAST price token.  On "2 @ 1.50   3.00" the
    rightmost number is the amount charged.
    """
    tokens = PRICE_RE.findall(line)
    if not tokens:
        return None
    return _to_price(tokens[-1])


def extract_item_name(line: str) -> str:
    return PRICE_RE.sub("", line).strip()[:MAX_NAME_LENGTH]


def extract_items(lines: list[str]) -> list[dict]:
    items = []
    for line in lines:
        if not is_item_line(line):
            continue
        price = extract_line_price(line)
        name = extract_item_name(line)
        # Implausible prices are almost always OCR misreads
        if not name or price is None or not (0 < price < MAX_ITEM_PRICE):
            logger.debug("Rejected item line %r (price=%s)", line, price)
            continue
        items.append({"name": name, "price": price})
    return items[:MAX_ITEMS]


def resolve_totals(text: str, items: list[dict]) -> tuple[float, float, float]:
    """
    Return (subtotal, tax, total).

    Total and tax come from the first "total"/"tax" keyword followed by an
    amount.  Without a total the item prices are summed.  Subtotal is always
    derived as total - tax, so an overeager tax match can drive it negative.
    """
    text = text or ""
    total = 0.0
    tax = 0.0

    m = TOTAL_RE.search(text)
    if m:
        total = float(m.group(1))

    m = TAX_RE.search(text)
    if m:
        tax = float(m.group(1))

    if not total and items:
        total = round(sum(i["price"] for i in items), 2)

    subtotal = round(total - tax, 2)
    return subtotal, tax, total


def compare_to_estimate(parsed: ParsedReceipt, estimated_total: Optional[float]) -> ParsedReceipt:
    """Fill difference/savings against a shopping-list estimate.  Savings only when under."""
    if estimated_total is None:
        return parsed
    parsed.estimated_total = float(estimated_total)
    parsed.difference = round(parsed.total - parsed.estimated_total, 2)
    parsed.savings = round(max(0.0, -parsed.difference), 2)
    return parsed


def parse_receipt_text(
    text: str,
    estimated_total: Optional[float] = None,
    today: Optional[date] = None,
) -> ParsedReceipt:
    """
    Parse OCR text into a ParsedReceipt.  Never raises on bad input: empty or
    garbled text yields no items, zero totals and the fallback store/date.
    """
    result = ParsedReceipt()
    result.raw_text = text or ""
    lines = split_lines(result.raw_text)

    result.store_name = detect_store(lines)
    result.receipt_date = extract_date(result.raw_text, today)
    result.items = extract_items(lines)
    result.subtotal, result.tax, result.total = resolve_totals(result.raw_text, result.items)

    logger.debug(
        "Parsed receipt: store=%r date=%s items=%d total=%.2f",
        result.store_name, result.receipt_date, len(result.items), result.total,
    )
    return compare_to_estimate(result, estimated_total)
