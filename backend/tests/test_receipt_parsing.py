"""
Tests for receipt text parsing — pure text processing with no external dependencies.

Covers:
- split_lines / detect_store / extract_date: header heuristics and fallbacks
- is_item_line / extract_line_price / extract_items: item classification
- resolve_totals: keyword totals, item-sum fallback, derived subtotal
- compare_to_estimate: savings vs. overage
- parse_receipt_text: end to end
"""
from datetime import date

from services.receipt_parser import (
    MAX_ITEMS,
    UNKNOWN_STORE,
    ParsedReceipt,
    compare_to_estimate,
    detect_store,
    extract_date,
    extract_items,
    extract_line_price,
    is_item_line,
    parse_receipt_text,
    resolve_totals,
    split_lines,
)

SCAN_DAY = date(2026, 3, 10)


# ── split_lines ──────────────────────────────────────────────────────────────

class TestSplitLines:

    def test_trims_and_drops_blank_lines(self):
        assert split_lines("  A  \n\n   \nB\r\n") == ["A", "B"]

    def test_empty(self):
        assert split_lines("") == []


# ── detect_store ─────────────────────────────────────────────────────────────

class TestDetectStore:

    def test_first_line_used(self):
        assert detect_store(["Trader Joe's", "123 Main St"]) == "Trader Joe's"

    def test_skips_too_short_header(self):
        assert detect_store(["#12", "Fresh Market", "x"]) == "Fresh Market"

    def test_skips_too_long_header(self):
        long_line = "WELCOME TO OUR WONDERFUL GROCERY STORE"
        assert detect_store([long_line, "Corner Shop"]) == "Corner Shop"

    def test_only_first_three_lines_considered(self):
        assert detect_store(["abc", "x" * 30, "12", "Real Store"]) == UNKNOWN_STORE

    def test_boundaries(self):
        # exactly 3 and exactly 30 characters are both rejected
        assert detect_store(["abc", "y" * 30]) == UNKNOWN_STORE
        assert detect_store(["abcd"]) == "abcd"
        assert detect_store(["z" * 29]) == "z" * 29

    def test_no_lines(self):
        assert detect_store([]) == UNKNOWN_STORE


# ── extract_date ─────────────────────────────────────────────────────────────

class TestExtractDate:

    def test_slash_date(self):
        assert extract_date("STORE\n02/15/2026 10:42", SCAN_DAY) == "02/15/2026"

    def test_dash_date_two_digit_year(self):
        assert extract_date("Date: 2-5-26", SCAN_DAY) == "2-5-26"

    def test_first_match_wins(self):
        assert extract_date("1/2/2026\n3/4/2026", SCAN_DAY) == "1/2/2026"

    def test_fallback_to_scan_date(self):
        assert extract_date("no date here", SCAN_DAY) == "3/10/2026"


# ── item classification ──────────────────────────────────────────────────────

class TestItemLines:

    def test_plain_item_line(self):
        assert is_item_line("Bananas          1.99")

    def test_dollar_sign_price(self):
        assert is_item_line("Oat Milk $3.49")

    def test_short_line_rejected(self):
        assert not is_item_line("1.99")

    def test_no_price_rejected(self):
        assert not is_item_line("Thank you for shopping")

    def test_total_and_tax_lines_rejected(self):
        assert not is_item_line("SUBTOTAL 12.00")
        assert not is_item_line("Sales Tax 0.96")
        assert not is_item_line("Total: 12.96")

    def test_last_price_wins(self):
        assert extract_line_price("2 @ 1.50 Yogurt     3.00") == 3.00

    def test_price_without_token(self):
        assert extract_line_price("Yogurt") is None


class TestExtractItems:

    def test_name_has_prices_removed(self):
        items = extract_items(["Greek Yogurt 2 @ $1.50   $3.00"])
        assert items == [{"name": "Greek Yogurt 2 @", "price": 3.00}]

    def test_name_truncated_to_50(self):
        line = "A" * 80 + " 4.99"
        items = extract_items([line])
        assert len(items[0]["name"]) == 50

    def test_zero_price_rejected(self):
        assert extract_items(["Free Sample   0.00"]) == []

    def test_implausible_price_rejected(self):
        assert extract_items(["Misread Line  500.00"]) == []
        assert extract_items(["Big Ticket    499.99"])[0]["price"] == 499.99

    def test_price_only_line_rejected(self):
        # nothing left once the prices are stripped
        assert extract_items(["$12.99   $3.00"]) == []

    def test_capped_at_twenty(self):
        lines = [f"Item number {n}   {n}.25" for n in range(1, 31)]
        items = extract_items(lines)
        assert len(items) == MAX_ITEMS
        assert items[-1]["name"] == "Item number 20"


# ── resolve_totals ───────────────────────────────────────────────────────────

class TestResolveTotals:

    def test_total_and_tax(self):
        subtotal, tax, total = resolve_totals("Tax 0.80\nTOTAL: $10.80", [])
        assert (subtotal, tax, total) == (10.00, 0.80, 10.80)

    def test_total_on_next_line(self):
        _, _, total = resolve_totals("TOTAL\n7.25", [])
        assert total == 7.25

    def test_fallback_to_item_sum(self):
        items = [{"name": "A", "price": 20.00}, {"name": "B", "price": 12.25},
                 {"name": "C", "price": 10.25}]
        subtotal, tax, total = resolve_totals("no keywords", items)
        assert total == 42.50
        assert subtotal == 42.50
        assert tax == 0.0

    def test_no_total_no_items(self):
        assert resolve_totals("", []) == (0.0, 0.0, 0.0)

    def test_negative_subtotal_not_corrected(self):
        subtotal, tax, total = resolve_totals("TOTAL 5.00\nTAX 9.00", [])
        assert subtotal == -4.00

    def test_subtotal_keyword_matches_first(self):
        # "subtotal" contains "total"; the first match wins
        _, _, total = resolve_totals("SUBTOTAL 9.00\nTOTAL 9.72", [])
        assert total == 9.00


# ── compare_to_estimate ──────────────────────────────────────────────────────

class TestCompareToEstimate:

    def _receipt(self, total):
        p = ParsedReceipt()
        p.total = total
        return p

    def test_under_estimate_reports_savings(self):
        p = compare_to_estimate(self._receipt(45.0), 50.0)
        assert p.savings == 5.0
        assert p.difference == -5.0
        assert p.estimated_total == 50.0

    def test_over_estimate_no_savings(self):
        p = compare_to_estimate(self._receipt(55.0), 50.0)
        assert p.savings == 0.0
        assert p.difference == 5.0

    def test_no_estimate_leaves_fields_empty(self):
        p = compare_to_estimate(self._receipt(55.0), None)
        assert p.estimated_total is None
        assert p.difference is None
        assert p.savings is None


# ── parse_receipt_text ───────────────────────────────────────────────────────

class TestParseReceiptText:

    def test_trader_joes_example(self):
        text = (
            "Trader Joe's\n"
            "Bananas          1.99\n"
            "Almond Milk      3.49\n"
            "TOTAL: 5.48\n"
        )
        result = parse_receipt_text(text, today=SCAN_DAY)
        assert result.store_name == "Trader Joe's"
        assert result.items == [
            {"name": "Bananas", "price": 1.99},
            {"name": "Almond Milk", "price": 3.49},
        ]
        assert result.total == 5.48
        assert result.subtotal == 5.48
        assert result.tax == 0

    def test_empty_text_degrades_to_defaults(self):
        result = parse_receipt_text("", today=SCAN_DAY)
        assert result.store_name == UNKNOWN_STORE
        assert result.receipt_date == "3/10/2026"
        assert result.items == []
        assert (result.subtotal, result.tax, result.total) == (0.0, 0.0, 0.0)

    def test_noise_only(self):
        result = parse_receipt_text("~~\n@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@@\n..", today=SCAN_DAY)
        assert result.items == []
        assert result.total == 0.0

    def test_more_than_twenty_items(self):
        text = "Mega Mart\n" + "\n".join(f"Product {n:02d}    1.{n:02d}" for n in range(25))
        result = parse_receipt_text(text, today=SCAN_DAY)
        assert len(result.items) == 20

    def test_total_falls_back_to_item_sum(self):
        text = "Farm Stand\nTomatoes   20.00\nPeaches    12.25\nHoney      10.25"
        result = parse_receipt_text(text, today=SCAN_DAY)
        assert result.total == 42.50

    def test_unknown_store_when_headers_implausible(self):
        text = "TJ\n" + "*" * 40 + "\n#1\nBread    2.50"
        result = parse_receipt_text(text, today=SCAN_DAY)
        assert result.store_name == UNKNOWN_STORE

    def test_savings_against_estimate(self):
        text = "Corner Shop\nRice    45.00"
        result = parse_receipt_text(text, estimated_total=50, today=SCAN_DAY)
        assert result.total == 45.0
        assert result.difference == -5.0
        assert result.savings == 5.0

    def test_with_tax_and_date(self):
        text = (
            "Green Grocer\n"
            "03/01/2026\n"
            "Spinach        2.99\n"
            "Eggs dozen     4.49\n"
            "Tax            0.60\n"
            "Total         $8.08\n"
        )
        result = parse_receipt_text(text, today=SCAN_DAY)
        assert result.receipt_date == "03/01/2026"
        assert len(result.items) == 2
        assert result.tax == 0.60
        assert result.total == 8.08
        assert result.subtotal == 7.48
        assert result.raw_text == text
