"""Subtotal/tax/discount/total extraction and derivation."""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from billcheck.domain.receipt import LineItem, to_money

from .common import contains_any, extract_price_from_line

SUBTOTAL_KEYWORDS = ("subtotal", "sub total", "sub-total", "amount")
SUBTOTAL_SPELLINGS = ("subtotal", "sub total", "sub-total")
TAX_KEYWORDS = ("tax", "gst", "vat", "cgst", "sgst", "igst")
TOTAL_KEYWORDS = ("total", "grand total", "final total", "net total", "amount payable")

# "off" only as a word; "coffee" and "office" are not discounts.
DISCOUNT_PATTERN = re.compile(r"discount|\boff\b|reduction")
TAX_RATE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%")


@dataclass
class FinancialTotals:
    """Summary amounts found on (or derived for) a bill."""

    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


def _is_subtotal_line(lower: str) -> bool:
    if not contains_any(lower, SUBTOTAL_KEYWORDS):
        return False
    # "Taxable Amount" is the pre-tax subtotal on GST invoices.
    if "tax" in lower.replace("taxable", ""):
        return False
    remainder = lower
    for spelling in SUBTOTAL_SPELLINGS:
        remainder = remainder.replace(spelling, " ")
    return not contains_any(remainder, TOTAL_KEYWORDS)


def _is_tax_line(lower: str) -> bool:
    return contains_any(lower.replace("taxable", ""), TAX_KEYWORDS)


def _is_total_line(lower: str) -> bool:
    return contains_any(lower, TOTAL_KEYWORDS) and "sub" not in lower


def _extract_financial_totals(lines: Sequence[str]) -> FinancialTotals:
    """
    Scan every line for summary amounts.

    Tax lines accumulate (CGST + SGST on separate lines); the other groups
    keep the last positive amount seen. Any ``n%`` on a tax line raises the
    tax rate to the largest percentage seen.
    """
    totals = FinancialTotals()

    for line in lines:
        lower = line.lower()

        if _is_subtotal_line(lower):
            price = extract_price_from_line(line)
            if price is not None and price > 0:
                totals.subtotal = price

        if _is_tax_line(lower):
            price = extract_price_from_line(line)
            if price is not None and price >= 0:
                totals.tax += price
                rate_match = TAX_RATE_PATTERN.search(line)
                if rate_match:
                    totals.tax_rate = max(totals.tax_rate, Decimal(rate_match.group(1)))

        if DISCOUNT_PATTERN.search(lower):
            price = extract_price_from_line(line)
            if price is not None and price > 0:
                totals.discount = price

        if _is_total_line(lower):
            price = extract_price_from_line(line)
            if price is not None and price > 0:
                totals.total = price

    return totals


def _derive_missing_values(totals: FinancialTotals, items: Sequence[LineItem]) -> FinancialTotals:
    """Fill amounts the bill did not print, then round everything to paise."""
    if totals.subtotal == 0 and items:
        totals.subtotal = sum((item.price for item in items), Decimal("0"))

    if totals.tax_rate == 0 and totals.subtotal > 0 and totals.tax > 0:
        totals.tax_rate = totals.tax / totals.subtotal * 100

    if totals.total == 0:
        totals.total = totals.subtotal + totals.tax - totals.discount

    totals.subtotal = to_money(totals.subtotal)
    totals.tax = to_money(totals.tax)
    totals.tax_rate = to_money(totals.tax_rate)
    totals.discount = to_money(totals.discount)
    totals.total = to_money(totals.total)
    return totals
