"""Shared constants and helpers for bill text parsing."""

import re
from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal, InvalidOperation

# Amount with optional thousands separators and optional paise.
_AMOUNT = r"\d+(?:,\d{3})*(?:\.\d{2})?"

# Tried in order; the first pattern with any match on a line wins and its
# last match is taken as the line's price.
PRICE_PATTERNS = (
    re.compile(rf"₹\s*({_AMOUNT})"),
    re.compile(rf"Rs\.?\s*({_AMOUNT})"),
    re.compile(rf"INR\s*({_AMOUNT})"),
    re.compile(rf"({_AMOUNT})\s*₹"),
)

# Every price spelling, used to cut prices out of item descriptions.
PRICE_SUBSTRING = re.compile(rf"₹\s*{_AMOUNT}|{_AMOUNT}\s*₹|Rs\.?\s*{_AMOUNT}|INR\s*{_AMOUNT}")

TOTALS_LABEL_WITH_COLON = re.compile(r"(?:total|subtotal|tax|gst|amount|discount):", re.IGNORECASE)
HAS_WORD = re.compile(r"[A-Za-z]{2,}")


def preprocess_text(text: str) -> list[str]:
    """Split OCR text into trimmed, non-empty lines with single spaces."""
    lines = []
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if line:
            lines.append(re.sub(r"\s+", " ", line))
    return lines


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Return True if any keyword occurs in text (caller handles case)."""
    return any(keyword in text for keyword in keywords)


def parse_amount(raw: str) -> Decimal | None:
    """Convert a matched amount like ``1,299.00`` into a Decimal."""
    try:
        return Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None


def extract_price_from_line(line: str) -> Decimal | None:
    """Return the last currency-marked price on a line, or None."""
    for pattern in PRICE_PATTERNS:
        matches = pattern.findall(line)
        if matches:
            return parse_amount(matches[-1])
    return None


def strip_prices(line: str) -> str:
    """Remove every price substring from a line."""
    return PRICE_SUBSTRING.sub("", line).strip()


def looks_like_item_line(line: str) -> bool:
    """Heuristic: a line carrying a product name and a price, not a totals label."""
    if len(line) <= 5:
        return False
    if extract_price_from_line(line) is None:
        return False
    if not HAS_WORD.search(line):
        return False
    return TOTALS_LABEL_WITH_COLON.search(line) is None


Strategy = Callable[[Sequence[str]], str | None]


def first_match(strategies: Sequence[Strategy], lines: Sequence[str], default: str = "") -> str:
    """Run extraction strategies in priority order and return the first hit."""
    for strategy in strategies:
        value = strategy(lines)
        if value:
            return value
    return default
