"""Date/store/address/bill-number/currency/metadata extraction helpers.

Each field is extracted by an ordered list of strategies. A strategy looks
at the preprocessed lines and returns a value or None; the first non-empty
value wins and an empty string is the final fallback.
"""

import re
from collections.abc import Sequence
from datetime import date

from billcheck.domain.receipt import ReceiptMetadata

from ..jurisdiction import CurrencyEntry
from .common import contains_any, first_match

DATE_KEYWORDS = ("date", "dt", "dated", "bill date", "invoice date")

_MONTHS_ABBR = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"
_MONTHS_FULL = "January|February|March|April|May|June|July|August|September|October|November|December"

MONTH_NUMBERS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Priority order: DD/MM/YYYY, YYYY/MM/DD, "DD Mon YYYY", "DD Month YYYY".
DATE_PATTERNS = (
    (re.compile(r"(?<!\d)(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})(?!\d)"), "dmy"),
    (re.compile(r"(?<!\d)(\d{4})[/-](\d{1,2})[/-](\d{1,2})(?!\d)"), "ymd"),
    (re.compile(rf"(?<!\d)(\d{{1,2}})\s*({_MONTHS_ABBR})\s*(\d{{2,4}})(?!\d)", re.IGNORECASE), "d_mon_y"),
    (re.compile(rf"(?<!\d)(\d{{1,2}})\s*({_MONTHS_FULL})\s*(\d{{2,4}})(?!\d)", re.IGNORECASE), "d_mon_y"),
)

STORE_KEYWORDS = ("store", "mart", "shop", "market", "retail", "supermarket", "grocery")
STORE_NAME_SHAPE = re.compile(r"^[A-Z\s&]+$")

ADDRESS_KEYWORDS = ("address", "add", "location", "street", "road", "avenue", "pin", "pincode")
ADDRESS_SHAPE = re.compile(r"\d+.*(?:street|road|avenue|lane|block|plot|house|building)", re.IGNORECASE)

# The captured code must carry a digit so "Bill No: 42" yields "42", not "No".
BILL_NUMBER_AFTER_KEYWORD = re.compile(
    r"(?:\b(?:bill|invoice|receipt|no\.?)|#)(?:\s*(?:no\.?|number|#))?\s*:?\s*([A-Z0-9-]*\d[A-Z0-9-]*)",
    re.IGNORECASE,
)
STANDALONE_BILL_NUMBER = re.compile(r"^(?=[A-Z-]*\d)[A-Z0-9-]{3,15}$")

DEVANAGARI = re.compile(r"[\u0900-\u097F]")
LATIN = re.compile(r"[A-Za-z]")

BILL_TYPE_KEYWORDS = (
    ("grocery", ("grocery", "supermarket")),
    ("restaurant", ("restaurant", "hotel", "cafe")),
    ("pharmacy", ("pharmacy", "medical")),
    ("fuel", ("fuel", "petrol", "diesel")),
    ("electronics", ("electronic", "mobile", "computer")),
)
PAYMENT_PATTERNS = (
    ("cash", re.compile(r"\bcash\b")),
    ("card", re.compile(r"\bcard\b|\bcredit\b|\bdebit\b")),
    ("upi", re.compile(r"\bupi\b|paytm|gpay|phonepe")),
    ("netbanking", re.compile(r"net\s?banking")),
)
CASHIER = re.compile(r"cashier[:\s]+([A-Za-z\s]+)", re.IGNORECASE)
# Terminal ids carry a digit; "Till we meet again" has none.
TERMINAL = re.compile(r"\b(?:terminal|pos|till)\b[:\s#]*([A-Z0-9]*\d[A-Z0-9]*)\b", re.IGNORECASE)


def _normalize_year(year: int) -> int:
    return 2000 + year if year < 100 else year


def _to_iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(_normalize_year(year), month, day).isoformat()
    except ValueError:
        return None


def format_date(match: re.Match[str], shape: str) -> str:
    """Normalize a matched date to YYYY-MM-DD, or return the matched text verbatim."""
    first, second, third = match.groups()
    iso: str | None
    if shape == "ymd":
        iso = _to_iso(int(first), int(second), int(third))
    elif shape == "d_mon_y":
        iso = _to_iso(int(third), MONTH_NUMBERS[second[:3].lower()], int(first))
    else:
        # Day first; fall back to month first for US-style receipts like 03/25/2024.
        iso = _to_iso(int(third), int(second), int(first)) or _to_iso(int(third), int(first), int(second))
    return iso if iso is not None else match.group(0)


def find_date_in_line(line: str) -> str | None:
    for pattern, shape in DATE_PATTERNS:
        match = pattern.search(line)
        if match:
            return format_date(match, shape)
    return None


def _date_near_keyword(lines: Sequence[str]) -> str | None:
    for line in lines:
        if contains_any(line.lower(), DATE_KEYWORDS):
            found = find_date_in_line(line)
            if found:
                return found
    return None


def _date_anywhere(lines: Sequence[str]) -> str | None:
    for line in lines:
        found = find_date_in_line(line)
        if found:
            return found
    return None


def _extract_date(lines: Sequence[str]) -> str:
    """Extract the bill date as ISO text (empty if none found)."""
    return first_match((_date_near_keyword, _date_anywhere), lines)


def _store_name_in_header(lines: Sequence[str]) -> str | None:
    for line in lines[:3]:
        if not 5 < len(line) < 50:
            continue
        if (
            contains_any(line.lower(), STORE_KEYWORDS)
            or STORE_NAME_SHAPE.match(line)
            or "LTD" in line
            or "PVT" in line
        ):
            return line
    return None


def _store_name_first_line(lines: Sequence[str]) -> str | None:
    if lines and len(lines[0]) > 3:
        return lines[0]
    return None


def _extract_store_name(lines: Sequence[str]) -> str:
    """Extract store name from the top of the bill."""
    return first_match((_store_name_in_header, _store_name_first_line), lines)


def _address_by_keyword(lines: Sequence[str]) -> str | None:
    for line in lines:
        if contains_any(line.lower(), ADDRESS_KEYWORDS):
            return line
    return None


def _address_by_shape(lines: Sequence[str]) -> str | None:
    for line in lines:
        if ADDRESS_SHAPE.search(line):
            return line
    return None


def _extract_store_address(lines: Sequence[str]) -> str:
    return first_match((_address_by_keyword, _address_by_shape), lines)


def _bill_number_after_keyword(lines: Sequence[str]) -> str | None:
    for line in lines:
        match = BILL_NUMBER_AFTER_KEYWORD.search(line)
        if match:
            return match.group(1)
    return None


def _standalone_bill_number(lines: Sequence[str]) -> str | None:
    for line in lines:
        if STANDALONE_BILL_NUMBER.match(line.strip()):
            return line.strip()
    return None


def _extract_bill_number(lines: Sequence[str]) -> str:
    return first_match((_bill_number_after_keyword, _standalone_bill_number), lines)


def _detect_currency(text: str, currencies: Sequence[CurrencyEntry], home_currency: str) -> str:
    """Pick the first currency whose markers appear in the raw text."""
    for symbol, markers in currencies:
        if any(marker in text for marker in markers):
            return symbol
    return home_currency


def _detect_language(text: str) -> str:
    devanagari_count = len(DEVANAGARI.findall(text))
    latin_count = len(LATIN.findall(text))
    if devanagari_count > latin_count:
        return "hindi"
    if latin_count > 0:
        return "english"
    return "unknown"


def _detect_bill_type(joined_lower: str) -> str:
    for bill_type, keywords in BILL_TYPE_KEYWORDS:
        if contains_any(joined_lower, keywords):
            return bill_type
    return "retail"


def _detect_payment_method(joined_lower: str) -> str:
    for method, pattern in PAYMENT_PATTERNS:
        if pattern.search(joined_lower):
            return method
    return "unknown"


def _extract_cashier(lines: Sequence[str]) -> str:
    for line in lines:
        if "cashier" in line.lower():
            match = CASHIER.search(line)
            if match:
                return match.group(1).strip()
    return ""


def _extract_terminal_id(lines: Sequence[str]) -> str:
    for line in lines:
        match = TERMINAL.search(line)
        if match:
            return match.group(1)
    return ""


def _extract_metadata(lines: Sequence[str], text: str) -> ReceiptMetadata:
    joined_lower = " ".join(lines).lower()
    return ReceiptMetadata(
        language=_detect_language(text),
        bill_type=_detect_bill_type(joined_lower),
        payment_method=_detect_payment_method(joined_lower),
        cashier=_extract_cashier(lines),
        terminal_id=_extract_terminal_id(lines),
    )
