"""Parse raw OCR text into structured Receipt data."""

import logging
from dataclasses import dataclass

from billcheck.domain.receipt import Receipt

from .item_categories import ItemCategoryRules
from .jurisdiction import DEFAULT_JURISDICTION_RULES, JurisdictionRules
from .parser import (
    _derive_missing_values,
    _detect_currency,
    _extract_bill_number,
    _extract_date,
    _extract_financial_totals,
    _extract_items,
    _extract_metadata,
    _extract_store_address,
    _extract_store_name,
    preprocess_text,
)

logger = logging.getLogger(__name__)


class BillParseError(Exception):
    """Raised when parsing fails for reasons other than unrecognisable text."""

    code = "PARSE_ERROR"


@dataclass(frozen=True)
class BillParser:
    """Stateless parser bound to a rule set; safe to share across threads."""

    jurisdiction: JurisdictionRules = DEFAULT_JURISDICTION_RULES
    category_rules: ItemCategoryRules | None = None

    def parse(self, raw_text: str) -> Receipt:
        return parse_bill(raw_text, jurisdiction=self.jurisdiction, category_rules=self.category_rules)


def parse_bill(
    raw_text: str,
    jurisdiction: JurisdictionRules = DEFAULT_JURISDICTION_RULES,
    category_rules: ItemCategoryRules | None = None,
) -> Receipt:
    """
    Parse OCR text into a Receipt.

    This is a best-effort parser: fields it cannot find stay empty or zero
    and the validator reports what is missing. Only non-text input or an
    unexpected internal failure raises BillParseError.

    Args:
        raw_text: Text produced by the OCR service
        jurisdiction: Currency table and home currency
        category_rules: Optional keyword rules used to tag item categories

    Returns:
        Receipt object with parsed data
    """
    if not isinstance(raw_text, str):
        raise BillParseError(f"Bill text must be a string, got {type(raw_text).__name__}")

    try:
        lines = preprocess_text(raw_text)
        items = _extract_items(lines, category_rules)
        totals = _derive_missing_values(_extract_financial_totals(lines), items)

        receipt = Receipt(
            date=_extract_date(lines),
            store_name=_extract_store_name(lines),
            store_address=_extract_store_address(lines),
            bill_number=_extract_bill_number(lines),
            items=items,
            subtotal=totals.subtotal,
            tax=totals.tax,
            tax_rate=totals.tax_rate,
            discount=totals.discount,
            total=totals.total,
            currency=_detect_currency(raw_text, jurisdiction.currencies, jurisdiction.home_currency),
            raw_text=raw_text,
            metadata=_extract_metadata(lines, raw_text),
        )
    except Exception as exc:
        logger.exception("Bill parsing failed")
        raise BillParseError(f"Bill parsing failed: {exc}") from exc

    logger.debug("Parsed bill: %d lines, %d items, total %s", len(lines), len(items), receipt.total)
    return receipt
