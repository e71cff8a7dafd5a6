"""Composable bill text parser components."""

from .common import extract_price_from_line, looks_like_item_line, preprocess_text
from .fields_parser import (
    _detect_currency,
    _extract_bill_number,
    _extract_date,
    _extract_metadata,
    _extract_store_address,
    _extract_store_name,
)
from .items_text_parser import _extract_items, parse_item_line
from .totals_parser import FinancialTotals, _derive_missing_values, _extract_financial_totals

__all__ = [
    "FinancialTotals",
    "_derive_missing_values",
    "_detect_currency",
    "_extract_bill_number",
    "_extract_date",
    "_extract_financial_totals",
    "_extract_items",
    "_extract_metadata",
    "_extract_store_address",
    "_extract_store_name",
    "extract_price_from_line",
    "looks_like_item_line",
    "parse_item_line",
    "preprocess_text",
]
