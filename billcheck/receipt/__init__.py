"""Pure bill parsing and validation.

Nothing in this package touches the filesystem, the network or the runtime
configuration; rule sets are passed in explicitly.
"""

from billcheck.receipt.bill_parser import BillParseError, BillParser, parse_bill
from billcheck.receipt.item_categories import ItemCategoryRules, build_item_category_rules, categorize_item
from billcheck.receipt.jurisdiction import DEFAULT_JURISDICTION_RULES, JurisdictionRules, build_jurisdiction_rules
from billcheck.receipt.parse_summary import ParseCheck, ParseStats, check_parsed_receipt, parsing_stats
from billcheck.receipt.validator import BillValidator, confidence_score, validate_bill

__all__ = [
    "BillParseError",
    "BillParser",
    "BillValidator",
    "DEFAULT_JURISDICTION_RULES",
    "ItemCategoryRules",
    "JurisdictionRules",
    "ParseCheck",
    "ParseStats",
    "build_item_category_rules",
    "build_jurisdiction_rules",
    "categorize_item",
    "check_parsed_receipt",
    "confidence_score",
    "parse_bill",
    "parsing_stats",
    "validate_bill",
]
