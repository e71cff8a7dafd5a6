"""Application-layer workflows (parse + validate with runtime configuration)."""

from billcheck.application.bills import (
    BillCheckResult,
    BillRules,
    check_bill_file,
    check_bill_image,
    check_bill_text,
    load_bill_rules,
    parse_bill_data,
    validate_bill,
)

__all__ = [
    "BillCheckResult",
    "BillRules",
    "check_bill_file",
    "check_bill_image",
    "check_bill_text",
    "load_bill_rules",
    "parse_bill_data",
    "validate_bill",
]
