"""Parse OCR text from shop bills and check it for internal consistency.

Usage:
    from billcheck import parse_bill_data, validate_bill

    receipt = parse_bill_data(ocr_text)
    result = validate_bill(receipt)
    print(result.is_valid, result.confidence_score)
"""

from billcheck.application import parse_bill_data, validate_bill
from billcheck.receipt.bill_parser import BillParseError

__all__ = ["BillParseError", "parse_bill_data", "validate_bill"]
