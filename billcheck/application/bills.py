"""Bill check workflow orchestration."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Literal

import httpx

from billcheck.domain.receipt import Receipt
from billcheck.domain.validation import ValidationResult
from billcheck.receipt import validator
from billcheck.receipt.bill_parser import BillParseError, parse_bill
from billcheck.receipt.item_categories import ItemCategoryRules
from billcheck.receipt.jurisdiction import JurisdictionRules
from billcheck.runtime import get_logger, load_item_category_rules, load_jurisdiction_rules
from billcheck.runtime.bill_pipeline import OCRServiceUnavailable, call_ocr_service

logger = get_logger(__name__)

CheckStatus = Literal[
    "valid",
    "invalid",
    "file_not_found",
    "read_error",
    "parse_error",
    "ocr_unavailable",
]


@dataclass(frozen=True)
class BillRules:
    """Everything the parser and validator need to know about a jurisdiction."""

    jurisdiction: JurisdictionRules
    categories: ItemCategoryRules


def load_bill_rules(extra_paths: Sequence[str | Path] = ()) -> BillRules:
    """Packaged defaults, then the project's config/, then ``extra_paths`` in order."""
    extra = tuple(str(p) for p in extra_paths) or None
    return BillRules(
        jurisdiction=load_jurisdiction_rules(extra),
        categories=load_item_category_rules(extra),
    )


def parse_bill_data(raw_text: str, rules: BillRules | None = None) -> Receipt:
    """Parse OCR text with the project's rules; raises BillParseError on non-text input."""
    rules = rules or load_bill_rules()
    return parse_bill(raw_text, jurisdiction=rules.jurisdiction, category_rules=rules.categories)


def validate_bill(receipt: Receipt, rules: BillRules | None = None, now: datetime | None = None) -> ValidationResult:
    """Validate a parsed bill with the project's rules. Never raises."""
    rules = rules or load_bill_rules()
    return validator.validate_bill(
        receipt,
        jurisdiction=rules.jurisdiction,
        category_rules=rules.categories,
        now=now,
    )


@dataclass(frozen=True)
class BillCheckResult:
    """Outcome from the bill check workflow."""

    status: CheckStatus
    receipt: Receipt | None = None
    validation: ValidationResult | None = None
    ocr_confidence: float | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status}
        if self.receipt is not None:
            data["bill"] = self.receipt.to_dict()
        if self.validation is not None:
            data["validation"] = self.validation.to_dict()
        if self.ocr_confidence is not None:
            data["ocrConfidence"] = self.ocr_confidence
        if self.error is not None:
            data["error"] = self.error
        return data


def check_bill_text(text: str, rules: BillRules | None = None, now: datetime | None = None) -> BillCheckResult:
    """Run parse -> validate over bill text."""
    rules = rules or load_bill_rules()
    try:
        receipt = parse_bill_data(text, rules)
    except BillParseError as exc:
        return BillCheckResult(status="parse_error", error=str(exc))

    result = validate_bill(receipt, rules, now)
    logger.info(
        "Bill check completed: %s (%d%%)",
        "VALID" if result.is_valid else "INVALID",
        result.confidence_score,
    )
    return BillCheckResult(
        status="valid" if result.is_valid else "invalid",
        receipt=receipt,
        validation=result,
    )


def check_bill_file(path: Path, rules: BillRules | None = None, now: datetime | None = None) -> BillCheckResult:
    """Run parse -> validate over a UTF-8 text file holding OCR output."""
    if not path.exists():
        return BillCheckResult(status="file_not_found", error=f"Bill file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return BillCheckResult(status="read_error", error=f"Cannot read {path}: {exc}")

    return check_bill_text(text, rules, now)


def check_bill_image(
    path: Path,
    ocr_url: str | None = None,
    rules: BillRules | None = None,
    now: datetime | None = None,
    client: httpx.Client | None = None,
) -> BillCheckResult:
    """Run OCR -> parse -> validate over a bill image."""
    if not path.exists():
        return BillCheckResult(status="file_not_found", error=f"Bill image not found: {path}")

    try:
        ocr = call_ocr_service(path, ocr_url, client=client)
    except OCRServiceUnavailable as exc:
        return BillCheckResult(status="ocr_unavailable", error=str(exc))
    except OSError as exc:
        return BillCheckResult(status="read_error", error=f"Cannot read {path}: {exc}")

    return replace(check_bill_text(ocr.text, rules, now), ocr_confidence=ocr.confidence)
