"""Core domain models for bill checking.

This module provides the data models used throughout the project:
- Receipt, LineItem, ReceiptMetadata: parsed bill data
- ValidationResult, ValidationIssue, IssueKind, Severity: validator output

Usage:
    from billcheck.domain import Receipt, LineItem, ValidationResult
"""

from billcheck.domain.receipt import LineItem, Receipt, ReceiptMetadata, to_money
from billcheck.domain.validation import (
    ALGORITHM_NAMES,
    IssueKind,
    Severity,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "ALGORITHM_NAMES",
    "IssueKind",
    "LineItem",
    "Receipt",
    "ReceiptMetadata",
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    "to_money",
]
