"""Validation result models.

Issue kinds form a closed set shared with existing consumers of bill
validation results, so new values must not be added casually.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class IssueKind(str, Enum):
    """Type tag carried by every validation error or warning."""

    MATH_ERROR = "MATH_ERROR"
    TAX_ERROR = "TAX_ERROR"
    TOTAL_ERROR = "TOTAL_ERROR"
    DATE_ERROR = "DATE_ERROR"
    PRICE_ERROR = "PRICE_ERROR"
    FUTURE_DATE = "FUTURE_DATE"
    OLD_DATE = "OLD_DATE"
    DUPLICATE_ITEMS = "DUPLICATE_ITEMS"
    PRICE_OUTLIER = "PRICE_OUTLIER"
    SUSPICIOUS_PATTERN = "SUSPICIOUS_PATTERN"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class Severity(str, Enum):
    """How much an issue should erode trust in the bill."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Names of the published per-check flags, in the order the checks run.
ALGORITHM_NAMES = (
    "mathVerification",
    "taxValidation",
    "totalCheck",
    "dateValidation",
    "patternAnalysis",
)


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


@dataclass(frozen=True)
class ValidationIssue:
    """One detected error or warning."""

    kind: IssueKind
    message: str
    severity: Severity
    field: str | None = None
    expected: Any = None
    actual: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.kind.value,
            "message": self.message,
            "severity": self.severity.value,
        }
        if self.field is not None:
            data["field"] = self.field
        if self.expected is not None:
            data["expected"] = _json_value(self.expected)
        if self.actual is not None:
            data["actual"] = _json_value(self.actual)
        return data


@dataclass
class ValidationResult:
    """Outcome of validating one receipt."""

    is_valid: bool = True
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    confidence_score: int = 100
    algorithm_results: dict[str, bool] = field(default_factory=lambda: dict.fromkeys(ALGORITHM_NAMES, False))

    def add_error(self, issue: ValidationIssue) -> None:
        self.errors.append(issue)

    def add_warning(self, issue: ValidationIssue) -> None:
        self.warnings.append(issue)

    def kinds(self) -> set[IssueKind]:
        """All issue kinds present among errors and warnings."""
        return {issue.kind for issue in self.errors} | {issue.kind for issue in self.warnings}

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "confidenceScore": self.confidence_score,
            "algorithmResults": dict(self.algorithm_results),
        }
