"""Consistency checks for parsed bills.

The validator runs a fixed battery of checks over a Receipt:

1. Math verification: items add up to the subtotal, each line's
   quantity x unit price matches its price
2. Tax validation: the effective tax rate is on the jurisdiction's schedule
3. Total check: subtotal + tax - discount equals the printed total
4. Date validation: the bill is neither in the future nor implausibly old
5. Pattern analysis: duplicates, outliers, odd quantities, round numbers
6. Business logic: minimum amount, unusual category combinations
7. Anomaly detection: leading-digit distribution, transaction hour

Each check appends issues to the shared result and flips its flag in
``algorithm_results``. A check that blows up is logged and turned into a
single warning so the remaining checks still run. Missing data is never
treated as evidence of an error: those branches warn and pass.
"""

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from billcheck.domain.receipt import Receipt, to_money
from billcheck.domain.validation import IssueKind, Severity, ValidationIssue, ValidationResult

from .item_categories import ItemCategoryRules, unusual_combinations
from .jurisdiction import DEFAULT_JURISDICTION_RULES, JurisdictionRules

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

ERROR_PENALTIES = {Severity.HIGH: 25, Severity.MEDIUM: 15, Severity.LOW: 5}
WARNING_PENALTIES = {Severity.HIGH: 10, Severity.MEDIUM: 5, Severity.LOW: 2}

MIN_ITEMS_FOR_OUTLIERS = 3
OUTLIER_Z_SCORE = Decimal("2")
MIN_ITEMS_FOR_ROUNDING = 4
ROUND_TOTAL_FLOOR = Decimal("100")
MIN_ITEMS_FOR_BENFORD = 10
EARLIEST_BUSINESS_HOUR = 6
LATEST_BUSINESS_HOUR = 23
SUNDAY = 6


@dataclass
class _CheckContext:
    receipt: Receipt
    rules: JurisdictionRules
    category_rules: ItemCategoryRules | None
    now: datetime
    result: ValidationResult

    def money(self, amount: Decimal) -> str:
        return f"{self.receipt.currency}{amount:.2f}"

    def error(self, kind: IssueKind, severity: Severity, message: str, **details: object) -> None:
        self.result.add_error(ValidationIssue(kind=kind, message=message, severity=severity, **details))

    def warn(self, kind: IssueKind, severity: Severity, message: str, **details: object) -> None:
        self.result.add_warning(ValidationIssue(kind=kind, message=message, severity=severity, **details))


def _normalized_name(name: str) -> str:
    return " ".join(name.lower().split())


def _parse_bill_datetime(value: str) -> tuple[datetime, bool] | None:
    """Parse an ISO date (optionally with time); returns (datetime, has_time)."""
    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed, len(text) > 10


# --- 1. Math verification ---
def _check_math(ctx: _CheckContext) -> None:
    receipt = ctx.receipt
    tolerance = ctx.rules.amount_tolerance
    calculated = receipt.items_total

    if not receipt.items:
        ctx.warn(
            IssueKind.MATH_ERROR,
            Severity.LOW,
            "No line items found - item arithmetic could not be verified",
            field="items",
        )

    if abs(calculated - receipt.subtotal) > tolerance:
        ctx.error(
            IssueKind.MATH_ERROR,
            Severity.HIGH,
            f"Subtotal mismatch: Calculated {ctx.money(calculated)} vs Printed {ctx.money(receipt.subtotal)}",
            field="subtotal",
            expected=calculated,
            actual=receipt.subtotal,
        )
    else:
        ctx.result.algorithm_results["mathVerification"] = True

    for index, item in enumerate(receipt.items):
        line_total = item.quantity * item.unit_price
        if abs(line_total - item.price) > tolerance:
            ctx.error(
                IssueKind.MATH_ERROR,
                Severity.MEDIUM,
                f"Item {index + 1} price mismatch: {item.quantity} × {ctx.money(item.unit_price)}"
                f" = {ctx.money(line_total)} vs {ctx.money(item.price)}",
                field=f"items[{index}].price",
                expected=line_total,
                actual=item.price,
            )


# --- 2. Tax validation ---
def _check_tax(ctx: _CheckContext) -> None:
    receipt = ctx.receipt
    rules = ctx.rules

    if receipt.tax == 0:
        ctx.warn(
            IssueKind.TAX_ERROR,
            Severity.LOW,
            "No tax found on bill - this may be unusual for retail purchases",
            field="tax",
        )
        ctx.result.algorithm_results["taxValidation"] = True
        return

    if receipt.subtotal <= 0:
        ctx.warn(
            IssueKind.TAX_ERROR,
            Severity.LOW,
            f"Tax of {ctx.money(receipt.tax)} printed without a subtotal to check it against",
            field="tax",
        )
        ctx.result.algorithm_results["taxValidation"] = True
        return

    actual_rate = receipt.tax / receipt.subtotal * 100
    closest_rate = rules.closest_tax_rate(actual_rate)
    expected_tax = receipt.subtotal * closest_rate / 100

    if abs(actual_rate - closest_rate) > rules.rate_tolerance:
        ctx.error(
            IssueKind.TAX_ERROR,
            Severity.MEDIUM,
            f"Invalid tax rate: {actual_rate:.2f}% (closest valid rate: {closest_rate}%)",
            field="tax",
            expected=to_money(expected_tax),
            actual=receipt.tax,
        )
    else:
        ctx.result.algorithm_results["taxValidation"] = True

    if abs(expected_tax - receipt.tax) > rules.amount_tolerance:
        ctx.error(
            IssueKind.TAX_ERROR,
            Severity.MEDIUM,
            f"Tax calculation error: Expected {ctx.money(expected_tax)} ({closest_rate}%)"
            f" vs Printed {ctx.money(receipt.tax)}",
            field="tax",
            expected=to_money(expected_tax),
            actual=receipt.tax,
        )


# --- 3. Total check ---
def _check_total(ctx: _CheckContext) -> None:
    receipt = ctx.receipt
    calculated = receipt.subtotal + receipt.tax - receipt.discount

    if abs(calculated - receipt.total) > ctx.rules.amount_tolerance:
        ctx.error(
            IssueKind.TOTAL_ERROR,
            Severity.HIGH,
            f"Total calculation error: Expected {ctx.money(calculated)} vs Printed {ctx.money(receipt.total)}",
            field="total",
            expected=calculated,
            actual=receipt.total,
        )
    else:
        ctx.result.algorithm_results["totalCheck"] = True

    if receipt.total < 0:
        ctx.error(IssueKind.TOTAL_ERROR, Severity.HIGH, "Total amount cannot be negative", field="total")
    elif receipt.total == 0:
        ctx.warn(IssueKind.TOTAL_ERROR, Severity.LOW, "No total amount found on bill", field="total")

    if receipt.total > ctx.rules.high_total:
        ctx.warn(
            IssueKind.TOTAL_ERROR,
            Severity.LOW,
            f"Very high total amount: {ctx.money(receipt.total)}",
            field="total",
        )


# --- 4. Date validation ---
def _check_date(ctx: _CheckContext) -> None:
    receipt = ctx.receipt
    flags = ctx.result.algorithm_results

    if not receipt.date:
        ctx.warn(IssueKind.DATE_ERROR, Severity.LOW, "No date found on bill", field="date")
        flags["dateValidation"] = True
        return

    parsed = _parse_bill_datetime(receipt.date)
    if parsed is None:
        ctx.warn(
            IssueKind.DATE_ERROR,
            Severity.LOW,
            f"Unrecognised date format: {receipt.date!r}",
            field="date",
            actual=receipt.date,
        )
        flags["dateValidation"] = True
        return

    bill_datetime, _has_time = parsed
    days_old = (ctx.now.date() - bill_datetime.date()).days

    if days_old < 0:
        ctx.error(
            IssueKind.FUTURE_DATE,
            Severity.HIGH,
            f"Bill date {receipt.date} is in the future",
            field="date",
            actual=receipt.date,
        )
    else:
        flags["dateValidation"] = True
        if days_old > ctx.rules.max_bill_age_days:
            ctx.warn(IssueKind.OLD_DATE, Severity.LOW, f"Bill is very old ({days_old} days)", field="date")

    if bill_datetime.weekday() == SUNDAY and receipt.total > ctx.rules.sunday_high_value:
        ctx.warn(
            IssueKind.DATE_ERROR,
            Severity.LOW,
            "High-value transaction on Sunday - verify if store was open",
            field="date",
        )


# --- 5. Pattern analysis ---
def _detect_duplicate_items(ctx: _CheckContext) -> None:
    counts = Counter(_normalized_name(item.name) for item in ctx.receipt.items)
    duplicates = [name for name, count in counts.items() if count > 1]
    if duplicates:
        ctx.warn(
            IssueKind.DUPLICATE_ITEMS,
            Severity.MEDIUM,
            f"Potential duplicate items: {', '.join(duplicates)}",
            field="items",
        )


def _detect_price_outliers(ctx: _CheckContext) -> None:
    items = ctx.receipt.items
    if len(items) < MIN_ITEMS_FOR_OUTLIERS:
        return

    prices = [item.price for item in items]
    mean = sum(prices, Decimal("0")) / len(prices)
    variance = sum(((p - mean) ** 2 for p in prices), Decimal("0")) / len(prices)
    std_dev = variance.sqrt()
    if std_dev == 0:
        return

    outliers = [
        item
        for item in items
        if abs(item.price - mean) / std_dev > OUTLIER_Z_SCORE and item.price > ctx.rules.max_item_price
    ]
    if outliers:
        listed = ", ".join(f"{item.name} ({ctx.money(item.price)})" for item in outliers)
        ctx.warn(IssueKind.PRICE_OUTLIER, Severity.LOW, f"Unusually high prices detected: {listed}", field="items")


def _analyze_quantities(ctx: _CheckContext) -> None:
    unusual = [item for item in ctx.receipt.items if item.quantity <= 0 or item.quantity > ctx.rules.max_quantity]
    if unusual:
        listed = ", ".join(f"{item.name} (qty: {item.quantity})" for item in unusual)
        ctx.warn(IssueKind.SUSPICIOUS_PATTERN, Severity.LOW, f"Unusual quantities detected: {listed}", field="items")


def _detect_suspicious_rounding(ctx: _CheckContext) -> None:
    items = ctx.receipt.items
    if len(items) >= MIN_ITEMS_FOR_ROUNDING and all(item.price % 1 == 0 for item in items):
        ctx.warn(
            IssueKind.SUSPICIOUS_PATTERN,
            Severity.LOW,
            "All item prices are round numbers - verify pricing accuracy",
            field="items",
        )

    total = ctx.receipt.total
    if total > ROUND_TOTAL_FLOOR and total % 10 == 0:
        ctx.warn(
            IssueKind.SUSPICIOUS_PATTERN,
            Severity.LOW,
            f"Total amount {ctx.money(total)} is a round number - verify calculation",
            field="total",
        )


def _check_pricing_consistency(ctx: _CheckContext) -> None:
    unit_prices: dict[str, list[Decimal]] = {}
    for item in ctx.receipt.items:
        seen = unit_prices.setdefault(_normalized_name(item.name), [])
        if item.unit_price not in seen:
            seen.append(item.unit_price)

    for name, prices in unit_prices.items():
        if len(prices) > 1:
            listed = ", ".join(ctx.money(p) for p in prices)
            ctx.warn(
                IssueKind.PRICE_OUTLIER,
                Severity.MEDIUM,
                f'Same item "{name}" has different unit prices: {listed}',
                field="items",
            )


def _analyze_patterns(ctx: _CheckContext) -> None:
    if not ctx.receipt.items:
        ctx.warn(
            IssueKind.SUSPICIOUS_PATTERN,
            Severity.LOW,
            "No line items found - item patterns could not be analysed",
            field="items",
        )
    _detect_duplicate_items(ctx)
    _detect_price_outliers(ctx)
    _analyze_quantities(ctx)
    _detect_suspicious_rounding(ctx)
    _check_pricing_consistency(ctx)
    ctx.result.algorithm_results["patternAnalysis"] = True


# --- 6. Business logic ---
def _check_business_logic(ctx: _CheckContext) -> None:
    if ctx.receipt.total < ctx.rules.min_total:
        ctx.error(
            IssueKind.TOTAL_ERROR,
            Severity.HIGH,
            f"Total amount {ctx.money(ctx.receipt.total)} too small for a valid transaction",
            field="total",
        )

    if ctx.category_rules is None:
        return
    for combo in unusual_combinations(ctx.receipt.items, ctx.category_rules):
        ctx.warn(
            IssueKind.SUSPICIOUS_PATTERN,
            Severity.LOW,
            f"Unusual item combination detected: {' + '.join(sorted(combo))}",
            field="items",
        )


# --- 7. Anomaly detection ---
def _check_benfords_law(ctx: _CheckContext) -> None:
    items = ctx.receipt.items
    if len(items) < MIN_ITEMS_FOR_BENFORD:
        return

    leading_digits = Counter(str(item.price)[0] for item in items)
    counts = {digit: n for digit, n in leading_digits.items() if digit in "123456789"}
    if not counts:
        return

    # Ties resolve towards the larger digit, so "1" must strictly lead.
    most_common = max(counts, key=lambda digit: (counts[digit], digit))
    if most_common != "1":
        ctx.warn(
            IssueKind.SUSPICIOUS_PATTERN,
            Severity.LOW,
            f"Price distribution may indicate artificial data (most common leading digit: {most_common})",
            field="items",
        )


def _check_timing(ctx: _CheckContext) -> None:
    if not ctx.receipt.date:
        return
    parsed = _parse_bill_datetime(ctx.receipt.date)
    if parsed is None:
        return
    bill_datetime, has_time = parsed
    # Date-only bills carry no hour to judge.
    if not has_time:
        return
    if bill_datetime.hour < EARLIEST_BUSINESS_HOUR or bill_datetime.hour > LATEST_BUSINESS_HOUR:
        ctx.warn(
            IssueKind.DATE_ERROR,
            Severity.LOW,
            f"Transaction at unusual hour: {bill_datetime.hour}:00",
            field="date",
        )


def _detect_anomalies(ctx: _CheckContext) -> None:
    _check_benfords_law(ctx)
    _check_timing(ctx)


@dataclass(frozen=True)
class _Check:
    name: str
    run: Callable[[_CheckContext], None]
    # Warning raised if the check itself fails; None means log only.
    fallback: tuple[IssueKind, Severity, str] | None


CHECKS = (
    _Check("math", _check_math, (IssueKind.MATH_ERROR, Severity.MEDIUM, "Unable to verify mathematical accuracy")),
    _Check("tax", _check_tax, (IssueKind.TAX_ERROR, Severity.MEDIUM, "Unable to validate tax calculations")),
    _Check("total", _check_total, (IssueKind.TOTAL_ERROR, Severity.MEDIUM, "Unable to validate total amount")),
    _Check("date", _check_date, (IssueKind.DATE_ERROR, Severity.LOW, "Unable to validate date")),
    _Check(
        "patterns",
        _analyze_patterns,
        (IssueKind.SUSPICIOUS_PATTERN, Severity.LOW, "Unable to complete pattern analysis"),
    ),
    _Check(
        "business",
        _check_business_logic,
        (IssueKind.SUSPICIOUS_PATTERN, Severity.LOW, "Unable to complete business logic checks"),
    ),
    _Check("anomalies", _detect_anomalies, None),
)


def confidence_score(result: ValidationResult) -> int:
    """100 minus severity-weighted penalties, clamped to 0..100."""
    score = 100
    score -= sum(ERROR_PENALTIES[issue.severity] for issue in result.errors)
    score -= sum(WARNING_PENALTIES[issue.severity] for issue in result.warnings)
    return max(0, min(100, score))


def _failed_validation(exc: Exception) -> ValidationResult:
    return ValidationResult(
        is_valid=False,
        errors=[ValidationIssue(kind=IssueKind.VALIDATION_ERROR, message=str(exc), severity=Severity.HIGH)],
        warnings=[],
        confidence_score=0,
        algorithm_results={},
    )


@dataclass(frozen=True)
class BillValidator:
    """Stateless validator bound to a rule set and a clock."""

    jurisdiction: JurisdictionRules = DEFAULT_JURISDICTION_RULES
    category_rules: ItemCategoryRules | None = None
    clock: Clock = field(default=datetime.now)

    def validate(self, receipt: Receipt) -> ValidationResult:
        """Run every check over ``receipt``; never raises."""
        try:
            ctx = _CheckContext(
                receipt=receipt,
                rules=self.jurisdiction,
                category_rules=self.category_rules,
                now=self.clock(),
                result=ValidationResult(),
            )
            for check in CHECKS:
                try:
                    check.run(ctx)
                except Exception as exc:
                    logger.warning("Validation check %r failed: %s", check.name, exc)
                    if check.fallback is not None:
                        kind, severity, message = check.fallback
                        ctx.warn(kind, severity, message)

            result = ctx.result
            result.is_valid = not result.errors
            result.confidence_score = confidence_score(result)
        except Exception as exc:
            logger.exception("Bill validation failed")
            return _failed_validation(exc)

        logger.debug(
            "Validated bill: %d errors, %d warnings, confidence %d",
            len(result.errors),
            len(result.warnings),
            result.confidence_score,
        )
        return result


def validate_bill(
    receipt: Receipt,
    jurisdiction: JurisdictionRules = DEFAULT_JURISDICTION_RULES,
    category_rules: ItemCategoryRules | None = None,
    now: datetime | None = None,
) -> ValidationResult:
    """Validate ``receipt``; pass ``now`` to pin the date checks to a fixed moment."""
    clock = (lambda: now) if now is not None else datetime.now
    return BillValidator(jurisdiction=jurisdiction, category_rules=category_rules, clock=clock).validate(receipt)
