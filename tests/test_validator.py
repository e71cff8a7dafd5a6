from datetime import datetime
from decimal import Decimal

import pytest
from billcheck.domain.receipt import LineItem, Receipt
from billcheck.domain.validation import IssueKind, Severity, ValidationIssue, ValidationResult
from billcheck.receipt.validator import BillValidator, confidence_score, validate_bill
from billcheck.runtime import load_item_category_rules

NOW = datetime(2024, 3, 12, 18, 0)


def _item(name: str, price: str, quantity: int = 1, unit_price: str | None = None) -> LineItem:
    return LineItem(
        name=name,
        price=Decimal(price),
        unit_price=Decimal(unit_price if unit_price is not None else price),
        quantity=quantity,
    )


def _receipt(**overrides: object) -> Receipt:
    fields: dict[str, object] = {
        "date": "2024-03-12",
        "store_name": "FRESH MART",
        "items": [_item("Basmati Rice", "85.00")],
        "subtotal": Decimal("85.00"),
        "tax": Decimal("4.25"),
        "tax_rate": Decimal("5"),
        "total": Decimal("89.25"),
    }
    fields.update(overrides)
    return Receipt(**fields)  # type: ignore[arg-type]


def _priced_items(prices: list[str]) -> list[LineItem]:
    return [_item(f"Item {i}", price) for i, price in enumerate(prices)]


def _no_tax_receipt(items: list[LineItem], **overrides: object) -> Receipt:
    subtotal = sum((item.price for item in items), Decimal("0"))
    fields: dict[str, object] = {"items": items, "subtotal": subtotal, "tax": Decimal("0"), "total": subtotal}
    fields.update(overrides)
    return _receipt(**fields)


def _messages(issues: list[ValidationIssue]) -> str:
    return " | ".join(issue.message for issue in issues)


# --- Scenarios ---


def test_consistent_bill_is_fully_valid() -> None:
    result = validate_bill(_receipt(), now=NOW)

    assert result.is_valid is True
    assert result.errors == []
    assert result.warnings == []
    assert result.confidence_score == 100
    assert all(result.algorithm_results.values())
    assert set(result.algorithm_results) == {
        "mathVerification",
        "taxValidation",
        "totalCheck",
        "dateValidation",
        "patternAnalysis",
    }


def test_wrong_printed_subtotal_is_math_error() -> None:
    result = validate_bill(
        _receipt(subtotal=Decimal("90.00"), tax=Decimal("4.50"), total=Decimal("94.50")),
        now=NOW,
    )

    assert result.is_valid is False
    assert [(issue.kind, issue.severity) for issue in result.errors] == [(IssueKind.MATH_ERROR, Severity.HIGH)]
    assert result.errors[0].field == "subtotal"
    assert result.errors[0].expected == Decimal("85.00")
    assert result.errors[0].actual == Decimal("90.00")
    assert result.confidence_score == 75
    assert result.algorithm_results["mathVerification"] is False


def test_wrong_printed_tax_is_tax_error() -> None:
    result = validate_bill(_receipt(tax=Decimal("10.00"), total=Decimal("95.00")), now=NOW)

    assert result.is_valid is False
    assert IssueKind.TAX_ERROR in {issue.kind for issue in result.errors}
    assert result.confidence_score <= 85


def test_tax_rate_off_schedule_fails_tax_validation() -> None:
    # 8% sits between 5% and 12%, outside the 0.5 point tolerance.
    result = validate_bill(
        _receipt(subtotal=Decimal("100.00"), items=[_item("Rice", "100.00")], tax=Decimal("8.00"), total=Decimal("108.00")),
        now=NOW,
    )

    assert result.algorithm_results["taxValidation"] is False
    assert "Invalid tax rate" in _messages(result.errors)


def test_future_date_is_high_error() -> None:
    result = validate_bill(_receipt(date="2024-03-13"), now=NOW)

    assert result.is_valid is False
    assert [(issue.kind, issue.severity) for issue in result.errors] == [(IssueKind.FUTURE_DATE, Severity.HIGH)]
    assert result.algorithm_results["dateValidation"] is False


def test_same_day_later_hour_is_not_future() -> None:
    result = validate_bill(_receipt(date="2024-03-12T21:30"), now=NOW)

    assert IssueKind.FUTURE_DATE not in result.kinds()


def test_duplicate_items_ignore_case_and_spacing() -> None:
    items = [_item("Rice", "50.00"), _item("rice ", "50.00")]
    result = validate_bill(
        _receipt(items=items, subtotal=Decimal("100.00"), tax=Decimal("5.00"), total=Decimal("105.00")),
        now=NOW,
    )

    assert result.is_valid is True
    assert [(issue.kind, issue.severity) for issue in result.warnings] == [(IssueKind.DUPLICATE_ITEMS, Severity.MEDIUM)]
    assert result.confidence_score == 95


def test_empty_receipt_warns_per_check_and_does_not_raise() -> None:
    result = validate_bill(Receipt(), now=NOW)

    warned_kinds = {issue.kind for issue in result.warnings}
    assert {
        IssueKind.MATH_ERROR,
        IssueKind.TAX_ERROR,
        IssueKind.TOTAL_ERROR,
        IssueKind.DATE_ERROR,
        IssueKind.SUSPICIOUS_PATTERN,
    } <= warned_kinds
    # Below the minimum transaction amount.
    assert [issue.kind for issue in result.errors] == [IssueKind.TOTAL_ERROR]
    assert result.is_valid is False
    assert 0 <= result.confidence_score < 100


# --- Tolerance ---


def test_difference_of_exactly_one_paisa_is_tolerated() -> None:
    result = validate_bill(_receipt(subtotal=Decimal("85.01")), now=NOW)

    assert IssueKind.MATH_ERROR not in result.kinds()
    assert result.algorithm_results["mathVerification"] is True


def test_difference_above_one_paisa_is_math_error() -> None:
    result = validate_bill(_receipt(subtotal=Decimal("85.011")), now=NOW)

    assert IssueKind.MATH_ERROR in {issue.kind for issue in result.errors}


def test_line_quantity_times_unit_price_must_match() -> None:
    items = [_item("Bread", "45.00", quantity=2, unit_price="20.00")]
    result = validate_bill(
        _no_tax_receipt(items),
        now=NOW,
    )

    line_errors = [issue for issue in result.errors if issue.field == "items[0].price"]
    assert len(line_errors) == 1
    assert line_errors[0].severity == Severity.MEDIUM
    assert line_errors[0].expected == Decimal("40.00")


# --- Individual checks ---


def test_total_mismatch_is_high_error() -> None:
    result = validate_bill(_receipt(total=Decimal("99.25")), now=NOW)

    assert [(issue.kind, issue.severity) for issue in result.errors] == [(IssueKind.TOTAL_ERROR, Severity.HIGH)]
    assert result.algorithm_results["totalCheck"] is False


def test_negative_total_is_high_error() -> None:
    result = validate_bill(_receipt(total=Decimal("-10.00")), now=NOW)

    negative = [issue for issue in result.errors if "cannot be negative" in issue.message]
    assert [(issue.kind, issue.severity) for issue in negative] == [(IssueKind.TOTAL_ERROR, Severity.HIGH)]
    assert result.is_valid is False


def test_discount_is_subtracted_from_total() -> None:
    result = validate_bill(_receipt(discount=Decimal("9.25"), total=Decimal("80.00")), now=NOW)

    assert result.algorithm_results["totalCheck"] is True


def test_missing_tax_is_low_warning() -> None:
    result = validate_bill(_receipt(tax=Decimal("0"), total=Decimal("85.00")), now=NOW)

    assert result.is_valid is True
    assert [(issue.kind, issue.severity) for issue in result.warnings] == [(IssueKind.TAX_ERROR, Severity.LOW)]
    assert result.algorithm_results["taxValidation"] is True
    assert result.confidence_score == 98


def test_very_high_total_warns() -> None:
    items = [_item("Gold Coin", "150000.01")]
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    assert "Very high total amount" in _messages(result.warnings)


def test_unparseable_date_warns_and_passes() -> None:
    result = validate_bill(_receipt(date="31/02/2024"), now=NOW)

    assert [(issue.kind, issue.severity) for issue in result.warnings] == [(IssueKind.DATE_ERROR, Severity.LOW)]
    assert result.algorithm_results["dateValidation"] is True


def test_old_date_warns() -> None:
    result = validate_bill(_receipt(date="2022-01-01"), now=NOW)

    assert [issue.kind for issue in result.warnings] == [IssueKind.OLD_DATE]
    assert result.is_valid is True


def test_high_value_sunday_bill_warns() -> None:
    # 2024-03-10 was a Sunday.
    items = [_item("Television", "1201.00")]
    result = validate_bill(_no_tax_receipt(items, date="2024-03-10"), now=NOW)

    assert "Sunday" in _messages(result.warnings)


def test_unusual_hour_only_checked_when_time_present() -> None:
    with_time = validate_bill(_receipt(date="2024-03-12T03:15"), now=NOW)
    date_only = validate_bill(_receipt(date="2024-03-12"), now=NOW)

    assert "unusual hour" in _messages(with_time.warnings)
    assert date_only.warnings == []


def test_price_outlier_needs_high_z_score_and_high_price() -> None:
    items = _priced_items(["10.50"] * 7 + ["20000.50"])
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    assert IssueKind.PRICE_OUTLIER in {issue.kind for issue in result.warnings}


@pytest.mark.parametrize(
    "prices",
    [
        pytest.param(["10.50", "20000.50"], id="fewer-than-three-items"),
        pytest.param(["10.50"] * 7 + ["9000.50"], id="high-z-score-below-price-floor"),
    ],
)
def test_price_outlier_guards(prices: list[str]) -> None:
    result = validate_bill(_no_tax_receipt(_priced_items(prices)), now=NOW)

    assert IssueKind.PRICE_OUTLIER not in result.kinds()


def test_no_outlier_when_prices_identical() -> None:
    items = _priced_items(["10.50", "10.50", "10.50"])
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    assert IssueKind.PRICE_OUTLIER not in result.kinds()


@pytest.mark.parametrize("quantity", [301, 0, -2])
def test_unusual_quantity_warns(quantity: int) -> None:
    items = [_item("Screws", "150.50", quantity=quantity, unit_price="0.50")]
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    assert "Unusual quantities" in _messages(result.warnings)


def test_round_prices_and_round_total_warn() -> None:
    items = _priced_items(["20.00", "30.00", "40.00", "60.00"])
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    messages = _messages(result.warnings)
    assert "round numbers" in messages
    assert "is a round number" in messages


def test_same_item_with_different_unit_prices_warns() -> None:
    items = [_item("Milk", "28.00"), _item("milk", "30.00")]
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    kinds_and_severities = {(issue.kind, issue.severity) for issue in result.warnings}
    assert (IssueKind.PRICE_OUTLIER, Severity.MEDIUM) in kinds_and_severities
    assert (IssueKind.DUPLICATE_ITEMS, Severity.MEDIUM) in kinds_and_severities


def test_unusual_category_combination_needs_category_rules() -> None:
    items = [_item("Baby Diapers", "450.00"), _item("Kingfisher Beer", "180.50")]
    receipt = _no_tax_receipt(items)

    with_rules = validate_bill(receipt, category_rules=load_item_category_rules(), now=NOW)
    without_rules = validate_bill(receipt, now=NOW)

    assert "alcohol + baby" in _messages(with_rules.warnings)
    assert "combination" not in _messages(without_rules.warnings)


def test_benford_check_flags_uniform_leading_digit() -> None:
    items = _priced_items(["50.50"] * 10)
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    assert "leading digit: 5" in _messages(result.warnings)


def test_benford_check_skips_small_bills() -> None:
    items = _priced_items(["50.50"] * 9)
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    assert "leading digit" not in _messages(result.warnings)


def test_benford_check_accepts_leading_one() -> None:
    items = _priced_items([f"1{i}.50" for i in range(10)])
    result = validate_bill(_no_tax_receipt(items), now=NOW)

    assert "leading digit" not in _messages(result.warnings)


# --- Failure handling ---


def test_failing_check_is_downgraded_to_warning() -> None:
    broken = LineItem(name="Rice", price=None, unit_price=Decimal("85.00"))  # type: ignore[arg-type]
    result = validate_bill(_receipt(items=[broken]), now=NOW)

    assert (IssueKind.MATH_ERROR, Severity.MEDIUM) in {(issue.kind, issue.severity) for issue in result.warnings}
    assert "Unable to verify mathematical accuracy" in _messages(result.warnings)
    # Later checks still ran.
    assert result.algorithm_results["totalCheck"] is True
    assert result.algorithm_results["dateValidation"] is True


def test_catastrophic_failure_yields_validation_error() -> None:
    def broken_clock() -> datetime:
        raise RuntimeError("clock unavailable")

    result = BillValidator(clock=broken_clock).validate(_receipt())

    assert result.is_valid is False
    assert result.confidence_score == 0
    assert result.algorithm_results == {}
    assert result.warnings == []
    assert [(issue.kind, issue.severity) for issue in result.errors] == [
        (IssueKind.VALIDATION_ERROR, Severity.HIGH)
    ]
    assert result.errors[0].message == "clock unavailable"


# --- Properties ---


def test_validation_is_idempotent_and_leaves_receipt_untouched() -> None:
    receipt = _receipt(subtotal=Decimal("90.00"))
    before = receipt.to_dict()

    first = validate_bill(receipt, now=NOW)
    second = validate_bill(receipt, now=NOW)

    assert first.to_dict() == second.to_dict()
    assert receipt.to_dict() == before


def test_validator_uses_injected_clock() -> None:
    validator = BillValidator(clock=lambda: datetime(2024, 3, 11, 9, 0))

    result = validator.validate(_receipt())

    assert IssueKind.FUTURE_DATE in result.kinds()


def test_validate_bill_defaults_to_wall_clock() -> None:
    pinned = validate_bill(_receipt(date="2999-01-01"), now=datetime(3000, 1, 1))
    unpinned = validate_bill(_receipt(date="2999-01-01"))

    assert IssueKind.FUTURE_DATE not in pinned.kinds()
    assert IssueKind.FUTURE_DATE in unpinned.kinds()


@pytest.mark.parametrize(
    ("errors", "warnings", "expected"),
    [
        ([], [], 100),
        ([Severity.HIGH], [], 75),
        ([Severity.MEDIUM], [Severity.MEDIUM], 80),
        ([Severity.LOW], [Severity.HIGH, Severity.LOW], 83),
        ([Severity.HIGH] * 5, [], 0),
    ],
)
def test_confidence_score(errors: list[Severity], warnings: list[Severity], expected: int) -> None:
    result = ValidationResult(
        errors=[ValidationIssue(kind=IssueKind.MATH_ERROR, message="e", severity=s) for s in errors],
        warnings=[ValidationIssue(kind=IssueKind.SUSPICIOUS_PATTERN, message="w", severity=s) for s in warnings],
    )

    assert confidence_score(result) == expected


def test_result_to_dict_uses_wire_names() -> None:
    data = validate_bill(_receipt(subtotal=Decimal("90.00")), now=NOW).to_dict()

    assert data["isValid"] is False
    assert data["confidenceScore"] < 100
    error = data["errors"][0]
    assert error["type"] == "MATH_ERROR"
    assert error["severity"] == "high"
    assert error["expected"] == 85.0
    assert error["actual"] == 90.0
