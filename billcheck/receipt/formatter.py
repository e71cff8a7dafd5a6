"""Format parsed bills and validation results as plain-text reports."""

from billcheck.domain.receipt import Receipt
from billcheck.domain.validation import ALGORITHM_NAMES, ValidationIssue, ValidationResult

RULE = "=" * 60

_CHECK_LABELS = {
    "mathVerification": "Math verification",
    "taxValidation": "Tax validation",
    "totalCheck": "Total check",
    "dateValidation": "Date validation",
    "patternAnalysis": "Pattern analysis",
}


def _format_issue(issue: ValidationIssue) -> str:
    line = f"  [{issue.severity.value.upper()}] {issue.kind.value}: {issue.message}"
    if issue.field:
        line += f" ({issue.field})"
    return line


def format_parsed_bill(receipt: Receipt) -> list[str]:
    """Header block listing what the parser found."""
    currency = receipt.currency
    lines = [
        RULE,
        "PARSED BILL",
        RULE,
        f"Store: {receipt.store_name or 'UNKNOWN'}",
    ]
    if receipt.store_address:
        lines.append(f"Address: {receipt.store_address}")
    lines.append(f"Date: {receipt.date or 'UNKNOWN'}")
    if receipt.bill_number:
        lines.append(f"Bill No: {receipt.bill_number}")

    lines.append(f"\nItems ({len(receipt.items)}):")
    for i, item in enumerate(receipt.items, 1):
        qty_str = f" x{item.quantity}" if item.quantity > 1 else ""
        cat_str = f" [{item.category}]" if item.category else ""
        lines.append(f"  {i}. {item.name}{qty_str} - {currency}{item.price:.2f}{cat_str}")

    lines.append("")
    lines.append(f"Subtotal: {currency}{receipt.subtotal:.2f}")
    if receipt.tax:
        lines.append(f"Tax: {currency}{receipt.tax:.2f} ({receipt.tax_rate}%)")
    if receipt.discount:
        lines.append(f"Discount: {currency}{receipt.discount:.2f}")
    lines.append(f"Total: {currency}{receipt.total:.2f}")
    return lines


def format_validation_result(result: ValidationResult) -> list[str]:
    """Verdict, per-check flags and every issue, errors first."""
    verdict = "VALID" if result.is_valid else "INVALID"
    lines = [
        RULE,
        f"VALIDATION: {verdict} (confidence {result.confidence_score}%)",
        RULE,
    ]

    for name in ALGORITHM_NAMES:
        if name not in result.algorithm_results:
            continue
        mark = "ok" if result.algorithm_results[name] else "FAILED"
        lines.append(f"  {_CHECK_LABELS[name]:<20} {mark}")

    if result.errors:
        lines.append(f"\nErrors ({len(result.errors)}):")
        lines.extend(_format_issue(issue) for issue in result.errors)
    if result.warnings:
        lines.append(f"\nWarnings ({len(result.warnings)}):")
        lines.extend(_format_issue(issue) for issue in result.warnings)
    return lines


def format_bill_report(receipt: Receipt | None, result: ValidationResult) -> str:
    lines = format_parsed_bill(receipt) if receipt is not None else []
    if lines:
        lines.append("")
    lines.extend(format_validation_result(result))
    return "\n".join(lines)
