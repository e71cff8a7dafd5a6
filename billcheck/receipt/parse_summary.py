"""Quick sanity checks and coverage statistics for a freshly parsed bill."""

from dataclasses import dataclass, field

from billcheck.domain.receipt import Receipt

from .jurisdiction import DEFAULT_JURISDICTION_RULES, JurisdictionRules


@dataclass(frozen=True)
class ParseStats:
    """Which fields the parser managed to fill."""

    items_found: int
    has_date: bool
    has_store_name: bool
    has_bill_number: bool
    has_subtotal: bool
    has_tax: bool
    has_discount: bool
    has_total: bool
    currency: str
    text_length: int

    def to_dict(self) -> dict[str, object]:
        return {
            "itemsFound": self.items_found,
            "hasDate": self.has_date,
            "hasStoreName": self.has_store_name,
            "hasBillNumber": self.has_bill_number,
            "hasSubtotal": self.has_subtotal,
            "hasTax": self.has_tax,
            "hasDiscount": self.has_discount,
            "hasTotal": self.has_total,
            "currency": self.currency,
            "textLength": self.text_length,
        }


@dataclass(frozen=True)
class ParseCheck:
    """Plain-language problems spotted right after parsing."""

    issues: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues


def parsing_stats(receipt: Receipt) -> ParseStats:
    return ParseStats(
        items_found=len(receipt.items),
        has_date=bool(receipt.date),
        has_store_name=bool(receipt.store_name),
        has_bill_number=bool(receipt.bill_number),
        has_subtotal=receipt.subtotal > 0,
        has_tax=receipt.tax > 0,
        has_discount=receipt.discount > 0,
        has_total=receipt.total > 0,
        currency=receipt.currency,
        text_length=len(receipt.raw_text),
    )


def check_parsed_receipt(receipt: Receipt, rules: JurisdictionRules = DEFAULT_JURISDICTION_RULES) -> ParseCheck:
    """
    Flag obviously incomplete or inconsistent parser output.

    This is a cheaper, coarser pass than the validator and is meant for
    deciding whether a bill needs a manual look before validation.
    """
    issues: list[str] = []
    tolerance = rules.amount_tolerance

    if not receipt.items:
        issues.append("No items found in bill")
    if receipt.total <= 0:
        issues.append("Invalid or missing total amount")
    if receipt.subtotal <= 0:
        issues.append("Invalid or missing subtotal")

    if abs(receipt.items_total - receipt.subtotal) > tolerance:
        issues.append("Subtotal does not match sum of items")

    expected_total = receipt.subtotal + receipt.tax - receipt.discount
    if abs(expected_total - receipt.total) > tolerance:
        issues.append("Total does not match subtotal + tax - discount")

    if receipt.tax_rate > rules.max_tax_rate:
        issues.append("Tax rate seems unreasonably high")
    if receipt.discount > receipt.subtotal:
        issues.append("Discount exceeds subtotal")

    return ParseCheck(issues=issues)
