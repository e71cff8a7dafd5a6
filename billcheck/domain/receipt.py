"""Data models for parsed bills."""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize an amount to two decimal places (half-up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _json_number(value: Decimal) -> float:
    return float(value)


@dataclass
class LineItem:
    """A single purchased product line."""

    name: str
    price: Decimal
    unit_price: Decimal
    quantity: int = 1
    category: str | None = None  # e.g. "food", "alcohol"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "quantity": self.quantity,
            "unitPrice": _json_number(self.unit_price),
            "price": _json_number(self.price),
        }
        if self.category:
            data["category"] = self.category
        return data


@dataclass
class ReceiptMetadata:
    """Loose facts about the bill that are not needed for validation."""

    language: str = "unknown"
    bill_type: str = "retail"
    payment_method: str = "unknown"
    cashier: str = ""
    terminal_id: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "language": self.language,
            "billType": self.bill_type,
            "paymentMethod": self.payment_method,
            "cashier": self.cashier,
            "terminalId": self.terminal_id,
        }


@dataclass
class Receipt:
    """Parsed bill data."""

    date: str = ""  # ISO YYYY-MM-DD when recognised, raw text otherwise
    store_name: str = ""
    store_address: str = ""
    bill_number: str = ""
    items: list[LineItem] = field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    currency: str = "₹"
    raw_text: str = ""  # Original OCR text for audit
    metadata: ReceiptMetadata | None = None

    @property
    def items_total(self) -> Decimal:
        return sum((item.price for item in self.items), Decimal("0"))

    def to_dict(self) -> dict[str, Any]:
        """Render the receipt in the camelCase shape used by bill consumers."""
        data: dict[str, Any] = {
            "date": self.date,
            "storeName": self.store_name,
            "storeAddress": self.store_address,
            "billNumber": self.bill_number,
            "items": [item.to_dict() for item in self.items],
            "subtotal": _json_number(self.subtotal),
            "tax": _json_number(self.tax),
            "taxRate": _json_number(self.tax_rate),
            "discount": _json_number(self.discount),
            "total": _json_number(self.total),
            "currency": self.currency,
            "rawText": self.raw_text,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data
