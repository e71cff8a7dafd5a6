"""Jurisdiction-specific parameters for bill parsing and validation.

The tax schedule, the currency table and the validator thresholds are
configuration data. Defaults live in
``billcheck/receipt/rules/default_jurisdiction.toml``; a project may layer its
own ``config/jurisdiction.toml`` on top (see ``billcheck.runtime``).
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any

CurrencyEntry = tuple[str, tuple[str, ...]]


@dataclass(frozen=True)
class JurisdictionRules:
    """In-memory tax schedule, currency table and validation limits."""

    tax_rates: tuple[Decimal, ...] = tuple(Decimal(r) for r in ("0", "5", "12", "18", "28"))
    rate_tolerance: Decimal = Decimal("0.5")
    amount_tolerance: Decimal = Decimal("0.01")
    home_currency: str = "₹"
    # Priority ordered: first symbol whose markers appear in the text wins.
    currencies: tuple[CurrencyEntry, ...] = (
        ("₹", ("₹", "Rs", "INR")),
        ("$", ("$",)),
        ("€", ("€",)),
        ("£", ("£",)),
    )
    max_item_price: Decimal = Decimal("10000")
    high_total: Decimal = Decimal("100000")
    max_bill_age_days: int = 365
    sunday_high_value: Decimal = Decimal("1000")
    min_total: Decimal = Decimal("1")
    max_quantity: int = 100
    max_tax_rate: Decimal = Decimal("50")

    def closest_tax_rate(self, actual_rate: Decimal) -> Decimal:
        """Return the schedule rate nearest to ``actual_rate`` (first wins on ties)."""
        closest = self.tax_rates[0]
        for rate in self.tax_rates[1:]:
            if abs(rate - actual_rate) < abs(closest - actual_rate):
                closest = rate
        return closest


DEFAULT_JURISDICTION_RULES = JurisdictionRules()


def _to_decimal(raw: Any, name: str) -> Decimal:
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid number for {name}: {raw!r}") from exc


def _parse_currencies(raw: Any) -> tuple[CurrencyEntry, ...]:
    entries: list[CurrencyEntry] = []
    if not isinstance(raw, list):
        return tuple()
    for entry in raw:
        if not isinstance(entry, Mapping):
            continue
        symbol = str(entry.get("symbol", "")).strip()
        markers = tuple(str(m) for m in entry.get("markers", []) if str(m))
        if symbol:
            entries.append((symbol, markers or (symbol,)))
    return tuple(entries)


def build_jurisdiction_rules(configs: Sequence[Mapping[str, Any]] | None = None) -> JurisdictionRules:
    """Merge TOML-shaped configs into rules; later configs override earlier ones."""
    rules = DEFAULT_JURISDICTION_RULES
    for config in configs or ():
        changes: dict[str, Any] = {}

        tax = config.get("tax", {})
        if isinstance(tax, Mapping):
            if "rates" in tax:
                rates = tuple(_to_decimal(r, "tax.rates") for r in tax["rates"])
                if not rates:
                    raise ValueError("tax.rates must not be empty")
                changes["tax_rates"] = rates
            if "rate_tolerance" in tax:
                changes["rate_tolerance"] = _to_decimal(tax["rate_tolerance"], "tax.rate_tolerance")
            if "max_rate" in tax:
                changes["max_tax_rate"] = _to_decimal(tax["max_rate"], "tax.max_rate")

        currency = config.get("currency", {})
        if isinstance(currency, Mapping):
            if "home" in currency:
                changes["home_currency"] = str(currency["home"])
            symbols = _parse_currencies(currency.get("symbols"))
            if symbols:
                changes["currencies"] = symbols

        limits = config.get("limits", {})
        if isinstance(limits, Mapping):
            for key in ("amount_tolerance", "max_item_price", "high_total", "sunday_high_value", "min_total"):
                if key in limits:
                    changes[key] = _to_decimal(limits[key], f"limits.{key}")
            for key in ("max_bill_age_days", "max_quantity"):
                if key in limits:
                    changes[key] = int(limits[key])

        if changes:
            rules = replace(rules, **changes)
    return rules
