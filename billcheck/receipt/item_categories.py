"""Keyword categorization for bill line items.

Maps item names to coarse categories (food, alcohol, baby, ...). The
parser tags each item with its first matching category; the validator
looks at the full set of categories on a bill to spot unusual
combinations such as baby products bought together with alcohol.

Keywords are matched case-insensitively as substrings. Defaults live in
``billcheck/receipt/rules/default_item_categories.toml``.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from billcheck.domain.receipt import LineItem

OTHER_CATEGORY = "other"

CategoryRule = tuple[str, tuple[str, ...]]


@dataclass(frozen=True)
class ItemCategoryRules:
    """Ordered category keywords plus category pairs worth flagging."""

    categories: tuple[CategoryRule, ...]
    unusual_combinations: tuple[frozenset[str], ...] = ()


def _normalize_keywords(raw: Any) -> tuple[str, ...]:
    """Normalize keywords value from TOML into a lowercase tuple."""
    if isinstance(raw, str):
        value = raw.strip().lower()
        return (value,) if value else tuple()
    if isinstance(raw, list):
        return tuple(str(v).strip().lower() for v in raw if str(v).strip())
    return tuple()


def build_item_category_rules(configs: Sequence[Mapping[str, Any]] | None = None) -> ItemCategoryRules:
    """Merge category configs. A later config replacing a key keeps its position."""
    ordered: dict[str, tuple[str, ...]] = {}
    combinations: list[frozenset[str]] = []

    for config in configs or ():
        for rule in config.get("categories", []):
            if not isinstance(rule, Mapping):
                continue
            key = str(rule.get("key", "")).strip()
            keywords = _normalize_keywords(rule.get("keywords"))
            if key and keywords:
                ordered[key] = keywords

        for combo in config.get("unusual_combinations", []):
            if not isinstance(combo, Mapping):
                continue
            names = frozenset(str(c).strip() for c in combo.get("categories", []) if str(c).strip())
            if len(names) >= 2 and names not in combinations:
                combinations.append(names)

    return ItemCategoryRules(
        categories=tuple(ordered.items()),
        unusual_combinations=tuple(combinations),
    )


def matching_categories(name: str, rules: ItemCategoryRules) -> list[str]:
    """All categories whose keywords occur in ``name``, in rule order."""
    lowered = name.lower()
    return [key for key, keywords in rules.categories if any(kw in lowered for kw in keywords)]


def categorize_item(name: str, rules: ItemCategoryRules) -> str:
    """Return the first matching category for an item name, or ``other``."""
    matches = matching_categories(name, rules)
    return matches[0] if matches else OTHER_CATEGORY


def categories_present(items: Iterable[LineItem], rules: ItemCategoryRules) -> set[str]:
    """Every category matched by any item on the bill."""
    present: set[str] = set()
    for item in items:
        present.update(matching_categories(item.name, rules))
    return present


def unusual_combinations(items: Iterable[LineItem], rules: ItemCategoryRules) -> list[frozenset[str]]:
    """Configured category combinations that all occur on the bill."""
    present = categories_present(items, rules)
    return [combo for combo in rules.unusual_combinations if combo <= present]
