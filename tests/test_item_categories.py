"""Tests for bill item category matching."""

from decimal import Decimal

import pytest
from billcheck.domain.receipt import LineItem
from billcheck.receipt.item_categories import (
    OTHER_CATEGORY,
    build_item_category_rules,
    categories_present,
    categorize_item,
    unusual_combinations,
)
from billcheck.runtime import load_item_category_rules


def _item(name: str) -> LineItem:
    return LineItem(name=name, price=Decimal("10.00"), unit_price=Decimal("10.00"))


@pytest.mark.parametrize(
    ("name", "category"),
    [
        ("Basmati Rice", "food"),
        ("AMUL BUTTER 100G", "food"),
        ("Kingfisher Beer", "alcohol"),
        ("Toilet Paper 4 Roll", "household"),
        ("Baby Shampoo", "baby"),
        ("Green Tea", "beverages"),
        ("USB Cable", "electronics"),
        ("Cotton Shirt", "clothing"),
        ("Cough Syrup", "medical"),
        ("Gift Wrap", OTHER_CATEGORY),
    ],
)
def test_default_categories(name: str, category: str) -> None:
    assert categorize_item(name, load_item_category_rules()) == category


def test_later_config_replaces_keywords_in_place() -> None:
    rules = build_item_category_rules(
        [
            {"categories": [{"key": "food", "keywords": ["rice"]}, {"key": "snacks", "keywords": "chips"}]},
            {"categories": [{"key": "food", "keywords": ["dal"]}]},
        ]
    )

    assert [key for key, _ in rules.categories] == ["food", "snacks"]
    assert categorize_item("Toor Dal", rules) == "food"
    assert categorize_item("Rice", rules) == OTHER_CATEGORY
    assert categorize_item("POTATO CHIPS", rules) == "snacks"


def test_malformed_entries_are_skipped() -> None:
    rules = build_item_category_rules(
        [
            {
                "categories": ["food", {"key": "", "keywords": ["x"]}, {"key": "tea", "keywords": []}],
                "unusual_combinations": [{"categories": ["baby"]}, "baby,alcohol"],
            }
        ]
    )

    assert rules.categories == ()
    assert rules.unusual_combinations == ()


def test_unusual_combinations_require_every_category() -> None:
    rules = load_item_category_rules()

    assert unusual_combinations([_item("Baby Formula"), _item("Red Wine")], rules) == [frozenset({"baby", "alcohol"})]
    assert unusual_combinations([_item("Baby Formula"), _item("Rice")], rules) == []


def test_categories_present_counts_every_match() -> None:
    rules = load_item_category_rules()

    assert categories_present([_item("Baby Rice Cereal")], rules) == {"baby", "food"}
