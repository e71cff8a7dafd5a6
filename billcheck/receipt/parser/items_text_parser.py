"""Text-line based bill item extraction."""

import re
from collections.abc import Sequence

from billcheck.domain.receipt import LineItem, to_money

from ..item_categories import ItemCategoryRules, categorize_item
from .common import contains_any, extract_price_from_line, looks_like_item_line, strip_prices

ITEM_START_KEYWORDS = ("item", "product", "description", "====", "----", "qty", "quantity")
ITEM_END_KEYWORDS = ("subtotal", "sub total", "total", "tax", "gst", "====", "----", "discount", "amount")

# "2 x", "3pcs", "1kg", "500 gm", "2 ltr"
QUANTITY_MARKER = re.compile(r"(\d+)\s*(?:x|pcs?|kg|gm?|ml|ltr?)\b", re.IGNORECASE)
LEADING_LINE_NUMBER = re.compile(r"^\d+\.?\s*")
EDGE_PUNCTUATION = " -:|*@"


def _find_item_section(lines: Sequence[str]) -> tuple[int, int] | None:
    """Return [start, end) of the item block, or None when no block starts."""
    start = None
    for i, line in enumerate(lines):
        if contains_any(line.lower(), ITEM_START_KEYWORDS) or looks_like_item_line(line):
            start = i
            break
    if start is None:
        return None

    end = len(lines)
    for i in range(start + 1, len(lines)):
        line = lines[i]
        if contains_any(line.lower(), ITEM_END_KEYWORDS) and not looks_like_item_line(line):
            end = i
            break
    return start, end


def parse_item_line(line: str, category_rules: ItemCategoryRules | None = None) -> LineItem | None:
    """
    Parse one item line such as ``1. Basmati Rice 2 kg ₹170.00``.

    Returns None when the line carries no price or no usable description.
    """
    price = extract_price_from_line(line)
    if price is None:
        return None

    description = strip_prices(line)

    quantity = 1
    qty_match = QUANTITY_MARKER.search(description)
    if qty_match:
        quantity = int(qty_match.group(1)) or 1
        description = description.replace(qty_match.group(0), "", 1)

    description = LEADING_LINE_NUMBER.sub("", description.strip(), count=1)
    description = re.sub(r"\s+", " ", description).strip(EDGE_PUNCTUATION)
    if len(description) < 2:
        return None

    category = categorize_item(description, category_rules) if category_rules is not None else None
    return LineItem(
        name=description,
        quantity=quantity,
        unit_price=to_money(price / quantity),
        price=to_money(price),
        category=category,
    )


def _extract_items(lines: Sequence[str], category_rules: ItemCategoryRules | None = None) -> list[LineItem]:
    """
    Extract line items from the item block of a bill.

    This is heuristic-based; lines inside the block that do not parse as an
    item (headers, notes) are skipped.
    """
    section = _find_item_section(lines)
    if section is None:
        return []

    start, end = section
    items: list[LineItem] = []
    for line in lines[start:end]:
        item = parse_item_line(line, category_rules)
        if item is not None:
            items.append(item)
    return items
