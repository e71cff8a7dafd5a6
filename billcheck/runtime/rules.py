"""Runtime loaders for jurisdiction and item-category rule files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from billcheck.receipt.item_categories import ItemCategoryRules, build_item_category_rules
from billcheck.receipt.jurisdiction import JurisdictionRules, build_jurisdiction_rules
from billcheck.runtime.logging import get_logger
from billcheck.runtime.paths import get_paths

logger = get_logger(__name__)


def _load_toml(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict; missing files map to empty dict."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not path.exists():
        logger.debug("Rule file not found, skipping: %s", path)
        return {}

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


def _layered_files(defaults: Path, override: Path, extra: tuple[str, ...] | None) -> list[Path]:
    files: list[Path] = []
    seen: set[Path] = set()
    candidates = [defaults, override, *(Path(p) for p in extra or ())]
    for candidate in candidates:
        resolved = candidate.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        files.append(candidate)
    return files


@lru_cache(maxsize=8)
def load_jurisdiction_rules(extra_paths: tuple[str, ...] | None = None) -> JurisdictionRules:
    """Load packaged defaults, the project override, then any extra files."""
    p = get_paths()
    files = _layered_files(p.default_jurisdiction_rules, p.jurisdiction_rules, extra_paths)
    rules = build_jurisdiction_rules(tuple(_load_toml(path) for path in files))
    logger.debug("Loaded jurisdiction rules from %d file(s); tax rates %s", len(files), rules.tax_rates)
    return rules


@lru_cache(maxsize=8)
def load_item_category_rules(extra_paths: tuple[str, ...] | None = None) -> ItemCategoryRules:
    """Load item category keywords the same way as jurisdiction rules."""
    p = get_paths()
    files = _layered_files(p.default_item_category_rules, p.item_category_rules, extra_paths)
    return build_item_category_rules(tuple(_load_toml(path) for path in files))


def clear_rule_caches() -> None:
    load_jurisdiction_rules.cache_clear()
    load_item_category_rules.cache_clear()
