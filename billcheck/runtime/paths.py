"""Centralized path management for billcheck.

Rule files ship inside the package; a project directory may add its own
overrides under ``config/``. The project root is ``BILLCHECK_HOME`` when
set, otherwise the current working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parents[1]


def _get_project_root() -> Path:
    """Determine the project root directory."""
    home = os.environ.get("BILLCHECK_HOME")
    if home:
        return Path(home).expanduser()
    return Path.cwd()


@dataclass
class ProjectPaths:
    """Container for all project-related paths."""

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    # --- Packaged defaults ---
    @property
    def default_rules(self) -> Path:
        """Rule files shipped with the package."""
        return PACKAGE_ROOT / "receipt" / "rules"

    @property
    def default_jurisdiction_rules(self) -> Path:
        return self.default_rules / "default_jurisdiction.toml"

    @property
    def default_item_category_rules(self) -> Path:
        return self.default_rules / "default_item_categories.toml"

    # --- Project configuration ---
    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def jurisdiction_rules(self) -> Path:
        """Project-level tax schedule / currency / limits overrides."""
        return self.config / "jurisdiction.toml"

    @property
    def item_category_rules(self) -> Path:
        """Project-level item category keyword overrides."""
        return self.config / "item_categories.toml"


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Forget the cached ProjectPaths (e.g. after BILLCHECK_HOME changes)."""
    global _paths
    _paths = None
