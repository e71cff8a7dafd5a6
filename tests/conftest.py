"""Shared pytest fixtures for billcheck tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import pytest
from billcheck.runtime import clear_rule_caches, reset_paths

# A Tuesday; sample bills below are dated the same day.
FIXED_NOW = datetime(2024, 3, 12, 18, 0)

SAMPLE_BILL = """\
FRESH MART SUPERMARKET
12 MG Road, Bengaluru
Bill No: INV-2045
Date: 12/03/2024
Item Qty Price
Basmati Rice 1kg ₹85.00
Subtotal: ₹85.00
GST 5%: ₹4.25
Grand Total: ₹89.25
Payment: Cash
Cashier: Ravi
"""


@pytest.fixture(autouse=True)
def project_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point BILLCHECK_HOME at an empty directory so no local config leaks in."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("BILLCHECK_HOME", str(home))
    reset_paths()
    clear_rule_caches()
    yield home
    reset_paths()
    clear_rule_caches()


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def sample_bill() -> str:
    return SAMPLE_BILL
