import math
import os
from pathlib import Path

import pytest

from roaskit.config import builtin_industry_table
from roaskit.engine.unit_economics import BusinessParameters


@pytest.fixture()
def table():
    return builtin_industry_table()


@pytest.fixture()
def base_params():
    """AOV 1000 at 50% gross margin with no returns, shipping or fees: contribution 500."""
    return BusinessParameters(
        aov=1000,
        industry="other",
        gross_margin=50,
        return_rate=0,
        shipping_cost=0,
        payment_fee=0,
    )


def power_law_rows(a: float, b: float, spends):
    return [(s, math.exp(a) * s ** b) for s in spends]


@pytest.fixture()
def history_csv(tmp_path: Path):
    """Spend history generated exactly from ROAS = 20 · spend^-0.4."""
    rows = power_law_rows(math.log(20), -0.4, [1000, 2000, 5000, 10000, 20000, 50000])
    lines = ["Date,Spend,Revenue"]
    for i, (spend, roas) in enumerate(rows, start=1):
        lines.append(f"2025-{i:02d}-01,{spend},{spend * roas:.6f}")
    path = tmp_path / "history.csv"
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture()
def clean_env():
    """Drop ROASKIT_* variables before and after a test that loads .env files."""
    def _clear():
        for key in [k for k in os.environ if k.startswith("ROASKIT_")]:
            del os.environ[key]
    _clear()
    yield
    _clear()
