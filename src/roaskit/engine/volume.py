#!/usr/bin/env python3
"""
Volume Model – revenue as a function of ad spend

Two interchangeable predictors share ``predict_roas(spend)`` / ``predict(spend)``:
  - Manual:     revenue = budget × roas × (roas / roas_ref)^(−elasticity)
                effective ROAS at a budget relative to a reference budget:
                roas_ref × (budget / budget_ref)^(−e / (1 + e))
  - Calibrated: predicted ROAS = exp(a) × spend^b, from OLS of ln(roas) on ln(spend)
                (see ``roaskit.engine.calibration``); b < 0 means diminishing returns

``find_optimal_budget`` maximises profit = revenue × margin − spend on
[min_budget, max_budget] with a golden-section search. The profit curve of the
calibrated model is smooth and single-peaked, so no derivative is needed.

Non-positive spend, ROAS or reference values short-circuit to 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Protocol, Union

import numpy as np
import pandas as pd

from roaskit.utils.logs import report

logger = report.settings(__file__)

PHI = (1 + math.sqrt(5)) / 2
RESPHI = 2 - PHI

DEFAULT_TOLERANCE = 100.0   # currency units
DEFAULT_MAX_ITER = 100


@dataclass(frozen=True)
class ManualVolumeConfig:
    elasticity: float   # 0.0 - 2.0
    roas_ref: float


@dataclass(frozen=True)
class CalibratedVolumeConfig:
    a: float    # ln(roas) intercept
    b: float    # ln(roas) slope on ln(spend)


@dataclass(frozen=True)
class OptimalBudget:
    budget: float
    revenue: float
    profit: float
    iterations: int


class VolumeModel(Protocol):
    def predict_roas(self, spend: float) -> float: ...

    def predict(self, spend: float) -> float: ...


# -------------------------------
# Manual mode
# -------------------------------

def manual_revenue(budget: float, roas: float, config: ManualVolumeConfig) -> float:
    """Revenue at *budget* when aiming for *roas*; elasticity 0 is linear."""
    if budget <= 0 or roas <= 0 or config.roas_ref <= 0:
        return 0.0
    return budget * roas * (roas / config.roas_ref) ** (-config.elasticity)


def manual_effective_roas(budget: float, budget_ref: float, config: ManualVolumeConfig) -> float:
    if budget <= 0 or budget_ref <= 0 or config.roas_ref <= 0:
        return 0.0
    if config.elasticity == 0:
        return config.roas_ref
    exponent = -config.elasticity / (1 + config.elasticity)
    return config.roas_ref * (budget / budget_ref) ** exponent


@dataclass(frozen=True)
class ManualVolumeModel:
    config: ManualVolumeConfig
    budget_ref: float

    def predict_roas(self, spend: float) -> float:
        return manual_effective_roas(spend, self.budget_ref, self.config)

    def predict(self, spend: float) -> float:
        if spend <= 0:
            return 0.0
        return spend * self.predict_roas(spend)


# -------------------------------
# Calibrated mode
# -------------------------------

def predict_roas(spend: float, config: CalibratedVolumeConfig) -> float:
    if spend <= 0:
        return 0.0
    return math.exp(config.a) * spend ** config.b


def predict_revenue(spend: float, config: CalibratedVolumeConfig) -> float:
    if spend <= 0:
        return 0.0
    return spend * predict_roas(spend, config)


@dataclass(frozen=True)
class CalibratedVolumeModel:
    config: CalibratedVolumeConfig

    def predict_roas(self, spend: float) -> float:
        return predict_roas(spend, self.config)

    def predict(self, spend: float) -> float:
        return predict_revenue(spend, self.config)


def as_model(model: Union[VolumeModel, CalibratedVolumeConfig]) -> VolumeModel:
    if isinstance(model, CalibratedVolumeConfig):
        return CalibratedVolumeModel(model)
    return model


# -------------------------------
# Optimal budget (golden-section search)
# -------------------------------

class _Bracket(NamedTuple):
    a: float
    b: float
    x1: float
    x2: float
    f1: float
    f2: float


def profit_at(model: VolumeModel, profit_margin: float, spend: float) -> float:
    return model.predict(spend) * profit_margin - spend


def _initial_bracket(model: VolumeModel, profit_margin: float, lo: float, hi: float) -> _Bracket:
    x1 = lo + RESPHI * (hi - lo)
    x2 = hi - RESPHI * (hi - lo)
    return _Bracket(lo, hi, x1, x2, profit_at(model, profit_margin, x1), profit_at(model, profit_margin, x2))


def _golden_step(model: VolumeModel, profit_margin: float, br: _Bracket) -> _Bracket:
    if br.f1 < br.f2:
        # Maximum lies in [x1, b]
        a = br.x1
        x2 = br.b - RESPHI * (br.b - a)
        return _Bracket(a, br.b, br.x2, x2, br.f2, profit_at(model, profit_margin, x2))
    b = br.x2
    x1 = br.a + RESPHI * (b - br.a)
    return _Bracket(br.a, b, x1, br.x1, profit_at(model, profit_margin, x1), br.f1)


def find_optimal_budget(
    model: Union[VolumeModel, CalibratedVolumeConfig],
    profit_margin: float,
    min_budget: float,
    max_budget: float,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
) -> OptimalBudget:
    """Profit-maximising budget on [min_budget, max_budget].

    Iterates until the bracket is narrower than *tolerance* or *max_iter*
    steps have run. The bracket midpoint is returned unless one of the
    interval bounds earns more, which happens when profit is monotone.
    """
    m = as_model(model)
    lo, hi = (min_budget, max_budget) if min_budget <= max_budget else (max_budget, min_budget)

    br = _initial_bracket(m, profit_margin, lo, hi)
    iterations = 0
    while iterations < max_iter and (br.b - br.a) > tolerance:
        br = _golden_step(m, profit_margin, br)
        iterations += 1

    candidates = [(br.a + br.b) / 2, lo, hi]
    budget = max(candidates, key=lambda s: profit_at(m, profit_margin, s))
    revenue = m.predict(budget)
    logger.debug("Golden-section search converged in %d steps at budget %.2f", iterations, budget)
    return OptimalBudget(
        budget=budget,
        revenue=revenue,
        profit=revenue * profit_margin - budget,
        iterations=iterations,
    )


def revenue_curve(
    model: Union[VolumeModel, CalibratedVolumeConfig],
    budgets: Iterable[float],
    profit_margin: float,
) -> pd.DataFrame:
    """Spend/ROAS/revenue/profit table over *budgets*, for charting."""
    m = as_model(model)
    spend = np.asarray(list(budgets), dtype=float)
    revenue = np.array([m.predict(s) for s in spend])
    roas = np.array([m.predict_roas(s) for s in spend])
    return pd.DataFrame({
        "spend": spend,
        "roas": roas,
        "revenue": revenue,
        "profit": revenue * profit_margin - spend,
    })
