#!/usr/bin/env python3
"""
ROI Simulator – 12-month "act now" vs "wait" projection for a scenario

Act path, month m (0-based):
  - ramp factor: 0.3 + 0.7 × m / ramp_up_months while m < ramp_up_months, then 1.0
  - ad spend   = scenario budget / 12 × ramp factor
  - ROAS       = scenario required ROAS × (1 + variance% / 100)
  - revenue    = ad spend × ROAS
  - profit     = revenue × scenario margin − ad spend
Wait path: no ad spend. Both paths carry an optional organic baseline
(revenue per month, profit at the scenario margin), zero by default.

Break-even month is the first month where cumulative act profit is positive,
13 when that never happens inside the horizon.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, List

import pandas as pd

from roaskit.engine.reverse import ReverseScenario
from roaskit.utils.logs import report

logger = report.settings(__file__)

MONTHS = 12
NO_BREAK_EVEN = MONTHS + 1
START_RAMP = 0.3

MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


class ROICase(str, Enum):
    WORST = "worst"
    EXPECTED = "expected"
    BEST = "best"


@dataclass(frozen=True)
class ROISimulationConfig:
    case: ROICase
    ramp_up_months: int
    variance_percent: float


PRESETS: Dict[ROICase, ROISimulationConfig] = {
    ROICase.WORST: ROISimulationConfig(ROICase.WORST, ramp_up_months=4, variance_percent=-20),
    ROICase.EXPECTED: ROISimulationConfig(ROICase.EXPECTED, ramp_up_months=3, variance_percent=0),
    ROICase.BEST: ROISimulationConfig(ROICase.BEST, ramp_up_months=2, variance_percent=15),
}


@dataclass(frozen=True)
class MonthlyProjection:
    month: int
    label: str
    revenue: float
    ad_spend: float
    profit: float
    cumulative_profit: float
    cumulative_revenue: float


@dataclass(frozen=True)
class ROIProjection:
    if_we_do: List[MonthlyProjection]
    if_we_wait: List[MonthlyProjection]
    total_revenue_delta: float
    total_profit_delta: float
    break_even_month: int
    roi_12_month: float

    @property
    def total_ad_spend(self) -> float:
        return sum(p.ad_spend for p in self.if_we_do)

    def to_frame(self) -> pd.DataFrame:
        do = pd.DataFrame([asdict(p) for p in self.if_we_do])
        wait = pd.DataFrame([asdict(p) for p in self.if_we_wait])
        keys = ["month", "label"]
        return do.merge(wait, on=keys, suffixes=("_do", "_wait"))


def default_config(case: ROICase | str) -> ROISimulationConfig:
    return PRESETS[ROICase(case)]


def ramp_factor(month_index: int, ramp_up_months: int) -> float:
    if month_index < ramp_up_months:
        return START_RAMP + (1 - START_RAMP) * (month_index / ramp_up_months)
    return 1.0


def simulate_roi(
    scenario: ReverseScenario,
    config: ROISimulationConfig,
    baseline_monthly_revenue: float = 0.0,
) -> ROIProjection:
    monthly_budget = scenario.recommended_budget / MONTHS
    margin = scenario.achieved_profit_margin
    roas = scenario.required_roas if math.isfinite(scenario.required_roas) else 0.0
    adjusted_roas = roas * (1 + config.variance_percent / 100)
    baseline = max(baseline_monthly_revenue, 0.0)
    baseline_profit = baseline * margin

    if_we_do: List[MonthlyProjection] = []
    if_we_wait: List[MonthlyProjection] = []
    cum_profit_do = cum_revenue_do = 0.0
    cum_profit_wait = cum_revenue_wait = 0.0
    break_even_month = NO_BREAK_EVEN

    for m in range(MONTHS):
        spend = monthly_budget * ramp_factor(m, config.ramp_up_months)
        ad_revenue = spend * adjusted_roas
        revenue = ad_revenue + baseline
        profit = ad_revenue * margin - spend + baseline_profit

        cum_profit_do += profit
        cum_revenue_do += revenue
        if_we_do.append(MonthlyProjection(
            month=m + 1,
            label=MONTH_LABELS[m],
            revenue=revenue,
            ad_spend=spend,
            profit=profit,
            cumulative_profit=cum_profit_do,
            cumulative_revenue=cum_revenue_do,
        ))

        cum_profit_wait += baseline_profit
        cum_revenue_wait += baseline
        if_we_wait.append(MonthlyProjection(
            month=m + 1,
            label=MONTH_LABELS[m],
            revenue=baseline,
            ad_spend=0.0,
            profit=baseline_profit,
            cumulative_profit=cum_profit_wait,
            cumulative_revenue=cum_revenue_wait,
        ))

        if break_even_month == NO_BREAK_EVEN and cum_profit_do > 0:
            break_even_month = m + 1

    total_revenue_delta = cum_revenue_do - cum_revenue_wait
    total_profit_delta = cum_profit_do - cum_profit_wait
    total_spend = sum(p.ad_spend for p in if_we_do)
    roi = total_profit_delta / total_spend * 100 if total_spend > 0 else 0.0

    logger.debug(
        "ROI %s: spend %.0f, profit delta %.0f, break-even month %d",
        ROICase(config.case).value, total_spend, total_profit_delta, break_even_month,
    )
    return ROIProjection(
        if_we_do=if_we_do,
        if_we_wait=if_we_wait,
        total_revenue_delta=total_revenue_delta,
        total_profit_delta=total_profit_delta,
        break_even_month=break_even_month,
        roi_12_month=roi,
    )
