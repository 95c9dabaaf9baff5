#!/usr/bin/env python3
"""
Reverse Solver – from revenue goal and media budget to required ROAS

Given a revenue target, a media budget and a profit-margin goal:
  - required ROAS = revenue target / media budget (COS = 100 / ROAS)
  - classify the goal against the break-even and target ROAS of the economics
  - build three scenarios at the margin-safe target ROAS:
      budget_for_target             – budget needed to hit the revenue target
      max_revenue_given_budget      – revenue the current budget can buy
      max_profit_given_min_revenue  – smaller budget at a revenue floor

Status zones (half-open, checked in order):
  - no positive contribution (break-even is inf) → impossible
  - required <  break-even                       → achievable
  - break-even ≤ required < target               → tight
  - required ≥ target                            → impossible

Recommendation: achievable → budget_for_target, tight → max_profit_given_min_revenue,
impossible → max_revenue_given_budget.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Dict, Iterator, Tuple

import pandas as pd

from roaskit.config import IndustryTable
from roaskit.engine.unit_economics import (
    BusinessParameters,
    RoasThresholds,
    UnitEconomics,
    compute_roas_thresholds,
    compute_unit_economics,
    cos_from_roas,
)
from roaskit.errors import InputValidationError
from roaskit.utils.format import format_currency, format_percent_no_sign, format_roas
from roaskit.utils.logs import report

logger = report.settings(__file__)

DEFAULT_MIN_REVENUE_PERCENT = 80.0
MIN_REVENUE_PERCENT_RANGE = (70.0, 100.0)


class GoalStatus(str, Enum):
    ACHIEVABLE = "achievable"
    TIGHT = "tight"
    IMPOSSIBLE = "impossible"


class ScenarioName(str, Enum):
    BUDGET_FOR_TARGET = "budget_for_target"
    MAX_REVENUE_GIVEN_BUDGET = "max_revenue_given_budget"
    MAX_PROFIT_GIVEN_MIN_REVENUE = "max_profit_given_min_revenue"


SCENARIO_LABELS: Dict[ScenarioName, str] = {
    ScenarioName.BUDGET_FOR_TARGET: "Budget for target",
    ScenarioName.MAX_REVENUE_GIVEN_BUDGET: "Max revenue",
    ScenarioName.MAX_PROFIT_GIVEN_MIN_REVENUE: "Max profit",
}

RECOMMENDED_BY_STATUS: Dict[GoalStatus, ScenarioName] = {
    GoalStatus.ACHIEVABLE: ScenarioName.BUDGET_FOR_TARGET,
    GoalStatus.TIGHT: ScenarioName.MAX_PROFIT_GIVEN_MIN_REVENUE,
    GoalStatus.IMPOSSIBLE: ScenarioName.MAX_REVENUE_GIVEN_BUDGET,
}


@dataclass(frozen=True)
class ReverseGoal:
    revenue_target: float
    media_budget: float
    profit_margin_goal: float          # fraction of AOV, 0..1
    economics: BusinessParameters
    min_revenue_percent: float = DEFAULT_MIN_REVENUE_PERCENT


@dataclass(frozen=True)
class ReverseScenario:
    name: ScenarioName
    label: str
    recommended_budget: float
    expected_revenue: float
    required_roas: float
    required_cos: float
    achieved_profit_margin: float
    orders: float
    ad_cost_per_order: float
    profit: float
    budget_delta: float
    budget_delta_percent: float
    revenue_delta: float
    revenue_delta_percent: float
    profit_delta: float
    is_recommended: bool
    reasoning: str


@dataclass(frozen=True)
class ScenarioSet:
    budget_for_target: ReverseScenario
    max_revenue_given_budget: ReverseScenario
    max_profit_given_min_revenue: ReverseScenario

    def __iter__(self) -> Iterator[ReverseScenario]:
        yield self.budget_for_target
        yield self.max_revenue_given_budget
        yield self.max_profit_given_min_revenue

    def get(self, name: ScenarioName | str) -> ReverseScenario:
        return getattr(self, ScenarioName(name).value)

    @property
    def recommended(self) -> ReverseScenario:
        return next(s for s in self if s.is_recommended)

    def to_frame(self) -> pd.DataFrame:
        cols = [f.name for f in fields(ReverseScenario)]
        rows = [{c: getattr(s, c) for c in cols} for s in self]
        df = pd.DataFrame(rows, columns=cols)
        df["name"] = df["name"].map(lambda n: n.value)
        return df


@dataclass(frozen=True)
class ReverseResult:
    required_roas: float
    required_cos: float
    break_even_roas: float
    target_roas: float
    status: GoalStatus
    status_message: str
    status_details: str
    scenarios: ScenarioSet
    unit_economics: UnitEconomics
    thresholds: RoasThresholds


# -------------------------------
# Validation
# -------------------------------

def validate_goal(goal: ReverseGoal) -> None:
    if not goal.revenue_target > 0:
        raise InputValidationError("revenue_target", "Revenue target must be greater than 0", goal.revenue_target)
    if not goal.media_budget > 0:
        raise InputValidationError("media_budget", "Media budget must be greater than 0", goal.media_budget)
    if not 0 <= goal.profit_margin_goal <= 1:
        raise InputValidationError(
            "profit_margin_goal",
            "Profit margin goal must be between 0 and 1 (e.g. 0.20 for 20%)",
            goal.profit_margin_goal,
        )
    if not goal.economics.aov > 0:
        raise InputValidationError("aov", "AOV must be greater than 0", goal.economics.aov)
    lo, hi = MIN_REVENUE_PERCENT_RANGE
    if not lo <= goal.min_revenue_percent <= hi:
        raise InputValidationError(
            "min_revenue_percent",
            f"Minimum acceptable revenue must be between {lo:g}% and {hi:g}% of the target",
            goal.min_revenue_percent,
        )


# -------------------------------
# Classification
# -------------------------------

def determine_status(required_roas: float, break_even_roas: float, target_roas: float) -> GoalStatus:
    if not math.isfinite(break_even_roas):
        return GoalStatus.IMPOSSIBLE
    if required_roas < break_even_roas:
        return GoalStatus.ACHIEVABLE
    if required_roas < target_roas:
        return GoalStatus.TIGHT
    return GoalStatus.IMPOSSIBLE


def status_messages(
    status: GoalStatus,
    required_roas: float,
    break_even_roas: float,
    target_roas: float,
) -> Tuple[str, str]:
    """Short message and detailed explanation for a goal status."""
    req = format_roas(required_roas)
    be = format_roas(break_even_roas)
    tgt = format_roas(target_roas)

    if status is GoalStatus.ACHIEVABLE:
        headroom = (break_even_roas - required_roas) / break_even_roas * 100
        return (
            "Achievable",
            f"The goal needs {req} ROAS, {headroom:.0f}% below break-even ({be}) and "
            f"well under the target ({tgt}). The budget leaves room to reach the revenue "
            f"target while keeping the desired margin.",
        )
    if status is GoalStatus.TIGHT:
        return (
            "Tight but possible",
            f"The goal needs {req} ROAS, at or above break-even ({be}) but below the "
            f"target ({tgt}). Campaigns must beat break-even to stay profitable; consider "
            f"a lower revenue target or a larger budget.",
        )
    if not math.isfinite(break_even_roas):
        return (
            "Impossible with current economics",
            "Contribution before ads is zero or negative, so every order loses money "
            "regardless of ROAS. Improve margin or reduce costs before buying media.",
        )
    return (
        "Impossible with current economics",
        f"The goal needs {req} ROAS, at or above the target ({tgt}). The budget is too "
        f"small for the revenue target at a margin-safe ROAS; adjust the goals or the budget.",
    )


# -------------------------------
# Scenarios
# -------------------------------

def _pct(delta: float, base: float) -> float:
    return delta / base * 100 if base > 0 else 0.0


def _build_scenario(
    name: ScenarioName,
    goal: ReverseGoal,
    ue: UnitEconomics,
    target_roas: float,
    budget: float,
    revenue: float,
    baseline_profit: float,
    reasoning: str,
) -> ReverseScenario:
    aov = ue.aov
    orders = revenue / aov if aov > 0 else 0.0
    if math.isfinite(target_roas) and target_roas > 0:
        ad_cost_per_order = aov / target_roas
    else:
        ad_cost_per_order = budget / orders if orders > 0 else 0.0
    profit = orders * (ue.contribution_before_ads - ad_cost_per_order)
    budget_delta = budget - goal.media_budget
    revenue_delta = revenue - goal.revenue_target
    return ReverseScenario(
        name=name,
        label=SCENARIO_LABELS[name],
        recommended_budget=budget,
        expected_revenue=revenue,
        required_roas=target_roas,
        required_cos=cos_from_roas(target_roas),
        achieved_profit_margin=goal.profit_margin_goal,
        orders=orders,
        ad_cost_per_order=ad_cost_per_order,
        profit=profit,
        budget_delta=budget_delta,
        budget_delta_percent=_pct(budget_delta, goal.media_budget),
        revenue_delta=revenue_delta,
        revenue_delta_percent=_pct(revenue_delta, goal.revenue_target),
        profit_delta=profit - baseline_profit,
        is_recommended=False,
        reasoning=reasoning,
    )


def original_plan_profit(goal: ReverseGoal, ue: UnitEconomics) -> float:
    """Profit of hitting the revenue target with the full media budget."""
    orders = goal.revenue_target / ue.aov if ue.aov > 0 else 0.0
    return orders * ue.contribution_before_ads - goal.media_budget


def generate_scenarios(
    goal: ReverseGoal,
    ue: UnitEconomics,
    thresholds: RoasThresholds,
    currency: str = "SEK",
) -> ScenarioSet:
    target = thresholds.target_roas
    feasible = math.isfinite(target) and target > 0
    baseline_profit = original_plan_profit(goal, ue)

    def money(x: float) -> str:
        return format_currency(x, currency)

    # Budget needed for the full revenue target
    s1_budget = goal.revenue_target / target if feasible else goal.media_budget
    s1_reason = (
        f"Needs a budget of {money(s1_budget)} to reach {money(goal.revenue_target)} at target ROAS "
        f"{format_roas(target)} with a {format_percent_no_sign(goal.profit_margin_goal)} margin."
        if feasible else
        "Desired margin exceeds contribution before ads; target ROAS cannot be reached."
    )
    budget_for_target = _build_scenario(
        ScenarioName.BUDGET_FOR_TARGET, goal, ue, target,
        s1_budget, goal.revenue_target, baseline_profit, s1_reason,
    )

    # Current budget, as much revenue as the target ROAS allows
    s2_revenue = goal.media_budget * target if feasible else 0.0
    s2_reason = (
        f"With the current budget of {money(goal.media_budget)} and target ROAS {format_roas(target)}, "
        f"revenue tops out at {money(s2_revenue)}."
        if feasible else
        "Desired margin exceeds contribution before ads; no orders meet the margin."
    )
    max_revenue = _build_scenario(
        ScenarioName.MAX_REVENUE_GIVEN_BUDGET, goal, ue, target,
        goal.media_budget, s2_revenue, baseline_profit, s2_reason,
    )

    # Revenue floor, smallest budget that reaches it
    s3_revenue = goal.revenue_target * goal.min_revenue_percent / 100
    s3_budget = s3_revenue / target if feasible else goal.media_budget
    max_profit = _build_scenario(
        ScenarioName.MAX_PROFIT_GIVEN_MIN_REVENUE, goal, ue, target,
        s3_budget, s3_revenue, baseline_profit, "",
    )
    s3_reason = (
        f"Optimises profit at {goal.min_revenue_percent:g}% of the revenue target ({money(s3_revenue)}). "
        f"Budget: {money(s3_budget)}, profit: {money(max_profit.profit)}."
        if feasible else
        "Desired margin exceeds contribution before ads."
    )
    max_profit = replace(max_profit, reasoning=s3_reason)

    return ScenarioSet(
        budget_for_target=budget_for_target,
        max_revenue_given_budget=max_revenue,
        max_profit_given_min_revenue=max_profit,
    )


def recommend(scenarios: ScenarioSet, status: GoalStatus) -> ScenarioSet:
    """Return a copy of *scenarios* with exactly one recommended scenario."""
    pick = RECOMMENDED_BY_STATUS[GoalStatus(status)]
    return ScenarioSet(**{
        s.name.value: replace(s, is_recommended=s.name is pick) for s in scenarios
    })


# -------------------------------
# Entry point
# -------------------------------

def solve_reverse(goal: ReverseGoal, table: IndustryTable, currency: str = "SEK") -> ReverseResult:
    validate_goal(goal)

    required_roas = goal.revenue_target / goal.media_budget
    required_cos = cos_from_roas(required_roas)

    ue = compute_unit_economics(goal.economics, table)
    ltv = goal.economics.ltv_multiplier
    if goal.economics.ltv_mode and ltv is None:
        ltv = table.get(goal.economics.industry).ltv_multiplier
    thresholds = compute_roas_thresholds(ue, ue.aov, goal.profit_margin_goal, ltv, goal.economics.ltv_mode)

    status = determine_status(required_roas, thresholds.break_even_roas, thresholds.target_roas)
    message, details = status_messages(status, required_roas, thresholds.break_even_roas, thresholds.target_roas)
    scenarios = recommend(generate_scenarios(goal, ue, thresholds, currency), status)

    logger.debug(
        "Required ROAS %.3f vs break-even %.3f / target %.3f → %s",
        required_roas, thresholds.break_even_roas, thresholds.target_roas, status.value,
    )
    return ReverseResult(
        required_roas=required_roas,
        required_cos=required_cos,
        break_even_roas=thresholds.break_even_roas,
        target_roas=thresholds.target_roas,
        status=status,
        status_message=message,
        status_details=details,
        scenarios=scenarios,
        unit_economics=ue,
        thresholds=thresholds,
    )
