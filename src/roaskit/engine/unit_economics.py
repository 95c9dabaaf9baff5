#!/usr/bin/env python3
"""
Unit Economics – per-order contribution and ROAS/COS thresholds

Computes, for a single average order:
  - product cost (explicit, from gross margin %, or from the industry default margin)
  - return-adjusted product cost: returns INCREASE cost, ``cost × (1 + return_rate)``,
    they do not reduce revenue
  - shipping (fixed amount or % of AOV) and payment fee (% of AOV)
  - contribution before ads = AOV − (effective cost + shipping + payment fee)

and from that the break-even and target ROAS:
  - break-even ROAS = effective AOV / contribution
  - target ROAS     = effective AOV / (contribution − effective AOV × desired margin)

The desired margin is a share of AOV (20% means 20% of the order value is left as
profit after ad cost). Effective AOV equals AOV × LTV multiplier in LTV mode.

Infeasible economics never raise: ROAS thresholds become ``math.inf``, COS
becomes 0 and ``target_impossible`` is set.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional

from roaskit.config import IndustryTable
from roaskit.utils.format import format_currency
from roaskit.utils.logs import report

logger = report.settings(__file__)

DEFAULT_DESIRED_MARGIN_PERCENT = 20.0


@dataclass(frozen=True)
class BusinessParameters:
    aov: float
    industry: str = "ecommerce"
    product_cost: Optional[float] = None        # currency per order
    gross_margin: Optional[float] = None        # percent
    return_rate: Optional[float] = None         # percent
    shipping_cost: Optional[float] = None       # currency per order
    shipping_cost_percent: Optional[float] = None  # percent of AOV
    shipping_cost_type: str = "fixed"           # "fixed" | "percent"
    payment_fee: Optional[float] = None         # percent of AOV
    ltv_multiplier: Optional[float] = None
    desired_profit_margin: Optional[float] = None  # percent of AOV
    ltv_mode: bool = False


@dataclass(frozen=True)
class UnitEconomics:
    aov: float
    product_cost: float
    product_cost_effective: float
    shipping_cost: float
    payment_fee: float
    contribution_before_ads: float
    contribution_rate: float


@dataclass(frozen=True)
class RoasThresholds:
    break_even_roas: float
    target_roas: float
    break_even_cos: float
    target_cos: float
    target_impossible: bool
    max_ad_cost: float
    max_ad_cost_target: float


@dataclass(frozen=True)
class Assumption:
    parameter: str
    value: float
    source: str                     # "user" | "industry_default"
    display_value: Optional[str] = None


@dataclass(frozen=True)
class BreakEvenSummary:
    unit_economics: UnitEconomics
    thresholds: RoasThresholds
    desired_profit_margin: float    # percent of AOV
    max_cpa: float
    max_cpa_with_ltv: float
    break_even_roas_with_ltv: float
    confidence_level: str           # "low" | "medium" | "high"
    assumptions: List[Assumption] = field(default_factory=list)

    @property
    def break_even_roas(self) -> float:
        return self.thresholds.break_even_roas

    @property
    def target_roas(self) -> float:
        return self.thresholds.target_roas


def cos_from_roas(roas: float) -> float:
    """COS in percent, 0 for a non-finite or non-positive ROAS."""
    if not math.isfinite(roas) or roas <= 0:
        return 0.0
    return 100.0 / roas


def _resolve_product_cost(params: BusinessParameters, default_margin: float) -> float:
    if params.product_cost is not None:
        return float(params.product_cost)
    if params.gross_margin is not None:
        return params.aov * (1 - params.gross_margin / 100)
    return params.aov * (1 - default_margin)


def _resolve_shipping(params: BusinessParameters, default_shipping: float) -> float:
    if params.shipping_cost_type == "percent" and params.shipping_cost_percent is not None:
        return params.aov * (params.shipping_cost_percent / 100)
    if params.shipping_cost is not None:
        return float(params.shipping_cost)
    return default_shipping


def compute_unit_economics(params: BusinessParameters, table: IndustryTable) -> UnitEconomics:
    defaults = table.get(params.industry)
    aov = float(params.aov)

    product_cost = _resolve_product_cost(params, defaults.margin)
    return_rate = params.return_rate / 100 if params.return_rate is not None else defaults.return_rate
    product_cost_effective = product_cost * (1 + return_rate)

    shipping_cost = _resolve_shipping(params, defaults.shipping_cost)
    fee_rate = params.payment_fee / 100 if params.payment_fee is not None else defaults.payment_fee
    payment_fee = aov * fee_rate

    contribution = aov - (product_cost_effective + shipping_cost + payment_fee)
    contribution_rate = contribution / aov if aov > 0 else 0.0

    return UnitEconomics(
        aov=aov,
        product_cost=product_cost,
        product_cost_effective=product_cost_effective,
        shipping_cost=shipping_cost,
        payment_fee=payment_fee,
        contribution_before_ads=contribution,
        contribution_rate=contribution_rate,
    )


def compute_roas_thresholds(
    ue: UnitEconomics,
    aov: float,
    desired_margin_of_aov: float,
    ltv_multiplier: Optional[float] = None,
    ltv_mode: bool = False,
) -> RoasThresholds:
    """ROAS/COS thresholds for a desired margin given as a fraction of AOV."""
    effective_aov = aov * ltv_multiplier if ltv_mode and ltv_multiplier else aov
    contribution = ue.contribution_before_ads

    break_even_roas = effective_aov / contribution if contribution > 0 else math.inf

    max_ad_cost_target = contribution - effective_aov * desired_margin_of_aov
    target_impossible = max_ad_cost_target <= 0
    target_roas = effective_aov / max_ad_cost_target if max_ad_cost_target > 0 else math.inf

    return RoasThresholds(
        break_even_roas=break_even_roas,
        target_roas=target_roas,
        break_even_cos=cos_from_roas(break_even_roas),
        target_cos=cos_from_roas(target_roas),
        target_impossible=target_impossible,
        max_ad_cost=contribution,
        max_ad_cost_target=max_ad_cost_target,
    )


def _assumptions(params: BusinessParameters, table: IndustryTable, ue: UnitEconomics,
                 ltv_multiplier: float, currency: str) -> List[Assumption]:
    defaults = table.get(params.industry)
    out: List[Assumption] = []

    if params.gross_margin is not None:
        out.append(Assumption("Gross margin", params.gross_margin / 100, "user"))
    elif params.product_cost is not None and params.aov > 0:
        out.append(Assumption("Gross margin", (params.aov - params.product_cost) / params.aov, "user"))
    else:
        out.append(Assumption("Gross margin", defaults.margin, "industry_default"))

    if params.return_rate is not None:
        out.append(Assumption("Return rate", params.return_rate / 100, "user"))
    else:
        out.append(Assumption("Return rate", defaults.return_rate, "industry_default"))

    if params.shipping_cost_type == "percent" and params.shipping_cost_percent is not None:
        out.append(Assumption(
            "Shipping cost", ue.shipping_cost, "user",
            f"{params.shipping_cost_percent:g}% of AOV ({format_currency(ue.shipping_cost, currency)})",
        ))
    elif params.shipping_cost is not None:
        out.append(Assumption("Shipping cost", ue.shipping_cost, "user", format_currency(ue.shipping_cost, currency)))
    else:
        out.append(Assumption("Shipping cost", ue.shipping_cost, "industry_default",
                              format_currency(ue.shipping_cost, currency)))

    if params.payment_fee is not None:
        out.append(Assumption("Payment fee", params.payment_fee / 100, "user"))
    else:
        out.append(Assumption("Payment fee", defaults.payment_fee, "industry_default"))

    out.append(Assumption(
        "LTV multiplier", ltv_multiplier,
        "user" if params.ltv_multiplier is not None else "industry_default",
        f"{ltv_multiplier:g}x",
    ))
    return out


def confidence_level(assumptions: List[Assumption]) -> str:
    user_inputs = sum(1 for a in assumptions if a.source == "user")
    if user_inputs >= 4:
        return "high"
    if user_inputs >= 2:
        return "medium"
    return "low"


def summarize_break_even(
    params: BusinessParameters,
    table: IndustryTable,
    desired_margin_percent: Optional[float] = None,
    currency: str = "SEK",
) -> BreakEvenSummary:
    """Forward calculation: thresholds plus the assumptions behind them.

    The desired margin is taken from ``params`` first, then the argument,
    then the 20% default.
    """
    ue = compute_unit_economics(params, table)
    defaults = table.get(params.industry)
    ltv = params.ltv_multiplier if params.ltv_multiplier is not None else defaults.ltv_multiplier

    margin_percent = params.desired_profit_margin
    if margin_percent is None:
        margin_percent = desired_margin_percent if desired_margin_percent is not None else DEFAULT_DESIRED_MARGIN_PERCENT

    thresholds = compute_roas_thresholds(ue, ue.aov, margin_percent / 100, ltv, params.ltv_mode)
    max_cpa_with_ltv = ue.contribution_before_ads * ltv
    assumptions = _assumptions(params, table, ue, ltv, currency)

    summary = BreakEvenSummary(
        unit_economics=ue,
        thresholds=thresholds,
        desired_profit_margin=margin_percent,
        max_cpa=ue.contribution_before_ads,
        max_cpa_with_ltv=max_cpa_with_ltv,
        break_even_roas_with_ltv=ue.aov / max_cpa_with_ltv if max_cpa_with_ltv > 0 else math.inf,
        confidence_level=confidence_level(assumptions),
        assumptions=assumptions,
    )
    logger.debug(
        "Break-even %.3f / target %.3f (contribution %.2f, confidence %s)",
        thresholds.break_even_roas, thresholds.target_roas,
        ue.contribution_before_ads, summary.confidence_level,
    )
    return summary
