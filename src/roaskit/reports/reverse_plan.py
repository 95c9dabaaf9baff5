#!/usr/bin/env python3
"""
Reverse Plan Report

Builds a markdown plan for a revenue goal:
- Inputs: revenue target, media budget, profit-margin goal (% of AOV), AOV, industry and
  optional unit-economics overrides; optionally a historical spend/revenue CSV for calibration
- Outputs: markdown summary (status, thresholds, the three scenarios, 12-month ROI projection,
  calibrated volume model and optimal budget when history is given); optional CSV of the projection

Usage:
  roaskit-plan --revenue-target 1000000 --budget 250000 --margin 20 \
      --aov 800 --industry fashion --case expected \
      --history data/ads/spend_history.csv --out data/reports/plan.md

Configuration is read from config/roaskit/.env (see roaskit.config).
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import pandas as pd

from roaskit.config import EngineSettings, IndustryTable, load_industry_table, load_settings
from roaskit.engine.calibration import CalibrationOutcome, calibrate
from roaskit.engine.reverse import ReverseGoal, ReverseResult, ScenarioName, solve_reverse
from roaskit.engine.roi import ROICase, ROIProjection, default_config, simulate_roi
from roaskit.engine.unit_economics import BusinessParameters
from roaskit.engine.volume import (
    CalibratedVolumeModel,
    ManualVolumeConfig,
    ManualVolumeModel,
    OptimalBudget,
    VolumeModel,
    find_optimal_budget,
)
from roaskit.errors import InputValidationError
from roaskit.utils.format import (
    format_currency,
    format_number,
    format_percent,
    format_percent_no_sign,
    format_roas,
)
from roaskit.utils.logs import report

logger = report.settings(__file__)

# Optimal-budget search window relative to the media budget
SEARCH_LOW = 0.25
SEARCH_HIGH = 4.0


@dataclass
class PlanInputs:
    goal: ReverseGoal
    case: ROICase
    scenario: Optional[ScenarioName]
    history_text: Optional[str]
    elasticity: Optional[float]
    roas_ref: Optional[float]


@dataclass
class Plan:
    inputs: PlanInputs
    result: ReverseResult
    projection: ROIProjection
    calibration: Optional[CalibrationOutcome]
    optimal: Optional[OptimalBudget]
    volume_source: Optional[str]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description='Reverse ROAS plan')
    p.add_argument('--revenue-target', type=float, required=True, help='Revenue target for the period')
    p.add_argument('--budget', type=float, required=True, help='Media budget for the period')
    p.add_argument('--margin', type=float, default=None, help='Profit margin goal in %% of AOV (default from settings)')
    p.add_argument('--aov', type=float, required=True, help='Average order value')
    p.add_argument('--industry', default='ecommerce', help='Industry key for default assumptions')
    p.add_argument('--product-cost', type=float, default=None, help='Product cost per order')
    p.add_argument('--gross-margin', type=float, default=None, help='Gross margin %%')
    p.add_argument('--return-rate', type=float, default=None, help='Return rate %%')
    p.add_argument('--shipping', type=float, default=None, help='Shipping cost per order (fixed)')
    p.add_argument('--shipping-percent', type=float, default=None, help='Shipping cost as %% of AOV')
    p.add_argument('--payment-fee', type=float, default=None, help='Payment fee %% of AOV')
    p.add_argument('--ltv', type=float, default=None, help='LTV multiplier')
    p.add_argument('--ltv-mode', action='store_true', help='Use AOV × LTV for thresholds')
    p.add_argument('--min-revenue-percent', type=float, default=None, help='Revenue floor for the max-profit scenario (70-100)')
    p.add_argument('--case', default='expected', choices=[c.value for c in ROICase], help='ROI simulation case')
    p.add_argument('--scenario', default='', choices=[''] + [s.value for s in ScenarioName],
                   help='Scenario to simulate (default: the recommended one)')
    p.add_argument('--history', default='', help='Optional historical spend/revenue CSV for calibration')
    p.add_argument('--elasticity', type=float, default=None, help='Manual elasticity (0-2) when no history is given')
    p.add_argument('--roas-ref', type=float, default=None, help='Reference ROAS for the manual model (default: required ROAS)')
    p.add_argument('--industry-table', default='', help='Optional YAML override of industry defaults')
    p.add_argument('--env', default='', help='Optional .env path (default config/roaskit/.env)')
    p.add_argument('--out', default='', help='Write markdown here instead of stdout')
    p.add_argument('--csv', default='', help='Also write the ROI projection as CSV')
    p.add_argument('--log-level', default=None, help='Logging level (default from settings)')
    return p.parse_args(argv)


def load_inputs(ns: argparse.Namespace, settings: EngineSettings) -> PlanInputs:
    economics = BusinessParameters(
        aov=float(ns.aov),
        industry=str(ns.industry),
        product_cost=ns.product_cost,
        gross_margin=ns.gross_margin,
        return_rate=ns.return_rate,
        shipping_cost=ns.shipping,
        shipping_cost_percent=ns.shipping_percent,
        shipping_cost_type='percent' if ns.shipping_percent is not None else 'fixed',
        payment_fee=ns.payment_fee,
        ltv_multiplier=ns.ltv,
        ltv_mode=bool(ns.ltv_mode),
    )
    margin_percent = ns.margin if ns.margin is not None else settings.desired_margin_percent
    min_rev = ns.min_revenue_percent if ns.min_revenue_percent is not None else settings.min_revenue_percent
    goal = ReverseGoal(
        revenue_target=float(ns.revenue_target),
        media_budget=float(ns.budget),
        profit_margin_goal=margin_percent / 100,
        economics=economics,
        min_revenue_percent=min_rev,
    )

    history_text = None
    if ns.history:
        p = Path(ns.history)
        if not p.exists():
            raise SystemExit(f'--history file not found: {p}')
        history_text = p.read_text(encoding='utf-8')

    return PlanInputs(
        goal=goal,
        case=ROICase(ns.case),
        scenario=ScenarioName(ns.scenario) if ns.scenario else None,
        history_text=history_text,
        elasticity=ns.elasticity,
        roas_ref=ns.roas_ref,
    )


def build_plan(inputs: PlanInputs, table: IndustryTable, settings: EngineSettings) -> Plan:
    result = solve_reverse(inputs.goal, table, currency=settings.currency)
    scenario = (result.scenarios.get(inputs.scenario) if inputs.scenario
                else result.scenarios.recommended)
    projection = simulate_roi(scenario, default_config(inputs.case))

    calibration = None
    model: Optional[VolumeModel] = None
    volume_source = None
    if inputs.history_text:
        calibration = calibrate(inputs.history_text)
        if calibration.result is not None:
            model = CalibratedVolumeModel(calibration.result.config)
            volume_source = 'calibrated'
    if model is None and inputs.elasticity is not None:
        roas_ref = inputs.roas_ref if inputs.roas_ref is not None else result.required_roas
        model = ManualVolumeModel(ManualVolumeConfig(inputs.elasticity, roas_ref), inputs.goal.media_budget)
        volume_source = 'manual'

    optimal = None
    if model is not None:
        budget = inputs.goal.media_budget
        optimal = find_optimal_budget(
            model,
            result.unit_economics.contribution_rate,
            budget * SEARCH_LOW,
            budget * SEARCH_HIGH,
            tolerance=settings.search_tolerance,
            max_iter=settings.search_max_iter,
        )

    return Plan(
        inputs=inputs,
        result=result,
        projection=projection,
        calibration=calibration,
        optimal=optimal,
        volume_source=volume_source,
    )


def render_markdown(plan: Plan, table: IndustryTable, currency: str = 'SEK') -> str:
    def money(x: float) -> str:
        return format_currency(x, currency)

    goal = plan.inputs.goal
    res = plan.result
    ue = res.unit_economics
    th = res.thresholds

    lines: List[str] = []
    lines.append('## Reverse ROAS Plan')
    lines.append('')
    lines.append(f"- Industry: {table.label(goal.economics.industry)}")
    lines.append(f"- Revenue target: {money(goal.revenue_target)}")
    lines.append(f"- Media budget: {money(goal.media_budget)}")
    lines.append(f"- Profit margin goal: {format_percent_no_sign(goal.profit_margin_goal)} of AOV")
    lines.append('')
    lines.append(f"### Status: {res.status_message}")
    lines.append('')
    lines.append(res.status_details)
    lines.append('')
    lines.append('| Metric | Value |')
    lines.append('|---|---|')
    lines.append(f"| Required ROAS | {format_roas(res.required_roas)} |")
    lines.append(f"| Required COS | {format_number(res.required_cos)}% |")
    lines.append(f"| Break-even ROAS | {format_roas(th.break_even_roas)} |")
    lines.append(f"| Break-even COS | {format_number(th.break_even_cos)}% |")
    lines.append(f"| Target ROAS | {format_roas(th.target_roas)} |")
    lines.append(f"| Target COS | {format_number(th.target_cos)}% |")
    lines.append(f"| Contribution before ads | {money(ue.contribution_before_ads)} ({format_percent_no_sign(ue.contribution_rate)}) |")
    lines.append(f"| Max ad cost per order (target) | {money(th.max_ad_cost_target)} |")
    lines.append('')

    lines.append('### Scenarios')
    lines.append('')
    lines.append('| Scenario | Budget | Revenue | ROAS | Profit | Budget Δ | Revenue Δ | Profit Δ |')
    lines.append('|---|---|---|---|---|---|---|---|')
    for s in res.scenarios:
        marker = ' ★' if s.is_recommended else ''
        lines.append(
            f"| {s.label}{marker} | {money(s.recommended_budget)} | {money(s.expected_revenue)} | "
            f"{format_roas(s.required_roas)} | {money(s.profit)} | "
            f"{format_percent(s.budget_delta_percent / 100)} | {format_percent(s.revenue_delta_percent / 100)} | "
            f"{money(s.profit_delta)} |"
        )
    lines.append('')
    for s in res.scenarios:
        lines.append(f"- **{s.label}**: {s.reasoning}")
    lines.append('')

    proj = plan.projection
    lines.append(f"### 12-month projection ({plan.inputs.case.value})")
    lines.append('')
    lines.append(f"- Total ad spend: {money(proj.total_ad_spend)}")
    lines.append(f"- Revenue vs waiting: {money(proj.total_revenue_delta)}")
    lines.append(f"- Profit vs waiting: {money(proj.total_profit_delta)}")
    be = f"month {proj.break_even_month}" if proj.break_even_month <= 12 else 'not within 12 months'
    lines.append(f"- Break-even: {be}")
    lines.append(f"- 12-month ROI: {format_number(proj.roi_12_month)}%")
    lines.append('')

    if plan.calibration is not None:
        cal = plan.calibration
        lines.append('### Historical calibration')
        lines.append('')
        lines.append(f"- Data points: {len(cal.points)}")
        if cal.result is None:
            for err in cal.validation.errors:
                lines.append(f"- ⚠️ {err}")
        else:
            r = cal.result
            lines.append(f"- Fit: ln(ROAS) = {r.a:.3f} + {r.b:.3f} · ln(spend), R² {r.r_squared:.2f} ({r.fit_quality})")
            lines.append(f"- {r.interpretation}")
        lines.append('')

    if plan.optimal is not None:
        opt = plan.optimal
        lines.append(f"### Optimal budget ({plan.volume_source} model)")
        lines.append('')
        lines.append(f"- Budget: {money(opt.budget)}")
        lines.append(f"- Revenue: {money(opt.revenue)}")
        lines.append(f"- Profit: {money(opt.profit)}")
        lines.append('')

    return '\n'.join(lines)


def write_csv(projection: ROIProjection, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    df: pd.DataFrame = projection.to_frame()
    df.to_csv(path, index=False)
    return path


def main(argv: list[str] | None = None) -> int:
    ns = parse_args(argv)
    settings = load_settings(Path(ns.env)) if ns.env else load_settings()
    report.configure(ns.log_level or settings.log_level)

    table_path = Path(ns.industry_table) if ns.industry_table else settings.industry_table_path
    try:
        table = load_industry_table(table_path)
        plan = build_plan(load_inputs(ns, settings), table, settings)
    except InputValidationError as e:
        raise SystemExit(f"{e.field}: {e}") from None

    md = render_markdown(plan, table, settings.currency)
    if ns.out:
        out_path = Path(ns.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(md, encoding='utf-8')
        logger.info("Wrote %s", out_path)
    else:
        print(md)
    if ns.csv:
        csv_path = write_csv(plan.projection, Path(ns.csv))
        logger.info("Wrote %s", csv_path)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
