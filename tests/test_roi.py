import math
from dataclasses import replace

import pytest

from roaskit.engine.reverse import ReverseGoal, solve_reverse
from roaskit.engine.roi import (
    MONTHS,
    NO_BREAK_EVEN,
    PRESETS,
    ROICase,
    ROISimulationConfig,
    default_config,
    ramp_factor,
    simulate_roi,
)


@pytest.fixture()
def scenario(base_params, table):
    # tight goal → max-profit scenario: budget 240 000 at ROAS 10/3, margin 20%
    goal = ReverseGoal(1_000_000, 400_000, 0.2, base_params)
    return solve_reverse(goal, table).scenarios.recommended


def test_presets():
    assert default_config("worst") == ROISimulationConfig(ROICase.WORST, 4, -20)
    assert default_config(ROICase.EXPECTED) == ROISimulationConfig(ROICase.EXPECTED, 3, 0)
    assert default_config("best") == ROISimulationConfig(ROICase.BEST, 2, 15)
    assert set(PRESETS) == set(ROICase)


def test_ramp_factor():
    assert ramp_factor(0, 3) == pytest.approx(0.3)
    assert ramp_factor(1, 3) == pytest.approx(0.3 + 0.7 / 3)
    assert ramp_factor(2, 3) == pytest.approx(0.3 + 1.4 / 3)
    assert ramp_factor(3, 3) == 1.0
    assert ramp_factor(11, 3) == 1.0


def test_twelve_labelled_months(scenario):
    proj = simulate_roi(scenario, default_config("expected"))
    assert len(proj.if_we_do) == MONTHS == len(proj.if_we_wait)
    assert [p.month for p in proj.if_we_do] == list(range(1, 13))
    labels = [p.label for p in proj.if_we_do]
    assert labels[0] == "Jan" and labels[4] == "May" and labels[11] == "Dec"


def test_spend_ramps_to_full_monthly_budget(scenario):
    assert scenario.recommended_budget == pytest.approx(240_000)
    proj = simulate_roi(scenario, default_config("expected"))
    monthly = 240_000 / 12
    assert proj.if_we_do[0].ad_spend == pytest.approx(monthly * 0.3)
    assert proj.if_we_do[0].revenue == pytest.approx(monthly * 0.3 * 10 / 3)
    for p in proj.if_we_do[3:]:
        assert p.ad_spend == pytest.approx(monthly)
    assert proj.total_ad_spend < 240_000


def test_cumulative_paths(scenario):
    proj = simulate_roi(scenario, default_config("expected"))
    do_rev = [p.cumulative_revenue for p in proj.if_we_do]
    assert all(b > a for a, b in zip(do_rev, do_rev[1:]))
    assert all(p.revenue == 0 and p.ad_spend == 0 for p in proj.if_we_wait)
    assert proj.total_revenue_delta == pytest.approx(do_rev[-1])


def test_wait_path_grows_with_baseline(scenario):
    proj = simulate_roi(scenario, default_config("expected"), baseline_monthly_revenue=50_000)
    wait = [p.cumulative_revenue for p in proj.if_we_wait]
    assert all(b > a for a, b in zip(wait, wait[1:]))
    assert wait[-1] == pytest.approx(600_000)
    assert proj.if_we_wait[0].profit == pytest.approx(10_000)
    # baseline cancels out of the deltas
    plain = simulate_roi(scenario, default_config("expected"))
    assert proj.total_revenue_delta == pytest.approx(plain.total_revenue_delta)
    assert proj.total_profit_delta == pytest.approx(plain.total_profit_delta)


def test_break_even_month(scenario):
    # 10/3 ROAS at a 20% margin never pays back
    proj = simulate_roi(scenario, default_config("expected"))
    assert proj.break_even_month == NO_BREAK_EVEN
    assert all(p.cumulative_profit <= 0 for p in proj.if_we_do)

    strong = replace(scenario, required_roas=10.0)
    proj = simulate_roi(strong, default_config("expected"))
    assert proj.break_even_month == 1
    assert proj.if_we_do[0].cumulative_profit > 0


@pytest.mark.parametrize("case", list(ROICase))
def test_roi_matches_unit_return(scenario, case):
    cfg = default_config(case)
    proj = simulate_roi(scenario, cfg)
    roas = scenario.required_roas * (1 + cfg.variance_percent / 100)
    assert proj.roi_12_month == pytest.approx((roas * 0.2 - 1) * 100)
    assert proj.total_profit_delta == pytest.approx(proj.roi_12_month / 100 * proj.total_ad_spend)


def test_cases_are_ordered(scenario):
    deltas = [simulate_roi(scenario, default_config(c)).total_revenue_delta for c in ("worst", "expected", "best")]
    assert deltas[0] < deltas[1] < deltas[2]


def test_zero_budget_has_zero_roi(scenario):
    proj = simulate_roi(replace(scenario, recommended_budget=0.0), default_config("best"))
    assert proj.roi_12_month == 0
    assert proj.total_ad_spend == 0
    assert proj.break_even_month == NO_BREAK_EVEN


def test_infinite_roas_yields_no_revenue(scenario):
    proj = simulate_roi(replace(scenario, required_roas=math.inf), default_config("expected"))
    assert all(p.revenue == 0 for p in proj.if_we_do)
    assert proj.total_profit_delta == pytest.approx(-proj.total_ad_spend)


def test_projection_frame(scenario):
    df = simulate_roi(scenario, default_config("worst")).to_frame()
    assert len(df) == 12
    assert {"month", "label", "revenue_do", "revenue_wait", "cumulative_profit_do"} <= set(df.columns)
