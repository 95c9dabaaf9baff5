import math

import pytest

from roaskit.engine.volume import (
    CalibratedVolumeConfig,
    CalibratedVolumeModel,
    ManualVolumeConfig,
    ManualVolumeModel,
    find_optimal_budget,
    manual_effective_roas,
    manual_revenue,
    predict_revenue,
    predict_roas,
    profit_at,
    revenue_curve,
)

# ROAS = 500 · spend^-0.5 with a 40% margin peaks at spend 10 000
PEAKED = CalibratedVolumeConfig(a=math.log(500), b=-0.5)


def test_manual_revenue():
    cfg = ManualVolumeConfig(elasticity=0.0, roas_ref=2.0)
    assert manual_revenue(1000, 4.0, cfg) == pytest.approx(4000)
    cfg = ManualVolumeConfig(elasticity=1.0, roas_ref=2.0)
    assert manual_revenue(1000, 4.0, cfg) == pytest.approx(2000)


def test_manual_effective_roas():
    cfg = ManualVolumeConfig(elasticity=1.0, roas_ref=4.0)
    assert manual_effective_roas(40_000, 10_000, cfg) == pytest.approx(2.0)
    assert manual_effective_roas(10_000, 10_000, cfg) == pytest.approx(4.0)
    flat = ManualVolumeConfig(elasticity=0.0, roas_ref=4.0)
    assert manual_effective_roas(99_000, 10_000, flat) == 4.0


@pytest.mark.parametrize("budget,roas,ref", [(0, 4, 2), (-10, 4, 2), (100, 0, 2), (100, 4, 0)])
def test_manual_non_positive_inputs_short_circuit(budget, roas, ref):
    cfg = ManualVolumeConfig(elasticity=0.5, roas_ref=ref)
    assert manual_revenue(budget, roas, cfg) == 0


def test_manual_effective_roas_without_reference():
    cfg = ManualVolumeConfig(elasticity=0.5, roas_ref=4.0)
    assert manual_effective_roas(0, 10_000, cfg) == 0
    assert manual_effective_roas(5_000, 0, cfg) == 0


def test_calibrated_prediction():
    cfg = CalibratedVolumeConfig(a=math.log(10), b=-0.5)
    assert predict_roas(100, cfg) == pytest.approx(1.0)
    assert predict_revenue(100, cfg) == pytest.approx(100)
    assert predict_roas(0, cfg) == 0
    assert predict_revenue(-5, cfg) == 0


def test_models_share_contract():
    manual = ManualVolumeModel(ManualVolumeConfig(elasticity=1.0, roas_ref=4.0), budget_ref=10_000)
    calibrated = CalibratedVolumeModel(CalibratedVolumeConfig(a=math.log(10), b=-0.5))
    for model in (manual, calibrated):
        assert model.predict(5_000) == pytest.approx(5_000 * model.predict_roas(5_000))
        assert model.predict(0) == 0


def test_optimal_budget_interior_peak():
    opt = find_optimal_budget(PEAKED, 0.4, 1_000, 100_000)
    assert opt.budget == pytest.approx(10_000, abs=100)
    assert opt.profit == pytest.approx(10_000, rel=1e-3)
    assert opt.revenue == pytest.approx(predict_revenue(opt.budget, PEAKED))
    assert 0 < opt.iterations <= 100


def test_optimum_beats_interval_bounds():
    model = CalibratedVolumeModel(PEAKED)
    for lo, hi in [(1_000, 100_000), (2_000, 30_000), (500, 60_000)]:
        opt = find_optimal_budget(model, 0.4, lo, hi)
        assert opt.profit >= profit_at(model, 0.4, lo)
        assert opt.profit >= profit_at(model, 0.4, hi)


def test_optimal_budget_respects_iteration_cap_and_swapped_bounds():
    opt = find_optimal_budget(PEAKED, 0.4, 100_000, 1_000, tolerance=1e-9, max_iter=5)
    assert opt.iterations == 5
    assert 1_000 <= opt.budget <= 100_000


def test_manual_model_optimum():
    model = ManualVolumeModel(ManualVolumeConfig(elasticity=1.0, roas_ref=8.0), budget_ref=10_000)
    opt = find_optimal_budget(model, 0.5, 1_000, 200_000)
    # profit = 0.5 · 8 · sqrt(10000 · s) − s peaks at s = 40 000
    assert opt.budget == pytest.approx(40_000, abs=100)


def test_revenue_curve_frame():
    df = revenue_curve(PEAKED, [5_000, 10_000, 20_000], 0.4)
    assert list(df.columns) == ["spend", "roas", "revenue", "profit"]
    assert len(df) == 3
    assert df["profit"].idxmax() == 1


def test_monotone_profit_returns_the_better_bound():
    # rising ROAS: profit grows all the way to the upper bound
    rising = CalibratedVolumeModel(CalibratedVolumeConfig(a=math.log(5), b=0.05))
    opt = find_optimal_budget(rising, 0.5, 1_000, 100_000)
    assert opt.budget == 100_000
    assert opt.profit == pytest.approx(profit_at(rising, 0.5, 100_000))
    assert opt.profit >= profit_at(rising, 0.5, 1_000)
