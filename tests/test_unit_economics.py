import math

import pytest

from roaskit.engine.unit_economics import (
    BusinessParameters,
    compute_roas_thresholds,
    compute_unit_economics,
    cos_from_roas,
    summarize_break_even,
)
from roaskit.errors import InputValidationError


def test_contribution_and_break_even(table, base_params):
    ue = compute_unit_economics(base_params, table)
    assert ue.contribution_before_ads == pytest.approx(500)
    assert ue.contribution_rate == pytest.approx(0.5)

    th = compute_roas_thresholds(ue, ue.aov, 0.0)
    assert th.break_even_roas == pytest.approx(2.0)
    assert th.break_even_cos == 100 / th.break_even_roas
    assert th.max_ad_cost == pytest.approx(500)


def test_target_roas_at_twenty_percent_of_aov(table, base_params):
    ue = compute_unit_economics(base_params, table)
    th = compute_roas_thresholds(ue, ue.aov, 0.20)
    assert th.max_ad_cost_target == pytest.approx(300)
    assert th.target_roas == pytest.approx(10 / 3)
    assert th.target_cos == pytest.approx(30)
    assert not th.target_impossible


def test_zero_desired_margin_matches_break_even(table):
    for industry in ("ecommerce", "fashion", "beauty", "electronics", "home_garden", "saas"):
        params = BusinessParameters(aov=650, industry=industry)
        ue = compute_unit_economics(params, table)
        th = compute_roas_thresholds(ue, ue.aov, 0.0)
        assert th.target_roas == th.break_even_roas


def test_industry_defaults_fill_missing_fields(table):
    ue = compute_unit_economics(BusinessParameters(aov=1000, industry="ecommerce"), table)
    assert ue.product_cost == pytest.approx(500)
    assert ue.product_cost_effective == pytest.approx(540)   # 8% returns add cost
    assert ue.shipping_cost == pytest.approx(49)
    assert ue.payment_fee == pytest.approx(25)
    assert ue.contribution_before_ads == pytest.approx(386)


def test_explicit_product_cost_wins_over_gross_margin(table):
    params = BusinessParameters(aov=1000, industry="other", product_cost=300, gross_margin=10,
                                return_rate=10, shipping_cost=0, payment_fee=0)
    ue = compute_unit_economics(params, table)
    assert ue.product_cost == pytest.approx(300)
    assert ue.product_cost_effective == pytest.approx(330)


def test_percent_shipping(table, base_params):
    from dataclasses import replace
    params = replace(base_params, shipping_cost=99, shipping_cost_type="percent", shipping_cost_percent=5)
    ue = compute_unit_economics(params, table)
    assert ue.shipping_cost == pytest.approx(50)

    fixed = replace(base_params, shipping_cost=99, shipping_cost_percent=5)
    assert compute_unit_economics(fixed, table).shipping_cost == pytest.approx(99)


def test_negative_contribution_is_infinite_not_an_error(table):
    params = BusinessParameters(aov=1000, industry="other", gross_margin=10, return_rate=0,
                                shipping_cost=200, payment_fee=0)
    ue = compute_unit_economics(params, table)
    assert ue.contribution_before_ads < 0
    th = compute_roas_thresholds(ue, ue.aov, 0.2)
    assert math.isinf(th.break_even_roas)
    assert math.isinf(th.target_roas)
    assert th.break_even_cos == 0
    assert th.target_cos == 0
    assert th.target_impossible


def test_margin_above_contribution_flags_target(table, base_params):
    ue = compute_unit_economics(base_params, table)
    th = compute_roas_thresholds(ue, ue.aov, 0.6)
    assert th.break_even_roas == pytest.approx(2.0)
    assert th.target_impossible
    assert math.isinf(th.target_roas)
    assert th.max_ad_cost_target == pytest.approx(-100)


def test_ltv_mode_scales_effective_aov(table, base_params):
    ue = compute_unit_economics(base_params, table)
    assert compute_roas_thresholds(ue, ue.aov, 0.0, 2.0, ltv_mode=True).break_even_roas == pytest.approx(4.0)
    assert compute_roas_thresholds(ue, ue.aov, 0.0, 2.0, ltv_mode=False).break_even_roas == pytest.approx(2.0)


def test_cos_from_roas():
    assert cos_from_roas(4.0) == 25.0
    assert cos_from_roas(math.inf) == 0.0
    assert cos_from_roas(0.0) == 0.0


def test_summary_confidence_and_assumptions(table, base_params):
    summary = summarize_break_even(base_params, table)
    assert summary.confidence_level == "high"
    assert summary.desired_profit_margin == 20
    assert summary.target_roas == pytest.approx(10 / 3)
    assert summary.max_cpa == pytest.approx(500)
    assert summary.max_cpa_with_ltv == pytest.approx(500 * 1.3)
    # lifetime value lowers the ROAS needed to break even
    assert summary.break_even_roas_with_ltv == pytest.approx(1000 / 650)
    assert summary.break_even_roas_with_ltv < summary.break_even_roas
    params = [a.parameter for a in summary.assumptions]
    assert params == ["Gross margin", "Return rate", "Shipping cost", "Payment fee", "LTV multiplier"]
    assert summary.assumptions[-1].source == "industry_default"


def test_summary_low_confidence_on_defaults(table):
    summary = summarize_break_even(BusinessParameters(aov=800, industry="beauty"), table, desired_margin_percent=10)
    assert summary.confidence_level == "low"
    assert summary.desired_profit_margin == 10
    assert all(a.source == "industry_default" for a in summary.assumptions)


def test_summary_medium_confidence():
    from roaskit.config import builtin_industry_table
    params = BusinessParameters(aov=800, industry="beauty", gross_margin=60, ltv_multiplier=2.0)
    assert summarize_break_even(params, builtin_industry_table()).confidence_level == "medium"


def test_unknown_industry(table):
    with pytest.raises(InputValidationError) as exc:
        compute_unit_economics(BusinessParameters(aov=100, industry="spaceships"), table)
    assert exc.value.field == "industry"


def test_summary_ltv_break_even_without_contribution(table):
    params = BusinessParameters(aov=1000, industry="other", gross_margin=10, return_rate=0,
                                shipping_cost=200, payment_fee=0, ltv_multiplier=2.0)
    summary = summarize_break_even(params, table)
    assert summary.max_cpa_with_ltv < 0
    assert math.isinf(summary.break_even_roas_with_ltv)
