"""Built-in per-industry defaults for unit-economics assumptions.

Data only (no heavy imports or runtime code) so that any module can safely
``import roaskit.industry_data`` without side-effects. Engines never read this
module directly; they receive an ``IndustryTable`` built by
``roaskit.config.load_industry_table``.

Fractions are of AOV; shipping is a fixed amount in the engine currency.
"""

from __future__ import annotations
from typing import Dict

# ---------------------------------------------------------------------------
# Defaults – industry key → assumption values
# ---------------------------------------------------------------------------
INDUSTRY_DEFAULTS: Dict[str, Dict[str, float]] = {
    "ecommerce": {
        "margin": 0.50,
        "return_rate": 0.08,
        "payment_fee": 0.025,
        "ltv_multiplier": 1.3,
        "shipping_cost": 49,
    },
    "fashion": {
        "margin": 0.55,
        "return_rate": 0.25,
        "payment_fee": 0.025,
        "ltv_multiplier": 1.4,
        "shipping_cost": 0,
    },
    "beauty": {
        "margin": 0.65,
        "return_rate": 0.05,
        "payment_fee": 0.025,
        "ltv_multiplier": 1.8,
        "shipping_cost": 29,
    },
    "electronics": {
        "margin": 0.25,
        "return_rate": 0.10,
        "payment_fee": 0.025,
        "ltv_multiplier": 1.1,
        "shipping_cost": 0,
    },
    "home_garden": {
        "margin": 0.45,
        "return_rate": 0.08,
        "payment_fee": 0.025,
        "ltv_multiplier": 1.2,
        "shipping_cost": 99,
    },
    "saas": {
        "margin": 0.80,
        "return_rate": 0.05,
        "payment_fee": 0.025,
        "ltv_multiplier": 3.0,
        "shipping_cost": 0,
    },
    "other": {
        "margin": 0.50,
        "return_rate": 0.08,
        "payment_fee": 0.025,
        "ltv_multiplier": 1.3,
        "shipping_cost": 49,
    },
}

# ---------------------------------------------------------------------------
# Display labels
# ---------------------------------------------------------------------------
INDUSTRY_LABELS: Dict[str, str] = {
    "ecommerce": "E-commerce (general)",
    "fashion": "Fashion & Apparel",
    "beauty": "Beauty & Skincare",
    "electronics": "Electronics",
    "home_garden": "Home & Garden",
    "saas": "SaaS / Digital",
    "other": "Other",
}

# Accepted spellings → canonical key
ALIASES: Dict[str, str] = {
    "e-commerce": "ecommerce",
    "homegarden": "home_garden",
    "home & garden": "home_garden",
    "home-garden": "home_garden",
    "digital": "saas",
}
