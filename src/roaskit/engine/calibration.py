#!/usr/bin/env python3
"""
Historical Calibration – delimited spend/revenue history → power-law volume model

Input text (pasted export or CSV file contents):
  - separator auto-detected from the first data row: tab, then ';', else ','
  - optional header row, recognised by column names (date, spend, revenue, roas, ...)
  - 2 columns: spend, revenue
  - 3 columns: date, spend, revenue|roas
      third value is revenue when a revenue-like header was seen or it exceeds 100,
      otherwise ROAS
  - 4 columns: date, spend, revenue, roas
  - decimal commas ("1234,5") and embedded spaces ("12 000") are tolerated

Fit: OLS of ln(roas) on ln(spend), giving ln(roas) = a + b·ln(spend).

Data problems never raise: malformed rows are dropped, unusable data sets come
back as ``None`` with itemised validation messages.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from roaskit.engine.volume import CalibratedVolumeConfig, predict_roas
from roaskit.utils.logs import report

logger = report.settings(__file__)

MIN_POINTS = 5

HEADER_RE = re.compile(r"^(date|datum|day|dag|spend|budget|cost|kostnad|revenue|omsättning|intäkt|sales|roas)", re.I)
REVENUE_HEADER_RE = re.compile(r"revenue|omsättning|intäkt|sales", re.I)

# Fit-quality grades on R²
HIGH_FIT_R2 = 0.7
MEDIUM_FIT_R2 = 0.3

# Slope regimes (b)
SLOPE_INTERPRETATIONS = {
    "stable": "ROAS is stable regardless of budget. No clear diminishing returns.",
    "light": "Slightly diminishing returns. Normal for most ad channels.",
    "normal": "Normal diminishing returns. Budget should be optimised carefully.",
    "strong": "Strongly diminishing returns. Raising the budget quickly lowers ROAS.",
}


@dataclass(frozen=True)
class HistoricalDataPoint:
    date: str
    spend: float
    revenue: float
    roas: float


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RegressionResult:
    a: float
    b: float
    r_squared: float
    n: int
    fit_quality: str            # "low" | "medium" | "high"
    interpretation: str
    config: CalibratedVolumeConfig

    def predicted_roas(self, spend: float) -> float:
        return predict_roas(spend, self.config)


@dataclass(frozen=True)
class CalibrationOutcome:
    points: List[HistoricalDataPoint]
    validation: ValidationReport
    result: Optional[RegressionResult]


# -------------------------------
# Parsing
# -------------------------------

def detect_separator(line: str) -> str:
    if "\t" in line:
        return "\t"
    if ";" in line:
        return ";"
    return ","


def _parse_number(cell: str) -> Optional[float]:
    try:
        value = float(cell.replace(",", "."))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_historical_text(text: str) -> List[HistoricalDataPoint]:
    lines = text.strip().splitlines()
    if not lines or not lines[0].strip():
        return []

    separator = detect_separator(lines[1] if len(lines) > 1 else lines[0])
    first_cells = [c.strip() for c in lines[0].split(separator)]
    is_header = any(HEADER_RE.match(c) for c in first_cells)

    has_revenue_header = False
    if is_header:
        has_revenue_header = any(REVENUE_HEADER_RE.search(c) for c in first_cells)
    data_lines = lines[1:] if is_header else lines

    results: List[HistoricalDataPoint] = []
    for raw in data_lines:
        if not raw.strip():
            continue
        cells = [re.sub(r"\s", "", c) for c in raw.split(separator)]
        if len(cells) < 2:
            logger.debug("Skipping row with a single column: %r", raw)
            continue

        date = ""
        revenue: Optional[float]
        roas: Optional[float]
        if len(cells) >= 4:
            date = cells[0]
            spend = _parse_number(cells[1])
            revenue = _parse_number(cells[2])
            roas = _parse_number(cells[3])
        elif len(cells) == 3:
            date = cells[0]
            spend = _parse_number(cells[1])
            third = _parse_number(cells[2])
            if third is not None and (has_revenue_header or third > 100):
                revenue, roas = third, None
            else:
                revenue, roas = None, third
        else:
            spend = _parse_number(cells[0])
            revenue = _parse_number(cells[1])
            roas = None

        if spend is None or spend <= 0:
            logger.debug("Dropping row without positive spend: %r", raw)
            continue
        revenue = revenue if revenue is not None and revenue > 0 else None
        roas = roas if roas is not None and roas > 0 else None
        if revenue is None and roas is None:
            logger.debug("Dropping row without revenue or ROAS: %r", raw)
            continue
        if revenue is None:
            revenue = spend * roas
        if roas is None:
            roas = revenue / spend

        results.append(HistoricalDataPoint(
            date=date or f"Row {len(results) + 1}",
            spend=spend,
            revenue=revenue,
            roas=roas,
        ))

    return results


def points_to_frame(points: Sequence[HistoricalDataPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"date": p.date, "spend": p.spend, "revenue": p.revenue, "roas": p.roas} for p in points],
        columns=["date", "spend", "revenue", "roas"],
    )


# -------------------------------
# Validation
# -------------------------------

def validate_data(points: Sequence[HistoricalDataPoint]) -> ValidationReport:
    errors: List[str] = []

    if len(points) < MIN_POINTS:
        errors.append(f"At least {MIN_POINTS} data points are required (got {len(points)}).")

    bad_spend = sum(1 for p in points if not p.spend > 0)
    if bad_spend:
        errors.append(f"{bad_spend} row(s) have an invalid spend value.")

    bad_roas = sum(1 for p in points if not p.roas > 0)
    if bad_roas:
        errors.append(f"{bad_roas} row(s) have an invalid ROAS value.")

    if len(points) >= 2 and len({p.spend for p in points}) < 2:
        errors.append("All data points have the same spend; regression needs variation in spend.")

    return ValidationReport(valid=not errors, errors=errors)


# -------------------------------
# OLS regression
# -------------------------------

def grade_fit(r_squared: float) -> str:
    if r_squared > HIGH_FIT_R2:
        return "high"
    if r_squared > MEDIUM_FIT_R2:
        return "medium"
    return "low"


def slope_regime(b: float) -> str:
    if -0.05 < b < 0.05:
        return "stable"
    if b >= -0.3:
        return "light"
    if b >= -0.6:
        return "normal"
    return "strong"


def interpret_slope(b: float) -> str:
    return SLOPE_INTERPRETATIONS[slope_regime(b)]


def run_ols(points: Sequence[HistoricalDataPoint]) -> Optional[RegressionResult]:
    """Fit ln(roas) = a + b·ln(spend); ``None`` when the data cannot support it."""
    validation = validate_data(points)
    if not validation.valid:
        logger.warning("Calibration data rejected: %s", " ".join(validation.errors))
        return None

    n = len(points)
    x = np.log(np.array([p.spend for p in points], dtype=float))
    y = np.log(np.array([p.roas for p in points], dtype=float))

    sum_x = float(x.sum())
    sum_y = float(y.sum())
    sum_xy = float((x * y).sum())
    sum_x2 = float((x * x).sum())

    denom = n * sum_x2 - sum_x * sum_x
    if denom == 0:
        logger.warning("Calibration design matrix is singular (n=%d)", n)
        return None

    b = (n * sum_xy - sum_x * sum_y) / denom
    a = sum_y / n - b * sum_x / n

    ss_tot = float(((y - y.mean()) ** 2).sum())
    ss_res = float(((y - (a + b * x)) ** 2).sum())
    # constant ROAS leaves nothing to explain
    flat = float(np.ptp(y)) == 0.0
    r_squared = 0.0 if flat or ss_tot <= 0 else 1 - ss_res / ss_tot

    result = RegressionResult(
        a=a,
        b=b,
        r_squared=r_squared,
        n=n,
        fit_quality=grade_fit(r_squared),
        interpretation=interpret_slope(b),
        config=CalibratedVolumeConfig(a=a, b=b),
    )
    logger.debug("OLS fit a=%.4f b=%.4f R²=%.3f (n=%d, %s)", a, b, r_squared, n, result.fit_quality)
    return result


def calibrate(text: str) -> CalibrationOutcome:
    points = parse_historical_text(text)
    validation = validate_data(points)
    result = run_ols(points) if validation.valid else None
    return CalibrationOutcome(points=points, validation=validation, result=result)
