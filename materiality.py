"""
Materiality (importance) score, 0-6 per line item.

For the most recent quarter of a reconciled series each item's actual value
is compared against up to three baselines: the consensus forecast, the same
quarter a year earlier and the previous quarter. Every available baseline adds
a signed contribution; the total is mapped to a tier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import structlog

from earnings_models import (
    NET_INCOME,
    OPERATING_PROFIT,
    SALES,
    EarningsFact,
    Forecast,
    ImportanceScore,
    ItemScore,
)
from quarter_labels import QuarterLabel, relative_quarter

log = structlog.get_logger(__name__)


# -----------------------------
# Configuration
# -----------------------------

FORECAST = "forecast"
YOY = "yoy"
QOQ = "qoq"

FORECAST_WEIGHT = 1.65
HISTORY_WEIGHT = 1.5
DECLINE_WEIGHT = 1.5
MAX_GROWTH_PCT = 100.0
MIN_GROWTH_PCT = -50.0

TURNAROUND = 100.0
SWING_TO_LOSS = -65.0
LOSS_NARROWED = 40.0
LOSS_WIDENED = -20.0

# (actual above, multiplier) in canonical units, largest first
OPERATING_PROFIT_BONUS = [(500.0, 1.35), (250.0, 1.3), (100.0, 1.2)]

# (minimum total, tier), highest first
TIERS = [(300.0, 6), (200.0, 5), (150.0, 4), (100.0, 3), (40.0, 2), (20.0, 1)]


@dataclass(frozen=True)
class ScoringConfig:
    score_net_income: bool = False


# -----------------------------
# Contributions
# -----------------------------

def operating_profit_bonus(actual: float) -> float:
    for floor, mul in OPERATING_PROFIT_BONUS:
        if actual > floor:
            return mul
    return 1.0


def contribution(actual: float, baseline: float, item: str, is_forecast: bool = False) -> float:
    if actual > 0 and baseline > 0:
        growth = (actual - baseline) / baseline * 100.0
        if growth >= 0:
            c = min(growth, MAX_GROWTH_PCT) * (FORECAST_WEIGHT if is_forecast else HISTORY_WEIGHT)
            if item == OPERATING_PROFIT:
                c *= operating_profit_bonus(actual)
            return c
        return max(growth, MIN_GROWTH_PCT) * DECLINE_WEIGHT
    if actual > 0:
        return TURNAROUND
    if baseline > 0:
        return SWING_TO_LOSS
    return LOSS_NARROWED if actual > baseline else LOSS_WIDENED


def tier_for(total: float, actual: float) -> int:
    if actual < 0:
        return 0
    for floor, tier in TIERS:
        if total >= floor:
            return tier
    return 0


# -----------------------------
# Series lookups
# -----------------------------

def value_table(series: Sequence[EarningsFact]) -> Dict[QuarterLabel, Dict[str, float]]:
    table: Dict[QuarterLabel, Dict[str, float]] = {}
    for f in series:
        table.setdefault(f.quarter, {}).setdefault(f.item, f.value)
    return table


def baselines_for(
    item: str,
    latest: QuarterLabel,
    table: Dict[QuarterLabel, Dict[str, float]],
    forecast: Optional[Forecast],
) -> Dict[str, Optional[float]]:
    fc = forecast.get(item) if forecast is not None else None
    return {
        FORECAST: fc if fc else None,
        YOY: table.get(relative_quarter(latest, -4), {}).get(item),
        QOQ: table.get(relative_quarter(latest, -1), {}).get(item),
    }


def score_item(item: str, series: Sequence[EarningsFact], forecast: Optional[Forecast] = None) -> ItemScore:
    if not series:
        return ItemScore(item=item, tier=0, total=0.0)
    latest = max(f.quarter for f in series)
    table = value_table(series)
    actual = table.get(latest, {}).get(item)
    if actual is None:
        return ItemScore(item=item, tier=0, total=0.0)

    contributions: Dict[str, float] = {}
    for name, base in baselines_for(item, latest, table, forecast).items():
        if base is None:
            continue
        contributions[name] = contribution(actual, base, item, is_forecast=(name == FORECAST))

    total = sum(contributions.values())
    return ItemScore(item=item, tier=tier_for(total, actual), total=total, contributions=contributions)


def score(
    series: Sequence[EarningsFact],
    forecast: Optional[Forecast] = None,
    config: Optional[ScoringConfig] = None,
) -> ImportanceScore:
    config = config or ScoringConfig()
    items: List[str] = [SALES, OPERATING_PROFIT] + ([NET_INCOME] if config.score_net_income else [])
    scored = {item: score_item(item, series, forecast) for item in items}
    log.info("score.done", **{k: v.tier for k, v in scored.items()})
    return ImportanceScore(
        sales=scored[SALES].tier,
        operating_profit=scored[OPERATING_PROFIT].tier,
        net_income=scored[NET_INCOME].tier if NET_INCOME in scored else None,
    )
