"""Report title -> disclosure kind."""

from __future__ import annotations

from typing import Optional

from earnings_models import PERIODIC, PRELIMINARY
from quarter_labels import squeeze


# -----------------------------
# Configuration
# -----------------------------

PERIODIC_MARKERS = ["분기보고서", "반기보고서", "사업보고서"]

THRESHOLD_30PCT_MARKER = "매출액또는손익구조30%"

PRELIMINARY_MARKERS = [
    "재무제표기준영업(잠정)실적",
    "영업(잠정)실적(공정공시)",
    THRESHOLD_30PCT_MARKER,
]


def classify(title: str) -> Optional[str]:
    """PERIODIC, PRELIMINARY or None (skip). Periodic markers are checked first."""
    t = squeeze(title)
    if any(m in t for m in PERIODIC_MARKERS):
        return PERIODIC
    if any(m in t for m in PRELIMINARY_MARKERS):
        return PRELIMINARY
    return None


def is_threshold_30pct(title: str) -> bool:
    return THRESHOLD_30PCT_MARKER in squeeze(title)
