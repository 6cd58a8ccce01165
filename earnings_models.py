"""
Records exchanged between the extractor, the reconciler and the scorer.

All monetary values are floats in the canonical unit (1e8 KRW, "억원").
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from quarter_labels import QuarterLabel


# -----------------------------
# Line items & kinds
# -----------------------------

SALES = "sales"
OPERATING_PROFIT = "operating_profit"
NET_INCOME = "net_income"
NET_INCOME_CONTROLLING = "net_income_controlling"

ITEMS = [SALES, OPERATING_PROFIT, NET_INCOME, NET_INCOME_CONTROLLING]

PERIODIC = "PERIODIC"
PRELIMINARY = "PRELIMINARY"

CONSOLIDATED = "연결"
STANDALONE = "개별"

CANONICAL_UNIT = 100_000_000.0


def empty_facts() -> Dict[str, Optional[float]]:
    return {k: None for k in ITEMS}


# -----------------------------
# Records
# -----------------------------

@dataclass(frozen=True)
class EarningsFact:
    quarter: QuarterLabel
    item: str
    value: float

    def to_row(self) -> Dict[str, object]:
        return {"quarter": str(self.quarter), "item": self.item, "value": self.value}


@dataclass
class ReportMeta:
    report_name: str
    receipt_no: str = ""
    receipt_date: str = ""  # YYYYMMDD
    corp_name: str = ""
    stock_code: str = ""


@dataclass
class ExtractionResult:
    """
    Output of one document extraction.

    facts is None when extraction failed (no document, or the anchor item was
    not located). quarter is None when no period notation could be read.
    """
    facts: Optional[Dict[str, Optional[float]]] = None
    quarter: Optional[QuarterLabel] = None
    unit_multiplier: float = 1.0
    is_annual: bool = False
    is_monthly: bool = False
    statement_type: Optional[str] = None
    flags: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.facts is not None

    def present_facts(self) -> Dict[str, float]:
        return {k: v for k, v in (self.facts or {}).items() if v is not None}

    def to_facts(self) -> List[EarningsFact]:
        if self.quarter is None:
            return []
        return [EarningsFact(self.quarter, k, v) for k, v in self.present_facts().items()]


@dataclass(frozen=True)
class Forecast:
    sales: Optional[float] = None
    operating_profit: Optional[float] = None
    net_income: Optional[float] = None

    def get(self, item: str) -> Optional[float]:
        return getattr(self, item, None)


@dataclass(frozen=True)
class ItemScore:
    item: str
    tier: int
    total: float
    contributions: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ImportanceScore:
    sales: int = 0
    operating_profit: int = 0
    net_income: Optional[int] = None  # None when net income is not scored

    def as_dict(self) -> Dict[str, Optional[int]]:
        return {SALES: self.sales, OPERATING_PROFIT: self.operating_profit, NET_INCOME: self.net_income}
