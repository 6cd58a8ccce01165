"""
Quarter label codec.

What it does
------------
- Parses the many date / quarter notations found in Korean disclosures into a
  single (quarter, two-digit year) label, rendered as "2Q25".
- Rules are tried in a fixed priority order; the first rule that matches wins.
- Month-based rules map to ceil(month / 3).
- Full-year notations yield Q4 and are reported with kind "annual"; the caller
  decides what an annual figure means.
- A month-only notation ("2025년 7월") yields kind "monthly", which callers
  treat as "not analyzable".

Examples of supported notations (whitespace is ignored)
--------------------------------------------------------
    2025.08.14까지            -> 3Q25
    '25.2Q / 25.2분기         -> 2Q25
    2025년 2분기 / 25년2Q     -> 2Q25
    2025-2Q                   -> 2Q25
    2Q25                      -> 2Q25
    25Y Q2                    -> 2Q25
    25.04~25.06               -> 2Q25
    2025.04~2025.06           -> 2Q25
    2025.04.01~2025.06.30     -> 2Q25
    2025.01.01~2025.12.31     -> 4Q25 (annual)
    2025년 / 25년             -> 4Q25 (annual)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Callable, List, Optional, Tuple


# -----------------------------
# Configuration
# -----------------------------

QUARTER = "quarter"
ANNUAL = "annual"
MONTHLY = "monthly"

# Coverage end on/after Dec 28 means the statement covers the whole year.
ANNUAL_CUTOFF_DAY = 28

RE_CANONICAL = re.compile(r"^([1-4])Q(\d{2})$")
RE_WS = re.compile(r"\s+")


# -----------------------------
# Label value type
# -----------------------------

@total_ordering
@dataclass(frozen=True)
class QuarterLabel:
    quarter: int
    year2: int

    def __post_init__(self) -> None:
        if not 1 <= self.quarter <= 4:
            raise ValueError(f"quarter out of range: {self.quarter}")
        if not 0 <= self.year2 <= 99:
            raise ValueError(f"year2 out of range: {self.year2}")

    def __str__(self) -> str:
        return f"{self.quarter}Q{self.year2:02d}"

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.year2, self.quarter)

    def __lt__(self, other: "QuarterLabel") -> bool:
        if not isinstance(other, QuarterLabel):
            return NotImplemented
        return self.sort_key < other.sort_key


def make_label(quarter: int, year: int) -> Optional[QuarterLabel]:
    """Build a label from a quarter number and a 2- or 4-digit year."""
    if not 1 <= quarter <= 4:
        return None
    return QuarterLabel(quarter=quarter, year2=int(year) % 100)


def quarter_of_month(month: int) -> int:
    return int(math.ceil(month / 3))


def label_from_year_month(year: int, month: int) -> Optional[QuarterLabel]:
    if not 1 <= month <= 12:
        return None
    return make_label(quarter_of_month(month), year)


def parse_label(text: str) -> Optional[QuarterLabel]:
    """Inverse of str(label): "2Q25" -> QuarterLabel(2, 25)."""
    m = RE_CANONICAL.match((text or "").strip())
    if not m:
        return None
    return QuarterLabel(quarter=int(m.group(1)), year2=int(m.group(2)))


def relative_quarter(label: QuarterLabel, offset: int) -> QuarterLabel:
    """Shift a label by `offset` quarters (-4 = same quarter last year, -1 = prior quarter)."""
    index = label.year2 * 4 + (label.quarter - 1) + offset
    year2, q0 = divmod(index, 4)
    return QuarterLabel(quarter=q0 + 1, year2=year2 % 100)


# -----------------------------
# Priority-ordered rules
# -----------------------------

@dataclass(frozen=True)
class PeriodMatch:
    label: Optional[QuarterLabel]
    kind: str
    rule: str

    @property
    def is_annual(self) -> bool:
        return self.kind == ANNUAL

    @property
    def is_monthly(self) -> bool:
        return self.kind == MONTHLY


Extractor = Callable[[re.Match], Optional[PeriodMatch]]


def _coverage_end(m: re.Match) -> Optional[PeriodMatch]:
    year, month, day = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if month == 12 and day >= ANNUAL_CUTOFF_DAY:
        return PeriodMatch(make_label(4, year), ANNUAL, "CoverageEnd")
    label = label_from_year_month(year, month)
    return PeriodMatch(label, QUARTER, "CoverageEnd") if label else None


def _monthly(m: re.Match) -> Optional[PeriodMatch]:
    return PeriodMatch(None, MONTHLY, "Monthly")


def _full_year(rule: str) -> Extractor:
    def build(m: re.Match) -> Optional[PeriodMatch]:
        return PeriodMatch(make_label(4, int(m.group(1))), ANNUAL, rule)
    return build


def _year_month(rule: str) -> Extractor:
    def build(m: re.Match) -> Optional[PeriodMatch]:
        label = label_from_year_month(int(m.group(1)), int(m.group(2)))
        return PeriodMatch(label, QUARTER, rule) if label else None
    return build


def _year_quarter(rule: str, year_group: int = 1, quarter_group: int = 2) -> Extractor:
    def build(m: re.Match) -> Optional[PeriodMatch]:
        label = make_label(int(m.group(quarter_group)), int(m.group(year_group)))
        return PeriodMatch(label, QUARTER, rule) if label else None
    return build


# Order matters: the first matching rule wins. Patterns run against text with
# all whitespace removed.
PERIOD_RULES: List[Tuple[str, re.Pattern, Extractor]] = [
    ("CoverageEnd", re.compile(r"(\d{4})\.(\d{2})\.(\d{2})까지"), _coverage_end),
    ("Monthly", re.compile(r"(?<!\d)(\d{2}|\d{4})년(\d{1,2})월"), _monthly),
    ("FullYearRange", re.compile(r"(\d{4})\.01\.01~(\d{4})\.12\.31"), _full_year("FullYearRange")),
    ("BareYear", re.compile(r"(?<!\d)(\d{4}|\d{2})년(?!\d+[분기Q])"), _full_year("BareYear")),
    ("DateRange4", re.compile(r"(\d{4})\.(\d{1,2})\.\d{1,2}~"), _year_month("DateRange4")),
    ("DateRangeMonth4", re.compile(r"(\d{4})\.(\d{1,2})~"), _year_month("DateRangeMonth4")),
    ("DateRange2", re.compile(r"(?<!\d)(\d{2})\.(\d{1,2})~"), _year_month("DateRange2")),
    ("DotQuarter", re.compile(r"'?(\d{2,4})\.(\d)[Q분]"), _year_quarter("DotQuarter")),
    ("CompactQuarter2", re.compile(r"'?(\d{2})(\d)[Q분]"), _year_quarter("CompactQuarter2")),
    ("CompactQuarter4", re.compile(r"(\d{4})(\d)[Q분]"), _year_quarter("CompactQuarter4")),
    ("YearQuarter2", re.compile(r"'?(\d{2})년(\d)[Q분]"), _year_quarter("YearQuarter2")),
    ("YearQuarter4", re.compile(r"(\d{4})년(\d)[Q분]"), _year_quarter("YearQuarter4")),
    ("DashQuarter", re.compile(r"(\d{2,4})-(\d)Q"), _year_quarter("DashQuarter")),
    ("QuarterYear", re.compile(r"(\d)Q(\d{2,4})"), _year_quarter("QuarterYear", year_group=2, quarter_group=1)),
    ("YQuarter", re.compile(r"(\d{2})YQ(\d)"), _year_quarter("YQuarter")),
    ("DotQPrefix", re.compile(r"'?(\d{2,4})\.Q(\d)"), _year_quarter("DotQPrefix")),
    ("SlashQuarter", re.compile(r"'?(\d{2,4})\.(\d{1,2})/\d분기"), _year_quarter("SlashQuarter")),
]


def squeeze(text: str) -> str:
    return RE_WS.sub("", text or "")


def match_period(text: str, rules: Optional[List[Tuple[str, re.Pattern, Extractor]]] = None) -> Optional[PeriodMatch]:
    s = squeeze(text)
    if not s:
        return None
    for _, rx, build in (rules if rules is not None else PERIOD_RULES):
        m = rx.search(s)
        if m:
            # a matching rule is final even when its value is out of range
            return build(m)
    return None


def match_coverage_end(text: str) -> Optional[PeriodMatch]:
    """Only the "yyyy.mm.dd 까지" statement-coverage rule."""
    return match_period(text, rules=PERIOD_RULES[:1])


def parse_quarter_label(text: str) -> Optional[QuarterLabel]:
    pm = match_period(text)
    if pm is None or pm.is_monthly:
        return None
    return pm.label
