"""
Earnings extraction from DART disclosure documents.

What it does
------------
- PERIODIC (분기/반기/사업보고서): scans every table row of the income statement
  page; the first cell is matched against one regex per line item, the
  adjacent cell holds the value. The first matching row wins per item.
  The reporting quarter comes from the "yyyy.mm.dd 까지" coverage sentence;
  a coverage end on/after Dec 28 is a full-year (annual) figure.
  Sales is the anchor: without it the extraction fails.

- PRELIMINARY (영업(잠정)실적): two row parsers.
    * Parser A (regular releases): exact first-cell item name, then the
      "당해실적"/"당기실적" cell of the same row, value in the next cell.
    * Parser B (매출액또는손익구조30% disclosures): any cell whose text ends
      with the item name, value in the next cell.
  The quarter comes from the data row under the "구분" header, read with the
  quarter label codec (monthly tables abort the extraction). A 30% disclosure
  without a readable period falls back to Q4 of the year before receipt.

Values
------
- "(1,234)" is negative, "1,234" positive, "-" is zero.
- value_in_krw = printed * unit_multiplier; stored value = value_in_krw / 1e8.
"""

from __future__ import annotations

import re
from functools import reduce
from typing import Dict, List, Optional, Tuple

import structlog
from bs4 import BeautifulSoup

from earnings_models import (
    CANONICAL_UNIT,
    CONSOLIDATED,
    NET_INCOME,
    NET_INCOME_CONTROLLING,
    OPERATING_PROFIT,
    PERIODIC,
    PRELIMINARY,
    SALES,
    STANDALONE,
    ExtractionResult,
    ReportMeta,
    empty_facts,
)
from quarter_labels import make_label, match_coverage_end, match_period, squeeze
from report_classifier import is_threshold_30pct
from unit_normalizer import RateFn, unit_multiplier

log = structlog.get_logger(__name__)


# -----------------------------
# Configuration
# -----------------------------

PERIODIC_PATTERNS: Dict[str, re.Pattern] = {
    SALES: re.compile(r"수익\(매출액\)|매출액|영업수익|^매출$"),
    OPERATING_PROFIT: re.compile(r"영업이익|영업손실|영업손익"),
    NET_INCOME: re.compile(
        r"당기순이익|반기순이익|분기순이익|당기순손실|반기순손실|분기순손실|반기순손익|분기순손익|당기순손익"
    ),
    NET_INCOME_CONTROLLING: re.compile(r"(?<!비)지배(기업)?(주주)?지분|지배기업.*귀속"),
}

ACTUAL_KEYWORDS: Dict[str, str] = {
    SALES: "매출액",
    OPERATING_PROFIT: "영업이익",
    NET_INCOME: "당기순이익",
    NET_INCOME_CONTROLLING: "지배기업 소유주지분 순이익",
}

THRESHOLD_KEYWORDS: Dict[str, str] = {
    SALES: "매출액",
    OPERATING_PROFIT: "영업이익",
    NET_INCOME: "당기순이익",
}

CURRENT_PERIOD_MARKERS = ["당해실적", "당기실적"]
HEADER_MARKER = "구분"
STATEMENT_KIND_MARKER = "재무제표의종류"
CONSOLIDATED_TITLE_MARKER = "연결재무제표"
INCOME_STATEMENT_MARKER = "손익계산서"

RE_FOOTNOTE = re.compile(r"\(주석?\s*\d*(?:\s*,\s*\d+)*\)")
RE_LABEL_NOISE = re.compile(r"[\s△]")
RE_NOT_NUMBER = re.compile(r"[^\d.\-]")
RE_LEADING_NUMBER = re.compile(r"-?\d+(?:\.\d*)?|-?\.\d+")
RE_TRAILING_QUALIFIER = re.compile(r"(\([^()]*\))+$")
RE_MONTH = re.compile(r"(\d{2,4})년(\d{1,2})월")
RE_EMPTY_PERIOD = re.compile(r"[-()]")

Rows = List[List[str]]


# -----------------------------
# Cell helpers
# -----------------------------

def parse_amount(text: Optional[str]) -> Optional[float]:
    """Signed number from a table cell; None for an empty cell."""
    if text is None:
        return None
    s = str(text).strip()
    cleaned = RE_NOT_NUMBER.sub("", s.replace(",", ""))
    if cleaned == "":
        return None
    m = RE_LEADING_NUMBER.match(cleaned)
    v = float(m.group(0)) if m else 0.0
    if s.startswith("(") and s.endswith(")"):
        return -v
    return v


def clean_label(text: str) -> str:
    return RE_LABEL_NOISE.sub("", RE_FOOTNOTE.sub("", text or ""))


def to_canonical(value: float, multiplier: float) -> float:
    return value * multiplier / CANONICAL_UNIT


def cell_text(cell) -> str:
    return cell.get_text(" ", strip=True)


def table_rows(soup: BeautifulSoup, cell_names=("td", "th"), selector: str = "tr") -> Rows:
    rows: Rows = []
    for tr in soup.select(selector):
        rows.append([cell_text(c) for c in tr.find_all(list(cell_names))])
    return rows


# -----------------------------
# PERIODIC
# -----------------------------

def _fold_periodic_row(multiplier: float):
    def step(acc: Dict[str, Optional[float]], cells: List[str]) -> Dict[str, Optional[float]]:
        if len(cells) < 2:
            return acc
        label = clean_label(cells[0])
        updates: Dict[str, float] = {}
        for item, pattern in PERIODIC_PATTERNS.items():
            if acc.get(item) is not None or not pattern.search(label):
                continue
            v = parse_amount(cells[1])
            if v is not None:
                updates[item] = to_canonical(v, multiplier)
        return {**acc, **updates} if updates else acc
    return step


def scan_periodic_rows(rows: Rows, multiplier: float) -> Dict[str, Optional[float]]:
    """Fold over statement rows; the first row that yields a value fixes each item."""
    return reduce(_fold_periodic_row(multiplier), rows, empty_facts())


def income_statement_scope(soup: BeautifulSoup) -> Optional[str]:
    """HTML of the table enclosing the income statement title, if there is one."""
    title = soup.find(
        lambda tag: tag.name in ("p", "span") and INCOME_STATEMENT_MARKER in tag.get_text()
    )
    if title is None:
        return None
    table = title.find_parent("table")
    return str(table) if table is not None else None


def detect_statement_type(html_or_soup) -> Optional[str]:
    """연결 / 개별 from the income statement title of a periodic report page."""
    soup = html_or_soup if isinstance(html_or_soup, BeautifulSoup) else BeautifulSoup(html_or_soup or "", "lxml")
    for el in soup.select("p.section-2, p.table-group-xbrl"):
        title = el.get_text()
        if INCOME_STATEMENT_MARKER in title:
            return CONSOLIDATED if "연결" in title else STANDALONE
    return None


def extract_periodic(html: str, rate: Optional[RateFn] = None) -> ExtractionResult:
    soup = BeautifulSoup(html, "lxml")
    flags: List[str] = []

    scope = income_statement_scope(soup)
    if scope is not None:
        flags.append("UnitScope:IncomeStatementTable")
    multiplier = unit_multiplier(scope if scope is not None else html, rate=rate, include_trillion=False)
    flags.append(f"Unit:{multiplier:g}")

    facts = scan_periodic_rows(table_rows(soup), multiplier)

    body = soup.body if soup.body is not None else soup
    pm = match_coverage_end(body.get_text(" "))
    quarter = pm.label if pm else None
    is_annual = bool(pm and pm.is_annual)
    if pm:
        flags.append(f"Quarter:{pm.rule}")

    if facts.get(SALES) is None:
        log.warning("extract.periodic.no_sales", quarter=str(quarter) if quarter else None)
        flags.append("NoAnchor:sales")
        facts_out = None
    else:
        facts_out = facts

    log.info("extract.periodic", quarter=str(quarter) if quarter else None, annual=is_annual, multiplier=multiplier)
    return ExtractionResult(
        facts=facts_out,
        quarter=quarter,
        unit_multiplier=multiplier,
        is_annual=is_annual,
        statement_type=detect_statement_type(soup),
        flags=flags,
    )


# -----------------------------
# PRELIMINARY
# -----------------------------

def parse_actual_rows(rows: Rows, multiplier: float) -> Optional[Dict[str, Optional[float]]]:
    """Parser A: exact item name in the first cell plus a current-period label cell."""
    wanted = {item: squeeze(kw) for item, kw in ACTUAL_KEYWORDS.items()}
    facts = empty_facts()
    found = False
    for cells in rows:
        if not cells:
            continue
        first = squeeze(cells[0])
        for item, keyword in wanted.items():
            if first != keyword or facts[item] is not None:
                continue
            idx = next(
                (i for i, c in enumerate(cells) if any(m in c for m in CURRENT_PERIOD_MARKERS)),
                None,
            )
            if idx is None or idx + 1 >= len(cells):
                continue
            v = parse_amount(cells[idx + 1])
            if v is not None:
                facts[item] = to_canonical(v, multiplier)
                found = True
    return facts if found else None


def _ends_with_item(text: str, keyword: str) -> bool:
    s = RE_TRAILING_QUALIFIER.sub("", squeeze(text))
    return s.endswith(keyword)


def parse_threshold_rows(rows: Rows, multiplier: float) -> Optional[Dict[str, Optional[float]]]:
    """Parser B: item name as a cell suffix, value in the immediately following cell."""
    facts = empty_facts()
    found = False
    for item, keyword in THRESHOLD_KEYWORDS.items():
        for cells in rows:
            hit = next((i for i, c in enumerate(cells) if _ends_with_item(c, keyword)), None)
            if hit is None or hit + 1 >= len(cells):
                continue
            v = parse_amount(cells[hit + 1])
            if v is None:
                continue
            facts[item] = to_canonical(v, multiplier)
            found = True
            break
    return facts if found else None


def period_cells(soup: BeautifulSoup) -> Optional[Tuple[str, str]]:
    """First two cells (whitespace removed) of the row under the "구분" header."""
    label = soup.find(lambda tag: tag.name == "td" and HEADER_MARKER in tag.get_text())
    if label is None:
        return None
    header_row = label.find_parent("tr")
    data_row = header_row.find_next_sibling("tr") if header_row is not None else None
    if data_row is None:
        return None
    tds = data_row.find_all("td")
    c1 = squeeze(tds[0].get_text()) if len(tds) > 0 else ""
    c2 = squeeze(tds[1].get_text()) if len(tds) > 1 else ""
    return c1, c2


def is_monthly_period(c1: str, c2: str) -> bool:
    if RE_MONTH.search(c1) or RE_MONTH.search(c2):
        return True
    return RE_EMPTY_PERIOD.sub("", c1) == "" and RE_EMPTY_PERIOD.sub("", c2) == ""


def fallback_threshold_quarter(receipt_date: str):
    """Q4 of the year before receipt (30% disclosures report the prior fiscal year)."""
    s = (receipt_date or "").strip()
    if len(s) < 4 or not s[2:4].isdigit():
        return None
    return make_label(4, int(s[2:4]) - 1)


def preliminary_statement_type(soup: BeautifulSoup, report: ReportMeta) -> str:
    title = squeeze(report.report_name)
    if CONSOLIDATED_TITLE_MARKER in title:
        return CONSOLIDATED
    if is_threshold_30pct(report.report_name):
        label = soup.find(lambda tag: tag.name == "td" and STATEMENT_KIND_MARKER in squeeze(tag.get_text()))
        if label is not None:
            nxt = label.find_next_sibling("td")
            if nxt is not None and "연결" in nxt.get_text():
                return CONSOLIDATED
    return STANDALONE


def extract_preliminary(html: str, report: ReportMeta, rate: Optional[RateFn] = None) -> ExtractionResult:
    soup = BeautifulSoup(html, "lxml")
    threshold = is_threshold_30pct(report.report_name)
    flags: List[str] = []

    multiplier = unit_multiplier(html, rate=rate, include_trillion=True)
    flags.append(f"Unit:{multiplier:g}")
    statement_type = preliminary_statement_type(soup, report)

    quarter = None
    is_annual = False
    cells = period_cells(soup)
    if cells is not None:
        c1, c2 = cells
        if is_monthly_period(c1, c2):
            log.info("extract.preliminary.monthly", report=report.report_name)
            return ExtractionResult(
                unit_multiplier=multiplier,
                is_monthly=True,
                statement_type=statement_type,
                flags=flags + ["Monthly"],
            )
        pm = match_period(c1)
        if pm is not None and pm.label is not None:
            quarter, is_annual = pm.label, pm.is_annual
            flags.append(f"Quarter:{pm.rule}")

    if quarter is None and threshold:
        quarter = fallback_threshold_quarter(report.receipt_date)
        if quarter is not None:
            is_annual = True
            flags.append("Fallback30Pct")

    rows = table_rows(soup, cell_names=("td",), selector="table tr")
    if threshold:
        flags.append("ParserB")
        facts = parse_threshold_rows(rows, multiplier)
    else:
        flags.append("ParserA")
        facts = parse_actual_rows(rows, multiplier)

    if facts is None:
        log.warning("extract.preliminary.no_items", report=report.report_name)

    log.info(
        "extract.preliminary",
        quarter=str(quarter) if quarter else None,
        annual=is_annual,
        statement_type=statement_type,
        multiplier=multiplier,
    )
    return ExtractionResult(
        facts=facts,
        quarter=quarter,
        unit_multiplier=multiplier,
        is_annual=is_annual,
        statement_type=statement_type,
        flags=flags,
    )


# -----------------------------
# Dispatch
# -----------------------------

def extract(kind: Optional[str], document_text: Optional[str], report: ReportMeta, rate: Optional[RateFn] = None) -> ExtractionResult:
    if not document_text or not document_text.strip():
        log.warning("extract.no_document", report=report.report_name)
        return ExtractionResult(flags=["NoDocument"])
    if kind == PERIODIC:
        return extract_periodic(document_text, rate=rate)
    if kind == PRELIMINARY:
        return extract_preliminary(document_text, report, rate=rate)
    return ExtractionResult(flags=["Unclassified"])

