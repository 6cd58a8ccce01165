"""
Parsers for the two secondary data sources.

- Quarterly history page (WiseFn chart map): every <area title="..."> holds
      [매출액]
      2025/06 : 1,234      (label text before the colon varies)
  Values are already in 억원.
- Consensus JSON (WiseReport c1050001): {"JsonData": [{"YYMM": "2025.06",
  "SALES": "1,234", "OP": "120", "NP": "80"}, ...]}, also in 억원.

Fetching either payload is left to the caller.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog
from bs4 import BeautifulSoup

from earnings_models import NET_INCOME, OPERATING_PROFIT, SALES, EarningsFact, Forecast
from quarter_labels import QuarterLabel, label_from_year_month

log = structlog.get_logger(__name__)


# -----------------------------
# Configuration
# -----------------------------

HISTORY_ITEMS = {
    "매출액": SALES,
    "영업이익": OPERATING_PROFIT,
    "순이익": NET_INCOME,
}

CONSENSUS_FIELDS = {
    SALES: "SALES",
    OPERATING_PROFIT: "OP",
    NET_INCOME: "NP",
}

RE_YEAR_MONTH = re.compile(r"(\d{2,4})\s*[/.]\s*(\d{1,2})")
RE_LINES = re.compile(r"\r?\n")


def parse_plain_number(text: Any) -> Optional[float]:
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return float(text)
    s = str(text).strip().replace(",", "")
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def label_from_date_text(text: str) -> Optional[QuarterLabel]:
    """ "2025/06" or "2025.06(E)" -> 2Q25."""
    m = RE_YEAR_MONTH.search(text or "")
    if not m:
        return None
    return label_from_year_month(int(m.group(1)), int(m.group(2)))


def _after_colon(line: str) -> Optional[str]:
    if ":" not in line:
        return None
    return line.split(":", 1)[1].strip() or None


# -----------------------------
# Quarterly history
# -----------------------------

def parse_history_html(html: str) -> Optional[List[EarningsFact]]:
    if not html:
        return None
    soup = BeautifulSoup(html, "lxml")
    facts: List[EarningsFact] = []

    for area in soup.find_all("area"):
        title = area.get("title")
        if not title:
            continue
        lines = RE_LINES.split(title)
        if len(lines) < 3:
            continue
        item = HISTORY_ITEMS.get(lines[0].replace("[", "").replace("]", "").strip())
        if not item:
            continue
        date_text = _after_colon(lines[1])
        value_text = _after_colon(lines[2])
        if not date_text or not value_text:
            continue
        label = label_from_date_text(date_text)
        value = parse_plain_number(value_text)
        if label is None or value is None:
            continue
        facts.append(EarningsFact(label, item, value))

    if not facts:
        log.warning("history.empty")
        return None
    log.info("history.parsed", facts=len(facts))
    return facts


# -----------------------------
# Consensus
# -----------------------------

def parse_consensus_json(payload: Union[str, bytes, Mapping[str, Any]], quarter: QuarterLabel) -> Optional[Forecast]:
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError:
            log.warning("consensus.bad_json")
            return None
    if not isinstance(payload, Mapping):
        return None
    entries = payload.get("JsonData")
    if not entries:
        log.warning("consensus.empty")
        return None

    for entry in entries:
        if label_from_date_text(str(entry.get("YYMM") or "")) != quarter:
            continue
        values: Dict[str, Optional[float]] = {}
        for item, key in CONSENSUS_FIELDS.items():
            v = parse_plain_number(entry.get(key))
            values[item] = v if v else None
        return Forecast(**values)

    log.info("consensus.quarter_missing", quarter=str(quarter))
    return None
