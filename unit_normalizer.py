"""
Unit annotations -> multiplier to KRW.

Disclosures state their unit once, e.g. "(단위 : 백만원)" or "단위: 천USD,".
The multiplier converts a figure as printed into KRW; dividing by
CANONICAL_UNIT afterwards yields 억원.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, Mapping, Optional

import requests
import structlog

log = structlog.get_logger(__name__)


# -----------------------------
# Configuration
# -----------------------------

DEFAULT_FALLBACK_RATES: Dict[str, float] = {"USD": 1380.0, "CNY": 190.0, "JPY": 9.0}

CURRENCIES = ["USD", "CNY", "JPY"]

# Largest magnitude first; the first keyword present wins.
MAGNITUDES = [
    ("조", 1_000_000_000_000.0),
    ("억", 100_000_000.0),
    ("백만", 1_000_000.0),
    ("천", 1_000.0),
]

RE_UNIT = re.compile(r"\(단위\s*:\s*([^)]+)\)|\s*단위\s*:\s*([^,<\n]+)")

EXCHANGE_RATE_URL = "https://open.er-api.com/v6/latest/{code}"
REQUEST_TIMEOUT = 10

RateFn = Callable[[str], float]


# -----------------------------
# Exchange rates
# -----------------------------

def fallback_rate(code: str, fallback_rates: Optional[Mapping[str, float]] = None) -> float:
    table = DEFAULT_FALLBACK_RATES if fallback_rates is None else fallback_rates
    rate = table.get(code.upper())
    if rate is None:
        log.warning("rate.unknown_currency", currency=code)
        return 1.0
    return float(rate)


def fetch_exchange_rate(
    code: str,
    session=None,
    fallback_rates: Optional[Mapping[str, float]] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> float:
    """KRW per one unit of `code`; falls back to the fixed table on any failure."""
    http = session or requests
    url = EXCHANGE_RATE_URL.format(code=code.upper())
    try:
        r = http.get(url, timeout=timeout)
        if r.status_code == 200:
            rate = r.json()["rates"]["KRW"]
            if rate:
                log.info("rate.fetched", currency=code, krw=round(float(rate), 2))
                return float(rate)
        log.warning("rate.bad_response", currency=code, status=r.status_code)
    except (requests.RequestException, ValueError, KeyError, TypeError) as e:
        log.warning("rate.fetch_failed", currency=code, error=str(e))
    return fallback_rate(code, fallback_rates)


def fixed_rates(fallback_rates: Optional[Mapping[str, float]] = None) -> RateFn:
    """Rate function that never touches the network."""
    def rate(code: str) -> float:
        return fallback_rate(code, fallback_rates)
    return rate


# -----------------------------
# Unit detection
# -----------------------------

def find_unit_text(text: str) -> Optional[str]:
    m = RE_UNIT.search(text or "")
    if not m:
        return None
    return (m.group(1) or m.group(2) or "").upper()


def magnitude_of(unit_text: str, include_trillion: bool = True) -> float:
    for keyword, mul in MAGNITUDES:
        if keyword == "조" and not include_trillion:
            continue
        if keyword in unit_text:
            return mul
    return 1.0


def currency_of(unit_text: str) -> Optional[str]:
    for code in CURRENCIES:
        if code in unit_text:
            return code
    return None


def unit_multiplier(text: str, rate: Optional[RateFn] = None, include_trillion: bool = True) -> float:
    """
    Multiplier from the printed unit to KRW.

    Never fails: no annotation (or nothing recognisable inside it) gives 1.
    `rate` defaults to the fixed fallback table.
    """
    unit_text = find_unit_text(text)
    if unit_text is None:
        log.debug("unit.not_found")
        return 1.0

    multiplier = magnitude_of(unit_text, include_trillion=include_trillion)
    code = currency_of(unit_text)
    if code:
        multiplier *= (rate or fallback_rate)(code)
    log.debug("unit.detected", unit=unit_text.strip(), multiplier=multiplier)
    return multiplier
