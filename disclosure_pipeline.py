"""
disclosure_pipeline.py

Runs one disclosure (or a manifest of them) from document text to a
reconciled, scored 5-quarter earnings record.

What it does
------------
1) Classify the report title (PERIODIC / PRELIMINARY / skip)
2) Extract the four line items, the quarter and the unit from the document
3) Resolve the statement type (연결 / 개별) used to query the providers
4) Look up the quarterly history and the consensus for that quarter
5) Annual figures: require 1Q-3Q sales of the same year in the history,
   otherwise fall back to the extracted facts only
6) Reconcile to the 5 most recent quarters and score materiality

Every step that cannot proceed ends the run with a status instead of an
exception:
  skipped, no_document, monthly_excluded, extraction_failed,
  quarter_unknown, history_unavailable, insufficient_history, reconciled

Command line
------------
  python disclosure_pipeline.py --document doc.html --title "영업(잠정)실적(공정공시)" \
      --receipt_date 20250730 --history_html history.html --consensus_json consensus.json

  python disclosure_pipeline.py --manifest manifest.csv --out_csv scored.csv

History and consensus payloads are read from files; fetching them is left
to whatever produced the manifest.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pandas as pd
import requests
import structlog
from tqdm import tqdm

from earnings_extractor import detect_statement_type, extract
from earnings_models import (
    PERIODIC,
    STANDALONE,
    EarningsFact,
    ExtractionResult,
    Forecast,
    ImportanceScore,
    ReportMeta,
)
from market_sources import parse_consensus_json, parse_history_html
from materiality import ScoringConfig, score
from quarter_labels import QuarterLabel
from reconciler import has_prior_quarters, reconcile
from report_classifier import classify
from unit_normalizer import RateFn, fetch_exchange_rate, fixed_rates

log = structlog.get_logger(__name__)


# -----------------------------
# Configuration
# -----------------------------

SKIPPED = "skipped"
NO_DOCUMENT = "no_document"
MONTHLY_EXCLUDED = "monthly_excluded"
EXTRACTION_FAILED = "extraction_failed"
QUARTER_UNKNOWN = "quarter_unknown"
HISTORY_UNAVAILABLE = "history_unavailable"
INSUFFICIENT_HISTORY = "insufficient_history"
RECONCILED = "reconciled"

# statuses that still carry a usable series
WITH_SERIES = {HISTORY_UNAVAILABLE, INSUFFICIENT_HISTORY, RECONCILED}

MANIFEST_COLUMNS = [
    "report_name",
    "document",
    "receipt_date",
    "receipt_no",
    "corp_name",
    "stock_code",
    "history_html",
    "consensus_json",
]

HistorySource = Callable[[str, str], Optional[List[EarningsFact]]]
ForecastSource = Callable[[str, str, QuarterLabel], Optional[Forecast]]


@dataclass
class DisclosureOutcome:
    status: str
    report: ReportMeta
    kind: Optional[str] = None
    extraction: Optional[ExtractionResult] = None
    statement_type: Optional[str] = None
    series: List[EarningsFact] = field(default_factory=list)
    forecast: Optional[Forecast] = None
    score: Optional[ImportanceScore] = None
    error: Optional[str] = None

    @property
    def quarter(self) -> Optional[QuarterLabel]:
        return self.extraction.quarter if self.extraction is not None else None

    @property
    def flags(self) -> List[str]:
        return list(self.extraction.flags) if self.extraction is not None else []


def no_history(stock_code: str, statement_type: str) -> Optional[List[EarningsFact]]:
    return None


def no_forecast(stock_code: str, statement_type: str, quarter: QuarterLabel) -> Optional[Forecast]:
    return None


# -----------------------------
# Single disclosure
# -----------------------------

def resolve_statement_type(kind: str, extraction: ExtractionResult, document: str) -> str:
    if extraction.statement_type:
        return extraction.statement_type
    if kind == PERIODIC:
        detected = detect_statement_type(document)
        if detected:
            return detected
    log.warning("pipeline.statement_type_unknown", default=STANDALONE)
    return STANDALONE


def process_disclosure(
    report: ReportMeta,
    document: Optional[str],
    history_source: HistorySource = no_history,
    forecast_source: ForecastSource = no_forecast,
    rate: Optional[RateFn] = None,
    config: Optional[ScoringConfig] = None,
) -> DisclosureOutcome:
    config = config or ScoringConfig()
    bound = log.bind(report=report.report_name, receipt_no=report.receipt_no)

    kind = classify(report.report_name)
    if kind is None:
        bound.debug("pipeline.skipped")
        return DisclosureOutcome(SKIPPED, report)

    if not document or not document.strip():
        bound.warning("pipeline.no_document")
        return DisclosureOutcome(NO_DOCUMENT, report, kind=kind, error="no document text")

    extraction = extract(kind, document, report, rate=rate)
    outcome = DisclosureOutcome(EXTRACTION_FAILED, report, kind=kind, extraction=extraction)

    if extraction.is_monthly:
        outcome.status = MONTHLY_EXCLUDED
        outcome.error = "monthly figures are not analysed"
        bound.info("pipeline.monthly_excluded")
        return outcome

    if not extraction.ok:
        outcome.error = "earnings not found in document"
        bound.warning("pipeline.extraction_failed", flags=extraction.flags)
        return outcome

    if extraction.quarter is None:
        outcome.status = QUARTER_UNKNOWN
        outcome.error = "reporting quarter could not be read"
        bound.warning("pipeline.quarter_unknown", flags=extraction.flags)
        return outcome

    quarter = extraction.quarter
    outcome.statement_type = resolve_statement_type(kind, extraction, document)
    bound = bound.bind(quarter=str(quarter), statement_type=outcome.statement_type)

    history = history_source(report.stock_code, outcome.statement_type)
    outcome.forecast = forecast_source(report.stock_code, outcome.statement_type, quarter)

    if not history:
        outcome.status = HISTORY_UNAVAILABLE
        outcome.error = "quarterly history unavailable"
        outcome.series = extraction.to_facts()
        bound.warning("pipeline.history_unavailable")
    elif extraction.is_annual and not has_prior_quarters(history, quarter):
        outcome.status = INSUFFICIENT_HISTORY
        outcome.error = f"1Q-3Q{quarter.year2:02d} sales missing from history"
        outcome.series = extraction.to_facts()
        bound.warning("pipeline.insufficient_history")
    else:
        outcome.status = RECONCILED
        outcome.series = reconcile(extraction, history)

    outcome.score = score(outcome.series, outcome.forecast, config)
    bound.info("pipeline.done", status=outcome.status, facts=len(outcome.series))
    return outcome


def outcome_rows(outcome: DisclosureOutcome) -> List[Dict[str, object]]:
    """One row per series fact; a single row without fact columns when there is no series."""
    base: Dict[str, object] = {
        "receipt_no": outcome.report.receipt_no,
        "receipt_date": outcome.report.receipt_date,
        "corp_name": outcome.report.corp_name,
        "stock_code": outcome.report.stock_code,
        "report_name": outcome.report.report_name,
        "kind": outcome.kind,
        "status": outcome.status,
        "statement_type": outcome.statement_type,
        "reported_quarter": str(outcome.quarter) if outcome.quarter else None,
        "is_annual": outcome.extraction.is_annual if outcome.extraction is not None else None,
        "unit_multiplier": outcome.extraction.unit_multiplier if outcome.extraction is not None else None,
        "flags": ";".join(outcome.flags),
        "error": outcome.error,
    }
    if outcome.score is not None:
        for item, tier in outcome.score.as_dict().items():
            base[f"score_{item}"] = tier
    if outcome.forecast is not None:
        base["forecast_sales"] = outcome.forecast.sales
        base["forecast_operating_profit"] = outcome.forecast.operating_profit
        base["forecast_net_income"] = outcome.forecast.net_income

    if not outcome.series:
        return [base]
    return [{**base, **f.to_row()} for f in outcome.series]


# -----------------------------
# File-backed providers
# -----------------------------

def read_text(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    p = Path(path)
    if not p.is_file():
        log.warning("pipeline.file_missing", path=str(p))
        return None
    for enc in ("utf-8", "cp949"):
        try:
            return p.read_text(encoding=enc)
        except UnicodeDecodeError:
            continue
    return p.read_text(encoding="utf-8", errors="ignore")


def file_history_source(path: Optional[str]) -> HistorySource:
    html = read_text(path)

    def source(stock_code: str, statement_type: str) -> Optional[List[EarningsFact]]:
        return parse_history_html(html) if html else None
    return source


def file_forecast_source(path: Optional[str]) -> ForecastSource:
    payload = read_text(path)

    def source(stock_code: str, statement_type: str, quarter: QuarterLabel) -> Optional[Forecast]:
        return parse_consensus_json(payload, quarter) if payload else None
    return source


def network_rates(session: Optional[requests.Session] = None) -> RateFn:
    """Live rates, fetched once per currency for the whole run."""
    cache: Dict[str, float] = {}

    def rate(code: str) -> float:
        if code not in cache:
            cache[code] = fetch_exchange_rate(code, session=session)
        return cache[code]
    return rate


def _cell(row: pd.Series, col: str) -> str:
    v = row.get(col)
    if v is None or pd.isna(v):
        return ""
    return str(v).strip()


def run_manifest(path: str, rate: RateFn, config: ScoringConfig) -> List[DisclosureOutcome]:
    df = pd.read_csv(path, dtype=str)
    missing = [c for c in ("report_name", "document") if c not in df.columns]
    if missing:
        raise SystemExit(f"manifest {path} is missing columns: {', '.join(missing)}")

    outcomes: List[DisclosureOutcome] = []
    for _, row in tqdm(df.iterrows(), total=len(df), desc="Processing disclosures"):
        report = ReportMeta(
            report_name=_cell(row, "report_name"),
            receipt_no=_cell(row, "receipt_no"),
            receipt_date=_cell(row, "receipt_date"),
            corp_name=_cell(row, "corp_name"),
            stock_code=_cell(row, "stock_code"),
        )
        outcomes.append(
            process_disclosure(
                report,
                read_text(_cell(row, "document")),
                history_source=file_history_source(_cell(row, "history_html")),
                forecast_source=file_forecast_source(_cell(row, "consensus_json")),
                rate=rate,
                config=config,
            )
        )
    return outcomes


def configure_logging(verbose: bool = False) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.WARNING),
    )


def summarize(outcome: DisclosureOutcome) -> str:
    name = outcome.report.corp_name or outcome.report.report_name
    if outcome.status not in WITH_SERIES:
        return f"❌ {name}: {outcome.status}" + (f" ({outcome.error})" if outcome.error else "")
    scores = outcome.score.as_dict() if outcome.score is not None else {}
    tiers = ", ".join(f"{k}={v}" for k, v in scores.items() if v is not None)
    quarters = sorted({f.quarter for f in outcome.series}, reverse=True)
    return (
        f"✅ {name} [{outcome.statement_type}] {outcome.quarter}: {outcome.status}, "
        f"{len(quarters)} quarters ({', '.join(str(q) for q in quarters)}), score {tiers}"
    )


def main() -> None:
    ap = argparse.ArgumentParser()

    # Single document
    ap.add_argument("--document", type=str, default="")
    ap.add_argument("--title", type=str, default="")
    ap.add_argument("--receipt_date", type=str, default="")
    ap.add_argument("--receipt_no", type=str, default="")
    ap.add_argument("--corp_name", type=str, default="")
    ap.add_argument("--stock_code", type=str, default="")
    ap.add_argument("--history_html", type=str, default="")
    ap.add_argument("--consensus_json", type=str, default="")

    # Batch
    ap.add_argument("--manifest", type=str, default="")

    ap.add_argument("--out_csv", type=str, default="")
    ap.add_argument("--score_net_income", action="store_true")
    ap.add_argument("--offline", action="store_true", help="use the fallback exchange rates only")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    if not args.manifest and not (args.document and args.title):
        ap.error("either --manifest or both --document and --title are required")

    configure_logging(args.verbose)
    config = ScoringConfig(score_net_income=args.score_net_income)
    rate = fixed_rates() if args.offline else network_rates()

    if args.manifest:
        outcomes = run_manifest(args.manifest, rate, config)
    else:
        report = ReportMeta(
            report_name=args.title,
            receipt_no=args.receipt_no,
            receipt_date=args.receipt_date,
            corp_name=args.corp_name,
            stock_code=args.stock_code,
        )
        outcomes = [
            process_disclosure(
                report,
                read_text(args.document),
                history_source=file_history_source(args.history_html),
                forecast_source=file_forecast_source(args.consensus_json),
                rate=rate,
                config=config,
            )
        ]

    for o in outcomes:
        print(summarize(o))

    df = pd.DataFrame([row for o in outcomes for row in outcome_rows(o)])
    if args.out_csv:
        df.to_csv(args.out_csv, index=False)
        print(f"✅ Wrote {args.out_csv} ({len(df)} rows)")

    if len(outcomes) > 1:
        print("\nStatus counts:")
        print(pd.Series([o.status for o in outcomes]).value_counts())


if __name__ == "__main__":
    main()
