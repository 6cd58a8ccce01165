"""
Merge a freshly extracted quarter with an independently sourced history.

Steps
-----
1. Extracted items become facts at the extracted quarter.
2. History is cut to quarters strictly older than the extracted one; the
   extracted figures always supersede the history for their own quarter.
3. New facts first, then history; (quarter, item) duplicates keep the first.
4. Annual extraction: Q4 = annual - (Q1 + Q2 + Q3) of the same year, per item.
   The caller checks beforehand that Q1-Q3 sales exist (has_prior_quarters).
5. Sort most recent first, keep the 5 most recent distinct quarters.
"""

from __future__ import annotations

from typing import Iterable, List, Set

import pandas as pd
import structlog

from earnings_models import SALES, EarningsFact, ExtractionResult
from quarter_labels import QuarterLabel

log = structlog.get_logger(__name__)


# -----------------------------
# Configuration
# -----------------------------

MAX_QUARTERS = 5

COLUMNS = ["quarter", "item", "value", "year2", "q_num"]


def facts_frame(facts: Iterable[EarningsFact]) -> pd.DataFrame:
    rows = [
        {"quarter": f.quarter, "item": f.item, "value": float(f.value), "year2": f.quarter.year2, "q_num": f.quarter.quarter}
        for f in facts
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def frame_facts(df: pd.DataFrame) -> List[EarningsFact]:
    return [EarningsFact(r.quarter, r.item, float(r.value)) for r in df.itertuples(index=False)]


def quarters_with_item(history: Iterable[EarningsFact], year2: int, item: str = SALES) -> Set[QuarterLabel]:
    return {f.quarter for f in history if f.item == item and f.quarter.year2 == year2}


def has_prior_quarters(history: Iterable[EarningsFact], label: QuarterLabel, item: str = SALES) -> bool:
    """True when Q1, Q2 and Q3 of label's year all carry `item` in history."""
    present = quarters_with_item(history, label.year2, item)
    return all(QuarterLabel(q, label.year2) in present for q in (1, 2, 3))


def derive_fourth_quarter(df: pd.DataFrame, label: QuarterLabel, items: Iterable[str]) -> pd.DataFrame:
    """Annual figure at `label` minus the Q1-Q3 sum of the same year, per item."""
    items = list(items)
    prior = df[(df["year2"] == label.year2) & (df["q_num"].isin([1, 2, 3])) & (df["item"].isin(items))]
    if prior.empty:
        return df
    sums = prior.groupby("item")["value"].sum()

    out = df.copy()
    at_label = out["quarter"] == label
    for item, total in sums.items():
        mask = at_label & (out["item"] == item)
        if mask.any():
            log.debug("reconcile.q4_derived", item=item, annual=float(out.loc[mask, "value"].iloc[0]), prior_sum=float(total))
            out.loc[mask, "value"] = out.loc[mask, "value"] - total
    return out


def reconcile(extraction: ExtractionResult, history: Iterable[EarningsFact]) -> List[EarningsFact]:
    label = extraction.quarter
    if label is None:
        log.warning("reconcile.quarter_unknown")
        return []

    history = list(history or [])
    new_facts = extraction.to_facts()
    older = [f for f in history if f.quarter < label]

    df = facts_frame(new_facts + older)
    if df.empty:
        return []
    df = df.drop_duplicates(subset=["quarter", "item"], keep="first")

    if extraction.is_annual:
        df = derive_fourth_quarter(df, label, (extraction.facts or {}).keys())

    df = df.sort_values(by=["year2", "q_num"], ascending=[False, False], kind="mergesort")
    recent = list(dict.fromkeys(df["quarter"]))[:MAX_QUARTERS]
    df = df[df["quarter"].isin(recent)]

    log.info(
        "reconcile.done",
        quarter=str(label),
        history_in=len(history),
        history_kept=len(older),
        quarters=[str(q) for q in recent],
    )
    return frame_facts(df)
