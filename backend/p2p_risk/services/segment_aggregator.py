"""Group loan records by rating and terminal outcome.

In-progress (CURRENT) loans have no final outcome and are excluded from the
frequency denominators.  A rating with no terminal loans gets no
SegmentFrequency at all: insufficient data is never reported as zero risk.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Iterable, Mapping

import pandas as pd

from p2p_risk.models.loan import LoanRecord, LoanStatus, Rating, TERMINAL_STATUSES
from p2p_risk.models.report import StatusCountRow
from p2p_risk.models.segment import SegmentFrequency

logger = logging.getLogger(__name__)


def aggregate_segments(records: Iterable[LoanRecord]) -> dict[Rating, SegmentFrequency]:
    """Terminal outcome proportions per rating, in rating order."""
    counts: dict[Rating, Counter] = defaultdict(Counter)
    for rec in records:
        if rec.status in TERMINAL_STATUSES:
            counts[rec.rating][rec.status] += 1

    frequencies: dict[Rating, SegmentFrequency] = {}
    for rating in Rating:
        by_status = counts.get(rating)
        n = sum(by_status.values()) if by_status else 0
        if n == 0:
            logger.warning("Rating %s has no terminal loans — omitted", rating.value)
            continue

        n_defaulted = by_status[LoanStatus.DEFAULTED]
        n_chargeoff = by_status[LoanStatus.CHARGEOFF]
        frequencies[rating] = SegmentFrequency(
            rating=rating,
            p_defaulted=n_defaulted / n,
            p_chargeoff=n_chargeoff / n,
            # Remainder keeps the three proportions summing to exactly 1
            p_completed=(n - n_defaulted - n_chargeoff) / n,
            n_terminal=n,
        )
    return frequencies


def insufficient_ratings(frequencies: Mapping[Rating, SegmentFrequency]) -> list[Rating]:
    """Ratings that have no frequency row."""
    return [rating for rating in Rating if rating not in frequencies]


def status_counts(records: Iterable[LoanRecord]) -> pd.DataFrame:
    """Rating x status count table over all loans, with row and column totals."""
    df = pd.DataFrame(
        [(rec.rating.value, rec.status.value) for rec in records],
        columns=["rating", "status"],
    )
    index = [r.value for r in Rating]
    columns = [s.value for s in LoanStatus]
    if df.empty:
        table = pd.DataFrame(0, index=index, columns=columns)
    else:
        table = pd.crosstab(df["rating"], df["status"])
        table = table.reindex(index=index, columns=columns, fill_value=0)
    table["TOTAL"] = table.sum(axis=1)
    table.loc["TOTAL"] = table.sum(axis=0)
    return table.astype(int)


def status_count_rows(table: pd.DataFrame) -> list[StatusCountRow]:
    """Flatten the per-rating rows of a status_counts table."""
    rows = []
    for rating in Rating:
        counts = table.loc[rating.value]
        rows.append(StatusCountRow(
            rating=rating,
            current=int(counts[LoanStatus.CURRENT.value]),
            completed=int(counts[LoanStatus.COMPLETED.value]),
            defaulted=int(counts[LoanStatus.DEFAULTED.value]),
            chargeoff=int(counts[LoanStatus.CHARGEOFF.value]),
            total=int(counts["TOTAL"]),
        ))
    return rows
