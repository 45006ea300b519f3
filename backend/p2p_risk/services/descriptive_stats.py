"""Descriptive distribution summaries for the numeric loan fields."""
from __future__ import annotations

from collections import Counter
from typing import Sequence

import numpy as np

from p2p_risk.models.loan import LoanRecord, LoanStatus
from p2p_risk.models.report import NumericSummary

NUMERIC_FIELDS = ("borrower_rate", "days_past_due", "fees_paid")

NO_REASON = "(none)"


def describe_numeric(
    records: Sequence[LoanRecord],
    fields: Sequence[str] = NUMERIC_FIELDS,
) -> list[NumericSummary]:
    """count / mean / std / min / quartiles / max per field, skipping absent values."""
    out = []
    for name in fields:
        values = np.array(
            [getattr(rec, name) for rec in records if getattr(rec, name) is not None],
            dtype=float,
        )
        if len(values) == 0:
            out.append(NumericSummary(field=name, count=0))
            continue
        p25, p50, p75 = np.percentile(values, [25, 50, 75])
        out.append(NumericSummary(
            field=name,
            count=len(values),
            mean=float(np.mean(values)),
            std=float(np.std(values)),
            min=float(np.min(values)),
            p25=float(p25),
            p50=float(p50),
            p75=float(p75),
            max=float(np.max(values)),
        ))
    return out


def default_reason_counts(records: Sequence[LoanRecord]) -> dict[str, int]:
    """Count of each default reason among DEFAULTED loans, most common first."""
    counts = Counter(
        rec.default_reason or NO_REASON
        for rec in records
        if rec.status == LoanStatus.DEFAULTED
    )
    return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))
