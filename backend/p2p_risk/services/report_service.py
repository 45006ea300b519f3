"""Report orchestration.

Chains aggregate -> adjust -> compare over a loaded record set and attaches
descriptive summaries.  The pipeline is pure: identical records and
configuration always produce an identical LoanReport, and ``input_hash``
identifies the record set for callers that want to cache results.
"""
from __future__ import annotations

import hashlib
import logging
import time
from typing import Sequence

from p2p_risk.config import settings
from p2p_risk.models.loan import LoanRecord
from p2p_risk.models.report import LoadResult, LoanReport, ReportConfig
from p2p_risk.models.segment import RecoveryRateBounds
from p2p_risk.services.default_rate_adjuster import adjust_default_rates, validate_bounds
from p2p_risk.services.descriptive_stats import default_reason_counts, describe_numeric
from p2p_risk.services.rate_comparator import compare_rates, validate_threshold
from p2p_risk.services.segment_aggregator import (
    aggregate_segments,
    insufficient_ratings,
    status_count_rows,
    status_counts,
)

logger = logging.getLogger(__name__)


def resolve_config(config: ReportConfig | None = None) -> tuple[RecoveryRateBounds, int]:
    """Merge per-request overrides with the configured defaults."""
    config = config or ReportConfig()
    defaults = settings.recovery_rate_bounds
    bounds = RecoveryRateBounds(
        low=defaults.low if config.recovery_rate_low is None else config.recovery_rate_low,
        mid=defaults.mid if config.recovery_rate_mid is None else config.recovery_rate_mid,
        high=defaults.high if config.recovery_rate_high is None else config.recovery_rate_high,
    )
    threshold = (
        settings.MISMATCH_THRESHOLD
        if config.mismatch_threshold is None
        else config.mismatch_threshold
    )
    return bounds, threshold


def hash_records(records: Sequence[LoanRecord]) -> str:
    """sha256 over the canonical JSON of each record, in input order."""
    digest = hashlib.sha256()
    for rec in records:
        digest.update(rec.model_dump_json().encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()


def run_report(
    records: Sequence[LoanRecord],
    bounds: RecoveryRateBounds | Sequence[float] | None = None,
    mismatch_threshold: int | None = None,
) -> LoanReport:
    """Run the full pipeline over already-parsed records.

    Raises ValidationError for invalid recovery bounds or threshold before
    any aggregation is done.
    """
    t0 = time.time()
    bounds = validate_bounds(settings.recovery_rate_bounds if bounds is None else bounds)
    mismatch_threshold = validate_threshold(
        settings.MISMATCH_THRESHOLD if mismatch_threshold is None else mismatch_threshold
    )

    frequencies = aggregate_segments(records)
    adjusted = adjust_default_rates(frequencies, bounds)
    comparison = compare_rates(records, adjusted, mismatch_threshold=mismatch_threshold)

    report = LoanReport(
        input_hash=hash_records(records),
        recovery_rate_bounds=bounds,
        mismatch_threshold=mismatch_threshold,
        status_counts=status_count_rows(status_counts(records)),
        segment_frequencies=list(frequencies.values()),
        insufficient_data=insufficient_ratings(frequencies),
        adjusted_rates=adjusted,
        rate_comparison=comparison,
        mismatches=[row.rating for row in comparison if row.mismatch],
        numeric_summary=describe_numeric(records),
        default_reasons=default_reason_counts(records),
    )
    logger.info(
        "Report over %d loans: %d ratings adjusted, %d mismatches (%.2fs)",
        len(records), len(adjusted), len(report.mismatches), time.time() - t0,
    )
    return report


def build_report(
    load_result: LoadResult,
    bounds: RecoveryRateBounds | Sequence[float] | None = None,
    mismatch_threshold: int | None = None,
) -> LoanReport:
    """run_report over a LoadResult, attaching its load diagnostics."""
    report = run_report(load_result.records, bounds, mismatch_threshold)
    return report.model_copy(update={"load": load_result.summary()})
