"""Pydantic request/response models for the default-rate report."""
from typing import Any, Optional

from pydantic import BaseModel

from p2p_risk.models.loan import LoanRecord, Rating
from p2p_risk.models.segment import (
    AdjustedRateRow,
    RateComparisonRow,
    RecoveryRateBounds,
    SegmentFrequency,
)


class RowError(BaseModel):
    row: int  # 0-based position in the input
    message: str


class LoadSummary(BaseModel):
    n_rows: int
    n_loaded: int
    n_rejected: int
    n_duplicates: int
    errors: list[RowError] = []


class LoadResult(BaseModel):
    records: list[LoanRecord] = []
    n_rows: int = 0
    n_rejected: int = 0
    n_duplicates: int = 0
    errors: list[RowError] = []

    def summary(self) -> LoadSummary:
        return LoadSummary(
            n_rows=self.n_rows,
            n_loaded=len(self.records),
            n_rejected=self.n_rejected,
            n_duplicates=self.n_duplicates,
            errors=self.errors,
        )


class StatusCountRow(BaseModel):
    rating: Rating
    current: int = 0
    completed: int = 0
    defaulted: int = 0
    chargeoff: int = 0
    total: int = 0


class NumericSummary(BaseModel):
    field: str
    count: int
    mean: Optional[float] = None
    std: Optional[float] = None
    min: Optional[float] = None
    p25: Optional[float] = None
    p50: Optional[float] = None
    p75: Optional[float] = None
    max: Optional[float] = None


class ReportConfig(BaseModel):
    """Per-request overrides; unset fields fall back to settings."""
    recovery_rate_low: Optional[float] = None
    recovery_rate_mid: Optional[float] = None
    recovery_rate_high: Optional[float] = None
    mismatch_threshold: Optional[int] = None


class ReportRequest(BaseModel):
    rows: list[dict[str, Any]]
    config: Optional[ReportConfig] = None


class LoanReport(BaseModel):
    input_hash: str
    load: Optional[LoadSummary] = None
    recovery_rate_bounds: RecoveryRateBounds
    mismatch_threshold: int
    status_counts: list[StatusCountRow]
    segment_frequencies: list[SegmentFrequency]
    insufficient_data: list[Rating]
    adjusted_rates: list[AdjustedRateRow]
    rate_comparison: list[RateComparisonRow]
    mismatches: list[Rating]
    numeric_summary: list[NumericSummary]
    default_reasons: dict[str, int]
