"""Per-rating segment tables: terminal frequencies, adjusted rates, rate comparison."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from p2p_risk.models.loan import Rating

PROBABILITY_TOLERANCE = 1e-9


class SegmentFrequency(BaseModel):
    """Outcome proportions over one rating's terminal (non-CURRENT) loans."""
    model_config = ConfigDict(frozen=True)

    rating: Rating
    p_defaulted: float = Field(ge=0.0, le=1.0)
    p_chargeoff: float = Field(ge=0.0, le=1.0)
    p_completed: float = Field(ge=0.0, le=1.0)
    n_terminal: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _proportions_sum_to_one(self) -> "SegmentFrequency":
        total = self.p_defaulted + self.p_chargeoff + self.p_completed
        if abs(total - 1.0) > PROBABILITY_TOLERANCE:
            raise ValueError(f"Proportions for {self.rating.value} sum to {total}, not 1.0")
        return self


class RecoveryRateBounds(BaseModel):
    """Low / mid / high recovery rate on charged-off balances.

    Range and ordering are checked by the adjuster when the bounds are used,
    so a bad configuration fails the computation rather than the settings load.
    """
    low: float
    mid: float
    high: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.low, self.mid, self.high)


class AdjustedSegmentRate(BaseModel):
    """Charge-off mass split between completed and defaulted at one recovery rate."""
    model_config = ConfigDict(frozen=True)

    rating: Rating
    recovery_rate: float
    p_completed_adj: float
    p_defaulted_adj: float


class AdjustedRateRow(BaseModel):
    rating: Rating
    completed_low: float
    completed_mid: float
    completed_high: float
    defaulted_low: float
    defaulted_mid: float
    defaulted_high: float


class RateComparisonRow(BaseModel):
    rating: Rating
    mean_borrower_rate: float
    n_loans: int
    reward_rank: Optional[int] = None
    risk_rank: Optional[int] = None
    rank_gap: Optional[int] = None  # positive: pays more than its adjusted risk predicts
    mismatch: bool = False
