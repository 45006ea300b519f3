from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Rating(str, Enum):
    """Ordinal borrower-risk grade, lowest risk first."""
    AA = "AA"
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"
    HR = "HR"

    @property
    def rank(self) -> int:
        """0 for AA through 6 for HR."""
        return _RATING_RANK[self]


_RATING_RANK = {rating: i for i, rating in enumerate(Rating)}


class LoanStatus(str, Enum):
    CURRENT = "CURRENT"
    COMPLETED = "COMPLETED"
    DEFAULTED = "DEFAULTED"
    CHARGEOFF = "CHARGEOFF"


# Outcomes that will not change any further
TERMINAL_STATUSES = frozenset(
    {LoanStatus.COMPLETED, LoanStatus.DEFAULTED, LoanStatus.CHARGEOFF}
)


class LoanRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    rating: Rating
    status: LoanStatus
    borrower_rate: float = Field(ge=0.0, allow_inf_nan=False)
    default_reason: Optional[str] = None
    days_past_due: Optional[float] = Field(default=None, ge=0.0)
    fees_paid: Optional[float] = None

    @model_validator(mode="after")
    def _reason_only_on_default(self) -> "LoanRecord":
        if self.default_reason is not None and self.status != LoanStatus.DEFAULTED:
            raise ValueError(
                f"default_reason {self.default_reason!r} given for a "
                f"{self.status.value} loan; only DEFAULTED loans carry a reason"
            )
        return self
