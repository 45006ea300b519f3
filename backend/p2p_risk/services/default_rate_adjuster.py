"""Recovery-adjusted default rates per rating.

A charge-off is an administrative write-off, not a repayment outcome: some
charged-off balance is still recovered.  The raw DEFAULTED proportion
therefore understates default risk wherever charge-offs are material.  For a
recovery rate r the charge-off mass is split between the two outcomes:

    p_completed_adj = p_completed + r * p_chargeoff
    p_defaulted_adj = p_defaulted + (1 - r) * p_chargeoff

which conserves total probability.  Each rating is evaluated at the low, mid
and high recovery bounds; the table is ranked by ``defaulted_high``.
"""
from __future__ import annotations

import logging
from typing import Mapping, Sequence

from pydantic import ValidationError as PydanticValidationError

from p2p_risk.errors import ValidationError
from p2p_risk.models.loan import Rating
from p2p_risk.models.segment import (
    AdjustedRateRow,
    AdjustedSegmentRate,
    RecoveryRateBounds,
    SegmentFrequency,
)

logger = logging.getLogger(__name__)


def validate_bounds(
    bounds: RecoveryRateBounds | Sequence[float],
) -> RecoveryRateBounds:
    """Return bounds as RecoveryRateBounds, checking range and ordering.

    Raises ValidationError if a bound is outside [0, 1] or the bounds
    decrease from low to high.
    """
    if not isinstance(bounds, RecoveryRateBounds):
        if len(bounds) != 3:
            raise ValidationError(
                f"Expected (low, mid, high) recovery rates, got {len(bounds)} values"
            )
        low, mid, high = bounds
        try:
            bounds = RecoveryRateBounds(low=low, mid=mid, high=high)
        except PydanticValidationError as e:
            raise ValidationError(f"Recovery rates must be numbers: {e}") from None

    for name, value in (("low", bounds.low), ("mid", bounds.mid), ("high", bounds.high)):
        if not 0.0 <= value <= 1.0:
            raise ValidationError(f"Recovery rate {name}={value} is outside [0, 1]")
    if not bounds.low <= bounds.mid <= bounds.high:
        raise ValidationError(
            f"Recovery rates must satisfy low <= mid <= high, got {bounds.as_tuple()}"
        )
    return bounds


def adjust_segment(freq: SegmentFrequency, recovery_rate: float) -> AdjustedSegmentRate:
    """Reallocate one rating's charge-off mass at a single recovery rate."""
    return AdjustedSegmentRate(
        rating=freq.rating,
        recovery_rate=recovery_rate,
        p_completed_adj=freq.p_completed + recovery_rate * freq.p_chargeoff,
        p_defaulted_adj=freq.p_defaulted + (1.0 - recovery_rate) * freq.p_chargeoff,
    )


def adjust_default_rates(
    frequencies: Mapping[Rating, SegmentFrequency],
    bounds: RecoveryRateBounds | Sequence[float],
) -> list[AdjustedRateRow]:
    """Adjusted completed/defaulted rates at each recovery bound.

    One row per rating present in ``frequencies``; ratings without terminal
    data are not fabricated.  Rows are sorted ascending by ``defaulted_high``,
    ties broken by rating order.
    """
    bounds = validate_bounds(bounds)

    rows: list[AdjustedRateRow] = []
    for rating, freq in frequencies.items():
        low = adjust_segment(freq, bounds.low)
        mid = adjust_segment(freq, bounds.mid)
        high = adjust_segment(freq, bounds.high)
        rows.append(AdjustedRateRow(
            rating=rating,
            completed_low=low.p_completed_adj,
            completed_mid=mid.p_completed_adj,
            completed_high=high.p_completed_adj,
            defaulted_low=low.p_defaulted_adj,
            defaulted_mid=mid.p_defaulted_adj,
            defaulted_high=high.p_defaulted_adj,
        ))

    rows.sort(key=lambda row: (row.defaulted_high, row.rating.rank))
    logger.info(
        "Adjusted %d ratings at recovery %s; order: %s",
        len(rows), bounds.as_tuple(), [row.rating.value for row in rows],
    )
    return rows
