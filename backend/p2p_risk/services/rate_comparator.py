"""Compare per-rating borrower rates (reward) with adjusted default rates (risk).

If reward tracked risk, the rating with the highest adjusted default rate
would also carry the highest mean borrower rate.  A rating is flagged as a
mismatch when its reward rank is better than its risk rank predicts by more
than ``mismatch_threshold`` positions.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Sequence

import numpy as np

from p2p_risk.errors import ValidationError
from p2p_risk.models.loan import LoanRecord, Rating
from p2p_risk.models.segment import AdjustedRateRow, RateComparisonRow

logger = logging.getLogger(__name__)


def mean_rates(records: Iterable[LoanRecord]) -> dict[Rating, tuple[float, int]]:
    """Mean borrower rate and loan count per rating, over all loans."""
    by_rating: dict[Rating, list[float]] = defaultdict(list)
    for rec in records:
        by_rating[rec.rating].append(rec.borrower_rate)
    return {
        rating: (float(np.mean(by_rating[rating])), len(by_rating[rating]))
        for rating in Rating
        if by_rating.get(rating)
    }


def validate_threshold(mismatch_threshold: int) -> int:
    if mismatch_threshold < 0:
        raise ValidationError(f"mismatch_threshold must be >= 0, got {mismatch_threshold}")
    return mismatch_threshold


def compare_rates(
    records: Iterable[LoanRecord],
    adjusted: Sequence[AdjustedRateRow],
    *,
    mismatch_threshold: int = 0,
) -> list[RateComparisonRow]:
    """Mean-rate table sorted by rate (highest first) with mismatch flags.

    Ranks only cover ratings present in both the mean-rate table and
    ``adjusted``; a rating without adjusted data is listed but never flagged.
    """
    validate_threshold(mismatch_threshold)

    means = mean_rates(records)
    reward_order = sorted(means, key=lambda r: (-means[r][0], r.rank))

    adjusted_by_rating = {row.rating: row for row in adjusted}
    ranked = [r for r in reward_order if r in adjusted_by_rating]
    risk_order = sorted(ranked, key=lambda r: (adjusted_by_rating[r].defaulted_mid, r.rank))

    reward_rank = {r: i + 1 for i, r in enumerate(ranked)}
    risk_rank = {r: i + 1 for i, r in enumerate(risk_order)}
    n = len(ranked)

    rows: list[RateComparisonRow] = []
    for rating in reward_order:
        mean_rate, n_loans = means[rating]
        if rating not in reward_rank:
            rows.append(RateComparisonRow(
                rating=rating, mean_borrower_rate=mean_rate, n_loans=n_loans,
            ))
            continue

        expected_reward_rank = n + 1 - risk_rank[rating]
        gap = expected_reward_rank - reward_rank[rating]
        rows.append(RateComparisonRow(
            rating=rating,
            mean_borrower_rate=mean_rate,
            n_loans=n_loans,
            reward_rank=reward_rank[rating],
            risk_rank=risk_rank[rating],
            rank_gap=gap,
            mismatch=gap > mismatch_threshold,
        ))

    flagged = [row.rating.value for row in rows if row.mismatch]
    if flagged:
        logger.info("Reward/risk mismatch candidates: %s", flagged)
    return rows
