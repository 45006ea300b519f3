"""Tests for per-rating terminal frequencies and the status count table."""
import pytest

from conftest import make_records
from p2p_risk.models.loan import LoanStatus, Rating
from p2p_risk.models.segment import SegmentFrequency
from p2p_risk.services.segment_aggregator import (
    aggregate_segments,
    insufficient_ratings,
    status_count_rows,
    status_counts,
)


def test_current_loans_excluded_from_denominator():
    records = make_records(Rating.B, 0.15, completed=6, defaulted=1, chargeoff=3, current=40)
    freq = aggregate_segments(records)[Rating.B]

    assert freq.n_terminal == 10
    assert freq.p_completed == pytest.approx(0.6)
    assert freq.p_defaulted == pytest.approx(0.1)
    assert freq.p_chargeoff == pytest.approx(0.3)


def test_rating_with_only_current_loans_omitted():
    records = (
        make_records(Rating.A, 0.1, completed=5)
        + make_records(Rating.D, 0.2, current=7)
    )
    freqs = aggregate_segments(records)

    assert Rating.D not in freqs
    assert Rating.D in insufficient_ratings(freqs)
    assert Rating.A not in insufficient_ratings(freqs)


def test_output_in_rating_order():
    records = (
        make_records(Rating.HR, 0.3, completed=1)
        + make_records(Rating.AA, 0.08, completed=1)
        + make_records(Rating.C, 0.18, chargeoff=1)
    )
    assert list(aggregate_segments(records)) == [Rating.AA, Rating.C, Rating.HR]


def test_empty_input():
    freqs = aggregate_segments([])
    assert freqs == {}
    assert insufficient_ratings(freqs) == list(Rating)


def test_proportions_sum_to_one(portfolio):
    for freq in aggregate_segments(portfolio).values():
        total = freq.p_defaulted + freq.p_chargeoff + freq.p_completed
        assert abs(total - 1.0) < 1e-9


def test_frequency_rejects_bad_sum():
    with pytest.raises(ValueError):
        SegmentFrequency(rating=Rating.C, p_defaulted=0.5, p_chargeoff=0.5, p_completed=0.5)


class TestStatusCounts:
    def test_table_shape_and_totals(self, portfolio):
        table = status_counts(portfolio)

        assert list(table.index) == [r.value for r in Rating] + ["TOTAL"]
        assert list(table.columns) == [s.value for s in LoanStatus] + ["TOTAL"]
        assert table.loc["C", "CHARGEOFF"] == 21
        assert table.loc["C", "TOTAL"] == 110
        assert table.loc["TOTAL", "TOTAL"] == len(portfolio)

    def test_missing_ratings_zero_filled(self):
        table = status_counts(make_records(Rating.B, 0.15, completed=2))
        assert table.loc["HR", "TOTAL"] == 0
        assert table.loc["B", "COMPLETED"] == 2

    def test_empty_records(self):
        table = status_counts([])
        assert table.loc["TOTAL", "TOTAL"] == 0

    def test_rows(self, portfolio):
        rows = status_count_rows(status_counts(portfolio))
        assert [row.rating for row in rows] == list(Rating)
        e_row = rows[Rating.E.rank]
        assert (e_row.completed, e_row.defaulted, e_row.chargeoff, e_row.current) == (60, 6, 34, 5)
        assert e_row.total == 105
