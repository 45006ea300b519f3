import pytest
from pydantic import ValidationError

from p2p_risk.models.loan import LoanRecord, LoanStatus, Rating, TERMINAL_STATUSES
from p2p_risk.models.report import LoadResult, ReportConfig
from p2p_risk.models.segment import RecoveryRateBounds, SegmentFrequency


def test_loan_record_full():
    rec = LoanRecord(
        rating=Rating.HR,
        status=LoanStatus.DEFAULTED,
        borrower_rate=0.31,
        default_reason="Deceased",
        days_past_due=95.0,
        fees_paid=-12.5,
    )
    assert rec.rating == Rating.HR
    assert rec.default_reason == "Deceased"


def test_loan_record_minimal():
    rec = LoanRecord(rating="A", status="CURRENT", borrower_rate=0.1)
    assert rec.default_reason is None
    assert rec.days_past_due is None


def test_loan_record_frozen_and_hashable():
    a = LoanRecord(rating=Rating.B, status=LoanStatus.COMPLETED, borrower_rate=0.15)
    b = LoanRecord(rating=Rating.B, status=LoanStatus.COMPLETED, borrower_rate=0.15)
    assert a == b
    assert hash(a) == hash(b)
    with pytest.raises(ValidationError):
        a.borrower_rate = 0.2


def test_reason_requires_default():
    with pytest.raises(ValidationError):
        LoanRecord(
            rating=Rating.B, status=LoanStatus.CHARGEOFF, borrower_rate=0.15,
            default_reason="Bankruptcy",
        )


def test_negative_rate_rejected():
    with pytest.raises(ValidationError):
        LoanRecord(rating=Rating.B, status=LoanStatus.COMPLETED, borrower_rate=-0.01)


def test_rating_order():
    assert [r.value for r in Rating] == ["AA", "A", "B", "C", "D", "E", "HR"]
    assert Rating.AA.rank == 0
    assert Rating.HR.rank == 6


def test_terminal_statuses():
    assert LoanStatus.CURRENT not in TERMINAL_STATUSES
    assert len(TERMINAL_STATUSES) == 3


def test_segment_frequency_bounds():
    with pytest.raises(ValidationError):
        SegmentFrequency(rating=Rating.C, p_defaulted=-0.1, p_chargeoff=0.1, p_completed=1.0)


def test_recovery_bounds_tuple():
    assert RecoveryRateBounds(low=0.07, mid=0.095, high=0.12).as_tuple() == (0.07, 0.095, 0.12)


def test_load_result_empty_summary():
    summary = LoadResult().summary()
    assert summary.n_loaded == 0
    assert summary.errors == []


def test_report_config_all_optional():
    cfg = ReportConfig()
    assert cfg.recovery_rate_low is None
    assert cfg.mismatch_threshold is None
