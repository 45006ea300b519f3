import pytest

from p2p_risk.models.loan import LoanRecord, LoanStatus, Rating


def make_record(**overrides) -> LoanRecord:
    defaults = dict(
        rating=Rating.C,
        status=LoanStatus.COMPLETED,
        borrower_rate=0.18,
    )
    defaults.update(overrides)
    return LoanRecord(**defaults)


def make_records(rating: Rating, rate: float, **status_counts: int) -> list[LoanRecord]:
    """``make_records(Rating.B, 0.15, completed=3, chargeoff=1)``"""
    out = []
    for status_name, n in status_counts.items():
        status = LoanStatus[status_name.upper()]
        reason = "Unknown" if status == LoanStatus.DEFAULTED else None
        out.extend(
            make_record(rating=rating, status=status, borrower_rate=rate, default_reason=reason)
            for _ in range(n)
        )
    return out


@pytest.fixture
def portfolio() -> list[LoanRecord]:
    """Small book where HR pays the most but E carries more adjusted risk."""
    return (
        make_records(Rating.AA, 0.08, completed=95, defaulted=1, chargeoff=4, current=20)
        + make_records(Rating.A, 0.11, completed=90, defaulted=2, chargeoff=8, current=15)
        + make_records(Rating.B, 0.15, completed=85, defaulted=2, chargeoff=13, current=10)
        + make_records(Rating.C, 0.18, completed=77, defaulted=2, chargeoff=21, current=10)
        + make_records(Rating.D, 0.22, completed=70, defaulted=4, chargeoff=26, current=5)
        + make_records(Rating.E, 0.26, completed=60, defaulted=6, chargeoff=34, current=5)
        + make_records(Rating.HR, 0.30, completed=65, defaulted=5, chargeoff=30, current=5)
    )
