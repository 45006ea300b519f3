"""Parse raw loan rows (or an uploaded CSV) into typed LoanRecords.

Column matching is flexible (partial, case-insensitive) so provider exports
such as ``ProsperRating (Alpha)`` / ``LoanStatus`` / ``BorrowerRate`` map onto
the canonical fields.  Row-level failures are collected, never raised: a bad
row is counted and reported but does not affect any other row.
"""
from __future__ import annotations

import logging
import math
import re
from collections import Counter
from io import BytesIO
from typing import Any, BinaryIO, Iterable, Mapping

from pydantic import ValidationError as PydanticValidationError

from p2p_risk.config import settings
from p2p_risk.errors import ValidationError
from p2p_risk.models.loan import LoanRecord, LoanStatus, Rating
from p2p_risk.models.report import LoadResult, RowError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Column matching helpers
# ---------------------------------------------------------------------------
_COLUMN_PATTERNS: dict[str, list[str]] = {
    "rating": ["prosperrating (alpha)", "creditgrade", "credit grade", "^rating$", "rating"],
    "status": ["loanstatus", "loan status", "^status$", "status"],
    "borrower_rate": ["borrowerrate", "borrower rate", "borrower_rate", "interest rate", "^rate$"],
    "default_reason": ["defaultreason", "default reason", "default_reason"],
    "days_past_due": [
        "loancurrentdaysdelinquent",
        "days past due",
        "days_past_due",
        "dayspastdue",
        "days delinquent",
    ],
    "fees_paid": ["fees paid", "fees_paid", "feespaid", "lp_servicefees", "fees"],
}

_REQUIRED_COLUMNS = ("rating", "status", "borrower_rate")


def _find_column(columns: list[str], key: str) -> str | None:
    """Find a column name by partial case-insensitive match.

    Patterns are tried in order (most specific first).  A pattern containing
    regex metacharacters (``.*``, ``^``, etc.) is treated as a regex;
    otherwise plain substring matching is used.
    """
    patterns = _COLUMN_PATTERNS.get(key, [key])
    col_lower = {c: c.lower().strip() for c in columns}
    for pattern in patterns:
        pat = pattern.lower()
        if any(ch in pat for ch in ("*", "+", "?", "\\", "^", "$", "|")):
            rx = re.compile(pat)
            for orig, low in col_lower.items():
                if rx.search(low):
                    return orig
        else:
            for orig, low in col_lower.items():
                if pat in low:
                    return orig
    return None


# ---------------------------------------------------------------------------
# Status vocabulary
# ---------------------------------------------------------------------------
# Provider status text -> status.  Matched against the lower-cased text with
# runs of whitespace collapsed; the whole string must match.
_STATUS_PATTERNS: list[tuple[re.Pattern[str], LoanStatus]] = [
    (re.compile(r"current|late|past due.*|finalpaymentinprogress|final payment in progress"),
     LoanStatus.CURRENT),
    (re.compile(r"completed|repaid|fully paid|paid ?off"), LoanStatus.COMPLETED),
    (re.compile(r"defaulted|default"), LoanStatus.DEFAULTED),
    (re.compile(r"charged ?-?off|charge ?-?off"), LoanStatus.CHARGEOFF),
]


def parse_status(raw: Any) -> LoanStatus:
    if _is_blank(raw):
        raise ValidationError("status is missing")
    text = " ".join(str(raw).split()).lower()
    for rx, status in _STATUS_PATTERNS:
        if rx.fullmatch(text):
            return status
    raise ValidationError(f"Unknown loan status {raw!r}")


def parse_rating(raw: Any) -> Rating:
    if _is_blank(raw):
        raise ValidationError("rating is missing")
    text = str(raw).strip().upper()
    try:
        return Rating(text)
    except ValueError:
        raise ValidationError(
            f"Unknown rating {raw!r}; expected one of {[r.value for r in Rating]}"
        ) from None


def parse_borrower_rate(raw: Any, *, percent: bool = False) -> float:
    """Parse a borrower rate as a fraction.

    ``percent`` is decided once for the whole column (see
    ``parse_loan_rows``); a single value is never rescaled on its own.
    """
    if _is_blank(raw):
        raise ValidationError("borrower_rate is missing")
    try:
        rate = float(raw)
    except (ValueError, TypeError):
        raise ValidationError(f"borrower_rate {raw!r} is not a number") from None
    if not math.isfinite(rate):
        raise ValidationError(f"borrower_rate {raw!r} is not a finite number")
    if rate < 0:
        raise ValidationError(f"borrower_rate {rate} is negative")
    if percent:
        rate = rate / 100.0
    if rate > 1:
        raise ValidationError(f"borrower_rate {raw!r} is above 100%")
    return rate


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse_loan_row(row: Mapping[str, Any], *, percent_rates: bool = False) -> LoanRecord:
    """Parse one canonical-key row into a LoanRecord.

    Raises ValidationError on an unknown rating or status, a bad borrower
    rate, or a default reason on a loan that did not default.
    """
    reason = row.get("default_reason")
    try:
        return LoanRecord(
            rating=parse_rating(row.get("rating")),
            status=parse_status(row.get("status")),
            borrower_rate=parse_borrower_rate(row.get("borrower_rate"), percent=percent_rates),
            default_reason=None if _is_blank(reason) else str(reason).strip(),
            days_past_due=_optional_float(row.get("days_past_due")),
            fees_paid=_optional_float(row.get("fees_paid")),
        )
    except PydanticValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ValidationError(messages) from None


def parse_loan_rows(
    rows: Iterable[Mapping[str, Any]],
    *,
    percent_rates: bool | None = None,
    max_error_examples: int | None = None,
) -> LoadResult:
    """Parse every row, collecting failures instead of aborting the load.

    When ``percent_rates`` is None the rate scale is inferred from the whole
    batch: if any borrower rate is above 1, every rate is read as a percentage.
    """
    if max_error_examples is None:
        max_error_examples = settings.MAX_ERROR_EXAMPLES
    rows = list(rows)
    if percent_rates is None:
        percent_rates = _rates_are_percent(rows)
        if percent_rates:
            logger.info("borrower_rate column is percent-scaled; dividing by 100")

    records: list[LoanRecord] = []
    errors: list[RowError] = []
    n_rows = 0
    n_rejected = 0
    for i, row in enumerate(rows):
        n_rows += 1
        try:
            records.append(parse_loan_row(row, percent_rates=percent_rates))
        except ValidationError as e:
            n_rejected += 1
            if len(errors) < max_error_examples:
                errors.append(RowError(row=i, message=str(e)))
                logger.warning("Rejected row %d: %s", i, e)

    counts = Counter(records)
    n_duplicates = sum(c - 1 for c in counts.values() if c > 1)

    logger.info(
        "Loaded %d of %d rows (%d rejected, %d duplicates kept)",
        len(records), n_rows, n_rejected, n_duplicates,
    )
    return LoadResult(
        records=records,
        n_rows=n_rows,
        n_rejected=n_rejected,
        n_duplicates=n_duplicates,
        errors=errors,
    )


def load_loan_csv(file: BinaryIO, filename: str) -> LoadResult:
    """Parse an uploaded loan CSV.

    Raises ValueError on an empty file or when a required column is missing.
    """
    import pandas as pd

    data = file.read()
    if not data:
        raise ValueError("Uploaded file is empty")

    # Keep every cell as text; typing happens per row
    df = pd.read_csv(BytesIO(data), dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]

    if df.empty:
        raise ValueError(f"{filename} contains no data rows")

    col_map: dict[str, str | None] = {}
    for key in _COLUMN_PATTERNS:
        col_map[key] = _find_column(list(df.columns), key)

    logger.info("CSV columns: %s", list(df.columns))
    logger.info("Column mapping: %s", col_map)

    missing = [key for key in _REQUIRED_COLUMNS if col_map.get(key) is None]
    if missing:
        raise ValueError(
            f"Cannot find column(s) {missing}. Available columns: {list(df.columns)}"
        )

    present = {src: key for key, src in col_map.items() if src is not None}
    canonical = df.loc[:, list(present)].rename(columns=present)
    return parse_loan_rows(canonical.to_dict(orient="records"))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _is_blank(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, float) and math.isnan(val):
        return True
    return isinstance(val, str) and not val.strip()


def _optional_float(val: Any) -> float | None:
    if _is_blank(val):
        return None
    try:
        out = float(val)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(out):
        return None
    return out


def _rates_are_percent(rows: list[Mapping[str, Any]]) -> bool:
    for row in rows:
        raw = row.get("borrower_rate")
        if _is_blank(raw):
            continue
        try:
            rate = float(raw)
        except (ValueError, TypeError):
            continue
        if math.isfinite(rate) and rate > 1:
            return True
    return False
