"""Default-rate report API — inline rows, CSV upload, effective configuration."""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, UploadFile

from p2p_risk.config import settings
from p2p_risk.errors import ValidationError
from p2p_risk.models.report import LoanReport, ReportConfig, ReportRequest
from p2p_risk.services.record_loader import load_loan_csv, parse_loan_rows
from p2p_risk.services.report_service import build_report, resolve_config

router = APIRouter(tags=["report"])


@router.get("/report/config")
def get_report_config():
    """Defaults applied when a request does not override them."""
    return {
        "recovery_rate_bounds": settings.recovery_rate_bounds.model_dump(),
        "mismatch_threshold": settings.MISMATCH_THRESHOLD,
        "max_error_examples": settings.MAX_ERROR_EXAMPLES,
    }


@router.post("/report/run", response_model=LoanReport)
def run_inline_report(request: ReportRequest):
    """Build the report from inline rows keyed by canonical field name."""
    bounds, threshold = resolve_config(request.config)
    load_result = parse_loan_rows(request.rows)
    try:
        return build_report(load_result, bounds, threshold)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/report/upload", response_model=LoanReport)
async def upload_loan_csv(
    file: UploadFile,
    recovery_rate_low: Optional[float] = Query(None),
    recovery_rate_mid: Optional[float] = Query(None),
    recovery_rate_high: Optional[float] = Query(None),
    mismatch_threshold: Optional[int] = Query(None),
):
    """Upload a loan CSV and return the full report."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if ext != "csv":
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '.{ext}'. Please upload .csv",
        )

    bounds, threshold = resolve_config(ReportConfig(
        recovery_rate_low=recovery_rate_low,
        recovery_rate_mid=recovery_rate_mid,
        recovery_rate_high=recovery_rate_high,
        mismatch_threshold=mismatch_threshold,
    ))
    try:
        load_result = load_loan_csv(file.file, file.filename)
        return build_report(load_result, bounds, threshold)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
