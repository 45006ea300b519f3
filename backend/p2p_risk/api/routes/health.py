from fastapi import APIRouter

from p2p_risk.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check():
    return {
        "status": "ok",
        "recovery_rate_bounds": settings.recovery_rate_bounds.model_dump(),
        "mismatch_threshold": settings.MISMATCH_THRESHOLD,
    }
