"""
Feedtrust — Cron Trigger API

    GET /v1/cron/profile-scores   - Re-score active accounts (Bearer CRON_SECRET)

Called by the platform scheduler. The arq worker runs the same job on its
own schedule; either trigger is enough.
"""
import secrets
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel
import structlog

from feedtrust.config import Settings, get_settings
from feedtrust.compute.backends import AccountSource, ScoreSink
from feedtrust.compute.refresh import run_score_refresh

logger = structlog.get_logger()

router = APIRouter(prefix="/v1/cron", tags=["Cron"])


class ProfileScoreRefreshResponse(BaseModel):
    updated: int
    scored: int
    failed: List[str]
    candidates: int


# =============================================
# DEPENDENCIES
# =============================================

async def require_cron_secret(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.CRON_SECRET:
        raise HTTPException(status_code=503, detail="Cron trigger is not configured")
    expected = f"Bearer {settings.CRON_SECRET}"
    if not authorization or not secrets.compare_digest(authorization.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_refresh_backends(request: Request) -> Tuple[AccountSource, ScoreSink]:
    """Source and sink built at startup by the app lifespan."""
    state = request.app.state
    source = getattr(state, "account_source", None)
    sink = getattr(state, "score_sink", None)
    if source is None or sink is None:
        raise HTTPException(status_code=503, detail="Score backends are not available")
    return source, sink


# =============================================
# ENDPOINTS
# =============================================

@router.get(
    "/profile-scores",
    response_model=ProfileScoreRefreshResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def refresh_profile_scores(
    backends: Tuple[AccountSource, ScoreSink] = Depends(get_refresh_backends),
    settings: Settings = Depends(get_settings),
):
    source, sink = backends
    try:
        report = await run_score_refresh(source, sink, settings=settings)
    except Exception as e:
        logger.error("score_refresh_failed", error=str(e), type=type(e).__name__)
        raise HTTPException(status_code=500, detail="Internal server error")

    return ProfileScoreRefreshResponse(
        updated=report.updated,
        scored=report.scored,
        failed=report.failed,
        candidates=report.candidates,
    )
