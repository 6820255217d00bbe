import asyncio

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from app.ai.factory import get_ai_client
from app.core.config import settings
from app.core.errors import ATSScoringError
from app.core.profile_store import ProfileStore, get_profile_store
from app.core.rate_limit import rate_limit
from app.core.security import check_api_key
from app.schemas.ats import ATSScoreResponse, ScoringRecord
from app.services.ats_scoring_service import ATSScoringConfig, ATSScoringService
from app.services.resume_fetch import HttpResumeFetcher

router = APIRouter()


def _auth(x_api_key: str | None = Header(default=None, alias="X-API-Key")):
    check_api_key(x_api_key)


def get_scoring_service(store: ProfileStore = Depends(get_profile_store)) -> ATSScoringService:
    try:
        ai_client = get_ai_client()
    except ATSScoringError as exc:
        _raise_scoring_error(exc)
    return ATSScoringService(
        config=ATSScoringConfig.from_settings(settings),
        ai_client=ai_client,
        resume_fetcher=HttpResumeFetcher(timeout_s=settings.resume_fetch_timeout_s),
        profile_store=store,
    )


def _raise_scoring_error(exc: ATSScoringError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post(
    "/users/{user_id}/ats-score",
    response_model=ATSScoreResponse,
)
@rate_limit()
async def score_resume(
    request: Request,
    user_id: str,
    _: None = Depends(_auth),
    service: ATSScoringService = Depends(get_scoring_service),
):
    try:
        return await asyncio.to_thread(service.score_user, user_id)
    except ATSScoringError as exc:
        _raise_scoring_error(exc)


@router.get("/users/{user_id}/ats-score", response_model=ScoringRecord)
def latest_score(
    user_id: str,
    _: None = Depends(_auth),
    store: ProfileStore = Depends(get_profile_store),
):
    profile = store.get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")
    if profile.ats_ai is None:
        raise HTTPException(status_code=404, detail="No ATS score computed yet")
    return profile.ats_ai
