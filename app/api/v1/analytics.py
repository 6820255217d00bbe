from fastapi import APIRouter, Depends, Header, Query

from app.core.security import check_api_key
from app.analytics import db as analytics_db

router = APIRouter()


def _auth(x_api_key: str | None = Header(default=None, alias="X-API-Key")):
    check_api_key(x_api_key)


@router.get("/analytics/ai-runs")
def ai_runs(_: None = Depends(_auth)):
    return analytics_db.get_attempt_summary()


@router.get("/analytics/ai-runs/latest")
def latest_ai_runs(
    limit: int = Query(default=20, ge=1, le=200),
    _: None = Depends(_auth),
):
    return analytics_db.get_latest_attempts(limit=limit)
