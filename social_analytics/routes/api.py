"""JSON API routes: filtering, comparison, report export and saved analyses."""

import dataclasses
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from social_analytics.aggregates import Platform, PlatformData
from social_analytics.analyses import get_analysis_payload, list_analyses, save_analysis
from social_analytics.comparison import COMPARABLE_METRICS, extract_metrics, get_best_performer
from social_analytics.database import get_session
from social_analytics.date_filter import ALL, filter_aggregate, parse_range
from social_analytics.insights import youtube_insights
from social_analytics.models import User
from social_analytics.report import ReportError, data_from_dict, data_to_dict, dumps_report, report_filename
from social_analytics.routes.auth_routes import require_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _platform(value: str) -> Platform:
    try:
        return Platform.parse(value)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


async def _json_object(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON request body.")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object.")
    return body


def _aggregate(platform: Platform, payload: Any) -> PlatformData:
    if payload is None:
        raise HTTPException(status_code=400, detail="'data' is required.")
    try:
        return data_from_dict(platform, payload)
    except ReportError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _filtered(platform: Platform, data: PlatformData, date_range: Any) -> PlatformData:
    try:
        return filter_aggregate(platform, data, parse_range(date_range))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Filter / compare / export
# ---------------------------------------------------------------------------


@router.post("/api/{platform}/filter")
async def filter_data(platform: str, request: Request) -> dict[str, Any]:
    """Restrict an aggregate to a date range.

    Body: ``{"data": <aggregate>, "range": "30d" | "all" | {"start", "end"}}``.
    """
    target = _platform(platform)
    body = await _json_object(request)
    data = _aggregate(target, body.get("data"))
    filtered = _filtered(target, data, body.get("range", ALL))
    return {"platform": target.value, "data": data_to_dict(target, filtered)}


@router.post("/api/compare")
async def compare_platforms(request: Request) -> dict[str, Any]:
    """Project each supplied aggregate onto the common metrics.

    Body: any of ``youtube``, ``instagram``, ``tiktok`` (aggregates) and an
    optional ``range`` applied to all of them.
    """
    body = await _json_object(request)
    date_range = body.get("range", ALL)
    comparisons = []
    for platform in Platform:
        payload = body.get(platform.value)
        if payload is None:
            continue
        data = _filtered(platform, _aggregate(platform, payload), date_range)
        comparisons.append(extract_metrics(platform, data))

    return {
        "platforms": [dataclasses.asdict(c) for c in comparisons],
        "best": {metric: get_best_performer(comparisons, metric) for metric in COMPARABLE_METRICS},
    }


@router.post("/api/{platform}/export")
async def export_report(platform: str, request: Request) -> Response:
    """Download the aggregate (optionally filtered) as a JSON report."""
    target = _platform(platform)
    body = await _json_object(request)
    data = _filtered(target, _aggregate(target, body.get("data")), body.get("range", ALL))
    filename = report_filename(target)
    logger.info("Exporting %s report as %s", target.value, filename)
    return Response(
        content=dumps_report(target, data),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/api/youtube/insights")
async def youtube_insights_view(request: Request) -> dict[str, Any]:
    """Rule-based observations about a YouTube aggregate.

    Body: ``{"data": <YouTube aggregate>, "range": ...}`` (range optional).
    """
    body = await _json_object(request)
    data = _filtered(
        Platform.YOUTUBE, _aggregate(Platform.YOUTUBE, body.get("data")), body.get("range", ALL)
    )
    return dataclasses.asdict(youtube_insights(data))


# ---------------------------------------------------------------------------
# Saved analyses
# ---------------------------------------------------------------------------


@router.post("/api/analyses/{platform}", status_code=201)
async def create_analysis(
    platform: str,
    request: Request,
    user: User = Depends(require_user),
    db: Session = Depends(get_session),
) -> dict[str, Any]:
    """Body: ``{"name": str, "data": <aggregate>}``."""
    target = _platform(platform)
    body = await _json_object(request)
    name = body.get("name")
    if not isinstance(name, str):
        raise HTTPException(status_code=400, detail="'name' is required.")
    analysis = save_analysis(db, user, target, name, _aggregate(target, body.get("data")))
    return {
        "id": analysis.id,
        "platform": analysis.platform,
        "name": analysis.name,
        "total_posts": analysis.total_posts,
        "total_views": analysis.total_views,
    }


@router.get("/api/analyses/{platform}")
async def get_analyses(
    platform: str,
    user: User = Depends(require_user),
    db: Session = Depends(get_session),
) -> list[dict[str, Any]]:
    """The signed-in user's analyses for a platform, newest first."""
    target = _platform(platform)
    return [
        {
            "id": info.id,
            "platform": info.platform,
            "name": info.name,
            "upload_date": info.upload_date.isoformat() if info.upload_date else None,
            "total_posts": info.total_posts,
            "total_views": info.total_views,
        }
        for info in list_analyses(db, user, target)
    ]


@router.get("/api/analyses/{platform}/{analysis_id}")
async def get_analysis(
    platform: str,
    analysis_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_session),
) -> dict[str, Any]:
    target = _platform(platform)
    data = get_analysis_payload(db, user, target, analysis_id)
    if data is None:
        raise HTTPException(status_code=404, detail=f"Analysis {analysis_id} not found.")
    return {"id": analysis_id, "platform": target.value, "data": data_to_dict(target, data)}
