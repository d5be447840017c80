"""Saved analyses: named platform aggregates stored per user."""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import desc
from sqlalchemy.orm import Session

from social_analytics.aggregates import (
    InstagramData,
    Platform,
    PlatformData,
    TikTokData,
    YouTubeData,
)
from social_analytics.models import Analysis, User
from social_analytics.report import data_from_json, data_to_json

logger = logging.getLogger(__name__)


@dataclass
class AnalysisInfo:
    """Listing entry for a saved analysis (no payload)."""

    id: int
    platform: str
    name: str
    upload_date: datetime | None
    total_posts: int
    total_views: int


def headline_totals(data: PlatformData) -> tuple[int, int]:
    """(total_posts, total_views) for the listing columns."""
    if isinstance(data, YouTubeData):
        return data.summary.total_videos, data.summary.total_views
    if isinstance(data, InstagramData):
        return len(data.posts), data.summary.total_views
    if isinstance(data, TikTokData):
        return data.summary.total_posts, data.summary.total_views
    raise TypeError(f"Unsupported aggregate type {type(data).__name__}")


def save_analysis(
    db: Session,
    user: User,
    platform: "Platform | str",
    name: str,
    data: PlatformData,
) -> Analysis:
    platform = Platform.parse(platform)
    name = name.strip() or f"{platform.display_name} analysis"
    total_posts, total_views = headline_totals(data)
    analysis = Analysis(
        user_id=user.id,
        platform=platform.value,
        name=name,
        total_posts=total_posts,
        total_views=total_views,
        payload=data_to_json(platform, data),
    )
    db.add(analysis)
    db.commit()
    db.refresh(analysis)
    logger.info(
        "Saved %s analysis id=%d for user id=%d (%d posts, %d views)",
        platform.value,
        analysis.id,
        user.id,
        total_posts,
        total_views,
    )
    return analysis


def list_analyses(db: Session, user: User, platform: "Platform | str") -> list[AnalysisInfo]:
    """The user's saved analyses for one platform, newest first."""
    platform = Platform.parse(platform)
    rows = (
        db.query(Analysis)
        .filter(Analysis.user_id == user.id, Analysis.platform == platform.value)
        .order_by(desc(Analysis.created_at), desc(Analysis.id))
        .all()
    )
    return [
        AnalysisInfo(
            id=row.id,
            platform=row.platform,
            name=row.name,
            upload_date=row.upload_date,
            total_posts=row.total_posts or 0,
            total_views=row.total_views or 0,
        )
        for row in rows
    ]


def get_analysis_payload(
    db: Session, user: User, platform: "Platform | str", analysis_id: int
) -> PlatformData | None:
    """The stored aggregate, or None if it does not exist or belongs to someone else."""
    platform = Platform.parse(platform)
    row = (
        db.query(Analysis)
        .filter(
            Analysis.id == analysis_id,
            Analysis.user_id == user.id,
            Analysis.platform == platform.value,
        )
        .first()
    )
    if row is None:
        return None
    return data_from_json(platform, row.payload)
