"""Normalizers for TikTok Analytics CSV exports (English headers)."""

from typing import Any, Iterable

from social_analytics.aggregates import (
    ActivityPoint,
    MetricPoint,
    TikTokDemographic,
    TikTokOverview,
    TikTokPost,
)
from social_analytics.coercion import CoercionTally, RowReader, is_blank

Row = dict[str, Any]

# Overview column -> TikTokOverview attribute
OVERVIEW_COLUMNS = {
    "video views": "video_views",
    "profile views": "profile_views",
    "likes": "likes",
    "comments": "comments",
    "shares": "shares",
}

TERRITORY_COLUMNS = ("top territories", "country", "territory")
FOLLOWER_DELTA_COLUMNS = ("difference in followers from previous day", "new followers")


def normalize_overview(rows: Iterable[Row], tally: CoercionTally | None = None) -> TikTokOverview:
    """Daily overview export. Each present column becomes one series."""
    tally = tally if tally is not None else CoercionTally()
    overview = TikTokOverview()
    for row in rows:
        reader = RowReader(row, tally)
        day = reader.text("date")
        if not day:
            continue
        for column, attribute in OVERVIEW_COLUMNS.items():
            if column in row:
                getattr(overview, attribute).append(
                    MetricPoint(date=day, value=reader.integer(column))
                )
    return overview


def normalize_posts(rows: Iterable[Row], tally: CoercionTally | None = None) -> list[TikTokPost]:
    """Content export. ``date`` is the collection time, which is what filtering uses."""
    tally = tally if tally is not None else CoercionTally()
    posts: list[TikTokPost] = []
    for row in rows:
        reader = RowReader(row, tally)
        title = reader.text("video title")
        if not title:
            continue
        link = reader.text("video link")
        posts.append(
            TikTokPost(
                post_id=link,
                title=title,
                link=link,
                date=reader.text("time", "date"),
                views=reader.integer("total views"),
                likes=reader.integer("total likes"),
                comments=reader.integer("total comments"),
                shares=reader.integer("total shares"),
            )
        )
    return posts


def _distribution(reader: RowReader) -> float:
    """Share as a percentage. Fractions (0.88) are scaled; "88%" is taken as is."""
    raw = reader.raw("distribution")
    value = reader.number("distribution")
    if isinstance(raw, str) and raw.strip().endswith("%"):
        return value
    return value * 100


def _normalize_shares(
    rows: Iterable[Row], columns: tuple[str, ...], tally: CoercionTally | None
) -> list[TikTokDemographic]:
    tally = tally if tally is not None else CoercionTally()
    shares: list[TikTokDemographic] = []
    for row in rows:
        reader = RowReader(row, tally)
        category = reader.text(*columns)
        if not category or is_blank(row.get("distribution")):
            continue
        shares.append(TikTokDemographic(category=category, percentage=_distribution(reader)))
    return shares


def normalize_gender(rows: Iterable[Row], tally: CoercionTally | None = None) -> list[TikTokDemographic]:
    return _normalize_shares(rows, ("gender",), tally)


def normalize_territories(
    rows: Iterable[Row], tally: CoercionTally | None = None
) -> list[TikTokDemographic]:
    return _normalize_shares(rows, TERRITORY_COLUMNS, tally)


def normalize_activity(rows: Iterable[Row], tally: CoercionTally | None = None) -> list[ActivityPoint]:
    """Follower activity export: active followers per hour of day."""
    tally = tally if tally is not None else CoercionTally()
    points: list[ActivityPoint] = []
    for row in rows:
        reader = RowReader(row, tally)
        if is_blank(reader.raw("hour")):
            continue
        points.append(
            ActivityPoint(
                hour=reader.integer("hour"),
                value=reader.integer("active followers", "followers", "value"),
            )
        )
    return points


def normalize_follower_history(
    rows: Iterable[Row], tally: CoercionTally | None = None
) -> list[MetricPoint]:
    """Follower history export, reduced to the daily follower gain."""
    tally = tally if tally is not None else CoercionTally()
    points: list[MetricPoint] = []
    for row in rows:
        reader = RowReader(row, tally)
        day = reader.text("date")
        if not day or not reader.has(*FOLLOWER_DELTA_COLUMNS):
            continue
        points.append(MetricPoint(date=day, value=reader.integer(*FOLLOWER_DELTA_COLUMNS)))
    return points
