"""Rule-based observations about a YouTube channel export.

Each rule compares a channel-wide average against fixed thresholds and
emits an ``Insight`` when the channel is clearly above or below them. Rules
whose inputs are empty (no videos, no views) are skipped instead of dividing
by zero.
"""

import logging
from dataclasses import dataclass, field

from social_analytics.aggregates import ContentTypeRecord, VideoRecord, YouTubeData
from social_analytics.comparison import calculate_difference
from social_analytics.date_filter import parse_date
from social_analytics.tabular import fold_text

logger = logging.getLogger(__name__)

# Views relative to the channel average
TOP_PERFORMER_RATIO = 1.5
UNDER_PERFORMER_RATIO = 0.5

# Average percentage viewed
HIGH_RETENTION_PCT = 50.0
LOW_RETENTION_PCT = 30.0

# Impressions click-through rate
HIGH_CTR_PCT = 5.0
LOW_CTR_PCT = 2.0

# Subscribers gained per 100 views
HIGH_CONVERSION_PCT = 1.0
LOW_CONVERSION_PCT = 0.5

SHORTS_ADVANTAGE_RATIO = 2.0

TREND_WINDOW = 5
TOP_VIDEOS = 3


@dataclass
class Insight:
    """One observation. ``kind`` is success, warning, suggestion or info."""

    kind: str
    code: str
    title: str
    detail: str
    value: float = 0.0


@dataclass
class ViewsTrend:
    """Average views of the newest videos against the oldest ones."""

    recent_avg_views: float = 0.0
    older_avg_views: float = 0.0
    growth_pct: float = 0.0


@dataclass
class YouTubeInsights:
    insights: list[Insight] = field(default_factory=list)
    top_performers: list[str] = field(default_factory=list)
    under_performers: list[str] = field(default_factory=list)
    top_videos: list[str] = field(default_factory=list)
    trend: ViewsTrend = field(default_factory=ViewsTrend)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def performance_insights(videos: list[VideoRecord]) -> tuple[list[Insight], list[str], list[str]]:
    """Videos well above and well below the average view count."""
    if not videos:
        return [], [], []
    avg_views = _mean([v.views for v in videos])
    top = [v.content_id for v in videos if v.views > avg_views * TOP_PERFORMER_RATIO]
    under = [v.content_id for v in videos if v.views < avg_views * UNDER_PERFORMER_RATIO]

    insights = []
    if top:
        insights.append(Insight(
            kind="success",
            code="top_performers",
            title=f"{len(top)} high-performing videos",
            detail="These videos have at least 50% more views than the channel average.",
            value=len(top),
        ))
    if under:
        insights.append(Insight(
            kind="warning",
            code="under_performers",
            title=f"{len(under)} videos below average",
            detail="These videos have less than half the average views; revisit their titles, thumbnails and descriptions.",
            value=len(under),
        ))
    return insights, top, under


def retention_insight(videos: list[VideoRecord]) -> Insight | None:
    if not videos:
        return None
    avg_retention = _mean([v.avg_percentage_viewed for v in videos])
    if avg_retention > HIGH_RETENTION_PCT:
        return Insight(
            kind="success",
            code="high_retention",
            title="Strong audience retention",
            detail=f"Viewers watch {avg_retention:.1f}% of each video on average.",
            value=avg_retention,
        )
    if avg_retention < LOW_RETENTION_PCT:
        return Insight(
            kind="suggestion",
            code="low_retention",
            title="Retention can improve",
            detail="Try stronger hooks in the first seconds and tighter editing.",
            value=avg_retention,
        )
    return None


def ctr_insight(videos: list[VideoRecord]) -> Insight | None:
    if not videos:
        return None
    avg_ctr = _mean([v.impressions_ctr for v in videos])
    if avg_ctr > HIGH_CTR_PCT:
        return Insight(
            kind="success",
            code="high_ctr",
            title="Click-through rate above average",
            detail=f"An impressions CTR of {avg_ctr:.2f}% points to effective thumbnails and titles.",
            value=avg_ctr,
        )
    if avg_ctr < LOW_CTR_PCT:
        return Insight(
            kind="suggestion",
            code="low_ctr",
            title="Improve thumbnails and titles",
            detail="A low click-through rate means impressions are not turning into views.",
            value=avg_ctr,
        )
    return None


def conversion_insight(videos: list[VideoRecord]) -> Insight | None:
    """Subscribers gained as a percentage of views."""
    total_views = sum(v.views for v in videos)
    if total_views <= 0:
        return None
    rate = sum(v.subscribers_gained for v in videos) / total_views * 100
    if rate > HIGH_CONVERSION_PCT:
        return Insight(
            kind="success",
            code="high_conversion",
            title="High subscriber conversion",
            detail=f"{rate:.2f}% of viewers subscribe.",
            value=rate,
        )
    if rate < LOW_CONVERSION_PCT:
        return Insight(
            kind="suggestion",
            code="low_conversion",
            title="Ask for more subscriptions",
            detail="Add clear calls to subscribe at the start and end of videos.",
            value=rate,
        )
    return None


def _content_type(records: list[ContentTypeRecord], name: str) -> ContentTypeRecord | None:
    for record in records:
        if fold_text(record.category).strip() == name:
            return record
    return None


def _views_per_item(record: ContentTypeRecord) -> float:
    return record.views / max(record.videos_published, 1)


def shorts_insight(content_types: list[ContentTypeRecord]) -> Insight | None:
    """Flags Shorts earning at least twice the views per item of long videos."""
    shorts = _content_type(content_types, "shorts")
    long_form = _content_type(content_types, "videos")
    if shorts is None or long_form is None:
        return None
    shorts_per_item = _views_per_item(shorts)
    long_per_item = _views_per_item(long_form)
    if long_per_item <= 0 or shorts_per_item <= long_per_item * SHORTS_ADVANTAGE_RATIO:
        return None
    advantage = calculate_difference(shorts_per_item, long_per_item)
    return Insight(
        kind="info",
        code="shorts_outperform",
        title="Shorts perform better",
        detail=f"Shorts get {advantage:.0f}% more views per item than long videos.",
        value=advantage,
    )


def views_trend(videos: list[VideoRecord]) -> ViewsTrend:
    """Compare the newest ``TREND_WINDOW`` videos with the oldest ones.

    With fewer than twice that many videos the two groups overlap. Growth is
    0 when the older group has no views.
    """
    if not videos:
        return ViewsTrend()
    ordered = sorted(videos, key=lambda v: parse_date(v.published_at))
    recent = _mean([v.views for v in ordered[-TREND_WINDOW:]])
    older = _mean([v.views for v in ordered[:TREND_WINDOW]])
    return ViewsTrend(
        recent_avg_views=recent,
        older_avg_views=older,
        growth_pct=calculate_difference(recent, older),
    )


def youtube_insights(data: YouTubeData) -> YouTubeInsights:
    insights, top, under = performance_insights(data.videos)
    for rule in (retention_insight, ctr_insight, conversion_insight):
        insight = rule(data.videos)
        if insight is not None:
            insights.append(insight)
    shorts = shorts_insight(data.content_types)
    if shorts is not None:
        insights.append(shorts)

    best = sorted(data.videos, key=lambda v: v.views, reverse=True)[:TOP_VIDEOS]
    result = YouTubeInsights(
        insights=insights,
        top_performers=top,
        under_performers=under,
        top_videos=[v.content_id for v in best],
        trend=views_trend(data.videos),
    )
    logger.info("Computed %d YouTube insights over %d videos", len(insights), len(data.videos))
    return result
