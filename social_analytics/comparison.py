"""Projection of platform aggregates onto one comparable set of metrics."""

from dataclasses import fields

from social_analytics.aggregates import (
    InstagramData,
    Platform,
    PlatformComparison,
    PlatformData,
    TikTokData,
    YouTubeData,
)

COMPARABLE_METRICS = tuple(
    f.name for f in fields(PlatformComparison) if f.name not in ("platform", "platform_name")
)


def _rates(total_views: int, total_engagement: int, total_posts: int) -> tuple[float, float]:
    engagement_rate = (total_engagement / total_views) * 100 if total_views > 0 else 0.0
    avg_views_per_post = total_views / total_posts if total_posts > 0 else 0.0
    return engagement_rate, avg_views_per_post


def extract_youtube_metrics(data: YouTubeData) -> PlatformComparison:
    """YouTube has no reach metric; views stand in for it. Saves are subscribers gained."""
    total_views = sum(v.views for v in data.videos)
    total_engagement = sum(v.likes + v.comments + v.shares for v in data.videos)
    subscribers_gained = sum(v.subscribers_gained for v in data.videos)
    total_posts = len(data.videos)
    engagement_rate, avg_views_per_post = _rates(total_views, total_engagement, total_posts)
    return PlatformComparison(
        platform=Platform.YOUTUBE,
        platform_name=Platform.YOUTUBE.display_name,
        total_views=total_views,
        total_reach=total_views,
        total_engagement=total_engagement,
        engagement_rate=engagement_rate,
        followers_growth=subscribers_gained,
        total_posts=total_posts,
        avg_views_per_post=avg_views_per_post,
        total_saves=subscribers_gained,
    )


def extract_instagram_metrics(data: InstagramData) -> PlatformComparison:
    """Views and engagement come from posts; reach, saves and growth from the summary."""
    total_views = sum(p.views for p in data.posts)
    total_engagement = sum(p.likes + p.comments + p.shares for p in data.posts)
    total_posts = len(data.posts)
    engagement_rate, avg_views_per_post = _rates(total_views, total_engagement, total_posts)
    return PlatformComparison(
        platform=Platform.INSTAGRAM,
        platform_name=Platform.INSTAGRAM.display_name,
        total_views=total_views,
        total_reach=data.summary.total_reach,
        total_engagement=total_engagement,
        engagement_rate=engagement_rate,
        followers_growth=data.summary.total_followers_gained,
        total_posts=total_posts,
        avg_views_per_post=avg_views_per_post,
        total_saves=data.summary.total_saves,
    )


def extract_tiktok_metrics(data: TikTokData) -> PlatformComparison:
    """Everything comes from the summary. TikTok exports no reach or saves."""
    summary = data.summary
    total_engagement = summary.total_likes + summary.total_comments + summary.total_shares
    engagement_rate, avg_views_per_post = _rates(
        summary.total_views, total_engagement, summary.total_posts
    )
    return PlatformComparison(
        platform=Platform.TIKTOK,
        platform_name=Platform.TIKTOK.display_name,
        total_views=summary.total_views,
        total_reach=summary.total_views,
        total_engagement=total_engagement,
        engagement_rate=engagement_rate,
        followers_growth=summary.total_followers,
        total_posts=summary.total_posts,
        avg_views_per_post=avg_views_per_post,
        total_saves=0,
    )


_EXTRACTORS = {
    Platform.YOUTUBE: extract_youtube_metrics,
    Platform.INSTAGRAM: extract_instagram_metrics,
    Platform.TIKTOK: extract_tiktok_metrics,
}


def extract_metrics(platform: "Platform | str", data: PlatformData) -> PlatformComparison:
    return _EXTRACTORS[Platform.parse(platform)](data)


def get_best_performer(platforms: list[PlatformComparison], metric: str) -> str:
    """Name of the platform with the highest ``metric``; the first one wins ties.

    Returns an empty string for an empty list.
    """
    if metric not in COMPARABLE_METRICS:
        raise ValueError(f"Unknown comparison metric '{metric}'")
    if not platforms:
        return ""
    best = platforms[0]
    for current in platforms[1:]:
        if getattr(current, metric) > getattr(best, metric):
            best = current
    return best.platform_name


def calculate_difference(value: float, baseline: float) -> float:
    """Percent difference of ``value`` relative to ``baseline`` (0 when baseline is 0)."""
    if baseline == 0:
        return 0.0
    return ((value - baseline) / baseline) * 100
