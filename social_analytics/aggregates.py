"""In-memory records and per-platform aggregates built from imported archives.

Every record is a plain dataclass compared by field values. Numeric fields
default to zero so a record can always be built from a partial export row.
Each platform aggregate carries a summary whose totals are recomputed from
its record lists by ``refresh_summary()``.
"""

from dataclasses import dataclass, field
from enum import Enum


class Platform(str, Enum):
    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"

    @property
    def display_name(self) -> str:
        return {"youtube": "YouTube", "instagram": "Instagram", "tiktok": "TikTok"}[self.value]

    @classmethod
    def parse(cls, value: "str | Platform") -> "Platform":
        """Case-insensitive lookup. Raises ValueError for unknown names."""
        try:
            return cls(str(getattr(value, "value", value)).strip().lower())
        except ValueError:
            allowed = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown platform '{value}'. Expected one of: {allowed}") from None


@dataclass
class MetricPoint:
    """One time-series sample. ``date`` is the string as exported."""

    date: str = ""
    value: int = 0


# ---------------------------------------------------------------------------
# YouTube
# ---------------------------------------------------------------------------


@dataclass
class ChannelMetrics:
    """Metric columns shared by YouTube Studio table exports.

    Each export carries a different subset; absent columns stay at zero.
    """

    engaged_views: int = 0
    views: int = 0
    watch_time_hours: float = 0.0
    avg_view_duration_seconds: int = 0
    avg_percentage_viewed: float = 0.0
    stayed_to_watch_pct: float = 0.0
    unique_viewers: int = 0
    avg_views_per_viewer: float = 0.0
    new_viewers: int = 0
    returning_viewers: int = 0
    casual_viewers: int = 0
    hypes: int = 0
    hype_points: int = 0
    subscribers: int = 0
    subscribers_gained: int = 0
    subscribers_lost: int = 0
    likes: int = 0
    dislikes: int = 0
    likes_vs_dislikes_pct: float = 0.0
    shares: int = 0
    comments: int = 0
    impressions: int = 0
    impressions_ctr: float = 0.0
    videos_published: int = 0


@dataclass
class VideoRecord(ChannelMetrics):
    content_id: str = ""
    title: str = ""
    published_at: str = ""
    duration_seconds: int = 0


@dataclass
class BreakdownRecord(ChannelMetrics):
    """One category row of a breakdown table (one traffic source, one device...)."""

    category: str = ""


@dataclass
class CountryRecord(BreakdownRecord):
    """``category`` holds the country code."""

    name: str = ""


@dataclass
class CityRecord(BreakdownRecord):
    """``category`` holds the exporter's city id."""

    name: str = ""


@dataclass
class TrafficSourceRecord(BreakdownRecord):
    pass


@dataclass
class NewRecurrentRecord(BreakdownRecord):
    pass


@dataclass
class SubscriptionOriginRecord(BreakdownRecord):
    pass


@dataclass
class SubscriptionStatusRecord(BreakdownRecord):
    pass


@dataclass
class ContentTypeRecord(BreakdownRecord):
    pass


@dataclass
class DeviceTypeRecord(BreakdownRecord):
    pass


@dataclass
class OperatingSystemRecord(BreakdownRecord):
    pass


@dataclass
class AudienceBehaviorRecord(BreakdownRecord):
    pass


@dataclass
class DemographicRecord:
    """Viewer age bracket or gender share. ``kind`` is "age" or "gender"."""

    kind: str = ""
    category: str = ""
    views_pct: float = 0.0
    watch_time_pct: float = 0.0
    engaged_views_pct: float = 0.0
    stayed_to_watch_pct: float = 0.0
    avg_percentage_viewed: float = 0.0
    avg_view_duration_seconds: int = 0


@dataclass
class BreakdownPoint:
    """Daily engaged views for one category, from a chart-data export."""

    date: str = ""
    category: str = ""
    engaged_views: int = 0


@dataclass
class YouTubeSummary:
    total_videos: int = 0
    total_views: int = 0
    total_engaged_views: int = 0
    total_watch_time_hours: float = 0.0
    total_likes: int = 0
    total_comments: int = 0
    total_shares: int = 0
    total_subscribers_gained: int = 0
    total_impressions: int = 0


@dataclass
class YouTubeData:
    videos: list[VideoRecord] = field(default_factory=list)
    countries: list[CountryRecord] = field(default_factory=list)
    cities: list[CityRecord] = field(default_factory=list)
    traffic_sources: list[TrafficSourceRecord] = field(default_factory=list)
    demographics: list[DemographicRecord] = field(default_factory=list)
    new_recurrent: list[NewRecurrentRecord] = field(default_factory=list)
    subscription_origins: list[SubscriptionOriginRecord] = field(default_factory=list)
    subscription_statuses: list[SubscriptionStatusRecord] = field(default_factory=list)
    content_types: list[ContentTypeRecord] = field(default_factory=list)
    device_types: list[DeviceTypeRecord] = field(default_factory=list)
    operating_systems: list[OperatingSystemRecord] = field(default_factory=list)
    audience_behaviors: list[AudienceBehaviorRecord] = field(default_factory=list)

    # Chart-data series used to re-aggregate breakdowns for a date window
    device_type_series: list[BreakdownPoint] = field(default_factory=list)
    operating_system_series: list[BreakdownPoint] = field(default_factory=list)
    traffic_source_series: list[BreakdownPoint] = field(default_factory=list)
    country_series: list[BreakdownPoint] = field(default_factory=list)
    city_series: list[BreakdownPoint] = field(default_factory=list)

    summary: YouTubeSummary = field(default_factory=YouTubeSummary)

    def refresh_summary(self) -> None:
        """Recompute summary totals from the video list."""
        self.summary = YouTubeSummary(
            total_videos=len(self.videos),
            total_views=sum(v.views for v in self.videos),
            total_engaged_views=sum(v.engaged_views for v in self.videos),
            total_watch_time_hours=sum(v.watch_time_hours for v in self.videos),
            total_likes=sum(v.likes for v in self.videos),
            total_comments=sum(v.comments for v in self.videos),
            total_shares=sum(v.shares for v in self.videos),
            total_subscribers_gained=sum(v.subscribers_gained for v in self.videos),
            total_impressions=sum(v.impressions for v in self.videos),
        )


# ---------------------------------------------------------------------------
# Instagram
# ---------------------------------------------------------------------------


@dataclass
class InstagramPost:
    post_id: str = ""
    date: str = ""
    description: str = ""
    post_type: str = ""
    permalink: str = ""
    views: int = 0
    reach: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0
    saves: int = 0
    duration_seconds: int = 0
    follows: int = 0
    account_name: str = ""
    account_username: str = ""


@dataclass
class AgeGenderShare:
    category: str = ""
    women: float = 0.0
    men: float = 0.0
    percentage: float = 0.0


@dataclass
class CategoryShare:
    category: str = ""
    percentage: float = 0.0


@dataclass
class PageShare:
    name: str = ""
    percentage: float = 0.0


@dataclass
class InstagramSummary:
    total_views: int = 0
    total_profile_visits: int = 0
    total_followers_gained: int = 0
    total_reach: int = 0
    total_impressions: int = 0
    total_interactions: int = 0
    total_link_clicks: int = 0
    total_saves: int = 0


@dataclass
class InstagramData:
    views: list[MetricPoint] = field(default_factory=list)
    profile_visits: list[MetricPoint] = field(default_factory=list)
    followers: list[MetricPoint] = field(default_factory=list)
    reach: list[MetricPoint] = field(default_factory=list)
    impressions: list[MetricPoint] = field(default_factory=list)
    interactions: list[MetricPoint] = field(default_factory=list)
    link_clicks: list[MetricPoint] = field(default_factory=list)

    audience_age_gender: list[AgeGenderShare] = field(default_factory=list)
    audience_cities: list[CategoryShare] = field(default_factory=list)
    audience_countries: list[CategoryShare] = field(default_factory=list)
    audience_pages: list[PageShare] = field(default_factory=list)

    posts: list[InstagramPost] = field(default_factory=list)

    summary: InstagramSummary = field(default_factory=InstagramSummary)

    def metric_series(self) -> dict[str, list[MetricPoint]]:
        return {
            "views": self.views,
            "profile_visits": self.profile_visits,
            "followers": self.followers,
            "reach": self.reach,
            "impressions": self.impressions,
            "interactions": self.interactions,
            "link_clicks": self.link_clicks,
        }

    def refresh_summary(self) -> None:
        """Recompute summary totals from the metric series and posts."""
        self.summary = InstagramSummary(
            total_views=sum(m.value for m in self.views),
            total_profile_visits=sum(m.value for m in self.profile_visits),
            total_followers_gained=sum(m.value for m in self.followers),
            total_reach=sum(m.value for m in self.reach),
            total_impressions=sum(m.value for m in self.impressions),
            total_interactions=sum(m.value for m in self.interactions),
            total_link_clicks=sum(m.value for m in self.link_clicks),
            total_saves=sum(p.saves for p in self.posts),
        )


# ---------------------------------------------------------------------------
# TikTok
# ---------------------------------------------------------------------------


@dataclass
class TikTokPost:
    post_id: str = ""
    title: str = ""
    link: str = ""
    date: str = ""
    views: int = 0
    likes: int = 0
    comments: int = 0
    shares: int = 0


@dataclass
class TikTokDemographic:
    category: str = ""
    percentage: float = 0.0


@dataclass
class ActivityPoint:
    """Follower activity for one hour of the day."""

    hour: int = 0
    value: int = 0


@dataclass
class TikTokOverview:
    video_views: list[MetricPoint] = field(default_factory=list)
    profile_views: list[MetricPoint] = field(default_factory=list)
    likes: list[MetricPoint] = field(default_factory=list)
    comments: list[MetricPoint] = field(default_factory=list)
    shares: list[MetricPoint] = field(default_factory=list)
    followers: list[MetricPoint] = field(default_factory=list)

    def series(self) -> dict[str, list[MetricPoint]]:
        return {
            "video_views": self.video_views,
            "profile_views": self.profile_views,
            "likes": self.likes,
            "comments": self.comments,
            "shares": self.shares,
            "followers": self.followers,
        }


@dataclass
class TikTokAudience:
    gender: list[TikTokDemographic] = field(default_factory=list)
    territories: list[TikTokDemographic] = field(default_factory=list)
    activity: list[ActivityPoint] = field(default_factory=list)


@dataclass
class TikTokSummary:
    total_views: int = 0
    total_likes: int = 0
    total_comments: int = 0
    total_shares: int = 0
    total_followers: int = 0
    total_posts: int = 0


@dataclass
class TikTokData:
    overview: TikTokOverview = field(default_factory=TikTokOverview)
    posts: list[TikTokPost] = field(default_factory=list)
    audience: TikTokAudience = field(default_factory=TikTokAudience)
    summary: TikTokSummary = field(default_factory=TikTokSummary)

    def refresh_summary(self) -> None:
        """Recompute totals from posts; followers from the daily follower series."""
        self.summary = TikTokSummary(
            total_views=sum(p.views for p in self.posts),
            total_likes=sum(p.likes for p in self.posts),
            total_comments=sum(p.comments for p in self.posts),
            total_shares=sum(p.shares for p in self.posts),
            total_followers=sum(m.value for m in self.overview.followers),
            total_posts=len(self.posts),
        )


PlatformData = YouTubeData | InstagramData | TikTokData

DATA_TYPES: dict[Platform, type] = {
    Platform.YOUTUBE: YouTubeData,
    Platform.INSTAGRAM: InstagramData,
    Platform.TIKTOK: TikTokData,
}


# ---------------------------------------------------------------------------
# Cross-platform comparison
# ---------------------------------------------------------------------------


@dataclass
class PlatformComparison:
    """Common projection of one platform aggregate. Derived, never stored."""

    platform: Platform
    platform_name: str
    total_views: int = 0
    total_reach: int = 0
    total_engagement: int = 0
    engagement_rate: float = 0.0
    followers_growth: int = 0
    total_posts: int = 0
    avg_views_per_post: float = 0.0
    total_saves: int = 0
