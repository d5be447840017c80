"""Date-range filtering of platform aggregates.

A range is either relative ("7d", "30d", ...), "all", or an explicit
``DateWindow``. Relative windows are anchored to the most recent date found
in the aggregate, not to the wall clock, so an old export still shows its
last N days.

Filtering never mutates its input: it returns a deep copy restricted to the
window, with the summary recomputed.
"""

import copy
import logging
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any, Iterable

from social_analytics.aggregates import (
    BreakdownRecord,
    CityRecord,
    CountryRecord,
    DeviceTypeRecord,
    InstagramData,
    OperatingSystemRecord,
    Platform,
    PlatformData,
    TikTokData,
    TrafficSourceRecord,
    YouTubeData,
)
from social_analytics.tabular import fold_text

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1)

ALL = "all"
RELATIVE_RANGES = ("7d", "14d", "30d", "60d", "90d")
_RELATIVE = re.compile(r"^(\d+)d$")

# First three letters of Portuguese and English month names
_MONTHS = {
    "jan": 1, "fev": 2, "feb": 2, "mar": 3, "abr": 4, "apr": 4,
    "mai": 5, "may": 5, "jun": 6, "jul": 7, "ago": 8, "aug": 8,
    "set": 9, "sep": 9, "out": 10, "oct": 10, "nov": 11, "dez": 12, "dec": 12,
}

_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})(?:[ T,]+(\d{1,2}):(\d{2})(?::(\d{2}))?)?$")
_DAY_NAME = re.compile(r"^(\d{1,2})\s+([a-z]+)(?:\s+(\d{4}))?\b")
_NAME_DAY = re.compile(r"^([a-z]+)\s+(\d{1,2})(?:\s+(\d{4}))?\b")


@dataclass(frozen=True)
class DateWindow:
    """Inclusive window. Bounds are widened to whole days when resolved."""

    start: datetime
    end: datetime


DateRange = str | DateWindow


# ---------------------------------------------------------------------------
# Date parsing
# ---------------------------------------------------------------------------


def _from_iso(text: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(text[:-1] + "+00:00" if text.endswith("Z") else text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _from_slash_date(text: str) -> datetime | None:
    match = _SLASH_DATE.match(text)
    if not match:
        return None
    first, second, year, hour, minute, seconds = (int(g or 0) for g in match.groups())
    # MM/DD/YYYY first, DD/MM/YYYY when the first number cannot be a month
    for month, day in ((first, second), (second, first)):
        try:
            return datetime(year, month, day, hour, minute, seconds)
        except ValueError:
            continue
    return None


def _from_month_name(text: str, today: datetime) -> datetime | None:
    words = fold_text(text).replace(".", " ").replace(",", " ")
    words = " ".join(w for w in words.split() if w != "de")

    match = _DAY_NAME.match(words)
    if match:
        day, name, year = match.groups()
    else:
        match = _NAME_DAY.match(words)
        if not match:
            return None
        name, day, year = match.groups()

    month = _MONTHS.get(name[:3])
    if month is None:
        return None
    try:
        if year:
            return datetime(int(year), month, int(day))
        candidate = datetime(today.year, month, int(day))
        if candidate > today:
            candidate = candidate.replace(year=today.year - 1)
        return candidate
    except ValueError:
        return None


def parse_date(value: Any, today: datetime | None = None) -> datetime:
    """Parse an exported date string; unparseable input gives the Unix epoch.

    Tried in order: ISO 8601, ``MM/DD/YYYY`` or else ``DD/MM/YYYY``
    (optionally with a time), then "5 de jan. de 2024" / "January 5, 2024"
    style month names. Without a year the current year is assumed, or the
    previous one if that date lies in the future.
    """
    if isinstance(value, datetime):
        return value
    if value is None:
        return EPOCH
    text = str(value).strip()
    if not text:
        return EPOCH
    today = today or datetime.now()
    return (
        _from_iso(text)
        or _from_slash_date(text)
        or _from_month_name(text, today)
        or EPOCH
    )


# ---------------------------------------------------------------------------
# Ranges
# ---------------------------------------------------------------------------


def parse_range(value: Any) -> DateRange:
    """Validate a range given as "all", "<N>d", a DateWindow or {start, end}.

    Raises:
        ValueError: If the value is none of these.
    """
    if isinstance(value, DateWindow):
        return value
    if isinstance(value, dict):
        try:
            start, end = value["start"], value["end"]
        except KeyError:
            raise ValueError("Explicit date range needs 'start' and 'end'") from None
        window = DateWindow(start=_as_datetime(start), end=_as_datetime(end))
        if window.start > window.end:
            raise ValueError("Date range start is after its end")
        return window
    text = str(value).strip().lower()
    if text == ALL or _RELATIVE.match(text):
        return text
    raise ValueError(f"Unsupported date range '{value}'")


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = _from_iso(str(value).strip())
    if parsed is None:
        raise ValueError(f"Invalid date '{value}'")
    return parsed


def _start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def _end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max)


def latest_date(dates: Iterable[str], today: datetime | None = None) -> datetime:
    """Most recent parsed date, or now when there are no dates at all."""
    parsed = [parse_date(d, today) for d in dates]
    if not parsed:
        return today or datetime.now()
    return max(parsed)


def resolve_window(date_range: DateRange, latest: datetime) -> DateWindow | None:
    """Concrete whole-day bounds for a range. None means no filtering."""
    if isinstance(date_range, DateWindow):
        return DateWindow(_start_of_day(date_range.start), _end_of_day(date_range.end))
    if date_range == ALL:
        return None
    days = int(_RELATIVE.match(date_range).group(1))
    return DateWindow(_start_of_day(latest - timedelta(days=days)), _end_of_day(latest))


def _keep(window: DateWindow, value: str, today: datetime | None) -> bool:
    return window.start <= parse_date(value, today) <= window.end


# ---------------------------------------------------------------------------
# Per-platform filters
# ---------------------------------------------------------------------------


def filter_instagram(
    data: InstagramData, date_range: Any, today: datetime | None = None
) -> InstagramData:
    date_range = parse_range(date_range)
    result = copy.deepcopy(data)
    if date_range == ALL:
        return result

    dates = [m.date for series in data.metric_series().values() for m in series]
    dates += [p.date for p in data.posts]
    window = resolve_window(date_range, latest_date(dates, today))

    for name, series in result.metric_series().items():
        setattr(result, name, [m for m in series if _keep(window, m.date, today)])
    result.posts = [p for p in result.posts if _keep(window, p.date, today)]
    result.refresh_summary()
    return result


def filter_tiktok(data: TikTokData, date_range: Any, today: datetime | None = None) -> TikTokData:
    date_range = parse_range(date_range)
    result = copy.deepcopy(data)
    if date_range == ALL:
        return result

    dates = [m.date for series in data.overview.series().values() for m in series]
    dates += [p.date for p in data.posts]
    window = resolve_window(date_range, latest_date(dates, today))

    for name, series in result.overview.series().items():
        setattr(result.overview, name, [m for m in series if _keep(window, m.date, today)])
    result.posts = [p for p in result.posts if _keep(window, p.date, today)]
    result.refresh_summary()
    return result


# Breakdown list -> (its chart series, record type). Only these can be
# narrowed to a window; the other YouTube tables have no daily data.
_YOUTUBE_SERIES: dict[str, tuple[str, type[BreakdownRecord]]] = {
    "device_types": ("device_type_series", DeviceTypeRecord),
    "operating_systems": ("operating_system_series", OperatingSystemRecord),
    "traffic_sources": ("traffic_source_series", TrafficSourceRecord),
    "countries": ("country_series", CountryRecord),
    "cities": ("city_series", CityRecord),
}


def aggregate_series(points, record_type: type[BreakdownRecord]) -> list[BreakdownRecord]:
    """Sum engaged views per category.

    Every other metric is left at zero: percentages and averages cannot be
    rebuilt from daily engaged views.
    """
    totals: dict[str, int] = {}
    for point in points:
        totals[point.category] = totals.get(point.category, 0) + point.engaged_views
    records = []
    for category, engaged_views in totals.items():
        record = record_type(category=category, engaged_views=engaged_views)
        if isinstance(record, (CountryRecord, CityRecord)):
            record.name = category
        records.append(record)
    return records


def filter_youtube(data: YouTubeData, date_range: Any, today: datetime | None = None) -> YouTubeData:
    """Filter videos by publish time and rebuild breakdowns from their series.

    A breakdown without chart-series data, or whose series has no point in
    the window, is returned unchanged.
    """
    date_range = parse_range(date_range)
    result = copy.deepcopy(data)
    if date_range == ALL:
        return result

    dates = [v.published_at for v in data.videos]
    for series_name, _ in _YOUTUBE_SERIES.values():
        dates += [p.date for p in getattr(data, series_name)]
    window = resolve_window(date_range, latest_date(dates, today))

    result.videos = [v for v in result.videos if _keep(window, v.published_at, today)]

    for breakdown_name, (series_name, record_type) in _YOUTUBE_SERIES.items():
        points = [p for p in getattr(result, series_name) if _keep(window, p.date, today)]
        setattr(result, series_name, points)
        if not points:
            logger.debug("No %s in window; keeping the unfiltered %s", series_name, breakdown_name)
            continue
        setattr(result, breakdown_name, aggregate_series(points, record_type))

    result.refresh_summary()
    return result


_FILTERS = {
    Platform.YOUTUBE: filter_youtube,
    Platform.INSTAGRAM: filter_instagram,
    Platform.TIKTOK: filter_tiktok,
}


def filter_aggregate(
    platform: "Platform | str",
    data: PlatformData,
    date_range: Any,
    today: datetime | None = None,
) -> PlatformData:
    return _FILTERS[Platform.parse(platform)](data, date_range, today)
