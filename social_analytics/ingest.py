"""Analytics archive import pipeline.

Opens a ZIP of exported CSV reports, routes each entry to the normalizer for
its report kind, and assembles one platform aggregate.

Routing is by entry path. Paths are compared lowercased and without accents
against an ordered route table per platform; the first matching route wins.

  Instagram  "visualizacoes", "visitas", "seguidores", "alcance", "impressoes",
             "interacoes", "cliques" -> daily metric series
             "publico" / "audience"  -> section parser (audience.py)
             anything else           -> kept only if it parses as a post export
  YouTube    ".../Dados da tabela.csv"   -> breakdown tables
             ".../Dados do gráfico.csv"  -> per-category daily series
  TikTok     Overview, Content, FollowerGender, FollowerActivity,
             FollowerHistory, FollowerTopTerritories
"""

import codecs
import io
import logging
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from social_analytics import instagram, tiktok, youtube
from social_analytics.aggregates import (
    DATA_TYPES,
    InstagramData,
    Platform,
    PlatformData,
    TikTokData,
    YouTubeData,
)
from social_analytics.audience import parse_audience
from social_analytics.coercion import CoercionTally
from social_analytics.config import settings
from social_analytics.tabular import fold_text, parse_table

logger = logging.getLogger(__name__)

CSV_SUFFIX = ".csv"
RESOURCE_FORK_PREFIX = "__macosx/"

YOUTUBE_TABLE_MARKER = "dados da tabela"
YOUTUBE_CHART_MARKER = "dados do grafico"


class IngestError(Exception):
    """Raised when an archive cannot be imported."""


class ArchiveTooLargeError(IngestError):
    """Raised when the payload exceeds the configured upload limit."""


@dataclass
class AudienceDetails:
    """What the audience section parser found in the "Público" export."""

    sections_found: dict[str, bool]
    item_counts: dict[str, int]
    errors: list[str] = field(default_factory=list)
    unpaired_headers: list[list[str]] = field(default_factory=list)
    file_preview: str = ""


@dataclass
class ProcessedFile:
    path: str
    route: str
    records: int


@dataclass
class ImportDiagnostics:
    """Report of one import, returned next to the aggregate."""

    platform: str
    timestamp: str
    processed_files: list[ProcessedFile] = field(default_factory=list)
    unrecognized_files: list[str] = field(default_factory=list)
    audience: AudienceDetails | None = None
    defaulted_fields: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def files_recognized(self) -> int:
        return len(self.processed_files)


@dataclass
class ImportResult:
    data: PlatformData
    diagnostics: ImportDiagnostics


@dataclass
class _ImportContext:
    data: PlatformData
    tally: CoercionTally
    diagnostics: ImportDiagnostics


# A handler stores what it parsed on the context and returns the record
# count, or None to decline the entry.
Handler = Callable[[_ImportContext, str], "int | None"]


@dataclass(frozen=True)
class Route:
    label: str
    predicate: Callable[[str], bool]
    handler: Handler

    def matches(self, folded_path: str) -> bool:
        return self.predicate(folded_path)


# ---------------------------------------------------------------------------
# Validation and decoding
# ---------------------------------------------------------------------------


def validate_archive(payload: bytes) -> None:
    """Validate raw upload bytes before opening them.

    Raises:
        ArchiveTooLargeError: If the payload exceeds ``max_upload_size_mb``.
        IngestError: If the payload is empty or not a ZIP archive.
    """
    if not payload:
        raise IngestError("Uploaded file is empty.")

    if len(payload) > settings.max_upload_bytes:
        raise ArchiveTooLargeError(
            f"File exceeds maximum size of {settings.max_upload_size_mb} MB."
        )

    if not zipfile.is_zipfile(io.BytesIO(payload)):
        raise IngestError("Uploaded file is not a ZIP archive.")


def decode_entry(raw: bytes) -> str:
    """Decode CSV bytes whose encoding varies between export tools.

    A byte-order mark decides first. Otherwise strict UTF-8 is tried, then
    Windows-1252. Text that still shows replacement or NUL characters is
    retried as BOM-less UTF-16LE, which some exporters emit.
    """
    if raw.startswith(codecs.BOM_UTF16_LE):
        return raw[len(codecs.BOM_UTF16_LE):].decode("utf-16-le", errors="replace")
    if raw.startswith(codecs.BOM_UTF16_BE):
        return raw[len(codecs.BOM_UTF16_BE):].decode("utf-16-be", errors="replace")
    if raw.startswith(codecs.BOM_UTF8):
        return raw[len(codecs.BOM_UTF8):].decode("utf-8", errors="replace")

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        text = raw.decode("cp1252", errors="replace")

    if "\ufffd" in text or "\x00" in text:
        alternative = raw.decode("utf-16-le", errors="replace")
        if "\ufffd" not in alternative and "\x00" not in alternative:
            return alternative
    return text


def _rows(text: str) -> list[dict]:
    # Text mode keeps long numeric ids and leading zeros intact.
    return parse_table(text, normalize_headers=True, dynamic_typing=False)


def _store(ctx: _ImportContext, attribute: str, records: list, label: str) -> int:
    """Set a (possibly dotted) list attribute on the aggregate."""
    target = ctx.data
    *parents, leaf = attribute.split(".")
    for parent in parents:
        target = getattr(target, parent)
    if getattr(target, leaf):
        ctx.diagnostics.warnings.append(f"{label}: replaced data from an earlier file")
    setattr(target, leaf, records)
    return len(records)


# ---------------------------------------------------------------------------
# Instagram
# ---------------------------------------------------------------------------


def _instagram_series(attribute: str, label: str) -> Handler:
    def handler(ctx: _ImportContext, text: str) -> int:
        points = instagram.normalize_metric_series(_rows(text), ctx.tally)
        return _store(ctx, attribute, points, label)

    return handler


def _instagram_audience(ctx: _ImportContext, text: str) -> int:
    parsed = parse_audience(text)
    data: InstagramData = ctx.data
    data.audience_age_gender = parsed.age_gender
    data.audience_cities = parsed.cities
    data.audience_countries = parsed.countries
    data.audience_pages = parsed.pages
    ctx.diagnostics.audience = AudienceDetails(
        sections_found=dict(parsed.sections_found),
        item_counts=parsed.item_counts,
        errors=list(parsed.errors),
        unpaired_headers=[list(h) for h in parsed.unpaired_headers],
        file_preview=text[: settings.import_preview_chars],
    )
    return sum(parsed.item_counts.values())


def _instagram_posts(ctx: _ImportContext, text: str) -> int | None:
    if not instagram.looks_like_post_export(text):
        return None
    posts = instagram.normalize_posts(_rows(text), ctx.tally)
    if not posts:
        return None
    data: InstagramData = ctx.data
    data.posts.extend(posts)
    return len(posts)


def _contains(*needles: str) -> Callable[[str], bool]:
    return lambda path: any(needle in path for needle in needles)


INSTAGRAM_ROUTES: list[Route] = [
    Route("views", _contains("visualizacoes"), _instagram_series("views", "views")),
    Route("profile_visits", _contains("visitas"), _instagram_series("profile_visits", "profile_visits")),
    Route("followers", _contains("seguidores"), _instagram_series("followers", "followers")),
    Route("reach", _contains("alcance"), _instagram_series("reach", "reach")),
    Route("impressions", _contains("impressoes"), _instagram_series("impressions", "impressions")),
    Route("interactions", _contains("interacoes"), _instagram_series("interactions", "interactions")),
    Route("link_clicks", _contains("cliques"), _instagram_series("link_clicks", "link_clicks")),
    Route("audience", _contains("publico", "audience"), _instagram_audience),
    Route("posts", lambda path: True, _instagram_posts),
]


# ---------------------------------------------------------------------------
# YouTube
# ---------------------------------------------------------------------------


def _youtube_table(attribute: str, normalize: Callable) -> Handler:
    def handler(ctx: _ImportContext, text: str) -> int:
        return _store(ctx, attribute, normalize(_rows(text), ctx.tally), attribute)

    return handler


def _youtube_demographics(kind: str) -> Handler:
    def handler(ctx: _ImportContext, text: str) -> int:
        data: YouTubeData = ctx.data
        records = youtube.normalize_demographics(_rows(text), kind, ctx.tally)
        # Age and gender share one list; replace only this kind.
        data.demographics = [d for d in data.demographics if d.kind != kind] + records
        return len(records)

    return handler


def _youtube_series(attribute: str, columns: tuple[str, ...]) -> Handler:
    def handler(ctx: _ImportContext, text: str) -> int:
        points = youtube.normalize_breakdown_series(_rows(text), columns, ctx.tally)
        return _store(ctx, attribute, points, attribute)

    return handler


def _table(*needles: str) -> Callable[[str], bool]:
    return lambda path: YOUTUBE_TABLE_MARKER in path and any(n in path for n in needles)


def _chart(*needles: str) -> Callable[[str], bool]:
    return lambda path: YOUTUBE_CHART_MARKER in path and any(n in path for n in needles)


# "tipo de conteudo" must be tested before the bare "conteudo" video table.
YOUTUBE_ROUTES: list[Route] = [
    Route("content_types", _table("tipo de conteudo"),
          _youtube_table("content_types", youtube.normalize_content_types)),
    Route("videos", _table("conteudo"), _youtube_table("videos", youtube.normalize_videos)),
    Route("cities", _table("cidades"), _youtube_table("cities", youtube.normalize_cities)),
    Route("countries", _table("pais"), _youtube_table("countries", youtube.normalize_countries)),
    Route("traffic_sources", _table("origem do trafego"),
          _youtube_table("traffic_sources", youtube.normalize_traffic_sources)),
    Route("age", _table("idade do espectador"), _youtube_demographics("age")),
    Route("gender", _table("genero"), _youtube_demographics("gender")),
    Route("operating_systems", _table("sistema operacional"),
          _youtube_table("operating_systems", youtube.normalize_operating_systems)),
    Route("device_types", _table("tipo de dispositivo"),
          _youtube_table("device_types", youtube.normalize_device_types)),
    Route("subscription_statuses", _table("status da inscricao"),
          _youtube_table("subscription_statuses", youtube.normalize_subscription_status)),
    Route("subscription_origins", _table("origem da inscricao"),
          _youtube_table("subscription_origins", youtube.normalize_subscription_origin)),
    Route("new_recurrent", _table("espectadores novos e recorrentes"),
          _youtube_table("new_recurrent", youtube.normalize_new_recurrent)),
    Route("audience_behaviors", _table("comportamento de visualizacao"),
          _youtube_table("audience_behaviors", youtube.normalize_audience_behavior)),
    Route("device_type_series", _chart("tipo de dispositivo"),
          _youtube_series("device_type_series", youtube.BREAKDOWN_COLUMNS["device_types"])),
    Route("operating_system_series", _chart("sistema operacional"),
          _youtube_series("operating_system_series", youtube.BREAKDOWN_COLUMNS["operating_systems"])),
    Route("traffic_source_series", _chart("origem do trafego"),
          _youtube_series("traffic_source_series", youtube.BREAKDOWN_COLUMNS["traffic_sources"])),
    Route("country_series", _chart("pais"),
          _youtube_series("country_series", youtube.COUNTRY_COLUMNS)),
    Route("city_series", _chart("cidades"),
          _youtube_series("city_series", youtube.CITY_COLUMNS)),
]


# ---------------------------------------------------------------------------
# TikTok
# ---------------------------------------------------------------------------


def _tiktok_overview(ctx: _ImportContext, text: str) -> int:
    data: TikTokData = ctx.data
    overview = tiktok.normalize_overview(_rows(text), ctx.tally)
    # Followers come from the follower history export, not the overview.
    overview.followers = data.overview.followers
    data.overview = overview
    return sum(len(points) for name, points in overview.series().items() if name != "followers")


def _tiktok_table(attribute: str, normalize: Callable) -> Handler:
    def handler(ctx: _ImportContext, text: str) -> int:
        return _store(ctx, attribute, normalize(_rows(text), ctx.tally), attribute)

    return handler


def _follower(*needles: str) -> Callable[[str], bool]:
    return lambda path: "follower" in path and any(n in path for n in needles)


TIKTOK_ROUTES: list[Route] = [
    Route("overview", _contains("overview"), _tiktok_overview),
    Route("posts", _contains("content", "video"), _tiktok_table("posts", tiktok.normalize_posts)),
    Route("gender", _follower("gender"), _tiktok_table("audience.gender", tiktok.normalize_gender)),
    Route("activity", _follower("activity"),
          _tiktok_table("audience.activity", tiktok.normalize_activity)),
    Route("followers", _follower("history"),
          _tiktok_table("overview.followers", tiktok.normalize_follower_history)),
    Route("territories", _follower("territor", "top"),
          _tiktok_table("audience.territories", tiktok.normalize_territories)),
]


ROUTES: dict[Platform, list[Route]] = {
    Platform.INSTAGRAM: INSTAGRAM_ROUTES,
    Platform.YOUTUBE: YOUTUBE_ROUTES,
    Platform.TIKTOK: TIKTOK_ROUTES,
}


def route_for(platform: Platform, path: str) -> Route | None:
    """First route of ``platform`` whose predicate accepts ``path``."""
    folded = fold_text(path)
    for route in ROUTES[platform]:
        if route.matches(folded):
            return route
    return None


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def entry_name(info: zipfile.ZipInfo) -> str:
    """Entry path as the exporter wrote it.

    zipfile decodes names as CP437 unless the UTF-8 flag is set, but most
    exporters write UTF-8 names without setting it.
    """
    if info.flag_bits & 0x800:
        return info.filename
    try:
        return info.filename.encode("cp437").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return info.filename


def _csv_entries(archive: zipfile.ZipFile) -> list[zipfile.ZipInfo]:
    entries = []
    for info in archive.infolist():
        name = info.filename.lower()
        if info.is_dir() or name.startswith(RESOURCE_FORK_PREFIX) or "/" + RESOURCE_FORK_PREFIX in name:
            continue
        if not name.endswith(CSV_SUFFIX):
            continue
        entries.append(info)
    return entries


def import_archive(payload: bytes, platform: "Platform | str") -> ImportResult:
    """Import one exported analytics archive.

    Args:
        payload: Raw ZIP bytes.
        platform: Which platform exported the archive.

    Returns:
        The assembled aggregate (summary recomputed) and its diagnostics.

    Raises:
        IngestError: If the payload is invalid, the platform unknown, or no
            entry of the archive was recognized.
    """
    try:
        platform = Platform.parse(platform)
    except ValueError as exc:
        raise IngestError(str(exc)) from exc

    validate_archive(payload)

    ctx = _ImportContext(
        data=DATA_TYPES[platform](),
        tally=CoercionTally(),
        diagnostics=ImportDiagnostics(
            platform=platform.value,
            timestamp=datetime.now(timezone.utc).isoformat(),
        ),
    )

    try:
        archive = zipfile.ZipFile(io.BytesIO(payload))
    except zipfile.BadZipFile as exc:
        raise IngestError(f"Could not open ZIP archive: {exc}") from exc

    with archive:
        for info in _csv_entries(archive):
            path = entry_name(info)
            route = route_for(platform, path)
            if route is None:
                ctx.diagnostics.unrecognized_files.append(path)
                continue

            try:
                text = decode_entry(archive.read(info))
            except (zipfile.BadZipFile, OSError) as exc:
                logger.warning("Could not read archive entry '%s': %s", path, exc)
                ctx.diagnostics.warnings.append(f"{path}: unreadable entry ({exc})")
                continue

            records = route.handler(ctx, text)
            if records is None:
                ctx.diagnostics.unrecognized_files.append(path)
                continue

            logger.info("Routed '%s' -> %s (%d records)", path, route.label, records)
            ctx.diagnostics.processed_files.append(
                ProcessedFile(path=path, route=route.label, records=records)
            )

    if not ctx.diagnostics.processed_files:
        raise IngestError(
            f"No valid {platform.display_name} files found in the archive. "
            "Check that you uploaded the ZIP exported by the platform."
        )

    ctx.data.refresh_summary()
    ctx.diagnostics.defaulted_fields = ctx.tally.defaulted

    logger.info(
        "Imported %s archive: %d files recognized, %d unrecognized, %d defaulted fields",
        platform.value,
        len(ctx.diagnostics.processed_files),
        len(ctx.diagnostics.unrecognized_files),
        ctx.tally.defaulted,
    )
    return ImportResult(data=ctx.data, diagnostics=ctx.diagnostics)
