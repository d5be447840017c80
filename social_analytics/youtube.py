"""Normalizers for YouTube Studio "Dados da tabela" and "Dados do gráfico" exports.

Rows arrive keyed by normalized headers (see ``tabular.normalize_header``).
Table exports open with a synthetic "Total" row, which is dropped along with
any row missing its identifying column.
"""

from typing import Any, Iterable

from social_analytics.aggregates import (
    AudienceBehaviorRecord,
    BreakdownPoint,
    BreakdownRecord,
    CityRecord,
    ContentTypeRecord,
    CountryRecord,
    DemographicRecord,
    DeviceTypeRecord,
    NewRecurrentRecord,
    OperatingSystemRecord,
    SubscriptionOriginRecord,
    SubscriptionStatusRecord,
    TrafficSourceRecord,
    VideoRecord,
)
from social_analytics.coercion import CoercionTally, RowReader
from social_analytics.tabular import fold_text

Row = dict[str, Any]

_LIKES = (
    'marcacoes "gostei"',
    "marcacoes gostei",
    'marcacoes ""gostei""',
    "marcacoes “gostei”",
)
_DISLIKES = (
    'marcacoes "nao gostei"',
    "marcacoes nao gostei",
    'marcacoes ""nao gostei""',
    "marcacoes “nao gostei”",
)
_LIKES_VS_DISLIKES = (
    '"gostei" (vs. "nao gostei") (%)',
    "marcacoes gostei vs. marcacoes nao gostei (%)",
    '"""gostei"" (vs. ""nao gostei"") (%)"',
    '""gostei"" (vs. ""nao gostei"") (%)',
)

# Field name -> (RowReader method, header spellings)
METRIC_COLUMNS: dict[str, tuple[str, tuple[str, ...]]] = {
    "engaged_views": ("integer", ("visualizacoes intencionais",)),
    "views": ("integer", ("visualizacoes",)),
    "watch_time_hours": ("number", ("tempo de exibicao (horas)",)),
    "avg_view_duration_seconds": ("duration", ("duracao media da visualizacao",)),
    "avg_percentage_viewed": ("number", ("porcentagem visualizada media (%)",)),
    "stayed_to_watch_pct": ("number", ("continuaram assistindo (%)",)),
    "unique_viewers": ("integer", ("espectadores unicos",)),
    "avg_views_per_viewer": ("number", ("media de visualizacoes por espectador",)),
    "new_viewers": ("integer", ("novos espectadores",)),
    "returning_viewers": ("integer", ("espectadores recorrentes",)),
    "casual_viewers": ("integer", ("espectadores casuais",)),
    "hypes": ("integer", ("hypes",)),
    "hype_points": ("integer", ("pontos de hype",)),
    "subscribers": ("integer", ("inscritos",)),
    "subscribers_gained": ("integer", ("inscricoes obtidas",)),
    "subscribers_lost": ("integer", ("inscricoes perdidas",)),
    "likes": ("integer", _LIKES),
    "dislikes": ("integer", _DISLIKES),
    "likes_vs_dislikes_pct": ("number", _LIKES_VS_DISLIKES),
    "shares": ("integer", ("compartilhamentos",)),
    "comments": ("integer", ("comentarios adicionados",)),
    "impressions": ("integer", ("impressoes",)),
    "impressions_ctr": ("number", ("taxa de cliques de impressoes (%)",)),
    "videos_published": ("integer", ("videos publicados",)),
}

# Identifying column of each single-category breakdown table
BREAKDOWN_COLUMNS: dict[str, tuple[str, ...]] = {
    "traffic_sources": ("origem do trafego",),
    "new_recurrent": ("espectadores novos e recorrentes",),
    "subscription_origins": ("origem da inscricao",),
    "subscription_statuses": ("status da inscricao",),
    "content_types": ("tipo de conteudo",),
    "device_types": ("tipo de dispositivo",),
    "operating_systems": ("sistema operacional",),
    "audience_behaviors": (
        "publico por comportamento de visualizacao",
        "comportamento de visualizacao",
    ),
}

COUNTRY_COLUMNS = ("pais", "codigo do pais")
CITY_COLUMNS = ("cidades", "cidade")


def is_total_label(value: str) -> bool:
    return fold_text(value).strip() == "total"


def read_metrics(reader: RowReader) -> dict[str, Any]:
    """Read every metric column present in the row.

    Columns the export does not have are left out so the record keeps its
    dataclass default.
    """
    values: dict[str, Any] = {}
    for name, (method, aliases) in METRIC_COLUMNS.items():
        if not reader.has(*aliases):
            continue
        values[name] = getattr(reader, method)(*aliases)
    return values


def _readers(rows: Iterable[Row], tally: CoercionTally | None) -> Iterable[RowReader]:
    tally = tally if tally is not None else CoercionTally()
    for row in rows:
        yield RowReader(row, tally)


def normalize_videos(rows: Iterable[Row], tally: CoercionTally | None = None) -> list[VideoRecord]:
    videos: list[VideoRecord] = []
    for reader in _readers(rows, tally):
        content_id = reader.text("id do conteudo", "video", "conteudo")
        if not content_id or is_total_label(content_id):
            continue
        videos.append(
            VideoRecord(
                content_id=content_id,
                title=reader.text("titulo do video"),
                published_at=reader.text("horario de publicacao", "horario de publicacao do video"),
                duration_seconds=reader.integer("duracao do video (segundos)", "duracao"),
                **read_metrics(reader),
            )
        )
    return videos


def normalize_countries(rows: Iterable[Row], tally: CoercionTally | None = None) -> list[CountryRecord]:
    countries: list[CountryRecord] = []
    for reader in _readers(rows, tally):
        code = reader.text(*COUNTRY_COLUMNS)
        if not code or is_total_label(code):
            continue
        countries.append(
            CountryRecord(
                category=code,
                name=reader.text("nome do pais", "pais", default=code),
                **read_metrics(reader),
            )
        )
    return countries


def normalize_cities(rows: Iterable[Row], tally: CoercionTally | None = None) -> list[CityRecord]:
    cities: list[CityRecord] = []
    for reader in _readers(rows, tally):
        city_id = reader.text(*CITY_COLUMNS)
        name = reader.text("nome da cidade", "cidade")
        if not (city_id or name) or is_total_label(city_id or name):
            continue
        cities.append(
            CityRecord(
                category=city_id,
                name=name or "Unknown",
                **read_metrics(reader),
            )
        )
    return cities


def normalize_demographics(
    rows: Iterable[Row], kind: str, tally: CoercionTally | None = None
) -> list[DemographicRecord]:
    """Viewer age or gender table. ``kind`` is stored on each record."""
    records: list[DemographicRecord] = []
    for reader in _readers(rows, tally):
        category = reader.text("genero do espectador", "idade do espectador")
        if not category or is_total_label(category):
            continue
        records.append(
            DemographicRecord(
                kind=kind,
                category=category,
                views_pct=reader.number("visualizacoes (%)"),
                watch_time_pct=reader.number("tempo de exibicao (horas) (%)"),
                engaged_views_pct=reader.number("visualizacoes intencionais (%)"),
                stayed_to_watch_pct=reader.number("continuaram assistindo (%)"),
                avg_percentage_viewed=reader.number("porcentagem visualizada media (%)"),
                avg_view_duration_seconds=reader.duration("duracao media da visualizacao"),
            )
        )
    return records


def _normalize_breakdown(
    rows: Iterable[Row],
    record_type: type[BreakdownRecord],
    columns: tuple[str, ...],
    tally: CoercionTally | None,
) -> list:
    records = []
    for reader in _readers(rows, tally):
        category = reader.text(*columns)
        if not category or is_total_label(category):
            continue
        records.append(record_type(category=category, **read_metrics(reader)))
    return records


def normalize_traffic_sources(rows, tally=None) -> list[TrafficSourceRecord]:
    return _normalize_breakdown(rows, TrafficSourceRecord, BREAKDOWN_COLUMNS["traffic_sources"], tally)


def normalize_new_recurrent(rows, tally=None) -> list[NewRecurrentRecord]:
    return _normalize_breakdown(rows, NewRecurrentRecord, BREAKDOWN_COLUMNS["new_recurrent"], tally)


def normalize_subscription_origin(rows, tally=None) -> list[SubscriptionOriginRecord]:
    return _normalize_breakdown(
        rows, SubscriptionOriginRecord, BREAKDOWN_COLUMNS["subscription_origins"], tally
    )


def normalize_subscription_status(rows, tally=None) -> list[SubscriptionStatusRecord]:
    return _normalize_breakdown(
        rows, SubscriptionStatusRecord, BREAKDOWN_COLUMNS["subscription_statuses"], tally
    )


def normalize_content_types(rows, tally=None) -> list[ContentTypeRecord]:
    return _normalize_breakdown(rows, ContentTypeRecord, BREAKDOWN_COLUMNS["content_types"], tally)


def normalize_device_types(rows, tally=None) -> list[DeviceTypeRecord]:
    return _normalize_breakdown(rows, DeviceTypeRecord, BREAKDOWN_COLUMNS["device_types"], tally)


def normalize_operating_systems(rows, tally=None) -> list[OperatingSystemRecord]:
    return _normalize_breakdown(
        rows, OperatingSystemRecord, BREAKDOWN_COLUMNS["operating_systems"], tally
    )


def normalize_audience_behavior(rows, tally=None) -> list[AudienceBehaviorRecord]:
    return _normalize_breakdown(
        rows, AudienceBehaviorRecord, BREAKDOWN_COLUMNS["audience_behaviors"], tally
    )


def normalize_breakdown_series(
    rows: Iterable[Row],
    category_columns: tuple[str, ...],
    tally: CoercionTally | None = None,
) -> list[BreakdownPoint]:
    """Chart-data export: one row per (date, category) with engaged views."""
    points: list[BreakdownPoint] = []
    for reader in _readers(rows, tally):
        day = reader.text("data")
        category = reader.text(*category_columns)
        if not day or not category or is_total_label(category):
            continue
        points.append(
            BreakdownPoint(
                date=day,
                category=category,
                engaged_views=reader.integer("visualizacoes intencionais"),
            )
        )
    return points
