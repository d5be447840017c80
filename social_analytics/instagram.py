"""Normalizers for Instagram/Meta Insights CSV exports."""

from typing import Any, Iterable

from social_analytics.aggregates import InstagramPost, MetricPoint
from social_analytics.coercion import CoercionTally, RowReader

Row = dict[str, Any]

VALUE_COLUMNS = ("primary", "valor")

POST_ID_COLUMN = "identificacao do post"
PERMALINK_COLUMN = "link permanente"

UNKNOWN_POST_TYPE = "Unknown"


def normalize_metric_series(
    rows: Iterable[Row], tally: CoercionTally | None = None
) -> list[MetricPoint]:
    """Daily metric export: a ``Data`` column and a ``Primary`` (or ``Valor``) column."""
    tally = tally if tally is not None else CoercionTally()
    points: list[MetricPoint] = []
    for row in rows:
        reader = RowReader(row, tally)
        day = reader.text("data")
        if not day or not any(column in row for column in VALUE_COLUMNS):
            continue
        points.append(MetricPoint(date=day, value=reader.integer(*VALUE_COLUMNS)))
    return points


def normalize_posts(rows: Iterable[Row], tally: CoercionTally | None = None) -> list[InstagramPost]:
    """Content export: one row per post or reel, identified by id or permalink."""
    tally = tally if tally is not None else CoercionTally()
    posts: list[InstagramPost] = []
    for row in rows:
        reader = RowReader(row, tally)
        post_id = reader.text(POST_ID_COLUMN)
        permalink = reader.text(PERMALINK_COLUMN)
        if not (post_id or permalink):
            continue
        posts.append(
            InstagramPost(
                post_id=post_id,
                date=reader.text("horario de publicacao", "data"),
                description=reader.text("descricao"),
                post_type=reader.text("tipo de post", default=UNKNOWN_POST_TYPE),
                permalink=permalink,
                views=reader.integer("visualizacoes"),
                reach=reader.integer("alcance"),
                likes=reader.integer("curtidas"),
                comments=reader.integer("comentarios"),
                shares=reader.integer("compartilhamentos"),
                saves=reader.integer("salvamentos"),
                duration_seconds=reader.integer("duracao (s)"),
                follows=reader.integer("seguimentos"),
                account_name=reader.text("nome da conta"),
                account_username=reader.text("nome de usuario da conta"),
            )
        )
    return posts


def looks_like_post_export(text: str) -> bool:
    """Whether a file that matched no known report name holds post rows."""
    return (
        "Identificação do post" in text
        or "Link permanente" in text
        or POST_ID_COLUMN in text
    )
