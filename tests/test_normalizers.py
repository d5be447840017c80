"""Tests for the per-platform row normalizers."""

import pytest

from social_analytics import instagram, tiktok, youtube
from social_analytics.aggregates import (
    ActivityPoint,
    BreakdownPoint,
    CountryRecord,
    DeviceTypeRecord,
    MetricPoint,
    TikTokDemographic,
)
from social_analytics.coercion import CoercionTally


# ---------------------------------------------------------------------------
# YouTube
# ---------------------------------------------------------------------------


class TestYouTubeVideos:
    def test_total_row_and_missing_ids_dropped(self):
        rows = [
            {"conteudo": "Total", "visualizacoes": "300"},
            {"conteudo": None, "visualizacoes": "1"},
            {"conteudo": "abc", "titulo do video": "Hi", "visualizacoes": "200",
             "duracao": "61", "marcacoes \"gostei\"": "7"},
        ]
        videos = youtube.normalize_videos(rows)
        assert len(videos) == 1
        video = videos[0]
        assert video.content_id == "abc"
        assert video.title == "Hi"
        assert video.views == 200
        assert video.duration_seconds == 61
        assert video.likes == 7

    def test_absent_columns_keep_defaults_and_bad_cells_are_tallied(self):
        tally = CoercionTally()
        rows = [{"id do conteudo": "x", "visualizacoes": "n/a", "tempo de exibicao (horas)": "1,5"}]
        video = youtube.normalize_videos(rows, tally)[0]
        assert video.views == 0
        assert video.watch_time_hours == 1.5
        assert video.comments == 0
        assert tally.defaulted == 1


class TestYouTubeBreakdowns:
    def test_countries_use_code_when_name_missing(self):
        rows = [
            {"pais": "Total", "visualizacoes": "10"},
            {"pais": "BR", "visualizacoes": "8"},
        ]
        assert youtube.normalize_countries(rows) == [CountryRecord(category="BR", name="BR", views=8)]

    def test_cities_default_name(self):
        rows = [{"cidades": "0x123", "visualizacoes intencionais": "4"}]
        city = youtube.normalize_cities(rows)[0]
        assert city.category == "0x123"
        assert city.name == "Unknown"
        assert city.engaged_views == 4

    def test_device_types(self):
        rows = [
            {"tipo de dispositivo": "Total", "visualizacoes": "10"},
            {"tipo de dispositivo": "Celular", "visualizacoes": "6",
             "duracao media da visualizacao": "0:01:05"},
        ]
        assert youtube.normalize_device_types(rows) == [
            DeviceTypeRecord(category="Celular", views=6, avg_view_duration_seconds=65)
        ]

    def test_audience_behavior_alternate_column(self):
        rows = [{"comportamento de visualizacao": "Casual", "visualizacoes": "3"}]
        records = youtube.normalize_audience_behavior(rows)
        assert records[0].category == "Casual"

    def test_demographics_kind(self):
        rows = [
            {"genero do espectador": "Feminino", "visualizacoes (%)": "55,5"},
            {"genero do espectador": "Total", "visualizacoes (%)": "100"},
        ]
        records = youtube.normalize_demographics(rows, "gender")
        assert len(records) == 1
        assert records[0].kind == "gender"
        assert records[0].views_pct == 55.5

    def test_breakdown_series(self):
        rows = [
            {"data": "2024-01-01", "tipo de dispositivo": "Celular", "visualizacoes intencionais": "5"},
            {"data": None, "tipo de dispositivo": "Celular", "visualizacoes intencionais": "9"},
            {"data": "2024-01-01", "tipo de dispositivo": "Total", "visualizacoes intencionais": "5"},
        ]
        points = youtube.normalize_breakdown_series(rows, youtube.BREAKDOWN_COLUMNS["device_types"])
        assert points == [BreakdownPoint(date="2024-01-01", category="Celular", engaged_views=5)]


# ---------------------------------------------------------------------------
# Instagram
# ---------------------------------------------------------------------------


class TestInstagramSeries:
    def test_primary_and_valor_columns(self):
        rows = [
            {"data": "2024-01-01", "primary": "10"},
            {"data": "2024-01-02", "valor": "5"},
            {"data": None, "primary": "99"},
        ]
        assert instagram.normalize_metric_series(rows) == [
            MetricPoint(date="2024-01-01", value=10),
            MetricPoint(date="2024-01-02", value=5),
        ]

    def test_rows_without_value_column_skipped(self):
        assert instagram.normalize_metric_series([{"data": "2024-01-01", "other": "1"}]) == []


class TestInstagramPosts:
    def test_identified_by_id_or_permalink(self):
        rows = [
            {"identificacao do post": "1", "visualizacoes": "10", "salvamentos": "2"},
            {"link permanente": "https://instagram.com/p/x", "tipo de post": "Reel"},
            {"descricao": "orphan"},
        ]
        posts = instagram.normalize_posts(rows)
        assert [p.post_id for p in posts] == ["1", ""]
        assert posts[0].post_type == "Unknown"
        assert posts[0].saves == 2
        assert posts[1].post_type == "Reel"
        assert posts[1].permalink == "https://instagram.com/p/x"

    def test_looks_like_post_export(self):
        assert instagram.looks_like_post_export("Identificação do post,Conta\n")
        assert instagram.looks_like_post_export("x,Link permanente\n")
        assert not instagram.looks_like_post_export("Data,Primary\n")


# ---------------------------------------------------------------------------
# TikTok
# ---------------------------------------------------------------------------


class TestTikTok:
    def test_overview_series(self):
        rows = [
            {"date": "January 1", "video views": "10", "likes": "2"},
            {"date": None, "video views": "99"},
        ]
        overview = tiktok.normalize_overview(rows)
        assert overview.video_views == [MetricPoint(date="January 1", value=10)]
        assert overview.likes == [MetricPoint(date="January 1", value=2)]
        assert overview.shares == []

    def test_posts_need_a_title(self):
        rows = [
            {"video title": "Dance", "video link": "https://t/1", "time": "2024-01-01", "total views": "5"},
            {"video title": None, "video link": "https://t/2"},
        ]
        posts = tiktok.normalize_posts(rows)
        assert len(posts) == 1
        assert posts[0].post_id == "https://t/1"
        assert posts[0].date == "2024-01-01"
        assert posts[0].views == 5

    def test_distribution_fraction_and_percent(self):
        rows = [
            {"gender": "Female", "distribution": "0.25"},
            {"gender": "Male", "distribution": "75%"},
            {"gender": "Other", "distribution": None},
        ]
        assert tiktok.normalize_gender(rows) == [
            TikTokDemographic(category="Female", percentage=25.0),
            TikTokDemographic(category="Male", percentage=75.0),
        ]

    def test_territories(self):
        rows = [{"top territories": "BR", "distribution": "0.5"}]
        assert tiktok.normalize_territories(rows)[0].percentage == pytest.approx(50)

    def test_activity(self):
        rows = [{"hour": "13", "active followers": "40"}, {"hour": None}]
        assert tiktok.normalize_activity(rows) == [ActivityPoint(hour=13, value=40)]

    def test_follower_history(self):
        rows = [
            {"date": "2024-01-01", "difference in followers from previous day": "3"},
            {"date": "2024-01-02", "followers": "100"},
        ]
        assert tiktok.normalize_follower_history(rows) == [MetricPoint(date="2024-01-01", value=3)]
