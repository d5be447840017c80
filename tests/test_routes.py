"""Tests for the HTTP API."""

import json

from social_analytics.config import settings


def _sign_in(client, email="ana@example.com", password="password1") -> dict[str, str]:
    client.post("/auth/sign-up", json={"email": email, "password": password})
    response = client.post("/auth/sign-in", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


def _upload(client, platform, payload, **kwargs):
    return client.post(
        f"/api/import/{platform}",
        files={"file": ("export.zip", payload, "application/zip")},
        **kwargs,
    )


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestImport:
    def test_instagram_import(self, client, instagram_archive):
        response = _upload(client, "instagram", instagram_archive)
        assert response.status_code == 200
        body = response.json()
        assert body["platform"] == "instagram"
        assert body["data"]["summary"]["total_views"] == 300
        assert body["diagnostics"]["files_recognized"] == 4
        assert body["diagnostics"]["audience"]["sections_found"]["age"] is True
        assert body["saved_analysis_id"] is None

    def test_unrecognized_archive_is_400(self, client, make_zip):
        response = _upload(client, "tiktok", make_zip({"random.csv": "a,b\n1,2\n"}))
        assert response.status_code == 400
        assert "No valid TikTok files" in response.json()["detail"]

    def test_not_a_zip_is_400(self, client):
        response = _upload(client, "youtube", b"hello")
        assert response.status_code == 400

    def test_unknown_platform_is_400(self, client, instagram_archive):
        response = _upload(client, "myspace", instagram_archive)
        assert response.status_code == 400

    def test_oversize_is_413(self, client, instagram_archive, monkeypatch):
        monkeypatch.setitem(settings.__dict__, "max_upload_size_mb", 0)
        response = _upload(client, "instagram", instagram_archive)
        assert response.status_code == 413

    def test_save_as_when_signed_in(self, client, tiktok_archive):
        headers = _sign_in(client)
        response = _upload(
            client, "tiktok", tiktok_archive, data={"save_as": "March"}, headers=headers
        )
        assert response.status_code == 200
        saved_id = response.json()["saved_analysis_id"]
        assert saved_id is not None

        listed = client.get("/api/analyses/tiktok", headers=headers).json()
        assert [a["id"] for a in listed] == [saved_id]
        assert listed[0]["name"] == "March"
        assert listed[0]["total_views"] == 1600

    def test_save_as_anonymous_only_warns(self, client, tiktok_archive):
        response = _upload(client, "tiktok", tiktok_archive, data={"save_as": "March"})
        assert response.status_code == 200
        body = response.json()
        assert body["saved_analysis_id"] is None
        assert any("not saved" in w for w in body["diagnostics"]["warnings"])


class TestFilterCompareExport:
    def _instagram(self, client, instagram_archive):
        return _upload(client, "instagram", instagram_archive).json()["data"]

    def test_filter(self, client, instagram_archive):
        data = self._instagram(client, instagram_archive)
        response = client.post("/api/instagram/filter", json={"data": data, "range": "1d"})
        assert response.status_code == 200
        filtered = response.json()["data"]
        assert filtered["summary"]["total_views"] == 300
        explicit = client.post(
            "/api/instagram/filter",
            json={"data": data, "range": {"start": "2024-01-02", "end": "2024-01-02"}},
        ).json()["data"]
        assert explicit["summary"]["total_views"] == 200

    def test_filter_rejects_bad_range_and_data(self, client, instagram_archive):
        data = self._instagram(client, instagram_archive)
        assert client.post("/api/instagram/filter", json={"data": data, "range": "soon"}).status_code == 422
        assert client.post("/api/instagram/filter", json={"data": {"posts": 3}}).status_code == 422
        assert client.post("/api/instagram/filter", json={"range": "7d"}).status_code == 400
        assert client.post("/api/myspace/filter", json={"data": {}}).status_code == 404

    def test_compare(self, client, instagram_archive, tiktok_archive):
        instagram = self._instagram(client, instagram_archive)
        tiktok = _upload(client, "tiktok", tiktok_archive).json()["data"]
        response = client.post("/api/compare", json={"instagram": instagram, "tiktok": tiktok})
        assert response.status_code == 200
        body = response.json()
        assert [p["platform"] for p in body["platforms"]] == ["instagram", "tiktok"]
        assert body["best"]["total_views"] == "TikTok"
        assert body["best"]["total_saves"] == "Instagram"

    def test_compare_nothing(self, client):
        body = client.post("/api/compare", json={}).json()
        assert body["platforms"] == []
        assert body["best"]["total_views"] == ""

    def test_export(self, client, tiktok_archive):
        data = _upload(client, "tiktok", tiktok_archive).json()["data"]
        response = client.post("/api/tiktok/export", json={"data": data})
        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert "tiktok-analytics-" in response.headers["content-disposition"]
        document = json.loads(response.content)
        assert document["network"] == "tiktok"
        assert document["data"] == data

    def test_youtube_insights(self, client, youtube_archive):
        data = _upload(client, "youtube", youtube_archive).json()["data"]
        response = client.post("/api/youtube/insights", json={"data": data})
        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"insights", "top_performers", "under_performers", "top_videos", "trend"}
        assert len(body["top_videos"]) == 2
        assert client.post("/api/youtube/insights", json={}).status_code == 400


class TestAuthRoutes:
    def test_sign_up_conflict_and_validation(self, client):
        ok = client.post("/auth/sign-up", json={"email": "ana@example.com", "password": "password1"})
        assert ok.status_code == 201
        assert ok.json()["user"]["email"] == "ana@example.com"
        again = client.post("/auth/sign-up", json={"email": "ana@example.com", "password": "password1"})
        assert again.status_code == 409
        short = client.post("/auth/sign-up", json={"email": "bia@example.com", "password": "x"})
        assert short.status_code == 400
        missing = client.post("/auth/sign-up", json={"email": "bia@example.com"})
        assert missing.status_code == 400

    def test_sign_in_failure(self, client):
        response = client.post("/auth/sign-in", json={"email": "ghost@example.com", "password": "password1"})
        assert response.status_code == 401

    def test_session_lifecycle(self, client):
        headers = _sign_in(client)
        session = client.get("/auth/session", headers=headers)
        assert session.status_code == 200
        assert session.json()["user"]["email"] == "ana@example.com"

        assert client.post("/auth/sign-out", headers=headers).json() == {"signed_out": True}
        assert client.get("/auth/session", headers=headers).status_code == 401

    def test_session_without_token(self, client):
        assert client.get("/auth/session").status_code == 401


class TestAnalysesRoutes:
    def test_requires_sign_in(self, client):
        assert client.get("/api/analyses/instagram").status_code == 401

    def test_create_list_get(self, client, instagram_archive):
        headers = _sign_in(client)
        data = _upload(client, "instagram", instagram_archive).json()["data"]

        created = client.post(
            "/api/analyses/instagram", json={"name": "Jan", "data": data}, headers=headers
        )
        assert created.status_code == 201
        analysis_id = created.json()["id"]
        assert created.json()["total_views"] == 300

        listed = client.get("/api/analyses/instagram", headers=headers).json()
        assert [a["name"] for a in listed] == ["Jan"]

        loaded = client.get(f"/api/analyses/instagram/{analysis_id}", headers=headers)
        assert loaded.status_code == 200
        assert loaded.json()["data"] == data

    def test_other_users_analysis_is_404(self, client, instagram_archive):
        owner = _sign_in(client)
        data = _upload(client, "instagram", instagram_archive).json()["data"]
        analysis_id = client.post(
            "/api/analyses/instagram", json={"name": "Jan", "data": data}, headers=owner
        ).json()["id"]

        intruder = _sign_in(client, email="bia@example.com")
        response = client.get(f"/api/analyses/instagram/{analysis_id}", headers=intruder)
        assert response.status_code == 404

    def test_create_requires_name(self, client):
        headers = _sign_in(client)
        response = client.post("/api/analyses/tiktok", json={"data": {}}, headers=headers)
        assert response.status_code == 400
