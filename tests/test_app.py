"""Tests for the HTTP API."""

from __future__ import annotations

import pytest
from fastapi import testclient

from xereta import __version__, app
from xereta.models import analysis
from xereta.pipeline import analysis as analysis_pipeline


@pytest.fixture()
def client() -> testclient.TestClient:
    return testclient.TestClient(app.app)


class TestHealth:
    def test_ok(self, client: testclient.TestClient) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}


class TestScore:
    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com/file", "chrome-extension://abc/x.html"])
    def test_rejects_non_web_urls(self, client: testclient.TestClient, url: str) -> None:
        assert client.get("/api/score", params={"url": url}).status_code == 400

    def test_missing_url(self, client: testclient.TestClient) -> None:
        assert client.get("/api/score").status_code == 422

    def test_returns_camel_case_report(self, client: testclient.TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_analyze(url: str) -> analysis.PrivacyReport:
            bundle = analysis.ObservationBundle(local_storage_usage=2048, commonly_blocked_domains={"x.com"})
            return analysis_pipeline.build_report(url, bundle)

        monkeypatch.setattr(analysis_pipeline, "analyze_url", fake_analyze)
        response = client.get("/api/score", params={"url": "https://example.com/"})
        assert response.status_code == 200
        body = response.json()
        assert body["url"] == "https://example.com/"
        assert body["score"]["total"] == 1
        assert body["observations"]["localStorageUsage"] == 2048
        assert "commonlyBlockedDomains" not in body["observations"]

    def test_load_failure_is_bad_gateway(self, client: testclient.TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
        async def failing(url: str) -> analysis.PrivacyReport:
            raise analysis_pipeline.AnalysisError(f"Could not load {url}")

        monkeypatch.setattr(analysis_pipeline, "analyze_url", failing)
        response = client.get("/api/score", params={"url": "https://down.example/"})
        assert response.status_code == 502
        assert response.json()["detail"] == "Could not load https://down.example/"
