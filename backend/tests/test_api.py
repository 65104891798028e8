"""
Tests for API endpoints.
"""

import pytest
from fastapi import status

from fakes import FakeBrowser, FakeLauncher, build_config, listing_html
from esg_api.main import app, get_scraper_manager
from esg_scrapers import config as site_config
from esg_scrapers.manager import ScraperManager


@pytest.fixture
def fake_sites(monkeypatch):
    """Three sites: one with articles, one with an empty listing, one offline."""
    sites = {
        "good": build_config(key="good", name="Good", listing_url="https://good.example.org/"),
        "empty": build_config(key="empty", name="Empty", listing_url="https://empty.example.org/"),
        "down": build_config(key="down", name="Down", listing_url="https://down.example.org/"),
    }
    monkeypatch.setattr(site_config, "SITES", sites)

    browser = FakeBrowser(
        {
            "https://good.example.org/": listing_html([
                {"title": "Carbon tax passes", "href": "/carbon", "date": "2024-03-01"},
                {"title": "Water rules", "href": "/water"},
            ]),
            "https://empty.example.org/": "<html><body><p>Nothing here</p></body></html>",
        },
        fail_urls=["https://down.example.org/"],
    )
    launcher = FakeLauncher(browser)
    app.dependency_overrides[get_scraper_manager] = lambda: ScraperManager(launcher, static_launcher=launcher)
    yield sites
    app.dependency_overrides.pop(get_scraper_manager, None)


class TestRootEndpoint:
    """Test the root and health endpoints."""

    def test_root_returns_json(self, client):
        """Test that root endpoint returns expected JSON."""
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "ESG Scraper API"
        assert "version" in data

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "ok"}


class TestSitesEndpoint:
    """Test the site listing endpoint."""

    def test_lists_configured_sites(self, client):
        response = client.get("/api/sites")

        assert response.status_code == status.HTTP_200_OK
        keys = [s["key"] for s in response.json()]
        assert "carbonbrief_policy" in keys
        assert "ftc_cases" in keys

    def test_lists_patched_sites(self, client, fake_sites):
        response = client.get("/api/sites")

        assert [s["key"] for s in response.json()] == ["good", "empty", "down"]


class TestScrapeEndpoint:
    """Test the per-site scrape endpoint."""

    def test_unknown_site_404(self, client, fake_sites):
        response = client.get("/api/scrape/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "Unknown site" in response.json()["detail"]

    def test_returns_article_list(self, client, fake_sites):
        response = client.get("/api/scrape/good")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data == [
            {"title": "Carbon tax passes", "url": "https://good.example.org/carbon", "date": "2024-03-01"},
            {"title": "Water rules", "url": "https://good.example.org/water", "date": None},
        ]

    def test_empty_listing_message(self, client, fake_sites):
        response = client.get("/api/scrape/empty")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message": "No articles found"}

    def test_navigation_failure_500(self, client, fake_sites):
        response = client.get("/api/scrape/down")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        data = response.json()
        assert data["error"] == "Scraping failed"
        assert "down.example.org" in data["details"]

    def test_scrape_persists_articles(self, client, fake_sites):
        client.get("/api/scrape/good")

        response = client.get("/api/articles", params={"site": "good"})

        assert response.status_code == status.HTTP_200_OK
        assert {a["title"] for a in response.json()} == {"Carbon tax passes", "Water rules"}

    def test_scrape_records_failed_run(self, client, fake_sites):
        client.get("/api/scrape/down")

        runs = client.get("/api/runs").json()

        assert len(runs) == 1
        assert runs[0]["success"] is False
        assert runs[0]["site"] == "down"


class TestScrapeAllEndpoint:
    """Test scraping every enabled site."""

    def test_scrape_all(self, client, fake_sites):
        response = client.post("/api/scrape-all")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [r["site"] for r in data["results"]] == ["good", "empty", "down"]
        assert data["summary"]["successful"] == 2
        assert data["summary"]["failed"] == 1
        assert data["summary"]["total_articles"] == 2

    def test_scrape_all_parallel(self, client, fake_sites):
        response = client.post("/api/scrape-all", params={"parallel": True})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["summary"]["total_sites"] == 3


class TestArticlesEndpoint:
    """Test stored article queries."""

    def test_get_articles_empty(self, client):
        response = client.get("/api/articles")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

    def test_limit(self, client, fake_sites):
        client.get("/api/scrape/good")

        response = client.get("/api/articles", params={"limit": 1})

        assert len(response.json()) == 1

    def test_unknown_site_filter(self, client, fake_sites):
        response = client.get("/api/articles", params={"site": "nope"})

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_invalid_limit(self, client):
        response = client.get("/api/articles", params={"limit": 0})

        assert response.status_code == 422
