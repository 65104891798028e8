"""
Tests for browser collaborators and launcher selection.
"""

import asyncio

import httpx
import pytest

from fakes import build_config
from esg_scrapers.base import BrowserLaunchError, NavigationError, ScraperType, SelectorTimeoutError
from esg_scrapers.crawlers.launcher import (
    LocalChromiumLauncher,
    ServerlessChromiumLauncher,
    StaticLauncher,
    is_serverless_environment,
    select_launcher,
)
from esg_scrapers.crawlers.static import StaticBrowser
from esg_scrapers.scraper import SiteScraper


LISTING = """
<html><body>
  <div class="post"><h3><a href="/a/1">First</a></h3></div>
  <div class="post"><h3><a href="/a/2">Second</a></h3></div>
</body></html>
"""


def handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/esg/":
        return httpx.Response(200, text=LISTING)
    if request.url.path == "/blocked":
        return httpx.Response(403, text="Forbidden")
    if request.url.path == "/soft-404":
        return httpx.Response(404, text="<html><body>" + "x" * 1200 + "</body></html>")
    if request.url.path == "/down":
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.Response(404, text="Not found")


def static_browser():
    return StaticBrowser(transport=httpx.MockTransport(handler))


class TestStaticBrowser:
    """Test the httpx-backed page session."""

    def test_fetch_and_wait(self):
        async def scenario():
            async with static_browser() as browser:
                async with await browser.new_page() as page:
                    await page.goto("https://news.example.org/esg/", 5.0)
                    await page.wait_for(["div.post"], 1.0)
                    return await page.content()

        html = asyncio.run(scenario())

        assert "First" in html

    def test_missing_selector_raises(self):
        async def scenario():
            async with static_browser() as browser:
                page = await browser.new_page()
                await page.goto("https://news.example.org/esg/", 5.0)
                await page.wait_for(["article.story", "li.item"], 1.0)

        with pytest.raises(SelectorTimeoutError):
            asyncio.run(scenario())

    def test_error_status_raises_navigation_error(self):
        async def scenario():
            async with static_browser() as browser:
                page = await browser.new_page()
                await page.goto("https://news.example.org/blocked", 5.0)

        with pytest.raises(NavigationError) as exc_info:
            asyncio.run(scenario())

        assert "403" in str(exc_info.value)

    def test_error_status_with_page_content_is_accepted(self):
        async def scenario():
            async with static_browser() as browser:
                page = await browser.new_page()
                await page.goto("https://news.example.org/soft-404", 5.0)
                return await page.content()

        assert len(asyncio.run(scenario())) > 1000

    def test_network_error_raises_navigation_error(self):
        async def scenario():
            async with static_browser() as browser:
                page = await browser.new_page()
                await page.goto("https://news.example.org/down", 5.0)

        with pytest.raises(NavigationError) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.url == "https://news.example.org/down"

    def test_click_is_unsupported(self):
        async def scenario():
            async with static_browser() as browser:
                page = await browser.new_page()
                return await page.click("button.more")

        assert asyncio.run(scenario()) is False

    def test_full_workflow_over_http(self):
        """The scrape workflow runs unchanged on the static browser."""
        class MockStaticLauncher(StaticLauncher):
            async def launch(self, stealth=False):
                return static_browser()

        config = build_config(listing_url="https://news.example.org/esg/", scraper_type=ScraperType.STATIC)
        scraper = SiteScraper(config, static_launcher=MockStaticLauncher())

        records = asyncio.run(scraper.run())

        assert [r.url for r in records] == [
            "https://news.example.org/a/1",
            "https://news.example.org/a/2",
        ]


class TestLauncherSelection:
    """Test the local vs serverless browser strategy."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for marker in ("AWS_REGION", "AWS_LAMBDA_FUNCTION_NAME", "VERCEL"):
            monkeypatch.delenv(marker, raising=False)

    def test_local_by_default(self):
        launcher = select_launcher()

        assert isinstance(launcher, LocalChromiumLauncher)
        assert launcher.headless is True

    def test_serverless_detected_from_environment(self, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "us-east-1")

        assert is_serverless_environment() is True
        assert isinstance(select_launcher(executable_path="/opt/chromium"), ServerlessChromiumLauncher)

    def test_vercel_marker(self, monkeypatch):
        monkeypatch.setenv("VERCEL", "1")

        assert is_serverless_environment() is True

    def test_explicit_flag_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("VERCEL", "1")

        assert isinstance(select_launcher(serverless=False), LocalChromiumLauncher)

    def test_serverless_without_executable_fails_to_launch(self):
        launcher = ServerlessChromiumLauncher(executable_path=None)

        with pytest.raises(BrowserLaunchError) as exc_info:
            asyncio.run(launcher.launch())

        assert "CHROMIUM_EXECUTABLE_PATH" in str(exc_info.value)

    def test_serverless_with_missing_binary_fails_to_launch(self, tmp_path):
        launcher = ServerlessChromiumLauncher(executable_path=str(tmp_path / "chromium"))

        with pytest.raises(BrowserLaunchError):
            asyncio.run(launcher.launch())

    def test_static_launcher_returns_static_browser(self):
        browser = asyncio.run(StaticLauncher(rate_limit=0.5).launch())

        assert isinstance(browser, StaticBrowser)
        assert browser.rate_limit == 0.5
