"""
Runs configured sites one at a time or as a batch and keeps the
latest ScrapeResult per site for reporting.
"""

import asyncio
from typing import Dict, List, Optional
from datetime import datetime, timezone
import logging

from .base import ScrapeResult
from .config import get_all_sites, get_site_config, get_enabled_sites
from .crawlers.launcher import BrowserLauncher
from .scraper import SiteScraper

logger = logging.getLogger(__name__)


def _failed_result(site_key: str, error: str) -> ScrapeResult:
    now = datetime.now(timezone.utc)
    return ScrapeResult(site=site_key, started_at=now, completed_at=now, error=error)


class ScraperManager:
    """
    Runs site scrapers and remembers their latest results.

    Usage:
        manager = ScraperManager(select_launcher())

        # One site
        result = await manager.scrape_site('carbonbrief_policy')

        # Every enabled site
        results = await manager.scrape_all()

        # Configured sites with their last run
        sites = manager.list_scrapers()
    """

    def __init__(
        self,
        launcher: Optional[BrowserLauncher] = None,
        detail_concurrency: int = 1,
        static_launcher: Optional[BrowserLauncher] = None,
    ):
        """
        Create a manager sharing one launcher across sites.

        Args:
            launcher: Browser strategy shared by every scraper
            detail_concurrency: Max detail pages open at once per site
            static_launcher: Fetcher for static sites
        """
        self.launcher = launcher
        self.static_launcher = static_launcher
        self.detail_concurrency = detail_concurrency
        self.results: Dict[str, ScrapeResult] = {}

    def get_scraper(self, site_key: str) -> SiteScraper:
        """
        Build a scraper for a site.

        Raises:
            ValueError: If site_key is not configured
        """
        return SiteScraper(
            get_site_config(site_key),
            launcher=self.launcher,
            static_launcher=self.static_launcher,
            detail_concurrency=self.detail_concurrency,
        )

    async def scrape_site(self, site_key: str) -> ScrapeResult:
        """
        Scrape one site, capturing any crash as a failed result.

        Args:
            site_key: Site identifier

        Returns:
            ScrapeResult with articles and statistics
        """
        scraper = self.get_scraper(site_key)
        logger.info(f"Starting scrape for {scraper.config.name} ({site_key})")

        try:
            result = await scraper.scrape()
        except Exception as e:
            logger.exception(f"Scraper crashed for {site_key}: {e}")
            result = _failed_result(site_key, str(e))

        self.results[site_key] = result
        return result

    async def scrape_all(
        self,
        site_keys: List[str] = None,
        parallel: bool = False
    ) -> Dict[str, ScrapeResult]:
        """
        Scrape several sites, sequentially or concurrently.

        Args:
            site_keys: List of site keys to scrape (defaults to all enabled)
            parallel: Whether to run scrapers in parallel

        Returns:
            Results keyed by site, in the order requested
        """
        if site_keys is None:
            site_keys = list(get_enabled_sites().keys())

        logger.info(f"Starting scrape for {len(site_keys)} sites: {site_keys}")

        if parallel:
            tasks = [self.scrape_site(key) for key in site_keys]
            results = await asyncio.gather(*tasks, return_exceptions=True)

            for key, result in zip(site_keys, results):
                if isinstance(result, Exception):
                    self.results[key] = _failed_result(key, str(result))
                else:
                    self.results[key] = result
        else:
            for key in site_keys:
                await self.scrape_site(key)

        return {key: self.results[key] for key in site_keys}

    def list_scrapers(self) -> List[Dict]:
        """
        List all configured sites.

        Returns:
            One dict per site, including its last run if any
        """
        scrapers = []
        for key, config in get_all_sites().items():
            scrapers.append({
                'key': key,
                'name': config.name,
                'type': config.scraper_type.value,
                'enabled': config.enabled,
                'url': config.listing_url,
                'last_run': self.results[key].to_dict() if key in self.results else None,
            })
        return scrapers

    def get_results_summary(self) -> Dict:
        """
        Totals across every site scraped by this manager.

        Returns:
            Dict with site, success and article counts
        """
        if not self.results:
            return {
                'total_sites': 0,
                'successful': 0,
                'failed': 0,
                'total_articles': 0,
                'dropped_articles': 0,
            }

        successful = sum(1 for r in self.results.values() if r.success)
        failed = len(self.results) - successful

        return {
            'total_sites': len(self.results),
            'successful': successful,
            'failed': failed,
            'total_articles': sum(r.total for r in self.results.values()),
            'dropped_articles': sum(r.dropped for r in self.results.values()),
            'sites': {k: v.to_dict() for k, v in self.results.items()},
        }


# Module-level shortcuts

async def scrape_site(site_key: str, launcher: Optional[BrowserLauncher] = None) -> ScrapeResult:
    """Scrape a single site."""
    manager = ScraperManager(launcher)
    return await manager.scrape_site(site_key)


async def scrape_all(launcher: Optional[BrowserLauncher] = None) -> Dict[str, ScrapeResult]:
    """Scrape all enabled sites."""
    manager = ScraperManager(launcher)
    return await manager.scrape_all()
