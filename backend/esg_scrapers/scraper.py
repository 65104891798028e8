"""
Configurable site scraper.

One engine runs the listing → dedupe → truncate → enrich workflow for any
SiteConfig. Site-specific knowledge lives in config.py as data.
"""

import asyncio
import dataclasses
import logging
from datetime import datetime, timezone
from typing import List, Optional

from .base import (
    ArticleRecord,
    Colors,
    ExtractionError,
    MissingDatePolicy,
    NavigationError,
    ScrapeError,
    ScrapeResult,
    ScraperType,
    SelectorTimeoutError,
    SiteConfig,
)
from .crawlers.base import BrowserSession, PageSession
from .crawlers.launcher import BrowserLauncher, StaticLauncher, select_launcher
from .utils.extractors import parse_html, extract_fields, find_listing_items, build_candidate

# Fields a detail page may fill in; the url always comes from the listing
DETAIL_FIELDS = ('title', 'date', 'summary')


class SiteScraper:
    """
    Runs the scrape workflow for a single site.

    Usage:
        scraper = SiteScraper(get_site_config('carbonbrief_policy'), launcher)
        records = await scraper.run()       # raises on fatal errors
        result = await scraper.scrape()     # never raises, returns ScrapeResult
    """

    def __init__(
        self,
        config: SiteConfig,
        launcher: Optional[BrowserLauncher] = None,
        static_launcher: Optional[BrowserLauncher] = None,
        detail_concurrency: int = 1,
    ):
        """
        Initialize the scraper.

        Args:
            config: Site configuration
            launcher: Browser strategy for JavaScript/stealth sites
            static_launcher: Fetcher for static sites (defaults to httpx)
            detail_concurrency: Max detail pages open at once (1 = sequential)
        """
        self.config = config
        self.launcher = launcher
        self.static_launcher = static_launcher
        self.detail_concurrency = max(1, detail_concurrency)
        self.logger = logging.getLogger(f"scraper.{config.key}")
        self._candidates = 0
        self._dropped = 0

    def _get_launcher(self) -> BrowserLauncher:
        if self.config.scraper_type == ScraperType.STATIC:
            if self.static_launcher is None:
                self.static_launcher = StaticLauncher()
            return self.static_launcher
        if self.launcher is None:
            self.launcher = select_launcher()
        return self.launcher

    # ── Listing pages ───────────────────────────────────────────

    def parse_listing(self, html: str, page_url: str) -> List[ArticleRecord]:
        """
        Extract candidates from a listing page snapshot.

        Candidates missing a title or url are dropped silently.
        """
        soup = parse_html(html)
        items = find_listing_items(soup, self.config.listing_item_selector, self.config.skip_hidden)
        base_url = self.config.base_url or page_url

        candidates = []
        for item in items:
            values = extract_fields(item, self.config.fields)
            try:
                record = build_candidate(values, base_url)
            except ExtractionError as e:
                self.logger.debug(f"Skipping listing item: {e}")
                continue
            if record.title in self.config.blocked_titles:
                self.logger.debug(f"Skipping challenge page item: {record.url}")
                continue
            candidates.append(record)
        return candidates

    async def _run_page_actions(self, page: PageSession):
        """Consent banner, load-more button and auto-scroll, all optional."""
        if self.config.consent_selector:
            if await page.click(self.config.consent_selector):
                self.logger.debug("Accepted cookie consent")

        if self.config.load_more_selector:
            for click in range(self.config.load_more_clicks):
                if not await page.click(self.config.load_more_selector):
                    break
                self.logger.debug(f"Clicked load more ({click + 1}/{self.config.load_more_clicks})")

        if self.config.scroll_to_bottom:
            await page.scroll_to_bottom()

    async def _scrape_listing_page(self, browser: BrowserSession, url: str) -> List[ArticleRecord]:
        page = await browser.new_page()
        async with page:
            self.logger.info(f"Navigating to {url}")
            await page.goto(url, self.config.navigation_timeout)
            await self._run_page_actions(page)

            try:
                await page.wait_for(self.config.listing_item_selector, self.config.listing_wait_timeout)
            except SelectorTimeoutError as e:
                self.logger.warning(f"No articles found on {url}: {e}")
                return []

            html = await page.content()

        return self.parse_listing(html, url)

    async def collect_candidates(self, browser: BrowserSession) -> List[ArticleRecord]:
        """
        Gather unique candidates from the listing page and its fallbacks.

        Raises:
            NavigationError: If the primary listing page cannot be loaded
        """
        limit = self.config.effective_candidate_limit
        seen = set()
        candidates: List[ArticleRecord] = []
        raw_count = 0

        urls = [self.config.listing_url, *self.config.fallback_listing_urls]
        for index, url in enumerate(urls):
            if len(candidates) >= limit:
                break
            if index > 0:
                self.logger.info(f"Only {len(candidates)} articles so far, trying fallback page")

            try:
                page_candidates = await self._scrape_listing_page(browser, url)
            except NavigationError as e:
                if index == 0:
                    raise
                self.logger.warning(f"Fallback listing page failed, keeping {len(candidates)} articles: {e}")
                break

            raw_count += len(page_candidates)
            for record in page_candidates:
                key = record.dedupe_key(self.config.dedupe_key)
                if key in seen:
                    continue
                seen.add(key)
                candidates.append(record)

        self._candidates = raw_count
        self.logger.info(f"Found {raw_count} candidates, {len(candidates)} after dedup")
        return candidates[:limit]

    # ── Detail pages ────────────────────────────────────────────

    def _apply_missing_policy(self, record: ArticleRecord, reason: Exception) -> Optional[ArticleRecord]:
        detail = self.config.detail_page
        if detail.policy == MissingDatePolicy.DROP:
            self.logger.info(f"   {Colors.yellow('[SKIP]')} paywalled or undated article {record.url}: {reason}")
            return None
        self.logger.info(f"   {Colors.gray('[----]')} no detail data for {record.url}: {reason}")
        return dataclasses.replace(record, date=record.date or detail.placeholder)

    async def enrich(self, browser: BrowserSession, record: ArticleRecord) -> Optional[ArticleRecord]:
        """
        Visit a record's detail page for supplementary fields.

        Returns:
            The enriched record, the record with a placeholder, or None (dropped)
        """
        detail = self.config.detail_page
        page = None
        try:
            page = await browser.new_page()
            await page.goto(record.url, self.config.navigation_timeout)
            await page.wait_for([detail.wait_selector], detail.wait_timeout)
            values = extract_fields(parse_html(await page.content()), detail.fields)
            if not values.get(detail.required_field):
                raise ExtractionError(detail.required_field)
            if values.get('title') in self.config.blocked_titles:
                raise ExtractionError('title', 'challenge page')
        except ScrapeError as e:
            return self._apply_missing_policy(record, e)
        finally:
            if page is not None:
                await page.close()

        updates = {name: values[name] for name in DETAIL_FIELDS if values.get(name)}
        self.logger.info(f"   {Colors.green('[OK]')} {record.title}")
        return dataclasses.replace(record, **updates)

    def _is_duplicate(self, record: ArticleRecord, seen: set) -> bool:
        """True when an enriched record repeats an earlier dedupe key."""
        key = record.dedupe_key(self.config.dedupe_key)
        if key in seen:
            self.logger.info(f"   {Colors.yellow('[DUP]')} {record.title} duplicates an earlier article")
            return True
        seen.add(key)
        return False

    async def enrich_all(self, browser: BrowserSession, candidates: List[ArticleRecord]) -> List[ArticleRecord]:
        """Enrich candidates keeping their order, sequentially or with bounded parallelism."""
        limit = self.config.result_limit
        records: List[ArticleRecord] = []
        seen = set()

        if self.detail_concurrency == 1:
            for idx, record in enumerate(candidates, 1):
                self.logger.info(f"{Colors.bold(f'[{idx}/{len(candidates)}]')} {record.url}")
                enriched = await self.enrich(browser, record)
                if enriched is None or self._is_duplicate(enriched, seen):
                    self._dropped += 1
                    continue
                records.append(enriched)
                if len(records) >= limit:
                    break
            return records

        semaphore = asyncio.Semaphore(self.detail_concurrency)

        async def bounded(record: ArticleRecord) -> Optional[ArticleRecord]:
            async with semaphore:
                return await self.enrich(browser, record)

        # gather keeps input order regardless of completion order
        results = await asyncio.gather(*(bounded(record) for record in candidates))
        for enriched in results:
            if enriched is None or self._is_duplicate(enriched, seen):
                self._dropped += 1
            else:
                records.append(enriched)
        return records

    # ── Orchestration ───────────────────────────────────────────

    async def run(self) -> List[ArticleRecord]:
        """
        Main entry point - runs the full workflow.

        1. Launch a browser session
        2. Collect and deduplicate candidates from the listing page(s)
        3. Optionally enrich each candidate from its detail page
        4. Truncate to the result limit

        Raises:
            BrowserLaunchError: No browser could be started
            NavigationError: The listing page could not be loaded
        """
        self._candidates = 0
        self._dropped = 0
        self.logger.info(f"Starting scrape for {self.config.name}")

        launcher = self._get_launcher()
        browser = await launcher.launch(stealth=self.config.scraper_type == ScraperType.STEALTH)
        async with browser:
            candidates = await self.collect_candidates(browser)
            if self.config.detail_page and candidates:
                records = await self.enrich_all(browser, candidates)
            else:
                records = candidates

        records = records[:self.config.result_limit]
        if not records:
            self.logger.info("No articles found")
        return records

    async def scrape(self) -> ScrapeResult:
        """Run the workflow and capture the outcome as a ScrapeResult."""
        result = ScrapeResult(site=self.config.key, started_at=datetime.now(timezone.utc))
        try:
            result.articles = await self.run()
        except ScrapeError as e:
            result.error = str(e)
            self.logger.error(f"{Colors.red('[ERR]')} Scrape failed: {e}")

        result.candidates = self._candidates
        result.dropped = self._dropped
        result.completed_at = datetime.now(timezone.utc)

        if result.success:
            duration = result.duration_seconds or 0
            self.logger.info(
                f"Scrape complete in {duration:.1f}s: {result.total} articles "
                f"({result.candidates} candidates, {result.dropped} dropped)"
            )
        return result
