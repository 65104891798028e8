#!/usr/bin/env python3
"""
Command line runner for the ESG scrapers.

Usage:
    cd backend
    python -m esg_scrapers.run_scraper [site_key]

Examples:
    python -m esg_scrapers.run_scraper carbonbrief_policy      # Scrape one site, write JSON
    python -m esg_scrapers.run_scraper wef_stories --format xml
    python -m esg_scrapers.run_scraper --list                  # List all scrapers
    python -m esg_scrapers.run_scraper --all --format none     # Scrape every enabled site
"""

import asyncio
import argparse
import dataclasses
import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional

from esg_api.config import settings

from .base import Colors, ScrapeResult, SiteConfig
from .config import get_site_config, get_enabled_sites, get_site_summary
from .crawlers.launcher import select_launcher
from .output import OUTPUT_FORMATS, write_output
from .scraper import SiteScraper

logger = logging.getLogger('scraper')


def list_scrapers():
    """List all configured scrapers."""
    print(f"\n{'='*60}")
    print("Available Scrapers")
    print(f"{'='*60}\n")

    for site in get_site_summary():
        status = "on " if site['enabled'] else "off"
        detail = " +detail" if site['detail_page'] else ""
        print(f"[{status}] {site['key']:20} - {site['name']}")
        print(f"      Type: {site['type']}{detail}  Category: {site['category']}")
        print(f"      URL: {site['url']}")
        print()


def apply_limit(config: SiteConfig, limit: Optional[int]) -> SiteConfig:
    """Override a site's result limit, keeping the candidate limit valid."""
    if not limit:
        return config
    candidate_limit = config.candidate_limit
    if candidate_limit is not None:
        candidate_limit = max(candidate_limit, limit)
    return dataclasses.replace(config, result_limit=limit, candidate_limit=candidate_limit)


def print_result(config: SiteConfig, result: ScrapeResult):
    print(f"\n{'='*60}")
    print(f"{config.name} ({config.key})")
    print(f"{'='*60}")

    if not result.success:
        print(Colors.red(f"Scraping failed: {result.error}"))
        return
    if not result.articles:
        print(Colors.yellow("No articles found"))
        return

    for i, article in enumerate(result.articles, 1):
        print(f"#{i}")
        print(f"Title: {article.title}")
        print(f"Date: {article.date or ''}")
        print(f"URL: {article.url}")
        print('-' * 25)


async def run_site(
    site_key: str,
    fmt: str,
    output_dir: str,
    limit: Optional[int] = None,
    concurrency: int = 1,
    launcher=None,
) -> ScrapeResult:
    """Scrape one site, print it and write the output file."""
    config = apply_limit(get_site_config(site_key), limit)
    scraper = SiteScraper(config, launcher=launcher, detail_concurrency=concurrency)
    try:
        result = await scraper.scrape()
    except Exception as e:
        logger.exception(f"Scraper crashed for {site_key}: {e}")
        now = datetime.now(timezone.utc)
        result = ScrapeResult(site=site_key, started_at=now, completed_at=now, error=str(e))

    print_result(config, result)
    if result.success and result.articles:
        write_output(result.articles, fmt, output_dir, config.file_stem)
    return result


async def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Scrape ESG news and regulatory sites')
    parser.add_argument('site_key', nargs='?', help='Site key to scrape (e.g., carbonbrief_policy)')
    parser.add_argument('--list', action='store_true', help='List all scrapers')
    parser.add_argument('--all', action='store_true', help='Scrape all enabled sites')
    parser.add_argument('--format', choices=OUTPUT_FORMATS, default='json', help='Output file format')
    parser.add_argument('--output-dir', default=settings.output_dir, help='Directory for output files')
    parser.add_argument('--limit', type=int, help='Override the number of articles kept')
    parser.add_argument('--concurrency', type=int, default=settings.detail_concurrency, help='Detail pages fetched at once')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logging.getLogger('httpx').setLevel(logging.WARNING)

    if args.list:
        list_scrapers()
        return 0

    if args.all:
        site_keys = list(get_enabled_sites().keys())
    elif args.site_key:
        site_keys = [args.site_key.lower()]
    else:
        parser.print_help()
        print("\nExample: python -m esg_scrapers.run_scraper carbonbrief_policy")
        return 1

    try:
        for key in site_keys:
            get_site_config(key)
    except ValueError as e:
        print(Colors.red(str(e)))
        return 1

    launcher = select_launcher(
        serverless=settings.is_serverless,
        executable_path=settings.chromium_executable_path,
        headless=settings.headless,
    )
    logger.info(f"Using {launcher.name} browser launcher")

    failed = 0
    for key in site_keys:
        result = await run_site(key, args.format, args.output_dir, args.limit, args.concurrency, launcher)
        if not result.success:
            failed += 1

    return 1 if failed else 0


def cli():
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    cli()
