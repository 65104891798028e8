from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
import logging
import asyncio
import re

from esg_api.database import get_db, init_db, save_scrape_result, Article, ScrapeRun, Source, engine
from esg_api.config import settings
from esg_scrapers.config import SITES, get_site_config, get_site_summary
from esg_scrapers.crawlers.launcher import BrowserLauncher, select_launcher
from esg_scrapers.manager import ScraperManager
from esg_scrapers.output import http_payload

# Setup logging directory
settings.log_dir.mkdir(parents=True, exist_ok=True)


# Custom formatter to strip ANSI color codes from file logs
class ColorStripFormatter(logging.Formatter):
    """Formatter that strips ANSI color codes from log messages."""
    ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

    def format(self, record):
        message = super().format(record)
        return self.ansi_escape.sub('', message)

# Setup logging with color support for console, stripped for file
file_handler = logging.FileHandler(settings.log_file, encoding='utf-8')
file_handler.setFormatter(ColorStripFormatter(settings.log_format))

console_handler = logging.StreamHandler()
console_handler.setFormatter(logging.Formatter(settings.log_format))

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    handlers=[file_handler, console_handler],
    force=True  # Override any existing configuration
)

# Per-site scraper loggers ('scraper.<key>') get their own handlers so
# messages appear once
scraper_logger = logging.getLogger('scraper')
scraper_logger.propagate = False
if not scraper_logger.handlers:
    scraper_file_handler = logging.FileHandler(settings.log_file, encoding='utf-8')
    scraper_file_handler.setFormatter(ColorStripFormatter(settings.log_format))
    scraper_logger.addHandler(scraper_file_handler)

    scraper_console_handler = logging.StreamHandler()
    scraper_console_handler.setFormatter(logging.Formatter(settings.log_format))
    scraper_logger.addHandler(scraper_console_handler)
scraper_logger.setLevel(getattr(logging, settings.log_level.upper()))

# httpx logs every request at INFO
logging.getLogger('httpx').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


# Browser strategy, chosen once per process
_launcher: Optional[BrowserLauncher] = None


def get_launcher() -> BrowserLauncher:
    global _launcher
    if _launcher is None:
        _launcher = select_launcher(
            serverless=settings.is_serverless,
            executable_path=settings.chromium_executable_path,
            headless=settings.headless,
        )
    return _launcher


def get_scraper_manager(launcher: BrowserLauncher = Depends(get_launcher)) -> ScraperManager:
    return ScraperManager(launcher, detail_concurrency=settings.detail_concurrency)


async def cleanup_resources():
    """Clean up all resources on shutdown."""
    logger.info("Closing database connections...")
    try:
        await asyncio.wait_for(
            asyncio.get_running_loop().run_in_executor(None, lambda: engine.dispose(close=True)),
            timeout=2.0
        )
        logger.info("Database connections closed")
    except asyncio.TimeoutError:
        logger.warning("Database cleanup timed out")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info("ESG Scraper Backend Starting Up")
    logger.info("=" * 60)
    logger.info(f"Log file: {settings.log_file}")
    logger.info(f"Database: {settings.database_url}")
    logger.info(f"CORS origins: {settings.cors_origins}")
    init_db()
    logger.info("Database initialized successfully")
    launcher = get_launcher()
    logger.info(f"Browser launcher: {launcher.name}")
    logger.info(f"{len(SITES)} sites configured")
    logger.info("Backend ready to accept requests")

    yield  # Application runs here

    # Shutdown
    logger.info("=" * 60)
    logger.info("ESG Scraper Backend Shutting Down")
    logger.info("=" * 60)
    await cleanup_resources()
    logger.info("Shutdown complete")


app = FastAPI(
    title="ESG Scraper API",
    version="1.0.0",
    lifespan=lifespan
)

# Note: allow_credentials must be False when allow_origins is ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_site(site_key: str):
    try:
        return get_site_config(site_key)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/")
async def root():
    return {"message": "ESG Scraper API", "version": app.version, "sites": len(SITES)}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/sites")
async def list_sites():
    """List all configured sites"""
    return get_site_summary()


@app.get("/api/scrape/{site_key}")
async def scrape_site(
    site_key: str,
    db: Session = Depends(get_db),
    manager: ScraperManager = Depends(get_scraper_manager),
):
    """
    Run the scraper for one site and return its articles.

    200 with a list of articles, 200 with a message when nothing was found,
    500 with error details when the site could not be scraped.
    """
    config = _require_site(site_key)
    result = await manager.scrape_site(config.key)
    save_scrape_result(db, config, result)

    status_code, body = http_payload(result)
    return JSONResponse(status_code=status_code, content=body)


@app.post("/api/scrape-all")
async def scrape_all_sites(
    parallel: bool = Query(False, description="Run site scrapers concurrently"),
    db: Session = Depends(get_db),
    manager: ScraperManager = Depends(get_scraper_manager),
):
    """Trigger scraping for all enabled sites"""
    results = await manager.scrape_all(parallel=parallel)
    for key, result in results.items():
        save_scrape_result(db, get_site_config(key), result)
    return {
        "results": [r.to_dict() for r in results.values()],
        "summary": manager.get_results_summary()
    }


@app.get("/api/articles")
async def get_articles(
    site: Optional[str] = Query(None, description="Filter by site key"),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Stored articles, most recently seen first"""
    query = db.query(Article)
    if site:
        _require_site(site)
        query = query.join(Source).filter(Source.key == site)
    articles = query.order_by(Article.last_seen.desc(), Article.id.desc()).limit(limit).all()
    return [a.to_dict() for a in articles]


@app.get("/api/runs")
async def get_runs(
    site: Optional[str] = Query(None, description="Filter by site key"),
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Scrape run history, newest first"""
    query = db.query(ScrapeRun)
    if site:
        _require_site(site)
        query = query.join(Source).filter(Source.key == site)
    runs = query.order_by(ScrapeRun.started_at.desc(), ScrapeRun.id.desc()).limit(limit).all()
    return [r.to_dict() for r in runs]
