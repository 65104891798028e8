from sqlalchemy import create_engine, Column, Integer, String, DateTime, Boolean, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.engine import make_url
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker, relationship, Session
from datetime import datetime, timezone
from pathlib import Path
from typing import Tuple
import logging

from esg_scrapers.base import ScrapeResult, SiteConfig

logger = logging.getLogger(__name__)


def utc_now():
    """Return current UTC time (timezone-aware). Replaces deprecated datetime.utcnow()."""
    return datetime.now(timezone.utc)

Base = declarative_base()


class Source(Base):
    __tablename__ = 'sources'

    id = Column(Integer, primary_key=True)
    key = Column(String, unique=True, nullable=False)  # Registry key (e.g., carbonbrief_policy)
    name = Column(String, nullable=False)
    url = Column(String, nullable=False)  # Listing page URL
    category = Column(String)
    active = Column(Boolean, default=True)
    last_scraped = Column(DateTime)
    created_at = Column(DateTime, default=utc_now)

    articles = relationship("Article", back_populates="source", cascade="all, delete-orphan")
    runs = relationship("ScrapeRun", back_populates="source", cascade="all, delete-orphan")


class Article(Base):
    __tablename__ = 'articles'

    id = Column(Integer, primary_key=True)
    source_id = Column(Integer, ForeignKey('sources.id'), nullable=False, index=True)

    title = Column(String, nullable=False)
    url = Column(String, nullable=False)
    date = Column(String)  # Site-formatted date text, kept verbatim
    summary = Column(Text)

    # Metadata
    first_seen = Column(DateTime, default=utc_now)
    last_seen = Column(DateTime, default=utc_now, onupdate=utc_now, index=True)

    source = relationship("Source", back_populates="articles")

    __table_args__ = (
        UniqueConstraint('source_id', 'url', name='uq_article_source_url'),
    )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'site': self.source.key if self.source else None,
            'title': self.title,
            'url': self.url,
            'date': self.date,
            'summary': self.summary,
            'first_seen': self.first_seen.isoformat() if self.first_seen else None,
            'last_seen': self.last_seen.isoformat() if self.last_seen else None,
        }


class ScrapeRun(Base):
    __tablename__ = 'scrape_runs'

    id = Column(Integer, primary_key=True)
    source_id = Column(Integer, ForeignKey('sources.id'), nullable=False, index=True)

    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime)
    success = Column(Boolean, default=True)
    total = Column(Integer, default=0)
    new = Column(Integer, default=0)
    candidates = Column(Integer, default=0)
    dropped = Column(Integer, default=0)
    error = Column(Text)

    source = relationship("Source", back_populates="runs")

    __table_args__ = (
        Index('ix_scrape_runs_source_started', 'source_id', 'started_at'),
    )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'site': self.source.key if self.source else None,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'success': self.success,
            'total': self.total,
            'new': self.new,
            'candidates': self.candidates,
            'dropped': self.dropped,
            'error': self.error,
        }


def get_or_create_source(db: Session, config: SiteConfig) -> Source:
    source = db.query(Source).filter_by(key=config.key).first()
    if not source:
        source = Source(
            key=config.key,
            name=config.name,
            url=config.listing_url,
            category=config.category,
            active=config.enabled,
        )
        db.add(source)
        db.flush()
    return source


def save_scrape_result(db: Session, config: SiteConfig, result: ScrapeResult) -> Tuple[ScrapeRun, int]:
    """
    Persist a scrape outcome.

    Articles are upserted on (source, url); every call records a ScrapeRun.

    Returns:
        (run, number of new articles)
    """
    source = get_or_create_source(db, config)

    new_count = 0
    pending = {}
    for record in result.articles:
        existing = pending.get(record.url) or db.query(Article).filter_by(source_id=source.id, url=record.url).first()
        if existing is None:
            pending[record.url] = Article(
                source_id=source.id,
                title=record.title,
                url=record.url,
                date=record.date,
                summary=record.summary,
            )
            db.add(pending[record.url])
            new_count += 1
        else:
            existing.title = record.title
            existing.date = record.date or existing.date
            existing.summary = record.summary or existing.summary
            existing.last_seen = utc_now()

    run = ScrapeRun(
        source_id=source.id,
        started_at=result.started_at,
        completed_at=result.completed_at,
        success=result.success,
        total=result.total,
        new=new_count,
        candidates=result.candidates,
        dropped=result.dropped,
        error=result.error,
    )
    db.add(run)

    if result.success:
        source.last_scraped = result.completed_at or utc_now()

    db.commit()
    logger.info(f"Saved {result.total} articles for {config.key} ({new_count} new)")
    return run, new_count


# Database setup - import settings for database URL
from esg_api.config import settings

# Configure engine with connection pooling for better performance
engine = create_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,    # Verify connections before use (handles stale connections)
    pool_recycle=3600,     # Recycle connections after 1 hour
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _ensure_sqlite_dir(database_url: str):
    url = make_url(database_url)
    if url.get_backend_name() == 'sqlite' and url.database and url.database != ':memory:':
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def init_db():
    _ensure_sqlite_dir(settings.database_url)
    Base.metadata.create_all(bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
