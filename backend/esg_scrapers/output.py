"""
Output sinks for scraped articles.

JSON and XML files for the CLI, plus the HTTP payload shape returned by
the API for a single scrape.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from xml.sax.saxutils import escape

from .base import ArticleRecord, ScrapeResult

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ('json', 'xml', 'none')
NO_ARTICLES_MESSAGE = 'No articles found'

_XML_ENTITIES = {'"': '&quot;', "'": '&apos;'}


def articles_to_json(records: Sequence[ArticleRecord]) -> str:
    """Serialize records as a pretty-printed JSON array."""
    return json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)


def write_json(records: Sequence[ArticleRecord], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(articles_to_json(records), encoding='utf-8')
    logger.info(f"Saved {len(records)} articles to {path}")
    return path


def articles_to_xml(records: Sequence[ArticleRecord]) -> str:
    """
    Serialize records as an <articles> document.

    Missing dates are written as empty elements.
    """
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', '<articles>']
    for record in records:
        lines.append('  <article>')
        lines.append(f"    <title>{escape(record.title, _XML_ENTITIES)}</title>")
        lines.append(f"    <date>{escape(record.date or '', _XML_ENTITIES)}</date>")
        lines.append(f"    <url>{escape(record.url, _XML_ENTITIES)}</url>")
        lines.append('  </article>')
    lines.append('</articles>')
    return '\n'.join(lines) + '\n'


def write_xml(records: Sequence[ArticleRecord], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(articles_to_xml(records), encoding='utf-8')
    logger.info(f"Saved {len(records)} articles to {path}")
    return path


def write_output(
    records: Sequence[ArticleRecord],
    fmt: str,
    directory: Union[str, Path],
    stem: str,
) -> Optional[Path]:
    """
    Write records in the requested format.

    Args:
        records: Articles to write
        fmt: 'json', 'xml' or 'none'
        directory: Output directory
        stem: File name without extension

    Returns:
        Path written, or None for 'none'
    """
    if fmt == 'none':
        return None
    if fmt == 'json':
        return write_json(records, Path(directory) / f"{stem}.json")
    if fmt == 'xml':
        return write_xml(records, Path(directory) / f"{stem}.xml")
    raise ValueError(f"Unknown output format: '{fmt}'. Valid formats: {', '.join(OUTPUT_FORMATS)}")


def http_payload(result: ScrapeResult) -> Tuple[int, Union[List[Dict[str, Any]], Dict[str, Any]]]:
    """
    Map a scrape outcome to an HTTP status and body.

    Returns:
        (200, [articles]) on success
        (200, {"message": "No articles found"}) when nothing was found
        (500, {"error": "Scraping failed", "details": ...}) on fatal errors
    """
    if not result.success:
        return 500, {'error': 'Scraping failed', 'details': result.error}
    if not result.articles:
        return 200, {'message': NO_ARTICLES_MESSAGE}
    return 200, [r.to_dict() for r in result.articles]
