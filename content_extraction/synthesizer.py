"""
Composes pipeline outputs into the final ArticleRecord.

Two exits: the success path (real content) and the degraded path
(placeholder content). Neither raises; extraction failure is data.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from config import config

from .metadata import UNKNOWN_AUTHOR, extract_domain, ordered_unique
from .models import ArticleMetadata, ArticleRecord

logger = logging.getLogger(__name__)

ERROR_TAGS = ['Manual', 'Error']
ELLIPSIS = '...'

DEGRADED_TEMPLATE = """Content from {domain} could not be extracted automatically.

Reason: {reason}

This might be because:
- The website blocks automated access
- Content is loaded dynamically with JavaScript
- The website structure is not supported
- The request timed out

Original URL: {url}

Please visit the original URL to read the full article, or use your browser's reader view and copy the text manually."""

TagsInput = Optional[Union[str, Iterable[str]]]


def parse_tags(value: TagsInput) -> List[str]:
    """Caller tags from a comma-delimited string or an iterable of strings"""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(',')
    return ordered_unique(value)


def make_excerpt(content: str, length: Optional[int] = None) -> str:
    length = length or config.EXCERPT_LENGTH
    if len(content) <= length:
        return content
    return content[:length] + ELLIPSIS


def resolve_title(extracted_title: str, title_override: Optional[str] = None) -> str:
    """Non-blank override wins; result is capped at MAX_TITLE_LENGTH"""
    title = extracted_title
    if title_override is not None and title_override.strip():
        title = title_override.strip()
    return title[:config.MAX_TITLE_LENGTH]


def degraded_content(url: str, reason: str) -> str:
    return DEGRADED_TEMPLATE.format(domain=extract_domain(url) or url, reason=reason, url=url)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_article_record(url: str,
                         content: str,
                         metadata: ArticleMetadata,
                         title_override: Optional[str] = None,
                         tags: TagsInput = None,
                         relay_provider: Optional[str] = None) -> ArticleRecord:
    """Success path: real content located on the page"""
    return ArticleRecord(
        title=resolve_title(metadata.title, title_override),
        content=content,
        excerpt=make_excerpt(content),
        author=metadata.author,
        domain=metadata.domain,
        url=url,
        read_time_minutes=max(1, metadata.read_time_minutes),
        tags=ordered_unique(list(metadata.tags) + parse_tags(tags)),
        word_count=metadata.word_count,
        date_added=_now_iso(),
        published_at=metadata.published_at,
        relay_provider=relay_provider,
        degraded=False,
    )


def build_degraded_record(url: str,
                          reason: str,
                          title_override: Optional[str] = None,
                          extracted_title: Optional[str] = None,
                          relay_provider: Optional[str] = None) -> ArticleRecord:
    """
    Degraded path: deterministic placeholder explaining why nothing was extracted.

    Tags are always exactly ERROR_TAGS.
    """
    domain = extract_domain(url)
    content = degraded_content(url, reason)
    title = extracted_title or f"Article from {domain}"

    logger.warning(f"Returning placeholder article for {url}: {reason}", extra={'url': url})

    return ArticleRecord(
        title=resolve_title(title, title_override),
        content=content,
        excerpt=make_excerpt(content),
        author=UNKNOWN_AUTHOR,
        domain=domain,
        url=url,
        read_time_minutes=1,
        tags=list(ERROR_TAGS),
        word_count=0,
        date_added=_now_iso(),
        published_at=None,
        relay_provider=relay_provider,
        degraded=True,
    )


__all__ = [
    'ERROR_TAGS', 'build_article_record', 'build_degraded_record', 'degraded_content',
    'make_excerpt', 'ordered_unique', 'parse_tags', 'resolve_title',
]
