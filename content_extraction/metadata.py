"""
Article metadata: title, author, domain, tags, reading statistics
"""

import logging
import math
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from config import config

from .content_locator import collapse_whitespace
from .models import ArticleMetadata

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = 'Unknown Author'

# Known platforms → tags. Seed only, no content-based classification.
DOMAIN_TAGS = {
    'medium.com': ('Medium', 'Article'),
    'dev.to': ('Development', 'Programming'),
    'github.com': ('GitHub', 'Code'),
    'wikipedia.org': ('Wikipedia', 'Reference'),
    'reddit.com': ('Reddit', 'Discussion'),
    'stackoverflow.com': ('Programming', 'Q&A'),
}

PUBLISHED_DATE_SELECTORS = [
    'meta[property="article:published_time"]',
    'meta[name="date"]',
    'meta[name="DC.date"]',
    'time[datetime]',
]


def extract_domain(url: str) -> str:
    """Hostname with exactly one leading ``www.`` removed"""
    hostname = (urlparse(url).hostname or '').lower()
    if hostname.startswith('www.'):
        hostname = hostname[len('www.'):]
    return hostname


def ordered_unique(values: Iterable[str]) -> List[str]:
    """Keep first occurrences, drop blanks and repeats"""
    seen = set()
    result = []
    for value in values:
        value = value.strip() if isinstance(value, str) else ''
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def tags_for_domain(domain: str) -> Tuple[str, ...]:
    """Exact match first, then the closest listed parent domain (en.wikipedia.org → wikipedia.org)"""
    if domain in DOMAIN_TAGS:
        return DOMAIN_TAGS[domain]

    parts = domain.split('.')
    for i in range(1, len(parts) - 1):
        parent = '.'.join(parts[i:])
        if parent in DOMAIN_TAGS:
            return DOMAIN_TAGS[parent]
    return ()


def count_words(text: str) -> int:
    return len(text.split())


def estimate_read_time(word_count: int, words_per_minute: Optional[int] = None) -> int:
    words_per_minute = words_per_minute or config.WORDS_PER_MINUTE
    return max(1, math.ceil(word_count / words_per_minute))


def _first_text(document: BeautifulSoup, selector: str) -> str:
    element = document.select_one(selector)
    if element is None:
        return ''
    return collapse_whitespace(element.get_text(' '))


def _first_attr(document: BeautifulSoup, selector: str, attribute: str) -> str:
    element = document.select_one(selector)
    if element is None:
        return ''
    return collapse_whitespace(element.get(attribute) or '')


def extract_title(document: Optional[BeautifulSoup], domain: str) -> str:
    if document is not None:
        candidates = (
            lambda: _first_text(document, 'title'),
            lambda: _first_text(document, 'h1'),
            lambda: _first_attr(document, 'meta[property="og:title"]', 'content'),
        )
        for candidate in candidates:
            title = candidate()
            if title:
                return title
    return f"Article from {domain}"


def extract_author(document: Optional[BeautifulSoup]) -> str:
    if document is None:
        return UNKNOWN_AUTHOR

    candidates = (
        lambda: _first_text(document, '[rel="author"]'),
        lambda: _first_text(document, '[class*="author"]'),
        lambda: _first_attr(document, 'meta[name="author"]', 'content'),
    )
    for candidate in candidates:
        author = candidate()
        # author-bio blocks match the class hint too; a byline is short
        if author and len(author) <= config.MAX_AUTHOR_LENGTH:
            return author
    return UNKNOWN_AUTHOR


def extract_published_at(document: Optional[BeautifulSoup]) -> Optional[str]:
    if document is None:
        return None

    for selector in PUBLISHED_DATE_SELECTORS:
        element = document.select_one(selector)
        if element is None:
            continue
        value = (element.get('content') or element.get('datetime') or '').strip()
        if value:
            return value
    return None


def extract_metadata(document: Optional[BeautifulSoup], url: str, content: str) -> ArticleMetadata:
    """
    Derive ArticleMetadata from the parsed page and the (possibly placeholder) content.

    ``document`` may be None when nothing was retrieved; every field then
    falls back to its default.
    """
    domain = extract_domain(url)
    word_count = count_words(content)

    metadata = ArticleMetadata(
        title=extract_title(document, domain),
        author=extract_author(document),
        domain=domain,
        tags=tuple(ordered_unique(tags_for_domain(domain))),
        word_count=word_count,
        read_time_minutes=estimate_read_time(word_count),
        published_at=extract_published_at(document),
    )
    logger.debug(f"Metadata for {domain}: title={metadata.title!r}, author={metadata.author!r}, "
                 f"{word_count} words")
    return metadata
