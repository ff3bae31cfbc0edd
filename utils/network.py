#!/usr/bin/env python3
"""
Network utilities: URL validation and the shared httpx client factory
"""

import logging
from typing import Dict, Optional
from urllib.parse import urlparse

import httpx

from config import config

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ('http', 'https')

class InvalidURLError(ValueError):
    """Raised when a caller-supplied URL is rejected before any retrieval"""
    pass

def default_headers() -> Dict[str, str]:
    return {
        "User-Agent": config.USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,application/json;q=0.8,*/*;q=0.7",
        "Cache-Control": "no-cache",
    }

def validate_article_url(url) -> str:
    """
    Check that a caller-supplied URL is an absolute http(s) URL

    Args:
        url: URL to check

    Returns:
        The stripped URL

    Raises:
        InvalidURLError: If the URL is malformed
    """
    if not isinstance(url, str):
        raise InvalidURLError(f"URL must be a string, got {type(url).__name__}")

    url = url.strip()
    if not url:
        raise InvalidURLError("URL is empty")

    if any(ch.isspace() for ch in url):
        raise InvalidURLError(f"URL contains whitespace: {url!r}")

    if not url.isprintable():
        raise InvalidURLError(f"URL contains non-printable characters: {url!r}")

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        port = parsed.port  # raises ValueError on a bad port
    except ValueError as e:
        raise InvalidURLError(f"Malformed URL {url!r}: {e}") from e

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURLError(f"Unsupported scheme: {parsed.scheme or '(none)'}")

    if not hostname:
        raise InvalidURLError(f"No hostname in URL: {url!r}")

    if port == 0:
        raise InvalidURLError(f"Invalid port in URL: {url!r}")

    return url

def build_http_client(timeout_s: Optional[float] = None) -> httpx.AsyncClient:
    """
    Create an AsyncClient with the project's headers and redirect policy

    Callers own the client and must close it (``async with``).
    """
    timeout_s = timeout_s or config.RELAY_ATTEMPT_TIMEOUT_S
    connect_s = min(5.0, timeout_s)
    timeout = httpx.Timeout(timeout_s, connect=connect_s)
    return httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=5,
        timeout=timeout,
        headers=default_headers(),
    )
