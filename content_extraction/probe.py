"""
Quick, advisory reachability check through a single relay
"""

import logging
from typing import Optional

import httpx

from config import config
from utils.network import build_http_client

from .models import AccessibilityStatus, ProbeResult, RelayProvider
from .relay import load_providers
from .timeout_guard import with_timeout

logger = logging.getLogger(__name__)


async def probe_accessibility(url: str,
                              provider: Optional[RelayProvider] = None,
                              timeout_s: Optional[float] = None,
                              http_client: Optional[httpx.AsyncClient] = None) -> ProbeResult:
    """
    HEAD the URL through one relay under a short deadline.

    Never raises: any failure, including a missing provider, reports
    ``unknown``. The answer must not decide whether extraction runs.
    """
    timeout_s = timeout_s or config.PROBE_TIMEOUT_S

    try:
        if provider is None:
            providers = load_providers()
            if not providers:
                return ProbeResult(AccessibilityStatus.UNKNOWN, message='No relay providers configured')
            provider = providers[0]

        request_url = provider.build_request_url(url)

        if http_client is not None:
            response = await with_timeout(http_client.head(request_url), timeout_s, label='probe')
        else:
            async with build_http_client(timeout_s) as client:
                response = await with_timeout(client.head(request_url), timeout_s, label='probe')

    except Exception as e:
        logger.info(f"Accessibility probe for {url} inconclusive: {e}")
        return ProbeResult(AccessibilityStatus.UNKNOWN, message='Could not test URL accessibility')

    if response.is_success:
        return ProbeResult(AccessibilityStatus.ACCESSIBLE, response.status_code, 'URL is accessible')

    return ProbeResult(AccessibilityStatus.INACCESSIBLE, response.status_code, 'URL may not be accessible')
