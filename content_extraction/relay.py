"""
Relay retrieval: one attempt per provider (RelayClient) and the ordered
fallback chain over providers (RelayChain)
"""

import logging
import time
from typing import Iterable, List, Optional, Sequence

import httpx

from config import config
from utils.logging_config import log_external_call
from utils.network import build_http_client

from .errors import (
    AllProvidersExhausted, BadStatus, DecodeError, RelayError, TimedOut, TransportError,
)
from .models import (
    AttemptOutcome, EnvelopeKind, RelayProvider, RetrievalAttempt, RetrievalResult,
)
from .timeout_guard import with_timeout

logger = logging.getLogger(__name__)


def load_providers(raw: Optional[Iterable[dict]] = None) -> List[RelayProvider]:
    """Build RelayProvider objects from config-style dicts (default: config.RELAY_PROVIDERS)"""
    if raw is None:
        raw = config.RELAY_PROVIDERS
    return [RelayProvider.from_dict(item) for item in raw]


class RelayClient:
    """Performs a single GET through one relay and unwraps its envelope"""

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client

    async def fetch(self, url: str, provider: RelayProvider) -> str:
        """
        Fetch ``url`` through ``provider``.

        Raises:
            TimedOut: the HTTP client's own timeout expired
            TransportError: network failure or a request URL httpx refuses
            BadStatus: non-2xx response
            DecodeError: json-wrapped envelope without usable markup
        """
        request_url = provider.build_request_url(url)
        started = time.monotonic()

        try:
            response = await self.http_client.get(request_url)
        except httpx.TimeoutException as e:
            # Client-side timeout fired before the guard's deadline
            raise TimedOut(f"relay {provider.identifier}", self.http_client.timeout.read or 0.0) from e
        except httpx.HTTPError as e:
            raise TransportError(provider.identifier, f"{type(e).__name__}: {e}") from e
        except httpx.InvalidURL as e:
            # Template rendered a URL httpx refuses to send
            raise TransportError(provider.identifier, f"InvalidURL: {e}") from e

        log_external_call(
            logger, provider.identifier, time.monotonic() - started,
            status_code=response.status_code, relay_provider=provider.identifier,
        )

        if not response.is_success:
            raise BadStatus(provider.identifier, response.status_code)

        return self._decode(response, provider)

    @staticmethod
    def _decode(response: httpx.Response, provider: RelayProvider) -> str:
        if provider.envelope_kind is EnvelopeKind.RAW_TEXT:
            return response.text

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError(provider.identifier, f"invalid JSON envelope: {e}") from e

        if not isinstance(payload, dict) or provider.json_field not in payload:
            raise DecodeError(provider.identifier, f"envelope has no '{provider.json_field}' field")

        markup = payload[provider.json_field]
        if not isinstance(markup, str):
            raise DecodeError(
                provider.identifier,
                f"'{provider.json_field}' is {type(markup).__name__}, expected text",
            )
        return markup


_OUTCOMES = {
    TimedOut: AttemptOutcome.TIMEOUT,
    TransportError: AttemptOutcome.TRANSPORT_ERROR,
    BadStatus: AttemptOutcome.BAD_STATUS,
    DecodeError: AttemptOutcome.DECODE_ERROR,
}


class RelayChain:
    """
    Tries relay providers strictly in configured order, one at a time.

    Each attempt gets its own deadline. Any per-attempt failure (timeout,
    transport error, bad status, undecodable envelope, markup below
    ``min_markup_length``) moves on to the next provider. Only when every
    provider has failed is ``AllProvidersExhausted`` raised.
    """

    def __init__(self,
                 providers: Optional[Sequence[RelayProvider]] = None,
                 attempt_timeout_s: Optional[float] = None,
                 min_markup_length: Optional[int] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.providers = tuple(providers if providers is not None else load_providers())
        self.attempt_timeout_s = attempt_timeout_s or config.RELAY_ATTEMPT_TIMEOUT_S
        self.min_markup_length = (
            min_markup_length if min_markup_length is not None else config.MIN_MARKUP_LENGTH
        )
        self.http_client = http_client

    async def retrieve(self, url: str) -> RetrievalResult:
        if self.http_client is not None:
            return await self._retrieve_with(self.http_client, url)

        async with build_http_client(self.attempt_timeout_s) as client:
            return await self._retrieve_with(client, url)

    async def _retrieve_with(self, http_client: httpx.AsyncClient, url: str) -> RetrievalResult:
        relay = RelayClient(http_client)
        attempts: List[RetrievalAttempt] = []
        total = len(self.providers)

        for index, provider in enumerate(self.providers, start=1):
            logger.info(f"Trying relay {index}/{total}: {provider.identifier}")
            started = time.monotonic()

            try:
                markup = await with_timeout(
                    relay.fetch(url, provider),
                    self.attempt_timeout_s,
                    label=f"relay {provider.identifier}",
                )
            except (TimedOut, RelayError) as e:
                outcome = _OUTCOMES.get(type(e), AttemptOutcome.TRANSPORT_ERROR)
                attempts.append(RetrievalAttempt(
                    provider=provider, started_at=started, outcome=outcome,
                    detail=str(e), elapsed_s=time.monotonic() - started,
                ))
                logger.warning(
                    f"Relay {index}/{total} ({provider.identifier}) failed: {e}",
                    extra={'relay_provider': provider.identifier, 'outcome': outcome.value},
                )
                continue

            elapsed = time.monotonic() - started
            if len(markup) < self.min_markup_length:
                attempts.append(RetrievalAttempt(
                    provider=provider, started_at=started, outcome=AttemptOutcome.TOO_SHORT,
                    detail=f"{len(markup)} chars < {self.min_markup_length}", elapsed_s=elapsed,
                ))
                logger.warning(
                    f"Relay {index}/{total} ({provider.identifier}) returned only {len(markup)} chars",
                    extra={'relay_provider': provider.identifier,
                           'outcome': AttemptOutcome.TOO_SHORT.value},
                )
                continue

            attempts.append(RetrievalAttempt(
                provider=provider, started_at=started, outcome=AttemptOutcome.SUCCESS,
                detail=f"{len(markup)} chars", elapsed_s=elapsed,
            ))
            logger.info(
                f"Relay {provider.identifier} returned {len(markup)} chars in {elapsed:.2f}s",
                extra={'relay_provider': provider.identifier,
                       'outcome': AttemptOutcome.SUCCESS.value},
            )
            return RetrievalResult(provider=provider, markup=markup, attempts=attempts)

        raise AllProvidersExhausted(attempts)
