"""
Relay-backed article extraction pipeline.

retrieve (relay chain) → parse → locate content → metadata → ArticleRecord

Every failure after URL validation ends in a degraded ArticleRecord rather
than an exception, so callers can always display or store something.
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Sequence, Union

import httpx

from config import config
from utils.logging_config import TimedLogger, clear_extraction_context, new_extraction_id
from utils.network import validate_article_url

from .content_locator import DEFAULT_RULES, ContentRule, locate_content
from .document_parser import parse_document
from .errors import AllProvidersExhausted, NoContentFound, TimedOut, UnparsableMarkup
from .metadata import extract_metadata, extract_title, extract_domain
from .models import ArticleRecord, ProbeResult, ProgressStage, RelayProvider
from .probe import probe_accessibility
from .relay import RelayChain, load_providers
from .synthesizer import TagsInput, build_article_record, build_degraded_record
from .timeout_guard import with_timeout

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressStage, float], Union[None, Awaitable[None]]]

STAGE_PROGRESS = {
    ProgressStage.PROBING: 0.1,
    ProgressStage.RETRIEVING: 0.3,
    ProgressStage.PARSING: 0.6,
    ProgressStage.SYNTHESIZING: 0.85,
}


class ArticleExtractor:
    """
    Pipeline facade. Holds configuration only; concurrent ``extract`` calls
    share no mutable state.
    """

    def __init__(self,
                 providers: Optional[Sequence[RelayProvider]] = None,
                 attempt_timeout_s: Optional[float] = None,
                 retrieval_timeout_s: Optional[float] = None,
                 probe_timeout_s: Optional[float] = None,
                 min_usable_length: Optional[int] = None,
                 rules: Sequence[ContentRule] = DEFAULT_RULES,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.providers = tuple(providers if providers is not None else load_providers())
        self.attempt_timeout_s = attempt_timeout_s or config.RELAY_ATTEMPT_TIMEOUT_S
        self.retrieval_timeout_s = retrieval_timeout_s or config.EXTRACTION_TIMEOUT_S
        self.probe_timeout_s = probe_timeout_s or config.PROBE_TIMEOUT_S
        self.min_usable_length = (
            min_usable_length if min_usable_length is not None else config.MIN_USABLE_CONTENT_LENGTH
        )
        self.rules = tuple(rules)
        self.http_client = http_client

    def _relay_chain(self) -> RelayChain:
        return RelayChain(
            providers=self.providers,
            attempt_timeout_s=self.attempt_timeout_s,
            http_client=self.http_client,
        )

    async def probe(self, url: str) -> ProbeResult:
        """Advisory reachability check through the first configured relay"""
        url = validate_article_url(url)
        if not self.providers:
            return await probe_accessibility(url, timeout_s=self.probe_timeout_s,
                                             http_client=self.http_client)
        return await probe_accessibility(url, provider=self.providers[0],
                                         timeout_s=self.probe_timeout_s,
                                         http_client=self.http_client)

    async def extract(self,
                      url: str,
                      title_override: Optional[str] = None,
                      tags: TagsInput = None,
                      progress_callback: Optional[ProgressCallback] = None,
                      probe: bool = False) -> ArticleRecord:
        """
        Extract an article from ``url``.

        Args:
            url: absolute http(s) URL
            title_override: replaces the extracted title unless blank
            tags: extra tags, comma-delimited string or list
            progress_callback: ``callback(stage, fraction)``, sync or async
            probe: run the accessibility probe first (result is only logged)

        Returns:
            ArticleRecord, possibly degraded

        Raises:
            InvalidURLError: the URL is malformed; nothing was fetched
        """
        url = validate_article_url(url)
        extraction_id = new_extraction_id()

        try:
            with TimedLogger(logger, f"extraction {extraction_id}", url=url):
                return await self._run(url, title_override, tags, progress_callback, probe)
        except Exception as e:
            logger.warning(f"Falling back to placeholder for {url} after unexpected error: {e}")
            return build_degraded_record(url, 'an unexpected error occurred during extraction',
                                         title_override=title_override)
        finally:
            clear_extraction_context()

    async def _run(self, url, title_override, tags, progress_callback, probe) -> ArticleRecord:
        if probe:
            await _notify(progress_callback, ProgressStage.PROBING)
            result = await self.probe(url)
            logger.info(f"Accessibility probe: {result.status.value} ({result.message})")

        # 1. Retrieve
        await _notify(progress_callback, ProgressStage.RETRIEVING)
        try:
            retrieval = await with_timeout(
                self._relay_chain().retrieve(url), self.retrieval_timeout_s, label='retrieval',
            )
        except AllProvidersExhausted as e:
            logger.error(f"Retrieval failed for {url}: {e}")
            await _notify(progress_callback, ProgressStage.SYNTHESIZING)
            return build_degraded_record(url, 'all relay providers failed',
                                         title_override=title_override)
        except TimedOut as e:
            logger.error(f"Retrieval for {url} exceeded its budget: {e}")
            await _notify(progress_callback, ProgressStage.SYNTHESIZING)
            return build_degraded_record(url, f'retrieval timed out after {e.timeout_s:g}s',
                                         title_override=title_override)

        provider_id = retrieval.provider.identifier

        # 2. Parse
        await _notify(progress_callback, ProgressStage.PARSING)
        try:
            document = parse_document(retrieval.markup)
        except UnparsableMarkup as e:
            logger.error(f"Could not parse markup from {provider_id}: {e}")
            await _notify(progress_callback, ProgressStage.SYNTHESIZING)
            return build_degraded_record(url, 'the page markup could not be parsed',
                                         title_override=title_override,
                                         relay_provider=provider_id)

        # 3. Locate content
        try:
            candidate = locate_content(document, rules=self.rules)
        except NoContentFound as e:
            candidate = e.candidate
            if candidate is None or candidate.length < self.min_usable_length:
                logger.warning(f"No usable content on {url}: {e}")
                await _notify(progress_callback, ProgressStage.SYNTHESIZING)
                return build_degraded_record(
                    url, 'no readable article content was found on the page',
                    title_override=title_override,
                    extracted_title=extract_title(document, extract_domain(url)),
                    relay_provider=provider_id,
                )
            logger.info(f"Using short candidate from rule '{candidate.rule}' ({candidate.length} chars)")

        # 4. Metadata + record
        await _notify(progress_callback, ProgressStage.SYNTHESIZING)
        metadata = extract_metadata(document, url, candidate.text)
        record = build_article_record(
            url, candidate.text, metadata,
            title_override=title_override, tags=tags, relay_provider=provider_id,
        )
        logger.info(
            f"Extracted '{record.title}' from {record.domain}: {len(record.content)} chars "
            f"via rule '{candidate.rule}' and relay {provider_id}"
        )
        return record


async def _notify(progress_callback: Optional[ProgressCallback], stage: ProgressStage):
    """Report a checkpoint; a failing callback never breaks extraction"""
    if progress_callback is None:
        return
    try:
        result = progress_callback(stage, STAGE_PROGRESS[stage])
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.warning(f"Progress update failed: {e}")


async def extract_article(url: str,
                          title_override: Optional[str] = None,
                          tags: TagsInput = None,
                          progress_callback: Optional[ProgressCallback] = None,
                          probe: bool = False) -> ArticleRecord:
    """
    Главная функция: extract with an extractor built from ``config``.
    """
    extractor = ArticleExtractor()
    return await extractor.extract(
        url, title_override=title_override, tags=tags,
        progress_callback=progress_callback, probe=probe,
    )
