"""
Heuristic main-content location.

Rules are tried in priority order; the first one whose cleaned text reaches
``min_content_length`` wins. If none does, paragraphs across the whole
document are aggregated and used when they beat the best rule result.
"""

import copy
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from config import config

from .errors import NoContentFound
from .models import ContentCandidate

logger = logging.getLogger(__name__)

# Subtrees that never belong to the article body
NOISE_TAGS = ['script', 'style', 'noscript', 'nav', 'header', 'footer', 'aside', 'form', 'iframe']
NOISE_SELECTORS = ['.ad', '.ads', '.advertisement', '.social', '.share', '.newsletter', '.subscribe']

PARAGRAPH_SEPARATOR = '\n\n'

_WHITESPACE_RE = re.compile(r'\s+')


def collapse_whitespace(text: str) -> str:
    if not text:
        return ""
    return _WHITESPACE_RE.sub(' ', text.replace('\xa0', ' ')).strip()


def strip_noise_text(element: Tag) -> str:
    """Flatten ``element`` to text without noise subtrees; the document is left untouched"""
    working = copy.copy(element)

    for noise in working.find_all(NOISE_TAGS):
        if not noise.decomposed:
            noise.decompose()

    for selector in NOISE_SELECTORS:
        for noise in working.select(selector):
            if not noise.decomposed:
                noise.decompose()

    return collapse_whitespace(working.get_text(' '))


@dataclass(frozen=True)
class ContentRule:
    """A named match/extract pair evaluated against the whole document"""
    name: str
    match: Callable[[BeautifulSoup], Optional[Tag]]
    extract: Callable[[Tag], str] = strip_noise_text


def css_rule(name: str, selector: str) -> ContentRule:
    return ContentRule(name=name, match=lambda document: document.select_one(selector))


DEFAULT_RULES: Sequence[ContentRule] = (
    css_rule('article', 'article'),
    css_rule('content-hint', '[class*="content"], [id*="content"]'),
    css_rule('post-hint', '[class*="post"]'),
    css_rule('article-hint', '[class*="article"]'),
    css_rule('main', 'main'),
    css_rule('entry-content', '.entry-content'),
    css_rule('post-content', '.post-content'),
    css_rule('article-content', '.article-content'),
)


def collect_paragraphs(document: BeautifulSoup, min_paragraph_length: int) -> List[str]:
    """All <p> texts longer than ``min_paragraph_length``, in document order"""
    paragraphs = []
    for paragraph in document.find_all('p'):
        text = collapse_whitespace(paragraph.get_text(' '))
        if len(text) > min_paragraph_length:
            paragraphs.append(text)
    return paragraphs


def locate_content(document: BeautifulSoup,
                   rules: Sequence[ContentRule] = DEFAULT_RULES,
                   min_content_length: Optional[int] = None,
                   min_paragraph_length: Optional[int] = None) -> ContentCandidate:
    """
    Find the most plausible article body in ``document``.

    Returns:
        The accepted ContentCandidate

    Raises:
        NoContentFound: nothing reached ``min_content_length``; the best
            partial candidate (if any) is attached as ``candidate``
    """
    if min_content_length is None:
        min_content_length = config.MIN_CONTENT_LENGTH
    if min_paragraph_length is None:
        min_paragraph_length = config.MIN_PARAGRAPH_LENGTH

    best: Optional[ContentCandidate] = None

    for rule in rules:
        element = rule.match(document)
        if element is None:
            continue

        candidate = ContentCandidate(source_node=element, text=rule.extract(element), rule=rule.name)
        logger.debug(f"Rule '{rule.name}' matched <{element.name}> with {candidate.length} chars")

        if candidate.length >= min_content_length:
            return candidate

        if best is None or candidate.length > best.length:
            best = candidate

    # Фолбэк: собираем абзацы
    paragraphs = collect_paragraphs(document, min_paragraph_length)
    aggregate = PARAGRAPH_SEPARATOR.join(paragraphs)
    best_length = best.length if best else 0

    if len(aggregate) > best_length:
        logger.debug(f"Paragraph fallback: {len(paragraphs)} paragraphs, {len(aggregate)} chars")
        best = ContentCandidate(
            source_node=document.body or document, text=aggregate, rule='paragraphs',
        )

    if best is not None and best.length >= min_content_length:
        return best

    raise NoContentFound(
        f"No content reached {min_content_length} chars "
        f"(best: {best.length if best else 0} chars)",
        candidate=best,
    )
