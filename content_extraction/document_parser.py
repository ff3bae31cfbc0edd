"""
Markup → document tree
"""

import logging

from bs4 import BeautifulSoup

from .errors import UnparsableMarkup

logger = logging.getLogger(__name__)

# html5lib recovers broken markup the way browsers do
PARSER = 'html5lib'


def parse_document(markup) -> BeautifulSoup:
    """
    Parse raw HTML into a BeautifulSoup tree owned by the caller.

    Unclosed tags and bad nesting are repaired rather than rejected;
    only non-text or blank input raises ``UnparsableMarkup``.
    """
    if isinstance(markup, bytes):
        raise UnparsableMarkup("Markup must be decoded text, got bytes")
    if not isinstance(markup, str):
        raise UnparsableMarkup(f"Markup must be text, got {type(markup).__name__}")
    if not markup.strip():
        raise UnparsableMarkup("Markup is empty")

    soup = BeautifulSoup(markup, PARSER)
    logger.debug(f"Parsed {len(markup)} chars of markup")
    return soup
