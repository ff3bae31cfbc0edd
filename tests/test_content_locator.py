"""
Тесты для ContentLocator: приоритет правил, очистка шума, фолбэк на абзацы
"""

import pytest

from conftest import load_fixture
from content_extraction.content_locator import (
    DEFAULT_RULES, PARAGRAPH_SEPARATOR, ContentRule, collapse_whitespace, css_rule, locate_content,
)
from content_extraction.document_parser import parse_document
from content_extraction.errors import NoContentFound

ARTICLE_TEXT = (
    "Why Relay Chains Fail Gracefully By Jane Doe "
    "Relay services sit between a reader and the page they want to save, and each of them "
    "can be slow, blocked or simply gone on any given day. "
    "Trying them one after another, with a strict deadline for every attempt, keeps a single "
    "bad relay from stalling the whole extraction."
)

LONG = "Readable sentence about relays and timeouts. " * 6


def test_article_text_without_noise():
    document = parse_document(load_fixture("article_with_noise.html"))

    candidate = locate_content(document)

    assert candidate.rule == 'article'
    assert candidate.text == ARTICLE_TEXT
    for noise in ("navigation", "header banner", "footer", "tracking", "sidebar", "advertisement"):
        assert noise not in candidate.text, f"Найден мусорный контент: {noise}"


def test_document_is_not_mutated():
    document = parse_document(load_fixture("article_with_noise.html"))
    locate_content(document)

    article = document.find('article')
    assert article.find('script') is not None
    assert article.find('aside') is not None


def test_paragraph_fallback_keeps_document_order():
    document = parse_document(load_fixture("paragraphs_only.html"))

    candidate = locate_content(document)

    assert candidate.rule == 'paragraphs'
    paragraphs = candidate.text.split(PARAGRAPH_SEPARATOR)
    assert len(paragraphs) == 4
    assert paragraphs[0].startswith("First paragraph")
    assert paragraphs[1].startswith("Second paragraph")
    assert paragraphs[2].startswith("Third paragraph")
    assert paragraphs[3].startswith("Fourth paragraph")
    assert "Short one." not in candidate.text


def test_paragraph_fallback_beats_short_selector_match():
    document = parse_document(load_fixture("short_main.html"))

    candidate = locate_content(document)

    assert candidate.rule == 'paragraphs'
    assert candidate.text.startswith("Only a teaser lives inside the main element.")
    assert "The real story is told" in candidate.text


def test_rule_priority_first_accepted_wins():
    html = f"""
    <html><body>
      <main>{LONG}</main>
      <article>{LONG} article body</article>
    </body></html>
    """
    candidate = locate_content(parse_document(html))
    assert candidate.rule == 'article'
    assert candidate.text.endswith("article body")


def test_short_rule_falls_through_to_next_rule():
    html = f"""
    <html><body>
      <article>Tiny teaser.</article>
      <div class="entry-content">{LONG}</div>
    </body></html>
    """
    candidate = locate_content(parse_document(html))
    assert candidate.rule == 'content-hint'
    assert candidate.text == collapse_whitespace(LONG)


def test_content_hint_matches_id():
    html = f"<html><body><div id='main-content'>{LONG}</div></body></html>"
    candidate = locate_content(parse_document(html))
    assert candidate.rule == 'content-hint'


def test_no_content_found_for_app_shell():
    document = parse_document(load_fixture("app_shell.html"))

    with pytest.raises(NoContentFound) as exc_info:
        locate_content(document)

    assert exc_info.value.candidate is None


def test_no_content_found_carries_best_partial_candidate():
    html = "<html><body><article>" + "Short but readable text. " * 5 + "</article></body></html>"

    with pytest.raises(NoContentFound) as exc_info:
        locate_content(parse_document(html))

    partial = exc_info.value.candidate
    assert partial is not None
    assert partial.rule == 'article'
    assert 100 < partial.length < 200


def test_thresholds_are_configurable():
    html = "<html><body><article>" + "x" * 60 + "</article></body></html>"
    candidate = locate_content(parse_document(html), min_content_length=50)
    assert candidate.length == 60


def test_custom_rules_in_isolation():
    rules = [ContentRule(name='story', match=lambda doc: doc.select_one('#story'))]
    html = f"<html><body><article>{LONG}</article><div id='story'>{LONG} story</div></body></html>"

    candidate = locate_content(parse_document(html), rules=rules)

    assert candidate.rule == 'story'
    assert candidate.text.endswith("story")


def test_default_rule_order():
    assert [rule.name for rule in DEFAULT_RULES] == [
        'article', 'content-hint', 'post-hint', 'article-hint', 'main',
        'entry-content', 'post-content', 'article-content',
    ]


def test_css_rule_returns_first_match():
    rule = css_rule('para', 'p')
    document = parse_document("<p>one</p><p>two</p>")
    assert rule.match(document).get_text() == "one"


def test_collapse_whitespace():
    assert collapse_whitespace("  a\n\n b\t\xa0c  ") == "a b c"
    assert collapse_whitespace("") == ""
