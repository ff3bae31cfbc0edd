#!/usr/bin/env python3
"""
Тесты для веб-экстрактора контента: полный конвейер через мок-релеи
"""

import asyncio
import sys
from pathlib import Path

import httpx
import pytest

# Добавляем корневую директорию в путь
sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import load_fixture, relay_provider
from content_extraction import web_extractor
from content_extraction.errors import InvalidURLError
from content_extraction.models import EnvelopeKind, ProgressStage
from content_extraction.web_extractor import ArticleExtractor

ARTICLE_URL = "https://www.example.com/posts/relay-chains"

ARTICLE_TEXT = (
    "Why Relay Chains Fail Gracefully By Jane Doe "
    "Relay services sit between a reader and the page they want to save, and each of them "
    "can be slow, blocked or simply gone on any given day. "
    "Trying them one after another, with a strict deadline for every attempt, keeps a single "
    "bad relay from stalling the whole extraction."
)


def serve(html):
    return lambda request: httpx.Response(200, text=html)


def refuse(request):
    raise httpx.ConnectError("connection refused", request=request)


def assert_record_invariants(record):
    assert len(record.content) >= 100
    assert len(record.title) <= 200
    assert record.read_time_minutes >= 1
    if len(record.content) > 200:
        assert record.excerpt == record.content[:200] + "..."
    else:
        assert record.excerpt == record.content


@pytest.mark.asyncio
async def test_article_extraction(mock_relays):
    """Тест извлечения статьи через первый рабочий релей"""
    client, recorder = mock_relays({'down': refuse, 'up': serve(load_fixture("article_with_noise.html"))})
    extractor = ArticleExtractor([relay_provider('down'), relay_provider('up')], http_client=client)

    async with client:
        record = await extractor.extract(ARTICLE_URL)

    assert recorder.calls == ['down', 'up']
    assert record.degraded is False
    assert record.relay_provider == 'up'
    assert record.content == ARTICLE_TEXT
    assert record.title == "Why Relay Chains Fail Gracefully"
    assert record.author == "Jane Doe"
    assert record.domain == "example.com"
    assert record.url == ARTICLE_URL
    assert record.published_at == "2024-03-01T10:00:00Z"
    assert record.word_count == len(ARTICLE_TEXT.split())
    assert record.read_time_minutes == 1
    assert record.tags == []
    assert_record_invariants(record)

    # Проверяем, что мусор не попал в контент
    for noise in ("navigation", "footer", "tracking", "sidebar", "advertisement"):
        assert noise not in record.content, f"Найден мусорный контент: {noise}"


@pytest.mark.asyncio
async def test_json_wrapped_relay(mock_relays):
    html = load_fixture("article_with_noise.html")
    client, _ = mock_relays({'wrapped': lambda r: httpx.Response(200, json={'contents': html})})
    extractor = ArticleExtractor([relay_provider('wrapped', EnvelopeKind.JSON_WRAPPED)], http_client=client)

    async with client:
        record = await extractor.extract(ARTICLE_URL)

    assert record.content == ARTICLE_TEXT


@pytest.mark.asyncio
async def test_all_relays_fail(mock_relays):
    """Все релеи недоступны: возвращается заглушка, а не исключение"""
    client, recorder = mock_relays({
        'down': refuse,
        'blocked': lambda r: httpx.Response(503),
        'tiny': serve("<p>x</p>"),
    })
    extractor = ArticleExtractor(
        [relay_provider('down'), relay_provider('blocked'), relay_provider('tiny')],
        attempt_timeout_s=1, http_client=client,
    )

    async with client:
        record = await extractor.extract(ARTICLE_URL, tags="a,b")

    assert recorder.calls == ['down', 'blocked', 'tiny']
    assert record.degraded is True
    assert record.tags == ["Manual", "Error"]
    assert record.title == "Article from example.com"
    assert record.author == "Unknown Author"
    assert ARTICLE_URL in record.content
    assert "all relay providers failed" in record.content
    assert record.relay_provider is None
    assert_record_invariants(record)


@pytest.mark.asyncio
async def test_paragraph_fallback(mock_relays):
    client, _ = mock_relays({'up': serve(load_fixture("paragraphs_only.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        record = await extractor.extract("https://example.com/plain")

    assert record.degraded is False
    assert record.title == "Plain Page Without Containers"
    assert record.content.startswith("First paragraph")
    assert record.content.count("\n\n") == 3
    assert_record_invariants(record)


@pytest.mark.asyncio
async def test_app_shell_is_degraded_with_page_title(mock_relays):
    client, _ = mock_relays({'up': serve(load_fixture("app_shell.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        record = await extractor.extract("https://app.example.com/", tags="saved")

    assert record.degraded is True
    assert record.title == "App Shell"
    assert record.tags == ["Manual", "Error"]
    assert record.relay_provider == 'up'
    assert "no readable article content" in record.content
    assert_record_invariants(record)


@pytest.mark.asyncio
async def test_short_candidate_is_used(mock_relays):
    html = "<html><head><title>Brief</title></head><body><article>" + "Short but readable text. " * 5 + "</article></body></html>"
    client, _ = mock_relays({'up': serve(html)})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        record = await extractor.extract("https://example.com/brief")

    assert record.degraded is False
    assert 100 <= len(record.content) < 200
    assert record.excerpt == record.content


@pytest.mark.asyncio
@pytest.mark.parametrize("override, expected", [
    ("  Saved For Later  ", "Saved For Later"),
    ("   ", "Why Relay Chains Fail Gracefully"),
    (None, "Why Relay Chains Fail Gracefully"),
])
async def test_title_override(mock_relays, override, expected):
    client, _ = mock_relays({'up': serve(load_fixture("article_with_noise.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        record = await extractor.extract(ARTICLE_URL, title_override=override)

    assert record.title == expected


@pytest.mark.asyncio
async def test_domain_tags_merge_with_caller_tags(mock_relays):
    client, _ = mock_relays({'up': serve(load_fixture("article_with_noise.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        record = await extractor.extract("https://medium.com/@jane/relays", tags="python, Medium")

    assert record.tags == ["Medium", "Article", "python"]


@pytest.mark.asyncio
@pytest.mark.parametrize("url", [
    "", "not a url", "ftp://example.com/file", "https://", "https://example.com/a\x7fb",
])
async def test_invalid_url_raises_before_any_request(mock_relays, url):
    client, recorder = mock_relays({'up': serve(load_fixture("article_with_noise.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        with pytest.raises(InvalidURLError):
            await extractor.extract(url)

    assert recorder.calls == []


@pytest.mark.asyncio
async def test_progress_stages_in_order(mock_relays):
    client, _ = mock_relays({'up': serve(load_fixture("article_with_noise.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)
    seen = []

    async with client:
        await extractor.extract(ARTICLE_URL, probe=True,
                                progress_callback=lambda stage, fraction: seen.append((stage, fraction)))

    assert [stage for stage, _ in seen] == [
        ProgressStage.PROBING, ProgressStage.RETRIEVING, ProgressStage.PARSING, ProgressStage.SYNTHESIZING,
    ]
    fractions = [fraction for _, fraction in seen]
    assert fractions == sorted(fractions)


@pytest.mark.asyncio
async def test_async_progress_callback(mock_relays):
    client, _ = mock_relays({'up': serve(load_fixture("article_with_noise.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)
    seen = []

    async def on_progress(stage, fraction):
        seen.append(stage)

    async with client:
        await extractor.extract(ARTICLE_URL, progress_callback=on_progress)

    assert seen == [ProgressStage.RETRIEVING, ProgressStage.PARSING, ProgressStage.SYNTHESIZING]


@pytest.mark.asyncio
async def test_failing_progress_callback_is_ignored(mock_relays):
    client, _ = mock_relays({'up': serve(load_fixture("article_with_noise.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    def broken(stage, fraction):
        raise RuntimeError("UI went away")

    async with client:
        record = await extractor.extract(ARTICLE_URL, progress_callback=broken)

    assert record.degraded is False
    assert record.content == ARTICLE_TEXT


@pytest.mark.asyncio
async def test_inaccessible_probe_does_not_block_extraction(mock_relays):
    html = load_fixture("article_with_noise.html")
    client, recorder = mock_relays({
        'up': lambda r: httpx.Response(405) if r.method == "HEAD" else httpx.Response(200, text=html),
    })
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        record = await extractor.extract(ARTICLE_URL, probe=True)

    assert [r.method for r in recorder.requests] == ["HEAD", "GET"]
    assert record.degraded is False


@pytest.mark.asyncio
async def test_retrieval_budget_exceeded(mock_relays):
    async def stall(request):
        await asyncio.sleep(5)
        return httpx.Response(200, text=load_fixture("article_with_noise.html"))

    client, _ = mock_relays({'slow': stall})
    extractor = ArticleExtractor([relay_provider('slow')], attempt_timeout_s=10,
                                 retrieval_timeout_s=0.05, http_client=client)

    async with client:
        record = await extractor.extract(ARTICLE_URL)

    assert record.degraded is True
    assert "retrieval timed out after 0.05s" in record.content
    assert_record_invariants(record)


@pytest.mark.asyncio
async def test_no_relays_configured():
    record = await ArticleExtractor(providers=[]).extract(ARTICLE_URL)

    assert record.degraded is True
    assert record.tags == ["Manual", "Error"]


@pytest.mark.asyncio
async def test_unexpected_error_becomes_placeholder(mock_relays, monkeypatch):
    def explode(*args, **kwargs):
        raise KeyError("boom")

    monkeypatch.setattr(web_extractor, 'extract_metadata', explode)
    client, _ = mock_relays({'up': serve(load_fixture("article_with_noise.html"))})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        record = await extractor.extract(ARTICLE_URL, title_override="Kept")

    assert record.degraded is True
    assert record.title == "Kept"
    assert "unexpected error" in record.content


@pytest.mark.asyncio
async def test_concurrent_extractions_are_independent(mock_relays):
    pages = {
        "https://example.com/article": load_fixture("article_with_noise.html"),
        "https://example.com/plain": load_fixture("paragraphs_only.html"),
    }

    async def route(request):
        await asyncio.sleep(0.01)
        return httpx.Response(200, text=pages[request.url.params['url']])

    client, _ = mock_relays({'up': route})
    extractor = ArticleExtractor([relay_provider('up')], http_client=client)

    async with client:
        first, second = await asyncio.gather(
            extractor.extract("https://example.com/article", tags="one"),
            extractor.extract("https://example.com/plain", tags="two"),
        )

    assert first.title == "Why Relay Chains Fail Gracefully"
    assert first.tags == ["one"]
    assert second.title == "Plain Page Without Containers"
    assert second.tags == ["two"]
