"""
Shared test helpers: fake relay providers served by httpx.MockTransport
"""

import inspect
import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from content_extraction.models import EnvelopeKind, RelayProvider

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(filename: str) -> str:
    """Загружает HTML фикстуру из файла"""
    with open(FIXTURES_DIR / filename, 'r', encoding='utf-8') as f:
        return f.read()


def relay_provider(name: str, kind: EnvelopeKind = EnvelopeKind.RAW_TEXT) -> RelayProvider:
    """Provider whose requests land on host ``<name>.relay.test``"""
    return RelayProvider(
        identifier=name,
        endpoint_template=f"https://{name}.relay.test/fetch?url={{encoded_url}}",
        envelope_kind=kind,
    )


class RelayRecorder:
    """Routes requests by relay name and remembers the order they arrived in"""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []
        self.requests = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        name = request.url.host.split('.')[0]
        self.calls.append(name)
        self.requests.append(request)

        route = self.routes.get(name)
        if route is None:
            return httpx.Response(404, text="unknown relay")

        result = route(request)
        if inspect.isawaitable(result):
            result = await result
        return result


@pytest.fixture
def mock_relays():
    """Factory: mock_relays({'name': handler}) -> (AsyncClient, RelayRecorder)"""

    def factory(routes):
        recorder = RelayRecorder(routes)
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        return client, recorder

    return factory


@pytest.fixture
def article_html():
    return load_fixture("article_with_noise.html")
