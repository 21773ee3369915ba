"""Shared fixtures."""

import pytest
import respx

from chromagent.app.core.config import Settings
from chromagent.app.nia.client import NiaClient
from chromagent.app.tools.sources import SourceCatalog

NIA_BASE = "https://nia.test/v2"
GATEWAY_BASE = "https://gateway.test/v1"

CHROMIUM_REPOS = [
    "chromium/chromium/tree/main/base",
    "chromium/chromium/tree/main/net",
    "chromium/chromium/tree/main/content",
]


@pytest.fixture
def make_settings(monkeypatch):
    """Build Settings isolated from the host environment and .env file."""
    for name in (
        "NIA_API_KEY", "AI_GATEWAY_API_KEY", "AGENT_PROFILE",
        "CHROMIUM_DOCS_SOURCES", "CHROMIUM_REPO_SOURCES",
        "ARCHIVE_SOURCES", "BIOGRAPHY_SOURCES", "NAVAL_SOURCE_ID",
        "MAINTENANCE_MODE",
    ):
        monkeypatch.delenv(name, raising=False)

    def _make(**overrides) -> Settings:
        values = {
            "nia_api_key": "nia-test-key",
            "nia_api_base": NIA_BASE,
            "ai_gateway_api_key": "gateway-test-key",
            "ai_gateway_base_url": GATEWAY_BASE,
            "chromium_docs_sources": ["doc-1", "doc-2"],
            "chromium_repo_sources": CHROMIUM_REPOS,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def catalog() -> SourceCatalog:
    return SourceCatalog(docs=["doc-1", "doc-2"], repos=list(CHROMIUM_REPOS))


@pytest.fixture
def nia_client() -> NiaClient:
    return NiaClient(base_url=NIA_BASE, api_key="nia-test-key")


@pytest.fixture
def nia_api():
    """Mock every HTTP call; unmatched requests fail the test."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock
