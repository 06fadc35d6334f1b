"""Shared test fixtures for the germandub test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from germandub.domain.entities.stremio import (
    HosterEntry,
    HosterLanguage,
    MetaInfo,
    SearchHit,
    UnrestrictResult,
)

_ENV_VARS = (
    "RD_API_KEY",
    "OMDB_API_KEY",
    "GERMANDUB_APP_NAME",
    "GERMANDUB_ENVIRONMENT",
    "GERMANDUB_HTTP_TIMEOUT_SECONDS",
    "GERMANDUB_HTTP_USER_AGENT",
    "GERMANDUB_LOG_LEVEL",
    "GERMANDUB_LOG_FORMAT",
    "GERMANDUB_RD_API_KEY",
    "GERMANDUB_OMDB_API_KEY",
    "GERMANDUB_SITE_BASE_URL",
    "GERMANDUB_SEARCH_FALLBACK_QUERIES",
    "GERMANDUB_SEARCH_HIT_SELECTION",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep credentials from the developer's shell out of config loading."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def meta_info() -> MetaInfo:
    return MetaInfo(title="Breaking Bad", year="2008", kind="series")


@pytest.fixture()
def search_hit() -> SearchHit:
    return SearchHit(title="Breaking Bad", page_url="https://s.to/serie/breaking-bad")


@pytest.fixture()
def hoster_entry() -> HosterEntry:
    return HosterEntry(
        display_name="VOE",
        redirect_url="https://s.to/redirect/111",
        language=HosterLanguage.GERMAN_DUB,
        link_id="111",
    )


@pytest.fixture()
def unrestrict_result() -> UnrestrictResult:
    return UnrestrictResult(
        direct_url="https://download.real-debrid.com/d/ABC/episode.mkv",
        filename="episode.mkv",
        filesize_bytes=1073741824,
        host_name="voe.sx",
    )


# ---------------------------------------------------------------------------
# Port mocks
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_metadata(meta_info: MetaInfo) -> AsyncMock:
    mock = AsyncMock()
    mock.name = "mock"
    mock.lookup.return_value = meta_info
    return mock


@pytest.fixture()
def mock_search(search_hit: SearchHit) -> AsyncMock:
    mock = AsyncMock()
    mock.search.return_value = [search_hit]
    return mock


@pytest.fixture()
def mock_hosters(hoster_entry: HosterEntry) -> AsyncMock:
    mock = AsyncMock()
    mock.extract.return_value = [hoster_entry]
    return mock


@pytest.fixture()
def mock_redirects() -> AsyncMock:
    mock = AsyncMock()
    mock.resolve.return_value = "https://voe.sx/e/abc123"
    return mock


@pytest.fixture()
def mock_debrid(unrestrict_result: UnrestrictResult) -> AsyncMock:
    mock = AsyncMock()
    mock.unrestrict.return_value = unrestrict_result
    return mock
