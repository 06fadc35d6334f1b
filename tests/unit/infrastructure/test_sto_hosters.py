"""Tests for the s.to hoster extractor."""

from __future__ import annotations

import httpx
import pytest
import respx

from germandub.domain.entities.stremio import HosterEntry, HosterLanguage
from germandub.infrastructure.common.html_selectors import parse_html
from germandub.infrastructure.sto.hosters import (
    StoHosterExtractor,
    display_name,
    episode_url,
    language_for_key,
)

_BASE = "https://s.to"
_SHOW = f"{_BASE}/serie/stream/breaking-bad"

# ---------------------------------------------------------------------------
# Fixture HTML
# ---------------------------------------------------------------------------

_EPISODE_HTML = """\
<html><body>
<div class="hosterSiteVideo">
  <ul class="row">
    <li data-lang-key="1" data-link-id="111" data-link-target="/redirect/111">
      <div class="generateInlinePlayer">
        <a class="watchEpisode" href="/redirect/111"><h4>VOE</h4></a>
      </div>
    </li>
    <li data-lang-key="2" data-link-id="222" data-link-target="/redirect/222">
      <div class="generateInlinePlayer">
        <a class="watchEpisode" href="/redirect/222"><h4>VOE</h4></a>
      </div>
    </li>
    <li data-lang-key="3" data-link-id="333" data-link-target="/redirect/333">
      <div class="generateInlinePlayer">
        <a class="watchEpisode" href="/redirect/333"><h4>Vidoza</h4></a>
      </div>
    </li>
    <li data-lang-key="1" data-link-id="111" data-link-target="/redirect/111">
      <div class="generateInlinePlayer">
        <a class="watchEpisode" href="/redirect/111"><h4>VOE (mirror)</h4></a>
      </div>
    </li>
    <li data-link-id="444" data-link-target="/redirect/444">
      <div class="generateInlinePlayer">
        <a class="watchEpisode" href="/redirect/444"><h4>Doodstream</h4></a>
      </div>
    </li>
  </ul>
</div>
</body></html>
"""

_ATTRIBUTE_HTML = """\
<html><body>
<ul class="hosters">
  <li data-lang-key="1" data-link-id="555"><h4>Streamtape</h4></li>
  <li data-lang-key="1" data-link-id="666" title="Filemoon"></li>
</ul>
</body></html>
"""

_RAW_LINKS_HTML = """\
<html><body>
<div class="links">
  <a href="/redirect/777">Streamtape</a>
  <a href="https://s.to/redirect/888?x=1"></a>
  <a href="/serie/stream/breaking-bad">Back</a>
</div>
</body></html>
"""


@pytest.fixture()
def http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient()


@pytest.fixture()
def extractor(http_client: httpx.AsyncClient) -> StoHosterExtractor:
    return StoHosterExtractor(http_client=http_client, base_url=_BASE)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestEpisodeUrl:
    def test_season_and_episode(self) -> None:
        assert episode_url(_SHOW, 1, 2) == f"{_SHOW}/staffel-1/episode-2"

    def test_trailing_slash_ignored(self) -> None:
        assert episode_url(_SHOW + "/", 3, 4) == f"{_SHOW}/staffel-3/episode-4"

    def test_movie_page_unchanged(self) -> None:
        assert episode_url(f"{_BASE}/filme/inception", None, None) == (
            f"{_BASE}/filme/inception"
        )

    def test_season_only_keeps_page(self) -> None:
        assert episode_url(_SHOW, 2, None) == _SHOW


class TestLanguageForKey:
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("1", HosterLanguage.GERMAN_DUB),
            ("3", HosterLanguage.GERMAN_SUB),
            ("", HosterLanguage.GERMAN_UNSPECIFIED),
            (None, HosterLanguage.GERMAN_UNSPECIFIED),
            ("2", None),
            ("7", None),
        ],
    )
    def test_mapping(self, key: str | None, expected: HosterLanguage | None) -> None:
        assert language_for_key(key) is expected


class TestDisplayName:
    def test_nested_h4(self) -> None:
        el = parse_html("<div><a><h4> VOE </h4></a></div>").select_one("div")
        assert display_name(el, 40) == "VOE"

    def test_name_class(self) -> None:
        el = parse_html('<div><span class="name">Vidoza</span></div>').select_one(
            "div"
        )
        assert display_name(el, 40) == "Vidoza"

    def test_title_attribute(self) -> None:
        el = parse_html('<a title="Filemoon"></a>').select_one("a")
        assert display_name(el, 40) == "Filemoon"

    def test_ancestor_list_item_h4(self) -> None:
        html = '<li><h4>Streamtape</h4><a href="/redirect/1"></a></li>'
        el = parse_html(html).select_one("a")
        assert display_name(el, 40) == "Streamtape"

    def test_default_when_nothing_found(self) -> None:
        el = parse_html('<a href="/redirect/1"></a>').select_one("a")
        assert display_name(el, 40) == "Unknown"

    def test_truncated(self) -> None:
        el = parse_html("<div><h4>Doodstream</h4></div>").select_one("div")
        assert display_name(el, 4) == "Dood"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    def test_strict_markup(self, extractor: StoHosterExtractor) -> None:
        entries = extractor.parse(_EPISODE_HTML)

        assert entries == [
            HosterEntry(
                display_name="VOE",
                redirect_url="https://s.to/redirect/111",
                language=HosterLanguage.GERMAN_DUB,
                link_id="111",
            ),
            HosterEntry(
                display_name="Vidoza",
                redirect_url="https://s.to/redirect/333",
                language=HosterLanguage.GERMAN_SUB,
                link_id="333",
            ),
            HosterEntry(
                display_name="Doodstream",
                redirect_url="https://s.to/redirect/444",
                language=HosterLanguage.GERMAN_UNSPECIFIED,
                link_id="444",
            ),
        ]

    def test_duplicate_link_ids_yield_one_entry(
        self, extractor: StoHosterExtractor
    ) -> None:
        entries = extractor.parse(_EPISODE_HTML)
        ids = [e.link_id for e in entries]
        assert ids.count("111") == 1

    def test_language_policy_restricts_entries(
        self, http_client: httpx.AsyncClient
    ) -> None:
        extractor = StoHosterExtractor(
            http_client=http_client,
            base_url=_BASE,
            accepted_languages=[HosterLanguage.GERMAN_DUB],
        )
        entries = extractor.parse(_EPISODE_HTML)
        assert [e.link_id for e in entries] == ["111"]

    def test_attribute_strategy_when_no_player_markup(
        self, extractor: StoHosterExtractor
    ) -> None:
        entries = extractor.parse(_ATTRIBUTE_HTML)
        assert [(e.display_name, e.link_id) for e in entries] == [
            ("Streamtape", "555"),
            ("Filemoon", "666"),
        ]
        assert all(e.language is HosterLanguage.GERMAN_DUB for e in entries)

    def test_raw_link_strategy_as_last_resort(
        self, extractor: StoHosterExtractor
    ) -> None:
        entries = extractor.parse(_RAW_LINKS_HTML)
        assert [(e.display_name, e.redirect_url) for e in entries] == [
            ("Streamtape", "https://s.to/redirect/777"),
            ("Unknown", "https://s.to/redirect/888"),
        ]
        assert all(
            e.language is HosterLanguage.GERMAN_UNSPECIFIED for e in entries
        )

    def test_raw_links_obey_language_policy(
        self, http_client: httpx.AsyncClient
    ) -> None:
        extractor = StoHosterExtractor(
            http_client=http_client,
            base_url=_BASE,
            accepted_languages=[HosterLanguage.GERMAN_DUB],
        )
        assert extractor.parse(_RAW_LINKS_HTML) == []

    def test_only_foreign_languages_yield_nothing(
        self, extractor: StoHosterExtractor
    ) -> None:
        html = """\
<div class="hosterSiteVideo"><ul>
  <li data-lang-key="2" data-link-id="1">
    <div class="generateInlinePlayer"><a href="/redirect/1"><h4>VOE</h4></a></div>
  </li>
</ul></div>
"""
        assert extractor.parse(html) == []

    def test_custom_redirect_path(self, http_client: httpx.AsyncClient) -> None:
        extractor = StoHosterExtractor(
            http_client=http_client,
            base_url="https://s.to/",
            redirect_path="/r/{link_id}/go",
        )
        entries = extractor.parse(_ATTRIBUTE_HTML)
        assert entries[0].redirect_url == "https://s.to/r/555/go"

    def test_empty_page(self, extractor: StoHosterExtractor) -> None:
        assert extractor.parse("") == []


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


class TestExtract:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_fetches_episode_page(self, extractor: StoHosterExtractor) -> None:
        route = respx.get(f"{_SHOW}/staffel-1/episode-2").mock(
            return_value=httpx.Response(200, text=_EPISODE_HTML)
        )

        entries = await extractor.extract(_SHOW, 1, 2)

        assert route.called
        assert [e.link_id for e in entries] == ["111", "333", "444"]

    @respx.mock
    @pytest.mark.asyncio()
    async def test_fetches_movie_page(self, extractor: StoHosterExtractor) -> None:
        route = respx.get(f"{_BASE}/filme/inception").mock(
            return_value=httpx.Response(200, text=_ATTRIBUTE_HTML)
        )

        entries = await extractor.extract(f"{_BASE}/filme/inception")

        assert route.called
        assert len(entries) == 2

    @respx.mock
    @pytest.mark.asyncio()
    async def test_http_error_returns_empty(
        self, extractor: StoHosterExtractor
    ) -> None:
        respx.get(f"{_SHOW}/staffel-1/episode-2").mock(
            return_value=httpx.Response(404)
        )
        assert await extractor.extract(_SHOW, 1, 2) == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_timeout_returns_empty(self, extractor: StoHosterExtractor) -> None:
        respx.get(f"{_SHOW}/staffel-1/episode-2").mock(
            side_effect=httpx.ReadTimeout("slow")
        )
        assert await extractor.extract(_SHOW, 1, 2) == []
