"""Hoster extraction from s.to content and episode pages.

Episode pages list one entry per hoster and language::

    <div class="hosterSiteVideo">
      <ul class="row">
        <li data-lang-key="1" data-link-id="1234567"
            data-link-target="/redirect/1234567">
          <div class="generateInlinePlayer">
            <a class="watchEpisode" href="/redirect/1234567">
              <h4>VOE</h4>
            </a>
          </div>
        </li>
        ...

Markup differs between page generations, so extraction runs an ordered
list of strategies (strict player selector, any ``data-link-id``
attribute, raw redirect links); the first strategy that yields an
accepted entry wins.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Collection
from dataclasses import dataclass

import httpx
import structlog
from bs4 import BeautifulSoup, Tag

from germandub.domain.entities.stremio import HosterEntry, HosterLanguage
from germandub.infrastructure.common.html_selectors import (
    attr_value,
    first_text,
    parse_html,
)

log = structlog.get_logger(__name__)

_DEFAULT_NAME = "Unknown"

# s.to language keys: 1 = German, 2 = English (sub), 3 = German Sub.
_LANGUAGE_KEYS: dict[str, HosterLanguage] = {
    "1": HosterLanguage.GERMAN_DUB,
    "3": HosterLanguage.GERMAN_SUB,
    "": HosterLanguage.GERMAN_UNSPECIFIED,
}

_STRICT_SELECTOR = ".hosterSiteVideo .generateInlinePlayer"
_LINK_ID_SELECTOR = "[data-link-id]"


@dataclass(frozen=True)
class _Candidate:
    element: Tag
    link_id: str


_Strategy = Callable[[BeautifulSoup], list[_Candidate]]


def episode_url(page_url: str, season: int | None, episode: int | None) -> str:
    """Build the episode page URL; the page itself when either part is missing."""
    base = page_url.rstrip("/")
    if season is None or episode is None:
        return base
    return f"{base}/staffel-{season}/episode-{episode}"


def language_for_key(key: str | None) -> HosterLanguage | None:
    """Map a ``data-lang-key`` value to a language tag (None = not German)."""
    return _LANGUAGE_KEYS.get((key or "").strip())


def _language_key(element: Tag) -> str:
    key = attr_value(element, "data-lang-key")
    if key:
        return key
    parent = element.find_parent(attrs={"data-lang-key": True})
    return attr_value(parent, "data-lang-key") if parent is not None else ""


def _link_id(element: Tag) -> str:
    link_id = attr_value(element, "data-link-id")
    if link_id:
        return link_id
    holder = element.select_one(_LINK_ID_SELECTOR) or element.find_parent(
        attrs={"data-link-id": True}
    )
    return attr_value(holder, "data-link-id") if holder is not None else ""


def display_name(element: Tag, max_length: int) -> str:
    """Resolve a hoster's display name from the first non-empty source."""
    name = first_text(element, "h4", ".name") or attr_value(element, "title")
    if not name:
        item = element.find_parent("li")
        if item is not None:
            name = first_text(item, "h4")
    if not name:
        name = first_text(element, "")
    return (name or _DEFAULT_NAME)[:max_length].strip()


class StoHosterExtractor:
    """Fetches a content page and extracts German hoster entries.

    Implements ``HosterExtractorPort`` from domain.ports.site.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = "https://s.to",
        redirect_path: str = "/redirect/{link_id}",
        accepted_languages: Collection[HosterLanguage] = tuple(HosterLanguage),
        display_name_max_length: int = 40,
        user_agent: str = "",
        timeout: float = 15.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._redirect_path = redirect_path
        self._accepted = frozenset(accepted_languages)
        self._max_name_length = display_name_max_length
        self._user_agent = user_agent
        self._timeout = timeout

        redirect_prefix = redirect_path.split("{link_id}", 1)[0]
        self._redirect_selector = f'a[href*="{redirect_prefix}"]'
        self._redirect_id_re = re.compile(
            re.escape(redirect_prefix) + r"([^/?#\"']+)"
        )

        self._strategies: list[tuple[str, _Strategy]] = [
            ("inline_player", self._inline_players),
            ("link_id_attribute", self._link_id_attributes),
            ("redirect_links", self._redirect_links),
        ]

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _inline_players(self, soup: BeautifulSoup) -> list[_Candidate]:
        return [
            _Candidate(element=el, link_id=_link_id(el))
            for el in soup.select(_STRICT_SELECTOR)
        ]

    def _link_id_attributes(self, soup: BeautifulSoup) -> list[_Candidate]:
        return [
            _Candidate(element=el, link_id=attr_value(el, "data-link-id"))
            for el in soup.select(_LINK_ID_SELECTOR)
        ]

    def _redirect_links(self, soup: BeautifulSoup) -> list[_Candidate]:
        candidates: list[_Candidate] = []
        for el in soup.select(self._redirect_selector):
            match = self._redirect_id_re.search(attr_value(el, "href"))
            if match:
                candidates.append(_Candidate(element=el, link_id=match.group(1)))
        return candidates

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def _redirect_url(self, link_id: str) -> str:
        return self._base_url + self._redirect_path.format(link_id=link_id)

    def _accept(self, candidates: list[_Candidate]) -> list[HosterEntry]:
        entries: list[HosterEntry] = []
        seen: set[str] = set()
        for candidate in candidates:
            if not candidate.link_id or candidate.link_id in seen:
                continue
            language = language_for_key(_language_key(candidate.element))
            if language is None or language not in self._accepted:
                continue
            seen.add(candidate.link_id)
            entries.append(
                HosterEntry(
                    display_name=display_name(
                        candidate.element, self._max_name_length
                    ),
                    redirect_url=self._redirect_url(candidate.link_id),
                    language=language,
                    link_id=candidate.link_id,
                )
            )
        return entries

    def parse(self, html: str) -> list[HosterEntry]:
        """Extract accepted hoster entries from page markup."""
        soup = parse_html(html)
        for name, strategy in self._strategies:
            entries = self._accept(strategy(soup))
            if entries:
                log.debug("sto_hoster_strategy", strategy=name, count=len(entries))
                return entries
        return []

    async def extract(
        self,
        page_url: str,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[HosterEntry]:
        """Fetch the (episode) page and return its accepted hosters."""
        target_url = episode_url(page_url, season, episode)
        headers = {
            "Accept": (
                "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
            ),
            "Accept-Language": "de-DE,de;q=0.9,en;q=0.8",
        }
        if self._user_agent:
            headers["User-Agent"] = self._user_agent

        try:
            resp = await self._http.get(
                target_url,
                headers=headers,
                follow_redirects=True,
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning("sto_hoster_page_failed", url=target_url, error=str(exc))
            return []

        entries = self.parse(resp.text)
        log.info("sto_hosters_found", url=target_url, count=len(entries))
        return entries
