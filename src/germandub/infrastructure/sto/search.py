"""s.to keyword search.

The site answers ``POST /ajax/search`` (form field ``keyword``) with one of
three payload shapes, depending on deployment:

- a JSON array of ``{"title": ..., "link": ...}`` objects, titles may
  carry ``<em>`` highlight markup and ``\\uXXXX`` escapes
- a JSON string that wraps the same array (needs a second decode)
- a bare HTML fragment with ``<a href>`` links

Links are classified by path segment (``/filme/`` vs ``/serie/``) and
series links are cut back to the show page so episode URLs can be built
from them later.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx
import structlog

from germandub.domain.entities.stremio import SearchHit, StremioContentType
from germandub.infrastructure.common.html_selectors import extract_links, parse_html

log = structlog.get_logger(__name__)

_MOVIE_SEGMENT = "/filme/"
_SERIES_SEGMENT = "/serie/"

_TAG_RE = re.compile(r"</?[a-zA-Z][^>]*>")
_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")
_EPISODE_PATH_RE = re.compile(r"/(?:staffel|episode)-\d+(?:/.*)?$")
_NON_ALNUM_RE = re.compile(r"[\W_]+")

_INVALID = object()


def clean_title(raw: str) -> str:
    """Strip markup, decode literal ``\\uXXXX`` escapes and HTML entities."""
    text = _TAG_RE.sub("", raw)
    text = _UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)
    text = html.unescape(text)
    return " ".join(text.split())


def classify_link(url: str) -> StremioContentType | None:
    """Return the content kind encoded in the link path, if any."""
    path = urlsplit(url).path
    if _MOVIE_SEGMENT in path:
        return "movie"
    if _SERIES_SEGMENT in path:
        return "series"
    return None


def canonicalize_url(url: str, kind: StremioContentType, base_url: str) -> str:
    """Make *url* absolute; series links are reduced to the show page."""
    parts = urlsplit(urljoin(base_url + "/", url))
    path = parts.path
    if kind == "series":
        path = _EPISODE_PATH_RE.sub("", path)
    path = path.rstrip("/") or "/"
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return _INVALID


def _items_from_json(data: list[Any]) -> list[dict[str, str]]:
    items: list[dict[str, str]] = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        link = entry.get("link") or entry.get("url")
        title = entry.get("title") or entry.get("name") or ""
        if not isinstance(link, str) or not link.strip():
            continue
        items.append({"title": clean_title(str(title)), "link": link.strip()})
    return items


def _items_from_html(fragment: str) -> list[dict[str, str]]:
    soup = parse_html(fragment)
    return [
        {"title": clean_title(link["text"]), "link": link["href"]}
        for link in extract_links(soup)
        if link["text"]
    ]


def parse_search_payload(text: str) -> list[dict[str, str]]:
    """Parse a search response body into raw ``{title, link}`` items.

    JSON array first, then a JSON string holding JSON (or HTML), then
    the body itself as HTML.
    """
    data = _loads(text)
    if isinstance(data, str):
        inner = _loads(data)
        if inner is _INVALID:
            return _items_from_html(data)
        data = inner

    if isinstance(data, list):
        return _items_from_json(data)
    if data is _INVALID:
        return _items_from_html(text)

    log.debug("sto_search_unexpected_payload", payload_type=type(data).__name__)
    return []


def build_hits(
    items: list[dict[str, str]],
    kind: StremioContentType,
    base_url: str,
) -> list[SearchHit]:
    """Keep items of *kind*, canonicalize their URLs and dedupe in order."""
    hits: list[SearchHit] = []
    seen: set[str] = set()
    for item in items:
        if classify_link(item["link"]) != kind:
            continue
        page_url = canonicalize_url(item["link"], kind, base_url)
        if page_url in seen:
            continue
        seen.add(page_url)
        hits.append(SearchHit(title=item["title"], page_url=page_url))
    return hits


def _alphanumeric(text: str) -> str:
    return " ".join(_NON_ALNUM_RE.sub(" ", text).split())


def build_search_queries(title: str, *, fallbacks: bool = True) -> list[str]:
    """Build the ordered query list for *title*.

    The literal title comes first, followed by the part before a colon,
    the part before a hyphen and an alphanumeric-only form.  Forms that
    are empty or equal (case-insensitive, whitespace-collapsed) to an
    earlier one are dropped.
    """
    candidates = [title]
    if fallbacks:
        candidates += [
            title.split(":", 1)[0],
            title.split("-", 1)[0],
            _alphanumeric(title),
        ]

    queries: list[str] = []
    seen: set[str] = set()
    for candidate in candidates:
        query = " ".join(candidate.split())
        key = query.casefold()
        if not query or key in seen:
            continue
        seen.add(key)
        queries.append(query)
    return queries


class StoSearchClient:
    """Searches s.to via its AJAX endpoint.

    Implements ``TitleSearchPort`` from domain.ports.site.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = "https://s.to",
        search_path: str = "/ajax/search",
        user_agent: str = "",
        timeout: float = 10.0,
        fallback_queries: bool = True,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._search_url = f"{self._base_url}{search_path}"
        self._user_agent = user_agent
        self._timeout = timeout
        self._fallback_queries = fallback_queries

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "X-Requested-With": "XMLHttpRequest",
            "Accept": "*/*",
            "Accept-Language": "de-DE,de;q=0.9,en;q=0.8",
            "Origin": self._base_url,
            "Referer": f"{self._base_url}/",
        }
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        return headers

    async def _query(self, query: str, kind: StremioContentType) -> list[SearchHit]:
        """Run one search request. Network and HTTP errors yield no hits."""
        try:
            resp = await self._http.post(
                self._search_url,
                data={"keyword": query},
                headers=self._headers(),
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning("sto_search_failed", query=query, error=str(exc))
            return []

        items = parse_search_payload(resp.text)
        hits = build_hits(items, kind, self._base_url)
        log.info(
            "sto_search_page",
            query=query,
            kind=kind,
            raw_count=len(items),
            count=len(hits),
        )
        return hits

    async def search(
        self,
        title: str,
        kind: StremioContentType,
        year: str | None = None,
    ) -> list[SearchHit]:
        """Search *title*, retrying with simplified queries on zero hits."""
        queries = build_search_queries(title, fallbacks=self._fallback_queries)
        for attempt, query in enumerate(queries):
            hits = await self._query(query, kind)
            if hits:
                if attempt:
                    log.info("sto_search_fallback_hit", title=title, query=query)
                return hits

        log.info("sto_search_no_results", title=title, year=year, queries=queries)
        return []
