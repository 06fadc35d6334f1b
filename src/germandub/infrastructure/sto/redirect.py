"""Resolve s.to ``/redirect/{id}`` links to the off-site hoster URL.

Usually the redirect endpoint answers with a 30x to the hoster.  When it
serves a page instead, the destination is scraped from the body using an
ordered list of scanners (script assignments, ``data-url``, meta refresh,
iframe). Error pages are never scanned, and off-site bodies are never read.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from urllib.parse import urlsplit

import httpx
import structlog
from bs4 import BeautifulSoup

from germandub.infrastructure.common.html_selectors import attr_value, parse_html

log = structlog.get_logger(__name__)

_LOCATION_HREF_RE = re.compile(r"""location\.href\s*=\s*["']([^"']+)["']""")
_WINDOW_LOCATION_RE = re.compile(r"""window\.location\s*=\s*["']([^"']+)["']""")
_META_REFRESH_URL_RE = re.compile(r"url\s*=\s*(.+)", re.IGNORECASE)

_Scanner = Callable[[BeautifulSoup], "str | None"]


def is_same_site(url: str, site_host: str) -> bool:
    """True for relative URLs and URLs on *site_host* or its subdomains."""
    host = (urlsplit(url).hostname or "").lower()
    if not host:
        return True
    site_host = site_host.lower()
    return host == site_host or host.endswith("." + site_host)


def _script_text(soup: BeautifulSoup) -> str:
    return "\n".join(script.get_text() for script in soup.find_all("script"))


def _scan_location_href(soup: BeautifulSoup) -> str | None:
    match = _LOCATION_HREF_RE.search(_script_text(soup))
    return match.group(1) if match else None


def _scan_window_location(soup: BeautifulSoup) -> str | None:
    match = _WINDOW_LOCATION_RE.search(_script_text(soup))
    return match.group(1) if match else None


def _scan_data_url(soup: BeautifulSoup) -> str | None:
    node = soup.select_one("[data-url]")
    if node is None:
        return None
    return attr_value(node, "data-url") or None


def _scan_meta_refresh(soup: BeautifulSoup) -> str | None:
    for meta in soup.find_all("meta"):
        if attr_value(meta, "http-equiv").lower() != "refresh":
            continue
        match = _META_REFRESH_URL_RE.search(attr_value(meta, "content"))
        if match:
            return match.group(1).strip().strip("'\"") or None
    return None


class StoRedirectResolver:
    """Follows hoster redirect links.

    Implements ``RedirectResolverPort`` from domain.ports.site.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = "https://s.to",
        max_redirects: int = 5,
        user_agent: str = "",
        timeout: float = 15.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._site_host = urlsplit(self._base_url).hostname or ""
        self._max_redirects = max_redirects
        self._user_agent = user_agent
        self._timeout = timeout

        self._scanners: list[tuple[str, _Scanner]] = [
            ("location_href", _scan_location_href),
            ("window_location", _scan_window_location),
            ("data_url", _scan_data_url),
            ("meta_refresh", _scan_meta_refresh),
            ("iframe", self._scan_iframe),
        ]

    def _scan_iframe(self, soup: BeautifulSoup) -> str | None:
        for iframe in soup.find_all("iframe", src=True):
            src = attr_value(iframe, "src")
            if src and not is_same_site(src, self._site_host):
                return src
        return None

    def scan_body(self, html: str) -> str | None:
        """Return the first destination found by the body scanners."""
        soup = parse_html(html)
        for name, scanner in self._scanners:
            found = scanner(soup)
            if found:
                log.debug("sto_redirect_scanner_hit", scanner=name, url=found)
                return found
        return None

    async def _fetch(self, redirect_url: str) -> httpx.Response:
        """Follow redirects by hand; the returned response is still streaming."""
        headers = {
            "Accept": (
                "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
            ),
            "Referer": self._base_url,
        }
        if self._user_agent:
            headers["User-Agent"] = self._user_agent

        request = self._http.build_request(
            "GET", redirect_url, headers=headers, timeout=self._timeout
        )
        for _ in range(self._max_redirects + 1):
            resp = await self._http.send(request, follow_redirects=False, stream=True)
            if not resp.has_redirect_location:
                return resp
            await resp.aclose()
            request = resp.next_request
            if request is None:
                return resp
        raise httpx.TooManyRedirects(
            f"Exceeded {self._max_redirects} redirects", request=request
        )

    async def resolve(self, redirect_url: str) -> str | None:
        """Return the hoster URL behind *redirect_url*, or None if unresolved."""
        try:
            resp = await self._fetch(redirect_url)
        except httpx.HTTPError as exc:
            log.warning("sto_redirect_failed", url=redirect_url, error=str(exc))
            return None

        try:
            final_url = str(resp.url)
            off_site = not is_same_site(final_url, self._site_host)
            # The hoster body is never read; it may be a whole video file.
            if final_url != redirect_url and off_site:
                log.debug("sto_redirect_followed", url=redirect_url, target=final_url)
                return final_url

            if resp.is_error:
                log.info(
                    "sto_redirect_error_status",
                    url=redirect_url,
                    status=resp.status_code,
                )
                return None

            await resp.aread()
        except httpx.HTTPError as exc:
            log.warning("sto_redirect_failed", url=redirect_url, error=str(exc))
            return None
        finally:
            await resp.aclose()

        target = self.scan_body(resp.text)
        if target is None:
            log.info(
                "sto_redirect_unresolved", url=redirect_url, status=resp.status_code
            )
        return target
