"""CSS-selector-based HTML extraction helpers.

Thin wrappers over BeautifulSoup used by the site adapters.  Text and
attribute lookups accept a primary selector plus optional fallbacks; the
first selector that yields a non-empty value wins, which keeps the
adapters readable when the site renders the same data in several ways.
"""

from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string (document or fragment) with the ``lxml`` parser."""
    return BeautifulSoup(html, "lxml")


def first_text(element: Tag, *selectors: str, default: str = "") -> str:
    """Return the stripped text of the first selector with non-empty text.

    An empty selector (``""``) reads the element's own text.
    """
    for sel in selectors:
        match = element if sel == "" else element.select_one(sel)
        if match is None:
            continue
        text = match.get_text(" ", strip=True)
        if text:
            return text
    return default


def attr_value(element: Tag, attr: str, default: str = "") -> str:
    """Return an attribute as a stripped string (multi-valued attrs joined)."""
    val = element.get(attr)
    if val is None:
        return default
    if isinstance(val, list):
        val = " ".join(val)
    text = str(val).strip()
    return text if text else default


def extract_links(
    root: BeautifulSoup | Tag,
    selector: str = "a[href]",
    *,
    base_url: str = "",
) -> list[dict[str, str]]:
    """Extract all links matching *selector*.

    Returns a list of ``{"text": ..., "href": ...}`` dicts.
    """
    results: list[dict[str, str]] = []
    for tag in root.select(selector):
        href = attr_value(tag, "href")
        if not href:
            continue
        if base_url:
            href = urljoin(base_url, href)
        results.append({"text": tag.get_text(" ", strip=True), "href": href})
    return results
