"""Ports for the scraped streaming site (search, hosters, redirects)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from germandub.domain.entities.stremio import (
    HosterEntry,
    SearchHit,
    StremioContentType,
)


@runtime_checkable
class TitleSearchPort(Protocol):
    """Finds content pages on the site for a title."""

    async def search(
        self,
        title: str,
        kind: StremioContentType,
        year: str | None = None,
    ) -> list[SearchHit]:
        """Return matching pages in source order. Empty list if nothing matches."""
        ...


@runtime_checkable
class HosterExtractorPort(Protocol):
    """Extracts hoster entries from a content (or episode) page."""

    async def extract(
        self,
        page_url: str,
        season: int | None = None,
        episode: int | None = None,
    ) -> list[HosterEntry]:
        """Return accepted hoster entries in page order."""
        ...


@runtime_checkable
class RedirectResolverPort(Protocol):
    """Follows a same-site redirect URL to the off-site hoster URL."""

    async def resolve(self, redirect_url: str) -> str | None:
        """Return the hoster URL, or None when it cannot be determined."""
        ...
