"""Stremio stream resolution use case.

IMDb ID -> title metadata -> s.to search -> hoster entries
-> (redirect -> Real-Debrid unrestrict) per hoster -> StremioStream list.
"""

from __future__ import annotations

import re
from collections.abc import Callable

import structlog

from germandub.domain.entities.stremio import (
    ContentRef,
    HosterEntry,
    SearchHit,
    StremioContentType,
    StremioStream,
    UnrestrictResult,
)
from germandub.domain.ports.debrid import DebridClientPort
from germandub.domain.ports.metadata import MetadataProviderPort
from germandub.domain.ports.site import (
    HosterExtractorPort,
    RedirectResolverPort,
    TitleSearchPort,
)
from germandub.infrastructure.common.parsers import format_file_size

log = structlog.get_logger(__name__)

_FLAG = "\U0001f1e9\U0001f1ea"
_NON_ALNUM_RE = re.compile(r"[\W_]+")

HitSelector = Callable[[list[SearchHit], str], "SearchHit | None"]


def _normalize_title(title: str) -> str:
    return " ".join(_NON_ALNUM_RE.sub(" ", title.casefold()).split())


def select_first_hit(hits: list[SearchHit], title: str) -> SearchHit | None:
    """Pick the first search hit (the site's own ranking)."""
    return hits[0] if hits else None


def select_exact_title_hit(hits: list[SearchHit], title: str) -> SearchHit | None:
    """Prefer a hit whose normalized title equals *title*, else the first."""
    wanted = _normalize_title(title)
    for hit in hits:
        if _normalize_title(hit.title) == wanted:
            return hit
    return select_first_hit(hits, title)


HIT_SELECTORS: dict[str, HitSelector] = {
    "first": select_first_hit,
    "exact_title": select_exact_title_hit,
}


def build_stream_title(entry: HosterEntry, result: UnrestrictResult) -> str:
    label = f"{_FLAG} {entry.display_name} (RD)"
    size = format_file_size(result.filesize_bytes)
    return f"{label}\n{size}" if size else label


def binge_group(external_id: str) -> str:
    return f"germandub-{external_id}"


class StremioStreamUseCase:
    """Resolve Stremio stream requests into Real-Debrid direct links.

    Flow:
        1. Resolve the external ID to a title via the metadata provider.
        2. Search s.to for the title and select one content page.
        3. Extract German hoster entries (episode page for series).
        4. Per hoster, in order: follow the redirect, unrestrict the
           hoster URL, format a StremioStream.

    A failure for one hoster is logged and skipped; the others still run.
    """

    def __init__(
        self,
        *,
        metadata: MetadataProviderPort,
        search: TitleSearchPort,
        hosters: HosterExtractorPort,
        redirects: RedirectResolverPort,
        debrid: DebridClientPort,
        select_hit: HitSelector = select_first_hit,
    ) -> None:
        self._metadata = metadata
        self._search = search
        self._hosters = hosters
        self._redirects = redirects
        self._debrid = debrid
        self._select_hit = select_hit

    async def execute(
        self,
        content_type: StremioContentType,
        ref: ContentRef,
        *,
        api_key: str | None,
    ) -> list[StremioStream]:
        """Resolve streams for one Stremio request.

        Args:
            content_type: ``movie`` or ``series`` from the request path.
            ref: Parsed content ID with optional season/episode.
            api_key: Real-Debrid API key; without it nothing is fetched.

        Returns:
            Streams in hoster extraction order, restricted to hosters that
            resolved and unrestricted successfully.  Empty when the title
            is unknown or nothing is found.
        """
        if not api_key:
            log.warning("stremio_no_debrid_key", external_id=ref.external_id)
            return []

        meta = await self._metadata.lookup(ref.external_id, content_type)
        if meta is None:
            log.info("stremio_title_not_found", external_id=ref.external_id)
            return []

        hits = await self._search.search(meta.title, content_type, meta.year or None)
        hit = self._select_hit(hits, meta.title)
        if hit is None:
            log.info(
                "stremio_search_no_results",
                external_id=ref.external_id,
                title=meta.title,
            )
            return []

        entries = await self._hosters.extract(hit.page_url, ref.season, ref.episode)
        log.info(
            "stremio_hosters_extracted",
            external_id=ref.external_id,
            title=meta.title,
            page_url=hit.page_url,
            hoster_count=len(entries),
        )

        streams: list[StremioStream] = []
        for entry in entries:
            try:
                stream = await self._resolve_entry(entry, ref, api_key)
            except Exception:  # noqa: BLE001
                log.warning(
                    "stremio_hoster_failed",
                    hoster=entry.display_name,
                    redirect_url=entry.redirect_url,
                    exc_info=True,
                )
                continue
            if stream is not None:
                streams.append(stream)

        log.info(
            "stremio_search_complete",
            external_id=ref.external_id,
            hoster_count=len(entries),
            stream_count=len(streams),
        )
        return streams

    async def _resolve_entry(
        self, entry: HosterEntry, ref: ContentRef, api_key: str
    ) -> StremioStream | None:
        hoster_url = await self._redirects.resolve(entry.redirect_url)
        if not hoster_url:
            log.debug("stremio_redirect_unresolved", hoster=entry.display_name)
            return None

        result = await self._debrid.unrestrict(hoster_url, api_key)
        if result is None:
            log.debug(
                "stremio_unrestrict_failed",
                hoster=entry.display_name,
                hoster_url=hoster_url,
            )
            return None

        return StremioStream(
            name=entry.language.label,
            title=build_stream_title(entry, result),
            url=result.direct_url,
            binge_group=binge_group(ref.external_id),
        )
