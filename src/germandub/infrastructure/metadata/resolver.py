"""Metadata provider chain: primary first, fallbacks only on a miss."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from germandub.domain.entities.stremio import MetaInfo, StremioContentType
from germandub.domain.ports.metadata import MetadataProviderPort

log = structlog.get_logger(__name__)


class FallbackMetadataResolver:
    """Queries providers in order and returns the first hit.

    A provider is consulted only when every provider before it returned
    ``None``.  Providers swallow their own network errors, so a failing
    primary behaves like a miss.
    """

    def __init__(self, providers: Sequence[MetadataProviderPort]) -> None:
        self._providers = list(providers)

    @property
    def name(self) -> str:
        return "+".join(p.name for p in self._providers)

    async def lookup(
        self, external_id: str, kind: StremioContentType = "movie"
    ) -> MetaInfo | None:
        for provider in self._providers:
            info = await provider.lookup(external_id, kind)
            if info is not None:
                log.info(
                    "metadata_resolved",
                    external_id=external_id,
                    provider=provider.name,
                    title=info.title,
                    year=info.year,
                )
                return info
            log.debug(
                "metadata_provider_miss",
                external_id=external_id,
                provider=provider.name,
            )

        log.info("metadata_not_found", external_id=external_id)
        return None
