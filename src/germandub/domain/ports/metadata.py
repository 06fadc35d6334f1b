"""Port for metadata lookups (external ID -> title)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from germandub.domain.entities.stremio import MetaInfo, StremioContentType


@runtime_checkable
class MetadataProviderPort(Protocol):
    """Async interface for resolving an external ID to a title.

    Implementations report "not found" and their own upstream failures
    as ``None``; they never return partial data.
    """

    @property
    def name(self) -> str:
        """Provider name used in logs (e.g. 'omdb', 'cinemeta')."""
        ...

    async def lookup(
        self, external_id: str, kind: StremioContentType = "movie"
    ) -> MetaInfo | None:
        """Return title metadata or None if the ID is unknown."""
        ...
