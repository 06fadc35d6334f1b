"""Port for debrid link unrestriction."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from germandub.domain.entities.stremio import UnrestrictResult


@runtime_checkable
class DebridClientPort(Protocol):
    """Converts a hoster URL into a direct download URL."""

    async def unrestrict(self, link: str, api_key: str) -> UnrestrictResult | None:
        """Return the direct link, or None if the service cannot unrestrict it."""
        ...
