"""Metadata providers (external ID -> title)."""

from __future__ import annotations

from .cinemeta import CinemetaClient
from .omdb import OmdbClient
from .resolver import FallbackMetadataResolver

__all__ = ["CinemetaClient", "FallbackMetadataResolver", "OmdbClient"]
