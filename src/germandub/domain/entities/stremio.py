"""Domain entities for the German-dub stream pipeline.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

StremioContentType = Literal["movie", "series"]


class InvalidContentIdError(ValueError):
    """Raised when a Stremio content ID cannot be parsed."""


class HosterLanguage(str, Enum):
    """Language tag of a hoster entry on the scraped site."""

    GERMAN_DUB = "german_dub"
    GERMAN_SUB = "german_sub"
    GERMAN_UNSPECIFIED = "german_unspecified"

    @property
    def label(self) -> str:
        return _LANGUAGE_LABELS[self]


_LANGUAGE_LABELS: dict[HosterLanguage, str] = {
    HosterLanguage.GERMAN_DUB: "German Dub",
    HosterLanguage.GERMAN_SUB: "German Sub",
    HosterLanguage.GERMAN_UNSPECIFIED: "German",
}


@dataclass(frozen=True)
class ContentRef:
    """Parsed Stremio stream ID.

    Created from URL path: ``tt1234567`` (movie) or
    ``tt1234567:1:5`` (series, season 1, episode 5).
    """

    external_id: str
    season: int | None = None
    episode: int | None = None

    @property
    def has_episode(self) -> bool:
        return self.season is not None and self.episode is not None


@dataclass(frozen=True)
class MetaInfo:
    """Title metadata resolved from an external ID."""

    title: str
    year: str = ""
    kind: StremioContentType = "movie"


@dataclass(frozen=True)
class SearchHit:
    """A content page found by the site search."""

    title: str
    page_url: str


@dataclass(frozen=True)
class HosterEntry:
    """One embedded hoster on a content page, reachable via a redirect."""

    display_name: str
    redirect_url: str
    language: HosterLanguage
    link_id: str = ""


@dataclass(frozen=True)
class UnrestrictResult:
    """Direct download link returned by the debrid service."""

    direct_url: str
    filename: str | None = None
    filesize_bytes: int | None = None
    host_name: str | None = None


@dataclass(frozen=True)
class StremioStream:
    """Stremio protocol Stream object (JSON-serializable)."""

    name: str  # Bold title in Stremio UI, e.g. "German Dub"
    title: str  # Below name, e.g. "🇩🇪 VOE (RD)\n1.20 GB"
    url: str  # Direct stream URL
    binge_group: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "title": self.title,
            "url": self.url,
            "behaviorHints": {
                "bingeGroup": self.binge_group,
                "notWebReady": False,
            },
        }


def _parse_positive_int(raw: str, field_name: str, content_id: str) -> int:
    if not (raw.isascii() and raw.isdigit()):
        raise InvalidContentIdError(
            f"{field_name} must be a positive integer in {content_id!r}"
        )
    value = int(raw)
    if value < 1:
        raise InvalidContentIdError(
            f"{field_name} must be a positive integer in {content_id!r}"
        )
    return value


def parse_content_id(content_id: str) -> ContentRef:
    """Parse ``<externalId>[:<season>[:<episode>]]`` into a ContentRef.

    Raises:
        InvalidContentIdError: empty ID, too many parts, or a season/episode
            that is not a positive integer.
    """
    parts = content_id.strip().split(":")
    if len(parts) > 3:
        raise InvalidContentIdError(f"too many parts in content id {content_id!r}")

    external_id = parts[0]
    if not external_id:
        raise InvalidContentIdError(f"missing external id in {content_id!r}")

    season = (
        _parse_positive_int(parts[1], "season", content_id) if len(parts) > 1 else None
    )
    episode = (
        _parse_positive_int(parts[2], "episode", content_id) if len(parts) > 2 else None
    )
    return ContentRef(external_id=external_id, season=season, episode=episode)
