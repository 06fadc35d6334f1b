from .stremio import (
    ContentRef,
    HosterEntry,
    HosterLanguage,
    InvalidContentIdError,
    MetaInfo,
    SearchHit,
    StremioContentType,
    StremioStream,
    UnrestrictResult,
    parse_content_id,
)

__all__ = [
    "ContentRef",
    "HosterEntry",
    "HosterLanguage",
    "InvalidContentIdError",
    "MetaInfo",
    "SearchHit",
    "StremioContentType",
    "StremioStream",
    "UnrestrictResult",
    "parse_content_id",
]
