"""s.to site adapters: search, hoster extraction and redirect resolution."""

from .hosters import StoHosterExtractor
from .redirect import StoRedirectResolver
from .search import StoSearchClient

__all__ = ["StoHosterExtractor", "StoRedirectResolver", "StoSearchClient"]
