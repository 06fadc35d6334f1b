from .debrid import DebridClientPort
from .metadata import MetadataProviderPort
from .site import HosterExtractorPort, RedirectResolverPort, TitleSearchPort

__all__ = [
    "DebridClientPort",
    "HosterExtractorPort",
    "MetadataProviderPort",
    "RedirectResolverPort",
    "TitleSearchPort",
]
