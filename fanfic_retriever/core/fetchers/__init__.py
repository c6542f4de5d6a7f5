from .base_fetcher import BaseFetcher
from .ffnet_fetcher import FanFictionNetFetcher
from .ao3_fetcher import ArchiveOfOurOwnFetcher
from .fetcher_factory import AdapterRegistry, SiteSignature, DEFAULT_SITE_SIGNATURES
from .http_client import HttpClient
from ..exceptions import (
    RetrievalError,
    SiteNotSupportedError,
    UnsupportedOperationError,
    InvalidRangeError,
    FetchError,
    ParseError,
)

__all__ = [
    "BaseFetcher",
    "FanFictionNetFetcher",
    "ArchiveOfOurOwnFetcher",
    "AdapterRegistry",
    "SiteSignature",
    "DEFAULT_SITE_SIGNATURES",
    "HttpClient",
    "RetrievalError",
    "SiteNotSupportedError",
    "UnsupportedOperationError",
    "InvalidRangeError",
    "FetchError",
    "ParseError",
]
