"""Content discovery: one search surface over notes, roadmaps and study rooms."""

from .application.services import DiscoveryService, IDiscoveryBackend
from .config import settings
from .exceptions import (
    ContentStoreError,
    DiscoveryClientError,
    DiscoveryError,
    InvalidSearchParamsError,
    SourceFetchError,
)
from .service_client import DiscoveryClient
from .session import DiscoverySession, DiscoveryState, SearchStatus

__version__ = "1.0.0"

__all__ = [
    "settings",
    "DiscoveryService",
    "IDiscoveryBackend",
    "DiscoveryClient",
    "DiscoverySession",
    "DiscoveryState",
    "SearchStatus",
    "DiscoveryError",
    "InvalidSearchParamsError",
    "SourceFetchError",
    "ContentStoreError",
    "DiscoveryClientError",
]
