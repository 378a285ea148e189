"""
Exceptions for Content Discovery Service

Every error carries an HTTP status, a numeric code and a message so the API
layer can render it with a single exception handler.
"""
from typing import Optional


class DiscoveryError(Exception):
    """Base class for discovery errors"""

    status: int = 500
    code: int = -30000

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status
        if code is not None:
            self.code = code


class InvalidSearchParamsError(DiscoveryError):
    """Raised when page or limit are out of range"""

    status = 400
    code = -30001


class SourceFetchError(DiscoveryError):
    """Raised when one content source could not be fetched"""

    status = 502
    code = -30002

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source


class ContentStoreError(DiscoveryError):
    """Raised by a backing store when a query fails"""

    code = -30003


class DiscoveryClientError(DiscoveryError):
    """Raised by the HTTP client when the discovery service cannot answer"""

    status = 503
    code = -30004
