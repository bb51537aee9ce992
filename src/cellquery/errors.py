"""Exceptions raised while querying the remote service."""
from typing import Optional


class QueryError(Exception):
    """Base class for failures of a single query call."""
    pass


class TransportError(QueryError):
    """Raised when the HTTP request fails or returns a non-success status."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DecodeError(QueryError):
    """Raised when a response body is not valid JSON or has the wrong shape."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url
