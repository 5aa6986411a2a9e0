"""
Pipeline Error Taxonomy

Configuration errors abort before any I/O, fetch errors abort the fetch they
belong to, parse and data errors abort the run.
"""

from typing import Optional


class CatalogETLError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(CatalogETLError):
    """Malformed or missing settings or sheet config."""


class FetchError(CatalogETLError):
    """Network or HTTP protocol failure."""

    def __init__(self, message: str, status_code: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class RedirectLoopError(FetchError):
    """Redirect chain exceeded its hop limit."""


class InsecureRedirectError(FetchError):
    """Redirect target does not use https."""


class MissingRedirectError(FetchError):
    """Redirect response carried no Location header."""


class ParseError(CatalogETLError):
    """Malformed CSV."""


class DataError(CatalogETLError):
    """Required tab missing or empty."""
