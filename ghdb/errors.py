"""
Error types raised by ghdb.

Fetch, store and config errors all derive from GhdbError so the CLI can
report them uniformly and pick the exit code.
"""

from __future__ import annotations


class GhdbError(Exception):
    """Base class for all ghdb errors."""


class InvalidInputError(GhdbError):
    """Caller-fixable input problem, raised before any network call."""


class TransportError(GhdbError):
    """Connection, DNS or other transport failure during a page fetch."""

    retryable = False


class RequestTimeoutError(TransportError):
    """A request exceeded its timeout."""

    retryable = True


class DecodeError(GhdbError):
    """Response body does not match the expected page schema."""


class UpstreamRejectedError(GhdbError):
    """Non-2xx response from the GitHub API."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.body:
            return f"{base}: {self.body.strip()}"
        return base


class CacheNotFoundError(GhdbError):
    """No cache file exists yet."""


class CorruptCacheError(GhdbError):
    """Cache file exists but does not decode to a snapshot."""


class ConfigError(GhdbError):
    """Configuration file is missing or malformed."""


class OpenerError(GhdbError):
    """A URL could not be handed to the system browser."""
