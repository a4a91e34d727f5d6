"""Error taxonomy for the harvest pipeline.

Only :class:`ConfigurationError` is allowed to reach the caller of the
pipeline.  Every other error is recovered at the boundary of the worker
iteration, enrichment task or write that raised it, and reduced to a log line.
"""

from __future__ import annotations


class HarvestError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(HarvestError):
    """Missing credentials, non-positive pool width, empty term list, …"""


class SearchError(HarvestError):
    """The search API reported an error, or its response had an unexpected shape."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        message = super().__str__()
        if self.code:
            return f"[{self.code}] {message}"
        return message


class TransportError(HarvestError):
    """Network failure, timeout or non-2xx response."""


class MetadataError(HarvestError):
    """Fetched content could not be treated as an HTML document."""


class StorageError(HarvestError):
    """The output directory could not be created or a record not appended."""
