"""
Error types raised by the ingestion pipeline.

``VersionNotFound`` and ``EntryTooLong`` are recovered where they occur. The
others are fatal to the unit of work that raised them.
"""

from __future__ import annotations

from typing import Optional


class IngestError(RuntimeError):
    """Base class for ingestion errors."""


class MalformedDocument(IngestError):
    """Raised when an input document has the wrong shape or misses fields."""


class NetworkFailure(IngestError):
    """Raised when a request fails below the HTTP layer."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Request to {url} failed: {message}")
        self.url = url


class UpstreamRejection(IngestError):
    """Raised when the registry answers with an unusable response."""

    def __init__(self, url: str, status_code: int, reason: Optional[str] = None) -> None:
        detail = f"HTTP {status_code} from {url}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)
        self.url = url
        self.status_code = status_code


class VersionNotFound(IngestError):
    """Raised when the registry has no data for a package version."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No dependency data at {url}")
        self.url = url


class EntryTooLong(IngestError):
    """Raised when a dependency name or range exceeds the size guard."""

    def __init__(self, name_length: int, range_length: int) -> None:
        super().__init__(
            f"Dependency entry too long (name={name_length}, range={range_length})"
        )
        self.name_length = name_length
        self.range_length = range_length
