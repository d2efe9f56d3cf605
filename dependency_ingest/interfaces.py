"""
Interfaces for the registry network boundary.
"""

from __future__ import annotations

from typing import Protocol


class RegistryResponse(Protocol):
    """Raw body and status code of one registry request."""

    content: bytes
    status_code: int


class Fetcher(Protocol):
    """Issue registry requests for package versions."""

    def version_url(self, package_name: str, version_number: str) -> str:
        ...

    def fetch(self, url: str) -> RegistryResponse:
        ...
