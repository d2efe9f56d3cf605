"""
HTTP access to the package registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import quote

import requests

from .config import IngestConfig
from .errors import NetworkFailure, UpstreamRejection


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResponse:
    """Raw body and status code of one registry request."""

    content: bytes
    status_code: int
    reason: str = ""


class RegistryFetcher:
    """Fetch per-version metadata from an npm-style registry.

    Each call issues exactly one GET; nothing is retried.
    """

    def __init__(
        self,
        registry_url: str,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.registry_url = registry_url.rstrip("/")
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: IngestConfig) -> "RegistryFetcher":
        return cls(config.registry_url)

    def version_url(self, package_name: str, version_number: str) -> str:
        return f"{self.registry_url}/{quote(package_name, safe='@')}/{quote(version_number, safe='')}"

    def fetch(self, url: str, params: Optional[Dict] = None) -> FetchResponse:
        logger.debug("GET %s", url)
        try:
            with self.session.get(url, params=params) as response:
                return FetchResponse(
                    content=response.content,
                    status_code=response.status_code,
                    reason=response.reason or "",
                )
        except requests.RequestException as e:
            raise NetworkFailure(url, str(e)) from e

    def fetch_discovery(self, config: IngestConfig, query: Optional[str] = None) -> bytes:
        """Fetch the bulk discovery document; anything but HTTP 200 is fatal."""
        logger.info("Fetching discovery document from %s", config.discovery_url)
        response = self.fetch(config.discovery_url, params=config.discovery_params(query))
        if response.status_code != 200:
            raise UpstreamRejection(config.discovery_url, response.status_code, response.reason)
        return response.content

    def close(self) -> None:
        self.session.close()
