"""
Tunable parameters for an ingestion run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

from .extractor import MAX_ENTRY_LENGTH


DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"
DEFAULT_DISCOVERY_URL = "https://libraries.io/api/search"


@dataclass(frozen=True)
class IngestConfig:
    """Immutable configuration for the ingestion pipeline.

    Override fields with ``dataclasses.replace`` or ``IngestConfig.from_env``.
    """

    registry_url: str = DEFAULT_REGISTRY_URL
    # Base URL for per-version lookups: <registry_url>/<name>/<version>

    max_workers: int = 8
    # Upper bound on concurrently processed packages, independent of input size.

    flush_every: int = 10
    # Dependency rows are flushed whenever the version index is a multiple of this.

    max_entry_length: int = MAX_ENTRY_LENGTH

    fail_fast: bool = False
    # Abort the whole run on the first fatal unit error instead of recording it.

    skip_malformed: bool = False
    # Streaming only: log and skip dump elements with an invalid shape.

    show_progress: bool = True

    discovery_url: str = DEFAULT_DISCOVERY_URL
    api_key: Optional[str] = None
    platform: str = "NPM"
    per_page: int = 20

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.flush_every < 1:
            raise ValueError("flush_every must be at least 1")

    @classmethod
    def from_env(cls, **overrides) -> "IngestConfig":
        """Build a config from DEPENDENCY_INGEST_* environment variables."""
        workers = os.getenv("DEPENDENCY_INGEST_MAX_WORKERS", "8")
        try:
            max_workers = int(workers)
        except ValueError as e:
            raise ValueError(f"DEPENDENCY_INGEST_MAX_WORKERS is not an integer: {workers!r}") from e
        config = cls(
            registry_url=os.getenv("DEPENDENCY_INGEST_REGISTRY_URL", DEFAULT_REGISTRY_URL),
            max_workers=max_workers,
            discovery_url=os.getenv("DEPENDENCY_INGEST_DISCOVERY_URL", DEFAULT_DISCOVERY_URL),
            api_key=os.getenv("LIBRARIES_IO_API_KEY") or None,
        )
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(config, **overrides)

    def discovery_params(self, query: Optional[str] = None) -> dict:
        """Query parameters for the package discovery search."""
        params = {"platforms": self.platform, "per_page": self.per_page}
        if query:
            params["q"] = query
        if self.api_key:
            params["api_key"] = self.api_key
        return params
