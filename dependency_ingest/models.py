"""
Core data models for dependency ingestion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .time_utils import PublishTime


@dataclass(frozen=True)
class VersionRef:
    """A released version of a package with its publish date."""

    number: str
    published_at: Optional[PublishTime] = None

    def __post_init__(self) -> None:
        if not self.number:
            raise ValueError("version number must be non-empty")


@dataclass(frozen=True)
class PackageSummary:
    """A package and its released versions, as listed by a discovery document."""

    name: str
    versions: Tuple[VersionRef, ...] = ()


@dataclass(frozen=True)
class DependencySpec:
    """Dependency constraint as declared by a package version."""

    name: str
    required_range: str

    def __str__(self) -> str:
        return f"{self.name}:{self.required_range}"


@dataclass(frozen=True)
class ResolvedEntry:
    """Dependencies of one package version, ready to be written out."""

    package_name: str
    version_number: str
    published_at: Optional[PublishTime]
    dependencies: Tuple[DependencySpec, ...] = ()


@dataclass(frozen=True)
class StreamedPackageDoc:
    """One package document decoded from a metadata dump."""

    name: str
    versions: Dict[str, Dict] = field(default_factory=dict)
    time: Dict[str, Optional[PublishTime]] = field(default_factory=dict)
