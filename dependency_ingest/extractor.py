"""
Dependency extraction from registry version metadata.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import EntryTooLong
from .models import DependencySpec


logger = logging.getLogger(__name__)

MAX_ENTRY_LENGTH = 10_000


def check_entry_length(name: str, required_range: str, limit: int = MAX_ENTRY_LENGTH) -> None:
    """Raise EntryTooLong if the name or range is longer than ``limit``."""
    if len(name) > limit or len(required_range) > limit:
        raise EntryTooLong(len(name), len(required_range))


def _as_range(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def _collect(
    mapping: Optional[Mapping[str, Any]], limit: int, out: List[DependencySpec]
) -> None:
    for name, value in (mapping or {}).items():
        required_range = _as_range(value)
        try:
            check_entry_length(name, required_range, limit)
        except EntryTooLong as e:
            logger.debug("Dropping dependency entry: %s", e)
            continue
        out.append(DependencySpec(name=name, required_range=required_range))


def extract_dependencies(
    deps: Optional[Mapping[str, Any]],
    dev_deps: Optional[Mapping[str, Any]],
    limit: int = MAX_ENTRY_LENGTH,
) -> List[DependencySpec]:
    """Merge runtime and dev dependency maps into one list.

    Runtime dependencies come first, then dev dependencies, each in the
    mapping's own order. Entries whose name or range exceeds ``limit``
    characters are dropped.
    """
    result: List[DependencySpec] = []
    _collect(deps, limit, result)
    _collect(dev_deps, limit, result)
    return result


def extract_version_payload(content: bytes) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Decode a per-version registry response into (dependencies, devDependencies).

    Raises ValueError if the content is not a JSON object.
    """
    data = json.loads(content)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    deps = data.get("dependencies") or {}
    dev_deps = data.get("devDependencies") or {}
    if not isinstance(deps, dict) or not isinstance(dev_deps, dict):
        raise ValueError("dependencies and devDependencies must be JSON objects")
    return deps, dev_deps
