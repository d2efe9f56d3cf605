"""
Readers for bulk discovery documents and streamed metadata dumps.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Tuple, Union

from .errors import MalformedDocument
from .models import PackageSummary, StreamedPackageDoc, VersionRef
from .time_utils import parse_timestamp


logger = logging.getLogger(__name__)

_WHITESPACE = " \t\n\r"
_CHUNK_SIZE = 1 << 16
# Longest token a chunk boundary can cut short: a literal, an escape or a number.
_TRUNCATION_WINDOW = 32


def _parse_time(value: Any, where: str):
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise MalformedDocument(f"{where}: {e}") from e


def _summary_from_json(item: Any, index: int) -> PackageSummary:
    if not isinstance(item, dict):
        raise MalformedDocument(f"Element {index} is not an object")
    name = item.get("name")
    versions = item.get("versions")
    if not isinstance(name, str) or not name:
        raise MalformedDocument(f"Element {index} has no package name")
    if not isinstance(versions, list):
        raise MalformedDocument(f"Package {name!r} has no versions list")

    refs = []
    for ver in versions:
        number = ver.get("number") if isinstance(ver, dict) else None
        if not isinstance(number, str) or not number:
            raise MalformedDocument(f"Package {name!r} has a version without a number")
        published_at = _parse_time(ver.get("published_at"), f"{name}@{number}")
        refs.append(VersionRef(number=number, published_at=published_at))
    return PackageSummary(name=name, versions=tuple(refs))


def load_package_summaries(data: Union[bytes, str]) -> List[PackageSummary]:
    """Decode a JSON array of package summaries.

    Any shape error aborts the whole document; there is no partial result.
    """
    try:
        parsed = json.loads(data)
    except ValueError as e:
        raise MalformedDocument(f"Input is not valid JSON: {e}") from e
    if not isinstance(parsed, list):
        raise MalformedDocument(f"Expected a JSON array, got {type(parsed).__name__}")
    return [_summary_from_json(item, i) for i, item in enumerate(parsed)]


def read_package_summaries(path: Union[str, Path]) -> List[PackageSummary]:
    """Read and decode a bulk discovery document from disk."""
    return load_package_summaries(Path(path).read_bytes())


def package_doc_from_json(value: Any, key: Optional[str] = None) -> StreamedPackageDoc:
    """Build a StreamedPackageDoc from one decoded dump element.

    Accepts replication rows (``{"doc": {...}}``) and bare documents. ``key``
    is the element's key when the dump is a JSON object keyed by package name.
    """
    if isinstance(value, dict) and isinstance(value.get("doc"), dict):
        value = value["doc"]
    if not isinstance(value, dict):
        raise MalformedDocument(f"Package entry {key!r} is not an object")

    name = value.get("name") or key
    if not isinstance(name, str) or not name:
        raise MalformedDocument("Package entry has no name")

    versions = value.get("versions")
    if versions is None:
        versions = {}
    if not isinstance(versions, dict):
        raise MalformedDocument(f"Package {name!r} has a non-object versions field")
    for number, data in versions.items():
        if not isinstance(data, dict):
            raise MalformedDocument(f"{name}@{number} is not an object")
        for field_name in ("dependencies", "devDependencies"):
            if data.get(field_name) is not None and not isinstance(data[field_name], dict):
                raise MalformedDocument(f"{name}@{number} has a non-object {field_name} field")

    raw_time = value.get("time")
    if raw_time is None:
        raw_time = {}
    if not isinstance(raw_time, dict):
        raise MalformedDocument(f"Package {name!r} has a non-object time field")
    # Only version keys matter; "created" and "modified" are skipped.
    time = {
        number: _parse_time(raw_time.get(number), f"{name}@{number}")
        for number in versions
    }
    return StreamedPackageDoc(name=name, versions=versions, time=time)


class _JsonStream:
    """Incremental tokenizer over a text stream of one large JSON value."""

    def __init__(self, fh: TextIO, chunk_size: int = _CHUNK_SIZE) -> None:
        self._fh = fh
        self._chunk_size = chunk_size
        self._decoder = json.JSONDecoder()
        self._buf = ""
        self._pos = 0
        self._eof = False

    def _fill(self, size: Optional[int] = None) -> bool:
        if self._eof:
            return False
        chunk = self._fh.read(size or self._chunk_size)
        if not chunk:
            self._eof = True
            return False
        self._buf = self._buf[self._pos:] + chunk
        self._pos = 0
        return True

    def peek(self) -> str:
        """Return the next non-whitespace character, or "" at end of input."""
        while True:
            while self._pos < len(self._buf) and self._buf[self._pos] in _WHITESPACE:
                self._pos += 1
            if self._pos < len(self._buf):
                return self._buf[self._pos]
            if not self._fill():
                return ""

    def expect(self, *delimiters: str) -> str:
        char = self.peek()
        if char not in delimiters:
            found = repr(char) if char else "end of input"
            raise MalformedDocument(f"Expected one of {delimiters}, found {found}")
        self._pos += 1
        return char

    def _grow_size(self) -> int:
        # Double the pending buffer while one element spans several reads.
        return max(self._chunk_size, len(self._buf) - self._pos)

    def _may_be_truncated(self, error: json.JSONDecodeError) -> bool:
        # Only an error near the buffer end can come from a token cut by a read.
        if error.msg.startswith("Unterminated string"):
            return True
        return len(self._buf) - error.pos <= _TRUNCATION_WINDOW

    def value(self) -> Any:
        """Decode the next complete JSON value."""
        self.peek()
        while True:
            try:
                value, end = self._decoder.raw_decode(self._buf, self._pos)
            except json.JSONDecodeError as e:
                if self._may_be_truncated(e) and self._fill(self._grow_size()):
                    continue
                raise MalformedDocument(f"Invalid JSON in stream: {e}") from e
            # A value ending exactly at the buffer edge may be a truncated number.
            if end == len(self._buf) and self._fill(self._grow_size()):
                continue
            self._pos = end
            return value


def _iter_elements(stream: _JsonStream) -> Iterator[Tuple[Optional[str], Any]]:
    opening = stream.expect("[", "{")
    closing = "]" if opening == "[" else "}"
    if stream.peek() == closing:
        stream.expect(closing)
        return
    while True:
        key = None
        if opening == "{":
            key = stream.value()
            if not isinstance(key, str):
                raise MalformedDocument("Object key is not a string")
            stream.expect(":")
        yield key, stream.value()
        if stream.expect(",", closing) == closing:
            break
    if stream.peek():
        raise MalformedDocument("Unexpected data after the closing delimiter")


def iter_package_docs(
    fh: TextIO, skip_malformed: bool = False, chunk_size: int = _CHUNK_SIZE
) -> Iterator[StreamedPackageDoc]:
    """Yield package documents one at a time from a metadata dump.

    The dump is either a JSON object keyed by package name or a JSON array of
    documents. It is never loaded into memory as a whole. Invalid elements
    raise MalformedDocument unless ``skip_malformed`` is set, in which case
    elements that decode as JSON but have an invalid shape are logged and
    skipped.
    """
    stream = _JsonStream(fh, chunk_size)
    for index, (key, value) in enumerate(_iter_elements(stream)):
        try:
            doc = package_doc_from_json(value, key)
        except MalformedDocument as e:
            if not skip_malformed:
                raise
            logger.warning("Skipping malformed dump element %d (%s): %s", index, key or "-", e)
            continue
        yield doc
