"""
CSV sinks for resolved dependency rows and version summaries.
"""

from __future__ import annotations

import csv
import io
import logging
import threading
from pathlib import Path
from typing import Optional, Union

from .models import ResolvedEntry
from .time_utils import PublishTime, format_timestamp


logger = logging.getLogger(__name__)


def format_dependencies(entry: ResolvedEntry) -> str:
    """Render dependencies as ``[name:range;name:range]``."""
    return "[" + ";".join(str(dep) for dep in entry.dependencies) + "]"


def _quoted(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


class DependencyCsvSink:
    """Write one row per resolved entry.

    Rows are ``name,version,published_at,"[deps]"``. The dependency column is
    always quoted; the other columns use minimal CSV quoting.
    """

    def __init__(self, path: Union[str, Path], mode: str = "a") -> None:
        self.path = Path(path)
        self._fh = open(
            self.path, mode, newline="", encoding="utf-8", errors="backslashreplace"
        )
        self._line = io.StringIO()
        self._writer = csv.writer(self._line, lineterminator="")

    def write(self, entry: ResolvedEntry) -> None:
        self._line.seek(0)
        self._line.truncate()
        self._writer.writerow(
            [entry.package_name, entry.version_number, format_timestamp(entry.published_at)]
        )
        self._fh.write(f"{self._line.getvalue()},{_quoted(format_dependencies(entry))}\n")

    def flush(self) -> None:
        self._fh.flush()

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.flush()
            self._fh.close()

    def __enter__(self) -> "DependencyCsvSink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class VersionSummarySink:
    """Write ``name,version,published_at`` rows from several threads."""

    def __init__(self, path: Union[str, Path], mode: str = "w") -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._fh = open(
            self.path, mode, newline="", encoding="utf-8", errors="backslashreplace"
        )
        self._writer = csv.writer(self._fh, lineterminator="\n")
        self.rows_written = 0

    def write(self, name: str, number: str, published_at: Optional[PublishTime]) -> None:
        with self._lock:
            self._writer.writerow([name, number, format_timestamp(published_at)])
            self.rows_written += 1

    def flush(self) -> None:
        with self._lock:
            self._fh.flush()

    def close(self) -> None:
        with self._lock:
            if not self._fh.closed:
                self._fh.flush()
                self._fh.close()
        logger.debug("Wrote %d version rows to %s", self.rows_written, self.path)

    def __enter__(self) -> "VersionSummarySink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
