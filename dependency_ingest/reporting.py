"""
Reporting and export utilities.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from .orchestrator import IngestReport, StreamReport


logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "index",
    "package",
    "output_path",
    "versions_written",
    "versions_skipped",
    "status",
    "error",
]


def log_summary(report: IngestReport) -> None:
    logger.info("=" * 60)
    logger.info("INGESTION RESULTS")
    logger.info("=" * 60)
    logger.info("Packages: %d", len(report.units))
    logger.info("Version rows: %d", report.version_rows)
    logger.info("Dependency rows written: %d", report.versions_written)
    logger.info("Versions without data: %d", report.versions_skipped)
    logger.info("Failed packages: %d", len(report.failures))
    for unit in report.failures:
        logger.info("  %s: %s", unit.package, unit.error)
    logger.info("=" * 60)


def log_stream_summary(report: StreamReport) -> None:
    logger.info(
        "Wrote %d rows for %d packages to %s", report.rows, report.packages, report.output_path
    )


def export_run_report(report: IngestReport, path: Path) -> Path:
    """Write one row per processed package to a CSV file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(
        [
            {
                "index": unit.index,
                "package": unit.package,
                "output_path": str(unit.output_path),
                "versions_written": unit.versions_written,
                "versions_skipped": unit.versions_skipped,
                "status": "ok" if unit.ok else "failed",
                "error": unit.error or "",
            }
            for unit in report.units
        ],
        columns=REPORT_COLUMNS,
    )
    df.to_csv(path, index=False)
    return path
