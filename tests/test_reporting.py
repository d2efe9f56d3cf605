from pathlib import Path

import pandas as pd

from dependency_ingest.orchestrator import IngestReport, UnitResult
from dependency_ingest.reporting import REPORT_COLUMNS, export_run_report, log_summary


def _report(tmp_path: Path) -> IngestReport:
    return IngestReport(
        units=[
            UnitResult(0, "left-pad", tmp_path / "r0.csv", versions_written=3, versions_skipped=1),
            UnitResult(1, "is-odd", tmp_path / "r1.csv", versions_written=1, error="HTTP 429"),
        ],
        version_rows=6,
    )


def test_run_report_export(tmp_path: Path):
    report_file = export_run_report(_report(tmp_path), tmp_path / "out" / "report.csv")

    df = pd.read_csv(report_file, keep_default_na=False)
    assert list(df.columns) == REPORT_COLUMNS
    assert list(df["status"]) == ["ok", "failed"]
    assert list(df["error"]) == ["", "HTTP 429"]
    assert df["versions_written"].sum() == 4


def test_report_totals(tmp_path: Path):
    report = _report(tmp_path)

    assert report.versions_written == 4
    assert report.versions_skipped == 1
    assert [unit.package for unit in report.failures] == ["is-odd"]


def test_log_summary_lists_failures(tmp_path: Path, caplog):
    with caplog.at_level("INFO", logger="dependency_ingest.reporting"):
        log_summary(_report(tmp_path))

    assert "is-odd: HTTP 429" in caplog.text
