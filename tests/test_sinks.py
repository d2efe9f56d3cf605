"""Tests for the CSV sinks."""

import csv
import threading

from dependency_ingest.models import DependencySpec, ResolvedEntry
from dependency_ingest.sinks import DependencyCsvSink, VersionSummarySink, format_dependencies
from dependency_ingest.time_utils import parse_timestamp


def _entry(name="left-pad", number="1.0.0", deps=()):
    return ResolvedEntry(
        package_name=name,
        version_number=number,
        published_at=parse_timestamp("2015-03-17T00:00:00.000Z"),
        dependencies=tuple(DependencySpec(n, r) for n, r in deps),
    )


def test_format_dependencies():
    entry = _entry(deps=[("a", "^1.0.0"), ("b", "*")])

    assert format_dependencies(entry) == "[a:^1.0.0;b:*]"
    assert format_dependencies(_entry()) == "[]"


def test_dependency_row_layout(tmp_path):
    path = tmp_path / "out.csv"

    with DependencyCsvSink(path) as sink:
        sink.write(_entry())
        sink.write(_entry(number="1.1.0", deps=[("tape", "~4.0.0"), ("x", ">=1 <2")]))

    assert path.read_text(encoding="utf-8") == (
        'left-pad,1.0.0,2015-03-17T00:00:00.000000000Z,"[]"\n'
        'left-pad,1.1.0,2015-03-17T00:00:00.000000000Z,"[tape:~4.0.0;x:>=1 <2]"\n'
    )


def test_dependency_rows_parse_back_as_csv(tmp_path):
    path = tmp_path / "out.csv"
    entry = ResolvedEntry(
        package_name="we,ird",
        version_number="1.0.0",
        published_at=None,
        dependencies=(DependencySpec("q", '"1"'),),
    )

    with DependencyCsvSink(path) as sink:
        sink.write(entry)

    with path.open(newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows == [["we,ird", "1.0.0", "", '[q:"1"]']]


def test_dependency_sink_appends(tmp_path):
    path = tmp_path / "out.csv"

    with DependencyCsvSink(path) as sink:
        sink.write(_entry())
    with DependencyCsvSink(path) as sink:
        sink.write(_entry(number="2.0.0"))

    assert len(path.read_text(encoding="utf-8").splitlines()) == 2


def test_dependency_sink_write_mode_truncates(tmp_path):
    path = tmp_path / "out.csv"
    path.write_text("stale\n", encoding="utf-8")

    with DependencyCsvSink(path, mode="w") as sink:
        sink.write(_entry())

    assert "stale" not in path.read_text(encoding="utf-8")


def test_flush_makes_rows_visible(tmp_path):
    path = tmp_path / "out.csv"
    sink = DependencyCsvSink(path)
    sink.write(_entry())
    sink.flush()

    assert path.read_text(encoding="utf-8").startswith("left-pad,1.0.0,")
    sink.close()
    sink.close()


def test_version_summary_rows(tmp_path):
    path = tmp_path / "versions.csv"

    with VersionSummarySink(path) as sink:
        sink.write("left-pad", "1.0.0", parse_timestamp("2015-03-17T00:00:00.000Z"))
        sink.write("left-pad", "1.0.1", None)

    assert path.read_text(encoding="utf-8") == (
        "left-pad,1.0.0,2015-03-17T00:00:00.000000000Z\n"
        "left-pad,1.0.1,\n"
    )


def test_version_summary_is_safe_for_concurrent_writers(tmp_path):
    path = tmp_path / "versions.csv"
    sink = VersionSummarySink(path)

    def worker(n):
        for i in range(200):
            sink.write(f"pkg{n}", f"{i}.0.0", None)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    sink.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert sink.rows_written == 1600
    assert len(lines) == 1600
    assert all(line.count(",") == 2 for line in lines)


def test_unencodable_text_is_escaped(tmp_path):
    path = tmp_path / "out.csv"

    with DependencyCsvSink(path) as sink:
        sink.write(_entry(name="bad\ud800name", deps=[("\udfffx", "1")]))
    with VersionSummarySink(tmp_path / "v.csv") as summary:
        summary.write("bad\ud800name", "1.0.0", None)

    assert path.read_text(encoding="utf-8") == (
        'bad\\ud800name,1.0.0,2015-03-17T00:00:00.000000000Z,"[\\udfffx:1]"\n'
    )
    assert (tmp_path / "v.csv").read_text(encoding="utf-8") == "bad\\ud800name,1.0.0,\n"
