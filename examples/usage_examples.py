#!/usr/bin/env python3
"""
Example script showing how to use the dependency-ingest tool.
"""

from pathlib import Path

from dependency_ingest.config import IngestConfig
from dependency_ingest.orchestrator import ingest_file, stream_ingest
from dependency_ingest.reporting import export_run_report


def example_bulk_file():
    """Example: Resolve every version listed in a discovery document."""
    print("="*60)
    print("Example 1: Bulk file ingestion")
    print("="*60)

    output_dir = Path("./output/example1")
    output_dir.mkdir(parents=True, exist_ok=True)
    config = IngestConfig(max_workers=4)

    report = ingest_file(
        "data/100packages.json",
        str(output_dir / "result%d.csv"),
        output_dir / "versions.csv",
        config=config,
    )

    print(f"\nPackages processed: {len(report.units)}")
    print(f"Dependency rows written: {report.versions_written}")
    print(f"Versions without data: {report.versions_skipped}")
    print(f"Failed packages: {len(report.failures)}")
    export_run_report(report, output_dir / "report.csv")


def example_stream_dump():
    """Example: Extract dependencies from a registry metadata dump."""
    print("\n" + "="*60)
    print("Example 2: Streaming a metadata dump")
    print("="*60)

    Path("./output/example2").mkdir(parents=True, exist_ok=True)
    report = stream_ingest(
        "data/registry-dump.json",
        "./output/example2/dependencies.csv",
        config=IngestConfig(skip_malformed=True),
    )

    print(f"\nPackages: {report.packages}")
    print(f"Rows: {report.rows}")


if __name__ == "__main__":
    print("Dependency Ingest - Usage Examples")
    print("="*60)
    print("\nNote: These examples need real input files under ./data.")
    print("Uncomment the example you want to run.\n")

    # example_bulk_file()
    # example_stream_dump()
