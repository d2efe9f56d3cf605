"""
Command-line interface for the dependency ingestion tool.
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import IngestConfig
from .errors import IngestError
from .orchestrator import format_output_path, ingest_file, ingest_query, stream_ingest
from .reporting import export_run_report, log_stream_summary, log_summary


logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract per-version dependency lists from package registry metadata"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO"
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_fan_out_flags(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--output",
            required=True,
            help="Output path template with one index placeholder, e.g. out/result%%d.csv"
        )
        p.add_argument(
            "--versions",
            required=True,
            help="Path of the CSV listing every package version"
        )
        p.add_argument(
            "--registry-url",
            default=None,
            help="Registry base URL. Default: https://registry.npmjs.org"
        )
        p.add_argument(
            "--workers",
            type=int,
            default=None,
            help="Number of packages processed concurrently. Default: 8"
        )
        p.add_argument(
            "--fail-fast",
            action="store_true",
            help="Abort the run on the first failed package"
        )
        p.add_argument(
            "--report",
            default=None,
            help="Write a per-package status CSV to this path"
        )

    query = subparsers.add_parser("query", help="Ingest packages from the live discovery API")
    query.add_argument(
        "terms",
        nargs="?",
        default=None,
        help="Search terms sent to the discovery API. Default: none"
    )
    add_fan_out_flags(query)
    query.add_argument(
        "--discovery-url",
        default=None,
        help="Discovery search endpoint. Default: https://libraries.io/api/search"
    )
    query.add_argument(
        "--per-page",
        type=int,
        default=None,
        help="Number of packages requested from the discovery API. Default: 20"
    )

    file_cmd = subparsers.add_parser("file", help="Ingest packages listed in a JSON file")
    file_cmd.add_argument("input", help="JSON array of package summaries")
    add_fan_out_flags(file_cmd)

    stream = subparsers.add_parser("stream", help="Extract dependencies from a metadata dump")
    stream.add_argument("input", help="JSON metadata dump")
    stream.add_argument("--output", required=True, help="Output CSV path")
    stream.add_argument(
        "--skip-malformed",
        action="store_true",
        help="Log and skip dump entries with an invalid shape instead of aborting"
    )

    return parser


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        config = IngestConfig.from_env(
            registry_url=getattr(args, "registry_url", None),
            max_workers=getattr(args, "workers", None),
            fail_fast=getattr(args, "fail_fast", None),
            skip_malformed=getattr(args, "skip_malformed", None),
            discovery_url=getattr(args, "discovery_url", None),
            per_page=getattr(args, "per_page", None),
            show_progress=not args.no_progress,
        )

        if args.command == "stream":
            Path(args.output).parent.mkdir(parents=True, exist_ok=True)
            log_stream_summary(stream_ingest(args.input, args.output, config))
            return 0

        Path(args.versions).parent.mkdir(parents=True, exist_ok=True)
        format_output_path(args.output, 0).parent.mkdir(parents=True, exist_ok=True)
        if args.command == "query":
            report = ingest_query(args.terms, args.output, args.versions, config=config)
        else:
            report = ingest_file(args.input, args.output, args.versions, config=config)
    except (IngestError, OSError, ValueError) as e:
        logger.error("Ingestion aborted: %s", e)
        return 1

    log_summary(report)
    if args.report:
        logger.info("Report saved to: %s", export_run_report(report, Path(args.report)))
    return 2 if report.failures else 0


if __name__ == "__main__":
    sys.exit(main())
