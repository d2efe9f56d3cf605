"""
Concurrent ingestion of package dependency data.

Two entry points mirror the two kinds of input. ``ingest_packages`` fans a
list of package summaries out over a bounded thread pool and fetches every
version from the registry. ``stream_ingest`` walks a metadata dump one
package at a time on the calling thread.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from tqdm import tqdm

from .config import IngestConfig
from .errors import IngestError, UpstreamRejection, VersionNotFound
from .extractor import extract_dependencies, extract_version_payload
from .fetcher import RegistryFetcher
from .interfaces import Fetcher
from .models import PackageSummary, ResolvedEntry, StreamedPackageDoc, VersionRef
from .reader import iter_package_docs, load_package_summaries, read_package_summaries
from .sinks import DependencyCsvSink, VersionSummarySink


logger = logging.getLogger(__name__)


@dataclass
class UnitResult:
    """Outcome of processing one package."""

    index: int
    package: str
    output_path: Path
    versions_written: int = 0
    versions_skipped: int = 0
    error: Optional[str] = None
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class IngestReport:
    """Per-unit results of a fan-out run, ordered by unit index."""

    units: List[UnitResult]
    version_rows: int = 0

    @property
    def failures(self) -> List[UnitResult]:
        return [unit for unit in self.units if not unit.ok]

    @property
    def versions_written(self) -> int:
        return sum(unit.versions_written for unit in self.units)

    @property
    def versions_skipped(self) -> int:
        return sum(unit.versions_skipped for unit in self.units)


@dataclass
class StreamReport:
    """Totals of a streaming run."""

    output_path: Path
    packages: int = 0
    rows: int = 0


def format_output_path(template: str, index: int) -> Path:
    """Substitute a unit index into an output path template.

    Supports ``%d``-style, ``{}`` and ``{index}`` placeholders.
    """
    if "%" in template:
        return Path(template % index)
    if "{" in template:
        return Path(template.format(index, index=index))
    raise ValueError(f"Output path template has no index placeholder: {template!r}")


def resolve_version(
    package_name: str,
    version: VersionRef,
    fetcher: Fetcher,
    config: IngestConfig,
) -> ResolvedEntry:
    """Fetch one version from the registry and extract its dependencies.

    Raises VersionNotFound on HTTP 404 and UpstreamRejection on any other
    error status or an undecodable body.
    """
    url = fetcher.version_url(package_name, version.number)
    response = fetcher.fetch(url)
    status = response.status_code
    if status == 404:
        raise VersionNotFound(url)
    if status >= 400:
        raise UpstreamRejection(url, status, getattr(response, "reason", None))
    try:
        deps, dev_deps = extract_version_payload(response.content)
    except ValueError as e:
        # Usually a rate-limit page served in place of JSON.
        raise UpstreamRejection(url, status, f"undecodable response: {e}") from e

    return ResolvedEntry(
        package_name=package_name,
        version_number=version.number,
        published_at=version.published_at,
        dependencies=tuple(extract_dependencies(deps, dev_deps, config.max_entry_length)),
    )


def process_package(
    package: PackageSummary,
    index: int,
    output_path: Path,
    fetcher: Fetcher,
    config: IngestConfig,
) -> UnitResult:
    """Resolve every version of one package, in order, into its own CSV file.

    A fatal error stops this package and is recorded on the result.
    """
    result = UnitResult(index=index, package=package.name, output_path=output_path)
    try:
        with DependencyCsvSink(output_path, mode="a") as sink:
            try:
                for ver_idx, version in enumerate(package.versions):
                    try:
                        entry = resolve_version(package.name, version, fetcher, config)
                    except VersionNotFound:
                        logger.info(
                            "Dependencies not found for %s version %s", package.name, version.number
                        )
                        result.versions_skipped += 1
                        continue
                    sink.write(entry)
                    result.versions_written += 1
                    if ver_idx % config.flush_every == 0:
                        sink.flush()
            finally:
                sink.flush()
    except (IngestError, OSError) as e:
        logger.error("Package %s (unit %d) failed: %s", package.name, index, e)
        result.error = str(e)
        result.exception = e
        return result

    logger.info(
        "Package dependencies of %s (unit %d) fully resolved: %d written, %d skipped",
        package.name,
        index,
        result.versions_written,
        result.versions_skipped,
    )
    return result


def write_version_summary(package: PackageSummary, sink: VersionSummarySink) -> int:
    for version in package.versions:
        sink.write(package.name, version.number, version.published_at)
    return len(package.versions)


def _write_version_summaries(
    packages: Sequence[PackageSummary], version_path: Path, config: IngestConfig
) -> int:
    with VersionSummarySink(version_path) as sink:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            futures = [executor.submit(write_version_summary, p, sink) for p in packages]
            total = sum(future.result() for future in futures)
    logger.info("Wrote %d version rows to %s", total, version_path)
    return total


def ingest_packages(
    packages: Sequence[PackageSummary],
    out_path_template: str,
    version_path: Union[str, Path],
    fetcher: Optional[Fetcher] = None,
    config: Optional[IngestConfig] = None,
) -> IngestReport:
    """Resolve dependencies of every package on a bounded worker pool.

    Every version is first listed in the shared version-summary file. Each
    package is then processed exactly once by one worker and written to
    ``out_path_template`` filled in with its index. Returns once all
    packages are done. With ``config.fail_fast`` the first failed package
    cancels the pending ones and its error is raised.
    """
    config = config or IngestConfig()
    fetcher = fetcher or RegistryFetcher.from_config(config)

    logger.info("Got %d packages from input", len(packages))
    version_rows = _write_version_summaries(packages, Path(version_path), config)
    logger.info("Processing...")

    results: List[UnitResult] = []
    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        futures = {
            executor.submit(
                process_package,
                package,
                index,
                format_output_path(out_path_template, index),
                fetcher,
                config,
            ): index
            for index, package in enumerate(packages)
        }
        with tqdm(total=len(futures), unit="pkg", disable=not config.show_progress) as pbar:
            for future in as_completed(futures):
                result = future.result()
                results.append(result)
                pbar.update(1)
                if config.fail_fast and result.exception is not None:
                    for pending in futures:
                        pending.cancel()
                    raise result.exception

    results.sort(key=lambda unit: unit.index)
    return IngestReport(units=results, version_rows=version_rows)


def ingest_file(
    path: Union[str, Path],
    out_path_template: str,
    version_path: Union[str, Path],
    fetcher: Optional[Fetcher] = None,
    config: Optional[IngestConfig] = None,
) -> IngestReport:
    """Ingest a bulk discovery document stored on disk."""
    packages = read_package_summaries(path)
    return ingest_packages(packages, out_path_template, version_path, fetcher, config)


def ingest_query(
    query: Optional[str],
    out_path_template: str,
    version_path: Union[str, Path],
    fetcher: Optional[RegistryFetcher] = None,
    config: Optional[IngestConfig] = None,
) -> IngestReport:
    """Ingest the packages the live discovery endpoint returns for ``query``.

    A None or empty query lists packages without search terms.
    """
    config = config or IngestConfig()
    fetcher = fetcher or RegistryFetcher.from_config(config)
    packages = load_package_summaries(fetcher.fetch_discovery(config, query))
    return ingest_packages(packages, out_path_template, version_path, fetcher, config)


def entries_from_doc(doc: StreamedPackageDoc, max_entry_length: int) -> Iterator[ResolvedEntry]:
    """Yield one resolved entry per version of a dumped package document."""
    for number, data in doc.versions.items():
        deps = extract_dependencies(
            data.get("dependencies"), data.get("devDependencies"), max_entry_length
        )
        yield ResolvedEntry(
            package_name=doc.name,
            version_number=number,
            published_at=doc.time.get(number),
            dependencies=tuple(deps),
        )


def stream_ingest(
    in_path: Union[str, Path],
    out_path: Union[str, Path],
    config: Optional[IngestConfig] = None,
) -> StreamReport:
    """Write dependency rows for every package in a metadata dump.

    The dump is decoded one package at a time and the output is flushed
    after each package. The output file is truncated first, so re-running on
    the same input produces the same bytes.
    """
    config = config or IngestConfig()
    report = StreamReport(output_path=Path(out_path))

    # Undecodable bytes in the dump become U+FFFD instead of aborting the run.
    with open(in_path, encoding="utf-8", errors="replace") as fh, \
            DependencyCsvSink(out_path, mode="w") as sink:
        for doc in iter_package_docs(fh, skip_malformed=config.skip_malformed):
            for entry in entries_from_doc(doc, config.max_entry_length):
                sink.write(entry)
                report.rows += 1
            sink.flush()
            report.packages += 1
            logger.info("Wrote dependencies of %s to file", doc.name)

    return report
