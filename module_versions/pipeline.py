"""Scan pipeline: fetch → parse → decide → report.

This module orchestrates a module-versions run:
1. For each configured directory, fetch its Terraform files
2. Parse them into git module dependencies
3. Ask the decision engine whether each top-level dependency needs an update
4. Turn every update into one report record per declaration
5. Merge the records of all directories, deduplicate, sort, and render

A run fails fast: the first directory that cannot be fetched or whose
module tags cannot be resolved aborts the run with that context attached.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from .config import RunConfig
from .engine import UpdateDecisionEngine
from .errors import ModuleVersionsError, ReportError, TagResolutionError
from .models import (
    DependencyFile,
    NoUpdateNeeded,
    UpdateNotPossible,
    UpdateRecord,
)
from .shell import step
from .sources import GitHubFileFetcher, TagSources
from .terraform import parse_dependency_files
from .versions import STRATEGIES

REPORT_HEADER = "## Terraform Module Versions Check Results"
UP_TO_DATE = "**All modules are up to date**"
NOT_UP_TO_DATE = "**Modules are not up to date**"


class FileFetcher(Protocol):
    def fetch(self, directory: str) -> list[DependencyFile]: ...


def scan_directory(
    directory: str,
    *,
    fetcher: FileFetcher,
    engine: UpdateDecisionEngine,
    tag_sources: TagSources,
) -> list[UpdateRecord]:
    """Find outdated modules in one project directory.

    Args:
        directory: Directory path relative to the repository root.
        fetcher: Provides the directory's dependency files.
        engine: Decides per dependency.
        tag_sources: Provides each dependency's tag history.

    Returns:
        One record per declaration that needs updating, in parser order.

    Raises:
        TagResolutionError: If a dependency has no usable version tags. The
                            message names the dependency.
    """
    step(f"Scanning {directory}")

    files = fetcher.fetch(directory)
    dependencies = [dep for dep in parse_dependency_files(files) if dep.top_level]
    if not dependencies:
        print("  No version-pinned git modules found")

    records: list[UpdateRecord] = []
    for dep in dependencies:
        try:
            outcome = engine.decide(dep, tag_sources.for_dependency(dep))
        except TagResolutionError as exc:
            raise type(exc)(f"{dep.name} {dep.version}: {exc}") from exc

        if isinstance(outcome, NoUpdateNeeded):
            print(f"  {dep.name} {dep.version}: up to date")
            continue
        if isinstance(outcome, UpdateNotPossible):
            print(f"  {dep.name} {dep.version}: update not possible")
            continue

        print(
            f"  {dep.name}: {outcome.previous_version} → {outcome.new_version}"
            f" (unlock {outcome.unlock.value})"
        )
        for req in outcome.updated_requirements:
            records.append(
                UpdateRecord(
                    directory=directory,
                    file=req.file,
                    module_url=req.source.url,
                    previous_version=outcome.previous_version,
                    new_version=outcome.new_version,
                )
            )

    return records


def aggregate(records: Iterable[UpdateRecord]) -> tuple[str, bool]:
    """Render the report for all directories.

    Records rendering to the same line collapse into one; lines are sorted
    lexicographically so output does not depend on scan order.

    Returns:
        (rendered report, whether any update exists)
    """
    lines = sorted({record.line() for record in records})
    if not lines:
        return UP_TO_DATE, False
    return NOT_UP_TO_DATE + "\n" + "\n".join(lines), True


def write_report(path: Path, report: str) -> None:
    """Write the report file consumed by later workflow steps.

    Raises:
        ReportError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"{REPORT_HEADER}\n{report}\n")
    except OSError as exc:
        raise ReportError(f"Cannot write report {path}: {exc}") from exc


def run_check(
    config: RunConfig,
    *,
    fetcher: FileFetcher | None = None,
    tag_sources: TagSources | None = None,
) -> tuple[str, bool]:
    """Scan every configured directory and write the report.

    Args:
        config: Run configuration.
        fetcher: File fetcher; a GitHubFileFetcher for the configured
                 repository by default.
        tag_sources: Tag source registry; anonymous unless dependency
                     credentials are configured.

    Returns:
        (rendered report, whether any update exists)
    """
    engine = UpdateDecisionEngine(STRATEGIES[config.strategy]())
    tag_sources = tag_sources or TagSources(config.dependency_credentials)
    own_fetcher = fetcher is None
    if fetcher is None:
        fetcher = GitHubFileFetcher(config)

    records: list[UpdateRecord] = []
    try:
        for directory in config.directories:
            try:
                records.extend(
                    scan_directory(
                        directory,
                        fetcher=fetcher,
                        engine=engine,
                        tag_sources=tag_sources,
                    )
                )
            except ModuleVersionsError as exc:
                raise type(exc)(f"{directory}: {exc}") from exc
    finally:
        if own_fetcher:
            fetcher.close()

    report, has_updates = aggregate(records)
    write_report(config.report_path, report)
    return report, has_updates
