"""CLI entry point for module-versions."""

from __future__ import annotations

import os
from pathlib import Path

import click

from module_versions.config import DEFAULT_CONFIG_FILE, build_run_config
from module_versions.errors import (
    EXIT_RUN_FAILURE,
    EXIT_UPDATES_FOUND,
    ModuleVersionsError,
)
from module_versions.pipeline import run_check
from module_versions.versions import STRATEGIES

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _click_error(exc: Exception) -> click.ClickException:
    """Wrap an error so click prints it and exits with its code.

    Anything outside the ModuleVersionsError hierarchy is a run failure.
    """
    if isinstance(exc, ModuleVersionsError):
        err = click.ClickException(str(exc))
        err.exit_code = exc.exit_code
    else:
        err = click.ClickException(f"{type(exc).__name__}: {exc}")
        err.exit_code = EXIT_RUN_FAILURE
    return err


def _workspace_dir() -> str | None:
    # GITHUB_WORKSPACE is only meaningful inside a running action
    if os.environ.get("GITHUB_ACTION"):
        return os.environ.get("GITHUB_WORKSPACE")
    return None


@click.group()
@click.version_option(package_name="terraform-module-versions")
def cli() -> None:
    """Report Terraform modules that lag behind their latest git tag."""


@cli.command()
@click.option(
    "--repository",
    envvar="GITHUB_REPOSITORY",
    help="Repository to scan, as owner/name.",
)
@click.option(
    "--directory",
    envvar="INPUT_DIRECTORY",
    help="Newline-delimited directories to scan.  [default: /]",
)
@click.option("--branch", envvar="GITHUB_HEAD_REF", help="Branch to read files from.")
@click.option(
    "--token",
    envvar="INPUT_TOKEN",
    help="Token used to read the repository's files.",
)
@click.option(
    "--dependency-token",
    envvar="INPUT_GITHUB_DEPENDENCY_TOKEN",
    help="Token used to read module tags. Anonymous if omitted.",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    help="Directory for the report file.  "
    "[default: $GITHUB_WORKSPACE in GitHub Actions, else .]",
)
@click.option(
    "--strategy",
    type=click.Choice(sorted(STRATEGIES)),
    help="How the latest version is chosen.  [default: most-recent]",
)
@click.option("--api-url", envvar="GITHUB_API_URL", help="GitHub REST API base URL.")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help=f"TOML settings file.  [default: {DEFAULT_CONFIG_FILE} if present]",
)
@click.pass_context
def check(
    ctx: click.Context,
    repository: str | None,
    directory: str | None,
    branch: str | None,
    token: str | None,
    dependency_token: str | None,
    output_dir: str | None,
    strategy: str | None,
    api_url: str | None,
    config_file: Path | None,
) -> None:
    """Check module versions and write the report (usually called from CI).

    Exits 1 when any module needs updating.
    """
    if config_file is None and Path(DEFAULT_CONFIG_FILE).exists():
        config_file = Path(DEFAULT_CONFIG_FILE)
    if output_dir is None:
        output_dir = _workspace_dir()

    try:
        config = build_run_config(
            repository=repository,
            directory=directory,
            branch=branch,
            token=token,
            dependency_token=dependency_token,
            output_dir=output_dir,
            strategy=strategy,
            api_url=api_url,
            config_file=config_file,
        )
        report, has_updates = run_check(config)
    except Exception as exc:
        raise _click_error(exc) from exc

    click.echo(report)
    if has_updates:
        ctx.exit(EXIT_UPDATES_FOUND)


@cli.command()
@click.option(
    "--workflow-dir",
    type=click.Path(),
    default=".github/workflows",
    show_default=True,
    help="Directory to write the workflow file.",
)
@click.option("--force", is_flag=True, help="Overwrite an existing workflow.")
def init(workflow_dir: str, force: bool) -> None:
    """Scaffold the GitHub Actions workflow into your repo."""
    root = Path.cwd()

    if not (root / ".git").exists():
        raise click.ClickException("Not a git repository. Run from the repo root.")

    dest_dir = root / workflow_dir
    dest = dest_dir / "module-versions.yml"
    if dest.exists() and not force:
        raise click.ClickException(
            f"{dest.relative_to(root)} already exists. Use --force to overwrite."
        )

    dest_dir.mkdir(parents=True, exist_ok=True)
    template = TEMPLATES_DIR / "module-versions.yml"
    dest.write_text(template.read_text())

    click.echo(f"✓ Wrote workflow to {dest.relative_to(root)}")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Set the directories to scan in the workflow's INPUT_DIRECTORY")
    click.echo("  2. Commit and push the workflow file")
