"""Run configuration.

RunConfig is built once at startup from CLI options (which click fills from
the GitHub Actions environment) and an optional TOML file, then passed to
every component. Nothing else reads the environment.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .errors import ConfigurationError
from .models import Credential
from .toml import get_tool_settings, load_toml
from .versions import STRATEGIES

DEFAULT_CONFIG_FILE = "module-versions.toml"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_STRATEGY = "most-recent"
GITHUB_HOST = "github.com"
TOKEN_USERNAME = "x-access-token"
REPORT_FILE = "terraform-module-versions-action.md"


class RunConfig(BaseModel):
    """Immutable settings for one run.

    Attributes:
        repository: "owner/name" of the scanned repository.
        directories: Project directories to scan, relative to the repo root.
        branch: Branch to read files from; the default branch if None.
        repository_credentials: Used to fetch the scanned repository's files.
        dependency_credentials: Used to fetch module tags. Empty means
                                tags are fetched anonymously.
        output_dir: Where the report file is written.
        strategy: Name of the version resolution strategy.
        api_url: GitHub REST API base URL.
    """

    model_config = ConfigDict(frozen=True)

    repository: str
    directories: tuple[str, ...]
    branch: str | None = None
    repository_credentials: tuple[Credential, ...]
    dependency_credentials: tuple[Credential, ...] = ()
    output_dir: Path = Path(".")
    strategy: str = DEFAULT_STRATEGY
    api_url: str = DEFAULT_API_URL

    @property
    def report_path(self) -> Path:
        return self.output_dir / REPORT_FILE


def split_directories(value: str) -> list[str]:
    """Split a newline-delimited directory list.

    GitHub Actions inputs sometimes arrive with literal ``\\n`` sequences
    instead of newlines, so both are accepted. Blank entries are dropped.

    Examples:
        "a\\nb" → ["a", "b"]
        " /infra \\n\\n modules " → ["/infra", "modules"]
    """
    value = value.replace("\\n", "\n")
    return [d.strip() for d in value.split("\n") if d.strip()]


def _settings_directories(value: object) -> list[str]:
    """Directory list from the settings file: an array or a newline string."""
    if isinstance(value, str):
        return split_directories(value)
    if not isinstance(value, list) or not all(isinstance(d, str) for d in value):
        raise ConfigurationError("directories must be an array of strings")
    return [d.strip() for d in value if d.strip()]


def token_credential(token: str) -> Credential:
    return Credential(host=GITHUB_HOST, username=TOKEN_USERNAME, password=token)


def build_run_config(
    *,
    repository: str | None = None,
    directory: str | None = None,
    branch: str | None = None,
    token: str | None = None,
    dependency_token: str | None = None,
    output_dir: str | None = None,
    strategy: str | None = None,
    api_url: str | None = None,
    config_file: Path | None = None,
) -> RunConfig:
    """Validate startup inputs and build the RunConfig.

    Explicit arguments win over values from the [tool.module-versions] table
    of ``config_file``.

    Raises:
        ConfigurationError: If the repository, directory list or token is
                            missing, or the strategy is unknown.
    """
    settings = get_tool_settings(load_toml(config_file)) if config_file else {}

    repository = repository or settings.get("repository")
    if not repository:
        raise ConfigurationError("GITHUB_REPOSITORY needs to be set")

    if directory is not None:
        directories = split_directories(directory)
    elif "directories" in settings:
        directories = _settings_directories(settings["directories"])
    else:
        directories = ["/"]
    if not directories:
        raise ConfigurationError("The directory needs to be set")

    if not token:
        raise ConfigurationError("A github token needs to be provided")

    strategy = strategy or settings.get("strategy") or DEFAULT_STRATEGY
    if strategy not in STRATEGIES:
        choices = ", ".join(sorted(STRATEGIES))
        raise ConfigurationError(f"Unknown strategy {strategy!r} (choose from {choices})")

    return RunConfig(
        repository=repository,
        directories=tuple(directories),
        branch=branch or settings.get("branch") or None,
        repository_credentials=(token_credential(token),),
        dependency_credentials=(
            (token_credential(dependency_token),) if dependency_token else ()
        ),
        output_dir=Path(output_dir or settings.get("output_dir") or "."),
        strategy=strategy,
        api_url=api_url or DEFAULT_API_URL,
    )
