"""Exception hierarchy for module-versions.

Every failure that should stop a run derives from ModuleVersionsError and
carries an exit code so the CLI can map it without inspecting the type.
"""

from __future__ import annotations

EXIT_UPDATES_FOUND = 1
EXIT_CONFIG_ERROR = 2
EXIT_RUN_FAILURE = 3


class ModuleVersionsError(Exception):
    """Base class for all run-level failures."""

    exit_code = EXIT_RUN_FAILURE


class ConfigurationError(ModuleVersionsError):
    """Required startup input is missing or invalid."""

    exit_code = EXIT_CONFIG_ERROR


class TagResolutionError(ModuleVersionsError):
    """A dependency has no usable version-tag history."""


class NoEligibleTagError(TagResolutionError):
    """No tag matching the version pattern was published upstream."""


class MalformedTagError(TagResolutionError):
    """A tag name has no extractable version substring."""


class NetworkError(ModuleVersionsError):
    """Transient failure talking to GitHub or a git remote."""


class AuthenticationError(NetworkError):
    """Credentials were rejected. Never retried."""


class FetchError(ModuleVersionsError):
    """A fetch succeeded at the transport level but the content is unusable."""


class ReportError(ModuleVersionsError):
    """The report file could not be written."""
