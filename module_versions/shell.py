"""Shell and git utilities.

Provides simple wrappers around subprocess calls for git operations, a
retry helper for network-bound calls, plus output formatting helpers.
"""

from __future__ import annotations

import base64
import os
import subprocess
import time
from collections.abc import Callable, Sequence
from typing import TypeVar
from urllib.parse import urlsplit

from .errors import AuthenticationError, NetworkError
from .models import Credential

T = TypeVar("T")

# Retry configuration for network-bound calls (exponential: 1s, 2s, 4s)
RETRY_ATTEMPTS = 3
RETRY_BACKOFF = 1.0

# git stderr fragments that mean the remote rejected our credentials
AUTH_FAILURE_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "permission denied",
    "repository not found",
    "returned error: 401",
    "returned error: 403",
)


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "for-each-ref", "refs/tags").
        check: If True (default), raise on non-zero exit.

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(["git", *args], capture_output=True, text=True, check=check)
    return result.stdout.strip()


def git_remote(
    *args: str, url: str, credentials: Sequence[Credential] = ()
) -> str:
    """Run a git command that talks to ``url`` and classify its failures.

    A credential whose host matches the URL is sent as a basic-auth header
    so the token never appears in the URL or in error messages.

    Raises:
        AuthenticationError: If the remote rejected the credentials.
        NetworkError: For any other failure.
    """
    config: list[str] = ["-c", "credential.helper=", "-c", "core.askPass=true"]
    header = auth_header(url, credentials)
    if header:
        config += ["-c", f"http.extraHeader=Authorization: {header}"]

    result = subprocess.run(
        ["git", *config, *args],
        capture_output=True,
        text=True,
        env=_git_env(),
    )
    if result.returncode != 0:
        stderr = result.stderr.strip()
        if any(marker in stderr.lower() for marker in AUTH_FAILURE_MARKERS):
            raise AuthenticationError(f"git {args[0]} {url}: {stderr}")
        raise NetworkError(f"git {args[0]} {url}: {stderr}")
    return result.stdout.strip()


def auth_header(url: str, credentials: Sequence[Credential]) -> str | None:
    """Return a basic-auth header value for the credential matching ``url``."""
    host = urlsplit(url).hostname
    for cred in credentials:
        if cred.type == "git_source" and cred.host == host:
            token = f"{cred.username}:{cred.password}".encode()
            return "basic " + base64.b64encode(token).decode()
    return None


def _git_env() -> dict[str, str]:
    # Never block on an interactive credential prompt in CI
    return {**os.environ, "GIT_TERMINAL_PROMPT": "0"}


def with_retries(
    fn: Callable[[], T],
    *,
    attempts: int = RETRY_ATTEMPTS,
    backoff: float = RETRY_BACKOFF,
) -> T:
    """Call ``fn`` and retry transient network failures with exponential backoff.

    AuthenticationError is raised immediately; other NetworkErrors are
    retried until ``attempts`` calls have been made, then re-raised.
    """
    delay = backoff
    for attempt in range(1, attempts):
        try:
            return fn()
        except AuthenticationError:
            raise
        except NetworkError as exc:
            print(f"  {exc} (retry {attempt}/{attempts - 1} in {delay:.0f}s)")
            time.sleep(delay)
            delay *= 2
    return fn()


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the scan of each directory in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")
