"""Fetching from the outside world: repository files and module tags.

GitHubFileFetcher reads the Terraform files of one directory through the
GitHub contents API. GitTagSource lists a module repository's tags in
publication order using a lightweight bare clone.

Every network call goes through with_retries; authentication failures are
surfaced immediately.
"""

from __future__ import annotations

import subprocess
import tempfile
from collections.abc import Sequence

import httpx

from .config import RunConfig
from .errors import AuthenticationError, FetchError, NetworkError
from .models import Credential, Dependency, DependencyFile, Tag
from .shell import git, git_remote, with_retries
from .terraform import is_terraform_file
from .versions import is_version_tag, tag_version

TIMEOUT_FETCH = 10.0


class GitHubFileFetcher:
    """Fetch dependency files for a directory of the configured repository."""

    def __init__(self, config: RunConfig, client: httpx.Client | None = None) -> None:
        self.config = config
        self.client = client or httpx.Client(
            base_url=config.api_url,
            timeout=TIMEOUT_FETCH,
            follow_redirects=True,
        )
        cred = next(iter(config.repository_credentials), None)
        self.auth = (cred.username, cred.password) if cred else None

    def close(self) -> None:
        self.client.close()

    def _get(self, path: str, **kwargs) -> httpx.Response:
        """GET an API path, mapping failures onto the error hierarchy."""
        params = {"ref": self.config.branch} if self.config.branch else None
        try:
            resp = self.client.get(path, params=params, auth=self.auth, **kwargs)
        except httpx.TransportError as exc:
            raise NetworkError(f"GET {path}: {exc}") from exc

        status = resp.status_code
        rate_limited = resp.headers.get("x-ratelimit-remaining") == "0"
        if status == 401 or (status == 403 and not rate_limited):
            raise AuthenticationError(f"GET {path}: access denied ({status})")
        if status == 404:
            raise FetchError(f"GET {path}: not found")
        if status == 429 or status >= 500 or rate_limited:
            raise NetworkError(f"GET {path}: HTTP {status}")
        if status >= 400:
            raise FetchError(f"GET {path}: HTTP {status}")
        return resp

    def list_directory(self, directory: str) -> list[dict]:
        path = f"/repos/{self.config.repository}/contents/{directory.strip('/')}"
        resp = with_retries(lambda: self._get(path.rstrip("/")))
        try:
            listing = resp.json()
        except ValueError as exc:
            raise FetchError(f"GET {path}: invalid JSON response") from exc
        if not isinstance(listing, list):
            raise FetchError(f"{directory} in {self.config.repository} is not a directory")
        return listing

    def fetch_file(self, path: str) -> str:
        api_path = f"/repos/{self.config.repository}/contents/{path}"
        headers = {"Accept": "application/vnd.github.raw"}
        return with_retries(lambda: self._get(api_path, headers=headers)).text

    def fetch(self, directory: str) -> list[DependencyFile]:
        """Fetch every ``*.tf`` file directly inside ``directory``.

        Raises:
            FetchError: If the directory is missing or has no Terraform files.
        """
        files = [
            DependencyFile(
                name=item["name"],
                directory=directory,
                content=self.fetch_file(item["path"]),
            )
            for item in self.list_directory(directory)
            if item.get("type") == "file" and is_terraform_file(item["name"])
        ]
        if not files:
            raise FetchError(f"No Terraform files found in {directory}")
        return files


class GitTagSource:
    """Version tags of one module repository, oldest first.

    Tags are ordered by ``creatordate`` (tagger date for annotated tags,
    commit date for lightweight ones), which stands in for push order.
    """

    def __init__(self, url: str, credentials: Sequence[Credential] = ()) -> None:
        self.url = url
        self.credentials = credentials
        self._tags: list[Tag] | None = None

    def fetch_tags(self) -> list[Tag]:
        with tempfile.TemporaryDirectory(prefix="module-versions-") as tmp:
            with_retries(
                lambda: git_remote(
                    "clone",
                    "--bare",
                    "--quiet",
                    "--filter=tree:0",
                    self.url,
                    tmp,
                    url=self.url,
                    credentials=self.credentials,
                )
            )
            try:
                output = git(
                    "-C",
                    tmp,
                    "for-each-ref",
                    "--sort=creatordate",
                    "--format=%(refname:strip=2)",
                    "refs/tags",
                )
            except subprocess.CalledProcessError as exc:
                stderr = (exc.stderr or "").strip()
                raise FetchError(f"git for-each-ref {self.url}: {stderr}") from exc
        return [Tag(name=name, push_order=i) for i, name in enumerate(output.splitlines())]

    def allowed_version_tags(self, include_prerelease: bool = False) -> list[Tag]:
        """Tags whose name carries a parseable version, in publication order."""
        if self._tags is None:
            self._tags = self.fetch_tags()
        tags = [t for t in self._tags if is_version_tag(t.name)]
        if not include_prerelease:
            tags = [t for t in tags if tag_version(t).prerelease is None]
        return tags


class TagSources:
    """Per-run registry so each module repository is cloned at most once."""

    def __init__(self, credentials: Sequence[Credential] = ()) -> None:
        self.credentials = credentials
        self._sources: dict[str, GitTagSource] = {}

    def for_dependency(self, dependency: Dependency) -> GitTagSource:
        url = dependency.requirements[0].source.url
        if url not in self._sources:
            self._sources[url] = GitTagSource(url, self.credentials)
        return self._sources[url]
