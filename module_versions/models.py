"""Data models for module-versions.

These Pydantic models represent the facts fetched during a run (tags,
dependency files, declared module requirements) and the results derived
from them (update decisions and report records).
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UnlockLevel(str, Enum):
    """How much of a declared requirement may be loosened to express an update.

    Members are declared cheapest first; ``rank`` gives the ordering.
    """

    NONE = "none"
    OWN = "own"
    ALL = "all"

    @property
    def rank(self) -> int:
        return list(UnlockLevel).index(self)


class Tag(BaseModel):
    """An upstream tag.

    Attributes:
        name: Tag name as published, e.g. "v1.2.0".
        push_order: Chronological publication index, 0 for the oldest tag.
                    Independent of the version encoded in the name.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    push_order: int


class Credential(BaseModel):
    """Static git credential for one host."""

    model_config = ConfigDict(frozen=True)

    type: Literal["git_source"] = "git_source"
    host: str
    username: str
    password: str = Field(repr=False)


class DependencyFile(BaseModel):
    """A dependency declaration file fetched from the scanned repository."""

    name: str
    directory: str
    content: str


class ModuleSource(BaseModel):
    """A parsed Terraform module ``source`` argument.

    Attributes:
        type: Always "git"; registry and local sources are not tracked.
        url: Cloneable URL without the ``git::`` prefix, subdirectory or query.
        ref: The ``?ref=`` value, usually a tag name.
        subdirectory: Optional ``//path`` inside the repository.
        raw: The source string exactly as declared.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["git"] = "git"
    url: str
    ref: str | None = None
    subdirectory: str | None = None
    raw: str


class Requirement(BaseModel):
    """One place where a dependency is declared.

    Attributes:
        file: File name relative to the scanned directory.
        source: The declared module source.
        unlock: NONE for parsed declarations; the chosen level on requirements
                produced by an update decision.
    """

    model_config = ConfigDict(frozen=True)

    file: str
    source: ModuleSource
    unlock: UnlockLevel = UnlockLevel.NONE


class Dependency(BaseModel):
    """A module dependency with every place it is declared.

    Attributes:
        name: Identifier, the module source URL.
        version: Pinned version substring extracted from the declared ref.
        requirements: Declarations, in file order. Never empty.
        unlockable: Whether the declarations may be rewritten at all.
        previous_version: Set on updated dependencies to the version they
                          were bumped from.
    """

    name: str
    version: str
    requirements: list[Requirement] = Field(min_length=1)
    unlockable: bool = True
    previous_version: str | None = None

    @property
    def top_level(self) -> bool:
        """Declared directly by the project rather than pulled in transitively."""
        return bool(self.requirements)


class UpdateDecision(BaseModel):
    """An update that is both needed and expressible."""

    dependency: Dependency
    unlock: UnlockLevel
    updated_requirements: list[Requirement]
    previous_version: str
    new_version: str


class NoUpdateNeeded(BaseModel):
    """The dependency already pins the latest version."""

    dependency: Dependency


class UpdateNotPossible(BaseModel):
    """The dependency is outdated but no unlock level can express the update."""

    dependency: Dependency


class UpdateRecord(BaseModel):
    """One report line."""

    model_config = ConfigDict(frozen=True)

    directory: str
    file: str
    module_url: str
    previous_version: str
    new_version: str

    def line(self) -> str:
        path = f"{self.directory.rstrip('/')}/{self.file}"
        return (
            f"File {path} needs module {self.module_url} "
            f"updated from {self.previous_version} to {self.new_version}"
        )
