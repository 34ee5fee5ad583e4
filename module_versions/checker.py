"""Update checkers: per-ecosystem answers to "can this dependency move?".

The decision engine only talks to the UpdateChecker protocol. GitModuleChecker
is the implementation for Terraform modules pinned to a git tag.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from .models import Dependency, ModuleSource, Requirement, Tag, UnlockLevel
from .versions import VersionResolutionStrategy, extract_version, parse_version


class TagSource(Protocol):
    """Provides a dependency's upstream version tags, oldest first."""

    def allowed_version_tags(self, include_prerelease: bool = False) -> list[Tag]: ...


class UpdateChecker(Protocol):
    """Capability interface consumed by UpdateDecisionEngine."""

    def up_to_date(self) -> bool: ...

    def can_update(self, unlock: UnlockLevel) -> bool: ...

    def updated_dependencies(self, unlock: UnlockLevel) -> list[Dependency]: ...


def _with_ref(source: ModuleSource, ref: str) -> ModuleSource:
    """Return a copy of a module source pinned to another ref."""
    raw = source.raw.replace(f"ref={source.ref}", f"ref={ref}")
    return source.model_copy(update={"ref": ref, "raw": raw})


CheckerFactory = Callable[
    [Dependency, TagSource, VersionResolutionStrategy], UpdateChecker
]


class GitModuleChecker:
    """UpdateChecker for modules whose version is the ``ref`` of a git source.

    The version lives in the declaration itself, so an update always needs
    the module's own requirement rewritten (UnlockLevel.OWN or above).
    Terraform's lock file only tracks providers, so nothing else can block a
    module update and ALL never succeeds where OWN fails.
    """

    def __init__(
        self,
        dependency: Dependency,
        tag_source: TagSource,
        strategy: VersionResolutionStrategy,
    ) -> None:
        self.dependency = dependency
        self.tag_source = tag_source
        self.strategy = strategy
        self._tags: list[Tag] | None = None

    @property
    def current_version(self):
        return parse_version(self.dependency.version)

    @property
    def tags(self) -> list[Tag]:
        if self._tags is None:
            # Pre-releases only count when already tracking one
            include_prerelease = self.current_version.prerelease is not None
            self._tags = self.tag_source.allowed_version_tags(include_prerelease)
        return self._tags

    @property
    def latest_tag(self) -> Tag:
        return self.strategy.latest_tag(self.tags)

    @property
    def latest_version(self):
        return self.strategy.resolve_latest(self.tags)

    def up_to_date(self) -> bool:
        return self.strategy.is_up_to_date(self.current_version, self.latest_version)

    def can_update(self, unlock: UnlockLevel) -> bool:
        if unlock == UnlockLevel.NONE:
            return False
        return not self.up_to_date()

    def updated_dependencies(self, unlock: UnlockLevel) -> list[Dependency]:
        tag = self.latest_tag
        requirements = [
            Requirement(
                file=req.file,
                source=_with_ref(req.source, tag.name),
                unlock=unlock,
            )
            for req in self.dependency.requirements
        ]
        return [
            self.dependency.model_copy(
                update={
                    "version": extract_version(tag.name),
                    "previous_version": self.dependency.version,
                    "requirements": requirements,
                }
            )
        ]
