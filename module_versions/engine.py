"""Update decision engine.

For one dependency, decides whether an update is needed and, if so, the
cheapest unlock level at which it can be expressed:

1. Up to date → NoUpdateNeeded
2. Declarations cannot be unlocked → try UnlockLevel.NONE only
3. Otherwise try NONE, OWN, then ALL; the first level that works is chosen
4. Nothing works → UpdateNotPossible (a skip, not an error)
"""

from __future__ import annotations

from .checker import CheckerFactory, GitModuleChecker, TagSource, UpdateChecker
from .models import (
    Dependency,
    NoUpdateNeeded,
    UnlockLevel,
    UpdateDecision,
    UpdateNotPossible,
)
from .versions import MostRecentTagStrategy, VersionResolutionStrategy

Outcome = UpdateDecision | NoUpdateNeeded | UpdateNotPossible


class UpdateDecisionEngine:
    """Runs the unlock-level decision procedure against UpdateChecker.

    Args:
        strategy: How the latest version is resolved from the tag history.
        checker_factory: Builds the checker for a dependency. Defaults to
                         GitModuleChecker.
    """

    def __init__(
        self,
        strategy: VersionResolutionStrategy | None = None,
        checker_factory: CheckerFactory = GitModuleChecker,
    ) -> None:
        self.strategy = strategy or MostRecentTagStrategy()
        self.checker_factory = checker_factory

    def decide(self, dependency: Dependency, tag_source: TagSource) -> Outcome:
        checker = self.checker_factory(dependency, tag_source, self.strategy)

        if checker.up_to_date():
            return NoUpdateNeeded(dependency=dependency)

        unlock = choose_unlock_level(checker, dependency.unlockable)
        if unlock is None:
            return UpdateNotPossible(dependency=dependency)

        updated = checker.updated_dependencies(unlock)
        requirements = [
            req.model_copy(update={"unlock": unlock})
            for dep in updated
            for req in dep.requirements
        ]
        return UpdateDecision(
            dependency=dependency,
            unlock=unlock,
            updated_requirements=requirements,
            previous_version=dependency.version,
            new_version=updated[0].version if updated else dependency.version,
        )


def choose_unlock_level(checker: UpdateChecker, unlockable: bool) -> UnlockLevel | None:
    """Return the cheapest unlock level at which the checker can update.

    Levels are probed in ascending order and probing stops at the first
    success, so a more invasive level is never chosen when a cheaper one
    works.
    """
    # NONE is always tried first so the chosen level stays minimal
    candidates = list(UnlockLevel) if unlockable else [UnlockLevel.NONE]

    for unlock in candidates:
        if checker.can_update(unlock):
            return unlock
    return None
