"""Version parsing and latest-version resolution.

Tag names are reduced to a version substring with VERSION_PATTERN, then
parsed into semver objects with missing components padded with zeros
(e.g., "v1" → "1.0.0", "1.2" → "1.2.0").

Which tag counts as "latest" is decided by a VersionResolutionStrategy.
The default, MostRecentTagStrategy, trusts publication order over version
magnitude.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Protocol

import semver

from .errors import MalformedTagError, NoEligibleTagError
from .models import Tag

ResolvedVersion = semver.Version

# Either "v<major>[-<suffix>]" for the whole name, or a dotted version at the
# end of the name after any non-numeric prefix ("release-1.2.3").
VERSION_PATTERN = re.compile(
    r"(?:^v(?P<short>[0-9]+(?:-[a-z0-9]+)?)"
    r"|(?P<dotted>[0-9]+\.[0-9]+(?:\.[a-z0-9\-]+)*))$",
    re.IGNORECASE,
)


def extract_version(name: str) -> str | None:
    """Return the version substring of a tag name or ref, if any.

    Examples:
        "v1.2.0" → "1.2.0"
        "v3" → "3"
        "release-2.1" → "2.1"
        "main" → None
    """
    match = VERSION_PATTERN.search(name)
    if match is None:
        return None
    return match.group("short") or match.group("dotted")


def parse_version(version_str: str) -> ResolvedVersion:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3-rc1" → "1.2.3-rc1"

    Raises:
        ValueError: If the core has more than three components or a
                    non-numeric component.
    """
    core, sep, rest = version_str.partition("-")
    parts = core.split(".")
    if len(parts) > 3:
        raise ValueError(f"{version_str} has more than three components")
    # Pad with zeros to ensure we have 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts) + sep + rest)


def is_version_tag(name: str) -> bool:
    """Whether a tag name carries a parseable version."""
    version = extract_version(name)
    if version is None:
        return False
    try:
        parse_version(version)
    except ValueError:
        return False
    return True


def tag_version(tag: Tag) -> ResolvedVersion:
    """Parse the version carried by a tag.

    Raises:
        MalformedTagError: If the name has no extractable, parseable version.
    """
    version = extract_version(tag.name)
    if version is None:
        raise MalformedTagError(f"Tag {tag.name!r} does not contain a version")
    try:
        return parse_version(version)
    except ValueError as exc:
        raise MalformedTagError(f"Tag {tag.name!r}: {exc}") from exc


class VersionResolutionStrategy(Protocol):
    """Decides which published tag is the latest and whether a pin is current."""

    def latest_tag(self, tags: Sequence[Tag]) -> Tag: ...

    def resolve_latest(self, tags: Sequence[Tag]) -> ResolvedVersion: ...

    def is_up_to_date(
        self, current: ResolvedVersion, latest: ResolvedVersion
    ) -> bool: ...


class MostRecentTagStrategy:
    """Use the most recently published tag as the latest version.

    Earlier tags are ignored even when they encode a higher version, so a
    maintainer republishing an older release line moves "latest" backwards.
    A pin is current only if it equals that version exactly.
    """

    name = "most-recent"

    def latest_tag(self, tags: Sequence[Tag]) -> Tag:
        if not tags:
            raise NoEligibleTagError("No version tags published")
        return tags[-1]

    def resolve_latest(self, tags: Sequence[Tag]) -> ResolvedVersion:
        return tag_version(self.latest_tag(tags))

    def is_up_to_date(self, current: ResolvedVersion, latest: ResolvedVersion) -> bool:
        return current == latest


class HighestVersionStrategy:
    """Conventional resolution: the highest semantic version wins.

    Ties between tags parsing to the same version go to the later publish.
    """

    name = "highest"

    def latest_tag(self, tags: Sequence[Tag]) -> Tag:
        if not tags:
            raise NoEligibleTagError("No version tags published")
        return max(tags, key=lambda t: (tag_version(t), t.push_order))

    def resolve_latest(self, tags: Sequence[Tag]) -> ResolvedVersion:
        return tag_version(self.latest_tag(tags))

    def is_up_to_date(self, current: ResolvedVersion, latest: ResolvedVersion) -> bool:
        return current >= latest


STRATEGIES = {cls.name: cls for cls in (MostRecentTagStrategy, HighestVersionStrategy)}
