"""Tests for module_versions.versions."""

from __future__ import annotations

import pytest

from module_versions.errors import MalformedTagError, NoEligibleTagError
from module_versions.models import Tag
from module_versions.versions import (
    HighestVersionStrategy,
    MostRecentTagStrategy,
    extract_version,
    is_version_tag,
    parse_version,
)


def _tags(*names: str) -> list[Tag]:
    return [Tag(name=name, push_order=i) for i, name in enumerate(names)]


class TestExtractVersion:
    def test_v_prefixed_semver(self) -> None:
        assert extract_version("v1.2.0") == "1.2.0"

    def test_bare_semver(self) -> None:
        assert extract_version("1.2.0") == "1.2.0"

    def test_major_only_needs_v_prefix(self) -> None:
        assert extract_version("v3") == "3"
        assert extract_version("3") is None

    def test_major_with_suffix(self) -> None:
        assert extract_version("v2-beta") == "2-beta"

    def test_non_numeric_prefix(self) -> None:
        assert extract_version("release-2.1") == "2.1"

    def test_case_insensitive(self) -> None:
        assert extract_version("V4") == "4"

    def test_branch_name(self) -> None:
        assert extract_version("main") is None


class TestParseVersion:
    def test_full_semver(self) -> None:
        v = parse_version("1.2.3")
        assert (v.major, v.minor, v.patch) == (1, 2, 3)

    def test_two_part_version(self) -> None:
        assert str(parse_version("1.2")) == "1.2.0"

    def test_single_part_version(self) -> None:
        assert str(parse_version("5")) == "5.0.0"

    def test_prerelease(self) -> None:
        v = parse_version("1.2.3-rc1")
        assert v.prerelease == "rc1"

    def test_short_prerelease_is_padded(self) -> None:
        assert str(parse_version("2-beta")) == "2.0.0-beta"

    def test_too_many_components(self) -> None:
        with pytest.raises(ValueError):
            parse_version("1.2.3.4")

    def test_non_numeric_component(self) -> None:
        with pytest.raises(ValueError):
            parse_version("1.2.x")


class TestIsVersionTag:
    def test_accepts_version_tags(self) -> None:
        assert is_version_tag("v1.0.0")
        assert is_version_tag("v1")

    def test_rejects_unparseable(self) -> None:
        assert not is_version_tag("main")
        assert not is_version_tag("v1.2.x")


class TestMostRecentTagStrategy:
    def test_returns_last_tag_version(self) -> None:
        strategy = MostRecentTagStrategy()
        assert str(strategy.resolve_latest(_tags("v1.0.0", "v1.1.0"))) == "1.1.0"

    def test_ignores_numerically_higher_earlier_tag(self) -> None:
        """Publish order wins over version magnitude."""
        strategy = MostRecentTagStrategy()
        assert str(strategy.resolve_latest(_tags("v1.9.0", "v1.2.0"))) == "1.2.0"

    def test_latest_tag_is_last_element(self) -> None:
        tags = _tags("v2.0.0", "v1.5.1")
        assert MostRecentTagStrategy().latest_tag(tags).name == "v1.5.1"

    def test_empty_raises(self) -> None:
        with pytest.raises(NoEligibleTagError):
            MostRecentTagStrategy().resolve_latest([])

    def test_malformed_tag_raises(self) -> None:
        with pytest.raises(MalformedTagError):
            MostRecentTagStrategy().resolve_latest(_tags("v1.0.0", "nightly"))

    def test_up_to_date_is_equality(self) -> None:
        strategy = MostRecentTagStrategy()
        assert strategy.is_up_to_date(parse_version("1.2.0"), parse_version("1.2"))
        assert not strategy.is_up_to_date(parse_version("1.2.0"), parse_version("1.1.0"))

    def test_newer_pin_is_not_up_to_date(self) -> None:
        """A pin above the latest published tag still counts as outdated."""
        strategy = MostRecentTagStrategy()
        assert not strategy.is_up_to_date(
            parse_version("1.9.0"), parse_version("1.2.0")
        )


class TestHighestVersionStrategy:
    def test_returns_highest_version(self) -> None:
        strategy = HighestVersionStrategy()
        assert str(strategy.resolve_latest(_tags("v1.9.0", "v1.2.0"))) == "1.9.0"

    def test_tie_goes_to_later_publish(self) -> None:
        tags = _tags("1.0.0", "v1.0.0")
        assert HighestVersionStrategy().latest_tag(tags).name == "v1.0.0"

    def test_newer_pin_is_up_to_date(self) -> None:
        strategy = HighestVersionStrategy()
        assert strategy.is_up_to_date(parse_version("2.0.0"), parse_version("1.9.0"))

    def test_empty_raises(self) -> None:
        with pytest.raises(NoEligibleTagError):
            HighestVersionStrategy().latest_tag([])
