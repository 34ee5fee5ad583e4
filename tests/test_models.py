"""Tests for module_versions.models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from module_versions.models import (
    Credential,
    Dependency,
    ModuleSource,
    Requirement,
    Tag,
    UnlockLevel,
    UpdateRecord,
)


class TestUnlockLevel:
    def test_rank_orders_cheapest_first(self) -> None:
        assert UnlockLevel.NONE.rank < UnlockLevel.OWN.rank < UnlockLevel.ALL.rank

    def test_values(self) -> None:
        assert [u.value for u in UnlockLevel] == ["none", "own", "all"]


class TestTag:
    def test_is_immutable(self) -> None:
        tag = Tag(name="v1.0.0", push_order=0)
        with pytest.raises(ValidationError):
            tag.name = "v2.0.0"


class TestCredential:
    def test_password_hidden_from_repr(self) -> None:
        cred = Credential(host="github.com", username="x-access-token", password="s3cret")
        assert "s3cret" not in repr(cred)
        assert cred.type == "git_source"


class TestDependency:
    def test_requires_a_requirement(self) -> None:
        with pytest.raises(ValidationError):
            Dependency(name="x", version="1.0.0", requirements=[])

    def test_top_level(self) -> None:
        source = ModuleSource(url="https://example.com/x.git", ref="v1", raw="git::x")
        dep = Dependency(
            name="x",
            version="1",
            requirements=[Requirement(file="main.tf", source=source)],
        )
        assert dep.top_level
        assert dep.unlockable
        assert dep.requirements[0].unlock == UnlockLevel.NONE


class TestUpdateRecord:
    def test_line(self) -> None:
        record = UpdateRecord(
            directory="infra",
            file="main.tf",
            module_url="https://github.com/acme/network.git",
            previous_version="1.0.0",
            new_version="1.1.0",
        )
        assert record.line() == (
            "File infra/main.tf needs module https://github.com/acme/network.git "
            "updated from 1.0.0 to 1.1.0"
        )

    def test_root_directory_has_single_slash(self) -> None:
        record = UpdateRecord(
            directory="/",
            file="main.tf",
            module_url="u",
            previous_version="1",
            new_version="2",
        )
        assert record.line().startswith("File /main.tf ")

    def test_equal_records_hash_equal(self) -> None:
        kwargs = dict(
            directory="a", file="f.tf", module_url="u", previous_version="1", new_version="2"
        )
        assert len({UpdateRecord(**kwargs), UpdateRecord(**kwargs)}) == 1
