"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from module_versions.config import RunConfig, token_credential
from module_versions.models import Dependency, ModuleSource, Requirement, Tag


class FakeTagSource:
    """Tag source returning a fixed tag list, recording calls."""

    def __init__(self, *names: str) -> None:
        self.tags = [Tag(name=name, push_order=i) for i, name in enumerate(names)]
        self.calls: list[bool] = []

    def allowed_version_tags(self, include_prerelease: bool = False) -> list[Tag]:
        self.calls.append(include_prerelease)
        return self.tags


def build_dependency(
    url: str = "https://github.com/acme/network.git",
    ref: str = "v1.0.0",
    files: tuple[str, ...] = ("main.tf",),
    unlockable: bool = True,
) -> Dependency:
    source = ModuleSource(url=url, ref=ref, raw=f"git::{url}?ref={ref}")
    return Dependency(
        name=url,
        version=ref.lstrip("v"),
        requirements=[Requirement(file=f, source=source) for f in files],
        unlockable=unlockable,
    )


class FakeTagSources:
    """Tag source registry serving fixed tags per module URL."""

    def __init__(self, tags: dict[str, tuple[str, ...]]) -> None:
        self.tags = tags

    def for_dependency(self, dependency: Dependency) -> FakeTagSource:
        return FakeTagSource(*self.tags[dependency.name])


@pytest.fixture
def fake_tags() -> type[FakeTagSource]:
    return FakeTagSource


@pytest.fixture
def fake_tag_sources() -> type[FakeTagSources]:
    return FakeTagSources


@pytest.fixture
def make_dependency() -> Callable[..., Dependency]:
    return build_dependency


@pytest.fixture
def run_config(tmp_path: Path) -> RunConfig:
    return RunConfig(
        repository="acme/infra",
        directories=("a", "b"),
        repository_credentials=(token_credential("repo-token"),),
        output_dir=tmp_path,
    )


@pytest.fixture
def main_tf() -> str:
    return """\
terraform {
  required_version = ">= 1.5"
}

module "vpc" {
  source = "git::https://github.com/acme/network.git//modules/vpc?ref=v1.0.0"

  cidr = "10.0.0.0/16"
  tags = {
    Name = "main"
  }
}

# module "old" {
#   source = "git::https://github.com/acme/legacy.git?ref=v0.1.0"
# }

module "consul" {
  source  = "hashicorp/consul/aws"
  version = "0.1.0"
}

module "local" {
  source = "./modules/local"
}

module "dns" {
  # module-versions:pin
  source = "github.com/acme/dns?ref=v2.3"
}

module "branch" {
  source = "git::https://github.com/acme/tools.git?ref=main"
}
"""
