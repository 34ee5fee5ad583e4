"""Terraform configuration parsing.

Extracts ``module`` blocks with git sources from ``*.tf`` files and groups
them into Dependency records. Only the subset of HCL needed to find a
module's ``source`` argument is understood: block headers, braces, strings
and comments.

Supported source forms:
    git::https://example.com/network.git//modules/vpc?ref=v1.2.0
    git::ssh://git@example.com/network.git?ref=v1.2.0
    git@github.com:org/network.git?ref=v1.2.0
    github.com/org/network?ref=v1.2.0

Registry, local-path and archive sources are ignored, as are git sources
whose ref is not a version (branches, commit SHAs).
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from urllib.parse import parse_qs

from .models import Dependency, DependencyFile, ModuleSource, Requirement
from .versions import extract_version, parse_version

MODULE_HEADER = re.compile(r'^[ \t]*module[ \t]+"(?P<label>[^"]+)"[ \t]*\{', re.MULTILINE)
SOURCE_ARGUMENT = re.compile(r'^[ \t]*source[ \t]*=[ \t]*"(?P<source>[^"]*)"', re.MULTILINE)
PIN_COMMENT = re.compile(r"(?:#|//)[ \t]*module-versions:[ \t]*pin\b")

# Hosts Terraform accepts without a git:: prefix
SHORTHAND_HOSTS = ("github.com/", "bitbucket.org/")


def is_terraform_file(name: str) -> bool:
    return name.endswith(".tf")


def parse_git_source(raw: str) -> ModuleSource | None:
    """Parse a module source string, returning None for non-git sources.

    Examples:
        "git::https://example.com/vpc.git?ref=v1.0.0"
            → url="https://example.com/vpc.git", ref="v1.0.0"
        "github.com/org/repo//modules/x?ref=v2"
            → url="https://github.com/org/repo", subdirectory="modules/x", ref="v2"
        "hashicorp/consul/aws" → None
    """
    source = raw.strip()
    if source.startswith("git::"):
        url = source[len("git::") :]
    elif source.startswith(SHORTHAND_HOSTS) or source.startswith("git@"):
        url = source
    else:
        return None

    if not url.startswith("git@") and "://" not in url:
        url = "https://" + url

    url, _, query = url.partition("?")
    ref = parse_qs(query).get("ref", [None])[0]

    # "//" separates the repository from a subdirectory, except after a scheme
    url, *subdir = re.split(r"(?<!:)//", url, maxsplit=1)
    return ModuleSource(
        url=url,
        ref=ref,
        subdirectory=subdir[0] if subdir else None,
        raw=raw,
    )


def _mask_comments(text: str) -> str:
    """Replace comments with spaces, keeping offsets and string literals intact."""
    out = list(text)
    i, n = 0, len(text)
    while i < n:
        c = text[i]
        if c == '"':
            i += 1
            while i < n and text[i] != '"':
                i += 2 if text[i] == "\\" else 1
            i += 1
        elif c == "#" or text.startswith("//", i):
            while i < n and text[i] != "\n":
                out[i] = " "
                i += 1
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = n if end == -1 else end + 2
            for j in range(i, end):
                if out[j] != "\n":
                    out[j] = " "
            i = end
        else:
            i += 1
    return "".join(out)


def _block_end(text: str, open_brace: int) -> int:
    """Return the index just past the brace matching ``text[open_brace]``."""
    depth = 0
    i, n = open_brace, len(text)
    while i < n:
        c = text[i]
        if c == '"':
            i += 1
            while i < n and text[i] != '"':
                i += 2 if text[i] == "\\" else 1
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return n


def iter_module_blocks(content: str) -> Iterable[tuple[str, str, str]]:
    """Yield (label, masked body, raw body) for every module block."""
    masked = _mask_comments(content)
    for match in MODULE_HEADER.finditer(masked):
        start = match.end() - 1
        end = _block_end(masked, start)
        yield match.group("label"), masked[start:end], content[start:end]


def _pinned_version(source: ModuleSource) -> str | None:
    if source.ref is None:
        return None
    version = extract_version(source.ref)
    if version is None:
        return None
    try:
        parse_version(version)
    except ValueError:
        return None
    return version


def parse_dependency_files(files: Iterable[DependencyFile]) -> list[Dependency]:
    """Parse Terraform files into git module dependencies.

    Declarations of the same source URL pinned to the same version are
    merged into one Dependency with a requirement per declaration, in file
    order. A ``# module-versions:pin`` comment inside any of the module
    blocks makes the whole dependency non-unlockable.

    Args:
        files: Fetched files; non-``.tf`` files are ignored.

    Returns:
        Dependencies in the order they were first declared.
    """
    grouped: dict[tuple[str, str], Dependency] = {}

    for file in files:
        if not is_terraform_file(file.name):
            continue
        for _label, body, raw_body in iter_module_blocks(file.content):
            match = SOURCE_ARGUMENT.search(body)
            if match is None:
                continue
            source = parse_git_source(match.group("source"))
            if source is None:
                continue
            version = _pinned_version(source)
            if version is None:
                continue

            requirement = Requirement(file=file.name, source=source)
            pinned = PIN_COMMENT.search(raw_body) is not None
            key = (source.url, version)
            if key in grouped:
                dep = grouped[key]
                dep.requirements.append(requirement)
                dep.unlockable = dep.unlockable and not pinned
            else:
                grouped[key] = Dependency(
                    name=source.url,
                    version=version,
                    requirements=[requirement],
                    unlockable=not pinned,
                )

    return list(grouped.values())
