"""TOML configuration file reading.

Settings live in a [tool.module-versions] table, so they can sit in a
dedicated module-versions.toml or alongside other tools' settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError

from .errors import ConfigurationError

TOOL_TABLE = "module-versions"


def load_toml(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a TOML file.

    Raises:
        ConfigurationError: If the file cannot be read or is not valid TOML.
    """
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigurationError(f"Cannot read {path}: {exc}") from exc
    try:
        return tomlkit.parse(text)
    except ParseError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc


def get_tool_settings(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Extract the [tool.module-versions] table as plain Python values.

    Keys are normalized to use underscores (``output-dir`` → ``output_dir``).
    Returns an empty dict if the table is absent.
    """
    table = doc.get("tool", {}).get(TOOL_TABLE)
    if not table:
        return {}
    return {key.replace("-", "_"): value for key, value in table.unwrap().items()}
