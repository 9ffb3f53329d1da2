"""Dependency declarations read from the project's TOML manifest."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from constants import Constants
from .coordinate import MavenCoordinate
from .errors import CoordinateFormatError, ParseError

logger = logging.getLogger(__name__)


def flatten_declarations(table: Dict[str, Any]) -> List[str]:
    """Turn ``{"group:artifact": "1.0.0" | {"version": "1.0.0"}}`` into sorted ``g:a:v`` strings.

    Raises:
        CoordinateFormatError: for a malformed key or a missing version.
    """
    coordinates: List[str] = []
    for key, spec in table.items():
        if isinstance(spec, dict):
            version = spec.get("version")
        else:
            version = spec
        if not isinstance(version, str) or not version.strip():
            raise CoordinateFormatError(f"Dependency '{key}' has no version")
        coordinates.append(str(MavenCoordinate.parse(f"{key}:{version.strip()}")))
    return sorted(coordinates)


def load_declarations(
    manifest_path: Path, table_path: Sequence[str] = Constants.MANIFEST_DEPENDENCY_TABLE
) -> List[str]:
    """Read and flatten the dependency table of a TOML manifest.

    A manifest without the table declares no dependencies.

    Raises:
        ParseError: if the file is not valid TOML.
    """
    try:
        import tomllib as toml  # type: ignore
    except ImportError:
        import tomli as toml  # type: ignore

    with open(manifest_path, "rb") as fh:
        try:
            data = toml.load(fh)
        except toml.TOMLDecodeError as exc:
            raise ParseError(f"Failed to parse {manifest_path}: {exc}") from exc

    table: Any = data
    for part in table_path:
        if not isinstance(table, dict) or part not in table:
            logger.debug("No [%s] table in %s", ".".join(table_path), manifest_path)
            return []
        table = table[part]
    if not isinstance(table, dict):
        raise ParseError(f"[{'.'.join(table_path)}] in {manifest_path} is not a table")
    return flatten_declarations(table)
