"""Maven coordinates and the strict three-part version used for upgrades."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from constants import Constants
from .errors import CoordinateFormatError


@dataclass(frozen=True, order=True)
class MavenCoordinate:
    """A ``group:artifact:version`` identity.

    Ordering is lexicographic on the fields so iteration is deterministic;
    it is not semantic version order.
    """

    group_id: str
    artifact_id: str
    version: str

    @classmethod
    def parse(cls, coord: str) -> "MavenCoordinate":
        """Parse ``group:artifact:version``.

        Raises:
            CoordinateFormatError: unless there are exactly three non-empty segments.
        """
        parts = coord.split(":")
        if len(parts) != 3 or not all(parts):
            raise CoordinateFormatError(
                f"Invalid Maven coordinate '{coord}'. Expected format: groupId:artifactId:version"
            )
        return cls(group_id=parts[0], artifact_id=parts[1], version=parts[2])

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    def key(self) -> str:
        """Version-independent identity used for conflict dedup."""
        return f"{self.group_id}:{self.artifact_id}"

    def group_path(self) -> str:
        return self.group_id.replace(".", "/")

    def file_name(self, extension: str) -> str:
        return f"{self.artifact_id}-{self.version}.{extension}"

    def to_path(self, extension: str) -> str:
        """Repository layout path, e.g. ``org/example/foo/1.0.0/foo-1.0.0.jar``."""
        return f"{self.group_path()}/{self.artifact_id}/{self.version}/{self.file_name(extension)}"

    def metadata_path(self) -> str:
        return f"{self.group_path()}/{self.artifact_id}/{Constants.METADATA_FILE}"

    def with_version(self, version: str) -> "MavenCoordinate":
        return replace(self, version=version)


@dataclass(frozen=True, order=True)
class Version:
    """A strict ``major.minor.patch`` version."""

    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, version_str: str) -> Optional["Version"]:
        """Return the parsed version, or None for ranges, qualifiers or 2-part versions."""
        parts = version_str.split(".")
        if len(parts) != 3:
            return None
        if not all(part.isascii() and part.isdigit() for part in parts):
            return None
        return cls(int(parts[0]), int(parts[1]), int(parts[2]))

    def is_compatible_with(self, requested: "Version") -> bool:
        """Same major, and at least the requested minor.patch."""
        return self.major == requested.major and (
            self.minor > requested.minor
            or (self.minor == requested.minor and self.patch >= requested.patch)
        )

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"
