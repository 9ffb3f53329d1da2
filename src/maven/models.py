"""Data models produced by a resolution pass."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from .coordinate import MavenCoordinate
from .lockfile import LockedArtifact


@dataclass(frozen=True)
class ResolvedArtifact:
    """An artifact downloaded, verified and (for AARs) extracted into the cache.

    Created once per resolution pass and never mutated afterwards; packaging
    steps read ``jar_path`` for the classpath and the AAR extras for
    resources, manifests and native libraries.
    """

    coordinate: MavenCoordinate
    jar_path: Path
    is_aar: bool
    archive_path: Path
    native_libs: Tuple[Tuple[str, Path], ...] = ()
    manifest_path: Optional[Path] = None
    res_dir: Optional[Path] = None
    r_txt_path: Optional[Path] = None
    package_name: Optional[str] = None

    @property
    def artifact_type(self) -> str:
        return "aar" if self.is_aar else "jar"

    def to_dict(self) -> Dict[str, object]:
        """JSON-friendly view for exports."""
        return {
            "coordinate": str(self.coordinate),
            "artifact_type": self.artifact_type,
            "archive_path": str(self.archive_path),
            "jar_path": str(self.jar_path),
            "native_libs": [[arch, str(path)] for arch, path in self.native_libs],
            "manifest_path": str(self.manifest_path) if self.manifest_path else None,
            "res_dir": str(self.res_dir) if self.res_dir else None,
            "r_txt_path": str(self.r_txt_path) if self.r_txt_path else None,
            "package_name": self.package_name,
        }


@dataclass
class DependencyNode:
    """One artifact in the dry-run tree.

    ``children`` keeps every coordinate the node's POM asked for, including
    requests that lost to an earlier resolution of the same group:artifact.
    """

    coordinate: MavenCoordinate
    depth: int
    is_transitive: bool
    download_urls: List[str] = field(default_factory=list)
    parent: Optional[MavenCoordinate] = None
    children: List[MavenCoordinate] = field(default_factory=list)

    def add_child(self, child: MavenCoordinate) -> None:
        if child not in self.children:
            self.children.append(child)


@dataclass
class _DepthClaims:
    """Nearest-wins bookkeeping shared by resolution and dry-run walks.

    Each ``group:artifact`` key remembers the depth it was claimed at. A
    later request only wins when it is strictly shallower; direct
    dependencies are reserved up front so no transitive request displaces
    them.
    """

    direct_keys: Set[str] = field(default_factory=set)
    depths: Dict[str, int] = field(default_factory=dict)

    def claim(self, coord: MavenCoordinate, depth: int) -> bool:
        """Record ``coord`` at ``depth``; False when it must be skipped."""
        key = coord.key()
        if depth > 0 and key in self.direct_keys:
            return False
        claimed = self.depths.get(key)
        if claimed is not None and claimed <= depth:
            return False
        self.depths[key] = depth
        return True


@dataclass
class ResolutionContext(_DepthClaims):
    """Mutable state of one full resolution pass, owned by the top-level call."""

    resolved: Dict[str, ResolvedArtifact] = field(default_factory=dict)
    lock_rows: Dict[str, LockedArtifact] = field(default_factory=dict)

    def record(self, artifact: ResolvedArtifact, locked: LockedArtifact) -> None:
        """Store the winner for the artifact's key, replacing a deeper earlier one."""
        key = artifact.coordinate.key()
        self.resolved[key] = artifact
        self.lock_rows[key] = locked

    @property
    def lock_artifacts(self) -> List[LockedArtifact]:
        return list(self.lock_rows.values())


@dataclass
class DryRunContext(_DepthClaims):
    """Mutable state of a dry-run walk."""

    nodes: Dict[str, DependencyNode] = field(default_factory=dict)


@dataclass(frozen=True)
class Conflict:
    """A group:artifact requested at versions other than the resolved one."""

    key: str
    resolved: str
    requested: Tuple[str, ...]
