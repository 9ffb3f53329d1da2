"""Maven dependency resolver for Android builds.

Resolves ``group:artifact:version`` coordinates transitively against Maven
repositories, extracts AARs into a local cache and records the result in a
BLAKE3-verified lock file.
"""

from .coordinate import MavenCoordinate, Version
from .errors import (
    CoordinateFormatError,
    CorruptArchiveError,
    IntegrityError,
    LockMismatchError,
    NotFoundError,
    ParseError,
    ResolutionError,
    TransportError,
)
from .lockfile import LockedArtifact, LockMetadata, VampireLock
from .models import Conflict, DependencyNode, ResolvedArtifact
from .repository import RepositoryClient
from .resolver import MavenResolver

__all__ = [
    "MavenCoordinate",
    "Version",
    "ResolutionError",
    "CoordinateFormatError",
    "NotFoundError",
    "TransportError",
    "CorruptArchiveError",
    "IntegrityError",
    "ParseError",
    "LockMismatchError",
    "LockedArtifact",
    "LockMetadata",
    "VampireLock",
    "Conflict",
    "DependencyNode",
    "ResolvedArtifact",
    "RepositoryClient",
    "MavenResolver",
]
