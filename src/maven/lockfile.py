"""Lock file model, persistence and validation.

The lock file (``vampire.lock``) records every artifact of a full
resolution pass with its BLAKE3 hash so later builds can replay the exact
same set without walking POMs or consulting ``maven-metadata.xml``.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from blake3 import blake3

from constants import Constants
from .coordinate import MavenCoordinate
from .errors import LockMismatchError, ParseError

logger = logging.getLogger(__name__)

_LOCK_FILE_MODE = 0o666


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


@dataclass
class LockedArtifact:
    """One resolved coordinate as recorded in the lock file."""

    requested: str
    resolved: str
    artifact_type: str
    blake3: Optional[str] = None
    source_url: Optional[str] = None
    transitive: bool = False
    parent: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LockedArtifact":
        try:
            artifact_type = str(data["artifact_type"])
            if artifact_type not in ("aar", "jar"):
                raise ParseError(f"unknown artifact_type '{artifact_type}'")
            return cls(
                requested=str(data["requested"]),
                resolved=str(data["resolved"]),
                artifact_type=artifact_type,
                blake3=data.get("blake3"),
                source_url=data.get("source_url"),
                transitive=bool(data.get("transitive", False)),
                parent=data.get("parent"),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ParseError(f"malformed lock entry {data!r}: {exc}") from exc


@dataclass
class LockMetadata:
    generated_at: str
    repositories: List[str] = field(default_factory=list)


@dataclass
class VampireLock:
    """The persisted reproducibility record."""

    artifacts: List[LockedArtifact]
    metadata: LockMetadata
    version: str = Constants.LOCK_SCHEMA_VERSION

    @classmethod
    def create(cls, artifacts: Iterable[LockedArtifact], repositories: Iterable[str]) -> "VampireLock":
        """Build a lock stamped with the current UTC time."""
        return cls(
            artifacts=list(artifacts),
            metadata=LockMetadata(
                generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
                repositories=list(repositories),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "artifacts": [asdict(artifact) for artifact in self.artifacts],
            "metadata": asdict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "VampireLock":
        if not isinstance(data, dict):
            raise ParseError("lock file top level must be an object")
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict) or not isinstance(data.get("artifacts", []), list):
            raise ParseError("lock file has malformed 'metadata' or 'artifacts'")
        return cls(
            version=str(data.get("version", "")),
            artifacts=[LockedArtifact.from_dict(item) for item in data.get("artifacts", [])],
            metadata=LockMetadata(
                generated_at=str(metadata.get("generated_at", "")),
                repositories=[str(r) for r in metadata.get("repositories", [])],
            ),
        )

    def direct_keys(self) -> set:
        """``group:artifact`` keys of the non-transitive rows."""
        return {MavenCoordinate.parse(a.requested).key() for a in self.artifacts if not a.transitive}


def read_lock(path: Path) -> Optional[VampireLock]:
    """Load the lock at ``path``; None when the file does not exist.

    Raises:
        ParseError: if the file exists but cannot be decoded.
    """
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse lock file {path}: {exc}") from exc
    lock = VampireLock.from_dict(data)
    if lock.version != Constants.LOCK_SCHEMA_VERSION:
        raise ParseError(
            f"Unsupported lock file version '{lock.version}' in {path} "
            f"(expected '{Constants.LOCK_SCHEMA_VERSION}')"
        )
    return lock


def write_lock(path: Path, lock: VampireLock) -> None:
    """Serialize ``lock`` to ``path`` atomically, with umask-default permissions."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(lock.to_dict(), fh, indent=2)
            fh.write("\n")
        os.chmod(tmp_name, _LOCK_FILE_MODE & ~_current_umask())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    logger.info("Lock file written: %s", path)


def check_lock(lock: VampireLock, requested_coords: Iterable[str]) -> None:
    """Ensure the lock's direct dependencies match the request by ``group:artifact``.

    Versions are ignored: bumping a version in the manifest does not by
    itself invalidate the lock.

    Raises:
        LockMismatchError: when the key sets differ.
        CoordinateFormatError: when a request or lock row is malformed.
    """
    requested = {MavenCoordinate.parse(c).key() for c in requested_coords}
    locked = lock.direct_keys()
    if requested != locked:
        raise LockMismatchError(missing=requested - locked, unexpected=locked - requested)


def validate_lock(lock: VampireLock, requested_coords: Iterable[str]) -> bool:
    """Boolean form of :func:`check_lock`."""
    try:
        check_lock(lock, requested_coords)
    except LockMismatchError:
        return False
    return True


def calculate_blake3(path: Path) -> str:
    """Hex BLAKE3 digest of a file's contents."""
    hasher = blake3()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(Constants.DOWNLOAD_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()
