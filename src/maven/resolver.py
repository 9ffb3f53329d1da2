"""Maven dependency resolution engine.

One resolution pass is a sequential depth-first walk: every recursive call
finishes its own transitive children before the caller moves on to the
next sibling. Network I/O is async so the pass can share an event loop
with other build stages, but there is no fan-out within a pass.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from constants import ArtifactTypes
from .coordinate import MavenCoordinate, Version
from .errors import CorruptArchiveError, IntegrityError, LockMismatchError, NotFoundError
from .extractor import extract_aar, remove_stale_extraction, verify_archive
from .lockfile import LockedArtifact, VampireLock, calculate_blake3, check_lock, read_lock, write_lock
from .models import DependencyNode, DryRunContext, ResolutionContext, ResolvedArtifact
from .pom import parse_metadata_versions, parse_pom_dependencies
from .repository import RepositoryClient

logger = logging.getLogger(__name__)


class MavenResolver:
    """Resolve Maven coordinates into verified, extracted artifacts."""

    def __init__(self, client: RepositoryClient, lock_file_path: Optional[Path] = None):
        """Initialize the resolver.

        Args:
            client: Repository client; also owns the cache directory.
            lock_file_path: Where ``vampire.lock`` lives. Without one the lock
                check is skipped and no lock is written.
        """
        self.client = client
        self.lock_file_path = Path(lock_file_path) if lock_file_path else None

    @property
    def repositories(self) -> List[str]:
        return list(self.client.repositories)

    # Lock file

    def read_lock(self) -> Optional[VampireLock]:
        if self.lock_file_path is None:
            return None
        return read_lock(self.lock_file_path)

    def write_lock(self, lock: VampireLock) -> None:
        if self.lock_file_path is None:
            return
        write_lock(self.lock_file_path, lock)

    # Resolution entry points

    async def resolve(self, coordinates: Sequence[str]) -> List[ResolvedArtifact]:
        return await self.resolve_with_lock(coordinates, force_update=False)

    async def resolve_with_lock(
        self, coordinates: Sequence[str], force_update: bool = False
    ) -> List[ResolvedArtifact]:
        """Resolve ``coordinates``, replaying the lock file when it still matches.

        Args:
            coordinates: ``group:artifact:version`` strings of the direct dependencies.
            force_update: Ignore any existing lock and re-resolve from scratch.

        Returns:
            Resolved artifacts in resolution order, one per group:artifact.
        """
        parsed = [MavenCoordinate.parse(c) for c in coordinates]

        if not force_update:
            lock = self.read_lock()
            if lock is not None:
                try:
                    check_lock(lock, coordinates)
                except LockMismatchError as exc:
                    logger.warning("%s, re-resolving dependencies", exc)
                else:
                    logger.info("Using lock file (%s)", self.lock_file_path)
                    return await self.resolve_from_lock(lock)

        logger.info("Resolving dependencies...")
        ctx = ResolutionContext(direct_keys={coord.key() for coord in parsed})
        for coord_str, coord in zip(coordinates, parsed):
            await self._resolve_recursive(coord, 0, ctx, requested=coord_str, parent=None)

        self.write_lock(VampireLock.create(ctx.lock_artifacts, self.repositories))
        return list(ctx.resolved.values())

    async def resolve_from_lock(self, lock: VampireLock) -> List[ResolvedArtifact]:
        """Fetch exactly the locked artifacts and check their BLAKE3 hashes.

        No POM or metadata is consulted.

        Raises:
            IntegrityError: when an artifact's hash differs from the lock.
        """
        artifacts: List[ResolvedArtifact] = []
        for locked in lock.artifacts:
            coord = MavenCoordinate.parse(locked.resolved)
            artifact, _ = await self.download_artifact(coord, prefer=locked.artifact_type)
            if locked.blake3 is not None:
                actual = calculate_blake3(artifact.archive_path)
                if actual != locked.blake3:
                    raise IntegrityError(
                        f"BLAKE3 checksum mismatch for {locked.resolved}: "
                        f"expected {locked.blake3}, got {actual}"
                    )
            artifacts.append(artifact)
        return artifacts

    async def resolve_dependencies_dry_run(self, coordinates: Sequence[str]) -> List[DependencyNode]:
        """Walk the graph without downloading archives.

        Returns every resolved node sorted by depth then group and artifact.
        Requests that lost to a nearer resolution stay visible as child
        edges of the node that made them.
        """
        parsed = [MavenCoordinate.parse(c) for c in coordinates]
        ctx = DryRunContext(direct_keys={coord.key() for coord in parsed})
        for coord in parsed:
            await self._dry_run_recursive(coord, 0, ctx, parent=None)

        return sorted(
            ctx.nodes.values(),
            key=lambda n: (n.depth, n.coordinate.group_id, n.coordinate.artifact_id),
        )

    # Recursion

    async def _resolve_recursive(
        self,
        coord: MavenCoordinate,
        depth: int,
        ctx: ResolutionContext,
        requested: str,
        parent: Optional[MavenCoordinate],
    ) -> None:
        if not ctx.claim(coord, depth):
            if is_debug_enabled(logger):
                logger.debug(
                    "Skipping already resolved %s",
                    coord,
                    extra=extra_context(event="decision", component="resolver", action="skip", coordinate=str(coord)),
                )
            return

        previous = ctx.resolved.get(coord.key())
        if previous is not None and previous.coordinate != coord:
            logger.info("Replacing %s with nearer %s", previous.coordinate, coord)

        artifact, source_url = await self.download_artifact(coord)
        ctx.record(
            artifact,
            LockedArtifact(
                requested=requested,
                resolved=str(coord),
                artifact_type=artifact.artifact_type,
                blake3=calculate_blake3(artifact.archive_path),
                source_url=source_url,
                transitive=depth > 0,
                parent=str(parent) if parent is not None else None,
            ),
        )

        for dep, upgraded in await self._child_dependencies(coord):
            await self._resolve_recursive(upgraded, depth + 1, ctx, requested=str(dep), parent=coord)

    async def _dry_run_recursive(
        self,
        coord: MavenCoordinate,
        depth: int,
        ctx: DryRunContext,
        parent: Optional[MavenCoordinate],
    ) -> None:
        parent_node = ctx.nodes.get(parent.key()) if parent is not None else None
        if parent_node is not None:
            parent_node.add_child(coord)

        if not ctx.claim(coord, depth):
            return

        ctx.nodes[coord.key()] = DependencyNode(
            coordinate=coord,
            depth=depth,
            is_transitive=depth > 0,
            download_urls=self.client.candidate_urls(coord),
            parent=parent,
        )

        for _, upgraded in await self._child_dependencies(coord):
            await self._dry_run_recursive(upgraded, depth + 1, ctx, parent=coord)

    async def _child_dependencies(
        self, coord: MavenCoordinate
    ) -> List[Tuple[MavenCoordinate, MavenCoordinate]]:
        """``(declared, upgraded)`` pairs for the propagating dependencies of ``coord``."""
        pom = await self.client.fetch_pom(coord)
        children = []
        for dep in parse_pom_dependencies(pom, coord):
            upgraded = dep.with_version(await self.find_latest_compatible_version(dep))
            children.append((dep, upgraded))
        return children

    # Artifacts and versions

    async def download_artifact(
        self, coord: MavenCoordinate, prefer: Optional[str] = None
    ) -> Tuple[ResolvedArtifact, Optional[str]]:
        """Fetch, verify and extract ``coord``; AAR is tried before JAR.

        Args:
            coord: Coordinate to fetch.
            prefer: Extension to try first (the locked artifact type on replay).

        Returns:
            The artifact and the URL it was downloaded from (None on cache hit).

        Raises:
            NotFoundError: when neither an AAR nor a JAR exists anywhere.
            CorruptArchiveError: when the file is not a valid zip.
        """
        extensions = [ext.value for ext in ArtifactTypes]
        if prefer in extensions:
            extensions.remove(prefer)
            extensions.insert(0, prefer)

        found: Optional[str] = None
        source_url: Optional[str] = None
        for extension in extensions:
            try:
                source_url = await self.client.fetch_archive(coord, extension)
            except NotFoundError:
                continue
            found = extension
            break

        if found is None:
            raise NotFoundError(f"Could not download {coord} - no AAR or JAR found in any repository")

        archive_path = self.client.artifact_file(coord, found)
        try:
            verify_archive(archive_path)
        except CorruptArchiveError as exc:
            archive_path.unlink()
            raise CorruptArchiveError(
                f"Downloaded artifact {coord} is corrupt or invalid ({exc})"
            ) from exc

        if found != ArtifactTypes.AAR.value:
            return ResolvedArtifact(
                coordinate=coord,
                jar_path=archive_path,
                is_aar=False,
                archive_path=archive_path,
            ), source_url

        artifact_dir = self.client.artifact_dir(coord)
        remove_stale_extraction(artifact_dir)
        contents = extract_aar(archive_path, artifact_dir)
        return ResolvedArtifact(
            coordinate=coord,
            jar_path=contents.classes_jar,
            is_aar=True,
            archive_path=archive_path,
            native_libs=tuple(contents.native_libs),
            manifest_path=contents.manifest_path,
            res_dir=contents.res_dir,
            r_txt_path=contents.r_txt_path,
            package_name=contents.package_name,
        ), source_url

    async def find_latest_compatible_version(self, coord: MavenCoordinate) -> str:
        """Highest published version compatible with ``coord.version``.

        Falls back to the requested version when it is not a strict
        ``major.minor.patch`` or when no ``maven-metadata.xml`` exists.
        """
        requested = Version.parse(coord.version)
        if requested is None:
            return coord.version

        metadata = await self.client.fetch_metadata(coord)
        if metadata is None:
            return coord.version

        best_version, best = coord.version, requested
        for candidate in parse_metadata_versions(metadata):
            parsed = Version.parse(candidate)
            if parsed is not None and parsed.is_compatible_with(requested) and parsed > best:
                best_version, best = candidate, parsed

        if best_version != coord.version:
            logger.info("Upgrading %s from %s to %s", coord.key(), coord.version, best_version)
        return best_version
