"""Async client for Maven repositories with an on-disk artifact cache."""
from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import aiohttp

from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from constants import ArtifactTypes, Constants
from .coordinate import MavenCoordinate
from .errors import NotFoundError, TransportError
from .extractor import is_valid_archive

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, Optional[int]], None]


class RepositoryClient:
    """Fetch artifacts, POMs and version listings from ordered repositories.

    Repositories are tried in the configured order. A 404 moves on to the
    next repository; any other failure raises :class:`TransportError`
    immediately. Artifacts and POMs are cached under
    ``{cache_dir}/{group}/{artifact}/{version}/``.
    """

    def __init__(
        self,
        cache_dir: Path,
        repositories: Optional[Sequence[str]] = None,
        timeout: int = Constants.REQUEST_TIMEOUT,
        progress: Optional[ProgressCallback] = None,
    ):
        """Initialize the client.

        Args:
            cache_dir: Root of the artifact cache.
            repositories: Base URLs in priority order; defaults to Google then Maven Central.
            timeout: Overall per-request timeout in seconds.
            progress: Optional ``(label, downloaded, total)`` hook for byte-level progress.
        """
        self.cache_dir = Path(cache_dir)
        self.repositories: List[str] = [
            url.rstrip("/") for url in (repositories or Constants.DEFAULT_REPOSITORIES)
        ]
        self.progress = progress
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None
        self._metadata_cache: Dict[str, Optional[bytes]] = {}

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"User-Agent": Constants.USER_AGENT},
            )

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "RepositoryClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    def artifact_dir(self, coord: MavenCoordinate) -> Path:
        return self.cache_dir / coord.group_id / coord.artifact_id / coord.version

    def artifact_file(self, coord: MavenCoordinate, extension: str) -> Path:
        return self.artifact_dir(coord) / coord.file_name(extension)

    def candidate_urls(self, coord: MavenCoordinate) -> List[str]:
        """Every URL an archive for ``coord`` could be fetched from, in try order."""
        return [
            f"{repo}/{coord.to_path(ext.value)}"
            for repo in self.repositories
            for ext in ArtifactTypes
        ]

    async def _request(self, url: str, label: str, dest: Optional[Path] = None) -> bytes:
        """GET ``url``; stream to ``dest`` when given, else return the body.

        Raises:
            NotFoundError: on HTTP 404.
            TransportError: on any other non-2xx status or network failure.
        """
        if self._session is None:
            await self.start()
        assert self._session is not None

        target = safe_url(url)
        with Timer() as timer:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(event="http_request", component="repository", action="GET", target=target),
                )
            try:
                async with self._session.get(url) as response:
                    if response.status == 404:
                        raise NotFoundError(f"{target} not found")
                    if response.status >= 400:
                        raise TransportError(f"GET {target} failed with HTTP {response.status}")
                    if dest is None:
                        body = await response.read()
                    else:
                        await self._stream_to_file(response, dest, label)
                        body = b""
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                raise TransportError(f"GET {target} failed: {exc or type(exc).__name__}") from exc

            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response ok",
                    extra=extra_context(
                        event="http_response",
                        component="repository",
                        action="GET",
                        outcome="success",
                        status_code=response.status,
                        duration_ms=timer.duration_ms(),
                        target=target,
                    ),
                )
        return body

    async def _stream_to_file(self, response: aiohttp.ClientResponse, dest: Path, label: str) -> None:
        """Write the body to ``dest`` via a ``.part`` file renamed into place."""
        dest.parent.mkdir(parents=True, exist_ok=True)
        part = dest.with_name(dest.name + ".part")
        total = response.content_length
        downloaded = 0
        try:
            with open(part, "wb") as fh:
                async for chunk in response.content.iter_chunked(Constants.DOWNLOAD_CHUNK_SIZE):
                    fh.write(chunk)
                    downloaded += len(chunk)
                    if self.progress is not None:
                        self.progress(label, downloaded, total)
            os.replace(part, dest)
        finally:
            if part.exists():
                part.unlink()

    async def fetch_archive(self, coord: MavenCoordinate, extension: str) -> Optional[str]:
        """Make ``coord``'s ``.{extension}`` available in the cache.

        A cached file that opens as a zip is reused and None is returned
        (the download URL is unknown). A corrupt cached file is deleted and
        downloaded again.

        Returns:
            The URL the file was downloaded from, or None for a cache hit.

        Raises:
            NotFoundError: when no repository has the file.
            TransportError: on any other network failure.
        """
        output_file = self.artifact_file(coord, extension)
        if output_file.exists():
            if is_valid_archive(output_file):
                logger.debug("Using cached %s: %s", extension, output_file)
                return None
            logger.warning("Cached %s is corrupt, re-downloading: %s", extension, output_file)
            output_file.unlink()

        path = coord.to_path(extension)
        for repo in self.repositories:
            url = f"{repo}/{path}"
            logger.debug("Trying %s: %s", extension, safe_url(url))
            try:
                await self._request(url, label=coord.key(), dest=output_file)
            except NotFoundError:
                continue
            logger.info("Downloaded %s (%s)", coord, extension)
            return url

        raise NotFoundError(f"{coord} has no {extension} in any repository")

    async def fetch_pom(self, coord: MavenCoordinate) -> bytes:
        """Return ``coord``'s POM as raw bytes, from the cache when present.

        The bytes are left undecoded so the XML parser can honour the
        document's declared encoding.

        Raises:
            NotFoundError: when no repository has the POM.
            TransportError: on any other network failure.
        """
        pom_file = self.artifact_file(coord, "pom")
        if pom_file.exists():
            return pom_file.read_bytes()

        path = coord.to_path("pom")
        for repo in self.repositories:
            url = f"{repo}/{path}"
            logger.debug("Trying POM: %s", safe_url(url))
            try:
                await self._request(url, label=f"{coord.key()} (pom)", dest=pom_file)
            except NotFoundError:
                continue
            return pom_file.read_bytes()

        raise NotFoundError(f"Could not download POM for {coord} from any repository")

    async def fetch_metadata(self, coord: MavenCoordinate) -> Optional[bytes]:
        """Return ``maven-metadata.xml`` for ``coord``'s group:artifact, or None if absent everywhere.

        Raises:
            TransportError: on a network failure other than not-found.
        """
        key = coord.key()
        if key in self._metadata_cache:
            return self._metadata_cache[key]

        found: Optional[bytes] = None
        for repo in self.repositories:
            url = f"{repo}/{coord.metadata_path()}"
            try:
                body = await self._request(url, label=f"{key} (metadata)")
            except NotFoundError:
                continue
            found = body
            break

        self._metadata_cache[key] = found
        return found
