"""In-process Maven repository used by client and resolver tests."""

import io
import zipfile
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Sequence, Set, Tuple

from aiohttp import web
from aiohttp.test_utils import TestServer

REPOSITORIES = ("google", "central")


def make_zip(entries: Dict[str, bytes]) -> bytes:
    """Zip ``entries`` (name -> bytes) in memory."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


def make_jar(name: str = "Foo") -> bytes:
    return make_zip({f"com/example/{name}.class": b"\xca\xfe\xba\xbe"})


def make_aar(package: str = "com.example.lib", extra: Optional[Dict[str, bytes]] = None) -> bytes:
    entries = {
        "classes.jar": make_jar(),
        "AndroidManifest.xml": f'<manifest package="{package}"/>'.encode(),
    }
    entries.update(extra or {})
    return make_zip(entries)


def make_pom(coord: str, deps: Sequence[Tuple[str, str]] = ()) -> str:
    """POM for ``coord`` declaring ``deps`` as (g:a:v, scope) pairs."""
    group, artifact, version = coord.split(":")
    blocks = []
    for dep, scope in deps:
        g, a, v = dep.split(":")
        blocks.append(
            f"    <dependency><groupId>{g}</groupId><artifactId>{a}</artifactId>"
            f"<version>{v}</version><scope>{scope}</scope></dependency>"
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<project xmlns="http://maven.apache.org/POM/4.0.0">\n'
        f"  <groupId>{group}</groupId>\n  <artifactId>{artifact}</artifactId>\n"
        f"  <version>{version}</version>\n"
        "  <dependencies>\n" + "\n".join(blocks) + "\n  </dependencies>\n"
        "</project>\n"
    )


def make_metadata(versions: Sequence[str]) -> str:
    items = "".join(f"<version>{v}</version>" for v in versions)
    return f"<metadata><versioning><versions>{items}</versions></versioning></metadata>"


def layout_path(coord: str, extension: str) -> str:
    group, artifact, version = coord.split(":")
    return f"{group.replace('.', '/')}/{artifact}/{version}/{artifact}-{version}.{extension}"


class FakeRepository:
    """Serves files registered per repository name; everything else is a 404."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.errors: Set[str] = set()
        self.requests: List[str] = []

    def add(self, path: str, body, repo: str = "central") -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.files[f"{repo}/{path}"] = body

    def add_artifact(
        self,
        coord: str,
        deps: Sequence[Tuple[str, str]] = (),
        extension: str = "jar",
        body: Optional[bytes] = None,
        repo: str = "central",
    ) -> None:
        """Publish an archive and its POM."""
        if body is None:
            body = make_aar() if extension == "aar" else make_jar()
        self.add(layout_path(coord, extension), body, repo)
        self.add(layout_path(coord, "pom"), make_pom(coord, deps), repo)

    def add_metadata(self, key: str, versions: Sequence[str], repo: str = "central") -> None:
        group, artifact = key.split(":")
        self.add(f"{group.replace('.', '/')}/{artifact}/maven-metadata.xml", make_metadata(versions), repo)

    def requested(self, suffix: str) -> List[str]:
        return [r for r in self.requests if r.endswith(suffix)]

    async def _handle(self, request: web.Request) -> web.Response:
        path = request.match_info["tail"]
        self.requests.append(path)
        if path in self.errors:
            return web.Response(status=500, text="boom")
        body = self.files.get(path)
        if body is None:
            return web.Response(status=404, text="not found")
        return web.Response(body=body)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/{tail:.*}", self._handle)
        return app


@asynccontextmanager
async def serve(repository: FakeRepository):
    """Run ``repository`` on localhost; yields the base URLs in priority order."""
    server = TestServer(repository.app())
    await server.start_server()
    try:
        root = str(server.make_url("/")).rstrip("/")
        yield [f"{root}/{name}" for name in REPOSITORIES]
    finally:
        await server.close()
