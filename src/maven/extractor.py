"""AAR extraction into the artifact cache."""
from __future__ import annotations

import logging
import os
import shutil
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from .errors import CorruptArchiveError

logger = logging.getLogger(__name__)

_EMPTY_JAR_MANIFEST = b"Manifest-Version: 1.0\n"
_FIXED_ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


@dataclass
class AarContents:
    """Paths produced by :func:`extract_aar`."""

    classes_jar: Path
    native_libs: List[Tuple[str, Path]] = field(default_factory=list)
    manifest_path: Optional[Path] = None
    res_dir: Optional[Path] = None
    r_txt_path: Optional[Path] = None
    package_name: Optional[str] = None
    synthesized_classes_jar: bool = False


def verify_archive(path: Path) -> None:
    """Ensure ``path`` opens as a zip container.

    Raises:
        CorruptArchiveError: when it does not.
    """
    try:
        with zipfile.ZipFile(path) as archive:
            archive.infolist()
    except (zipfile.BadZipFile, OSError) as exc:
        raise CorruptArchiveError(f"{path} is corrupt or not a zip archive: {exc}") from exc


def is_valid_archive(path: Path) -> bool:
    try:
        verify_archive(path)
    except CorruptArchiveError:
        return False
    return True


def write_empty_jar(path: Path) -> None:
    """Write a minimal valid jar holding only ``META-INF/MANIFEST.MF``."""
    info = zipfile.ZipInfo("META-INF/MANIFEST.MF", date_time=_FIXED_ZIP_TIMESTAMP)
    info.compress_type = zipfile.ZIP_STORED
    with zipfile.ZipFile(path, "w") as jar:
        jar.writestr(info, _EMPTY_JAR_MANIFEST)


def parse_manifest_package(manifest: bytes) -> Optional[str]:
    """The ``package`` attribute of an AndroidManifest.xml, or None.

    Binary (compiled) manifests and malformed XML yield None.
    """
    try:
        root = ET.fromstring(manifest)
    except ET.ParseError:
        return None
    return root.get("package") or None


def _safe_target(output_dir: Path, name: str) -> Optional[Path]:
    """Destination for ``name`` under ``output_dir``; None if it escapes it."""
    target = (output_dir / name).resolve()
    root = output_dir.resolve()
    if target != root and root not in target.parents:
        return None
    return output_dir / name


def _copy_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with archive.open(info) as src, open(target, "wb") as dst:
        shutil.copyfileobj(src, dst)


def extract_aar(aar_path: Path, output_dir: Path) -> AarContents:
    """Unpack the well-known parts of an AAR into ``output_dir``.

    ``classes.jar``, ``AndroidManifest.xml`` and ``R.txt`` go to the root,
    ``res/...`` is mirrored under ``res/`` and ``jni/<arch>/*.so`` under
    ``jni/<arch>/``. Anything else is ignored. When the AAR carries no
    ``classes.jar`` an empty jar is written so classpath consumers always
    find a file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    contents = AarContents(classes_jar=output_dir / "classes.jar")
    found_classes_jar = False

    try:
        archive = zipfile.ZipFile(aar_path)
    except (zipfile.BadZipFile, OSError) as exc:
        raise CorruptArchiveError(f"Failed to read AAR as zip archive {aar_path}: {exc}") from exc

    with archive:
        for info in archive.infolist():
            name = info.filename
            if info.is_dir():
                continue

            if name == "classes.jar":
                _copy_entry(archive, info, contents.classes_jar)
                found_classes_jar = True
            elif name == "AndroidManifest.xml":
                data = archive.read(info)
                contents.manifest_path = output_dir / "AndroidManifest.xml"
                contents.manifest_path.write_bytes(data)
                contents.package_name = parse_manifest_package(data)
                if contents.package_name is None:
                    logger.debug("No package attribute readable in manifest of %s", aar_path)
            elif name == "R.txt":
                contents.r_txt_path = output_dir / "R.txt"
                _copy_entry(archive, info, contents.r_txt_path)
            elif name.startswith("res/"):
                target = _safe_target(output_dir, name)
                if target is None:
                    logger.warning("Ignoring AAR entry outside extraction root: %s", name)
                    continue
                contents.res_dir = output_dir / "res"
                _copy_entry(archive, info, target)
            elif name.startswith("jni/") and name.endswith(".so"):
                parts = name.split("/")
                if len(parts) != 3 or parts[1] in ("", ".", ".."):
                    continue
                arch, lib_name = parts[1], parts[2]
                lib_path = output_dir / "jni" / arch / lib_name
                _copy_entry(archive, info, lib_path)
                contents.native_libs.append((arch, lib_path))
                if is_debug_enabled(logger):
                    logger.debug(
                        "Extracted native library %s -> %s",
                        name,
                        lib_path,
                        extra=extra_context(event="extract", component="extractor", action="jni", target=arch),
                    )

    if not found_classes_jar:
        logger.debug("No classes.jar in AAR %s, creating empty JAR", aar_path)
        write_empty_jar(contents.classes_jar)
        contents.synthesized_classes_jar = True

    if contents.res_dir is not None:
        contents.res_dir.mkdir(parents=True, exist_ok=True)
    return contents


def remove_stale_extraction(output_dir: Path) -> None:
    """Drop a previous extraction's res/ and jni/ trees so removed entries do not linger."""
    for sub in ("res", "jni"):
        target = output_dir / sub
        if target.is_dir():
            shutil.rmtree(target)
    for name in ("R.txt", "AndroidManifest.xml"):
        path = output_dir / name
        if path.exists():
            os.unlink(path)
