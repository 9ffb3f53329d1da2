"""POM and maven-metadata.xml parsing."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List, Optional, Union

from constants import Constants
from .coordinate import MavenCoordinate
from .errors import ParseError

logger = logging.getLogger(__name__)

_PLACEHOLDER_PREFIXES = ("${project.", "${project/", "${pom.")


@dataclass(frozen=True)
class PomDependency:
    """A ``<dependency>`` entry after placeholder substitution."""

    coordinate: MavenCoordinate
    scope: str

    @property
    def propagates(self) -> bool:
        return self.scope in Constants.PROPAGATED_SCOPES


def _local(tag: str) -> str:
    """Element name without its XML namespace."""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _text(element: ET.Element, name: str) -> Optional[str]:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def resolve_property(value: str, current: MavenCoordinate) -> str:
    """Substitute ``${project.X}``, ``${project/X}`` and ``${pom.X}`` placeholders.

    Only groupId, artifactId and version of the declaring artifact are
    known; properties from ``<properties>`` are not resolved.
    """
    fields = {
        "groupId": current.group_id,
        "artifactId": current.artifact_id,
        "version": current.version,
    }
    for prefix in _PLACEHOLDER_PREFIXES:
        for name, replacement in fields.items():
            value = value.replace(f"{prefix}{name}}}", replacement)
    return value


def normalize_version(version: str) -> str:
    """Reduce a Maven version range to its first bound.

    ``[1.0]`` -> ``1.0``, ``[1.0,2.0)`` -> ``1.0``. This is a lossy
    simplification; upper bounds and exclusivity are discarded.
    """
    trimmed = version.strip()
    if not trimmed.startswith(("[", "(")):
        return trimmed
    inner = trimmed.lstrip("[(")
    first = inner.split(",", 1)[0]
    return first.rstrip("])").strip()


def parse_pom(pom_xml: Union[str, bytes], current: MavenCoordinate) -> List[PomDependency]:
    """Return every complete ``<dependency>`` of the project's ``<dependencies>``.

    Entries missing groupId, artifactId or version (for example versions
    inherited from a parent's dependencyManagement) are skipped.
    Raw bytes are decoded according to the XML declaration, so Latin-1
    POMs parse as well as UTF-8 ones.

    Raises:
        ParseError: if the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(pom_xml)
    except ET.ParseError as exc:
        raise ParseError(f"Malformed POM for {current}: {exc}") from exc

    dependencies: List[PomDependency] = []
    for section in root:
        if _local(section.tag) != "dependencies":
            continue
        for dep in section:
            if _local(dep.tag) != "dependency":
                continue
            group_id = _text(dep, "groupId")
            artifact_id = _text(dep, "artifactId")
            version = _text(dep, "version")
            scope = _text(dep, "scope") or Constants.DEFAULT_SCOPE
            if group_id is None or artifact_id is None or version is None:
                logger.debug(
                    "Skipping incomplete dependency %s:%s in POM of %s",
                    group_id, artifact_id, current,
                )
                continue
            dependencies.append(
                PomDependency(
                    coordinate=MavenCoordinate(
                        group_id=resolve_property(group_id, current),
                        artifact_id=resolve_property(artifact_id, current),
                        version=normalize_version(resolve_property(version, current)),
                    ),
                    scope=scope,
                )
            )
    return dependencies


def parse_pom_dependencies(pom_xml: Union[str, bytes], current: MavenCoordinate) -> List[MavenCoordinate]:
    """Coordinates of the compile and runtime dependencies declared by a POM."""
    return [dep.coordinate for dep in parse_pom(pom_xml, current) if dep.propagates]


def parse_metadata_versions(metadata_xml: Union[str, bytes]) -> List[str]:
    """Versions listed under ``<versioning><versions>``; empty for malformed input."""
    try:
        root = ET.fromstring(metadata_xml)
    except ET.ParseError:
        logger.debug("Ignoring malformed maven-metadata.xml")
        return []

    versioning = _child(root, "versioning")
    if versioning is None:
        return []
    versions_elem = _child(versioning, "versions")
    if versions_elem is None:
        return []
    return [
        elem.text.strip()
        for elem in versions_elem
        if _local(elem.tag) == "version" and elem.text and elem.text.strip()
    ]
