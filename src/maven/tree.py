"""Dependency tree rendering and conflict reporting for dry runs."""
from __future__ import annotations

from typing import Dict, List, Sequence, Set

from .coordinate import MavenCoordinate
from .models import Conflict, DependencyNode


def render_tree(nodes: Sequence[DependencyNode]) -> List[str]:
    """Render the dry-run nodes as indented tree lines.

    A child edge whose version lost to another resolution is shown as
    ``requested -> resolved`` and not expanded; edges back into the
    current path (cycles) are shown once and not expanded either.
    """
    node_map: Dict[str, DependencyNode] = {n.coordinate.key(): n for n in nodes}
    roots = [n for n in nodes if n.depth == 0]
    lines: List[str] = []
    for i, root in enumerate(roots):
        _render(root.coordinate, node_map, "", i == len(roots) - 1, set(), lines)
    return lines


def _render(
    coord: MavenCoordinate,
    node_map: Dict[str, DependencyNode],
    prefix: str,
    is_last: bool,
    path: Set[str],
    lines: List[str],
) -> None:
    connector = "└── " if is_last else "├── "
    node = node_map.get(coord.key())

    if node is None:
        lines.append(f"{prefix}{connector}{coord}")
        return
    if node.coordinate != coord:
        lines.append(f"{prefix}{connector}{coord} -> {node.coordinate.version}")
        return
    if coord.key() in path:
        lines.append(f"{prefix}{connector}{coord} (cycle)")
        return

    lines.append(f"{prefix}{connector}{coord}")
    child_prefix = prefix + ("    " if is_last else "│   ")
    path.add(coord.key())
    for i, child in enumerate(node.children):
        _render(child, node_map, child_prefix, i == len(node.children) - 1, path, lines)
    path.discard(coord.key())


def detect_conflicts(nodes: Sequence[DependencyNode]) -> List[Conflict]:
    """Artifacts that were requested at a version other than the resolved one."""
    resolved = {n.coordinate.key(): n.coordinate.version for n in nodes}
    losing: Dict[str, Set[str]] = {}
    for node in nodes:
        for child in node.children:
            winner = resolved.get(child.key())
            if winner is not None and child.version != winner:
                losing.setdefault(child.key(), set()).add(child.version)

    return [
        Conflict(key=key, resolved=resolved[key], requested=tuple(sorted(versions)))
        for key, versions in sorted(losing.items())
    ]
