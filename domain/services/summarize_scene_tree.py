from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from domain.models import SceneNode

DEFAULT_SUMMARY_DEPTH = 4


def build_condensed_tree_summary(
    roots: Iterable[SceneNode], max_depth: int = DEFAULT_SUMMARY_DEPTH
) -> str:
    """Render a compact indented outline of the tree.

    Each line keeps only id, name, type, rounded size and child count.
    Children below ``max_depth`` are collapsed into per-type counts.
    """
    lines: list[str] = []
    for root in roots:
        _summarize(root, 0, max_depth, lines)
    return "\n".join(lines)


def _summarize(node: SceneNode, depth: int, max_depth: int, lines: list[str]) -> None:
    indent = "  " * depth
    box = node.absolute_bounding_box
    width = round(box.width) if box else 0
    height = round(box.height) if box else 0
    lines.append(
        f'{indent}[{node.id}] "{node.name}" {node.type} {width}x{height} '
        f"children={len(node.children)}"
    )
    if not node.children:
        return

    if depth >= max_depth:
        counts = Counter(child.type for child in node.children)
        summary = ", ".join(f"{count} {node_type}" for node_type, count in counts.items())
        lines.append(f"{indent}  ... {len(node.children)} children: {summary}")
        return

    for child in node.children:
        _summarize(child, depth + 1, max_depth, lines)
