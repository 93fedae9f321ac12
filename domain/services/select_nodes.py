from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

from domain.models import (
    COMPONENT_BOUNDARY_TYPES,
    CONTAINER_TYPES,
    DEFAULT_INCLUDE_NODE_TYPES,
    LAYOUT_MODE_NONE,
    LAYOUT_MODES,
    SECTION_TYPE,
    SKIP_NODE_TYPES,
    TEXT_TYPE,
    ZERO_BOX,
    NodeMetadata,
    SceneNode,
)

logger = logging.getLogger(__name__)

DEFAULT_NAME_PATTERNS = (
    re.compile(r"^Frame \d+$"),
    re.compile(r"^Group \d+$"),
    re.compile(r"^Rectangle \d+$"),
    re.compile(r"^Ellipse \d+$"),
    re.compile(r"^Vector \d+$"),
    re.compile(r"^Line \d+$"),
    re.compile(r"^Text$"),
    re.compile(r"^Component \d+$"),
    re.compile(r"^Instance$"),
)


@dataclass(frozen=True)
class TraversalLimits:
    max_depth: int
    max_nodes: int


# Live design-tool selections can be walked deeper than serialized exports.
LIVE_LIMITS = TraversalLimits(max_depth=100, max_nodes=5000)
EXPORT_LIMITS = TraversalLimits(max_depth=40, max_nodes=500)


@dataclass(frozen=True)
class TraversalConfig:
    include_invisible: bool = False
    include_locked: bool = False
    min_node_area: float = 100.0
    include_node_types: tuple[str, ...] = field(default=DEFAULT_INCLUDE_NODE_TYPES)
    batch_size: int = 15
    max_depth: int = 40
    max_nodes: int = 500

    def with_limits(self, limits: TraversalLimits) -> TraversalConfig:
        return replace(self, max_depth=limits.max_depth, max_nodes=limits.max_nodes)


def is_default_name(name: str) -> bool:
    return any(pattern.match(name) for pattern in DEFAULT_NAME_PATTERNS)


def should_include_node(node: SceneNode, config: TraversalConfig) -> bool:
    if node.type in SKIP_NODE_TYPES:
        return False
    if not config.include_invisible and not node.visible:
        return False
    if not config.include_locked and node.locked:
        return False
    if config.min_node_area > 0 and node.absolute_bounding_box is not None:
        if node.absolute_bounding_box.area < config.min_node_area:
            return False

    if node.type in COMPONENT_BOUNDARY_TYPES:
        return True
    if node.type == SECTION_TYPE:
        return True
    if node.type == TEXT_TYPE:
        return True

    if node.type in CONTAINER_TYPES:
        # A one-child auto-layout frame only wraps its child.
        if _layout_mode(node) != LAYOUT_MODE_NONE and len(node.children) == 1:
            return False
        return is_default_name(node.name)

    return node.type in config.include_node_types


def select_nodes(roots: Iterable[SceneNode], config: TraversalConfig) -> list[NodeMetadata]:
    """Walk the trees depth-first and return metadata for every node worth labelling.

    Results are in pre-order, so a parent always precedes its children.
    Component instances, definitions and variant sets are atomic: once
    included, their subtree is not visited. Excluded containers are still
    walked so their descendants get a chance to be included.
    """
    results: list[NodeMetadata] = []
    for root in roots:
        _walk(root, 0, None, config, results)
    if len(results) >= config.max_nodes:
        logger.debug("Node selection stopped at the %d node ceiling.", config.max_nodes)
    return results


def _walk(
    node: SceneNode,
    depth: int,
    parent_id: str | None,
    config: TraversalConfig,
    results: list[NodeMetadata],
) -> None:
    if depth > config.max_depth:
        logger.debug("Skipping %s: deeper than %d levels.", node.id, config.max_depth)
        return
    if len(results) >= config.max_nodes:
        return

    included = should_include_node(node, config)
    if included:
        results.append(extract_metadata(node, depth, parent_id))
        if node.type in COMPONENT_BOUNDARY_TYPES:
            return

    for child in node.children:
        _walk(child, depth + 1, node.id, config, results)


def extract_metadata(node: SceneNode, depth: int, parent_id: str | None) -> NodeMetadata:
    return NodeMetadata(
        id=node.id,
        original_name=node.name,
        node_type=node.type,
        bounding_box=node.absolute_bounding_box or ZERO_BOX,
        depth=depth,
        parent_id=parent_id,
        text_content=extract_text_content(node),
        bound_variables=extract_bound_variables(node),
        component_properties=extract_component_properties(node),
        has_children=bool(node.children),
        child_count=len(node.children),
        layout_mode=_layout_mode(node),
    )


def extract_text_content(node: SceneNode) -> str | None:
    if node.type == TEXT_TYPE:
        return node.characters or None

    parts = [
        child.characters
        for child in node.children
        if child.type == TEXT_TYPE and child.characters
    ]
    return " ".join(parts) if parts else None


def extract_bound_variables(node: SceneNode) -> list[str]:
    result: list[str] = []
    for binding in node.bound_variables.values():
        if not binding:
            continue
        aliases = binding if isinstance(binding, list) else [binding]
        for alias in aliases:
            if isinstance(alias, dict) and alias.get("id"):
                result.append(str(alias["id"]))
    return result


def extract_component_properties(node: SceneNode) -> dict[str, str]:
    return {
        key: str(prop.value)
        for key, prop in node.component_properties.items()
        if prop.value is not None
    }


def find_node(roots: Sequence[SceneNode], node_id: str) -> SceneNode | None:
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        if node.id == node_id:
            return node
        stack.extend(reversed(node.children))
    return None


def _layout_mode(node: SceneNode) -> str:
    mode = (node.layout_mode or "").upper()
    return mode if mode in LAYOUT_MODES else LAYOUT_MODE_NONE
