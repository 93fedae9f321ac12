from __future__ import annotations

from collections.abc import Sequence

from domain.models import BoundingBox, LabelPlacement, NodeMetadata, SomLabel
from domain.ports.canvas import TextMeasurer


def build_som_labels(
    nodes: Sequence[NodeMetadata],
    reference_box: BoundingBox,
    scale: float = 1.0,
) -> list[SomLabel]:
    """Number the nodes of one batch from 1 and map their boxes into image space.

    ``reference_box`` is the absolute box of the element the base image was
    rendered from, ``scale`` the export scale of that image.
    """
    return [
        SomLabel(
            mark_id=idx,
            node_id=node.id,
            original_name=node.original_name,
            highlight_box=node.bounding_box.relative_to(reference_box, scale),
        )
        for idx, node in enumerate(nodes, start=1)
    ]


def build_initial_placements(
    labels: Sequence[SomLabel],
    measurer: TextMeasurer,
    font_size: float,
    padding: float,
) -> list[LabelPlacement]:
    placements: list[LabelPlacement] = []
    for label in labels:
        text_width = measurer.measure_text(str(label.mark_id), font_size)
        width = text_width + padding * 2
        height = font_size + padding * 2
        # Sit just above the highlight box, left-aligned with it.
        x = label.highlight_box.x
        y = label.highlight_box.y - height
        placements.append(
            LabelPlacement(
                mark_id=label.mark_id,
                x=x,
                y=y,
                width=width,
                height=height,
                anchor_x=x,
                anchor_y=y,
            )
        )
    return placements
