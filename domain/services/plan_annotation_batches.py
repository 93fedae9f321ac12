from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from domain.models import AnnotatedImage, BoundingBox, NodeMetadata, SomLabel
from domain.services.build_som_labels import build_som_labels
from domain.services.overlap_detection import DEFAULT_OVERLAP_TOLERANCE, detect_overlap
from domain.services.render_som_image import SomRenderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotatedBatch:
    index: int
    nodes: list[NodeMetadata]
    labels: list[SomLabel]
    image: AnnotatedImage

    def mark_map(self) -> dict[int, dict[str, str]]:
        return {
            label.mark_id: {"node_id": label.node_id, "original_name": label.original_name}
            for label in self.labels
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "index": self.index,
            "width": self.image.width,
            "height": self.image.height,
            "marks": [
                {
                    "mark_id": label.mark_id,
                    "node_id": label.node_id,
                    "original_name": label.original_name,
                    "highlight_box": label.highlight_box.to_dict(),
                }
                for label in self.labels
            ],
        }


def plan_batches(nodes: Sequence[NodeMetadata], batch_size: int) -> list[list[NodeMetadata]]:
    if batch_size <= 0:
        msg = f"batch_size must be positive, got {batch_size}"
        raise ValueError(msg)
    return [list(nodes[idx : idx + batch_size]) for idx in range(0, len(nodes), batch_size)]


class AnnotateScene:
    """Renders one annotated image per batch of selected nodes."""

    def __init__(
        self,
        renderer: SomRenderer,
        split_crowded: bool = True,
        overlap_tolerance: float = DEFAULT_OVERLAP_TOLERANCE,
    ) -> None:
        self.renderer = renderer
        self.split_crowded = split_crowded
        self.overlap_tolerance = overlap_tolerance

    def plan(
        self,
        nodes: Sequence[NodeMetadata],
        reference_box: BoundingBox,
        scale: float,
        batch_size: int,
    ) -> list[list[NodeMetadata]]:
        planned: list[list[NodeMetadata]] = []
        style = self.renderer.style
        for batch in plan_batches(nodes, batch_size):
            crowded = (
                self.split_crowded
                and len(batch) > 1
                and detect_overlap(
                    [node.bounding_box for node in batch],
                    reference_box,
                    scale,
                    style.label_font_size,
                    style.label_padding,
                    self.overlap_tolerance,
                )
            )
            if crowded:
                logger.debug("Splitting a crowded batch of %d nodes.", len(batch))
                planned.extend([node] for node in batch)
            else:
                planned.append(batch)
        return planned

    def annotate(
        self,
        nodes: Sequence[NodeMetadata],
        base_image: bytes,
        reference_box: BoundingBox,
        scale: float,
        batch_size: int,
        width: int | None = None,
        height: int | None = None,
    ) -> Iterator[AnnotatedBatch]:
        """Yield annotated batches one at a time; stop iterating to cancel."""
        font_size = self.renderer.style.label_font_size * scale
        for index, batch in enumerate(self.plan(nodes, reference_box, scale, batch_size)):
            labels = build_som_labels(batch, reference_box, scale)
            image = self.renderer.render(base_image, labels, width, height, font_size=font_size)
            yield AnnotatedBatch(index=index, nodes=batch, labels=labels, image=image)
