from __future__ import annotations

import logging
import math
import random
from collections.abc import Sequence

from domain.models import (
    AnnotatedImage,
    AnnotationStyle,
    BoundingBox,
    LabelPlacement,
    Point,
    SomLabel,
)
from domain.ports.canvas import Canvas, CanvasFactory
from domain.services.anti_overlap import OptimizerConfig, optimize_label_positions
from domain.services.build_som_labels import build_initial_placements

logger = logging.getLogger(__name__)

GRID_BACKGROUND = "#FFFFFF"
GRID_BORDER_COLOR = "#E0E0E0"
GRID_MAX_CELL = 600.0


class SomRenderer:
    """Composites Set-of-Mark highlights and numbered badges onto a design image."""

    def __init__(
        self,
        canvas_factory: CanvasFactory,
        style: AnnotationStyle | None = None,
        optimizer_config: OptimizerConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.canvas_factory = canvas_factory
        self.style = style or AnnotationStyle()
        self.optimizer_config = optimizer_config or OptimizerConfig()
        self.rng = rng

    def render(
        self,
        base_image: bytes,
        labels: Sequence[SomLabel],
        width: int | None = None,
        height: int | None = None,
        font_size: float | None = None,
    ) -> AnnotatedImage:
        """Draw highlight boxes and anti-overlap badges for ``labels``.

        Label boxes must already be in image coordinates. Badges are drawn at
        their optimised positions, not at their anchors.
        """
        if (width is not None and width <= 0) or (height is not None and height <= 0):
            msg = f"Canvas size must be positive, got {width}x{height}"
            raise ValueError(msg)
        canvas = self.canvas_factory.from_image(base_image, width, height)
        if canvas.width <= 0 or canvas.height <= 0:
            msg = f"Canvas size must be positive, got {canvas.width}x{canvas.height}"
            raise ValueError(msg)
        if not labels:
            return self._finish(canvas, [])

        style = self.style
        size = style.label_font_size if font_size is None else font_size
        logger.debug(
            "Rendering %d labels on a %dx%d canvas.", len(labels), canvas.width, canvas.height
        )
        for label in labels:
            self.draw_highlight_box(canvas, label.highlight_box)

        initial = build_initial_placements(labels, canvas, size, style.label_padding)
        optimized = optimize_label_positions(
            initial, canvas.width, canvas.height, self.optimizer_config, self.rng
        )
        for placement in optimized:
            self.draw_badge(canvas, placement.mark_id, placement.box, size)
        return self._finish(canvas, optimized)

    def render_page_highlights(
        self,
        page_image: bytes,
        labels: Sequence[SomLabel],
        page_box: BoundingBox,
        export_scale: float,
        width: int | None = None,
        height: int | None = None,
        font_size: float | None = None,
    ) -> AnnotatedImage:
        """Mark where elements sit on a whole-page render.

        ``labels`` carry absolute boxes; they are shifted by ``page_box`` and
        scaled by ``export_scale``. Badges go straight above each box.
        """
        canvas = self.canvas_factory.from_image(page_image, width, height)
        if not labels:
            return self._finish(canvas, [])

        style = self.style
        size = style.label_font_size if font_size is None else font_size
        boxes = [label.highlight_box.relative_to(page_box, export_scale) for label in labels]
        for box in boxes:
            self.draw_highlight_box(canvas, box)

        placements: list[LabelPlacement] = []
        for label, box in zip(labels, boxes):
            badge = self.badge_box(
                canvas,
                label.mark_id,
                Point(box.x, max(0.0, box.y - style.badge_height(size))),
                size,
            )
            self.draw_badge(canvas, label.mark_id, badge, size)
            placements.append(_fixed_placement(label.mark_id, badge))
        return self._finish(canvas, placements)

    def render_component_grid(
        self,
        components: Sequence[tuple[int, bytes]],
        max_columns: int = 3,
        cell_padding: float = 12.0,
        label_font_size: float = 16.0,
    ) -> AnnotatedImage:
        """Lay out numbered close-up crops of components in a grid."""
        if not components:
            return self._finish(self.canvas_factory.create(1, 1), [])

        sizes = [self.canvas_factory.image_size(data) for _, data in components]
        columns = min(max_columns, len(components))
        rows = math.ceil(len(components) / columns)
        cell_width = min(max(size.width for size in sizes), GRID_MAX_CELL)
        cell_height = min(max(size.height for size in sizes), GRID_MAX_CELL)
        label_height = self.style.badge_height(label_font_size) + 4

        total_width = columns * (cell_width + cell_padding) + cell_padding
        total_height = rows * (cell_height + label_height + cell_padding) + cell_padding
        canvas = self.canvas_factory.create(
            math.ceil(total_width), math.ceil(total_height), background=GRID_BACKGROUND
        )

        placements: list[LabelPlacement] = []
        for idx, ((mark_id, data), size) in enumerate(zip(components, sizes)):
            cell_x = cell_padding + (idx % columns) * (cell_width + cell_padding)
            cell_y = cell_padding + (idx // columns) * (cell_height + label_height + cell_padding)

            badge = self.badge_box(canvas, mark_id, Point(cell_x, cell_y), label_font_size)
            self.draw_badge(canvas, mark_id, badge, label_font_size)
            placements.append(_fixed_placement(mark_id, badge))

            image_y = cell_y + label_height
            fit = min(cell_width / size.width, cell_height / size.height, 1.0)
            draw_width = size.width * fit
            draw_height = size.height * fit
            canvas.stroke_rect(
                BoundingBox(cell_x, image_y, cell_width, cell_height), GRID_BORDER_COLOR, 1.0
            )
            canvas.draw_image(
                data,
                BoundingBox(
                    cell_x + (cell_width - draw_width) / 2,
                    image_y + (cell_height - draw_height) / 2,
                    draw_width,
                    draw_height,
                ),
            )
        return self._finish(canvas, placements)

    def draw_highlight_box(self, canvas: Canvas, box: BoundingBox) -> None:
        style = self.style
        canvas.fill_rect(box, style.highlight_color, style.highlight_opacity)
        canvas.stroke_rect(box, style.highlight_color, style.highlight_stroke_width)

    def badge_box(
        self, canvas: Canvas, mark_id: int, origin: Point, font_size: float
    ) -> BoundingBox:
        padding = self.style.label_padding
        width = canvas.measure_text(str(mark_id), font_size) + padding * 2
        return BoundingBox(origin.x, origin.y, width, font_size + padding * 2)

    def draw_badge(
        self,
        canvas: Canvas,
        mark_id: int,
        box: BoundingBox,
        font_size: float,
    ) -> None:
        style = self.style
        radius = min(style.label_border_radius, box.width / 2, box.height / 2)
        canvas.fill_rounded_rect(box, radius, style.badge_color)
        canvas.fill_text_centered(
            str(mark_id),
            Point(box.x + box.width / 2, box.y + box.height / 2),
            font_size,
            style.label_text_color,
            style.label_font_family,
        )

    def _finish(self, canvas: Canvas, placements: list[LabelPlacement]) -> AnnotatedImage:
        return AnnotatedImage(
            data=canvas.encode(),
            width=canvas.width,
            height=canvas.height,
            media_type=self.canvas_factory.media_type,
            placements=placements,
        )


def _fixed_placement(mark_id: int, box: BoundingBox) -> LabelPlacement:
    return LabelPlacement(
        mark_id=mark_id,
        x=box.x,
        y=box.y,
        width=box.width,
        height=box.height,
        anchor_x=box.x,
        anchor_y=box.y,
    )
