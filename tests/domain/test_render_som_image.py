from __future__ import annotations

import random

import pytest

from domain.models import AnnotationStyle, BoundingBox, Size, SomLabel
from domain.services.anti_overlap import OptimizerConfig
from domain.services.render_som_image import GRID_BACKGROUND, SomRenderer
from tests.helpers.scene_fixtures import RecordingCanvasFactory


def _label(mark_id: int, box: tuple[float, float, float, float]) -> SomLabel:
    return SomLabel(
        mark_id=mark_id,
        node_id=f"1:{mark_id}",
        original_name=f"Node {mark_id}",
        highlight_box=BoundingBox(*box),
    )


def test_render_draws_highlights_then_badges(canvas_factory: RecordingCanvasFactory) -> None:
    renderer = SomRenderer(canvas_factory, rng=random.Random(1))
    labels = [_label(1, (50, 100, 200, 40)), _label(2, (50, 300, 200, 40))]

    image = renderer.render(b"base", labels)

    canvas = canvas_factory.last
    names = [call[0] for call in canvas.calls]
    assert names[0] == "draw_image"
    assert names[1:5] == ["fill_rect", "stroke_rect", "fill_rect", "stroke_rect"]
    assert names[5:] == [
        "fill_rounded_rect",
        "fill_text_centered",
        "fill_rounded_rect",
        "fill_text_centered",
    ]
    assert (image.width, image.height) == (800, 600)
    assert image.media_type == canvas_factory.media_type
    assert [placement.mark_id for placement in image.placements] == [1, 2]


def test_render_uses_style_colors(canvas_factory: RecordingCanvasFactory) -> None:
    style = AnnotationStyle(highlight_color="#00FF00", label_text_color="#000000")
    renderer = SomRenderer(canvas_factory, style=style, rng=random.Random(1))

    renderer.render(b"base", [_label(1, (50, 100, 200, 40))])

    canvas = canvas_factory.last
    (fill,) = canvas.named("fill_rect")
    (stroke,) = canvas.named("stroke_rect")
    (badge,) = canvas.named("fill_rounded_rect")
    (text,) = canvas.named("fill_text_centered")
    assert fill[1:] == (BoundingBox(50, 100, 200, 40), "#00FF00", 0.3)
    assert stroke[1:] == (BoundingBox(50, 100, 200, 40), "#00FF00", 2.0)
    assert badge[2:] == (3.0, "#00FF00")
    assert text[1] == "1"
    assert text[3:] == (14.0, "#000000", "Arial, sans-serif")


def test_render_passes_label_font_family(canvas_factory: RecordingCanvasFactory) -> None:
    style = AnnotationStyle(label_font_family="Inter, Helvetica, sans-serif")

    SomRenderer(canvas_factory, style=style).render(b"base", [_label(1, (50, 100, 200, 40))])

    (text,) = canvas_factory.last.named("fill_text_centered")
    assert text[5] == "Inter, Helvetica, sans-serif"


def test_render_draws_badges_at_optimised_positions(
    canvas_factory: RecordingCanvasFactory,
) -> None:
    renderer = SomRenderer(canvas_factory, rng=random.Random(11))
    labels = [_label(mark_id, (100, 100, 60, 30)) for mark_id in (1, 2, 3)]

    image = renderer.render(b"base", labels)

    badge_boxes = [call[1] for call in canvas_factory.last.named("fill_rounded_rect")]
    assert badge_boxes == [placement.box for placement in image.placements]
    assert len({(box.x, box.y) for box in badge_boxes}) == 3


def test_render_single_label_keeps_initial_position(
    canvas_factory: RecordingCanvasFactory,
) -> None:
    renderer = SomRenderer(canvas_factory)

    image = renderer.render(b"base", [_label(1, (40, 80, 100, 50))])

    (placement,) = image.placements
    assert (placement.x, placement.y) == (40, 80 - 22)


def test_render_text_is_centred_in_badge(canvas_factory: RecordingCanvasFactory) -> None:
    renderer = SomRenderer(canvas_factory)

    renderer.render(b"base", [_label(7, (40, 80, 100, 50))])

    (badge,) = canvas_factory.last.named("fill_rounded_rect")
    (text,) = canvas_factory.last.named("fill_text_centered")
    box = badge[1]
    assert text[2].x == pytest.approx(box.x + box.width / 2)
    assert text[2].y == pytest.approx(box.y + box.height / 2)


def test_render_clamps_badge_radius(canvas_factory: RecordingCanvasFactory) -> None:
    renderer = SomRenderer(canvas_factory, style=AnnotationStyle(label_border_radius=50))

    renderer.render(b"base", [_label(1, (40, 80, 100, 50))])

    (badge,) = canvas_factory.last.named("fill_rounded_rect")
    box = badge[1]
    assert badge[2] == min(box.width, box.height) / 2


def test_render_uses_label_background_when_set(canvas_factory: RecordingCanvasFactory) -> None:
    style = AnnotationStyle(label_background_color="#222222")
    renderer = SomRenderer(canvas_factory, style=style)

    renderer.render(b"base", [_label(1, (40, 80, 100, 50))])

    (badge,) = canvas_factory.last.named("fill_rounded_rect")
    assert badge[3] == "#222222"


def test_render_without_labels_returns_base(canvas_factory: RecordingCanvasFactory) -> None:
    renderer = SomRenderer(canvas_factory)

    image = renderer.render(b"base", [], width=320, height=200)

    assert [call[0] for call in canvas_factory.last.calls] == ["draw_image"]
    assert (image.width, image.height) == (320, 200)
    assert image.placements == []


@pytest.mark.parametrize(("width", "height"), [(0, 100), (100, 0), (-5, 10)])
def test_render_rejects_empty_canvas(
    canvas_factory: RecordingCanvasFactory, width: int, height: int
) -> None:
    renderer = SomRenderer(canvas_factory)

    with pytest.raises(ValueError, match="positive"):
        renderer.render(b"base", [_label(1, (0, 0, 10, 10))], width=width, height=height)


def test_render_passes_optimizer_config(canvas_factory: RecordingCanvasFactory) -> None:
    renderer = SomRenderer(
        canvas_factory, optimizer_config=OptimizerConfig(max_iterations=0)
    )
    labels = [_label(1, (100, 100, 60, 30)), _label(2, (100, 100, 60, 30))]

    image = renderer.render(b"base", labels)

    assert [(p.x, p.y) for p in image.placements] == [(100, 78), (100, 78)]


def test_render_page_highlights_places_badges_above(
    canvas_factory: RecordingCanvasFactory,
) -> None:
    renderer = SomRenderer(canvas_factory)
    labels = [_label(1, (110, 105, 50, 20)), _label(2, (150, 200, 50, 20))]

    image = renderer.render_page_highlights(b"page", labels, BoundingBox(100, 100, 400, 300), 2)

    first, second = image.placements
    assert (first.x, first.y) == (20, 0)
    assert (second.x, second.y) == (100, 200 - 22)
    fills = [call[1] for call in canvas_factory.last.named("fill_rect")]
    assert fills == [BoundingBox(20, 10, 100, 40), BoundingBox(100, 200, 100, 40)]


def test_render_page_highlights_without_labels(canvas_factory: RecordingCanvasFactory) -> None:
    image = SomRenderer(canvas_factory).render_page_highlights(
        b"page", [], BoundingBox(0, 0, 10, 10), 1
    )

    assert image.placements == []


def test_component_grid_empty(canvas_factory: RecordingCanvasFactory) -> None:
    image = SomRenderer(canvas_factory).render_component_grid([])

    assert (image.width, image.height) == (1, 1)
    assert image.placements == []


def test_component_grid_layout(canvas_factory: RecordingCanvasFactory) -> None:
    canvas_factory.image_sizes = {b"wide": Size(200, 100), b"tall": Size(100, 300)}

    image = SomRenderer(canvas_factory).render_component_grid([(4, b"wide"), (9, b"tall")])

    assert (image.width, image.height) == (436, 352)
    assert [placement.mark_id for placement in image.placements] == [4, 9]
    canvas = canvas_factory.last
    assert canvas.calls[0] == ("fill_rect", BoundingBox(0, 0, 436, 352), GRID_BACKGROUND, 1.0)
    drawn = {call[1]: call[2] for call in canvas.named("draw_image")}
    assert drawn[b"wide"] == BoundingBox(12, 40 + 100, 200, 100)
    assert drawn[b"tall"] == BoundingBox(274, 40, 100, 300)
    texts = [call[1] for call in canvas.named("fill_text_centered")]
    assert texts == ["4", "9"]


def test_component_grid_shrinks_large_components(canvas_factory: RecordingCanvasFactory) -> None:
    canvas_factory.image_sizes = {b"huge": Size(1200, 600)}

    SomRenderer(canvas_factory).render_component_grid([(1, b"huge")])

    (draw,) = canvas_factory.last.named("draw_image")
    assert (draw[2].width, draw[2].height) == (600, 300)


def test_component_grid_wraps_rows(canvas_factory: RecordingCanvasFactory) -> None:
    components = [(idx, f"c{idx}".encode()) for idx in range(1, 6)]

    image = SomRenderer(canvas_factory).render_component_grid(components, max_columns=2)

    badge_origins = [(p.x, p.y) for p in image.placements]
    assert len({x for x, _ in badge_origins}) == 2
    assert len({y for _, y in badge_origins}) == 3
