from __future__ import annotations

from collections.abc import Sequence
from itertools import combinations

from domain.models import BoundingBox

DEFAULT_OVERLAP_TOLERANCE = 4.0


def label_envelope(
    box: BoundingBox, reference_box: BoundingBox, scale: float, badge_height: float
) -> BoundingBox:
    relative = box.relative_to(reference_box, scale)
    return BoundingBox(
        x=relative.x,
        y=relative.y - badge_height,
        width=relative.width,
        height=relative.height + badge_height,
    )


def detect_overlap(
    boxes: Sequence[BoundingBox],
    reference_box: BoundingBox,
    scale: float,
    font_size: float,
    padding: float = 4.0,
    tolerance: float = DEFAULT_OVERLAP_TOLERANCE,
) -> bool:
    """Tell whether any two labelled elements would crowd each other in one image.

    ``boxes`` are absolute element boxes. Each envelope is the element's
    image-space box grown upward by the badge height; two envelopes must
    intersect by more than ``tolerance`` pixels on both axes to count.
    """
    badge_height = (font_size + padding * 2) * scale
    envelopes = [label_envelope(box, reference_box, scale, badge_height) for box in boxes]
    for a, b in combinations(envelopes, 2):
        x_overlap = min(a.right, b.right) - max(a.x, b.x)
        y_overlap = min(a.bottom, b.bottom) - max(a.y, b.y)
        if x_overlap > tolerance and y_overlap > tolerance:
            return True
    return False
