from __future__ import annotations

from typing import Protocol

from domain.models import BoundingBox, Point, Size


class ImageDecodeError(ValueError):
    """Raised when a canvas adapter cannot decode an input image."""


class TextMeasurer(Protocol):
    def measure_text(self, text: str, font_size: float) -> float: ...


class Canvas(TextMeasurer, Protocol):
    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def draw_image(self, data: bytes, box: BoundingBox) -> None: ...

    def fill_rect(self, box: BoundingBox, color: str, opacity: float = 1.0) -> None: ...

    def stroke_rect(self, box: BoundingBox, color: str, line_width: float = 1.0) -> None: ...

    def fill_rounded_rect(self, box: BoundingBox, radius: float, color: str) -> None: ...

    def fill_text_centered(
        self,
        text: str,
        center: Point,
        font_size: float,
        color: str,
        font_family: str | None = None,
    ) -> None:
        """Draw ``text`` centred on ``center``.

        ``font_family`` is a CSS font-family list. Raster canvases draw with
        the font file they were created with and ignore it.
        """
        ...

    def encode(self) -> bytes: ...


class CanvasFactory(Protocol):
    media_type: str
    file_suffix: str

    def create(self, width: int, height: int, background: str | None = None) -> Canvas: ...

    def from_image(
        self, data: bytes, width: int | None = None, height: int | None = None
    ) -> Canvas: ...

    def image_size(self, data: bytes) -> Size: ...
