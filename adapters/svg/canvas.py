from __future__ import annotations

import base64
import io
from xml.sax.saxutils import escape, quoteattr

from PIL import Image, UnidentifiedImageError

from adapters.pillow.fonts import measure_text
from domain.models import BoundingBox, Point, Size
from domain.ports.canvas import Canvas, CanvasFactory, ImageDecodeError

SVG_NS = "http://www.w3.org/2000/svg"
FONT_FAMILY = "Arial, sans-serif"


def _inspect_image(data: bytes) -> tuple[Size, str]:
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.verify()
            fmt = (image.format or "PNG").lower()
            size = Size(image.width, image.height)
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        msg = f"Cannot decode image ({len(data)} bytes): {exc}"
        raise ImageDecodeError(msg) from exc
    return size, f"image/{fmt}"


def _num(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


class SvgCanvas(Canvas):
    """Collects drawing calls as SVG elements; raster inputs are embedded as data URIs."""

    def __init__(self, width: int, height: int, font_path: str | None = None) -> None:
        self._width = width
        self._height = height
        self.font_path = font_path
        self.elements: list[str] = []

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def measure_text(self, text: str, font_size: float) -> float:
        return measure_text(text, font_size, self.font_path)

    def draw_image(self, data: bytes, box: BoundingBox) -> None:
        _, media_type = _inspect_image(data)
        href = f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"
        self.elements.append(
            f'<image x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
            f'height="{_num(box.height)}" preserveAspectRatio="none" href={quoteattr(href)}/>'
        )

    def fill_rect(self, box: BoundingBox, color: str, opacity: float = 1.0) -> None:
        self.elements.append(
            f'<rect x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
            f'height="{_num(box.height)}" fill={quoteattr(color)} '
            f'fill-opacity="{_num(opacity)}"/>'
        )

    def stroke_rect(self, box: BoundingBox, color: str, line_width: float = 1.0) -> None:
        self.elements.append(
            f'<rect x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
            f'height="{_num(box.height)}" fill="none" stroke={quoteattr(color)} '
            f'stroke-width="{_num(line_width)}"/>'
        )

    def fill_rounded_rect(self, box: BoundingBox, radius: float, color: str) -> None:
        radius = max(0.0, min(radius, box.width / 2, box.height / 2))
        self.elements.append(
            f'<rect x="{_num(box.x)}" y="{_num(box.y)}" width="{_num(box.width)}" '
            f'height="{_num(box.height)}" rx="{_num(radius)}" ry="{_num(radius)}" '
            f"fill={quoteattr(color)}/>"
        )

    def fill_text_centered(
        self,
        text: str,
        center: Point,
        font_size: float,
        color: str,
        font_family: str | None = None,
    ) -> None:
        self.elements.append(
            f'<text x="{_num(center.x)}" y="{_num(center.y)}" '
            f"font-family={quoteattr(font_family or FONT_FAMILY)} "
            f'font-size="{_num(font_size)}" font-weight="bold" fill={quoteattr(color)} '
            f'text-anchor="middle" dominant-baseline="central">{escape(text)}</text>'
        )

    def encode(self) -> bytes:
        header = (
            f'<svg xmlns="{SVG_NS}" width="{self._width}" height="{self._height}" '
            f'viewBox="0 0 {self._width} {self._height}">'
        )
        return "\n".join([header, *self.elements, "</svg>"]).encode("utf-8")


class SvgCanvasFactory(CanvasFactory):
    media_type = "image/svg+xml"
    file_suffix = ".svg"

    def __init__(self, font_path: str | None = None) -> None:
        self.font_path = font_path

    def create(self, width: int, height: int, background: str | None = None) -> SvgCanvas:
        canvas = SvgCanvas(width, height, self.font_path)
        if background:
            canvas.fill_rect(BoundingBox(0, 0, width, height), background)
        return canvas

    def from_image(
        self, data: bytes, width: int | None = None, height: int | None = None
    ) -> SvgCanvas:
        size, _ = _inspect_image(data)
        canvas = SvgCanvas(width or int(size.width), height or int(size.height), self.font_path)
        canvas.draw_image(data, BoundingBox(0, 0, canvas.width, canvas.height))
        return canvas

    def image_size(self, data: bytes) -> Size:
        size, _ = _inspect_image(data)
        return size
