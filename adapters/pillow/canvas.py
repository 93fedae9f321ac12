from __future__ import annotations

import io

from PIL import Image, ImageColor, ImageDraw, UnidentifiedImageError

from adapters.pillow.fonts import load_badge_font, measure_text
from domain.models import BoundingBox, Point, Size
from domain.ports.canvas import Canvas, CanvasFactory, ImageDecodeError


def decode_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        msg = f"Cannot decode image ({len(data)} bytes): {exc}"
        raise ImageDecodeError(msg) from exc
    return image.convert("RGBA")


def _rgba(color: str, opacity: float = 1.0) -> tuple[int, int, int, int]:
    rgb = ImageColor.getrgb(color)
    alpha = rgb[3] if len(rgb) == 4 else 255
    return rgb[0], rgb[1], rgb[2], round(alpha * max(0.0, min(opacity, 1.0)))


def _xy(box: BoundingBox) -> tuple[float, float, float, float]:
    return box.x, box.y, box.x + max(box.width, 0.0), box.y + max(box.height, 0.0)


class PillowCanvas(Canvas):
    def __init__(self, image: Image.Image, font_path: str | None = None) -> None:
        self.image = image.convert("RGBA") if image.mode != "RGBA" else image
        self.font_path = font_path
        self._draw = ImageDraw.Draw(self.image)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def measure_text(self, text: str, font_size: float) -> float:
        return measure_text(text, font_size, self.font_path)

    def draw_image(self, data: bytes, box: BoundingBox) -> None:
        source = decode_image(data)
        size = (max(round(box.width), 1), max(round(box.height), 1))
        if source.size != size:
            source = source.resize(size, Image.Resampling.LANCZOS)
        self.image.paste(source, (round(box.x), round(box.y)), source)

    def fill_rect(self, box: BoundingBox, color: str, opacity: float = 1.0) -> None:
        if opacity >= 1.0:
            self._draw.rectangle(_xy(box), fill=_rgba(color))
            return
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        ImageDraw.Draw(layer).rectangle(_xy(box), fill=_rgba(color, opacity))
        self.image.alpha_composite(layer)

    def stroke_rect(self, box: BoundingBox, color: str, line_width: float = 1.0) -> None:
        self._draw.rectangle(_xy(box), outline=_rgba(color), width=max(round(line_width), 1))

    def fill_rounded_rect(self, box: BoundingBox, radius: float, color: str) -> None:
        radius = max(0.0, min(radius, box.width / 2, box.height / 2))
        self._draw.rounded_rectangle(_xy(box), radius=radius, fill=_rgba(color))

    def fill_text_centered(
        self,
        text: str,
        center: Point,
        font_size: float,
        color: str,
        font_family: str | None = None,
    ) -> None:
        font = load_badge_font(font_size, self.font_path)
        left, top, right, bottom = self._draw.textbbox((0, 0), text, font=font)
        origin = (center.x - (left + right) / 2, center.y - (top + bottom) / 2)
        self._draw.text(origin, text, fill=_rgba(color), font=font)

    def encode(self) -> bytes:
        buffer = io.BytesIO()
        self.image.convert("RGB").save(buffer, format="PNG")
        return buffer.getvalue()


class PillowCanvasFactory(CanvasFactory):
    media_type = "image/png"
    file_suffix = ".png"

    def __init__(self, font_path: str | None = None) -> None:
        self.font_path = font_path

    def create(self, width: int, height: int, background: str | None = None) -> PillowCanvas:
        fill = _rgba(background) if background else (0, 0, 0, 0)
        return PillowCanvas(Image.new("RGBA", (width, height), fill), self.font_path)

    def from_image(
        self, data: bytes, width: int | None = None, height: int | None = None
    ) -> PillowCanvas:
        image = decode_image(data)
        size = (width or image.width, height or image.height)
        if image.size != size:
            image = image.resize(size, Image.Resampling.LANCZOS)
        return PillowCanvas(image, self.font_path)

    def image_size(self, data: bytes) -> Size:
        image = decode_image(data)
        return Size(image.width, image.height)
