from __future__ import annotations

import functools
from pathlib import Path

from PIL import ImageFont

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont

BOLD_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/noto/NotoSans-Bold.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
    "/Library/Fonts/Arial Bold.ttf",
    "C:/Windows/Fonts/arialbd.ttf",
)


@functools.lru_cache(maxsize=1)
def find_bold_font() -> str | None:
    for candidate in BOLD_FONT_CANDIDATES:
        if Path(candidate).exists():
            return candidate
    return None


@functools.lru_cache(maxsize=64)
def load_badge_font(size: float, font_path: str | None = None) -> Font:
    path = font_path or find_bold_font()
    pixel_size = max(round(size), 1)
    if path is None:
        return ImageFont.load_default(size=pixel_size)
    return ImageFont.truetype(path, size=pixel_size)


def measure_text(text: str, size: float, font_path: str | None = None) -> float:
    return float(load_badge_font(size, font_path).getlength(text))
