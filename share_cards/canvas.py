"""Pillow-backed drawing surface with canvas-style text state."""

import io
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageDraw

from .errors import SurfaceUnavailable
from .fonts import FontRegistry

# Every card is painted in this frame; painter coordinates assume it
CANVAS_WIDTH = 1080
CANVAS_HEIGHT = 1080

# Advance widths are measured at this size and scaled linearly, giving fractional
# widths free of per-glyph hinting at small sizes
MEASURE_REFERENCE_SIZE = 1000

# Canvas text baselines mapped to Pillow anchors (left-ascender / left-descender)
_ANCHORS = {
    "top": "la",
    "bottom": "ld",
}


@dataclass(frozen=True)
class TextMetrics:
    """Measured text box, ascent and descent relative to the baseline point."""

    width: float
    ascent: float
    descent: float

    @property
    def height(self) -> float:
        """Visual height: descent + |ascent|, not the font's line height."""
        return self.descent + abs(self.ascent)


class Canvas:
    """A fixed-size RGBA surface owned by a single render."""

    def __init__(self, width: int, height: int, fonts: Optional[FontRegistry] = None):
        if width <= 0 or height <= 0:
            raise SurfaceUnavailable(f"Invalid surface size {width}x{height}")
        try:
            self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        except (ValueError, MemoryError) as e:
            raise SurfaceUnavailable(f"Could not allocate {width}x{height} surface: {e}") from e

        self.width = width
        self.height = height
        self.fonts = fonts if fonts is not None else FontRegistry()

        # Current text state, applied by text_layout.apply_style
        self.font_family = "sans-serif"
        self.font_size: float = 10.0
        self.fill_style = "black"
        self.text_baseline = "top"

    @property
    def font(self) -> str:
        return f"{self.font_size:g}px {self.font_family}"

    def _current_font(self):
        return self.fonts.get(self.font_family, self.font_size)

    def measure_text(self, text: str) -> TextMetrics:
        font = self._current_font()
        if not text:
            return TextMetrics(width=0.0, ascent=0.0, descent=0.0)
        left, top, right, bottom = font.getbbox(text, anchor=_ANCHORS[self.text_baseline])
        reference = self.fonts.get(self.font_family, MEASURE_REFERENCE_SIZE)
        width = reference.getlength(text) * self.font_size / MEASURE_REFERENCE_SIZE
        return TextMetrics(width=width, ascent=-top, descent=bottom)

    def fill_text(self, text: str, x: float, y: float) -> None:
        draw = ImageDraw.Draw(self.image)
        draw.text(
            (x, y),
            text,
            font=self._current_font(),
            fill=self.fill_style,
            anchor=_ANCHORS[self.text_baseline],
        )

    def draw_image(
        self,
        image: Image.Image,
        x: float,
        y: float,
        width: Optional[float] = None,
        height: Optional[float] = None,
    ) -> None:
        """Alpha-composite ``image`` at (x, y), optionally scaled to width x height."""
        layer = image if image.mode == "RGBA" else image.convert("RGBA")
        if width is not None and height is not None:
            size = (max(1, round(width)), max(1, round(height)))
            if size != layer.size:
                layer = layer.resize(size, Image.Resampling.LANCZOS)

        # Paste onto a transparent frame first so offsets outside the canvas are clipped
        overlay = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        overlay.paste(layer, (round(x), round(y)))
        self.image.alpha_composite(overlay)

    def encode(self, fmt: str = "PNG", quality: float = 0.95, compress_level: int = 6) -> bytes:
        """Encode the surface. ``quality`` (0..1) applies to lossy formats only."""
        fmt = fmt.upper()
        if fmt == "JPG":
            fmt = "JPEG"

        buffer = io.BytesIO()
        if fmt == "PNG":
            self.image.save(buffer, "PNG", compress_level=compress_level)
        else:
            image = self.image.convert("RGB") if fmt == "JPEG" else self.image
            image.save(buffer, fmt, quality=round(quality * 100))
        return buffer.getvalue()


def create_canvas(width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT) -> Canvas:
    """Allocate a fresh transparent surface for one render."""
    return Canvas(width, height)
