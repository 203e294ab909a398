"""Styled text drawing with width-constrained auto-scaling."""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import Optional, Union

from .canvas import Canvas, TextMetrics

# Shrunk text is nudged down by (height_before - height_after) / 4 so it stays
# visually anchored near its original baseline. Heuristic, kept for output parity.
SCALE_OFFSET_DIVISOR = 4

# Horizontal gap between a drawn number and its unit label
UNIT_GAP = 10

# de-DE number formatting: at most three fraction digits
MAX_FRACTION_DIGITS = 3


class FontStyle(str, Enum):
    LIGHT = "light"
    LIGHT_BIG = "light-big"
    BOLD = "bold"
    NUMBER = "number"
    UNIT = "unit"
    BIG = "big"


@dataclass(frozen=True)
class TextStyle:
    family: str
    size: float
    fill: str
    baseline: str = "top"


FONT_STYLES: dict[FontStyle, TextStyle] = {
    FontStyle.LIGHT: TextStyle("Montserrat", 28, "#01687F"),
    FontStyle.LIGHT_BIG: TextStyle("Montserrat", 32, "#01687F"),
    FontStyle.BOLD: TextStyle("Bebas Neue", 56, "white"),
    FontStyle.NUMBER: TextStyle("Bebas Neue", 76, "white"),
    FontStyle.UNIT: TextStyle("Montserrat", 32, "white", baseline="bottom"),
    FontStyle.BIG: TextStyle("Bebas Neue", 92, "white"),
}


@dataclass(frozen=True)
class TextSize:
    width: float
    height: float


@dataclass(frozen=True)
class ScaleResult:
    metrics: TextMetrics
    offset_y: float


def apply_style(canvas: Canvas, style: FontStyle) -> None:
    """Set the canvas text state to the named preset."""
    preset = FONT_STYLES[FontStyle(style)]
    canvas.font_family = preset.family
    canvas.font_size = preset.size
    canvas.fill_style = preset.fill
    canvas.text_baseline = preset.baseline


def scale_text(canvas: Canvas, text: str, max_width: float) -> ScaleResult:
    """Shrink the current font so ``text`` fits ``max_width``.

    A single proportional pass: the font size is multiplied by
    ``max_width / width`` and the text re-measured. Canvas widths scale
    linearly with the font size, so the result lands on ``max_width``.
    """
    measurement = canvas.measure_text(text)
    if measurement.width < max_width:
        return ScaleResult(metrics=measurement, offset_y=0.0)

    ratio = max_width / measurement.width
    canvas.font_size = canvas.font_size * ratio

    measurement_after = canvas.measure_text(text)
    offset_y = (measurement.height - measurement_after.height) / SCALE_OFFSET_DIVISOR
    return ScaleResult(metrics=measurement_after, offset_y=offset_y)


def draw_text(
    canvas: Canvas,
    text: str,
    x: float,
    y: float,
    style: FontStyle,
    max_width: Optional[float] = None,
) -> TextSize:
    """Draw ``text`` anchored at (x, y) and return its measured size.

    The anchor is the top-left corner, or bottom-left for the ``unit`` style.
    With ``max_width`` the font is scaled down once if the text is too wide.
    """
    apply_style(canvas, style)

    if max_width:
        scale = scale_text(canvas, text, max_width)
        y += scale.offset_y
        measurement = scale.metrics
    else:
        measurement = canvas.measure_text(text)

    canvas.fill_text(text, x, y)
    return TextSize(width=measurement.width, height=measurement.height)


def draw_text_centered(
    canvas: Canvas,
    text: str,
    x: float,
    y: float,
    style: FontStyle,
    width: float,
) -> None:
    """Draw ``text`` horizontally centered within [x, x + width], scaled to fit."""
    apply_style(canvas, style)
    scale = scale_text(canvas, text, width)
    text_x = x + (width - scale.metrics.width) / 2
    canvas.fill_text(text, text_x, y + scale.offset_y)


def format_number(value: Union[int, float]) -> str:
    """Format ``value`` the way a de-DE locale does: 1234567.8 -> '1.234.567,8'.

    Non-finite values render as the browser does: '∞', '-∞' and 'NaN'.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"

    number = Decimal(str(value))
    quantum = Decimal(1).scaleb(-MAX_FRACTION_DIGITS)
    with localcontext() as ctx:
        # Enough digits for the integer part plus the kept fraction
        ctx.prec = max(ctx.prec, number.adjusted() + MAX_FRACTION_DIGITS + 2)
        rounded = number.quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)

    text = f"{rounded:,f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def draw_unit(canvas: Canvas, value: Union[int, float], unit: str, x: float, y: float) -> None:
    """Draw a German-formatted number followed by its unit label."""
    size = draw_text(canvas, format_number(value), x, y, FontStyle.NUMBER)
    draw_text(canvas, unit, x + size.width + UNIT_GAP, y + size.height, FontStyle.UNIT)
