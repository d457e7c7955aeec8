from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from .colors import ACI_PALETTE, rgb_to_hex
from .constants import (
    DEFAULT_LAYER_NAME,
    MAX_TEXT_FONT_SIZE,
    MIN_TEXT_FONT_SIZE,
    MTEXT_LINE_SPACING,
    STACKED_TEXT_GAP,
    STACKED_TEXT_RATIO,
    STACKED_TEXT_V_GAP,
    TEXT_ASCENT_RATIO,
    TEXT_CANVAS_SCALE,
    TEXT_CHAR_WIDTH_RATIO,
    TEXT_DESCENT_RATIO,
)
from .curves import rotate_point
from .primitives import Point2D, TextQuad

_BACKSLASH = "\x01"
_OPEN_BRACE = "\x02"
_CLOSE_BRACE = "\x03"

_UNICODE_RE = re.compile(r"\\U\+([0-9A-Fa-f]{4})")
_FONT_RE = re.compile(r"\\f([^|;]*)\|?[^;]*;")
_BOLD_RE = re.compile(r"\|b(\d)")
_ITALIC_RE = re.compile(r"\|i(\d)")
_COLOR_RE = re.compile(r"\\[cC](\d+);")
_HEIGHT_RE = re.compile(r"\\H([\d.]+);", re.IGNORECASE)
_PARAGRAPH_RE = re.compile(r"\\p[^;]*;")
_WIDTH_TRACKING_RE = re.compile(r"\\[WTQA][\d.+-]+;", re.IGNORECASE)
_TOGGLE_RE = re.compile(r"\\[LOKlok]")
_STACKED_RE = re.compile(r"\\S([^^/;]*)[\^/]([^;]*);")
_UNKNOWN_CODE_RE = re.compile(r"\\[a-zA-Z][^;]*;")


@dataclass(frozen=True)
class MTextLine:
    text: str
    color: str | None = None
    height: float | None = None
    bold: bool = False
    italic: bool = False
    font_family: str | None = None
    stacked_top: str | None = None
    stacked_bottom: str | None = None


def replace_special_chars(text: str) -> str:
    text = re.sub(r"%%[dD]", "\u00b0", text)
    text = re.sub(r"%%[pP]", "\u00b1", text)
    text = re.sub(r"%%[cC]", "\u00d8", text)
    text = re.sub(r"%%[uUoO]", "", text)
    return re.sub(r"%%(\d{3})", lambda m: chr(int(m.group(1))), text)


def protect_literals(text: str) -> str:
    return text.replace("\\\\", _BACKSLASH).replace("\\{", _OPEN_BRACE).replace("\\}", _CLOSE_BRACE)


def restore_literals(text: str) -> str:
    return text.replace(_BACKSLASH, "\\").replace(_OPEN_BRACE, "{").replace(_CLOSE_BRACE, "}")


def replace_unicode_escapes(text: str) -> str:
    return _UNICODE_RE.sub(lambda m: chr(int(m.group(1), 16)), text)


def _aci_override(index: int, current: str | None) -> str | None:
    if index in (0, 256):
        return None
    if 1 <= index <= 255:
        return rgb_to_hex(ACI_PALETTE[index])
    return current


def parse_mtext_content(raw_text: str) -> list[MTextLine]:
    """Split MTEXT content into styled lines.

    Font, bold, italic and height carry over into following lines. A color
    override applies to the rest of its own line only, so a line without a
    ``\\C`` code renders in the entity color.
    """
    text = protect_literals(raw_text)
    text = replace_unicode_escapes(text)
    text = replace_special_chars(text)

    lines: list[MTextLine] = []
    current_height: float | None = None
    current_bold = False
    current_italic = False
    current_font: str | None = None

    for raw_line in re.split(r"\\P", text):
        line_color: str | None = None
        line_font = current_font
        line_bold = current_bold
        line_italic = current_italic
        first_font = True

        def _font(match: re.Match[str]) -> str:
            nonlocal current_font, current_bold, current_italic
            nonlocal line_font, line_bold, line_italic, first_font
            if match.group(1):
                current_font = match.group(1)
            bold = _BOLD_RE.search(match.group(0))
            italic = _ITALIC_RE.search(match.group(0))
            if bold:
                current_bold = bold.group(1) == "1"
            if italic:
                current_italic = italic.group(1) == "1"
            if first_font:
                line_font, line_bold, line_italic = current_font, current_bold, current_italic
                first_font = False
            return ""

        def _color(match: re.Match[str]) -> str:
            nonlocal line_color
            line_color = _aci_override(int(match.group(1)), line_color)
            return ""

        def _height(match: re.Match[str]) -> str:
            nonlocal current_height
            try:
                current_height = float(match.group(1))
            except ValueError:
                pass
            return ""

        stacked_top: str | None = None
        stacked_bottom: str | None = None

        def _stacked(match: re.Match[str]) -> str:
            nonlocal stacked_top, stacked_bottom
            stacked_top = match.group(1).strip()
            stacked_bottom = match.group(2).strip()
            return ""

        clean = _FONT_RE.sub(_font, raw_line)
        clean = _COLOR_RE.sub(_color, clean)
        clean = _HEIGHT_RE.sub(_height, clean)
        clean = _PARAGRAPH_RE.sub("", clean)
        clean = _WIDTH_TRACKING_RE.sub("", clean)
        clean = _TOGGLE_RE.sub("", clean)
        clean = _STACKED_RE.sub(_stacked, clean)
        clean = clean.replace("\\~", " ").replace("\\N", " ")
        clean = re.sub(r"[{}]", "", clean)
        clean = _UNKNOWN_CODE_RE.sub("", clean)
        clean = restore_literals(clean)

        if clean or stacked_top or stacked_bottom:
            lines.append(
                MTextLine(
                    text=clean,
                    color=line_color,
                    height=current_height,
                    bold=line_bold,
                    italic=line_italic,
                    font_family=line_font,
                    stacked_top=stacked_top,
                    stacked_bottom=stacked_bottom,
                )
            )
    return lines


def mtext_halign(attachment_point: int | None) -> str:
    if not attachment_point:
        return "left"
    column = (attachment_point - 1) % 3
    return ("left", "center", "right")[column]


def mtext_valign(attachment_point: int | None) -> str:
    if not attachment_point:
        return "top"
    row = -(-attachment_point // 3)
    if row == 2:
        return "middle"
    if row == 3:
        return "bottom"
    return "top"


def text_halign(halign: int | None) -> str:
    if halign in (1, 4):
        return "center"
    if halign == 2:
        return "right"
    return "left"


def text_valign(valign: int | None) -> str:
    if valign == 3:
        return "top"
    if valign == 2:
        return "middle"
    return "bottom"


@dataclass(frozen=True)
class TextMetrics:
    width: float
    ascent: float
    descent: float
    font_size: float


def font_size_for(height: float) -> float:
    return min(max(height * TEXT_CANVAS_SCALE, MIN_TEXT_FONT_SIZE), MAX_TEXT_FONT_SIZE)


def measure_text(text: str, height: float) -> TextMetrics:
    return TextMetrics(
        width=len(text) * height * TEXT_CHAR_WIDTH_RATIO,
        ascent=height * TEXT_ASCENT_RATIO,
        descent=height * TEXT_DESCENT_RATIO,
        font_size=font_size_for(height),
    )


@dataclass(frozen=True)
class StackedLayout:
    main_width: float
    stacked_x: float
    stacked_width: float
    top_baseline: float
    bottom_baseline: float
    top_extent: float
    bottom_extent: float

    @property
    def width(self) -> float:
        return self.stacked_x + self.stacked_width


def stacked_text_layout(main_text: str, top: str, bottom: str, height: float) -> StackedLayout:
    """Place a stacked fraction next to ``main_text``.

    Offsets are in drawing units relative to the main text baseline. The
    fraction is centred on the visual centre of the main text with a fixed
    vertical gap between numerator and denominator.
    """
    main = measure_text(main_text, height)
    unit = height / main.font_size
    stacked_height = height * STACKED_TEXT_RATIO
    top_metrics = measure_text(top, stacked_height)
    bottom_metrics = measure_text(bottom, stacked_height)

    centre = main.ascent / 2
    half_gap = STACKED_TEXT_V_GAP * unit / 2
    top_extent = max(main.ascent, centre + half_gap + top_metrics.ascent + top_metrics.descent)
    bottom_extent = max(
        main.descent, bottom_metrics.ascent + bottom_metrics.descent + half_gap - centre
    )
    gap = STACKED_TEXT_GAP * unit if main_text else 0.0
    main_width = main.width if main_text else 0.0
    return StackedLayout(
        main_width=main_width,
        stacked_x=main_width + gap,
        top_baseline=centre + half_gap + top_metrics.descent,
        bottom_baseline=centre - half_gap - bottom_metrics.ascent,
        top_extent=top_extent,
        bottom_extent=bottom_extent,
        stacked_width=max(top_metrics.width, bottom_metrics.width),
    )


def make_text_quad(
    text: str,
    position: Point2D,
    height: float,
    color: str,
    layer: str = DEFAULT_LAYER_NAME,
    *,
    rotation: float = 0.0,
    halign: str = "left",
    valign: str = "bottom",
    bold: bool = False,
    italic: bool = False,
    font_family: str | None = None,
    stacked_top: str | None = None,
    stacked_bottom: str | None = None,
) -> TextQuad:
    metrics = measure_text(text, height)
    width = metrics.width
    ascent = metrics.ascent
    descent = metrics.descent
    layout = None
    if stacked_top or stacked_bottom:
        stacked = stacked_text_layout(text, stacked_top or "", stacked_bottom or "", height)
        width = stacked.width
        ascent = stacked.top_extent
        descent = stacked.bottom_extent
        layout = (stacked.stacked_x, stacked.top_baseline, stacked.bottom_baseline)
    return TextQuad(
        text=text,
        position=position,
        height=height,
        rotation=rotation,
        halign=halign,
        valign=valign,
        width=width,
        ascent=ascent,
        descent=descent,
        bold=bold,
        italic=italic,
        font_family=font_family,
        stacked_top=stacked_top,
        stacked_bottom=stacked_bottom,
        stacked_layout=layout,
        color=color,
        layer=layer,
    )


def layout_mtext(
    lines: Sequence[MTextLine],
    position: Point2D,
    default_height: float,
    color: str,
    layer: str,
    *,
    rotation: float = 0.0,
    halign: str = "left",
    valign: str = "top",
) -> list[TextQuad]:
    """Stack parsed MTEXT lines downwards from ``position``.

    A single line keeps the entity's vertical alignment. Several lines are each
    top-aligned and the whole block is shifted so the attachment point lands on
    its top, middle or bottom edge.
    """
    if not lines:
        return []
    if len(lines) == 1:
        line = lines[0]
        return [
            make_text_quad(
                line.text,
                position,
                line.height or default_height,
                line.color or color,
                layer,
                rotation=rotation,
                halign=halign,
                valign=valign,
                bold=line.bold,
                italic=line.italic,
                font_family=line.font_family,
                stacked_top=line.stacked_top,
                stacked_bottom=line.stacked_bottom,
            )
        ]

    offsets: list[float] = []
    y_offset = 0.0
    total_height = 0.0
    for line in lines:
        h = line.height or default_height
        offsets.append(y_offset)
        y_offset -= h * MTEXT_LINE_SPACING
        total_height += h * MTEXT_LINE_SPACING
    last_height = lines[-1].height or default_height
    total_height = total_height - last_height * MTEXT_LINE_SPACING + last_height

    group_offset = 0.0
    if valign == "middle":
        group_offset = total_height / 2
    elif valign == "bottom":
        group_offset = total_height

    quads = []
    for line, offset in zip(lines, offsets):
        dx, dy = rotate_point((0.0, group_offset + offset), rotation)
        quads.append(
            make_text_quad(
                line.text,
                (position[0] + dx, position[1] + dy),
                line.height or default_height,
                line.color or color,
                layer,
                rotation=rotation,
                halign=halign,
                valign="top",
                bold=line.bold,
                italic=line.italic,
                font_family=line.font_family,
                stacked_top=line.stacked_top,
                stacked_bottom=line.stacked_bottom,
            )
        )
    return quads
