from __future__ import annotations

import colorsys
from typing import Mapping

from .constants import DEFAULT_ENTITY_COLOR
from .entity import Entity, Layer

BYBLOCK = 0
BYLAYER = 256

_BASE_COLORS = (
    0x000000,
    0xFF0000,
    0xFFFF00,
    0x00FF00,
    0x00FFFF,
    0x0000FF,
    0xFF00FF,
    0xFFFFFF,
    0x808080,
    0xC0C0C0,
)
_SHADE_VALUES = (255, 189, 129, 104, 79)
_GRAY_COLORS = (0x333333, 0x505050, 0x696969, 0x828282, 0xBEBEBE, 0xFFFFFF)


def _build_aci_palette() -> tuple[int, ...]:
    # 10..249 are 24 hues in 15 degree steps, each with five shades of a
    # full and a pale variant; 250..255 are grays.
    palette = list(_BASE_COLORS)
    for index in range(10, 250):
        hue_step, shade = divmod(index - 10, 10)
        value = _SHADE_VALUES[shade // 2]
        channels = colorsys.hsv_to_rgb(hue_step * 15 / 360.0, 1.0, 1.0)
        if shade % 2:
            channels = tuple(2 / 3 + c / 3 for c in channels)
        r, g, b = (int(round(c * value)) for c in channels)
        palette.append((r << 16) | (g << 8) | b)
    palette.extend(_GRAY_COLORS)
    return tuple(palette)


ACI_PALETTE: tuple[int, ...] = _build_aci_palette()


def rgb_to_hex(rgb: int) -> str:
    return f"#{rgb & 0xFFFFFF:06x}"


def aci_to_rgb(index: int) -> int | None:
    if 0 <= index < len(ACI_PALETTE):
        return ACI_PALETTE[index]
    return None


def aci_to_hex(index: int) -> str:
    # white on a light background is drawn black
    if index in (7, 255):
        return DEFAULT_ENTITY_COLOR
    rgb = aci_to_rgb(index)
    if rgb is None:
        return DEFAULT_ENTITY_COLOR
    return rgb_to_hex(rgb)


def layer_color(layer: Layer) -> str:
    if layer.true_color is not None:
        return rgb_to_hex(layer.true_color)
    if 1 <= layer.color_index <= 255:
        return aci_to_hex(layer.color_index)
    return DEFAULT_ENTITY_COLOR


def resolve_entity_color(
    entity: Entity,
    layers: Mapping[str, Layer],
    block_color: str | None = None,
) -> str:
    true_color = entity.true_color
    if true_color is not None:
        return rgb_to_hex(true_color)

    color_index = entity.color_index
    if color_index == BYBLOCK:
        return block_color or DEFAULT_ENTITY_COLOR
    if color_index is not None and 1 <= color_index <= 255:
        return aci_to_hex(color_index)

    layer = layers.get(entity.layer)
    if layer is not None:
        return layer_color(layer)
    return DEFAULT_ENTITY_COLOR
