from __future__ import annotations

import pytest

from dxfgeom.colors import (
    ACI_PALETTE,
    BYBLOCK,
    BYLAYER,
    aci_to_hex,
    layer_color,
    resolve_entity_color,
    rgb_to_hex,
)
from dxfgeom.entity import Entity, Layer


def _entity(**dxf) -> Entity:
    return Entity(dxftype="LINE", handle=1, dxf=dxf)


def test_palette_has_every_index() -> None:
    assert len(ACI_PALETTE) == 256
    assert ACI_PALETTE[1] == 0xFF0000
    assert ACI_PALETTE[5] == 0x0000FF
    assert ACI_PALETTE[10] == 0xFF0000


@pytest.mark.parametrize(
    ("index", "expected"),
    [
        (1, "#ff0000"),
        (3, "#00ff00"),
        (7, "#000000"),
        (255, "#000000"),
        (300, "#000000"),
    ],
)
def test_aci_to_hex(index: int, expected: str) -> None:
    assert aci_to_hex(index) == expected


def test_rgb_to_hex_masks_to_24_bits() -> None:
    assert rgb_to_hex(0x12345678) == "#345678"


def test_true_color_wins_over_index() -> None:
    entity = _entity(color_index=1, true_color=0x00FF00)
    assert resolve_entity_color(entity, {}) == "#00ff00"


def test_bylayer_uses_layer_color() -> None:
    layers = {"WALLS": Layer(name="WALLS", color_index=5)}
    entity = _entity(layer="WALLS", color_index=BYLAYER)
    assert resolve_entity_color(entity, layers) == "#0000ff"


def test_byblock_uses_block_color_or_default() -> None:
    entity = _entity(color_index=BYBLOCK)
    assert resolve_entity_color(entity, {}, block_color="#123456") == "#123456"
    assert resolve_entity_color(entity, {}) == "#000000"


def test_unknown_layer_falls_back_to_default() -> None:
    assert resolve_entity_color(_entity(layer="MISSING"), {}) == "#000000"


def test_layer_true_color() -> None:
    assert layer_color(Layer(name="A", color_index=1, true_color=0xABCDEF)) == "#abcdef"
    assert layer_color(Layer(name="B", color_index=0)) == "#000000"
