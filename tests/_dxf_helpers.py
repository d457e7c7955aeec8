from __future__ import annotations

from typing import Iterable, Sequence

from dxfgeom.entity import Drawing
from dxfgeom.parser import parse_dxf

Pair = tuple[int, object]


def _format(value: object) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def dxf_text(pairs: Iterable[Pair], newline: str = "\n") -> str:
    lines: list[str] = []
    for code, value in pairs:
        lines.append(str(code))
        lines.append(_format(value))
    return newline.join(lines) + newline


def section(name: str, body: Sequence[Pair]) -> list[Pair]:
    return [(0, "SECTION"), (2, name), *body, (0, "ENDSEC")]


def table(name: str, records: Sequence[Pair]) -> list[Pair]:
    return [(0, "TABLE"), (2, name), (70, 0), *records, (0, "ENDTAB")]


def layer_record(name: str, color: int = 7, flags: int = 0, line_type: str = "CONTINUOUS") -> list[Pair]:
    return [(0, "LAYER"), (2, name), (70, flags), (62, color), (6, line_type)]


def ltype_record(name: str, pattern: Sequence[float]) -> list[Pair]:
    pairs: list[Pair] = [(0, "LTYPE"), (2, name), (3, name.lower()), (72, 65), (73, len(pattern))]
    pairs.append((40, sum(abs(value) for value in pattern)))
    pairs.extend((49, value) for value in pattern)
    return pairs


def block(name: str, entities: Sequence[Pair], base: tuple[float, float] = (0.0, 0.0)) -> list[Pair]:
    return [
        (0, "BLOCK"),
        (8, "0"),
        (2, name),
        (70, 0),
        (10, base[0]),
        (20, base[1]),
        (30, 0.0),
        (3, name),
        *entities,
        (0, "ENDBLK"),
        (8, "0"),
    ]


def line(
    x1: float,
    y1: float,
    x2: float,
    y2: float,
    layer: str = "0",
    color: int | None = None,
    extra: Sequence[Pair] = (),
) -> list[Pair]:
    pairs: list[Pair] = [(0, "LINE"), (8, layer)]
    if color is not None:
        pairs.append((62, color))
    pairs.extend(extra)
    pairs.extend([(10, x1), (20, y1), (30, 0.0), (11, x2), (21, y2), (31, 0.0)])
    return pairs


def insert(
    name: str,
    x: float = 0.0,
    y: float = 0.0,
    layer: str = "0",
    color: int | None = None,
    extra: Sequence[Pair] = (),
) -> list[Pair]:
    pairs: list[Pair] = [(0, "INSERT"), (8, layer), (2, name)]
    if color is not None:
        pairs.append((62, color))
    pairs.extend(extra)
    pairs.extend([(10, x), (20, y), (30, 0.0)])
    return pairs


def document(
    entities: Sequence[Pair] = (),
    *,
    header: Sequence[Pair] = (),
    tables: Sequence[Pair] = (),
    blocks: Sequence[Pair] = (),
) -> list[Pair]:
    pairs: list[Pair] = []
    if header:
        pairs.extend(section("HEADER", header))
    if tables:
        pairs.extend(section("TABLES", tables))
    if blocks:
        pairs.extend(section("BLOCKS", blocks))
    pairs.extend(section("ENTITIES", entities))
    pairs.append((0, "EOF"))
    return pairs


def parse_pairs(pairs: Iterable[Pair], newline: str = "\n") -> Drawing:
    return parse_dxf(dxf_text(pairs, newline))


def parse_entities(*entities: Sequence[Pair], **sections: Sequence[Pair]) -> Drawing:
    body: list[Pair] = []
    for entity in entities:
        body.extend(entity)
    return parse_pairs(document(body, **sections))
