from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .colors import aci_to_rgb
from .entities import DEFAULT_ENTITY_PARSERS, EntityParser
from .entity import Block, Drawing, Entity, Layer, LineType, Tables, ViewPort
from .errors import EmptyInputError
from .reader import parse_point_inline
from .scanner import Group, Scanner

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass
class _ParseState:
    parsers: Mapping[str, EntityParser]
    last_handle: int = 0
    warnings: list[str] = field(default_factory=list)

    def next_handle(self) -> int:
        self.last_handle += 1
        return self.last_handle


def read(path: str | Path, encoding: str = "utf-8") -> Drawing:
    text = Path(path).read_text(encoding=encoding, errors="replace")
    return parse_dxf(text)


def parse_dxf(text: str, parsers: Mapping[str, EntityParser] | None = None) -> Drawing:
    if not text or not text.strip():
        raise EmptyInputError("Empty file")
    scanner = Scanner(_LINE_BREAK.split(text))
    state = _ParseState(parsers=DEFAULT_ENTITY_PARSERS if parsers is None else parsers)

    header: dict[str, Any] = {}
    tables = Tables()
    blocks: dict[str, Block] = {}
    entities: list[Entity] = []

    group = scanner.next()
    while not scanner.is_eof():
        if not group.is_marker("SECTION"):
            if not scanner.has_next():
                break
            group = scanner.next()
            continue
        if not scanner.has_next():
            break
        group = scanner.next()
        if group.code != 2:
            logger.debug("SECTION without a name (code %s), skipping", group.code)
            _skip_to_endsec(scanner)
        elif group.value == "HEADER":
            header = _parse_header(scanner)
        elif group.value == "TABLES":
            tables = _parse_tables(scanner)
        elif group.value == "BLOCKS":
            blocks = _parse_blocks(scanner, state)
        elif group.value == "ENTITIES":
            entities.extend(_parse_entities(scanner, state, for_block=False))
        else:
            logger.debug("skipping unsupported section %s", group.value)
            _skip_to_endsec(scanner)
        if scanner.is_eof() or not scanner.has_next():
            break
        group = scanner.next()

    return Drawing(
        entities=tuple(entities),
        header=header,
        tables=tables,
        blocks=blocks,
        warnings=tuple(state.warnings),
    )


def _skip_to_endsec(scanner: Scanner) -> None:
    while scanner.has_next():
        group = scanner.next()
        if group.is_marker("ENDSEC"):
            return


def _parse_header(scanner: Scanner) -> dict[str, Any]:
    header: dict[str, Any] = {}
    name: str | None = None
    while scanner.has_next():
        group = scanner.next()
        if group.is_marker("ENDSEC"):
            break
        if group.code == 9:
            name = str(group.value)
        elif name is None:
            continue
        elif group.code == 10:
            header[name] = parse_point_inline(scanner, group)
        else:
            header[name] = group.value
    return header


def _read_record(scanner: Scanner) -> list[Group]:
    groups: list[Group] = []
    while scanner.has_next():
        group = scanner.next()
        if group.code == 0:
            scanner.rewind()
            break
        if group.code in (10, 11, 12):
            groups.append(Group(group.code, parse_point_inline(scanner, group)))
        else:
            groups.append(group)
    return groups


def _parse_tables(scanner: Scanner) -> Tables:
    layers: dict[str, Layer] = {}
    line_types: dict[str, LineType] = {}
    view_ports: list[ViewPort] = []
    current_table: str | None = None
    while scanner.has_next():
        group = scanner.next()
        if group.code != 0:
            continue
        if group.value == "ENDSEC":
            break
        if group.value == "TABLE":
            table_name = scanner.next()
            current_table = str(table_name.value) if table_name.code == 2 else None
            _read_record(scanner)
            continue
        if group.value == "ENDTAB":
            current_table = None
            continue
        record = _read_record(scanner)
        if current_table == "LAYER" and group.value == "LAYER":
            layer = _build_layer(record)
            if layer is not None:
                layers[layer.name] = layer
        elif current_table == "LTYPE" and group.value == "LTYPE":
            line_type = _build_line_type(record)
            if line_type is not None:
                line_types[line_type.name] = line_type
        elif current_table == "VPORT" and group.value == "VPORT":
            view_ports.append(_build_view_port(record))
        else:
            logger.debug("skipping table record %s", group.value)
    return Tables(layers=layers, line_types=line_types, view_ports=tuple(view_ports))


def _build_layer(record: list[Group]) -> Layer | None:
    fields: dict[str, Any] = {}
    for group in record:
        if group.code == 2:
            fields["name"] = group.value
        elif group.code == 6:
            fields["line_type"] = group.value
        elif group.code == 62:
            fields["visible"] = group.value >= 0
            fields["color_index"] = abs(group.value)
            fields["color"] = aci_to_rgb(abs(group.value))
        elif group.code == 70:
            fields["frozen"] = bool(group.value & 1) or bool(group.value & 2)
        elif group.code == 420:
            fields["true_color"] = group.value
    if "name" not in fields:
        return None
    return Layer(**fields)


def _build_line_type(record: list[Group]) -> LineType | None:
    fields: dict[str, Any] = {}
    pattern: list[float] = []
    for group in record:
        if group.code == 2:
            fields["name"] = group.value
        elif group.code == 3:
            fields["description"] = group.value
        elif group.code == 40:
            fields["pattern_length"] = group.value
        elif group.code == 49:
            pattern.append(group.value)
    if "name" not in fields:
        return None
    return LineType(pattern=tuple(pattern), **fields)


def _build_view_port(record: list[Group]) -> ViewPort:
    fields: dict[str, Any] = {"name": ""}
    for group in record:
        if group.code == 2:
            fields["name"] = group.value
        elif group.code == 10:
            fields["lower_left"] = group.value
        elif group.code == 11:
            fields["upper_right"] = group.value
        elif group.code == 12:
            fields["center"] = group.value
        elif group.code in (40, 45):
            fields["height"] = group.value
        elif group.code == 41:
            fields["aspect_ratio"] = group.value
    return ViewPort(**fields)


def _parse_blocks(scanner: Scanner, state: _ParseState) -> dict[str, Block]:
    blocks: dict[str, Block] = {}
    while scanner.has_next():
        group = scanner.next()
        if group.is_marker("ENDSEC"):
            break
        if group.is_marker("BLOCK"):
            block = _parse_block(scanner, state)
            if block.name:
                blocks[block.name] = block
    return blocks


def _parse_block(scanner: Scanner, state: _ParseState) -> Block:
    fields: dict[str, Any] = {"name": ""}
    entities: list[Entity] = []
    while scanner.has_next():
        group = scanner.next()
        code = group.code
        if code == 0:
            if group.value != "ENDBLK":
                scanner.rewind()
                entities.extend(_parse_entities(scanner, state, for_block=True))
            break
        if code == 1:
            fields["xref_path"] = group.value
        elif code == 2:
            fields["name"] = group.value
        elif code == 3:
            fields["name2"] = group.value
        elif code == 5:
            fields["handle"] = group.value
        elif code == 8:
            fields["layer"] = group.value
        elif code == 10:
            fields["base_point"] = parse_point_inline(scanner, group)
        elif code == 67:
            fields["paper_space"] = bool(group.value)
        elif code == 70:
            fields["flags"] = group.value
        elif code == 330:
            fields["owner_handle"] = group.value
    return Block(entities=tuple(entities), **fields)


_SECTION_TERMINATORS = ("ENDSEC", "ENDBLK", "EOF")


def _parse_entities(scanner: Scanner, state: _ParseState, *, for_block: bool) -> list[Entity]:
    entities: list[Entity] = []
    group: Group | None = scanner.next()
    while group is not None:
        if group.code != 0:
            group = scanner.next() if scanner.has_next() else None
            continue
        if group.value in _SECTION_TERMINATORS:
            if for_block and group.value != "EOF":
                # the block reader consumes its own terminator
                scanner.rewind()
            break
        dxftype = str(group.value)
        parser = state.parsers.get(dxftype)
        if parser is None:
            logger.debug("skipping unsupported entity %s", dxftype)
            group = scanner.next() if scanner.has_next() else None
            continue
        try:
            payload = parser(scanner, group)
        except Exception as exc:
            message = f"Damaged {dxftype} entity skipped: {exc}"
            logger.warning(message)
            state.warnings.append(message)
            group = _skip_to_next_entity(scanner)
            continue
        entities.append(_build_entity(payload, state))
        group = scanner.last_read_group
    logger.debug("parsed %d entities (block=%s)", len(entities), for_block)
    return entities


def _skip_to_next_entity(scanner: Scanner) -> Group | None:
    if scanner.is_eof():
        return scanner.last_read_group
    while scanner.has_next():
        group = scanner.next()
        if group.code == 0:
            return group
    return None


def _build_entity(payload: dict[str, Any], state: _ParseState) -> Entity:
    dxftype = str(payload.pop("type"))
    handle = payload.pop("handle", None)
    if handle is None:
        handle = state.next_handle()
    return Entity(dxftype=dxftype, handle=handle, dxf=payload)

