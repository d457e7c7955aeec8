from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from .constants import DEFAULT_LAYER_NAME

Point3D = tuple[float, float, float]


@dataclass
class Vertex:
    x: float = 0.0
    y: float = 0.0
    z: float | None = None
    bulge: float | None = None
    start_width: float | None = None
    end_width: float | None = None
    faces: tuple[int, ...] | None = None

    def to_tuple(self) -> Point3D:
        return (self.x, self.y, self.z or 0.0)


@dataclass(frozen=True)
class Entity:
    dxftype: str
    handle: str | int
    dxf: dict[str, Any]

    @property
    def layer(self) -> str:
        return self.dxf.get("layer") or DEFAULT_LAYER_NAME

    @property
    def color_index(self) -> int | None:
        return self.dxf.get("color_index")

    @property
    def true_color(self) -> int | None:
        return self.dxf.get("true_color")

    def to_points(self) -> list[Point3D]:
        if self.dxftype in {"LINE", "LWPOLYLINE", "POLYLINE", "LEADER", "3DFACE"}:
            return [v.to_tuple() for v in self.dxf.get("vertices", [])]
        if self.dxftype == "SOLID":
            return [v.to_tuple() for v in self.dxf.get("points", [])]
        if self.dxftype in {"CIRCLE", "ARC", "ELLIPSE"}:
            return [self.dxf["center"].to_tuple()]
        if self.dxftype in {"POINT", "INSERT"}:
            return [self.dxf["position"].to_tuple()]
        if self.dxftype in {"TEXT", "MTEXT", "ATTDEF"}:
            position = self.dxf.get("position") or self.dxf.get("start_point")
            return [position.to_tuple()] if position is not None else []
        if self.dxftype == "SPLINE":
            points = self.dxf.get("control_points") or self.dxf.get("fit_points") or []
            return [v.to_tuple() for v in points]
        if self.dxftype == "DIMENSION":
            points = [
                self.dxf[key].to_tuple()
                for key in ("linear_or_angular_point1", "linear_or_angular_point2")
                if key in self.dxf
            ]
            if points:
                return points
            if "anchor_point" in self.dxf:
                return [self.dxf["anchor_point"].to_tuple()]
            return []
        raise NotImplementedError(f"to_points is not supported for {self.dxftype}")


@dataclass(frozen=True)
class Layer:
    name: str
    visible: bool = True
    color_index: int = 7
    color: int | None = None
    true_color: int | None = None
    frozen: bool = False
    line_type: str | None = None


@dataclass(frozen=True)
class LineType:
    name: str
    description: str = ""
    pattern_length: float = 0.0
    pattern: tuple[float, ...] = ()


@dataclass(frozen=True)
class ViewPort:
    name: str
    lower_left: Vertex | None = None
    upper_right: Vertex | None = None
    center: Vertex | None = None
    height: float | None = None
    aspect_ratio: float | None = None


@dataclass(frozen=True)
class Tables:
    layers: dict[str, Layer] = field(default_factory=dict)
    line_types: dict[str, LineType] = field(default_factory=dict)
    view_ports: tuple[ViewPort, ...] = ()


@dataclass(frozen=True)
class Block:
    name: str
    entities: tuple[Entity, ...] = ()
    base_point: Vertex | None = None
    paper_space: bool = False
    handle: str | None = None
    layer: str | None = None
    flags: int = 0
    owner_handle: str | None = None
    xref_path: str | None = None
    name2: str | None = None


@dataclass(frozen=True)
class Drawing:
    entities: tuple[Entity, ...] = ()
    header: dict[str, Any] = field(default_factory=dict)
    tables: Tables = field(default_factory=Tables)
    blocks: dict[str, Block] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @property
    def layers(self) -> dict[str, Layer]:
        return self.tables.layers

    @property
    def version(self) -> str | None:
        value = self.header.get("$ACADVER")
        return None if value is None else str(value)

    def query(self, types: str | Iterable[str] | None = None) -> Iterator[Entity]:
        wanted = _normalize_types(types)
        for entity in self.entities:
            if wanted is None or entity.dxftype in wanted:
                yield entity


def _normalize_types(types: str | Iterable[str] | None) -> set[str] | None:
    if types is None:
        return None
    if isinstance(types, str):
        names = [name for name in re.split(r"[,\s]+", types) if name]
    else:
        names = [str(name) for name in types]
    if not names or any(name == "*" for name in names):
        return None
    return {name.strip().upper() for name in names}
