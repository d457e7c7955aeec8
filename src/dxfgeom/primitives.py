from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import ClassVar, Union

from .constants import DEFAULT_ENTITY_COLOR, DEFAULT_LAYER_NAME, POINT_MARKER_SIZE

Point2D = tuple[float, float]
Triangle = tuple[Point2D, Point2D, Point2D]


@dataclass(frozen=True)
class Polyline:
    kind: ClassVar[str] = "polyline"

    points: tuple[Point2D, ...]
    closed: bool = False
    dash_pattern: tuple[float, ...] | None = None
    color: str = DEFAULT_ENTITY_COLOR
    layer: str = DEFAULT_LAYER_NAME


@dataclass(frozen=True)
class Triangles:
    kind: ClassVar[str] = "triangles"

    triangles: tuple[Triangle, ...]
    color: str = DEFAULT_ENTITY_COLOR
    layer: str = DEFAULT_LAYER_NAME


@dataclass(frozen=True)
class Arrow:
    kind: ClassVar[str] = "arrow"

    tip: Point2D
    base1: Point2D
    base2: Point2D
    color: str = DEFAULT_ENTITY_COLOR
    layer: str = DEFAULT_LAYER_NAME

    @property
    def points(self) -> tuple[Point2D, Point2D, Point2D]:
        return (self.tip, self.base1, self.base2)


@dataclass(frozen=True)
class PointMarker:
    kind: ClassVar[str] = "point"

    position: Point2D
    size: float = POINT_MARKER_SIZE
    color: str = DEFAULT_ENTITY_COLOR
    layer: str = DEFAULT_LAYER_NAME


@dataclass(frozen=True)
class TextQuad:
    kind: ClassVar[str] = "text"

    text: str
    position: Point2D
    height: float
    rotation: float = 0.0
    halign: str = "left"
    valign: str = "bottom"
    width: float = 0.0
    ascent: float = 0.0
    descent: float = 0.0
    bold: bool = False
    italic: bool = False
    font_family: str | None = None
    stacked_top: str | None = None
    stacked_bottom: str | None = None
    stacked_layout: tuple[float, float, float] | None = None
    color: str = DEFAULT_ENTITY_COLOR
    layer: str = DEFAULT_LAYER_NAME


Primitive = Union[Polyline, Triangles, Arrow, PointMarker, TextQuad]


@dataclass(frozen=True)
class Affine2D:
    """Row-major 2D affine map: ``x' = a*x + c*y + e``, ``y' = b*x + d*y + f``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def translation(cls, dx: float, dy: float) -> "Affine2D":
        return cls(e=dx, f=dy)

    @classmethod
    def scaling(cls, sx: float, sy: float) -> "Affine2D":
        return cls(a=sx, d=sy)

    @classmethod
    def rotation(cls, angle: float) -> "Affine2D":
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        return cls(a=cos_a, b=sin_a, c=-sin_a, d=cos_a)

    def then(self, other: "Affine2D") -> "Affine2D":
        # apply self first, then other
        return Affine2D(
            a=other.a * self.a + other.c * self.b,
            b=other.b * self.a + other.d * self.b,
            c=other.a * self.c + other.c * self.d,
            d=other.b * self.c + other.d * self.d,
            e=other.a * self.e + other.c * self.f + other.e,
            f=other.b * self.e + other.d * self.f + other.f,
        )

    def apply(self, point: Point2D) -> Point2D:
        x, y = point
        return (self.a * x + self.c * y + self.e, self.b * x + self.d * y + self.f)

    @property
    def is_identity(self) -> bool:
        return self == Affine2D()

    @property
    def rotation_angle(self) -> float:
        return math.atan2(self.b, self.a)

    @property
    def y_scale(self) -> float:
        return math.hypot(self.c, self.d)

    @property
    def x_scale(self) -> float:
        return math.hypot(self.a, self.b)


def transform_primitive(primitive: Primitive, matrix: Affine2D) -> Primitive:
    if matrix.is_identity:
        return primitive
    if isinstance(primitive, Polyline):
        return replace(primitive, points=tuple(matrix.apply(p) for p in primitive.points))
    if isinstance(primitive, Triangles):
        return replace(
            primitive,
            triangles=tuple(
                (matrix.apply(t[0]), matrix.apply(t[1]), matrix.apply(t[2])) for t in primitive.triangles
            ),
        )
    if isinstance(primitive, Arrow):
        return replace(
            primitive,
            tip=matrix.apply(primitive.tip),
            base1=matrix.apply(primitive.base1),
            base2=matrix.apply(primitive.base2),
        )
    if isinstance(primitive, PointMarker):
        return replace(primitive, position=matrix.apply(primitive.position))
    if isinstance(primitive, TextQuad):
        scale = matrix.y_scale
        return replace(
            primitive,
            position=matrix.apply(primitive.position),
            rotation=primitive.rotation + matrix.rotation_angle,
            height=primitive.height * scale,
            width=primitive.width * matrix.x_scale,
            ascent=primitive.ascent * scale,
            descent=primitive.descent * scale,
        )
    raise TypeError(f"unsupported primitive: {type(primitive).__name__}")


def primitive_to_dict(primitive: Primitive) -> dict[str, object]:
    out: dict[str, object] = {"kind": primitive.kind, "layer": primitive.layer, "color": primitive.color}
    if isinstance(primitive, Polyline):
        out["points"] = [list(p) for p in primitive.points]
        out["closed"] = primitive.closed
        if primitive.dash_pattern:
            out["dash_pattern"] = list(primitive.dash_pattern)
    elif isinstance(primitive, Triangles):
        out["triangles"] = [[list(p) for p in triangle] for triangle in primitive.triangles]
    elif isinstance(primitive, Arrow):
        out["points"] = [list(p) for p in primitive.points]
    elif isinstance(primitive, PointMarker):
        out["position"] = list(primitive.position)
        out["size"] = primitive.size
    elif isinstance(primitive, TextQuad):
        out.update(
            text=primitive.text,
            position=list(primitive.position),
            height=primitive.height,
            rotation=primitive.rotation,
            halign=primitive.halign,
            valign=primitive.valign,
            width=primitive.width,
            ascent=primitive.ascent,
            descent=primitive.descent,
            bold=primitive.bold,
            italic=primitive.italic,
        )
        if primitive.font_family:
            out["font_family"] = primitive.font_family
        if primitive.stacked_top is not None or primitive.stacked_bottom is not None:
            out["stacked"] = [primitive.stacked_top or "", primitive.stacked_bottom or ""]
    return out
