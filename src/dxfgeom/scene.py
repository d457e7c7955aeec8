from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from .colors import layer_color, resolve_entity_color
from .constants import (
    ARROW_SIZE,
    CATMULL_ROM_SEGMENTS_MULTIPLIER,
    CIRCLE_SEGMENTS,
    DEFAULT_ENTITY_COLOR,
    LINETYPE_DOT_SIZE,
    MAX_INSERT_ARRAY_INSTANCES,
    MAX_INSERT_DEPTH,
    MIN_CATMULL_ROM_SEGMENTS,
    MIN_NURBS_SEGMENTS,
    NURBS_SEGMENTS_MULTIPLIER,
    TEXT_HEIGHT,
)
from .curves import (
    arc_points,
    catmull_rom_points,
    circle_points,
    create_arrow,
    degrees_to_radians,
    ellipse_points,
    nurbs_points,
    polyline_points,
)
from .dimensions import build_dimension
from .entity import Drawing, Entity, Vertex
from .hatch import boundary_path_to_points, generate_hatch_pattern, triangulate_outlines
from .linetypes import BYBLOCK, BYLAYER, apply_linetype_pattern, resolve_entity_linetype
from .mtext import (
    layout_mtext,
    make_text_quad,
    mtext_halign,
    mtext_valign,
    parse_mtext_content,
    replace_special_chars,
    text_halign,
    text_valign,
)
from .primitives import (
    Affine2D,
    Point2D,
    PointMarker,
    Polyline,
    Primitive,
    Triangle,
    Triangles,
    primitive_to_dict,
    transform_primitive,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SceneOptions:
    max_insert_depth: int = MAX_INSERT_DEPTH
    circle_segments: int = CIRCLE_SEGMENTS
    apply_linetypes: bool = True
    visible_layers: frozenset[str] | None = None
    include_frozen: bool = False


@dataclass(frozen=True)
class LayerState:
    name: str
    visible: bool
    frozen: bool
    color: str
    entity_count: int = 0


@dataclass
class RenderContext:
    """State threaded through one scene build.

    Nested INSERTs get a copy carrying their own depth, ByBlock color and
    ByBlock linetype. The color cache, warning list and error list are shared
    by all copies of one build.
    """

    drawing: Drawing
    options: SceneOptions
    line_type_scale: float = 1.0
    depth: int = 0
    block_color: str | None = None
    block_line_type: str | None = None
    color_cache: dict[tuple[Any, ...], str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @classmethod
    def for_drawing(cls, drawing: Drawing, options: SceneOptions | None = None) -> "RenderContext":
        scale = drawing.header.get("$LTSCALE")
        if not isinstance(scale, (int, float)) or scale <= 0:
            scale = 1.0
        return cls(drawing=drawing, options=options or SceneOptions(), line_type_scale=float(scale))

    def nested(self, block_color: str | None, block_line_type: str | None) -> "RenderContext":
        return replace(
            self,
            depth=self.depth + 1,
            block_color=block_color,
            block_line_type=block_line_type,
        )

    def color_of(self, entity: Entity) -> str:
        key = (entity.true_color, entity.color_index, entity.layer, self.block_color)
        color = self.color_cache.get(key)
        if color is None:
            color = resolve_entity_color(entity, self.drawing.layers, self.block_color)
            self.color_cache[key] = color
        return color

    def line_type_of(self, entity: Entity) -> tuple[float, ...] | None:
        return resolve_entity_linetype(
            entity,
            self.drawing.layers,
            self.drawing.tables.line_types,
            self.line_type_scale,
            self.block_line_type,
        )

    def warn(self, message: str) -> None:
        logger.warning(message)
        if message not in self.warnings:
            self.warnings.append(message)

    def fail(self, message: str) -> None:
        logger.warning(message)
        if message not in self.errors:
            self.errors.append(message)


@dataclass
class Scene:
    primitives: list[Primitive] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    unsupported: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    entity_count: int = 0

    def summary(self) -> str | None:
        total = len(self.errors) + len(self.unsupported)
        if total == 0:
            return None
        parts = []
        if self.errors:
            parts.append(f"{len(self.errors)} errors: {_sample(self.errors)}")
        if self.unsupported:
            parts.append(f"{len(self.unsupported)} unsupported types: {_sample(self.unsupported)}")
        return f"Failed to process {total} of {self.entity_count} objects. {', '.join(parts)}"

    def by_layer(self) -> dict[str, list[Primitive]]:
        grouped: dict[str, list[Primitive]] = {}
        for primitive in self.primitives:
            grouped.setdefault(primitive.layer, []).append(primitive)
        return grouped

    def to_dict(self) -> dict[str, Any]:
        return {
            "primitives": [primitive_to_dict(p) for p in self.primitives],
            "errors": list(self.errors),
            "unsupported": list(self.unsupported),
            "warnings": list(self.warnings),
            "summary": self.summary(),
        }


def _sample(messages: Sequence[str]) -> str:
    text = "; ".join(messages[:2])
    return text + "..." if len(messages) > 2 else text


def _xy(vertex: Vertex) -> Point2D:
    return (vertex.x, vertex.y)


def _stroke(
    points: Sequence[Point2D],
    color: str,
    pattern: tuple[float, ...] | None,
    ctx: RenderContext,
    *,
    closed: bool = False,
) -> list[Primitive]:
    if len(points) < 2:
        return []
    if pattern and ctx.options.apply_linetypes:
        geometry = apply_linetype_pattern(points, pattern)
        if geometry.segments or geometry.dots:
            out: list[Primitive] = [Polyline(points=segment, color=color) for segment in geometry.segments]
            out.extend(PointMarker(position=dot, size=LINETYPE_DOT_SIZE, color=color) for dot in geometry.dots)
            return out
    return [Polyline(points=tuple(points), closed=closed, dash_pattern=pattern, color=color)]


def _face_triangles(points: Sequence[Point2D], zigzag: bool = False) -> list[Triangle]:
    if len(points) < 3:
        return []
    triangles = [(points[0], points[1], points[2])]
    if len(points) >= 4 and points[3] != points[2]:
        if zigzag:
            # SOLID corners run 1-2-4-3 around the outline
            triangles.append((points[1], points[3], points[2]))
        else:
            triangles.append((points[0], points[2], points[3]))
    return triangles


EntityBuilder = Callable[[Entity, RenderContext], "list[Primitive] | None"]


def _build_line(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    vertices = entity.dxf.get("vertices") or []
    if len(vertices) < 2:
        return None
    return _stroke([_xy(vertices[0]), _xy(vertices[1])], ctx.color_of(entity), ctx.line_type_of(entity), ctx)


def _build_circle(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    center = entity.dxf.get("center")
    if center is None:
        return None
    points = circle_points(_xy(center), entity.dxf.get("radius", 0.0), ctx.options.circle_segments)
    return _stroke(points, ctx.color_of(entity), ctx.line_type_of(entity), ctx, closed=True)


def _build_arc(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    center = dxf.get("center")
    if center is None:
        return None
    points = arc_points(
        _xy(center),
        dxf.get("radius", 0.0),
        dxf.get("start_angle", 0.0),
        dxf.get("end_angle", 0.0),
        ctx.options.circle_segments,
    )
    return _stroke(points, ctx.color_of(entity), ctx.line_type_of(entity), ctx)


def _build_ellipse(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    center = dxf.get("center")
    major = dxf.get("major_axis_end_point")
    if center is None or major is None:
        return None
    points = ellipse_points(
        _xy(center),
        _xy(major),
        dxf.get("axis_ratio", 1.0),
        dxf.get("start_angle", 0.0),
        dxf.get("end_angle", 0.0),
        ctx.options.circle_segments,
    )
    return _stroke(points, ctx.color_of(entity), ctx.line_type_of(entity), ctx)


def _build_polyline(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    vertices = dxf.get("vertices") or []
    if dxf.get("is_polyface_mesh"):
        # face records carry indices, not positions
        vertices = [v for v in vertices if v.faces is None]
    if len(vertices) < 2:
        return None
    closed = bool(dxf.get("shape")) and len(vertices) > 2
    points = polyline_points(vertices, closed)
    return _stroke(points, ctx.color_of(entity), ctx.line_type_of(entity), ctx, closed=closed)


def _build_spline(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    color = ctx.color_of(entity)
    pattern = ctx.line_type_of(entity)
    control_points = dxf.get("control_points") or []
    knots = dxf.get("knot_values") or []
    degree = dxf.get("degree")
    if len(control_points) > 1 and degree is not None and knots:
        segments = max(len(control_points) * NURBS_SEGMENTS_MULTIPLIER, MIN_NURBS_SEGMENTS)
        try:
            points = nurbs_points(degree, knots, [_xy(p) for p in control_points], dxf.get("weights"), segments)
        except ValueError as exc:
            logger.warning("SPLINE %s: NURBS evaluation failed (%s), using fallback", entity.handle, exc)
        else:
            return _stroke(points, color, pattern, ctx)

    source = dxf.get("fit_points") or control_points
    if len(source) < 2:
        return None
    segments = max(len(source) * CATMULL_ROM_SEGMENTS_MULTIPLIER, MIN_CATMULL_ROM_SEGMENTS)
    return _stroke(catmull_rom_points([_xy(p) for p in source], segments), color, pattern, ctx)


def _build_text(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    raw = dxf.get("text")
    if not raw:
        return []
    position = dxf.get("position") or dxf.get("start_point")
    if position is None:
        return None
    text = replace_special_chars(raw)
    height = dxf.get("height") or dxf.get("text_height") or TEXT_HEIGHT
    return [
        make_text_quad(
            text,
            _xy(position),
            height,
            ctx.color_of(entity),
            rotation=degrees_to_radians(dxf.get("rotation") or 0.0),
            halign=text_halign(dxf.get("halign")),
            valign=text_valign(dxf.get("valign")),
        )
    ]


def _mtext_rotation(dxf: dict[str, Any]) -> float:
    if dxf.get("rotation"):
        return degrees_to_radians(dxf["rotation"])
    direction = dxf.get("direction_vector")
    if direction is not None:
        return math.atan2(direction.y, direction.x)
    return 0.0


def _build_mtext(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    raw = dxf.get("text")
    if not raw:
        return []
    position = dxf.get("position")
    if position is None:
        return None
    attachment = dxf.get("attachment_point")
    return list(
        layout_mtext(
            parse_mtext_content(raw),
            _xy(position),
            dxf.get("height") or dxf.get("text_height") or TEXT_HEIGHT,
            ctx.color_of(entity),
            entity.layer,
            rotation=_mtext_rotation(dxf),
            halign=mtext_halign(attachment),
            valign=mtext_valign(attachment),
        )
    )


def _build_dimension(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    return build_dimension(entity, ctx.color_of(entity))


def _build_solid(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    triangles = _face_triangles([_xy(p) for p in entity.dxf.get("points") or []], zigzag=True)
    if not triangles:
        return None
    return [Triangles(triangles=tuple(triangles), color=ctx.color_of(entity))]


def _build_3dface(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    triangles = _face_triangles([_xy(p) for p in entity.dxf.get("vertices") or []])
    if not triangles:
        return None
    return [Triangles(triangles=tuple(triangles), color=ctx.color_of(entity))]


def _build_point(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    position = entity.dxf.get("position")
    if position is None:
        return None
    return [PointMarker(position=_xy(position), color=ctx.color_of(entity))]


def insert_transform(dxf: dict[str, Any], base_point: Vertex | None, column: int = 0, row: int = 0) -> Affine2D:
    """Map block coordinates into the INSERT's parent space.

    The block base point moves to the origin, then the insert scale, the
    MINSERT grid offset, the rotation and finally the insertion point apply.
    """
    position = dxf.get("position") or Vertex()
    matrix = Affine2D.translation(-(base_point.x if base_point else 0.0), -(base_point.y if base_point else 0.0))
    matrix = matrix.then(Affine2D.scaling(dxf.get("x_scale") or 1.0, dxf.get("y_scale") or 1.0))
    if column or row:
        matrix = matrix.then(
            Affine2D.translation(column * (dxf.get("column_spacing") or 0.0), row * (dxf.get("row_spacing") or 0.0))
        )
    if dxf.get("rotation"):
        matrix = matrix.then(Affine2D.rotation(degrees_to_radians(dxf["rotation"])))
    return matrix.then(Affine2D.translation(position.x, position.y))


def _insert_line_type(entity: Entity, ctx: RenderContext) -> str | None:
    # the linetype ByBlock children of this INSERT inherit
    own = entity.dxf.get("line_type")
    if own and own.upper() == BYBLOCK:
        return ctx.block_line_type
    if own and own.upper() != BYLAYER:
        return own
    layer = ctx.drawing.layers.get(entity.layer)
    return layer.line_type if layer is not None else None


def _build_insert(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    name = dxf.get("name")
    if ctx.depth > ctx.options.max_insert_depth:
        ctx.warn(f"Maximum INSERT depth {ctx.options.max_insert_depth} exceeded expanding block {name!r}")
        return []
    block = ctx.drawing.blocks.get(name) if name else None
    if block is None:
        logger.warning("INSERT references unknown block %r", name)
        return None

    nested = ctx.nested(ctx.color_of(entity), _insert_line_type(entity, ctx))
    local: list[Primitive] = []
    for child in block.entities:
        if child.dxf.get("visible") is False:
            continue
        try:
            built = build_entity(child, nested)
        except Exception as exc:
            ctx.fail(f"Block {name!r} entity {child.handle} ({child.dxftype}): {exc}")
            continue
        if built:
            local.extend(built)
    if not local:
        return []

    columns = max(1, dxf.get("column_count") or 1)
    rows = max(1, dxf.get("row_count") or 1)
    if columns * rows > MAX_INSERT_ARRAY_INSTANCES:
        ctx.warn(f"INSERT array of {columns}x{rows} for block {name!r} truncated to a single instance")
        columns = rows = 1

    out: list[Primitive] = []
    for row in range(rows):
        for column in range(columns):
            matrix = insert_transform(dxf, block.base_point, column, row)
            out.extend(transform_primitive(p, matrix) for p in local)
    return out


def _build_hatch(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    paths = dxf.get("boundary_paths") or []
    if not paths:
        return None
    color = ctx.color_of(entity)
    outlines = [boundary_path_to_points(path, ctx.options.circle_segments) for path in paths]

    if dxf.get("solid"):
        triangles = triangulate_outlines(outlines)
        if not triangles:
            return None
        return [Triangles(triangles=tuple(triangles), color=color)]

    pattern = ctx.line_type_of(entity)
    objects: list[Primitive] = []
    for outline in outlines:
        if len(outline) > 1:
            objects.extend(_stroke(outline, color, pattern, ctx))
    pattern_lines = dxf.get("pattern_lines") or []
    if pattern_lines and len(outlines[0]) > 2:
        for start, end in generate_hatch_pattern(pattern_lines, outlines[0]):
            objects.extend(_stroke([start, end], color, pattern, ctx))
    return objects or None


def _build_leader(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    vertices = entity.dxf.get("vertices") or []
    if len(vertices) < 2:
        return None
    color = ctx.color_of(entity)
    points = [_xy(v) for v in vertices]
    objects = _stroke(points, color, ctx.line_type_of(entity), ctx)
    if entity.dxf.get("arrow_head_flag") == 1:
        objects.append(create_arrow(points[1], points[0], ARROW_SIZE, color))
    return objects


def _build_multileader(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    dxf = entity.dxf
    leaders = dxf.get("leaders") or []
    if not leaders:
        return None
    color = ctx.color_of(entity)
    pattern = ctx.line_type_of(entity)
    arrow_size = dxf.get("arrow_size") or ARROW_SIZE
    objects: list[Primitive] = []
    for leader in leaders:
        landing = leader.get("last_leader_point")
        for line in leader.get("lines") or []:
            if len(line) < 2:
                continue
            points = [_xy(v) for v in line]
            if landing is not None:
                points.append(_xy(landing))
            objects.extend(_stroke(points, color, pattern, ctx))
            if dxf.get("has_arrow_head") is not False:
                objects.append(create_arrow(points[1], points[0], arrow_size, color))

    text = dxf.get("text")
    position = dxf.get("text_position")
    if text and position is not None:
        objects.extend(
            layout_mtext(
                parse_mtext_content(text),
                _xy(position),
                dxf.get("text_height") or TEXT_HEIGHT,
                color,
                entity.layer,
                halign="left",
                valign="middle",
            )
        )
    return objects or None


ENTITY_BUILDERS: Mapping[str, EntityBuilder] = MappingProxyType(
    dict(
        (
            ("LINE", _build_line),
            ("CIRCLE", _build_circle),
            ("ARC", _build_arc),
            ("ELLIPSE", _build_ellipse),
            ("LWPOLYLINE", _build_polyline),
            ("POLYLINE", _build_polyline),
            ("SPLINE", _build_spline),
            ("TEXT", _build_text),
            ("MTEXT", _build_mtext),
            ("DIMENSION", _build_dimension),
            ("SOLID", _build_solid),
            ("3DFACE", _build_3dface),
            ("POINT", _build_point),
            ("INSERT", _build_insert),
            ("HATCH", _build_hatch),
            ("LEADER", _build_leader),
            ("MULTILEADER", _build_multileader),
            ("MLEADER", _build_multileader),
        )
    )
)


def build_entity(entity: Entity, ctx: RenderContext) -> list[Primitive] | None:
    """Build the primitives of one entity; ``None`` means the kind has no geometry builder."""
    builder = ENTITY_BUILDERS.get(entity.dxftype)
    if builder is None:
        return None
    return builder(entity, ctx)


def layer_states(drawing: Drawing, entity_layer_counts: Mapping[str, int] | None = None) -> list[LayerState]:
    counts = Counter(e.layer for e in drawing.entities) if entity_layer_counts is None else entity_layer_counts
    states = [
        LayerState(
            name=layer.name,
            visible=layer.visible and not layer.frozen,
            frozen=layer.frozen,
            color=layer_color(layer),
            entity_count=counts.get(layer.name, 0),
        )
        for layer in drawing.layers.values()
    ]
    known = set(drawing.layers)
    for name in sorted(set(counts) - known):
        states.append(
            LayerState(name=name, visible=True, frozen=False, color=DEFAULT_ENTITY_COLOR, entity_count=counts[name])
        )
    return states


def _is_hidden(layer_name: str, drawing: Drawing, options: SceneOptions) -> bool:
    if options.visible_layers is not None:
        return layer_name not in options.visible_layers
    layer = drawing.layers.get(layer_name)
    if layer is None:
        return False
    if layer.frozen and not options.include_frozen:
        return True
    return not layer.visible


def build_scene(drawing: Drawing, options: SceneOptions | None = None) -> Scene:
    """Flatten ``drawing`` into renderer-ready primitives.

    Every primitive is tagged with the layer of the top-level entity it came
    from, including everything expanded out of an INSERT.
    """
    ctx = RenderContext.for_drawing(drawing, options)
    scene = Scene(entity_count=len(drawing.entities), errors=ctx.errors, warnings=ctx.warnings)
    for index, entity in enumerate(drawing.entities):
        layer = entity.layer
        if _is_hidden(layer, drawing, ctx.options) or entity.dxf.get("visible") is False:
            continue
        try:
            built = build_entity(entity, ctx)
        except Exception as exc:
            message = f"Entity {index} ({entity.dxftype}): {exc}"
            logger.warning(message)
            scene.errors.append(message)
            continue
        if built is None:
            scene.unsupported.append(f"Entity {index}: {entity.dxftype}")
            continue
        scene.primitives.extend(p if p.layer == layer else replace(p, layer=layer) for p in built)
    if scene.errors or scene.unsupported:
        logger.info(scene.summary())
    return scene
