from __future__ import annotations

import math
from typing import Any

from .primitives import Arrow, PointMarker, Polyline, TextQuad, Triangles
from .scene import Scene, SceneOptions, build_scene

_VERTICAL_ALIGNMENT = {"top": "top", "middle": "center", "bottom": "baseline"}


def plot(
    target: Any,
    ax: Any | None = None,
    show: bool = True,
    equal: bool = True,
    title: str | None = None,
    line_width: float = 1.0,
    font_size: float = 8.0,
    options: SceneOptions | None = None,
):
    scene = _resolve_scene(target, options)
    return plot_scene(
        scene,
        ax=ax,
        show=show,
        equal=equal,
        title=title,
        line_width=line_width,
        font_size=font_size,
    )


def plot_scene(
    scene: Scene,
    ax: Any | None = None,
    show: bool = True,
    equal: bool = True,
    title: str | None = None,
    line_width: float = 1.0,
    font_size: float = 8.0,
):
    plt = _require_matplotlib()
    if ax is None:
        _, ax = plt.subplots()

    for primitive in scene.primitives:
        if isinstance(primitive, Polyline):
            _draw_polyline(ax, primitive, line_width)
        elif isinstance(primitive, Triangles):
            for triangle in primitive.triangles:
                _fill(ax, triangle, primitive.color)
        elif isinstance(primitive, Arrow):
            _fill(ax, primitive.points, primitive.color)
        elif isinstance(primitive, PointMarker):
            ax.scatter([primitive.position[0]], [primitive.position[1]], s=primitive.size, color=primitive.color)
        elif isinstance(primitive, TextQuad):
            _draw_text(ax, primitive, font_size)

    if title:
        ax.set_title(title)
    ax.autoscale(True)
    if equal:
        _apply_equal_limits(ax)
        ax.set_aspect("equal", adjustable="box")
    if show:
        plt.show()
    return ax


def _require_matplotlib():
    try:
        import matplotlib.pyplot as plt
    except Exception as exc:
        raise ImportError(
            "matplotlib is required for plotting. "
            "Install it with `pip install matplotlib`."
        ) from exc
    return plt


def _resolve_scene(target: Any, options: SceneOptions | None) -> Scene:
    if isinstance(target, Scene):
        return target
    if hasattr(target, "entities") and hasattr(target, "blocks"):
        return build_scene(target, options)
    if isinstance(target, str) or hasattr(target, "__fspath__"):
        from .parser import read

        return build_scene(read(target), options)
    raise TypeError("plot() expects a path, Drawing, or Scene")


def _draw_polyline(ax, polyline: Polyline, line_width: float):
    xs = [pt[0] for pt in polyline.points]
    ys = [pt[1] for pt in polyline.points]
    linestyle = "--" if polyline.dash_pattern else "-"
    ax.plot(xs, ys, color=polyline.color, linewidth=line_width, linestyle=linestyle)


def _fill(ax, points, color: str):
    from matplotlib.patches import Polygon

    ax.add_patch(Polygon(list(points), closed=True, facecolor=color, edgecolor="none"))


def _draw_text(ax, quad: TextQuad, font_size: float):
    text = quad.text
    if quad.stacked_top is not None or quad.stacked_bottom is not None:
        text = f"{text} {quad.stacked_top or ''}/{quad.stacked_bottom or ''}".strip()
    if not text:
        return
    ax.text(
        quad.position[0],
        quad.position[1],
        text,
        color=quad.color,
        fontsize=font_size,
        rotation=math.degrees(quad.rotation),
        rotation_mode="anchor",
        ha=quad.halign,
        va=_VERTICAL_ALIGNMENT.get(quad.valign, "baseline"),
        fontweight="bold" if quad.bold else "normal",
        fontstyle="italic" if quad.italic else "normal",
    )


def _apply_equal_limits(ax):
    x0, x1 = ax.get_xlim()
    y0, y1 = ax.get_ylim()
    dx = x1 - x0
    dy = y1 - y0
    if dx <= 0 or dy <= 0:
        return
    span = max(dx, dy)
    cx = (x0 + x1) * 0.5
    cy = (y0 + y1) * 0.5
    half = span * 0.5
    ax.set_xlim(cx - half, cx + half)
    ax.set_ylim(cy - half, cy + half)
