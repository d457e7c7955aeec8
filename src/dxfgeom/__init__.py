from typing import Sequence

from .curves import bulge_arc, degrees_to_radians
from .dimensions import format_dim_number
from .entity import Block, Drawing, Entity, Layer, LineType, Vertex
from .errors import DxfError, EmptyInputError, StructuralMismatchError, UnexpectedEOFError
from .mtext import parse_mtext_content
from .parser import parse_dxf, read
from .primitives import Arrow, PointMarker, Polyline, TextQuad, Triangles
from .render import plot
from .scene import LayerState, Scene, SceneOptions, build_scene, layer_states
from .stats import DrawingStatistics, collect_statistics

__all__ = [
    "read",
    "parse_dxf",
    "Drawing",
    "Entity",
    "Vertex",
    "Block",
    "Layer",
    "LineType",
    "build_scene",
    "Scene",
    "SceneOptions",
    "LayerState",
    "layer_states",
    "Polyline",
    "Triangles",
    "Arrow",
    "PointMarker",
    "TextQuad",
    "bulge_arc",
    "degrees_to_radians",
    "format_dim_number",
    "parse_mtext_content",
    "collect_statistics",
    "DrawingStatistics",
    "plot",
    "DxfError",
    "EmptyInputError",
    "UnexpectedEOFError",
    "StructuralMismatchError",
]


def main(argv: Sequence[str] | None = None) -> int:
    from dxfgeom.cli import main as cli_main

    return cli_main(argv)
