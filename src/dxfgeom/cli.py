from __future__ import annotations

import argparse
import json
import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Sequence

from .entities import SUPPORTED_ENTITY_TYPES
from .entity import Drawing
from .parser import read
from .scene import SceneOptions, build_scene, layer_states
from .stats import collect_file_statistics

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _package_version() -> str:
    try:
        return version("dxfgeom")
    except PackageNotFoundError:
        return "0.0.0"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dxfgeom", description="Inspect DXF files and extract drawable geometry.")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    parser.add_argument(
        "--log-level",
        choices=_LOG_LEVELS,
        default="WARNING",
        help="Logging threshold for parser and scene diagnostics.",
    )
    subparsers = parser.add_subparsers(dest="command")

    inspect_parser = subparsers.add_parser("inspect", help="Show basic DXF information.")
    inspect_parser.add_argument("path", help="Path to DXF file.")
    inspect_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Also list layers, blocks and every parse warning.",
    )

    primitives_parser = subparsers.add_parser(
        "primitives",
        help="Build the drawable primitives of a DXF file and dump them as JSON.",
    )
    primitives_parser.add_argument("path", help="Path to DXF file.")
    primitives_parser.add_argument("--output", default=None, help="Write JSON here instead of stdout.")
    primitives_parser.add_argument(
        "--max-depth",
        type=int,
        default=SceneOptions.max_insert_depth,
        help="Maximum nesting depth for INSERT expansion.",
    )
    primitives_parser.add_argument(
        "--circle-segments",
        type=int,
        default=SceneOptions.circle_segments,
        help="Segments used for a full circle.",
    )
    primitives_parser.add_argument(
        "--layers",
        default=None,
        help='Comma separated layer names to include, e.g. "0,WALLS".',
    )
    primitives_parser.add_argument(
        "--include-frozen",
        action="store_true",
        help="Include entities on frozen layers.",
    )
    primitives_parser.add_argument(
        "--no-linetypes",
        action="store_true",
        help="Keep polylines whole instead of splitting them into linetype dashes.",
    )

    plot_parser = subparsers.add_parser("plot", help="Preview a DXF file with matplotlib.")
    plot_parser.add_argument("path", help="Path to DXF file.")
    plot_parser.add_argument("--output", default=None, help="Save the figure to this image file.")
    plot_parser.add_argument("--title", default=None, help="Figure title.")
    return parser


def _load(path: str) -> tuple[Path, Drawing] | None:
    file_path = Path(path)
    if not file_path.exists():
        print(f"error: file not found: {file_path}", file=sys.stderr)
        return None
    try:
        return file_path, read(file_path)
    except Exception as exc:
        print(f"error: failed to read DXF: {exc}", file=sys.stderr)
        return None


def _run_inspect(path: str, *, verbose: bool = False) -> int:
    loaded = _load(path)
    if loaded is None:
        return 2
    file_path, drawing = loaded
    stats = collect_file_statistics(file_path, drawing)

    print(f"file: {file_path}")
    print(f"size: {stats.file_size}")
    print(f"version: {stats.version or 'unknown'}")
    print(f"total_entities: {stats.total_entities}")
    for dxftype in SUPPORTED_ENTITY_TYPES:
        count = stats.entities_by_type.get(dxftype, 0)
        if count > 0:
            print(f"{dxftype}: {count}")
    print(f"layers: {stats.layer_count}")
    print(f"blocks: {stats.block_count}")
    print(f"warnings: {len(drawing.warnings)}")

    if verbose:
        for state in layer_states(drawing):
            flags = []
            if not state.visible:
                flags.append("hidden")
            if state.frozen:
                flags.append("frozen")
            suffix = f" ({', '.join(flags)})" if flags else ""
            print(f"layer[{state.name}]: color={state.color} entities={state.entity_count}{suffix}")
        for name, block in sorted(drawing.blocks.items()):
            print(f"block[{name}]: entities={len(block.entities)}")
        for message in drawing.warnings:
            print(f"warning: {message}")
    return 0


def _parse_layers(value: str | None) -> frozenset[str] | None:
    if value is None:
        return None
    return frozenset(name.strip() for name in value.split(",") if name.strip())


def _run_primitives(
    path: str,
    *,
    output: str | None = None,
    max_depth: int = SceneOptions.max_insert_depth,
    circle_segments: int = SceneOptions.circle_segments,
    layers: str | None = None,
    include_frozen: bool = False,
    apply_linetypes: bool = True,
) -> int:
    if max_depth < 0:
        print("error: --max-depth must not be negative", file=sys.stderr)
        return 2
    if circle_segments < 4:
        print("error: --circle-segments must be at least 4", file=sys.stderr)
        return 2
    loaded = _load(path)
    if loaded is None:
        return 2
    _, drawing = loaded

    options = SceneOptions(
        max_insert_depth=max_depth,
        circle_segments=circle_segments,
        apply_linetypes=apply_linetypes,
        visible_layers=_parse_layers(layers),
        include_frozen=include_frozen,
    )
    try:
        scene = build_scene(drawing, options)
    except Exception as exc:
        print(f"error: failed to build primitives: {exc}", file=sys.stderr)
        return 2

    payload = json.dumps(scene.to_dict(), indent=2)
    if output is None:
        print(payload)
    else:
        Path(output).write_text(payload + "\n", encoding="utf-8")
        print(f"primitives: {len(scene.primitives)}")
        print(f"output: {output}")
    summary = scene.summary()
    if summary:
        print(f"warning: {summary}", file=sys.stderr)
    return 0


def _run_plot(path: str, *, output: str | None = None, title: str | None = None) -> int:
    loaded = _load(path)
    if loaded is None:
        return 2
    file_path, drawing = loaded
    try:
        from .render import plot

        ax = plot(drawing, show=output is None, title=title or file_path.name)
    except ImportError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    if output is not None:
        ax.figure.savefig(output)
        print(f"output: {output}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "inspect":
        return _run_inspect(args.path, verbose=bool(args.verbose))
    if args.command == "primitives":
        return _run_primitives(
            args.path,
            output=args.output,
            max_depth=args.max_depth,
            circle_segments=args.circle_segments,
            layers=args.layers,
            include_frozen=bool(args.include_frozen),
            apply_linetypes=not bool(args.no_linetypes),
        )
    if args.command == "plot":
        return _run_plot(args.path, output=args.output, title=args.title)

    parser.print_help()
    return 0
