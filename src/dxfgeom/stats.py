from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from .entity import Drawing


@dataclass(frozen=True)
class DrawingStatistics:
    file_name: str
    file_size: int
    total_entities: int
    entities_by_type: dict[str, int] = field(default_factory=dict)
    layer_count: int = 0
    block_count: int = 0
    version: str | None = None


def collect_statistics(drawing: Drawing, file_name: str = "", file_size: int = 0) -> DrawingStatistics:
    return DrawingStatistics(
        file_name=file_name,
        file_size=file_size,
        total_entities=len(drawing.entities),
        entities_by_type=dict(Counter(entity.dxftype for entity in drawing.entities)),
        layer_count=len(drawing.layers),
        block_count=len(drawing.blocks),
        version=drawing.version,
    )


def collect_file_statistics(path: str | Path, drawing: Drawing) -> DrawingStatistics:
    file_path = Path(path)
    return collect_statistics(drawing, file_path.name, file_path.stat().st_size)
