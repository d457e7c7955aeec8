from __future__ import annotations

from pathlib import Path

from dxfgeom.stats import collect_file_statistics, collect_statistics

from _dxf_helpers import block, document, dxf_text, layer_record, line, parse_entities, table


def test_collect_statistics_counts_entities_by_type() -> None:
    drawing = parse_entities(
        line(0, 0, 1, 1),
        line(1, 1, 2, 2),
        [(0, "CIRCLE"), (10, 0.0), (20, 0.0), (40, 1.0)],
        header=[(9, "$ACADVER"), (1, "AC1027")],
        tables=table("LAYER", layer_record("WALLS")),
        blocks=block("DOOR", line(0, 0, 1, 0)),
    )

    stats = collect_statistics(drawing, "plan.dxf", 123)

    assert stats.file_name == "plan.dxf"
    assert stats.file_size == 123
    assert stats.total_entities == 3
    assert stats.entities_by_type == {"LINE": 2, "CIRCLE": 1}
    assert stats.layer_count == 1
    assert stats.block_count == 1
    assert stats.version == "AC1027"


def test_collect_file_statistics_reads_size_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "one.dxf"
    text = dxf_text(document(line(0, 0, 1, 1)))
    path.write_text(text, encoding="utf-8")
    drawing = parse_entities(line(0, 0, 1, 1))

    stats = collect_file_statistics(path, drawing)

    assert stats.file_name == "one.dxf"
    assert stats.file_size == len(text.encode("utf-8"))
    assert stats.version is None
