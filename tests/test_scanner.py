from __future__ import annotations

import pytest

from dxfgeom.errors import StructuralMismatchError, UnexpectedEOFError
from dxfgeom.reader import parse_point
from dxfgeom.scanner import Group, Scanner, parse_group_value


@pytest.mark.parametrize(
    ("code", "raw", "expected"),
    [
        (0, "LINE", "LINE"),
        (9, "$ACADVER", "$ACADVER"),
        (10, "1.5", 1.5),
        (59, "2", 2.0),
        (62, "256", 256),
        (100, "AcDbEntity", "AcDbEntity"),
        (140, "2.5", 2.5),
        (170, "3", 3),
        (210, "0", 0.0),
        (280, "1", 1),
        (290, "1", True),
        (290, "0", False),
        (330, "1F", "1F"),
        (370, "-1", -1),
        (420, "16711680", 16711680),
        (999, "comment", "comment"),
        (1000, "data", "data"),
        (1010, "4.25", 4.25),
        (1071, "7", 7),
        (5000, "anything", "anything"),
    ],
)
def test_group_value_type_follows_code_range(code: int, raw: str, expected: object) -> None:
    value = parse_group_value(code, raw)
    assert value == expected
    assert type(value) is type(expected)


def test_scanner_reads_peeks_and_rewinds() -> None:
    scanner = Scanner(["0", "SECTION", "2", "ENTITIES", "0", "ENDSEC", "0", "EOF"])

    assert scanner.peek() == Group(0, "SECTION")
    assert scanner.next() == Group(0, "SECTION")
    assert scanner.next() == Group(2, "ENTITIES")
    scanner.rewind()
    assert scanner.next() == Group(2, "ENTITIES")
    assert scanner.last_read_group == Group(2, "ENTITIES")


def test_rewind_clears_eof_latch() -> None:
    scanner = Scanner(["10", "1.0", "0", "EOF"])
    scanner.next()
    scanner.next()
    assert scanner.is_eof()
    assert not scanner.has_next()

    scanner.rewind()

    assert not scanner.is_eof()
    assert scanner.next() == Group(0, "EOF")


def test_restore_to_checkpoint_clears_eof_latch() -> None:
    scanner = Scanner(["0", "SECTION", "0", "EOF"])
    scanner.next()
    mark = scanner.checkpoint()
    assert scanner.next() == Group(0, "EOF")
    assert scanner.is_eof()

    scanner.restore(mark)

    assert not scanner.is_eof()
    assert scanner.has_next()
    assert scanner.peek() == Group(0, "EOF")


def test_next_after_eof_fails() -> None:
    scanner = Scanner(["0", "EOF"])
    scanner.next()
    with pytest.raises(UnexpectedEOFError, match="after EOF group has been read"):
        scanner.next()


def test_running_off_the_end_without_eof_fails() -> None:
    scanner = Scanner(["0", "SECTION", "2"])
    scanner.next()
    with pytest.raises(UnexpectedEOFError, match="EOF group not read before end of file"):
        scanner.next()


def test_point_reader_keeps_z_when_present() -> None:
    scanner = Scanner(["10", "1", "20", "2", "30", "3", "0", "EOF"])
    scanner.next()

    point = parse_point(scanner)

    assert (point.x, point.y, point.z) == (1.0, 2.0, 3.0)
    assert scanner.next() == Group(0, "EOF")


def test_point_reader_backtracks_when_z_is_missing() -> None:
    scanner = Scanner(["10", "1", "20", "2", "40", "5", "0", "EOF"])
    scanner.next()

    point = parse_point(scanner)

    assert (point.x, point.y, point.z) == (1.0, 2.0, None)
    assert scanner.next() == Group(40, 5.0)


def test_point_reader_backtracks_over_eof_lookahead() -> None:
    scanner = Scanner(["11", "4", "21", "5", "0", "EOF"])
    scanner.next()

    point = parse_point(scanner)

    assert (point.x, point.y) == (4.0, 5.0)
    assert not scanner.is_eof()
    assert scanner.next() == Group(0, "EOF")


def test_point_reader_requires_matching_y_code() -> None:
    scanner = Scanner(["10", "1", "21", "2", "0", "EOF"])
    scanner.next()
    with pytest.raises(StructuralMismatchError, match="Expected code for point value to be 20 but got 21."):
        parse_point(scanner)
