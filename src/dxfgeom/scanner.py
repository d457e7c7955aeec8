from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import UnexpectedEOFError

GroupValue = Union[str, int, float, bool]


@dataclass(frozen=True)
class Group:
    code: int
    value: GroupValue

    def is_marker(self, name: str) -> bool:
        return self.code == 0 and self.value == name


def parse_group_value(code: int, value: str) -> GroupValue:
    if code <= 9:
        return value
    if 10 <= code <= 59:
        return float(value)
    if 60 <= code <= 99:
        return int(value)
    if 100 <= code <= 109:
        return value
    if 110 <= code <= 149:
        return float(value)
    if 160 <= code <= 179:
        return int(value)
    if 210 <= code <= 239:
        return float(value)
    if 240 <= code <= 259:
        return float(value)
    if 260 <= code <= 269:
        return int(value)
    if 270 <= code <= 289:
        return int(value)
    if 290 <= code <= 299:
        return value == "1"
    if 300 <= code <= 369:
        return value
    if 370 <= code <= 389:
        return int(value)
    if 390 <= code <= 399:
        return value
    if 400 <= code <= 409:
        return int(value)
    if 410 <= code <= 419:
        return value
    if 420 <= code <= 429:
        return int(value)
    if 430 <= code <= 439:
        return value
    if 440 <= code <= 459:
        return int(value)
    if 460 <= code <= 469:
        return float(value)
    if 470 <= code <= 481:
        return value
    if code == 999:
        return value
    if 1000 <= code <= 1009:
        return value
    if 1010 <= code <= 1059:
        return float(value)
    if 1060 <= code <= 1071:
        return int(value)
    return value


class Scanner:
    """Cursor over the raw line array, reading one (code, value) group at a time.

    The cursor is a group index into the line pairs, so ``checkpoint`` and
    ``restore`` are plain integers. Restoring always clears the EOF latch,
    which lets a lookahead that landed on ``(0, EOF)`` be undone.
    """

    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self._pointer = 0
        self._eof = False
        self.last_read_group: Group | None = None

    def next(self) -> Group:
        group = self._read_at(self._pointer)
        self._pointer += 2
        if group.code == 0 and group.value == "EOF":
            self._eof = True
        self.last_read_group = group
        return group

    def peek(self) -> Group:
        return self._read_at(self._pointer)

    def rewind(self, count: int = 1) -> None:
        self.restore(self._pointer - count * 2)

    def checkpoint(self) -> int:
        return self._pointer

    def restore(self, mark: int) -> None:
        self._pointer = max(0, mark)
        self._eof = False

    def has_next(self) -> bool:
        if self._eof:
            return False
        return self._pointer <= len(self._lines) - 2

    def is_eof(self) -> bool:
        return self._eof

    def _read_at(self, pointer: int) -> Group:
        if not self.has_next() or pointer > len(self._lines) - 2:
            if not self._eof:
                last = self._lines[pointer] if pointer < len(self._lines) else ""
                raise UnexpectedEOFError(
                    "Unexpected end of input: EOF group not read before end of file. "
                    f"Ended on code {last.strip()}"
                )
            raise UnexpectedEOFError("Cannot call 'next' after EOF group has been read")
        code = int(self._lines[pointer].strip())
        return Group(code, parse_group_value(code, self._lines[pointer + 1].strip()))
