from __future__ import annotations


class DxfError(Exception):
    pass


class EmptyInputError(DxfError, ValueError):
    pass


class UnexpectedEOFError(DxfError, EOFError):
    pass


class StructuralMismatchError(DxfError, ValueError):
    pass
