from __future__ import annotations

from typing import Any

from .entity import Vertex
from .errors import StructuralMismatchError
from .scanner import Group, Scanner


def parse_point(scanner: Scanner) -> Vertex:
    """Read a point whose X group was the last group read.

    The Y group must follow with code ``x + 10``. A Z group with code
    ``x + 20`` is optional; when it is missing the lookahead is undone so the
    scanner ends up exactly where it would be without the peek.
    """
    scanner.rewind()
    group = scanner.next()
    code = group.code
    point = Vertex(x=float(group.value))

    code += 10
    group = scanner.next()
    if group.code != code:
        raise StructuralMismatchError(
            f"Expected code for point value to be {code} but got {group.code}."
        )
    point.y = float(group.value)

    code += 10
    if not scanner.has_next():
        return point
    group = scanner.next()
    if group.code != code:
        scanner.rewind()
        return point
    point.z = float(group.value)
    return point


def parse_point_inline(scanner: Scanner, group: Group) -> Vertex:
    """Lenient point read used by table records: a missing Y leaves it at 0."""
    code = group.code
    point = Vertex(x=float(group.value))
    if not scanner.has_next():
        return point
    next_y = scanner.next()
    if next_y.code != code + 10:
        scanner.rewind()
        return point
    point.y = float(next_y.value)
    if not scanner.has_next():
        return point
    next_z = scanner.next()
    if next_z.code == code + 20:
        point.z = float(next_z.value)
    else:
        scanner.rewind()
    return point


def check_common_entity_properties(entity: dict[str, Any], group: Group, scanner: Scanner) -> bool:
    code = group.code
    if code == 0:
        entity["type"] = group.value
    elif code == 5:
        entity["handle"] = group.value
    elif code == 6:
        entity["line_type"] = group.value
    elif code == 8:
        entity["layer"] = group.value
    elif code == 48:
        entity["line_type_scale"] = group.value
    elif code == 60:
        entity["visible"] = group.value == 0
    elif code == 62:
        entity["color_index"] = group.value
    elif code == 67:
        entity["in_paper_space"] = group.value != 0
    elif code == 100:
        pass
    elif code == 101:
        # embedded object data runs until the next entity
        while group.code != 0:
            group = scanner.next()
        scanner.rewind()
    elif code == 330:
        entity["owner_handle"] = group.value
    elif code == 347:
        entity["material_handle"] = group.value
    elif code == 370:
        entity["lineweight"] = group.value
    elif code == 420:
        entity["true_color"] = group.value
    elif code == 1000:
        entity.setdefault("extended_data", {}).setdefault("custom_strings", []).append(group.value)
    elif code == 1001:
        entity.setdefault("extended_data", {})["application_name"] = group.value
    else:
        return False
    return True
