from __future__ import annotations

from typing import List


def field_mask(width: int) -> int:
    """Right-aligned mask covering ``width`` bits."""
    if width < 1:
        raise ValueError(f"bit width must be positive, got {width}")
    return (1 << width) - 1


# Accessor bodies operate on the wrapper's ``self.0`` with ``lsb`` already
# bound by the caller. Nested lines carry their own relative indentation.


def rust_get_body(width: int, ty: str, as_bool: bool = False) -> List[str]:
    """Statements of a field getter; the last line is the returned value."""
    if as_bool:
        return ["((self.0 >> lsb) & 1) != 0"]
    return [
        f"let mask: {ty} = 0x{field_mask(width):x};",
        "(self.0 >> lsb) & mask",
    ]


def rust_set_body(width: int, ty: str, as_bool: bool = False) -> List[str]:
    """Statements of a field setter taking ``value``."""
    if as_bool:
        return [
            "if value {",
            "    self.0 |= 1 << lsb;",
            "} else {",
            "    self.0 &= !(1 << lsb);",
            "}",
        ]
    return [
        f"let mask: {ty} = 0x{field_mask(width):x} << lsb;",
        "self.0 = (self.0 & !mask) | ((value << lsb) & mask);",
    ]
