from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List

INDENT = "    "


class CodeWriter:
    """Line buffer that renders indentation from an explicit depth counter."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.depth = 0

    def line(self, text: str = "") -> None:
        self.lines.append(INDENT * self.depth + text if text else "")

    def indent(self) -> None:
        self.depth += 1

    def dedent(self) -> None:
        if self.depth > 0:
            self.depth -= 1

    @contextmanager
    def block(self, header: str) -> Iterator[None]:
        self.line(header + " {")
        self.indent()
        yield
        self.dedent()
        self.line("}")

    def getvalue(self) -> str:
        return "\n".join(self.lines) + "\n" if self.lines else ""
