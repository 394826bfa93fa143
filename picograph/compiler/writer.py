from __future__ import annotations

from typing import List


class CodeWriter:
    """Simple Lua line accumulator."""

    def __init__(self):
        self._lines: List[str] = []

    def writeln(self, line: str = "") -> "CodeWriter":
        self._lines.append(line)
        return self

    def blank(self) -> "CodeWriter":
        return self.writeln()

    def extend(self, lines: List[str]) -> "CodeWriter":
        # Lines produced by behaviors already carry their own indentation.
        self._lines.extend(lines)
        return self

    def function(self, name: str, parameters: str, body: List[str]) -> "CodeWriter":
        self.blank()
        self.writeln(f"function {name}({parameters})")
        self.extend(body)
        return self.writeln("end")

    def result(self) -> str:
        return "\n".join(self._lines)
