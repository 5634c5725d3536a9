"""
Line-oriented text buffer used by the generators.
"""
from contextlib import contextmanager
from io import StringIO


class CodeWriter:
    def __init__(self, indent_unit: str = "\t"):
        self.indent_unit = indent_unit
        self.level = 0
        self._buffer = StringIO()

    def p(self, *parts) -> None:
        """Write one line made of the concatenated parts. No parts writes an empty line."""
        line = ''.join(str(part) for part in parts)
        if line:
            self._buffer.write(self.indent_unit * self.level + line)
        self._buffer.write("\n")

    def indent(self) -> None:
        self.level += 1

    def outdent(self) -> None:
        if self.level > 0:
            self.level -= 1

    @contextmanager
    def block(self, opening: str, closing: str = "}"):
        self.p(opening)
        self.indent()
        try:
            yield self
        finally:
            self.outdent()
            self.p(closing)

    def getvalue(self) -> str:
        return self._buffer.getvalue()
