"""Line-wrapping output writer that keeps generated code within a column limit."""

from __future__ import annotations

import sys
from typing import TextIO


class OutputGenerator:
    """Writes tokens, breaking the line before a token that would pass ``max_column``.

    A broken line continues after ``indent`` spaces.  The indentation starts
    at ``first_indent`` for each statement and moves by ``other_indents`` with
    every nesting level.
    """

    def __init__(
        self,
        out: TextIO | None = None,
        max_column: int = 80,
        first_indent: int = 4,
        other_indents: int = 2,
    ) -> None:
        self.out = out if out is not None else sys.stdout
        self.max_column = max_column
        self.first_indent = first_indent
        self.other_indents = other_indents
        self.cur_pos = 0
        self.indent = first_indent

    def emit(self, text: str) -> None:
        """Write one token, starting a new indented line first if it would not fit."""
        if len(text) + self.cur_pos > self.max_column:
            self.out.write("\n" + " " * self.indent)
            self.cur_pos = self.indent
        self.out.write(text)
        self.cur_pos += len(text)

    def terminate(self) -> None:
        """End the statement and reset the indentation."""
        self.out.write("\n")
        self.cur_pos = 0
        self.indent = self.first_indent

    def upindent(self) -> None:
        """Indent continuation lines one level deeper."""
        self.indent += self.other_indents

    def downindent(self) -> None:
        """Indent continuation lines one level less."""
        self.indent -= self.other_indents