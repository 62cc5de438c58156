"""Core document data structure backing in-memory buffers."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Tuple

from .positions import LINE_BREAK, Position, Range
from .sync import BufferValidationError


@dataclass(slots=True)
class TextDocument:
    """Immutable text snapshot with a line index for offset conversions.

    ``_starts[i]`` is the offset where line ``i`` begins and ``_ends[i]`` the
    offset where its content stops (before the terminator).
    """

    text: str = ""
    version: int = 0
    _starts: Tuple[int, ...] = field(init=False, repr=False)
    _ends: Tuple[int, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        starts = [0]
        ends = []
        for match in LINE_BREAK.finditer(self.text):
            ends.append(match.start())
            starts.append(match.end())
        ends.append(len(self.text))
        self._starts = tuple(starts)
        self._ends = tuple(ends)

    def with_text(self, text: str) -> "TextDocument":
        """Return the next version of the document holding ``text``."""

        return TextDocument(text=text, version=self.version + 1)

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def line_length(self, line: int) -> int:
        return self._ends[line] - self._starts[line]

    def get_line(self, line: int) -> str:
        return self.text[self._starts[line] : self._ends[line]]

    def contains(self, position: Position) -> bool:
        if position.line >= self.line_count:
            return False
        return position.column <= self.line_length(position.line)

    def offset_at(self, position: Position) -> int:
        if not self.contains(position):
            raise BufferValidationError("Position out of range", position=position)
        return self._starts[position.line] + position.column

    def position_at(self, offset: int) -> Position:
        offset = min(max(offset, 0), len(self.text))
        line = bisect_right(self._starts, offset) - 1
        # offsets inside a "\r\n" pair land on the end of the line
        column = min(offset - self._starts[line], self.line_length(line))
        return Position(line, column)

    def clamp(self, position: Position) -> Position:
        if position.line >= self.line_count:
            last = self.line_count - 1
            return Position(last, self.line_length(last))
        return Position(
            position.line, min(position.column, self.line_length(position.line))
        )

    def slice(self, span: Range) -> str:
        start = self.offset_at(self.clamp(span.start))
        end = self.offset_at(self.clamp(span.end))
        return self.text[start:end]


__all__ = ["TextDocument"]
