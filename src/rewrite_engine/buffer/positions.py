"""Positions, ranges, and the text-shape arithmetic used to track drift."""

from __future__ import annotations

import re
from dataclasses import dataclass

LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """Zero-based (line, column) pair; ordering is line-major."""

    line: int
    column: int

    def __post_init__(self) -> None:
        if self.line < 0 or self.column < 0:
            raise ValueError(f"Position components must be non-negative: {self!r}")

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class Range:
    """Half-open span between two positions with ``start <= end``."""

    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Range end {self.end} precedes start {self.start}")

    @classmethod
    def of(
        cls, start_line: int, start_column: int, end_line: int, end_column: int
    ) -> "Range":
        return cls(Position(start_line, start_column), Position(end_line, end_column))

    @classmethod
    def empty(cls, position: Position) -> "Range":
        return cls(position, position)

    @property
    def is_single_line(self) -> bool:
        return self.start.line == self.end.line

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True, slots=True)
class TextDelta:
    """Shape a string imposes when inserted: line breaks and last-line width."""

    lines_added: int
    last_line_columns: int


def measure(text: str) -> TextDelta:
    lines = LINE_BREAK.split(text)
    return TextDelta(lines_added=len(lines) - 1, last_line_columns=len(lines[-1]))


def advance(base: Position, delta: TextDelta) -> Position:
    """Return where ``delta``'s text ends when written starting at ``base``."""

    if delta.lines_added == 0:
        return Position(base.line, base.column + delta.last_line_columns)
    return Position(base.line + delta.lines_added, delta.last_line_columns)


__all__ = [
    "LINE_BREAK",
    "Position",
    "Range",
    "TextDelta",
    "measure",
    "advance",
]
