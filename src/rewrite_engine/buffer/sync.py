"""Collaborator boundary types shared by buffers, the engine, and hosts."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol, Sequence

from .positions import Position, Range


class TextBuffer(Protocol):
    """What the edit engine and sessions need from an editor buffer."""

    def text_at(self, span: Range) -> str:
        """Return the text covered by ``span`` in the committed document."""
        ...

    def full_text(self) -> str:
        ...

    def position_at(self, offset: int) -> Position:
        ...

    def replace(self, span: Range, text: str) -> bool:
        """Replace ``span`` with ``text``; ``False`` when the write is refused."""
        ...

    def transaction(self, label: str) -> AbstractContextManager[object]:
        """Group several ``replace`` calls into one atomic edit."""
        ...


class Highlighter(Protocol):
    """Cosmetic marker surface with replace-all semantics."""

    def set_markers(self, ranges: Sequence[Range]) -> None:
        ...


class MarkerLayer:
    """Default highlighter that remembers the ranges currently marked."""

    def __init__(self) -> None:
        self._ranges: tuple[Range, ...] = ()
        self.revision = 0

    @property
    def ranges(self) -> tuple[Range, ...]:
        return self._ranges

    def set_markers(self, ranges: Sequence[Range]) -> None:
        self._ranges = tuple(ranges)
        self.revision += 1

    def clear(self) -> None:
        self.set_markers(())


class BufferValidationError(RuntimeError):
    """Raised when a position falls outside the document."""

    def __init__(self, message: str, *, position: Position | None = None) -> None:
        super().__init__(message)
        self.position = position


__all__ = [
    "TextBuffer",
    "Highlighter",
    "MarkerLayer",
    "BufferValidationError",
]
