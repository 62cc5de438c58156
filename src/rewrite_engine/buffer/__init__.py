"""Buffer abstractions and the position arithmetic shared by the engine."""

from .buffer import Buffer, BufferDelta, Transaction
from .document import TextDocument
from .positions import Position, Range, TextDelta, advance, measure
from .sync import BufferValidationError, Highlighter, MarkerLayer, TextBuffer

__all__ = [
    "Buffer",
    "BufferDelta",
    "Transaction",
    "TextDocument",
    "Position",
    "Range",
    "TextDelta",
    "advance",
    "measure",
    "BufferValidationError",
    "Highlighter",
    "MarkerLayer",
    "TextBuffer",
]
