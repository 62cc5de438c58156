"""Exception taxonomy for batches, restores, and script runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:  # pragma: no cover
    from rewrite_engine.edits.batch import Edit


class RewriteEngineError(RuntimeError):
    """Base class for every engine failure."""


class InvalidBatch(RewriteEngineError):
    """Raised when a batch holds overlapping or misordered edits."""

    def __init__(self, message: str, *, edits: Iterable["Edit"] = ()) -> None:
        super().__init__(message)
        self.edits = tuple(edits)


class BufferWriteFailed(RewriteEngineError):
    """Raised when the buffer rejects one of the edits of a transaction."""

    def __init__(self, message: str, *, edit: Optional["Edit"] = None) -> None:
        super().__init__(message)
        self.edit = edit


class ScriptFailure(RewriteEngineError):
    """Raised by script hosts.

    ``reason`` is one of syntax, rejected, timeout, limit or error.
    """

    def __init__(self, message: str, *, reason: str = "error") -> None:
        super().__init__(message)
        self.reason = reason


class RestoreFailed(RewriteEngineError):
    """Raised when a recorded inverse batch no longer applies."""

    def __init__(self, message: str, *, remaining: int = 0) -> None:
        super().__init__(message)
        self.remaining = remaining


__all__ = [
    "RewriteEngineError",
    "InvalidBatch",
    "BufferWriteFailed",
    "ScriptFailure",
    "RestoreFailed",
]
