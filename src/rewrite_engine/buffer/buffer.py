"""In-memory buffer implementing the editor collaborator used by the engine."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Callable, ContextManager, List, Optional

from rewrite_engine.runtime import telemetry

from .document import TextDocument
from .positions import Position, Range
from .sync import MarkerLayer


@dataclass(slots=True)
class BufferDelta:
    version: int
    text: str
    label: str
    edit_count: int


@dataclass(slots=True)
class StagedEdit:
    start: int
    end: int
    text: str
    sequence: int


BufferListener = Callable[[BufferDelta], None]


class Buffer:
    """Mutable text buffer; every write goes through a ``Transaction``.

    Ranges passed to ``replace`` inside a transaction are expressed against the
    document as it was when the transaction opened, and ``text_at`` keeps
    reading that document until the transaction commits.
    """

    def __init__(
        self,
        *,
        name: str = "untitled",
        document: Optional[TextDocument] = None,
        markers: Optional[MarkerLayer] = None,
    ) -> None:
        self.name = name
        self.document = document or TextDocument()
        self.markers = markers or MarkerLayer()
        self.last_delta: Optional[BufferDelta] = None
        self._transaction: Optional[Transaction] = None
        self._listeners: List[BufferListener] = []

    @classmethod
    def from_text(cls, text: str, *, name: str = "untitled") -> "Buffer":
        return cls(name=name, document=TextDocument(text=text))

    @property
    def version(self) -> int:
        return self.document.version

    @property
    def in_transaction(self) -> bool:
        return self._transaction is not None

    def full_text(self) -> str:
        return self.document.text

    def text_at(self, span: Range) -> str:
        return self.document.slice(span)

    def position_at(self, offset: int) -> Position:
        return self.document.position_at(offset)

    def offset_at(self, position: Position) -> int:
        return self.document.offset_at(position)

    def replace(self, span: Range, text: str) -> bool:
        if self._transaction is not None:
            return self._transaction.stage(span, text)
        with self.transaction("replace") as tx:
            return tx.stage(span, text)

    def transaction(self, label: str = "edit") -> "Transaction":
        return Transaction(self, label)

    def subscribe(self, listener: BufferListener) -> None:
        self._listeners.append(listener)

    def _commit(self, text: str, label: str, edit_count: int) -> BufferDelta:
        self.document = self.document.with_text(text)
        delta = BufferDelta(
            version=self.document.version,
            text=text,
            label=label,
            edit_count=edit_count,
        )
        self.last_delta = delta
        for listener in list(self._listeners):
            listener(delta)
        return delta


class Transaction(AbstractContextManager["Transaction"]):
    def __init__(self, buffer: Buffer, label: str) -> None:
        self.buffer = buffer
        self.label = label
        self._span_cm: Optional[ContextManager[object]] = None
        self._staged: List[StagedEdit] = []

    def __enter__(self) -> "Transaction":
        if self.buffer._transaction is not None:
            raise RuntimeError(
                f"Buffer '{self.buffer.name}' already has an open transaction"
            )
        self.buffer._transaction = self
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component="buffer",
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        return self

    def stage(self, span: Range, text: str) -> bool:
        document = self.buffer.document
        if not (document.contains(span.start) and document.contains(span.end)):
            return False
        start = document.offset_at(span.start)
        end = document.offset_at(span.end)
        for staged in self._staged:
            if start < staged.end and staged.start < end:
                return False
        self._staged.append(
            StagedEdit(start=start, end=end, text=text, sequence=len(self._staged))
        )
        return True

    def commit(self) -> Optional[BufferDelta]:
        if not self._staged:
            return None
        source = self.buffer.document.text
        pieces: List[str] = []
        cursor = 0
        for staged in sorted(
            self._staged, key=lambda item: (item.start, item.end, item.sequence)
        ):
            pieces.append(source[cursor : staged.start])
            pieces.append(staged.text)
            cursor = staged.end
        pieces.append(source[cursor:])
        return self.buffer._commit("".join(pieces), self.label, len(self._staged))

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is None:
                self.commit()
        finally:
            self._staged.clear()
            self.buffer._transaction = None
            if self._span_cm is not None:
                self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["Buffer", "BufferDelta", "BufferListener", "StagedEdit", "Transaction"]
