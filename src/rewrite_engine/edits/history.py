"""Stack of inverse batches backing "restore to last snapshot"."""

from __future__ import annotations

from typing import List, Optional

from rewrite_engine.buffer.sync import TextBuffer
from rewrite_engine.errors import BufferWriteFailed, InvalidBatch, RestoreFailed
from rewrite_engine.runtime import telemetry

from .batch import EditBatch


class TransactionHistory:
    """Inverse batches recorded since the last ``open_scope``, oldest first.

    ``None`` means no scope is open: batches applied meanwhile are not
    recorded and cannot be restored.
    """

    def __init__(self) -> None:
        self._entries: Optional[List[EditBatch]] = None

    @property
    def is_recording(self) -> bool:
        return self._entries is not None

    @property
    def entries(self) -> tuple[EditBatch, ...]:
        return tuple(self._entries or ())

    def __len__(self) -> int:
        return len(self._entries or ())

    def open_scope(self) -> None:
        # earlier entries are dropped, not applied; restore first to undo them
        self._entries = []

    def disable(self) -> None:
        self._entries = None

    def record(self, inverse: EditBatch) -> None:
        if self._entries is not None:
            self._entries.append(inverse)

    def restore_last(self, buffer: TextBuffer) -> bool:
        """Undo only the newest recorded batch; ``False`` when there is none."""

        if not self._entries:
            return False
        self._apply_inverse(self._entries.pop(), buffer)
        return True

    def restore_all(self, buffer: TextBuffer) -> int:
        """Undo every recorded batch newest-first and return how many ran."""

        if not self._entries:
            return 0
        restored = 0
        with telemetry.span(
            "history::restore_all",
            component="history",
            metadata={"entries": len(self._entries)},
        ):
            while self._entries:
                self._apply_inverse(self._entries.pop(), buffer)
                restored += 1
        telemetry.record_event("history.restored", data={"batches": restored})
        return restored

    def _apply_inverse(self, inverse: EditBatch, buffer: TextBuffer) -> None:
        try:
            inverse.apply(buffer)
        except (BufferWriteFailed, InvalidBatch) as exc:
            remaining = len(self._entries or ())
            if self._entries is not None:
                self._entries.clear()
            telemetry.record_event(
                "history.restore_failed",
                level="error",
                data={"reason": str(exc), "dropped": remaining},
            )
            raise RestoreFailed(
                f"Inverse batch failed to apply: {exc}", remaining=remaining
            ) from exc


__all__ = ["TransactionHistory"]
