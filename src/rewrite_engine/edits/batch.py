"""Edit batches and the engine that applies them while building their inverse."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from rewrite_engine.buffer.positions import Position, Range, advance, measure
from rewrite_engine.buffer.sync import TextBuffer
from rewrite_engine.errors import BufferWriteFailed, InvalidBatch
from rewrite_engine.runtime import telemetry


@dataclass(frozen=True, slots=True)
class Edit:
    """Replace the text covered by ``range`` with ``new_text``."""

    range: Range
    new_text: str


class EditBatch:
    """Non-overlapping edits applied as one transaction."""

    __slots__ = ("edits",)

    def __init__(self, edits: Iterable[Edit] = ()) -> None:
        self.edits: Tuple[Edit, ...] = tuple(edits)

    def __len__(self) -> int:
        return len(self.edits)

    def __iter__(self) -> Iterator[Edit]:
        return iter(self.edits)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EditBatch):
            return NotImplemented
        return self.edits == other.edits

    def __repr__(self) -> str:
        return f"EditBatch({list(self.edits)!r})"

    def sorted_edits(self) -> List[Edit]:
        """Return the edits ordered by start, raising ``InvalidBatch`` on overlap."""

        ordered = sorted(self.edits, key=lambda edit: edit.range.start)
        for previous, current in zip(ordered, ordered[1:]):
            if current.range.start < previous.range.end:
                raise InvalidBatch(
                    f"Edit at {current.range} overlaps edit at {previous.range}",
                    edits=(previous, current),
                )
        return ordered

    def apply(self, buffer: TextBuffer) -> "EditBatch":
        """Apply the batch to ``buffer`` and return the batch that undoes it.

        Inverse ranges are expressed in the coordinates of the buffer after
        this batch, so replaying them in the same order restores the text
        the batch replaced.
        """

        try:
            edits = self.sorted_edits()
        except InvalidBatch as exc:
            telemetry.record_event(
                "batch.rejected", level="error", data={"reason": str(exc)}
            )
            raise

        inverse: List[Edit] = []
        with telemetry.span(
            "edits::apply", component="edits", metadata={"edits": len(edits)}
        ):
            with buffer.transaction("apply_batch"):
                last_old_end_line = -1
                columns_added = 0
                lines_added = 0

                for edit in edits:
                    span = edit.range
                    replaced = buffer.text_at(span)
                    if not buffer.replace(span, edit.new_text):
                        raise BufferWriteFailed(
                            f"Buffer refused edit at {span}", edit=edit
                        )

                    if span.start.line != last_old_end_line:
                        if span.start.line < last_old_end_line:
                            raise InvalidBatch(
                                f"Edit at {span} starts before line {last_old_end_line}",
                                edits=(edit,),
                            )
                        columns_added = 0

                    delta = measure(edit.new_text)
                    new_start = Position(
                        span.start.line + lines_added,
                        span.start.column + columns_added,
                    )
                    new_end = advance(new_start, delta)
                    inverse.append(Edit(Range(new_start, new_end), replaced))
                    last_old_end_line = span.end.line

                    if span.is_single_line:
                        if delta.lines_added == 0:
                            columns_added += delta.last_line_columns - (
                                span.end.column - span.start.column
                            )
                        else:
                            columns_added = delta.last_line_columns - span.start.column
                    else:
                        if delta.lines_added == 0:
                            columns_added += (
                                delta.last_line_columns
                                + span.start.column
                                - span.end.column
                            )
                        else:
                            columns_added = delta.last_line_columns - span.end.column
                    lines_added += delta.lines_added - (span.end.line - span.start.line)

        telemetry.record_event(
            "batch.applied", level="debug", data={"edits": len(inverse)}
        )
        return EditBatch(inverse)


def apply_batch(batch: EditBatch, buffer: TextBuffer) -> EditBatch:
    return batch.apply(buffer)


__all__ = ["Edit", "EditBatch", "apply_batch"]
