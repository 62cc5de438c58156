import pytest

from rewrite_engine.buffer import Buffer, Range
from rewrite_engine.edits import Edit, EditBatch, TransactionHistory
from rewrite_engine.errors import BufferWriteFailed, RestoreFailed


def make_batch(*edits: tuple[Range, str]) -> EditBatch:
    return EditBatch(Edit(span, text) for span, text in edits)


def apply_recorded(
    history: TransactionHistory, buffer: Buffer, batch: EditBatch
) -> None:
    history.record(batch.apply(buffer))


def test_restore_without_scope_is_a_noop() -> None:
    history = TransactionHistory()
    buffer = Buffer.from_text("abc")

    assert history.is_recording is False
    assert history.restore_all(buffer) == 0
    assert buffer.version == 0


def test_restore_twice_second_call_is_a_noop() -> None:
    history = TransactionHistory()
    history.open_scope()
    buffer = Buffer.from_text("abc")
    apply_recorded(history, buffer, make_batch((Range.of(0, 0, 0, 1), "A")))

    assert history.restore_all(buffer) == 1
    version = buffer.version
    assert history.restore_all(buffer) == 0

    assert buffer.full_text() == "abc"
    assert buffer.version == version
    assert history.is_recording


def test_restore_all_undoes_batches_newest_first() -> None:
    history = TransactionHistory()
    history.open_scope()
    buffer = Buffer.from_text("one two")

    apply_recorded(history, buffer, make_batch((Range.of(0, 0, 0, 3), "1\n")))
    apply_recorded(
        history,
        buffer,
        make_batch((Range.of(0, 0, 0, 1), "uno"), (Range.of(1, 1, 1, 4), "dos")),
    )
    assert buffer.full_text() == "uno\n dos"
    assert len(history) == 2

    history.restore_all(buffer)

    assert buffer.full_text() == "one two"
    assert len(history) == 0


def test_record_is_ignored_while_disabled() -> None:
    history = TransactionHistory()
    buffer = Buffer.from_text("abc")

    apply_recorded(history, buffer, make_batch((Range.of(0, 0, 0, 3), "xyz")))

    assert len(history) == 0
    assert history.restore_all(buffer) == 0
    assert buffer.full_text() == "xyz"


def test_open_scope_discards_without_applying() -> None:
    history = TransactionHistory()
    history.open_scope()
    buffer = Buffer.from_text("abc")
    apply_recorded(history, buffer, make_batch((Range.of(0, 0, 0, 3), "xyz")))

    history.open_scope()

    assert len(history) == 0
    assert buffer.full_text() == "xyz"


def test_disable_stops_recording() -> None:
    history = TransactionHistory()
    history.open_scope()
    history.disable()

    history.record(EditBatch())

    assert history.is_recording is False
    assert history.entries == ()


def test_restore_last_only_undoes_newest_entry() -> None:
    history = TransactionHistory()
    history.open_scope()
    buffer = Buffer.from_text("abc")
    apply_recorded(history, buffer, make_batch((Range.of(0, 0, 0, 1), "A")))
    apply_recorded(history, buffer, make_batch((Range.of(0, 2, 0, 3), "C")))

    assert history.restore_last(buffer) is True
    assert buffer.full_text() == "Abc"
    assert len(history) == 1


def test_failed_inverse_drops_remaining_history() -> None:
    history = TransactionHistory()
    history.open_scope()
    buffer = Buffer.from_text("abc")
    apply_recorded(history, buffer, make_batch((Range.of(0, 0, 0, 1), "A")))
    history.record(make_batch((Range.of(4, 0, 4, 1), "?")))

    with pytest.raises(RestoreFailed) as excinfo:
        history.restore_all(buffer)

    assert excinfo.value.remaining == 1
    assert isinstance(excinfo.value.__cause__, BufferWriteFailed)
    assert len(history) == 0
    assert buffer.full_text() == "Abc"
