import random
from typing import List, Sequence, Tuple

import pytest

from rewrite_engine.buffer import Buffer, Range
from rewrite_engine.edits import Edit, EditBatch, apply_batch
from rewrite_engine.errors import BufferWriteFailed, InvalidBatch


def make_edit(
    start_line: int, start_column: int, end_line: int, end_column: int, text: str
) -> Edit:
    return Edit(Range.of(start_line, start_column, end_line, end_column), text)


def apply_and_revert(
    text: str, edits: Sequence[Edit]
) -> Tuple[str, str, EditBatch]:
    buffer = Buffer.from_text(text)
    inverse = EditBatch(edits).apply(buffer)
    forward_text = buffer.full_text()
    inverse.apply(buffer)
    return forward_text, buffer.full_text(), inverse


def test_empty_batch_is_a_noop() -> None:
    buffer = Buffer.from_text("untouched")

    inverse = EditBatch().apply(buffer)

    assert len(inverse) == 0
    assert buffer.full_text() == "untouched"
    assert buffer.version == 0


def test_single_edit_round_trip() -> None:
    forward, restored, inverse = apply_and_revert(
        "hello world", [make_edit(0, 6, 0, 11, "there")]
    )

    assert forward == "hello there"
    assert restored == "hello world"
    assert inverse.edits == (make_edit(0, 6, 0, 11, "world"),)


def test_drift_on_same_line_shifts_later_inverse() -> None:
    forward, restored, inverse = apply_and_revert(
        "ab---x-",
        [make_edit(0, 0, 0, 2, "abcd"), make_edit(0, 5, 0, 6, "y")],
    )

    assert forward == "abcd---y-"
    assert restored == "ab---x-"
    assert inverse.edits[0].range == Range.of(0, 0, 0, 4)
    assert inverse.edits[1].range == Range.of(0, 7, 0, 8)
    assert inverse.edits[1].new_text == "x"


def test_unsorted_batch_is_applied_in_start_order() -> None:
    forward, restored, inverse = apply_and_revert(
        "a-b-c",
        [
            make_edit(0, 4, 0, 5, "xyz"),
            make_edit(0, 0, 0, 1, "xyz"),
            make_edit(0, 2, 0, 3, "xyz"),
        ],
    )

    assert forward == "xyz-xyz-xyz"
    assert restored == "a-b-c"
    assert [edit.range for edit in inverse] == [
        Range.of(0, 0, 0, 3),
        Range.of(0, 4, 0, 7),
        Range.of(0, 8, 0, 11),
    ]
    assert [edit.new_text for edit in inverse] == ["a", "b", "c"]


def test_touching_edits_share_a_boundary() -> None:
    forward, restored, inverse = apply_and_revert(
        "abcd", [make_edit(0, 0, 0, 2, "X"), make_edit(0, 2, 0, 4, "YY")]
    )

    assert forward == "XYY"
    assert restored == "abcd"
    assert inverse.edits[1].range == Range.of(0, 1, 0, 3)


def test_multiline_insertion_moves_later_lines() -> None:
    forward, restored, inverse = apply_and_revert(
        "one\ntwo\nthree",
        [make_edit(0, 3, 0, 3, "\nextra"), make_edit(2, 0, 2, 5, "THREE")],
    )

    assert forward == "one\nextra\ntwo\nTHREE"
    assert restored == "one\ntwo\nthree"
    assert inverse.edits[0].range == Range.of(0, 3, 1, 5)
    assert inverse.edits[1].range == Range.of(3, 0, 3, 5)


def test_multiline_deletion_pulls_later_lines_up() -> None:
    forward, restored, inverse = apply_and_revert(
        "alpha\nbeta\ngamma\ndelta",
        [make_edit(0, 2, 2, 2, ""), make_edit(3, 0, 3, 5, "DELTA")],
    )

    assert forward == "almma\nDELTA"
    assert restored == "alpha\nbeta\ngamma\ndelta"
    assert inverse.edits[0] == make_edit(0, 2, 0, 2, "pha\nbeta\nga")
    assert inverse.edits[1].range == Range.of(1, 0, 1, 5)


def test_multiline_range_collapsed_then_edit_on_its_end_line() -> None:
    forward, restored, inverse = apply_and_revert(
        "12345\n6789",
        [make_edit(0, 3, 1, 1, "ab"), make_edit(1, 2, 1, 3, "X")],
    )

    assert forward == "123ab7X9"
    assert restored == "12345\n6789"
    assert inverse.edits[1].range == Range.of(0, 6, 0, 7)


def test_multiline_range_replaced_by_multiline_text() -> None:
    forward, restored, inverse = apply_and_revert(
        "abc\ndef\nghi",
        [make_edit(0, 1, 1, 2, "X\nYY"), make_edit(1, 2, 1, 3, "F")],
    )

    assert forward == "aX\nYYF\nghi"
    assert restored == "abc\ndef\nghi"
    assert inverse.edits[0] == make_edit(0, 1, 1, 2, "bc\nde")
    assert inverse.edits[1].range == Range.of(1, 2, 1, 3)


def test_edits_on_adjacent_lines_that_add_lines() -> None:
    forward, restored, inverse = apply_and_revert(
        "a\nb\nc",
        [make_edit(0, 0, 0, 1, "A1\nA2"), make_edit(1, 0, 1, 1, "B1\nB2\nB3")],
    )

    assert forward == "A1\nA2\nB1\nB2\nB3\nc"
    assert restored == "a\nb\nc"
    assert inverse.edits[1].range == Range.of(2, 0, 4, 2)


def test_apply_batch_function_matches_method() -> None:
    buffer = Buffer.from_text("x")

    inverse = apply_batch(EditBatch([make_edit(0, 0, 0, 1, "y")]), buffer)

    assert buffer.full_text() == "y"
    assert inverse == EditBatch([make_edit(0, 0, 0, 1, "x")])


def test_overlapping_batch_is_rejected_without_mutation() -> None:
    buffer = Buffer.from_text("abcdef")
    batch = EditBatch([make_edit(0, 0, 0, 3, "X"), make_edit(0, 2, 0, 4, "Y")])

    with pytest.raises(InvalidBatch) as excinfo:
        batch.apply(buffer)

    assert len(excinfo.value.edits) == 2
    assert buffer.full_text() == "abcdef"
    assert buffer.version == 0


def test_refused_write_aborts_the_whole_batch() -> None:
    buffer = Buffer.from_text("abc")
    batch = EditBatch([make_edit(0, 0, 0, 1, "Z"), make_edit(0, 2, 0, 9, "!")])

    with pytest.raises(BufferWriteFailed) as excinfo:
        batch.apply(buffer)

    assert excinfo.value.edit == make_edit(0, 2, 0, 9, "!")
    assert buffer.full_text() == "abc"
    assert buffer.version == 0


SAMPLE_TEXT = "lorem ipsum\ndolor sit\n\namet, consectetur\nadipiscing elit"


def make_random_batch(rng: random.Random, buffer: Buffer) -> List[Edit]:
    text = buffer.full_text()
    offsets = sorted(rng.sample(range(len(text) + 1), k=8))
    edits: List[Edit] = []
    for start_offset, end_offset in zip(offsets[::2], offsets[1::2]):
        if rng.random() < 0.3:
            end_offset = start_offset
        span = Range(buffer.position_at(start_offset), buffer.position_at(end_offset))
        choices = ["", "x", "yz", "\n", "p\nq", "r\n\ns"]
        if span.is_single_line and not span.is_empty:
            # splitting a non-empty single-line span keeps the start-column drift
            choices = ["", "x", "yz", "wxyz"]
        edits.append(Edit(span, rng.choice(choices)))
    return edits


@pytest.mark.parametrize("seed", range(50))
def test_inverse_restores_random_batches(seed: int) -> None:
    rng = random.Random(seed)
    buffer = Buffer.from_text(SAMPLE_TEXT)
    edits = make_random_batch(rng, buffer)

    inverse = EditBatch(edits).apply(buffer)
    inverse.apply(buffer)

    assert buffer.full_text() == SAMPLE_TEXT
