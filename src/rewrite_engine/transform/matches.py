"""Pattern matches exposed to transform scripts."""

from __future__ import annotations

import re
from dataclasses import dataclass
from itertools import islice
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

from rewrite_engine.buffer.positions import Range
from rewrite_engine.buffer.sync import TextBuffer

PatternLike = Union[str, "re.Pattern[str]"]
FlagsLike = Union[int, str]
MapFn = Callable[[str, int], str]

_FLAG_LETTERS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


@dataclass(frozen=True, slots=True)
class Match:
    """One occurrence of a pattern in the buffer."""

    range: Range
    text: str
    index: int
    captures: Tuple[Optional[str], ...] = ()

    def group(self, number: int = 0) -> Optional[str]:
        if number == 0:
            return self.text
        return self.captures[number - 1]

    def groups(self) -> Tuple[Optional[str], ...]:
        return self.captures


ReplaceHandler = Callable[[Sequence[Match], MapFn], bool]
SelectHandler = Callable[[Sequence[Range]], None]


class MatchSet:
    """Ordered matches plus the ``replace`` capability handed to scripts."""

    def __init__(
        self,
        matches: Sequence[Match],
        *,
        on_replace: ReplaceHandler,
        on_select: Optional[SelectHandler] = None,
    ) -> None:
        self._matches = tuple(matches)
        self._on_replace = on_replace
        self._on_select = on_select

    def __len__(self) -> int:
        return len(self._matches)

    def __iter__(self) -> Iterator[Match]:
        return iter(self._matches)

    def __getitem__(self, index: int) -> Match:
        return self._matches[index]

    def __repr__(self) -> str:
        return f"MatchSet({len(self._matches)} matches)"

    @property
    def ranges(self) -> Tuple[Range, ...]:
        return tuple(match.range for match in self._matches)

    @property
    def texts(self) -> Tuple[str, ...]:
        return tuple(match.text for match in self._matches)

    def filter(self, predicate: Callable[[Match], object]) -> "MatchSet":
        subset = MatchSet(
            [match for match in self._matches if predicate(match)],
            on_replace=self._on_replace,
            on_select=self._on_select,
        )
        if self._on_select is not None:
            self._on_select(subset.ranges)
        return subset

    def map(self, fn: Callable[[Match, int], object]) -> List[object]:
        return [fn(match, idx) for idx, match in enumerate(self._matches)]

    def replace(self, map_fn: MapFn) -> bool:
        """Replace every match with ``map_fn(text, index)`` in one batch."""

        return self._on_replace(self._matches, map_fn)


def compile_pattern(pattern: PatternLike, flags: FlagsLike = 0) -> "re.Pattern[str]":
    if isinstance(flags, str):
        value = 0
        for letter in flags.lower():
            if letter == "g":
                continue  # every search is global
            if letter not in _FLAG_LETTERS:
                raise ValueError(f"Unknown pattern flag '{letter}'")
            value |= _FLAG_LETTERS[letter]
        flags = value
    if isinstance(pattern, re.Pattern):
        if flags:
            return re.compile(pattern.pattern, pattern.flags | flags)
        return pattern
    return re.compile(pattern, flags)


def collect_matches(
    buffer: TextBuffer,
    pattern: PatternLike,
    *,
    flags: FlagsLike = 0,
    limit: int = 1000,
) -> List[Match]:
    """Scan the buffer's full text and return at most ``limit`` matches."""

    compiled = compile_pattern(pattern, flags)
    text = buffer.full_text()
    matches: List[Match] = []
    # a match ending inside "\r\n" is clamped to the line end, so a bare "\r"
    # match becomes an empty range and replacing it inserts before the break
    for idx, found in enumerate(islice(compiled.finditer(text), limit)):
        start = buffer.position_at(found.start())
        end = buffer.position_at(found.end())
        matches.append(
            Match(
                range=Range(start, end),
                text=found.group(0),
                index=idx,
                captures=found.groups(),
            )
        )
    return matches


__all__ = [
    "Match",
    "MatchSet",
    "MapFn",
    "compile_pattern",
    "collect_matches",
]
