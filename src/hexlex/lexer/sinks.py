"""
Tag Sinks
=========

A tokenizing pass reports its results as transitions: "from this position
on, this tag applies". Where the transitions go is up to the host. This
module defines the sink protocol and two sinks:

- TransitionLog keeps the transitions themselves (tests, debugging)
- StyleBuffer keeps one tag per character, the way an editor stores styles

Sink Protocol
-------------
    begin(position, tag)    once, before anything else: the range start
                            and the tag in effect there
    emit(position, tag)     for each transition, positions ascending
    complete(position)      once, at the end of the range
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Protocol

from hexlex.lexer.tags import HexTag


@dataclass(frozen=True)
class Transition:
    """A tag taking effect at a position."""
    position: int
    tag: HexTag

    def __repr__(self) -> str:
        return f"Transition({self.position}, {self.tag.name})"


class TagSink(Protocol):
    """Receiver of the transitions of one tokenizing pass."""

    def begin(self, position: int, tag: HexTag) -> None: ...

    def emit(self, position: int, tag: HexTag) -> None: ...

    def complete(self, position: int) -> None: ...


class TransitionLog:
    """
    Sink that records transitions.

    Several passes may write into the same log; the transitions are simply
    appended, which is what resumption tests compare against a single pass.

    Attributes:
        transitions: Every transition received, in order
        completed_at: End position of the last completed pass (None before)
    """

    def __init__(self) -> None:
        self.transitions: list[Transition] = []
        self.completed_at: Optional[int] = None

    def begin(self, position: int, tag: HexTag) -> None:
        self.completed_at = None

    def emit(self, position: int, tag: HexTag) -> None:
        self.transitions.append(Transition(position, tag))

    def complete(self, position: int) -> None:
        self.completed_at = position

    def tags(self) -> list[HexTag]:
        return [t.tag for t in self.transitions]

    def __len__(self) -> int:
        return len(self.transitions)

    def __iter__(self) -> Iterator[Transition]:
        return iter(self.transitions)


class StyleBuffer:
    """
    Sink that stores a tag for every character of the document.

    A character gets the tag in effect at its position. Characters outside
    every tokenized range keep DEFAULT.

    Usage:
        styles = StyleBuffer(len(text))
        SrecLexer(TextBuffer(text)).tokenize(styles)
        styles.tag_at(0)    # HexTag.RECSTART

    Attributes:
        length: Number of characters covered
    """

    def __init__(self, length: int):
        self.length = length
        self._tags = [HexTag.DEFAULT] * length
        self._run_start = 0
        self._run_tag = HexTag.DEFAULT

    def begin(self, position: int, tag: HexTag) -> None:
        self._run_start = position
        self._run_tag = tag

    def emit(self, position: int, tag: HexTag) -> None:
        self._fill(position)
        self._run_start = position
        self._run_tag = tag

    def complete(self, position: int) -> None:
        self._fill(position)
        self._run_start = position

    def _fill(self, end: int) -> None:
        end = min(end, self.length)
        for pos in range(max(self._run_start, 0), end):
            self._tags[pos] = self._run_tag

    def tag_at(self, position: int) -> HexTag:
        if 0 <= position < self.length:
            return self._tags[position]
        return HexTag.DEFAULT

    def tags(self, start: int = 0, end: Optional[int] = None) -> list[HexTag]:
        return self._tags[start:end]

    def runs(self, start: int = 0, end: Optional[int] = None) -> Iterator[tuple[int, int, HexTag]]:
        """
        Yield (start, end, tag) for each run of equally tagged characters.

        Args:
            start: First position to include
            end: Position after the last one to include (default: all)
        """
        end = self.length if end is None else min(end, self.length)
        pos = start
        while pos < end:
            tag = self._tags[pos]
            run_end = pos + 1
            while run_end < end and self._tags[run_end] == tag:
                run_end += 1
            yield pos, run_end, tag
            pos = run_end
