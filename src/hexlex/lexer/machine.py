"""
Record Tokenizing Machine
=========================

Shared machinery of the S-Record and Intel HEX tokenizers.

A tokenizer is a finite-state machine whose states are the field tags of
hexlex.lexer.tags. Its only mutable data is a (state, position) pair. Each
step looks at the record around the position through the format's layout
resolver, decides the tag of the next field and moves the position past
that field:

    step(state, position) -> Step(new state, new position, transitions)

Steps are pure: they only read the buffer. Field sizes, byte counts and
checksums are recomputed from the text every time they are needed, so a
pass may start at any record boundary with the tag in effect before it and
continue exactly where a previous pass would have been.

Line Boundaries
---------------
A field never extends past the end of its line. When a field scan meets the
line end before consuming its width, the machine drops to DEFAULT at the
line terminator and continues one character later. A single malformed
record therefore affects nothing beyond its own line, and every step makes
progress, so a pass always terminates.

A scan reaching the end of the requested range stops there and keeps its
state; the next pass resumes from it.

Transition Coalescing
---------------------
Steps may report a tag at the same position more than once (a zero-width
field followed by the next field) or report a tag already in effect. Before
reaching the sink, transitions are filtered: only the last tag reported at
a position counts, transitions that do not change the tag in effect are
dropped, and nothing at or past the range end is emitted.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from hexlex.errors import InvalidTagError, TokenizeRangeError
from hexlex.lexer.buffer import CharSource
from hexlex.lexer.sinks import TagSink, Transition
from hexlex.lexer.tags import HexTag


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    """
    Result of one machine step.

    Attributes:
        state: Machine state after the step (the tag of the field the
            position is now in)
        position: Position after the step
        transitions: Transitions produced by the step, positions ascending
    """
    state: HexTag
    position: int
    transitions: tuple[Transition, ...] = ()


class _TransitionFilter:
    """Coalesces step transitions before they reach the sink."""

    def __init__(self, sink: TagSink, initial_tag: HexTag, end: int):
        self._sink = sink
        self._current = initial_tag
        self._end = end
        self._pending: Optional[Transition] = None

    def push(self, transition: Transition) -> None:
        if self._pending is not None and self._pending.position != transition.position:
            self._flush()
        self._pending = transition

    def _flush(self) -> None:
        pending, self._pending = self._pending, None
        if pending is None or pending.position >= self._end:
            return
        if pending.tag == self._current:
            return
        self._sink.emit(pending.position, pending.tag)
        self._current = pending.tag

    def complete(self) -> None:
        self._flush()
        self._sink.complete(self._end)


class RecordLayout(Protocol):
    """
    Per-format field layout resolver, as used by the validation report.

    All methods except record_start() take the record start position.
    """

    def record_start(self, pos: int) -> int: ...

    def byte_count(self, rec: int) -> int: ...

    def count_byte_count(self, rec: int) -> int: ...

    def required_byte_count(self, rec: int) -> int: ...

    def declared_checksum(self, rec: int) -> Optional[int]: ...

    def computed_checksum(self, rec: int) -> Optional[int]: ...

    def checksum_valid(self, rec: int) -> bool: ...


Handler = Callable[[int, int], Step]


class RecordLexer:
    """
    Base class of the per-format tokenizers.

    Subclasses set name and marker, create their layout resolver and fill
    the handler table mapping each state of the format to a step method.
    States a format does not use are stepped as DEFAULT.

    Usage:
        lexer = SrecLexer(TextBuffer(text))
        log = TransitionLog()
        final_state = lexer.tokenize(log)

    Attributes:
        buffer: The document being tokenized (read-only)
        layout: The format's layout resolver
    """

    name: str = ""
    marker: str = ""
    layout: RecordLayout

    def __init__(self, buffer: CharSource):
        self.buffer = buffer
        self._handlers: dict[HexTag, Handler] = {HexTag.DEFAULT: self._step_idle}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.buffer!r})"

    # =========================================================================
    # Tokenizing Pass
    # =========================================================================

    def tokenize(
        self,
        sink: TagSink,
        start: int = 0,
        length: Optional[int] = None,
        initial_tag: HexTag = HexTag.DEFAULT,
    ) -> HexTag:
        """
        Tokenize the range [start, start + length) into sink.

        Args:
            sink: Receives begin(), the transitions and complete()
            start: First position to tokenize; a record boundary (line
                start) or field boundary when resuming
            length: Number of characters (default: to the end of document)
            initial_tag: Tag in effect immediately before start

        Returns:
            The machine state at the end of the range

        Raises:
            TokenizeRangeError: If start or length is negative
            InvalidTagError: If initial_tag is not a HexTag value
        """
        if length is None:
            length = max(self.buffer.length - start, 0)
        if start < 0 or length < 0:
            raise TokenizeRangeError(start, length)

        end = min(start + length, self.buffer.length)
        try:
            initial_tag = HexTag(initial_tag)
        except ValueError:
            raise InvalidTagError(initial_tag) from None
        logger.debug(f"{self.name}: tokenizing [{start}, {end}) from {initial_tag.name}")

        sink.begin(start, initial_tag)
        transitions = _TransitionFilter(sink, initial_tag, end)

        state, pos = initial_tag, start
        while pos < end:
            step = self.step(state, pos, end)
            for transition in step.transitions:
                transitions.push(transition)
            state, pos = step.state, step.position

        transitions.complete()
        return state

    def step(self, state: HexTag, pos: int, end: Optional[int] = None) -> Step:
        """
        Perform one machine step.

        Args:
            state: Current state (tag in effect before pos)
            pos: Current position
            end: Range end; scans stop there (default: document end)

        Returns:
            The Step taken
        """
        if end is None:
            end = self.buffer.length
        handler = self._handlers.get(state)
        if handler is None:
            logger.debug(f"{self.name}: state {state.name} not used by this format, idling at {pos}")
            handler = self._step_idle
        return handler(pos, end)

    # =========================================================================
    # Common Steps
    # =========================================================================

    def _step_idle(self, pos: int, end: int) -> Step:
        """Wait for a record start marker at the start of a line."""
        if self.buffer.is_line_start(pos) and self.buffer.char_at(pos) == self.marker:
            return self._field(HexTag.RECSTART, pos, 1, end)
        return self._field(HexTag.DEFAULT, pos, 1, end)

    def _step_record_end(self, pos: int, end: int) -> Step:
        """After the checksum: the record is complete."""
        return self._field(HexTag.DEFAULT, pos, 1, end)

    # =========================================================================
    # Field Scanning
    # =========================================================================

    def _forward_within_line(self, pos: int, count: int, end: int) -> tuple[int, bool]:
        """
        Move up to count characters forward without leaving the line.

        Returns:
            (position, completed): completed is False if the line end was
            met first, in which case position is the line terminator
        """
        for _ in range(count):
            if self.buffer.is_line_end(pos):
                return pos, False
            if pos >= end:
                return pos, True
            pos += 1
        return pos, True

    def _truncated(self, pos: int, transitions: list[Transition]) -> Step:
        """Record too short: idle at the line terminator, step past it."""
        logger.debug(f"{self.name}: record too short, idle at {pos}")
        transitions.append(Transition(pos, HexTag.DEFAULT))
        return Step(HexTag.DEFAULT, pos + 1, tuple(transitions))

    def _field(self, tag: HexTag, pos: int, width: int, end: int) -> Step:
        """Enter a field tagged tag at pos and scan width characters of it."""
        transitions = [Transition(pos, tag)]
        new_pos, completed = self._forward_within_line(pos, width, end)
        if completed:
            return Step(tag, new_pos, tuple(transitions))
        if tag == HexTag.DEFAULT:
            # idle text simply moves on to the next line
            return Step(HexTag.DEFAULT, new_pos + 1, tuple(transitions))
        return self._truncated(new_pos, transitions)

    def _data_field(self, pos: int, width: int, end: int) -> Step:
        """
        Scan an ordinary data field of width characters.

        Bytes are tagged alternately DATA_ODD and DATA_EVEN, two characters
        each, purely to tell neighbouring bytes apart.
        """
        tag = HexTag.DATA_ODD
        transitions = [Transition(pos, tag)]
        for i in range(width):
            if self.buffer.is_line_end(pos):
                return self._truncated(pos, transitions)
            if pos >= end:
                break

            if i & 0x3 == 0:
                tag = HexTag.DATA_ODD
                transitions.append(Transition(pos, tag))
            elif i & 0x3 == 2:
                tag = HexTag.DATA_EVEN
                transitions.append(Transition(pos, tag))
            pos += 1
        return Step(tag, pos, tuple(transitions))
