"""
Document Buffer Access
======================

The tokenizers never hold the text themselves. They read it through a
small, read-only accessor that can be addressed at any position, so a pass
may start anywhere in the document and re-read earlier characters of the
current record whenever it needs them.

Accessor Contract
-----------------
- char_at(pos) never fails: positions before the start or at/after the end
  of the document return a sentinel character (a space by default), which
  is not a hex digit.
- line_of(pos) and line_start(line) locate physical lines. LF, CR LF and a
  lone CR all end a line.
- is_line_end(pos) is true on LF, on a CR not followed by LF, and at or past
  the end of the document. The CR of a CR LF pair is an ordinary character.

TextBuffer is the accessor for an in-memory string. Hosts with their own
document model (an editor buffer, a memory-mapped file) only need to
provide the same methods.
"""

import bisect
import re
from typing import Protocol


SENTINEL = " "

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class CharSource(Protocol):
    """Read-only, randomly addressable view of a whole document."""

    @property
    def length(self) -> int: ...

    def char_at(self, pos: int, default: str = SENTINEL) -> str: ...

    def line_of(self, pos: int) -> int: ...

    def line_start(self, line: int) -> int: ...

    def is_line_start(self, pos: int) -> bool: ...

    def is_line_end(self, pos: int) -> bool: ...


class TextBuffer:
    """
    CharSource over an in-memory string.

    Usage:
        buffer = TextBuffer("S9030000FC\\n")
        buffer.char_at(0)       # 'S'
        buffer.char_at(99)      # ' ' (sentinel)
        buffer.is_line_end(10)  # True

    Attributes:
        text: The document text, with its original line endings
    """

    def __init__(self, text: str):
        self.text = text
        self._line_starts = [0] + [m.end() for m in _LINE_BREAK.finditer(text)]

    def __len__(self) -> int:
        return len(self.text)

    def __repr__(self) -> str:
        return f"TextBuffer({len(self.text)} chars, {self.line_count} lines)"

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def char_at(self, pos: int, default: str = SENTINEL) -> str:
        if 0 <= pos < len(self.text):
            return self.text[pos]
        return default

    def line_of(self, pos: int) -> int:
        """Return the 0-indexed line containing pos (clamped to the document)."""
        if pos <= 0:
            return 0
        return bisect.bisect_right(self._line_starts, pos) - 1

    def line_start(self, line: int) -> int:
        line = max(0, min(line, len(self._line_starts) - 1))
        return self._line_starts[line]

    def line_text(self, line: int) -> str:
        """Return the text of a line without its terminator."""
        start = self.line_start(line)
        end = start
        while not self.is_line_end(end):
            end += 1
        if self.char_at(end) == "\n" and self.char_at(end - 1) == "\r" and end > start:
            end -= 1
        return self.text[start:end]

    def is_line_start(self, pos: int) -> bool:
        if pos <= 0:
            return True
        previous = self.text[pos - 1] if pos - 1 < len(self.text) else ""
        if previous == "\n":
            return True
        return previous == "\r" and self.char_at(pos) != "\n"

    def is_line_end(self, pos: int) -> bool:
        ch = self.char_at(pos, "\n")
        if ch == "\n":
            return True
        return ch == "\r" and self.char_at(pos + 1) != "\n"


# =============================================================================
# Record Position Helpers
# =============================================================================

def same_record(buffer: CharSource, pos1: int, pos2: int) -> bool:
    """
    Check whether two positions belong to the same record.

    A record is exactly one physical line, so this compares line numbers.
    """
    return buffer.line_of(pos1) == buffer.line_of(pos2)


def find_record_start(buffer: CharSource, pos: int, marker: str) -> int:
    """
    Find the record start marker of the record around pos.

    Scans backward from pos to the nearest marker character, but never above
    the start of pos's line. Well-formed input always has the marker at line
    start; if the line holds no marker at all, the line start is returned.
    Callers get a position on the right line either way, and the scan is
    bounded by the line length.

    Args:
        buffer: The document
        pos: Any position inside the record
        marker: 'S' for S-Record, ':' for Intel HEX

    Returns:
        Position of the marker (or of the line start)
    """
    floor = buffer.line_start(buffer.line_of(pos))
    while pos > floor and buffer.char_at(pos) != marker:
        pos -= 1
    return pos
