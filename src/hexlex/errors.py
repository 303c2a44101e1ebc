"""
hexlex Error Hierarchy
======================

This module defines the exception hierarchy for hexlex. All exceptions
inherit from HexLexError, allowing callers to catch every library error
with a single except clause.

Exception Hierarchy
-------------------
HexLexError (base)
├── TokenizeRangeError - invalid tokenizing range (negative start/length)
├── InvalidTagError - initial tag that is not a HexTag value
└── FormatError (record format selection)
    └── UnknownFormatError - unknown format name or undetectable format

Malformed Records Are Not Exceptions
------------------------------------
The tokenizers never raise for bad record content. Decode failures,
byte count mismatches, checksum mismatches, truncated records and unknown
type codes are all reported as tags (see hexlex.lexer.tags) and, one level
up, as RecordIssue values in hexlex.report. Exceptions are reserved for
misuse of the API and for the command-line surface.

Issue messages follow this format:
    filename:line:column: error: description
"""

from dataclasses import dataclass


# =============================================================================
# Base Exception Class
# =============================================================================

class HexLexError(Exception):
    """
    Base exception for all hexlex errors.

        try:
            report = validate_text(text, "auto")
        except HexLexError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in a record file for issue reporting.

    Attributes:
        filename: Name of the file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Tokenizer Exceptions
# =============================================================================

class TokenizeRangeError(HexLexError):
    """
    Invalid tokenizing range.

    Raised by RecordLexer.tokenize() when the start position or the
    length is negative. Ranges reaching past the end of the document are
    not an error; they are clamped.
    """

    def __init__(self, start: int, length: int):
        self.start = start
        self.length = length
        super().__init__(
            f"invalid tokenizing range: start={start}, length={length}"
        )


class InvalidTagError(HexLexError):
    """
    Initial tag that is not a HexTag value.

    Raised by RecordLexer.tokenize() for a resume tag such as 3 or 18,
    which no tokenizer produces.
    """

    def __init__(self, tag: int):
        self.tag = tag
        super().__init__(f"invalid initial tag: {tag!r} is not a HexTag value")


# =============================================================================
# Format Selection Exceptions
# =============================================================================

class FormatError(HexLexError):
    """Base exception for record format selection errors."""
    pass


class UnknownFormatError(FormatError):
    """
    Record format is unknown or cannot be detected.

    Raised when:
    - A format name other than "srec", "ihex" (or "auto") is requested
    - Auto-detection finds no line starting with 'S' or ':'
    """

    def __init__(self, message: str, choices: tuple[str, ...] = ()):
        self.choices = choices
        if choices:
            message = f"{message} (choose from: {', '.join(choices)})"
        super().__init__(message)
