"""
hexlex - Incremental Tokenizer for S-Record and Intel HEX Files
===============================================================

This package tags every field of Motorola S-Record and Intel HEX text:
record start markers, record types, byte counts, addresses, data bytes and
checksums. Byte counts and checksums are checked as the records are read,
and wrong ones get their own tags.

Tokenizing is resumable: a pass can start at any record boundary and
produces the same tags a full pass would, so an editor can re-tokenize
only the records that changed.

Main Components
---------------
- **lexer**: The tokenizers (SrecLexer, IHexLexer), tags and sinks
- **report**: Per-record view and issue list built from the tags
- **config**: Defaults and environment configuration for hexscan
- **cli**: The hexscan command-line tool

Quick Start
-----------
Tag a document:
    >>> from hexlex.lexer import SrecLexer, TextBuffer, TransitionLog
    >>> log = TransitionLog()
    >>> state = SrecLexer(TextBuffer("S9030000FC\\n")).tokenize(log)
    >>> log.transitions[0]
    Transition(0, RECSTART)

Check a file:
    >>> from hexlex.report import validate_text
    >>> report = validate_text(open("firmware.hex").read(), "auto", "firmware.hex")
    >>> print(report.summary())

Or use the command-line tool:
    $ hexscan check firmware.hex
    $ hexscan show image.s19

Reference Documentation
-----------------------
- S-Record: https://en.wikipedia.org/wiki/SREC_(file_format)
- Intel HEX: https://en.wikipedia.org/wiki/Intel_HEX

Version History
---------------
1.0.0 - Initial release with S-Record and Intel HEX tokenizers and hexscan
"""

__version__ = "1.0.0"
__author__ = "hexlex contributors"

from hexlex.errors import (
    FormatError,
    HexLexError,
    SourceLocation,
    TokenizeRangeError,
    UnknownFormatError,
)
from hexlex.lexer import (
    HexTag,
    IHexLexer,
    SrecLexer,
    StyleBuffer,
    TextBuffer,
    TransitionLog,
    get_lexer_class,
)
from hexlex.report import ValidationReport, detect_format, scan_records, validate_text

__all__ = [
    "__version__",
    # Errors
    "HexLexError",
    "TokenizeRangeError",
    "FormatError",
    "UnknownFormatError",
    "SourceLocation",
    # Tokenizers
    "HexTag",
    "SrecLexer",
    "IHexLexer",
    "TextBuffer",
    "TransitionLog",
    "StyleBuffer",
    "get_lexer_class",
    # Reports
    "ValidationReport",
    "detect_format",
    "scan_records",
    "validate_text",
]
