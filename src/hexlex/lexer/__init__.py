"""
S-Record and Intel HEX Tokenizers
=================================

This package walks S-Record and Intel HEX text one record (line) at a
time and tags every field of every record: start marker, type, byte count,
address, data and checksum, with separate tags for byte counts and
checksums that do not match the record.

Components
----------
- **buffer**: Read-only document access (TextBuffer) and line helpers
- **checksum**: Hex digit pair decoding, digit pair counting, checksums
- **srec** / **ihex**: Per-format layout resolvers and tokenizing machines
- **machine**: The shared state machine driver (RecordLexer, Step)
- **sinks**: Where the transitions go (TransitionLog, StyleBuffer)
- **tags**: HexTag and the address/data field kinds

Quick Start
-----------
    >>> from hexlex.lexer import IHexLexer, StyleBuffer, TextBuffer
    >>> text = ":00000001FF\\n"
    >>> styles = StyleBuffer(len(text))
    >>> final_state = IHexLexer(TextBuffer(text)).tokenize(styles)
    >>> styles.tag_at(9)
    <HexTag.CHECKSUM: 16>

Resuming
--------
A pass can start at any record boundary: pass the start position and the
tag in effect just before it (DEFAULT at a line start). Only the records
from there on are re-read.
"""

from hexlex.errors import UnknownFormatError
from hexlex.lexer.buffer import (
    SENTINEL,
    CharSource,
    TextBuffer,
    find_record_start,
    same_record,
)
from hexlex.lexer.checksum import (
    ChecksumMode,
    calculate_checksum,
    count_digit_pairs,
    decode_hex_pair,
    decode_hex_pair_at,
)
from hexlex.lexer.ihex import IHexLayout, IHexLexer
from hexlex.lexer.machine import RecordLayout, RecordLexer, Step
from hexlex.lexer.sinks import StyleBuffer, TagSink, Transition, TransitionLog
from hexlex.lexer.srec import SrecLayout, SrecLexer
from hexlex.lexer.tags import AddressField, AddressKind, DataKind, HexTag


# =============================================================================
# Lexers by Name
# =============================================================================

LEXERS: dict[str, type[RecordLexer]] = {
    SrecLexer.name: SrecLexer,
    IHexLexer.name: IHexLexer,
}


def get_lexer_class(name: str) -> type[RecordLexer]:
    """
    Look up a tokenizer class by format name ("srec" or "ihex").

    Raises:
        UnknownFormatError: If no tokenizer has that name
    """
    try:
        return LEXERS[name.lower()]
    except KeyError:
        raise UnknownFormatError(
            f"unknown record format '{name}'", choices=tuple(LEXERS)
        ) from None


__all__ = [
    # Tags and kinds
    "HexTag",
    "AddressKind",
    "DataKind",
    "AddressField",
    # Buffer access
    "SENTINEL",
    "CharSource",
    "TextBuffer",
    "same_record",
    "find_record_start",
    # Primitives
    "ChecksumMode",
    "decode_hex_pair",
    "decode_hex_pair_at",
    "count_digit_pairs",
    "calculate_checksum",
    # Machines
    "RecordLayout",
    "RecordLexer",
    "Step",
    "SrecLayout",
    "SrecLexer",
    "IHexLayout",
    "IHexLexer",
    "LEXERS",
    "get_lexer_class",
    # Sinks
    "TagSink",
    "Transition",
    "TransitionLog",
    "StyleBuffer",
]
