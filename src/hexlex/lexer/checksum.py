"""
Hex Digit and Checksum Primitives
=================================

Everything in a record except the start marker is written as pairs of
hexadecimal digits, one pair per encoded byte. This module decodes those
pairs straight from the document buffer and computes the two checksum
flavours. It knows nothing about record layout.

Invalid Results
---------------
A digit pair that is not two ASCII hex digits decodes to None. The None
propagates: a checksum over a range containing an undecodable pair is None
too, and callers turn it into a "checksum wrong" tag. Nothing here raises
for bad input.

Checksums
---------
Both formats sum the encoded bytes modulo 256 and store a complement:

| Format      | Complement | Covered fields                      |
|-------------|------------|-------------------------------------|
| S-Record    | one's      | byte count, address, data           |
| Intel HEX   | two's      | byte count, address, type, data     |

Digit Pair Counting
-------------------
count_digit_pairs() measures how many pairs a record physically holds. A
trailing odd digit still counts as a pair, so a record whose checksum lost
its last digit keeps a valid byte count (the checksum field reports the
damage instead). The count may be negative for a record too short to hold
even the uncounted fields.
"""

import string
from enum import Enum
from typing import Optional

from hexlex.lexer.buffer import CharSource


_HEX_VALUES = {ch: int(ch, 16) for ch in string.hexdigits}


class ChecksumMode(Enum):
    """Complement applied to the byte sum."""
    ONES_COMPLEMENT = "ones"   # S-Record
    TWOS_COMPLEMENT = "twos"   # Intel HEX


def decode_hex_pair(high: str, low: str) -> Optional[int]:
    """
    Decode two hex digit characters into a byte value.

    Only ASCII digits 0-9, A-F and a-f are accepted.

    Args:
        high: Character of the high nibble
        low: Character of the low nibble

    Returns:
        The byte value (0-255), or None if either character is not a hex digit

    Example:
        >>> decode_hex_pair("4", "c")
        76
        >>> decode_hex_pair("G", "0") is None
        True
    """
    high_value = _HEX_VALUES.get(high)
    low_value = _HEX_VALUES.get(low)
    if high_value is None or low_value is None:
        return None
    return (high_value << 4) | low_value


def decode_hex_pair_at(buffer: CharSource, pos: int) -> Optional[int]:
    """Decode the digit pair at pos, pos+1; None past the document end."""
    return decode_hex_pair(buffer.char_at(pos), buffer.char_at(pos + 1))


def count_digit_pairs(buffer: CharSource, start: int, uncounted_digits: int) -> int:
    """
    Count digit pairs from start to the end of the line.

    Counts every character up to the next CR or LF (or the document end),
    subtracts uncounted_digits and halves, rounding a non-negative odd
    remainder up.

    Args:
        buffer: The document
        start: First position to count (normally the record start)
        uncounted_digits: Characters at the start that belong to fields not
            covered by the byte count (4 for S-Record, 11 for Intel HEX)

    Returns:
        Number of digit pairs; negative when the line is shorter than
        uncounted_digits
    """
    pos = start
    while buffer.char_at(pos, "\n") not in "\r\n":
        pos += 1

    count = pos - start - uncounted_digits
    if count >= 0:
        return (count + 1) // 2
    # truncate toward zero
    return -(-count // 2)


def calculate_checksum(
    buffer: CharSource,
    start: int,
    pair_count: int,
    mode: ChecksumMode,
) -> Optional[int]:
    """
    Calculate a record checksum over consecutive digit pairs.

    Args:
        buffer: The document
        start: Position of the first digit of the first pair
        pair_count: Number of digit pairs to sum
        mode: One's complement (S-Record) or two's complement (Intel HEX)

    Returns:
        The checksum byte, or None if any pair in the range does not decode

    Example:
        >>> buf = TextBuffer(":00000001FF")
        >>> calculate_checksum(buf, 1, 4, ChecksumMode.TWOS_COMPLEMENT)
        255
    """
    total = 0
    for pos in range(start, start + pair_count * 2, 2):
        value = decode_hex_pair_at(buffer, pos)
        if value is None:
            return None
        total += value

    if mode is ChecksumMode.TWOS_COMPLEMENT:
        return -total & 0xFF
    return ~total & 0xFF
