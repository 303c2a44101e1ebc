"""
Intel HEX Tokenizer
===================

Each record (line) is built as follows:

    field       digits          tags
    +----------+
    | start    |  1 (':')        RECSTART
    +----------+
    | count    |  2              BYTECOUNT, BYTECOUNT_WRONG
    +----------+
    | address  |  4              NOADDRESS, DATAADDRESS, (ADDRESSFIELD_UNKNOWN)
    +----------+
    | type     |  2              RECTYPE
    +----------+
    | data     |  0..510         DATA_ODD, DATA_EVEN, DATA_EMPTY,
    |          |                 EXTENDEDADDRESS, STARTADDRESS, (DATA_UNKNOWN)
    +----------+
    | checksum |  2              CHECKSUM, CHECKSUM_WRONG
    +----------+

The byte count covers the data field only. The checksum is the two's
complement of the byte sum of the count, address, type and data fields.

Record Types
------------
| Type | Meaning                    | Address field | Data field       | Data bytes |
|------|----------------------------|---------------|------------------|------------|
| 00   | Data                       | data address  | odd/even data    | byte count |
| 01   | End of file                | no address    | empty            | 0          |
| 02   | Extended segment address   | no address    | extended address | 2          |
| 03   | Start segment address      | no address    | start address    | 4          |
| 04   | Extended linear address    | no address    | extended address | 2          |
| 05   | Start linear address       | no address    | start address    | 4          |

The record type sits after the address field, so the address field kind is
only known once the record reaches offset 7. Other type values are tagged
unknown and their data field trusts the byte count.

Reference
---------
- https://en.wikipedia.org/wiki/Intel_HEX
"""

from typing import Optional

from hexlex.lexer.buffer import CharSource, find_record_start, same_record
from hexlex.lexer.checksum import (
    ChecksumMode,
    calculate_checksum,
    count_digit_pairs,
    decode_hex_pair_at,
)
from hexlex.lexer.machine import RecordLexer, Step
from hexlex.lexer.tags import AddressKind, DataKind, HexTag


IHEX_MARKER = ":"

# Characters outside the byte count's coverage: ':', count, address, type,
# and the first checksum digit (the second rounds up in count_digit_pairs)
IHEX_UNCOUNTED_DIGITS = 11

# Offset of the record type pair from the record start
IHEX_TYPE_OFFSET = 7

IHEX_ADDRESS_KINDS: dict[int, AddressKind] = {
    0x00: AddressKind.DATA,
    0x01: AddressKind.NONE,
    0x02: AddressKind.NONE,
    0x03: AddressKind.NONE,
    0x04: AddressKind.NONE,
    0x05: AddressKind.NONE,
}

IHEX_DATA_KINDS: dict[int, DataKind] = {
    0x00: DataKind.ODD_EVEN,
    0x01: DataKind.EMPTY,
    0x02: DataKind.EXTENDED_ADDRESS,
    0x03: DataKind.START_ADDRESS,
    0x04: DataKind.EXTENDED_ADDRESS,
    0x05: DataKind.START_ADDRESS,
}

# Fixed data field sizes in bytes; types not listed use the byte count
IHEX_REQUIRED_DATA_SIZES: dict[int, int] = {
    0x01: 0,
    0x02: 2,
    0x03: 4,
    0x04: 2,
    0x05: 4,
}


# =============================================================================
# Layout Resolver
# =============================================================================

class IHexLayout:
    """
    Field layout of the Intel HEX record around a position.

    Like SrecLayout, it stores nothing but the buffer. All methods except
    record_start() take the record start position.
    """

    def __init__(self, buffer: CharSource):
        self.buffer = buffer

    def record_start(self, pos: int) -> int:
        """Position of the ':' of the record containing pos."""
        return find_record_start(self.buffer, pos, IHEX_MARKER)

    def byte_count(self, rec: int) -> int:
        """Value of the byte count field; 0 if it does not decode."""
        value = decode_hex_pair_at(self.buffer, rec + 1)
        if value is None:
            return 0
        return value

    def count_byte_count(self, rec: int) -> int:
        """
        Digit pairs physically present for the data field. Equals
        byte_count() in a well-formed record; may be negative.
        """
        return count_digit_pairs(self.buffer, rec, IHEX_UNCOUNTED_DIGITS)

    def record_type(self, rec: int) -> Optional[int]:
        """
        Value of the record type field.

        None if the record is too short to reach the field (it would be read
        from the next line) or the field does not decode.
        """
        if not same_record(self.buffer, rec, rec + IHEX_TYPE_OFFSET):
            return None
        return decode_hex_pair_at(self.buffer, rec + IHEX_TYPE_OFFSET)

    def address_kind(self, rec: int) -> AddressKind:
        return IHEX_ADDRESS_KINDS.get(self.record_type(rec), AddressKind.UNKNOWN)

    def data_kind(self, rec: int) -> DataKind:
        return IHEX_DATA_KINDS.get(self.record_type(rec), DataKind.UNKNOWN)

    def required_data_field_size(self, rec: int) -> int:
        """
        Data field size in bytes implied by the record type.

        Ordinary data and unknown types have no fixed size; the byte count is
        returned for them.
        """
        size = IHEX_REQUIRED_DATA_SIZES.get(self.record_type(rec))
        if size is None:
            return self.byte_count(rec)
        return size

    def required_byte_count(self, rec: int) -> int:
        """Byte count the record type calls for (its fixed data size)."""
        return self.required_data_field_size(rec)

    def declared_checksum(self, rec: int) -> Optional[int]:
        """Value of the checksum field, found through the byte count."""
        return decode_hex_pair_at(self.buffer, rec + 9 + self.byte_count(rec) * 2)

    def computed_checksum(self, rec: int) -> Optional[int]:
        """Two's complement sum over the count, address, type and data fields."""
        return calculate_checksum(
            self.buffer, rec + 1, 4 + self.byte_count(rec), ChecksumMode.TWOS_COMPLEMENT
        )

    def checksum_valid(self, rec: int) -> bool:
        declared = self.declared_checksum(rec)
        computed = self.computed_checksum(rec)
        return declared is not None and computed is not None and declared == computed


# =============================================================================
# Tokenizing Machine
# =============================================================================

class IHexLexer(RecordLexer):
    """
    Tokenizer for Intel HEX text.

    Usage:
        log = TransitionLog()
        IHexLexer(TextBuffer(text)).tokenize(log)
    """

    name = "ihex"
    marker = IHEX_MARKER

    def __init__(self, buffer: CharSource):
        super().__init__(buffer)
        self.layout = IHexLayout(buffer)

        self._handlers.update({
            HexTag.RECSTART: self._step_start,
            HexTag.BYTECOUNT: self._step_byte_count,
            HexTag.BYTECOUNT_WRONG: self._step_byte_count,
            HexTag.NOADDRESS: self._step_address,
            HexTag.DATAADDRESS: self._step_address,
            HexTag.ADDRESSFIELD_UNKNOWN: self._step_address,
            HexTag.RECTYPE: self._step_type,
            HexTag.DATA_ODD: self._step_data,
            HexTag.DATA_EVEN: self._step_data,
            HexTag.DATA_EMPTY: self._step_data,
            HexTag.EXTENDEDADDRESS: self._step_data,
            HexTag.STARTADDRESS: self._step_data,
            HexTag.DATA_UNKNOWN: self._step_data,
            HexTag.CHECKSUM: self._step_record_end,
            HexTag.CHECKSUM_WRONG: self._step_record_end,
        })

    def _step_start(self, pos: int, end: int) -> Step:
        """
        After ':': the byte count.

        It is valid only if it matches both the digit pairs on the line and
        the size the record type requires.
        """
        rec = pos - 1
        byte_count = self.layout.byte_count(rec)
        if (byte_count == self.layout.count_byte_count(rec)
                and byte_count == self.layout.required_data_field_size(rec)):
            tag = HexTag.BYTECOUNT
        else:
            tag = HexTag.BYTECOUNT_WRONG
        return self._field(tag, pos, 2, end)

    def _step_byte_count(self, pos: int, end: int) -> Step:
        """After the byte count: the address field, its kind from the type."""
        kind = self.layout.address_kind(pos - 3)
        return self._field(kind.tag, pos, 4, end)

    def _step_address(self, pos: int, end: int) -> Step:
        return self._field(HexTag.RECTYPE, pos, 2, end)

    def _step_type(self, pos: int, end: int) -> Step:
        """After the type: the data field."""
        rec = pos - 9
        kind = self.layout.data_kind(rec)

        if kind is DataKind.ODD_EVEN:
            return self._data_field(pos, self.layout.byte_count(rec) * 2, end)
        if kind is DataKind.UNKNOWN:
            return self._field(kind.tag, pos, self.layout.byte_count(rec) * 2, end)
        # Fixed-size payloads: the checksum lands at the same position
        # whatever the byte count says.
        return self._field(kind.tag, pos, self.layout.required_data_field_size(rec) * 2, end)

    def _step_data(self, pos: int, end: int) -> Step:
        """After the data: the checksum field."""
        rec = self.layout.record_start(pos)
        if self.layout.checksum_valid(rec):
            tag = HexTag.CHECKSUM
        else:
            tag = HexTag.CHECKSUM_WRONG
        return self._field(tag, pos, 2, end)
