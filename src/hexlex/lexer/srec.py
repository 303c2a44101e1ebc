"""
Motorola S-Record Tokenizer
===========================

Each record (line) is built as follows:

    field       digits          tags
    +----------+
    | start    |  1 ('S')        RECSTART
    +----------+
    | type     |  1              RECTYPE
    +----------+
    | count    |  2              BYTECOUNT, BYTECOUNT_WRONG
    +----------+
    | address  |  4/6/8          NOADDRESS, DATAADDRESS, RECCOUNT,
    |          |                 STARTADDRESS, (ADDRESSFIELD_UNKNOWN)
    +----------+
    | data     |  0..504         DATA_ODD, DATA_EVEN, (DATA_UNKNOWN)
    +----------+
    | checksum |  2              CHECKSUM, CHECKSUM_WRONG
    +----------+

The byte count covers the address, data and checksum fields. The checksum
is the one's complement of the byte sum of the count, address and data
fields.

Record Types
------------
| Type | Address bytes | Address field   |
|------|---------------|-----------------|
| S0   | 2             | no address      |
| S1   | 2             | data address    |
| S2   | 3             | data address    |
| S3   | 4             | data address    |
| S5   | 2             | record count    |
| S6   | 3             | record count    |
| S7   | 4             | start address   |
| S8   | 3             | start address   |
| S9   | 2             | start address   |

Any other type digit gets a zero-size address field of unknown kind and a
DATA_UNKNOWN data field, leaving room for format extensions.

Reference
---------
- https://en.wikipedia.org/wiki/SREC_(file_format)
"""

from typing import Optional

from hexlex.lexer.buffer import CharSource, find_record_start
from hexlex.lexer.checksum import (
    ChecksumMode,
    calculate_checksum,
    count_digit_pairs,
    decode_hex_pair_at,
)
from hexlex.lexer.machine import RecordLexer, Step
from hexlex.lexer.tags import AddressField, AddressKind, HexTag


SREC_MARKER = "S"

# Characters before the byte count's coverage: 'S', type digit, count pair
SREC_UNCOUNTED_DIGITS = 4

SREC_ADDRESS_FIELDS: dict[str, AddressField] = {
    "0": AddressField(2, AddressKind.NONE),
    "1": AddressField(2, AddressKind.DATA),
    "2": AddressField(3, AddressKind.DATA),
    "3": AddressField(4, AddressKind.DATA),
    "5": AddressField(2, AddressKind.RECORD_COUNT),
    "6": AddressField(3, AddressKind.RECORD_COUNT),
    "7": AddressField(4, AddressKind.START),
    "8": AddressField(3, AddressKind.START),
    "9": AddressField(2, AddressKind.START),
}

UNKNOWN_ADDRESS_FIELD = AddressField(0, AddressKind.UNKNOWN)


# =============================================================================
# Layout Resolver
# =============================================================================

class SrecLayout:
    """
    Field layout of the S-Record around a position.

    The resolver keeps no per-record state: every answer is read from the
    buffer when asked. All methods except record_start() take the record
    start position.
    """

    def __init__(self, buffer: CharSource):
        self.buffer = buffer

    def record_start(self, pos: int) -> int:
        """Position of the 'S' of the record containing pos."""
        return find_record_start(self.buffer, pos, SREC_MARKER)

    def byte_count(self, rec: int) -> int:
        """Value of the byte count field; 0 if it does not decode."""
        value = decode_hex_pair_at(self.buffer, rec + 2)
        if value is None:
            return 0
        return value

    def count_byte_count(self, rec: int) -> int:
        """
        Digit pairs physically present for the address, data and checksum
        fields. Equals byte_count() in a well-formed record; may be negative
        for a record too short to hold its byte count.
        """
        return count_digit_pairs(self.buffer, rec, SREC_UNCOUNTED_DIGITS)

    def address_field(self, rec: int) -> AddressField:
        type_digit = self.buffer.char_at(rec + 1)
        return SREC_ADDRESS_FIELDS.get(type_digit, UNKNOWN_ADDRESS_FIELD)

    def data_field_size(self, rec: int) -> int:
        """Data field size in bytes: count minus address minus checksum.

        Negative for a byte count too small to hold the address field.
        """
        return self.byte_count(rec) - self.address_field(rec).size - 1

    def required_byte_count(self, rec: int) -> int:
        """S-Record types impose no byte count; the declared one is returned."""
        return self.byte_count(rec)

    def declared_checksum(self, rec: int) -> Optional[int]:
        """Value of the checksum field, found through the byte count."""
        return decode_hex_pair_at(self.buffer, rec + 2 + self.byte_count(rec) * 2)

    def computed_checksum(self, rec: int) -> Optional[int]:
        """One's complement sum over the count, address and data fields."""
        return calculate_checksum(
            self.buffer, rec + 2, self.byte_count(rec), ChecksumMode.ONES_COMPLEMENT
        )

    def checksum_valid(self, rec: int) -> bool:
        declared = self.declared_checksum(rec)
        computed = self.computed_checksum(rec)
        return declared is not None and computed is not None and declared == computed


# =============================================================================
# Tokenizing Machine
# =============================================================================

class SrecLexer(RecordLexer):
    """
    Tokenizer for Motorola S-Record text.

    Usage:
        styles = StyleBuffer(len(text))
        SrecLexer(TextBuffer(text)).tokenize(styles)
    """

    name = "srec"
    marker = SREC_MARKER

    def __init__(self, buffer: CharSource):
        super().__init__(buffer)
        self.layout = SrecLayout(buffer)

        self._handlers.update({
            HexTag.RECSTART: self._step_start,
            HexTag.RECTYPE: self._step_type,
            HexTag.BYTECOUNT: self._step_byte_count,
            HexTag.BYTECOUNT_WRONG: self._step_byte_count,
            HexTag.NOADDRESS: self._step_address,
            HexTag.DATAADDRESS: self._step_address,
            HexTag.RECCOUNT: self._step_address,
            HexTag.STARTADDRESS: self._step_address,
            HexTag.ADDRESSFIELD_UNKNOWN: self._step_unknown_address,
            HexTag.DATA_ODD: self._step_data,
            HexTag.DATA_EVEN: self._step_data,
            HexTag.DATA_UNKNOWN: self._step_data,
            HexTag.CHECKSUM: self._step_record_end,
            HexTag.CHECKSUM_WRONG: self._step_record_end,
        })

    def _step_start(self, pos: int, end: int) -> Step:
        """After 'S': the type digit."""
        return self._field(HexTag.RECTYPE, pos, 1, end)

    def _step_type(self, pos: int, end: int) -> Step:
        """After the type digit: the byte count, checked against the line."""
        rec = pos - 2
        if self.layout.byte_count(rec) == self.layout.count_byte_count(rec):
            tag = HexTag.BYTECOUNT
        else:
            tag = HexTag.BYTECOUNT_WRONG
        return self._field(tag, pos, 2, end)

    def _step_byte_count(self, pos: int, end: int) -> Step:
        """After the byte count: the address field, sized by record type."""
        address = self.layout.address_field(pos - 4)
        return self._field(address.kind.tag, pos, address.size * 2, end)

    def _step_address(self, pos: int, end: int) -> Step:
        """After the address: the data field, sized by the declared count."""
        return self._data_field(pos, self._data_width(pos), end)

    def _step_unknown_address(self, pos: int, end: int) -> Step:
        """Unknown record type: the data field gets no byte cadence."""
        return self._field(HexTag.DATA_UNKNOWN, pos, self._data_width(pos), end)

    def _step_data(self, pos: int, end: int) -> Step:
        """After the data: the checksum field."""
        rec = self.layout.record_start(pos)
        if self.layout.checksum_valid(rec):
            tag = HexTag.CHECKSUM
        else:
            tag = HexTag.CHECKSUM_WRONG
        return self._field(tag, pos, 2, end)

    def _data_width(self, pos: int) -> int:
        rec = self.layout.record_start(pos)
        return max(self.layout.data_field_size(rec), 0) * 2
