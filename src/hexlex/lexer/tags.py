"""
Semantic Tags and Field Kinds
=============================

The tokenizers classify every character of a record file with one of the
tags below. A tag is also the state of the tokenizing machine: the machine
is "in" the field it is currently walking over.

Tag Values
----------
The numeric values are the ones editors use for the S-Record and Intel HEX
lexers, so a host can store them directly as style numbers. Values 3 and
18 are not produced by these lexers.

Field Kinds
-----------
Which tag an address or data field receives depends on the record type.
The layout resolvers map a record type to an AddressKind or a DataKind
(closed enumerations), and each kind knows its tag.

| Field   | Kinds                                                    |
|---------|----------------------------------------------------------|
| address | NONE, DATA, RECORD_COUNT, START, UNKNOWN                 |
| data    | ODD_EVEN, EMPTY, EXTENDED_ADDRESS, START_ADDRESS, UNKNOWN |
"""

from dataclasses import dataclass
from enum import Enum, IntEnum


class HexTag(IntEnum):
    """
    Semantic tag of a record field, and state of the tokenizing machine.
    """
    DEFAULT = 0                 # Idle: between records, or non-record text
    RECSTART = 1                # 'S' or ':'
    RECTYPE = 2                 # S-Record type digit, Intel HEX type pair
    BYTECOUNT = 4               # Byte count matching the record length
    BYTECOUNT_WRONG = 5         # Byte count not matching the record length
    NOADDRESS = 6               # Address field without address meaning
    DATAADDRESS = 7             # Load address of the data field
    RECCOUNT = 8                # S5/S6 record count
    STARTADDRESS = 9            # S7-S9 start address, Intel 03/05 payload
    ADDRESSFIELD_UNKNOWN = 10   # Address field of an unknown record type
    EXTENDEDADDRESS = 11        # Intel 02/04 payload
    DATA_ODD = 12               # Ordinary data, 1st, 3rd, 5th... byte
    DATA_EVEN = 13              # Ordinary data, 2nd, 4th, 6th... byte
    DATA_UNKNOWN = 14           # Data field of an unknown record type
    DATA_EMPTY = 15             # Intel 01 (end of file) data field
    CHECKSUM = 16               # Checksum matching the record
    CHECKSUM_WRONG = 17         # Checksum not matching, or undecodable

    def is_byte_count(self) -> bool:
        return self in (HexTag.BYTECOUNT, HexTag.BYTECOUNT_WRONG)

    def is_address(self) -> bool:
        return self in _ADDRESS_TAGS

    def is_data(self) -> bool:
        return self in _DATA_TAGS

    def is_checksum(self) -> bool:
        return self in (HexTag.CHECKSUM, HexTag.CHECKSUM_WRONG)

    def is_problem(self) -> bool:
        """True for the tags that flag a malformed record."""
        return self in (HexTag.BYTECOUNT_WRONG, HexTag.CHECKSUM_WRONG)

    def is_unknown(self) -> bool:
        """True for the forward-compatibility tags of unknown record types."""
        return self in (HexTag.ADDRESSFIELD_UNKNOWN, HexTag.DATA_UNKNOWN)


_ADDRESS_TAGS = frozenset({
    HexTag.NOADDRESS,
    HexTag.DATAADDRESS,
    HexTag.RECCOUNT,
    HexTag.STARTADDRESS,
    HexTag.ADDRESSFIELD_UNKNOWN,
})

# STARTADDRESS is a data tag in Intel HEX (types 03/05) and an address tag
# in S-Record (S7-S9); it is listed in both groups.
_DATA_TAGS = frozenset({
    HexTag.DATA_ODD,
    HexTag.DATA_EVEN,
    HexTag.DATA_UNKNOWN,
    HexTag.DATA_EMPTY,
    HexTag.EXTENDEDADDRESS,
    HexTag.STARTADDRESS,
})


class AddressKind(Enum):
    """What the address field of a record holds."""
    NONE = HexTag.NOADDRESS
    DATA = HexTag.DATAADDRESS
    RECORD_COUNT = HexTag.RECCOUNT
    START = HexTag.STARTADDRESS
    UNKNOWN = HexTag.ADDRESSFIELD_UNKNOWN

    @property
    def tag(self) -> HexTag:
        return HexTag(self.value)


class DataKind(Enum):
    """What the data field of a record holds."""
    ODD_EVEN = HexTag.DATA_ODD
    EMPTY = HexTag.DATA_EMPTY
    EXTENDED_ADDRESS = HexTag.EXTENDEDADDRESS
    START_ADDRESS = HexTag.STARTADDRESS
    UNKNOWN = HexTag.DATA_UNKNOWN

    @property
    def tag(self) -> HexTag:
        return HexTag(self.value)


@dataclass(frozen=True)
class AddressField:
    """
    Size and kind of an address field.

    Attributes:
        size: Field size in bytes (digit pairs)
        kind: What the field holds
    """
    size: int
    kind: AddressKind
