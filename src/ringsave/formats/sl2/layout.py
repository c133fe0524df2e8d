"""
SL2 Container Layout

Fixed offsets and widths of the character save container, plus the
arithmetic that maps a slot index to its byte ranges.

File map (all offsets absolute, 0-based):

    0x00000310  slot 0 checksum (MD5, 16 bytes)
    0x00000320  slot 0 data     (0x280000 bytes)
    ...         slots 1-9 follow with the same checksum + data stride
    0x019003A0  header-array checksum (MD5 over the whole header array)
    0x019003A4  owner id (8 bytes, overlaps bytes 4-11 of that checksum)
    0x019003B0  header array (0x60000 bytes)
    0x01901D04  active-status array (10 bytes, 1 = active)
    0x01901D0E  per-record headers (10 x 0x24C bytes)

Two integrity domains: each slot's data is preceded by its own checksum,
and the whole header array is preceded by one checksum. They meet at the
end of slot 9, whose last 16 bytes are the header-array checksum field.
"""

from ...errors import IndexOutOfRange


MAX_SLOTS = 10

CHECKSUM_LENGTH = 0x10  # MD5

# Slot data region
SLOT_REGION_START = 0x310
SLOT_LENGTH = 0x280000  # 2,621,440 bytes
SLOT_STRIDE = SLOT_LENGTH + CHECKSUM_LENGTH

# Header array (per-record headers + active flags live inside it)
HEADERS_SECTION_START = 0x19003B0
HEADERS_SECTION_LENGTH = 0x60000  # 393,216 bytes
HEADERS_CHECKSUM_OFFSET = HEADERS_SECTION_START - CHECKSUM_LENGTH

# Per-record header
HEADER_START = 0x1901D0E
HEADER_LENGTH = 0x24C  # 588 bytes

# Fields relative to a per-record header
NAME_OFFSET_IN_HEADER = 0x0
NAME_MAX_BYTES = 0x22  # 17 UTF-16LE code units
NAME_MAX_CHARS = NAME_MAX_BYTES // 2
LEVEL_OFFSET_IN_HEADER = 0x22
SECONDS_PLAYED_OFFSET_IN_HEADER = 0x26

# Active-status array, one byte per slot
ACTIVE_STATUS_START = 0x1901D04
ACTIVE_FLAG = 0x01

# Owner (platform account) id
OWNER_ID_OFFSET = 0x19003A4
OWNER_ID_LENGTH = 8

# Smallest buffer that covers every slot and the header array
MIN_FILE_SIZE = max(
    SLOT_REGION_START + MAX_SLOTS * SLOT_STRIDE,
    HEADERS_SECTION_START + HEADERS_SECTION_LENGTH,
)


def check_slot_index(index: int) -> int:
    """Return index unchanged, or raise IndexOutOfRange."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise IndexOutOfRange(f"Slot index must be an integer, got {index!r}", index=None)
    if not 0 <= index < MAX_SLOTS:
        raise IndexOutOfRange(
            f"Slot index {index} outside 0..{MAX_SLOTS - 1}", index=index
        )
    return index


def slot_checksum_offset(index: int) -> int:
    """Offset of the MD5 stored in front of slot `index`."""
    return SLOT_REGION_START + check_slot_index(index) * SLOT_STRIDE


def slot_data_offset(index: int) -> int:
    """Offset of slot `index`'s bulk payload."""
    return slot_checksum_offset(index) + CHECKSUM_LENGTH


def header_offset(index: int) -> int:
    """Offset of slot `index`'s 588-byte record header."""
    return HEADER_START + check_slot_index(index) * HEADER_LENGTH


def active_status_offset(index: int) -> int:
    """Offset of slot `index`'s active byte."""
    return ACTIVE_STATUS_START + check_slot_index(index)


def slot_data_range(index: int) -> range:
    start = slot_data_offset(index)
    return range(start, start + SLOT_LENGTH)


def header_range(index: int) -> range:
    start = header_offset(index)
    return range(start, start + HEADER_LENGTH)


def _slot_covering(offset: int):
    for index in range(MAX_SLOTS):
        start = slot_data_offset(index)
        if start <= offset < start + SLOT_LENGTH:
            return index
    return None


# The last slot's data runs up to HEADERS_SECTION_START, so its final 16
# bytes are the header-array checksum field (owner id included). Writing
# that checksum changes this slot's data and leaves its own checksum stale.
HEADERS_CHECKSUM_SLOT = _slot_covering(HEADERS_CHECKSUM_OFFSET)
