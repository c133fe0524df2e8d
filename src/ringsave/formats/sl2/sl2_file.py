"""
SL2 Save Container Parser

Reads a complete save buffer into a SaveContainer: the owner id plus one
SlotRecord per character slot. Slot spans are zero-copy views into the
container's buffer, so a container and its records share one allocation.

A slot whose metadata cannot be decoded is still returned, with a
placeholder name and the problem noted in parsing_issues. Only a buffer too
small for the layout fails the parse as a whole.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from ...errors import FieldDecodeError, InsufficientLength, SaveFileError
from ...utils.binary import decode_int32_le, decode_utf16le_string
from . import layout as L


logger = logging.getLogger(__name__)


EMPTY_NAME_TEMPLATE = "Character {number} (Name Appears Empty)"
ERROR_NAME_TEMPLATE = "Error Parsing Slot {number}"

ISSUE_EMPTY_NAME = "Character name is empty or unreadable."
ISSUE_ZERO_LEVEL = "Character level is 0."


@dataclass
class SlotRecord:
    """One character slot."""
    index: int
    active: bool = False
    display_name: str = ""
    level: int = 0
    seconds_played: int = 0  # signed on disk

    # Views into the owning container's buffer
    header_bytes: memoryview = field(default_factory=lambda: memoryview(b""), repr=False)
    slot_bytes: memoryview = field(default_factory=lambda: memoryview(b""), repr=False)

    parsing_issues: List[str] = field(default_factory=list)

    @property
    def number(self) -> int:
        """1-based slot number, as shown to players."""
        return self.index + 1

    @property
    def has_issues(self) -> bool:
        return bool(self.parsing_issues)


@dataclass
class SaveContainer:
    """A parsed save file. Never mutated; a transplant produces a new buffer."""
    file_name: str
    raw_bytes: bytes = field(repr=False)
    owner_id: bytes = b""
    slots: Tuple[SlotRecord, ...] = ()

    @classmethod
    def from_bytes(cls, data: bytes, file_name: str = "") -> 'SaveContainer':
        """Parse a container from an in-memory buffer."""
        return parse(file_name, data)

    @classmethod
    def read(cls, path: str) -> 'SaveContainer':
        """Read and parse a save file from disk."""
        path = Path(path)
        return parse(path.name, path.read_bytes())

    @property
    def size(self) -> int:
        return len(self.raw_bytes)

    def get_slot(self, index: int) -> SlotRecord:
        """Slot record at index (IndexOutOfRange if outside the layout)."""
        return self.slots[L.check_slot_index(index)]

    def active_slots(self) -> List[SlotRecord]:
        return [slot for slot in self.slots if slot.active]

    def active_flags(self) -> List[int]:
        """Raw active-status bytes, one per slot."""
        start = L.ACTIVE_STATUS_START
        return list(self.raw_bytes[start:start + L.MAX_SLOTS])


def check_minimum_size(data: bytes) -> None:
    """Raise InsufficientLength if data cannot hold every region of the layout."""
    if len(data) < L.MIN_FILE_SIZE:
        raise InsufficientLength(
            f"Save file too small: {len(data):,} bytes, layout needs at least {L.MIN_FILE_SIZE:,}",
            offset=len(data),
        )


def parse(file_name: str, raw_bytes: bytes) -> SaveContainer:
    """
    Parse a complete save buffer.

    Args:
        file_name: Display name only, never used in offset arithmetic
        raw_bytes: Whole file content; copied once if given as a bytearray

    Returns:
        SaveContainer with exactly MAX_SLOTS records in index order

    Raises:
        InsufficientLength: buffer shorter than MIN_FILE_SIZE
    """
    data = raw_bytes if isinstance(raw_bytes, bytes) else bytes(raw_bytes)
    check_minimum_size(data)

    view = memoryview(data)
    owner_id = bytes(view[L.OWNER_ID_OFFSET:L.OWNER_ID_OFFSET + L.OWNER_ID_LENGTH])

    slots = tuple(_parse_slot(view, index) for index in range(L.MAX_SLOTS))

    logger.debug(f"Parsed {file_name or '<buffer>'}: {len(data):,} bytes, "
                 f"{sum(1 for s in slots if s.active)} active slots")

    return SaveContainer(
        file_name=file_name,
        raw_bytes=data,
        owner_id=owner_id,
        slots=slots,
    )


def _parse_slot(view: memoryview, index: int) -> SlotRecord:
    """Build the record for one slot. Decode problems become parsing issues."""
    active = view[L.active_status_offset(index)] == L.ACTIVE_FLAG

    header_start = L.header_offset(index)
    header = view[header_start:header_start + L.HEADER_LENGTH]

    data_start = L.slot_data_offset(index)
    slot_data = view[data_start:data_start + L.SLOT_LENGTH]

    record = SlotRecord(
        index=index,
        active=active,
        display_name=EMPTY_NAME_TEMPLATE.format(number=index + 1),
        header_bytes=header,
        slot_bytes=slot_data,
    )

    if active:
        try:
            _decode_header_fields(record, header)
        except FieldDecodeError as e:
            logger.warning(f"Slot {index}: {e.message}")
            record.display_name = ERROR_NAME_TEMPLATE.format(number=index + 1)
            record.parsing_issues.append(f"Parsing error: {e.message}")

    logger.debug(f"  slot {index}: active={record.active} name={record.display_name!r} "
                 f"level={record.level}")
    return record


def _decode_header_fields(record: SlotRecord, header: memoryview) -> None:
    """Fill name, level and play time from an active slot's header."""
    try:
        name_end = L.NAME_OFFSET_IN_HEADER + L.NAME_MAX_BYTES
        name = decode_utf16le_string(
            header[L.NAME_OFFSET_IN_HEADER:name_end], L.NAME_MAX_CHARS
        ).strip()
        if name:
            record.display_name = name
        else:
            record.parsing_issues.append(ISSUE_EMPTY_NAME)

        record.level = header[L.LEVEL_OFFSET_IN_HEADER]
        if record.level == 0 and name:
            record.parsing_issues.append(ISSUE_ZERO_LEVEL)

        seconds_start = L.SECONDS_PLAYED_OFFSET_IN_HEADER
        record.seconds_played = decode_int32_le(header[seconds_start:seconds_start + 4])
    except (SaveFileError, ValueError, IndexError) as e:
        raise FieldDecodeError(str(e), index=record.index) from e

