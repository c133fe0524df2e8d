"""
Slot Transplant

Copies one character record into a slot of another save file:

1. copy the target buffer (inputs are never patched in place)
2. rewrite the source owner id to the target's inside the slot payload
3. write payload and header into the target slot, mark the slot active
4. recompute the slot checksum and the header-array checksum

Either a complete new buffer comes back or an exception is raised before
anything is returned.
"""

import logging

from ..errors import LengthMismatch
from ..formats.sl2 import layout as L
from ..formats.sl2.sl2_file import SaveContainer, SlotRecord
from ..utils.binary import checksum, find_all_occurrences, replace_all_fixed_width


logger = logging.getLogger(__name__)


def transplant(
    source_record: SlotRecord,
    target_slot_index: int,
    source_container: SaveContainer,
    target_container: SaveContainer,
) -> bytes:
    """
    Build a new target file with source_record in target_slot_index.

    Args:
        source_record: Record taken from source_container
        target_slot_index: Destination slot, 0..MAX_SLOTS-1
        source_container: Container the record was parsed from
        target_container: Container receiving the record

    Returns:
        The complete modified file as a new bytes object

    Raises:
        IndexOutOfRange: target_slot_index outside the layout
        LengthMismatch: owner ids of the two containers differ in width
    """
    L.check_slot_index(target_slot_index)

    source_owner = bytes(source_container.owner_id)
    target_owner = bytes(target_container.owner_id)
    if len(source_owner) != len(target_owner):
        raise LengthMismatch(
            f"Owner id widths differ: source {len(source_owner)} bytes, "
            f"target {len(target_owner)} bytes"
        )

    new_file = bytearray(target_container.raw_bytes)

    rewritten = len(find_all_occurrences(source_record.slot_bytes, source_owner))
    payload = replace_all_fixed_width(source_record.slot_bytes, source_owner, target_owner)

    data_start = L.slot_data_offset(target_slot_index)
    new_file[data_start:data_start + L.SLOT_LENGTH] = payload

    # Headers carry no owner id and are copied as-is
    header_start = L.header_offset(target_slot_index)
    new_file[header_start:header_start + L.HEADER_LENGTH] = source_record.header_bytes

    new_file[L.active_status_offset(target_slot_index)] = L.ACTIVE_FLAG

    slot_sum = checksum(payload)
    sum_start = L.slot_checksum_offset(target_slot_index)
    new_file[sum_start:sum_start + L.CHECKSUM_LENGTH] = slot_sum
    logger.debug(f"Slot {target_slot_index} checksum {slot_sum.hex()} at 0x{sum_start:X}")

    headers_end = L.HEADERS_SECTION_START + L.HEADERS_SECTION_LENGTH
    headers_sum = checksum(new_file[L.HEADERS_SECTION_START:headers_end])
    new_file[L.HEADERS_CHECKSUM_OFFSET:L.HEADERS_CHECKSUM_OFFSET + L.CHECKSUM_LENGTH] = headers_sum
    logger.debug(f"Header-array checksum {headers_sum.hex()} at 0x{L.HEADERS_CHECKSUM_OFFSET:X}")

    logger.info(
        f"Transplanted slot {source_record.index} of {source_container.file_name or '<source>'} "
        f"into slot {target_slot_index} of {target_container.file_name or '<target>'} "
        f"({rewritten} owner id occurrence(s) rewritten)"
    )
    return bytes(new_file)
