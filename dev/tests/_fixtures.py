"""
Synthetic SL2 save buffers for the test modules.

build_save() writes headers, active flags, slot payloads and checksums at
the layout offsets. The owner id field overlaps the header-array checksum,
so a consistent file's owner id is whatever lands there once that checksum
is written; build_save() reads it back and embeds it in each payload.
"""

import hashlib
import struct
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

from ringsave.formats.sl2 import layout as L


OWNER_HIT_START = 0x1000
OWNER_HIT_STRIDE = 0x10000


@dataclass
class SlotSpec:
    """What to put in one slot."""
    name: str = ""
    level: int = 1
    seconds: int = 0
    status: int = 1
    owner_hits: int = 2
    raw_name: Optional[bytes] = None
    marker: int = 0


def build_header(name: str = "", level: int = 0, seconds: int = 0,
                 raw_name: Optional[bytes] = None) -> bytes:
    header = bytearray(L.HEADER_LENGTH)
    name_bytes = raw_name if raw_name is not None else name.encode("utf-16-le")
    name_bytes = name_bytes[:L.NAME_MAX_BYTES]
    header[:len(name_bytes)] = name_bytes
    header[L.LEVEL_OFFSET_IN_HEADER] = level
    struct.pack_into("<i", header, L.SECONDS_PLAYED_OFFSET_IN_HEADER, seconds)
    return bytes(header)


def build_save(slots: Dict[int, SlotSpec], tag: int = 0) -> bytes:
    """A minimum-size save with every checksum valid."""
    data = bytearray(L.MIN_FILE_SIZE)

    # Anything in the header array ahead of the records; makes owner ids differ per file
    data[L.HEADERS_SECTION_START + 0x10] = tag & 0xFF

    for index, spec in slots.items():
        data[L.active_status_offset(index)] = spec.status
        start = L.header_offset(index)
        data[start:start + L.HEADER_LENGTH] = build_header(
            spec.name, spec.level, spec.seconds, spec.raw_name
        )

    headers_end = L.HEADERS_SECTION_START + L.HEADERS_SECTION_LENGTH
    data[L.HEADERS_CHECKSUM_OFFSET:L.HEADERS_CHECKSUM_OFFSET + L.CHECKSUM_LENGTH] = \
        hashlib.md5(data[L.HEADERS_SECTION_START:headers_end]).digest()
    owner_id = bytes(data[L.OWNER_ID_OFFSET:L.OWNER_ID_OFFSET + L.OWNER_ID_LENGTH])

    for index in range(L.MAX_SLOTS):
        start = L.slot_data_offset(index)
        spec = slots.get(index)
        if spec is not None:
            data[start] = 0xA0 + index
            data[start + 1] = spec.marker
            for hit in range(spec.owner_hits):
                pos = start + OWNER_HIT_START + hit * OWNER_HIT_STRIDE
                data[pos:pos + L.OWNER_ID_LENGTH] = owner_id
        sum_start = L.slot_checksum_offset(index)
        data[sum_start:sum_start + L.CHECKSUM_LENGTH] = \
            hashlib.md5(data[start:start + L.SLOT_LENGTH]).digest()

    return bytes(data)


@lru_cache(maxsize=None)
def source_bytes() -> bytes:
    """Three characters; slot 1 is empty, slot 4 has a stray status byte."""
    return build_save({
        0: SlotSpec(name="Ash", level=42, seconds=3723, owner_hits=3, marker=1),
        2: SlotSpec(name="Melina", level=120, seconds=90061, owner_hits=1, marker=2),
        3: SlotSpec(name="", level=0, seconds=5, owner_hits=1, marker=3),
        4: SlotSpec(name="Ghost", level=9, status=0x02, marker=4),
    }, tag=1)


@lru_cache(maxsize=None)
def target_bytes() -> bytes:
    """Two characters in slots 0 and 5; slot 3 is free."""
    return build_save({
        0: SlotSpec(name="Tarnished", level=7, seconds=600, owner_hits=2, marker=9),
        5: SlotSpec(name="Ranni", level=80, seconds=7200, owner_hits=2, marker=8),
    }, tag=2)
