"""
Integrity Verification

Checks the two checksum domains of a save buffer: one MD5 in front of each
slot's data, and one MD5 in front of the header array.

The header-array checksum field is also the tail of the last slot's data,
so any rewrite of that checksum leaves the last slot's checksum stale.
Such regions are reported invalid but kept apart from real problems.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..formats.sl2 import layout as L
from ..formats.sl2.sl2_file import SaveContainer, check_minimum_size
from ..utils.binary import checksum, find_all_occurrences


REGION_SLOT = "slot"
REGION_HEADERS = "headers"


@dataclass
class ChecksumStatus:
    """Stored vs computed checksum for one region."""
    region: str
    index: Optional[int]  # None for the header array
    offset: int
    stored: bytes
    computed: bytes
    overlaps_headers_checksum: bool = False

    @property
    def valid(self) -> bool:
        return self.stored == self.computed

    @property
    def label(self) -> str:
        if self.region == REGION_HEADERS:
            return "Header array"
        return f"Slot {self.index}"


@dataclass
class IntegrityReport:
    """Checksum status of every region in a buffer."""
    regions: List[ChecksumStatus] = field(default_factory=list)

    @property
    def all_valid(self) -> bool:
        return all(status.valid for status in self.regions)

    @property
    def invalid(self) -> List[ChecksumStatus]:
        return [status for status in self.regions if not status.valid]

    @property
    def stale_by_layout(self) -> List[ChecksumStatus]:
        """Invalid only because the header-array checksum sits in their data."""
        return [s for s in self.invalid if s.overlaps_headers_checksum]

    @property
    def problems(self) -> List[ChecksumStatus]:
        """Invalid regions not explained by the layout overlap."""
        return [s for s in self.invalid if not s.overlaps_headers_checksum]

    @property
    def consistent(self) -> bool:
        return not self.problems

    def slot(self, index: int) -> ChecksumStatus:
        L.check_slot_index(index)
        for status in self.regions:
            if status.region == REGION_SLOT and status.index == index:
                return status
        raise KeyError(index)

    @property
    def headers(self) -> ChecksumStatus:
        for status in self.regions:
            if status.region == REGION_HEADERS:
                return status
        raise KeyError(REGION_HEADERS)


def verify_checksums(raw_bytes: bytes) -> IntegrityReport:
    """
    Recompute every checksum in raw_bytes and compare with the stored ones.

    Raises:
        InsufficientLength: buffer shorter than the layout
    """
    check_minimum_size(raw_bytes)
    view = memoryview(raw_bytes)
    report = IntegrityReport()

    for index in range(L.MAX_SLOTS):
        sum_start = L.slot_checksum_offset(index)
        data_start = L.slot_data_offset(index)
        report.regions.append(ChecksumStatus(
            region=REGION_SLOT,
            index=index,
            offset=sum_start,
            stored=bytes(view[sum_start:sum_start + L.CHECKSUM_LENGTH]),
            computed=checksum(view[data_start:data_start + L.SLOT_LENGTH]),
            overlaps_headers_checksum=index == L.HEADERS_CHECKSUM_SLOT,
        ))

    headers_end = L.HEADERS_SECTION_START + L.HEADERS_SECTION_LENGTH
    report.regions.append(ChecksumStatus(
        region=REGION_HEADERS,
        index=None,
        offset=L.HEADERS_CHECKSUM_OFFSET,
        stored=bytes(view[L.HEADERS_CHECKSUM_OFFSET:L.HEADERS_CHECKSUM_OFFSET + L.CHECKSUM_LENGTH]),
        computed=checksum(view[L.HEADERS_SECTION_START:headers_end]),
    ))

    return report


def count_owner_id_occurrences(container: SaveContainer) -> List[int]:
    """Number of owner id occurrences in each slot's payload."""
    return [
        len(find_all_occurrences(slot.slot_bytes, container.owner_id))
        for slot in container.slots
    ]
