"""
RingSave - Integrity Tests

Checksum verification over both integrity domains, and the owner id
occurrence count used by the inspect view.

Run with pytest, or via main runner: python tests.py --module integrity
"""

import pytest

from ringsave.core.integrity import (
    REGION_HEADERS, REGION_SLOT, count_owner_id_occurrences, verify_checksums,
)
from ringsave.errors import InsufficientLength
from ringsave.formats.sl2 import layout as L
from ringsave.formats.sl2.sl2_file import parse
from ringsave.save_editor.transplant import transplant

from _fixtures import source_bytes, target_bytes


def _flip(data: bytes, offset: int) -> bytes:
    buf = bytearray(data)
    buf[offset] ^= 0xFF
    return bytes(buf)


def test_fixture_checksums_all_valid():
    report = verify_checksums(source_bytes())
    assert len(report.regions) == L.MAX_SLOTS + 1
    assert report.all_valid
    assert report.consistent
    assert report.invalid == []
    assert report.stale_by_layout == []


def test_region_offsets_and_labels():
    report = verify_checksums(target_bytes())
    status = report.slot(4)
    assert status.region == REGION_SLOT
    assert status.offset == L.slot_checksum_offset(4)
    assert status.label == "Slot 4"
    assert report.headers.region == REGION_HEADERS
    assert report.headers.index is None
    assert report.headers.offset == L.HEADERS_CHECKSUM_OFFSET
    assert report.headers.label == "Header array"


def test_only_last_slot_flagged_as_overlapping():
    report = verify_checksums(target_bytes())
    flagged = [s.index for s in report.regions if s.overlaps_headers_checksum]
    assert flagged == [L.HEADERS_CHECKSUM_SLOT]


def test_corrupt_slot_data_detected():
    report = verify_checksums(_flip(target_bytes(), L.slot_data_offset(5) + 100))
    assert not report.all_valid
    assert not report.consistent
    assert [s.label for s in report.problems] == ["Slot 5"]
    assert report.slot(5).stored != report.slot(5).computed


def test_corrupt_header_detected():
    report = verify_checksums(_flip(target_bytes(), L.header_offset(0) + 0x22))
    assert [s.label for s in report.problems] == ["Header array"]


def test_stale_last_slot_is_not_a_problem():
    source = parse("s", source_bytes())
    target = parse("t", target_bytes())
    report = verify_checksums(transplant(source.slots[0], 3, source, target))
    assert not report.all_valid
    assert report.consistent
    assert [s.label for s in report.stale_by_layout] == ["Slot 9"]


def test_corrupt_last_slot_body_is_stale_not_problem():
    # Indistinguishable from the layout overlap by checksum alone
    report = verify_checksums(_flip(target_bytes(), L.slot_data_offset(9) + 10))
    assert report.slot(9).overlaps_headers_checksum
    assert report.problems == []


def test_slot_lookup_range_checked():
    report = verify_checksums(target_bytes())
    with pytest.raises(IndexError):
        report.slot(10)


def test_short_buffer():
    with pytest.raises(InsufficientLength):
        verify_checksums(bytes(1024))


def test_owner_id_counts():
    # The last slot always holds one: the owner id field is its tail
    assert count_owner_id_occurrences(parse("s", source_bytes())) == [3, 0, 1, 1, 2, 0, 0, 0, 0, 1]
    assert count_owner_id_occurrences(parse("t", target_bytes())) == [2, 0, 0, 0, 0, 2, 0, 0, 0, 1]
