"""
RingSave - Safety API Tests

Policy gate for transplant requests: blocked, warning and caution cases,
reason ordering and the EditGate wrapper.

Run with pytest, or via main runner: python tests.py --module safety
"""

import dataclasses

from ringsave.core.safety import EditGate, SafetyLevel, _elevate, assess_transplant
from ringsave.formats.sl2 import layout as L
from ringsave.formats.sl2.sl2_file import parse
from ringsave.save_editor.transplant import transplant

from _fixtures import source_bytes, target_bytes


def _pair():
    return parse("source.sl2", source_bytes()), parse("target.sl2", target_bytes())


def test_clean_request_is_safe():
    source, target = _pair()
    result = assess_transplant(source, source.slots[0], target, 3)
    assert result.level == SafetyLevel.SAFE
    assert result.can_proceed
    assert result.is_safe
    assert result.owner_id_occurrences == 3
    assert not result.overwrites_active
    assert result.reasons == ["No safety concerns detected"]
    assert result.summary() == "SAFE: No safety concerns detected"


def test_inactive_source_blocked():
    source, target = _pair()
    result = assess_transplant(source, source.slots[1], target, 3)
    assert result.level == SafetyLevel.BLOCKED
    assert not result.can_proceed
    assert result.source_inactive
    assert "no active character" in result.reasons[0]


def test_bad_target_index_blocked():
    source, target = _pair()
    result = assess_transplant(source, source.slots[0], target, 10)
    assert result.level == SafetyLevel.BLOCKED
    assert not result.can_proceed
    assert not result.source_inactive
    assert "outside" in result.reasons[0]


def test_overwriting_active_slot_warns():
    source, target = _pair()
    result = assess_transplant(source, source.slots[0], target, 5)
    assert result.level == SafetyLevel.WARNING
    assert result.can_proceed
    assert not result.is_safe
    assert result.overwrites_active
    assert "Ranni" in result.reasons[0]


def test_parsing_issues_give_caution():
    source, target = _pair()
    result = assess_transplant(source, source.slots[3], target, 3)
    assert result.level == SafetyLevel.CAUTION
    assert result.is_safe
    assert "parsing issues" in result.reasons[0]


def test_shared_owner_id_gives_caution():
    source = parse("source.sl2", source_bytes())
    result = assess_transplant(source, source.slots[0], source, 1)
    assert result.level == SafetyLevel.CAUTION
    assert "share an owner id" in result.reasons[0]


def test_owner_id_missing_from_source_slot():
    source, target = _pair()
    stranger = dataclasses.replace(source, owner_id=b"\xee" * 8)
    result = assess_transplant(stranger, source.slots[0], target, 3)
    assert result.owner_id_occurrences == 0
    assert result.level == SafetyLevel.CAUTION
    assert "not found" in result.reasons[0]


def test_corrupt_target_warns():
    source, target = _pair()
    buf = bytearray(target_bytes())
    buf[L.slot_data_offset(5) + 7] ^= 0xFF
    damaged = parse("target.sl2", bytes(buf))
    result = assess_transplant(source, source.slots[0], damaged, 3)
    assert result.level == SafetyLevel.WARNING
    assert "Slot 5" in result.reasons[0]

    unchecked = assess_transplant(source, source.slots[0], damaged, 3, check_integrity=False)
    assert unchecked.level == SafetyLevel.SAFE


def test_previously_transplanted_target_is_not_corrupt():
    source, target = _pair()
    once = parse("target.sl2", transplant(source.slots[0], 3, source, target))
    result = assess_transplant(source, source.slots[2], once, 6)
    assert result.level == SafetyLevel.SAFE


def test_reasons_sorted_worst_first():
    source, target = _pair()
    # Inactive source (blocked) into an occupied slot (warning)
    result = assess_transplant(source, source.slots[1], target, 0)
    assert result.level == SafetyLevel.BLOCKED
    assert "no active character" in result.reasons[0]
    assert "will be overwritten" in result.reasons[1]


def test_elevate():
    assert _elevate(SafetyLevel.SAFE, SafetyLevel.WARNING) == SafetyLevel.WARNING
    assert _elevate(SafetyLevel.BLOCKED, SafetyLevel.CAUTION) == SafetyLevel.BLOCKED
    assert _elevate(SafetyLevel.CAUTION, SafetyLevel.CAUTION) == SafetyLevel.CAUTION


def test_edit_gate():
    source, target = _pair()

    gate = EditGate(source, source.slots[0], target, 3)
    assert not gate.is_blocked
    assert not gate.requires_confirmation

    gate = EditGate(source, source.slots[0], target, 0)
    assert gate.requires_confirmation
    assert gate.warning.startswith("WARNING: ")

    gate = EditGate(source, source.slots[1], target, 3)
    assert gate.is_blocked
    assert "no active character" in gate.block_reason
