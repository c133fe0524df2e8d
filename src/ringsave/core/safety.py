"""
Safety API - Transplant Policy Gate

The transplant engine copies whatever it is given. This module decides
whether a requested transplant should run at all:

- is the destination a real slot?
- is there a character in the source slot?
- will an existing character be overwritten?
- does the owner id actually need rewriting?
- is the target file already inconsistent?

Usage:
    result = assess_transplant(source, record, target, slot_index)
    if not result.can_proceed:
        refuse(result.summary())
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from ..errors import IndexOutOfRange
from ..formats.sl2 import layout as L
from ..formats.sl2.sl2_file import SaveContainer, SlotRecord
from ..utils.binary import find_all_occurrences
from .integrity import verify_checksums


class SafetyLevel(Enum):
    """Safety levels for transplant requests."""
    SAFE = "safe"           # Go ahead
    CAUTION = "caution"     # Proceed with awareness
    WARNING = "warning"     # Think twice
    DANGEROUS = "dangerous" # High risk
    BLOCKED = "blocked"     # Cannot transplant


_ORDER = [SafetyLevel.SAFE, SafetyLevel.CAUTION, SafetyLevel.WARNING,
          SafetyLevel.DANGEROUS, SafetyLevel.BLOCKED]


@dataclass
class SafetyResult:
    """Result of a safety check."""
    level: SafetyLevel
    reasons: List[str]
    can_proceed: bool = True
    overwrites_active: bool = False
    source_inactive: bool = False
    owner_id_occurrences: int = 0

    @property
    def is_safe(self) -> bool:
        return self.level in (SafetyLevel.SAFE, SafetyLevel.CAUTION)

    def summary(self) -> str:
        """One-line summary for display."""
        return f"{self.level.value.upper()}: {self.reasons[0] if self.reasons else 'Unknown'}"


# ─────────────────────────────────────────────────────────────────────────────
# CORE API
# ─────────────────────────────────────────────────────────────────────────────

def assess_transplant(
    source_container: SaveContainer,
    source_record: SlotRecord,
    target_container: SaveContainer,
    target_slot_index: int,
    check_integrity: bool = True,
) -> SafetyResult:
    """
    THE policy check for a transplant request.

    Returns SafetyResult with:
    - level: worst SafetyLevel found
    - reasons: human-readable explanations, worst first
    - can_proceed: False only when BLOCKED
    """
    findings: List[Tuple[SafetyLevel, str]] = []

    try:
        L.check_slot_index(target_slot_index)
    except IndexOutOfRange as e:
        return SafetyResult(level=SafetyLevel.BLOCKED, reasons=[e.message], can_proceed=False)

    if not source_record.active:
        findings.append((SafetyLevel.BLOCKED,
                         f"Source slot {source_record.index} holds no active character"))

    if source_record.parsing_issues:
        findings.append((SafetyLevel.CAUTION,
                         f"Source slot has parsing issues: {'; '.join(source_record.parsing_issues)}"))

    target_slot = target_container.slots[target_slot_index]
    if target_slot.active:
        findings.append((SafetyLevel.WARNING,
                         f"Target slot {target_slot_index} ({target_slot.display_name}) will be overwritten"))

    occurrences = len(find_all_occurrences(source_record.slot_bytes, source_container.owner_id))
    if bytes(source_container.owner_id) == bytes(target_container.owner_id):
        findings.append((SafetyLevel.CAUTION, "Source and target share an owner id; nothing to rewrite"))
    elif occurrences == 0:
        findings.append((SafetyLevel.CAUTION, "Source owner id not found in the source slot data"))

    if check_integrity:
        bad = verify_checksums(target_container.raw_bytes).problems
        if bad:
            names = ", ".join(status.label for status in bad)
            findings.append((SafetyLevel.WARNING, f"Target file already has invalid checksums ({names})"))

    level = SafetyLevel.SAFE
    for finding_level, _ in findings:
        level = _elevate(level, finding_level)

    findings.sort(key=lambda f: _ORDER.index(f[0]), reverse=True)
    reasons = [reason for _, reason in findings] or ["No safety concerns detected"]

    return SafetyResult(
        level=level,
        reasons=reasons,
        can_proceed=level != SafetyLevel.BLOCKED,
        overwrites_active=target_slot.active,
        source_inactive=not source_record.active,
        owner_id_occurrences=occurrences,
    )


def _elevate(current: SafetyLevel, new: SafetyLevel) -> SafetyLevel:
    """Elevate safety level (higher = more dangerous)."""
    return max(current, new, key=_ORDER.index)


# ─────────────────────────────────────────────────────────────────────────────
# EDIT GATE
# ─────────────────────────────────────────────────────────────────────────────

class EditGate:
    """
    Gate keeper for transplant requests.

    Usage:
        gate = EditGate(source, record, target, slot_index)
        if gate.is_blocked:
            show_error(gate.block_reason)
            return
        if gate.requires_confirmation and not user_confirmed(gate.warning):
            return
        # proceed with transplant
    """

    def __init__(self, source_container: SaveContainer, source_record: SlotRecord,
                 target_container: SaveContainer, target_slot_index: int):
        self.result = assess_transplant(source_container, source_record,
                                        target_container, target_slot_index)

    @property
    def is_blocked(self) -> bool:
        return not self.result.can_proceed

    @property
    def block_reason(self) -> str:
        return self.result.reasons[0] if self.result.reasons else "Transplant blocked"

    @property
    def requires_confirmation(self) -> bool:
        return self.result.level in (SafetyLevel.WARNING, SafetyLevel.DANGEROUS)

    @property
    def warning(self) -> str:
        return self.result.summary()
