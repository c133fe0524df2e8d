"""
Output formatters for the command-line views.

Provides a table view for people and a JSON view for scripts, plus the
hex preview used to eyeball raw slot and header bytes.
"""

import json
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence

from ..formats.sl2.sl2_file import SaveContainer, SlotRecord
from ..utils.binary import decode_uint64_le, to_hex
from .integrity import IntegrityReport
from .safety import SafetyResult


BYTES_PER_LINE = 16


# ─────────────────────────────────────────────────────────────────────────────
# HEX PREVIEW
# ─────────────────────────────────────────────────────────────────────────────

def _ascii(byte: int) -> str:
    return chr(byte) if 32 <= byte <= 126 else "."


def hexdump(data: bytes, length: Optional[int] = None,
            bytes_per_line: int = BYTES_PER_LINE, base_offset: int = 0) -> List[str]:
    """
    Hex preview lines: 8-digit offset, uppercase hex bytes, printable ASCII.

    Example:
        00000000  41 00 73 00 68 00 00 00 ...  A.s.h...
    """
    shown = len(data) if length is None else max(0, min(length, len(data)))
    lines = []
    for start in range(0, shown, bytes_per_line):
        chunk = bytes(data[start:min(start + bytes_per_line, shown)])
        hex_part = " ".join(f"{b:02X}" for b in chunk)
        ascii_part = "".join(_ascii(b) for b in chunk)
        lines.append(f"{base_offset + start:08X}  {hex_part:<{bytes_per_line * 3 - 1}}  {ascii_part}")
    return lines


def describe_preview(shown: int, total: int) -> str:
    """'(N bytes shown of M total)' caption for a preview."""
    shown = min(shown, total)
    return f"({shown} bytes shown of {total} total)"


def format_seconds(seconds: int) -> str:
    """Play time as 'HHh MMm SSs'."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}h {minutes:02d}m {secs:02d}s"


def describe_owner_id(owner_id: bytes) -> Dict[str, object]:
    """Owner id as hex and as a little-endian integer (SteamID64 style)."""
    info: Dict[str, object] = {"hex": to_hex(owner_id)}
    if len(owner_id) == 8:
        info["value"] = decode_uint64_le(owner_id)
    return info


def slot_to_dict(slot: SlotRecord, owner_count: Optional[int] = None) -> Dict[str, object]:
    """Plain-data view of a slot record."""
    data: Dict[str, object] = {
        "index": slot.index,
        "active": slot.active,
        "name": slot.display_name,
        "level": slot.level,
        "seconds_played": slot.seconds_played,
        "parsing_issues": list(slot.parsing_issues),
    }
    if owner_count is not None:
        data["owner_id_occurrences"] = owner_count
    return data


# ─────────────────────────────────────────────────────────────────────────────
# FORMATTERS
# ─────────────────────────────────────────────────────────────────────────────

class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    def __init__(self, print_func: Callable):
        self.print_func = print_func

    @abstractmethod
    def format_container(self, container: SaveContainer,
                         owner_counts: Optional[Sequence[int]] = None):
        """Format a whole save file's slot list."""
        pass

    @abstractmethod
    def format_slot(self, slot: SlotRecord, owner_count: Optional[int] = None):
        """Format one slot's details."""
        pass

    @abstractmethod
    def format_integrity(self, file_name: str, report: IntegrityReport):
        """Format a checksum report."""
        pass

    @abstractmethod
    def format_transplant(self, output_path: str, safety: SafetyResult,
                          backup_path: Optional[str] = None,
                          report: Optional[IntegrityReport] = None):
        """Format the outcome of a transplant."""
        pass


class TableFormatter(OutputFormatter):
    """Human-readable tables."""

    def format_container(self, container, owner_counts=None):
        owner = describe_owner_id(container.owner_id)
        self.print_func(f"File: {container.file_name}  ({container.size:,} bytes)")
        self.print_func(f"Owner ID: {owner['hex']}" + (f"  ({owner['value']})" if "value" in owner else ""))
        self.print_func("")
        self.print_func(f"  {'#':>2}  {'Status':<8} {'Name':<34} {'Lvl':>4}  {'Played':<13} {'IDs':>4}")
        self.print_func(f"  {'─' * 72}")
        for slot in container.slots:
            status = "active" if slot.active else "empty"
            count = owner_counts[slot.index] if owner_counts is not None else ""
            flag = " !" if slot.parsing_issues else ""
            self.print_func(
                f"  {slot.index:>2}  {status:<8} {slot.display_name[:34]:<34} {slot.level:>4}  "
                f"{format_seconds(slot.seconds_played):<13} {count:>4}{flag}"
            )

    def format_slot(self, slot, owner_count=None):
        self.print_func(f"{'=' * 50}")
        self.print_func(f"  Slot {slot.index}: {slot.display_name}")
        self.print_func(f"{'=' * 50}")
        self.print_func(f"  Status:  {'Active' if slot.active else 'Inactive'}")
        self.print_func(f"  Level:   {slot.level}")
        self.print_func(f"  Played:  {format_seconds(slot.seconds_played)} ({slot.seconds_played}s)")
        if owner_count is not None:
            self.print_func(f"  Owner ID occurrences in slot data: {owner_count}")
        if slot.parsing_issues:
            self.print_func("\n  PARSING ISSUES")
            self.print_func(f"  {'─' * 40}")
            for issue in slot.parsing_issues:
                self.print_func(f"  - {issue}")

    def format_integrity(self, file_name, report):
        self.print_func(f"Checksums: {file_name}")
        self.print_func(f"{'─' * 60}")
        for status in report.regions:
            if status.valid:
                mark = "OK   "
            elif status.overlaps_headers_checksum:
                mark = "STALE"
            else:
                mark = "BAD  "
            self.print_func(f"  [{mark}] {status.label:<14} @0x{status.offset:08X}  {status.stored.hex().upper()}")
            if not status.valid:
                self.print_func(f"         expected {'':>13} {status.computed.hex().upper()}")
        self.print_func("")
        if report.all_valid:
            self.print_func("All checksums valid")
        elif report.consistent:
            self.print_func(f"Consistent: {len(report.stale_by_layout)} checksum(s) stale by layout overlap")
        else:
            self.print_func(f"{len(report.problems)} invalid checksum(s)")

    def format_transplant(self, output_path, safety, backup_path=None, report=None):
        for reason in safety.reasons:
            self.print_func(f"  [{safety.level.value}] {reason}")
        if backup_path:
            self.print_func(f"Backup saved to {backup_path}")
        self.print_func(f"Wrote {output_path}")
        if report is not None:
            self.print_func("Verified: checksums consistent" if report.consistent
                            else f"Verification FAILED: {len(report.problems)} invalid checksum(s)")


class JsonFormatter(OutputFormatter):
    """Machine-readable JSON."""

    def _emit(self, data):
        self.print_func(json.dumps(data, indent=2))

    def format_container(self, container, owner_counts=None):
        self._emit({
            "file": container.file_name,
            "size": container.size,
            "owner_id": describe_owner_id(container.owner_id),
            "slots": [
                slot_to_dict(slot, owner_counts[slot.index] if owner_counts is not None else None)
                for slot in container.slots
            ],
        })

    def format_slot(self, slot, owner_count=None):
        self._emit(slot_to_dict(slot, owner_count))

    def format_integrity(self, file_name, report):
        self._emit({
            "file": file_name,
            "all_valid": report.all_valid,
            "consistent": report.consistent,
            "regions": [
                {
                    "region": status.region,
                    "index": status.index,
                    "offset": status.offset,
                    "stored": status.stored.hex(),
                    "computed": status.computed.hex(),
                    "valid": status.valid,
                    "stale_by_layout": status.overlaps_headers_checksum and not status.valid,
                }
                for status in report.regions
            ],
        })

    def format_transplant(self, output_path, safety, backup_path=None, report=None):
        self._emit({
            "output": output_path,
            "backup": backup_path,
            "safety": {"level": safety.level.value, "reasons": safety.reasons},
            "verified": None if report is None else report.consistent,
        })


def get_formatter(format_mode: str, print_func: Callable) -> OutputFormatter:
    """Formatter for 'table' or 'json'."""
    formatters = {
        "table": TableFormatter,
        "json": JsonFormatter,
    }
    formatter_class = formatters.get(format_mode)
    if formatter_class is None:
        raise ValueError(f"Unknown output format: {format_mode}")
    return formatter_class(print_func)
