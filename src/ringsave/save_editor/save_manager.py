"""
Save Editor Backend

High-level workflow around the transplant engine:
- load save files into containers
- gate and run transplants, re-parsing the result
- write results beside the original with backups
- verify what was written
"""

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..config import EditorConfig
from ..core.integrity import IntegrityReport, verify_checksums
from ..core.safety import SafetyLevel, SafetyResult, assess_transplant
from ..errors import TransplantBlocked
from ..formats.sl2 import layout as L
from ..formats.sl2.sl2_file import SaveContainer, parse
from .transplant import transplant


logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".sl2"


def output_name(file_name: str, suffix: str, when: Optional[datetime] = None) -> str:
    """
    '<stem>_<suffix>_<timestamp><ext>' for a save file name.

    The timestamp is ISO-8601 with ':' and '.' replaced by '-'. Names
    without an extension get '.sl2'.
    """
    when = when or datetime.now()
    stamp = when.isoformat(timespec="milliseconds").replace(":", "-").replace(".", "-")
    path = Path(file_name)
    if path.suffix:
        stem, ext = path.stem, path.suffix
    else:
        stem, ext = path.name, DEFAULT_EXTENSION
    return f"{stem}_{suffix}_{stamp}{ext}"


@dataclass
class TransplantOutcome:
    """A transplant that has been computed but not yet written."""
    container: SaveContainer
    safety: SafetyResult
    source_slot: int
    target_slot: int


@dataclass
class WriteResult:
    """Result of writing a save file."""
    path: Path
    size: int
    backup_path: Optional[Path] = None
    report: Optional[IntegrityReport] = None

    @property
    def verified(self) -> bool:
        return self.report is not None and self.report.consistent


class SaveManager:
    """
    Main save editor interface.

    Usage:
        mgr = SaveManager()
        source = mgr.load("ER0000_friend.sl2")
        target = mgr.load("ER0000.sl2")
        outcome = mgr.transplant(source, 2, target, 5)
        mgr.write(outcome.container, original_path="ER0000.sl2")
    """

    def __init__(self, config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()

    # ========================================================================
    # Loading
    # ========================================================================

    def load(self, path: str) -> SaveContainer:
        """Read and parse a save file."""
        path = Path(path)
        container = parse(path.name, path.read_bytes())
        logger.info(f"Loaded {path} ({container.size:,} bytes, "
                    f"{len(container.active_slots())} active slots)")
        return container

    # ========================================================================
    # Transplant
    # ========================================================================

    def check(self, source: SaveContainer, source_slot: int,
              target: SaveContainer, target_slot: int) -> SafetyResult:
        """Policy check for a transplant without running it."""
        record = source.get_slot(source_slot)
        return assess_transplant(source, record, target, target_slot)

    def transplant(self, source: SaveContainer, source_slot: int,
                   target: SaveContainer, target_slot: int,
                   force: bool = False,
                   safety: Optional[SafetyResult] = None) -> TransplantOutcome:
        """
        Copy source slot into target slot and re-parse the result.

        Args:
            force: Run even when the only block is an inactive source slot
            safety: Result of an earlier check() for the same request; the
                gate is run here when it is None

        Raises:
            IndexOutOfRange: either slot index outside the layout
            TransplantBlocked: the policy gate refused and force was not given
        """
        record = source.get_slot(source_slot)
        L.check_slot_index(target_slot)
        if safety is None:
            safety = assess_transplant(source, record, target, target_slot)

        if not safety.can_proceed:
            if not (force and safety.source_inactive):
                raise TransplantBlocked(safety.reasons[0], index=target_slot)
            logger.warning(f"Forcing transplant past block: {safety.reasons[0]}")

        if safety.level != SafetyLevel.SAFE:
            for reason in safety.reasons:
                logger.info(f"Transplant note: {reason}")

        new_bytes = transplant(record, target_slot, source, target)
        container = parse(target.file_name, new_bytes)
        return TransplantOutcome(
            container=container,
            safety=safety,
            source_slot=source_slot,
            target_slot=target_slot,
        )

    # ========================================================================
    # Writing
    # ========================================================================

    def default_output_path(self, original_path: str) -> Path:
        original = Path(original_path)
        return original.with_name(output_name(original.name, self.config.output_suffix))

    def backup(self, path: str) -> Path:
        """Copy a save file to '<stem>_backup_<timestamp><ext>' beside it."""
        path = Path(path)
        backup_path = path.with_name(output_name(path.name, self.config.backup_suffix))
        shutil.copy2(path, backup_path)
        logger.info(f"Backup saved to {backup_path}")
        return backup_path

    def write(self, container: SaveContainer, output_path: Optional[str] = None,
              original_path: Optional[str] = None) -> WriteResult:
        """
        Write a container's bytes to disk.

        With no output_path the file lands beside original_path under the
        modded naming rule. An existing output file is backed up first when
        create_backup is set.
        """
        if output_path is not None:
            path = Path(output_path)
        elif original_path is not None:
            path = self.default_output_path(original_path)
        else:
            path = Path(output_name(container.file_name or f"save{DEFAULT_EXTENSION}",
                                    self.config.output_suffix))

        backup_path = None
        if self.config.create_backup and path.exists():
            backup_path = self.backup(str(path))

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(container.raw_bytes)
        logger.info(f"Saved {path} ({container.size:,} bytes)")

        report = None
        if self.config.verify_after_write:
            report = verify_checksums(path.read_bytes())
            if not report.consistent:
                logger.warning(f"{path}: {len(report.problems)} checksum(s) do not match after write")

        return WriteResult(path=path, size=container.size, backup_path=backup_path, report=report)

