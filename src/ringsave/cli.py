"""ringsave - command-line front end for SL2 character transplants.

Usage:
    ringsave inspect <save.sl2>
    ringsave slot <save.sl2> <index>
    ringsave verify <save.sl2>
    ringsave dump <save.sl2> <index> [--header] [--length N]
    ringsave preview <save.sl2> [--length N]
    ringsave transplant <source.sl2> <src-slot> <target.sl2> <dst-slot> [-o OUT] [--yes]
    ringsave backup <save.sl2>

Output formats (append to any command):
    --format table    (default, human-readable)
    --format json     (machine-readable)

Slot indices are 0-based (0-9).
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import ConfigError, EditorConfig, load_config
from .core.integrity import count_owner_id_occurrences, verify_checksums
from .core.output_formatters import describe_preview, get_formatter, hexdump
from .core.safety import EditGate
from .errors import SaveFileError
from .formats.sl2 import layout as L
from .save_editor.save_manager import SaveManager


def configure_logging(verbosity: int, config: EditorConfig):
    """Root logger level from -v count, else from the config file."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = getattr(logging, str(config.log_level).upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def fail(message: str) -> int:
    print(f"ERROR: {message}", file=sys.stderr)
    return 1


def _formatter(args):
    return get_formatter(args.format, print)


def cmd_inspect(args, mgr: SaveManager) -> int:
    """List all slots in a save file."""
    container = mgr.load(args.file)
    _formatter(args).format_container(container, count_owner_id_occurrences(container))
    return 0


def cmd_slot(args, mgr: SaveManager) -> int:
    """Show one slot's details."""
    container = mgr.load(args.file)
    slot = container.get_slot(args.index)
    owner_count = count_owner_id_occurrences(container)[slot.index]
    _formatter(args).format_slot(slot, owner_count)
    return 0


def cmd_verify(args, mgr: SaveManager) -> int:
    """Check every stored checksum; exit 1 if any is wrong."""
    path = Path(args.file)
    report = verify_checksums(path.read_bytes())
    _formatter(args).format_integrity(path.name, report)
    return 0 if report.consistent else 1


def cmd_dump(args, mgr: SaveManager) -> int:
    """Hex preview of a slot's data or header."""
    container = mgr.load(args.file)
    slot = container.get_slot(args.index)
    if args.header:
        data, title, base = slot.header_bytes, "Header", L.header_offset(slot.index)
    else:
        data, title, base = slot.slot_bytes, "Slot data", L.slot_data_offset(slot.index)

    length = args.length if args.length is not None else mgr.config.preview_bytes
    shown = max(0, min(length, len(data)))
    print(f"{title} - slot {slot.index} ({slot.display_name}) {describe_preview(shown, len(data))}")
    for line in hexdump(data, length, base_offset=base):
        print(line)
    return 0


def cmd_preview(args, mgr: SaveManager) -> int:
    """Hex preview of the start of a file."""
    data = Path(args.file).read_bytes()
    length = args.length if args.length is not None else mgr.config.full_preview_bytes
    print(f"File content: {Path(args.file).name} {describe_preview(max(0, min(length, len(data))), len(data))}")
    for line in hexdump(data, length):
        print(line)
    return 0


def cmd_transplant(args, mgr: SaveManager) -> int:
    """Copy a character into another save file's slot and write the result."""
    source = mgr.load(args.source)
    target = mgr.load(args.target)
    record = source.get_slot(args.source_slot)
    L.check_slot_index(args.target_slot)

    gate = EditGate(source, record, target, args.target_slot)
    if gate.is_blocked and not (args.force and gate.result.source_inactive):
        return fail(gate.block_reason)
    if (gate.requires_confirmation or gate.is_blocked) and not args.yes:
        print(gate.warning, file=sys.stderr)
        return fail("Re-run with --yes to proceed")

    outcome = mgr.transplant(source, args.source_slot, target, args.target_slot,
                             force=args.force, safety=gate.result)
    result = mgr.write(outcome.container, output_path=args.output, original_path=args.target)

    _formatter(args).format_transplant(
        str(result.path), outcome.safety,
        backup_path=str(result.backup_path) if result.backup_path else None,
        report=result.report,
    )
    if result.report is not None and not result.report.consistent:
        return 1
    return 0


def cmd_backup(args, mgr: SaveManager) -> int:
    """Write a timestamped copy of a save file beside it."""
    backup_path = mgr.backup(args.file)
    print(f"Backup saved to {backup_path}")
    return 0


def byte_count(text: str) -> int:
    """argparse type for --length: a non-negative integer."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid byte count: {text!r}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"byte count must not be negative: {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="ringsave",
        description="Inspect SL2 save files and transplant characters between them.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Slot indices are 0-based. Back up your saves before writing.",
    )
    parser.add_argument("--format", choices=["table", "json"],
                        default="table", help="Output format (default: table)")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More logging (-v info, -vv debug)")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    # inspect
    p = sub.add_parser("inspect", help="List every slot in a save file")
    p.add_argument("file", help="Path to the save file")

    # slot
    p = sub.add_parser("slot", help="Show one slot's details")
    p.add_argument("file", help="Path to the save file")
    p.add_argument("index", type=int, help="Slot index 0-9")

    # verify
    p = sub.add_parser("verify", help="Check stored checksums")
    p.add_argument("file", help="Path to the save file")

    # dump
    p = sub.add_parser("dump", help="Hex preview of a slot")
    p.add_argument("file", help="Path to the save file")
    p.add_argument("index", type=int, help="Slot index 0-9")
    p.add_argument("--header", action="store_true", help="Show the record header instead of slot data")
    p.add_argument("--length", type=byte_count, help="Bytes to show")

    # preview
    p = sub.add_parser("preview", help="Hex preview of the file start")
    p.add_argument("file", help="Path to the save file")
    p.add_argument("--length", type=byte_count, help="Bytes to show")

    # transplant
    p = sub.add_parser("transplant", help="Copy a character into another save file")
    p.add_argument("source", help="Save file holding the character")
    p.add_argument("source_slot", type=int, help="Source slot index 0-9")
    p.add_argument("target", help="Save file receiving the character")
    p.add_argument("target_slot", type=int, help="Target slot index 0-9")
    p.add_argument("--output", "-o", help="Output path (default: <target>_modded_<timestamp>)")
    p.add_argument("--no-backup", action="store_true", help="Do not back up an existing output file")
    p.add_argument("--yes", "-y", action="store_true", help="Proceed past warnings")
    p.add_argument("--force", action="store_true", help="Allow an inactive source slot")

    # backup
    p = sub.add_parser("backup", help="Write a timestamped backup copy")
    p.add_argument("file", help="Path to the save file")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
    except ConfigError as e:
        return fail(str(e))

    configure_logging(args.verbose, config)
    if getattr(args, "no_backup", False):
        config.create_backup = False

    commands = {
        "inspect": cmd_inspect,
        "slot": cmd_slot,
        "verify": cmd_verify,
        "dump": cmd_dump,
        "preview": cmd_preview,
        "transplant": cmd_transplant,
        "backup": cmd_backup,
    }

    mgr = SaveManager(config)
    try:
        return commands[args.command](args, mgr)
    except SaveFileError as e:
        return fail(e.message)
    except OSError as e:
        return fail(str(e))


if __name__ == "__main__":
    sys.exit(main())
