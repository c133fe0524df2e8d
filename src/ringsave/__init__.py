"""
RingSave - character slot transplant for fixed-layout SL2 save containers.

Copies a character record from one save file into a slot of another,
rewriting the embedded owner id and recomputing both checksum domains.
"""

__version__ = "1.0.0"

from .errors import (
    SaveFileError, StructuralError, InsufficientLength, LengthMismatch,
    FieldDecodeError, PolicyViolation, IndexOutOfRange, TransplantBlocked,
)
from .formats.sl2 import SaveContainer, SlotRecord, parse
from .save_editor.transplant import transplant

__all__ = [
    'SaveFileError', 'StructuralError', 'InsufficientLength', 'LengthMismatch',
    'FieldDecodeError', 'PolicyViolation', 'IndexOutOfRange', 'TransplantBlocked',
    'SaveContainer', 'SlotRecord', 'parse', 'transplant',
]
