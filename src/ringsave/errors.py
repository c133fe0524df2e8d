"""
Error kinds for the SL2 save container.

Three families, so callers can branch on kind rather than message text:

- StructuralError  - the buffer cannot hold what the layout requires (fatal)
- FieldDecodeError - one slot's metadata could not be decoded (recovered per slot)
- PolicyViolation  - the caller asked for something the editor refuses (fatal)
"""

from typing import Optional


class SaveFileError(Exception):
    """Base class for every save container error."""

    def __init__(self, message: str, offset: Optional[int] = None, index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.index = index


class StructuralError(SaveFileError):
    """Buffer layout problem. The operation aborts and nothing is returned."""


class InsufficientLength(StructuralError):
    """Fewer bytes available than a field or region needs."""


class LengthMismatch(StructuralError):
    """Two spans that must share a width do not."""


class FieldDecodeError(SaveFileError):
    """A per-slot field could not be decoded. Never escapes the parser."""


class PolicyViolation(SaveFileError):
    """Rejected before any buffer is copied or patched."""


class IndexOutOfRange(PolicyViolation, IndexError):
    """Slot index outside [0, MAX_SLOTS)."""


class TransplantBlocked(PolicyViolation):
    """The transplant gate refused the request."""
