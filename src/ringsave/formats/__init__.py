"""RingSave formats package - file format parsers."""
from .sl2 import SaveContainer, SlotRecord, parse

__all__ = [
    'SaveContainer', 'SlotRecord', 'parse',
]
