"""SL2 format package - fixed-layout character save container."""
from . import layout
from .sl2_file import SaveContainer, SlotRecord, parse, check_minimum_size

__all__ = [
    'layout',
    'SaveContainer', 'SlotRecord', 'parse', 'check_minimum_size',
]
