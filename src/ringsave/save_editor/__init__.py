# Save Editor Backend for SL2 character containers

from .transplant import transplant
from .save_manager import SaveManager, TransplantOutcome, WriteResult, output_name

__all__ = [
    'transplant', 'SaveManager', 'TransplantOutcome', 'WriteResult', 'output_name'
]
