"""Cross-cutting services: integrity checks, transplant policy, output."""
from .integrity import ChecksumStatus, IntegrityReport, verify_checksums, count_owner_id_occurrences
from .safety import SafetyLevel, SafetyResult, EditGate, assess_transplant

__all__ = [
    'ChecksumStatus', 'IntegrityReport', 'verify_checksums', 'count_owner_id_occurrences',
    'SafetyLevel', 'SafetyResult', 'EditGate', 'assess_transplant',
]
