"""
Data Models Module

Pydantic models for type safety and validation.

Components:
- patient_record.py: Read-only patient demographics snapshot
- validation_result.py: Rule outcomes, per-record and batch results
"""

from .patient_record import PatientRecord, is_known_field, resolve_field
from .validation_result import (
    RuleOutcome,
    CompletenessReport,
    ValidationResult,
    InfrastructureFailure,
    BatchSummary,
    BatchValidationResult,
)

__all__ = [
    "PatientRecord",
    "is_known_field",
    "resolve_field",
    "RuleOutcome",
    "CompletenessReport",
    "ValidationResult",
    "InfrastructureFailure",
    "BatchSummary",
    "BatchValidationResult",
]
