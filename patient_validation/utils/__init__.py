"""
Utilities Module

Helper functions and utilities used across the engine.

Components:
- logger.py: Centralized logging with PHI masking
- error_handler.py: Error taxonomy and handler
- date_utils.py: Date parsing and comparison utilities
- format_utils.py: Format validation and masking helpers
- reporting.py: Human-readable and JSON compliance reports
"""

from .logger import get_logger, PatientValidationLogger
from .error_handler import (
    ErrorLevel,
    ErrorCode,
    ValidationEngineError,
    CatalogConfigurationError,
    RecordFetchError,
    ErrorResult,
    ErrorHandler,
)
from .date_utils import parse_date, is_future_date, is_past_date
from .format_utils import (
    is_blank,
    validate_emirates_id,
    mask_phi,
)
from .reporting import ComplianceReporter, get_compliance_reporter

__all__ = [
    "get_logger",
    "PatientValidationLogger",
    "ErrorLevel",
    "ErrorCode",
    "ValidationEngineError",
    "CatalogConfigurationError",
    "RecordFetchError",
    "ErrorResult",
    "ErrorHandler",
    "parse_date",
    "is_future_date",
    "is_past_date",
    "is_blank",
    "validate_emirates_id",
    "mask_phi",
    "ComplianceReporter",
    "get_compliance_reporter",
]
