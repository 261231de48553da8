"""
Patient Demographics Validation

Validation and compliance-scoring engine for home-healthcare patient
demographics records. Checks each record against a declarative rule
catalog (Emirates ID, contact, insurance and DOH homebound requirements)
and reports errors, warnings, completeness and per-category compliance.

Typical use:
    from patient_validation import build_engine
    engine = build_engine()
    result = engine.validate_one({"name_en": "Ahmed Al Mansoori", ...})
    result.to_ui_dict()
"""

__version__ = "0.1.0"
__author__ = "Patient Registration Team"

from . import config
from . import models
from . import utils
from . import validation
from . import batch

from .models import PatientRecord, ValidationResult, BatchValidationResult
from .validation import PatientValidationEngine, RuleCatalog, build_engine, load_default_catalog
from .batch import BatchOrchestrator, RecordStore, InMemoryRecordStore
from .utils.error_handler import CatalogConfigurationError, RecordFetchError

__all__ = [
    "config",
    "models",
    "utils",
    "validation",
    "batch",
    "PatientRecord",
    "ValidationResult",
    "BatchValidationResult",
    "PatientValidationEngine",
    "RuleCatalog",
    "build_engine",
    "load_default_catalog",
    "BatchOrchestrator",
    "RecordStore",
    "InMemoryRecordStore",
    "CatalogConfigurationError",
    "RecordFetchError",
]
