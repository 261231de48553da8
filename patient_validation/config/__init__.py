"""
Configuration Module

Manages engine configuration and settings.

Components:
- settings.py: Engine settings from environment variables
- constants.py: Rule kinds, severities, categories and regex patterns
- patient_rules.yaml: Default patient demographics rule catalog
"""

from .constants import (
    RuleKind,
    Severity,
    FailureType,
    ComplianceCategory,
    HomeboundStatus,
    InsuranceType,
    ENGINE_INTERNAL_CATEGORY,
)
from .settings import Settings, get_settings, DEFAULT_RULES_PATH

__all__ = [
    "RuleKind",
    "Severity",
    "FailureType",
    "ComplianceCategory",
    "HomeboundStatus",
    "InsuranceType",
    "ENGINE_INTERNAL_CATEGORY",
    "Settings",
    "get_settings",
    "DEFAULT_RULES_PATH",
]
