"""
Application Constants and Enumerations

Defines constants used throughout the validation engine including rule
kinds, severities, failure types, regulatory categories and the regex
patterns shared by the rule catalog and the format helpers.

KEY DESIGN PRINCIPLES:

1. ALL-AT-ONCE VALIDATION:
   - Every applicable rule is evaluated in a single pass
   - Staff see everything wrong with a registration on first review

2. RULE FAILURES ARE DATA:
   - Missing or malformed fields are reported as outcomes, never raised
   - Only catalog misconfiguration and store failures use exceptions

3. DETERMINISTIC OUTPUT:
   - Outcomes follow catalog declaration order
   - The reference date and validation timestamp come from the caller
"""

from enum import Enum


class RuleKind(str, Enum):
    """Closed set of rule kinds understood by the field evaluator"""
    REQUIRED = "required"
    CONDITIONALLY_REQUIRED = "conditionally_required"
    FORMAT_PATTERN = "format_pattern"
    CROSS_FIELD = "cross_field"


# Kinds that count toward the completeness score
REQUIRED_KINDS = frozenset({RuleKind.REQUIRED, RuleKind.CONDITIONALLY_REQUIRED})


class Severity(str, Enum):
    """Outcome severity. Only errors affect is_valid and compliance."""
    ERROR = "error"
    WARNING = "warning"


class FailureType(str, Enum):
    """Rule-level failure taxonomy carried on failed outcomes"""
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_FORMAT = "InvalidFormat"
    CROSS_FIELD_INCONSISTENCY = "CrossFieldInconsistency"
    RULE_EVALUATION_ERROR = "RuleEvaluationError"


# Failure type produced by each rule kind when it fails normally
FAILURE_TYPE_BY_KIND = {
    RuleKind.REQUIRED: FailureType.MISSING_REQUIRED_FIELD,
    RuleKind.CONDITIONALLY_REQUIRED: FailureType.MISSING_REQUIRED_FIELD,
    RuleKind.FORMAT_PATTERN: FailureType.INVALID_FORMAT,
    RuleKind.CROSS_FIELD: FailureType.CROSS_FIELD_INCONSISTENCY,
}


class ComplianceCategory(str, Enum):
    """Regulatory groupings used by the default catalog"""
    IDENTITY_VERIFICATION = "IdentityVerification"
    CONTACT_COMPLETENESS = "ContactCompleteness"
    INSURANCE_COVERAGE = "InsuranceCoverage"
    HOMEBOUND_ASSESSMENT = "HomeboundAssessment"
    SUPPLEMENTARY_INFORMATION = "SupplementaryInformation"


# Category assigned to outcomes produced when a rule itself blows up
ENGINE_INTERNAL_CATEGORY = "EngineInternal"


class HomeboundStatus(str, Enum):
    """DOH homebound classification values"""
    QUALIFIED = "qualified"
    NOT_QUALIFIED = "not_qualified"
    PENDING_ASSESSMENT = "pending_assessment"
    REASSESSMENT_REQUIRED = "reassessment_required"


class InsuranceType(str, Enum):
    """Insurance types offered at registration"""
    GOVERNMENT = "government"
    PRIVATE = "private"
    SELF_PAY = "self_pay"


# Regex patterns for format validation
REGEX_PATTERNS = {
    # 784-YYYY-NNNNNNN-C
    "emirates_id": r"^784-\d{4}-\d{7}-\d$",
    # +971 50 123 4567, +971-50-123-4567, +971501234567
    "uae_phone": r"^\+971[ -]?\d{1,2}[ -]?\d{3}[ -]?\d{4}$",
    "email": r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$",
    "iso_date": r"^\d{4}-\d{2}-\d{2}$",
}


# Placeholders allowed in rule message templates
MESSAGE_PLACEHOLDERS = ("field", "value")


# Default bound on concurrent record fetches during batch validation
DEFAULT_BATCH_CONCURRENCY = 8


# Default number of cached validation results
DEFAULT_RESULT_CACHE_SIZE = 1024


# PHI fields to mask in logs
PHI_FIELDS = [
    "emirates_id",
    "name_en",
    "name_ar",
    "date_of_birth",
    "phone_number",
    "email",
    "address",
    "emergency_contact_name",
    "emergency_contact_phone",
]
