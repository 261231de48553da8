"""
Validation Result Data Models

Defines the structure for validation results: per-rule outcomes, the
per-record ValidationResult consumed by the registration UI, and the
batch-level result and summary.

Field names are snake_case in Python and serialize with camelCase
aliases (isValid, missingFields, lastValidated) for the UI.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..config.constants import RuleKind, Severity, FailureType


class _UIModel(BaseModel):
    """Base for models serialized to the UI with camelCase keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_ui_dict(self) -> dict:
        """Serialize with camelCase keys and JSON-compatible values."""
        return self.model_dump(by_alias=True, mode="json")


class RuleOutcome(_UIModel):
    """Result of applying one rule to one record"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    rule_id: str = Field(..., description="Identifier of the rule in the catalog")
    field: str = Field(..., description="Field path the rule targets")
    kind: RuleKind = Field(..., description="Rule kind")
    category: str = Field(..., description="Regulatory category")
    passed: bool = Field(..., description="Whether the rule passed")
    severity: Severity = Field(..., description="error or warning")
    failure_type: Optional[FailureType] = Field(
        None, description="Failure classification (None when passed)"
    )
    message: str = Field("", description="Rendered message")
    suggestion: Optional[str] = Field(None, description="How to fix the field")

    @property
    def is_error(self) -> bool:
        return not self.passed and self.severity == Severity.ERROR


class CompletenessReport(_UIModel):
    """Completeness block of a validation result"""

    percentage: int = Field(100, ge=0, le=100, description="Required rules satisfied (%)")
    missing_fields: List[str] = Field(
        default_factory=list,
        description="Fields behind failed error-severity required rules"
    )
    optional_fields: List[str] = Field(
        default_factory=list,
        description="Fields behind failed rules in optional categories"
    )


class ValidationResult(_UIModel):
    """Result of validating one patient record"""

    record_id: Optional[str] = Field(None, description="Record identifier, if known")
    is_valid: bool = Field(..., description="No error-severity failures")
    errors: List[RuleOutcome] = Field(default_factory=list, description="Failed error rules")
    warnings: List[RuleOutcome] = Field(default_factory=list, description="Failed warning rules")
    completeness: CompletenessReport = Field(default_factory=CompletenessReport)
    compliance: Dict[str, bool] = Field(
        default_factory=dict,
        description="Per-category flag: no error-severity failure in the category"
    )
    last_validated: Optional[datetime] = Field(
        None, description="Set by the caller at invocation time"
    )
    content_hash: Optional[str] = Field(None, description="Hash of the validated content")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "isValid": False,
                "errors": [
                    {
                        "ruleId": "homebound_justification_required",
                        "field": "homebound_justification",
                        "kind": "conditionally_required",
                        "category": "HomeboundAssessment",
                        "passed": False,
                        "severity": "error",
                        "failureType": "MissingRequiredField",
                        "message": "Clinical justification is required for a qualified homebound status",
                        "suggestion": "Document why the patient cannot leave home without considerable effort"
                    }
                ],
                "warnings": [],
                "completeness": {
                    "percentage": 91,
                    "missingFields": ["homebound_justification"],
                    "optionalFields": []
                },
                "compliance": {
                    "IdentityVerification": True,
                    "HomeboundAssessment": False
                },
                "lastValidated": "2025-10-06T10:30:00Z"
            }
        }
    )


class InfrastructureFailure(_UIModel):
    """Batch entry for a record that could not be fetched"""

    record_id: str = Field(..., description="Record identifier")
    reason: str = Field(..., description="Why the record could not be validated")
    error_type: str = Field("RecordFetchError", description="Failure classification")


class BatchSummary(_UIModel):
    """Aggregate counts for one batch call"""

    total: int = Field(0, description="Records attempted")
    valid: int = Field(0, description="Records validated with no errors")
    invalid: int = Field(0, description="Records validated with errors")
    infrastructure_failed: int = Field(0, description="Records that could not be fetched")
    compliance_rates: Dict[str, float] = Field(
        default_factory=dict,
        description="Per-category share of validated records that are compliant"
    )


class BatchValidationResult(_UIModel):
    """Result of validating a list of record ids"""

    results: Dict[str, Union[ValidationResult, InfrastructureFailure]] = Field(
        default_factory=dict,
        description="Record id to result, in input order"
    )
    summary: BatchSummary = Field(default_factory=BatchSummary)
    started_at: Optional[datetime] = Field(None, description="Batch invocation time")
    completed_at: Optional[datetime] = Field(None, description="Batch completion time")

    def validated(self) -> Dict[str, ValidationResult]:
        """Results for records that were fetched and validated."""
        return {
            record_id: result
            for record_id, result in self.results.items()
            if isinstance(result, ValidationResult)
        }

    def failures(self) -> Dict[str, InfrastructureFailure]:
        """Entries for records that could not be fetched."""
        return {
            record_id: result
            for record_id, result in self.results.items()
            if isinstance(result, InfrastructureFailure)
        }
