"""
Validator

Runs every rule of the catalog, in order, against one record and
produces the raw tally the scorer turns into a ValidationResult.
"""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config.constants import REQUIRED_KINDS, Severity, FailureType, ENGINE_INTERNAL_CATEGORY
from ..models.patient_record import PatientRecord
from ..models.validation_result import RuleOutcome
from .field_evaluator import evaluate_rule
from .rule_catalog import RuleCatalog


class RawValidation(BaseModel):
    """Unscored outcome of running the catalog against one record"""

    model_config = ConfigDict(frozen=True)

    record_id: Optional[str] = None
    content_hash: Optional[str] = None

    errors: List[RuleOutcome] = Field(default_factory=list)
    warnings: List[RuleOutcome] = Field(default_factory=list)

    total_applicable_rules: int = 0
    passed_rules: int = 0
    applied_required_rules: int = Field(
        0, description="Applicable error-severity required/conditionally-required rules"
    )
    failed_required_count: int = 0
    missing_field_names: List[str] = Field(
        default_factory=list, description="Fields of failed required rules, catalog order"
    )
    optional_missing_names: List[str] = Field(
        default_factory=list, description="Fields of failed rules in optional categories"
    )
    per_category_failure_counts: Dict[str, int] = Field(
        default_factory=dict, description="Error-severity failures per category"
    )
    internal_error_count: int = 0


class Validator:
    """
    Applies a rule catalog to single records.

    Holds no per-call state, so one instance can serve any number of
    threads or tasks.
    """

    def __init__(self, catalog: RuleCatalog):
        """
        Initialize the Validator.

        Args:
            catalog: Loaded rule catalog
        """
        self.catalog = catalog

    def validate(self, record: PatientRecord, as_of: date) -> RawValidation:
        """
        Evaluate every applicable rule against a record.

        Failed outcomes keep catalog order. A field failing two rules
        (e.g. required and format) yields two outcomes.

        Args:
            record: Record snapshot
            as_of: Reference date for date-relative rules

        Returns:
            RawValidation tally
        """
        errors: List[RuleOutcome] = []
        warnings: List[RuleOutcome] = []
        missing: List[str] = []
        optional_missing: List[str] = []
        per_category: Dict[str, int] = {}

        total_applicable = 0
        passed = 0
        applied_required = 0
        failed_required = 0
        internal_errors = 0

        for rule in self.catalog.all_rules():
            outcome = evaluate_rule(rule, record, as_of)
            if outcome is None:
                continue  # conditional rule not applicable

            total_applicable += 1

            if outcome.failure_type == FailureType.RULE_EVALUATION_ERROR:
                internal_errors += 1
                per_category[ENGINE_INTERNAL_CATEGORY] = per_category.get(ENGINE_INTERNAL_CATEGORY, 0) + 1
                errors.append(outcome)
                continue

            counts_toward_completeness = (
                rule.kind in REQUIRED_KINDS and rule.severity == Severity.ERROR
            )
            if counts_toward_completeness:
                applied_required += 1

            if outcome.passed:
                passed += 1
                continue

            if counts_toward_completeness:
                failed_required += 1
                missing.append(rule.field)

            if self.catalog.is_optional_category(rule.category):
                optional_missing.append(rule.field)

            if outcome.severity == Severity.ERROR:
                per_category[rule.category] = per_category.get(rule.category, 0) + 1
                errors.append(outcome)
            else:
                warnings.append(outcome)

        return RawValidation(
            record_id=record.patient_id,
            content_hash=record.content_hash(),
            errors=errors,
            warnings=warnings,
            total_applicable_rules=total_applicable,
            passed_rules=passed,
            applied_required_rules=applied_required,
            failed_required_count=failed_required,
            missing_field_names=missing,
            optional_missing_names=optional_missing,
            per_category_failure_counts=per_category,
            internal_error_count=internal_errors
        )
