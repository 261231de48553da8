"""
Field Evaluator

Applies one rule to one record and produces exactly one RuleOutcome, or
None when a conditionally-required rule does not apply.

Evaluation is pure: the same rule, record content and reference date
always produce the same outcome. A rule that raises (a broken predicate,
an unexpected value type) is reported as an EngineInternal error outcome
instead of aborting the record.
"""

from datetime import date
from typing import Any, Optional

from ..config.constants import (
    RuleKind,
    Severity,
    FailureType,
    FAILURE_TYPE_BY_KIND,
    ENGINE_INTERNAL_CATEGORY,
)
from ..models.patient_record import PatientRecord, resolve_field
from ..models.validation_result import RuleOutcome
from ..utils.format_utils import is_blank
from ..utils.logger import get_logger
from .rule_catalog import Rule


logger = get_logger(__name__)


def _passed(rule: Rule) -> RuleOutcome:
    return RuleOutcome(
        rule_id=rule.rule_id,
        field=rule.field,
        kind=rule.kind,
        category=rule.category,
        passed=True,
        severity=rule.severity,
        failure_type=None,
        message="",
        suggestion=None
    )


def _failed(rule: Rule, value: Any) -> RuleOutcome:
    return RuleOutcome(
        rule_id=rule.rule_id,
        field=rule.field,
        kind=rule.kind,
        category=rule.category,
        passed=False,
        severity=rule.severity,
        failure_type=FAILURE_TYPE_BY_KIND[rule.kind],
        message=rule.render_message(value),
        suggestion=rule.suggestion
    )


def _internal_error(rule: Rule, exc: Exception) -> RuleOutcome:
    return RuleOutcome(
        rule_id=rule.rule_id,
        field=rule.field,
        kind=rule.kind,
        category=ENGINE_INTERNAL_CATEGORY,
        passed=False,
        severity=Severity.ERROR,
        failure_type=FailureType.RULE_EVALUATION_ERROR,
        message=f"Rule '{rule.rule_id}' could not be evaluated: {type(exc).__name__}",
        suggestion="Report this rule to the system administrator"
    )


def _matches(rule: Rule, value: Any) -> bool:
    text = value if isinstance(value, str) else str(value)
    return rule.pattern.fullmatch(text.strip()) is not None


def _evaluate(rule: Rule, record: PatientRecord, as_of: date) -> Optional[RuleOutcome]:
    kind = rule.kind

    if kind == RuleKind.REQUIRED:
        value = resolve_field(record, rule.field)
        return _failed(rule, value) if is_blank(value) else _passed(rule)

    if kind == RuleKind.CONDITIONALLY_REQUIRED:
        if not rule.predicate(record, as_of):
            return None
        value = resolve_field(record, rule.field)
        return _failed(rule, value) if is_blank(value) else _passed(rule)

    if kind == RuleKind.FORMAT_PATTERN:
        value = resolve_field(record, rule.field)
        if is_blank(value):
            return _passed(rule)
        return _passed(rule) if _matches(rule, value) else _failed(rule, value)

    if kind == RuleKind.CROSS_FIELD:
        value = resolve_field(record, rule.field)
        return _passed(rule) if rule.predicate(record, as_of) else _failed(rule, value)

    raise ValueError(f"Unhandled rule kind: {kind!r}")


def evaluate_rule(rule: Rule, record: PatientRecord, as_of: date) -> Optional[RuleOutcome]:
    """
    Apply one rule to one record.

    Args:
        rule: Compiled rule
        record: Record snapshot
        as_of: Reference date for date-relative checks

    Returns:
        RuleOutcome, or None when a conditionally-required rule does not apply
    """
    try:
        return _evaluate(rule, record, as_of)
    except Exception as e:
        logger.error(
            "Rule evaluation failed",
            exception=e,
            rule_id=rule.rule_id,
            record_id=record.patient_id
        )
        return _internal_error(rule, e)
