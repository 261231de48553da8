"""
Compliance Reporting Module

Renders validation results for people and for automation:
- Per-record report listing every error and warning with its fix
- Completeness and missing/optional field badges
- Per-category compliance flags
- Batch summary with compliance rates
- JSON export in the camelCase UI shape

Values quoted in messages for PHI fields are masked.
"""

import json
import re
from typing import Dict, List, Optional

from ..config.constants import PHI_FIELDS, ENGINE_INTERNAL_CATEGORY
from ..models.validation_result import (
    BatchValidationResult,
    RuleOutcome,
    ValidationResult,
)
from .format_utils import mask_phi


_QUOTED_VALUE = re.compile(r"'([^']*)'")


class ComplianceReporter:
    """
    Reporter for patient validation results.

    Generates actionable feedback including:
    - What's wrong (rule message)
    - Which regulatory category it affects
    - How to fix it (rule suggestion)
    """

    def __init__(self, phi_fields: Optional[List[str]] = None):
        """
        Initialize the compliance reporter.

        Args:
            phi_fields: Fields whose values are masked in reports
        """
        self.phi_fields = set(phi_fields if phi_fields is not None else PHI_FIELDS)

    def _display_message(self, outcome: RuleOutcome) -> str:
        if outcome.field.split(".", 1)[0] not in self.phi_fields:
            return outcome.message
        return _QUOTED_VALUE.sub(
            lambda m: f"'{mask_phi(m.group(1), outcome.field)}'", outcome.message
        )

    def format_outcome(self, outcome: RuleOutcome) -> str:
        """
        Format one failed rule as an actionable block.

        Args:
            outcome: Failed rule outcome

        Returns:
            Multi-line string
        """
        marker = "✗" if outcome.is_error else "⚠"
        lines = [f"{marker} {outcome.field}: {self._display_message(outcome)}"]
        lines.append(f"    Rule: {outcome.rule_id} ({outcome.category})")
        if outcome.suggestion:
            lines.append(f"    Fix: {outcome.suggestion}")
        return "\n".join(lines)

    def _group_by_category(self, outcomes: List[RuleOutcome]) -> Dict[str, List[RuleOutcome]]:
        categories: Dict[str, List[RuleOutcome]] = {}
        for outcome in outcomes:
            categories.setdefault(outcome.category, []).append(outcome)
        return categories

    def generate_report(
        self,
        result: ValidationResult,
        include_warnings: bool = True
    ) -> str:
        """
        Generate an all-at-once report for one record.

        Args:
            result: Validation result
            include_warnings: Include warning-severity failures

        Returns:
            Report as string
        """
        lines = []

        lines.append("=" * 80)
        lines.append("PATIENT DEMOGRAPHICS VALIDATION REPORT")
        lines.append("=" * 80)
        lines.append(f"Record: {result.record_id or 'unsaved record'}")
        lines.append(f"Status: {'VALID' if result.is_valid else 'INVALID'}")
        if result.last_validated:
            lines.append(f"Validated: {result.last_validated.strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("")

        lines.append("─" * 80)
        lines.append("SUMMARY")
        lines.append("─" * 80)
        lines.append(f"  Completeness: {result.completeness.percentage}%")
        lines.append(f"  ✗ Errors:   {len(result.errors)}")
        lines.append(f"  ⚠ Warnings: {len(result.warnings)}")
        if result.completeness.missing_fields:
            lines.append(f"  Missing: {', '.join(result.completeness.missing_fields)}")
        if result.completeness.optional_fields:
            lines.append(f"  Optional: {', '.join(result.completeness.optional_fields)}")
        lines.append("")

        if result.errors:
            lines.append("─" * 80)
            lines.append("ERRORS (Must Fix)")
            lines.append("─" * 80)
            for category, outcomes in self._group_by_category(result.errors).items():
                lines.append(f"[{category}]")
                for outcome in outcomes:
                    lines.append(self.format_outcome(outcome))
                lines.append("")

        if include_warnings and result.warnings:
            lines.append("─" * 80)
            lines.append("WARNINGS")
            lines.append("─" * 80)
            for category, outcomes in self._group_by_category(result.warnings).items():
                lines.append(f"[{category}]")
                for outcome in outcomes:
                    lines.append(self.format_outcome(outcome))
                lines.append("")

        lines.append("─" * 80)
        lines.append("COMPLIANCE")
        lines.append("─" * 80)
        for category, compliant in result.compliance.items():
            if category == ENGINE_INTERNAL_CATEGORY and compliant:
                continue
            lines.append(f"  {'✓' if compliant else '✗'} {category}")
        lines.append("")

        lines.append("=" * 80)
        lines.append("END OF REPORT")
        lines.append("=" * 80)

        return "\n".join(lines)

    def generate_batch_report(self, batch: BatchValidationResult) -> str:
        """
        Generate a summary report for a batch.

        Args:
            batch: Batch validation result

        Returns:
            Report as string
        """
        summary = batch.summary
        lines = []

        lines.append("=" * 80)
        lines.append("BATCH VALIDATION SUMMARY")
        lines.append("=" * 80)
        if batch.started_at:
            lines.append(f"Started: {batch.started_at.strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"  Total:                  {summary.total}")
        lines.append(f"  ✓ Valid:                {summary.valid}")
        lines.append(f"  ✗ Invalid:              {summary.invalid}")
        lines.append(f"  ⚠ Infrastructure failed: {summary.infrastructure_failed}")
        lines.append("")

        if summary.compliance_rates:
            lines.append("─" * 80)
            lines.append("COMPLIANCE RATES")
            lines.append("─" * 80)
            for category, rate in summary.compliance_rates.items():
                lines.append(f"  {category}: {rate * 100:.1f}%")
            lines.append("")

        invalid = {
            record_id: result
            for record_id, result in batch.validated().items()
            if not result.is_valid
        }
        if invalid:
            lines.append("─" * 80)
            lines.append("INVALID RECORDS")
            lines.append("─" * 80)
            for record_id, result in invalid.items():
                lines.append(
                    f"  {record_id}: {len(result.errors)} error(s), "
                    f"completeness {result.completeness.percentage}%"
                )
            lines.append("")

        failures = batch.failures()
        if failures:
            lines.append("─" * 80)
            lines.append("NOT VALIDATED")
            lines.append("─" * 80)
            for record_id, failure in failures.items():
                lines.append(f"  {record_id}: {failure.reason}")
            lines.append("")

        lines.append("=" * 80)
        return "\n".join(lines)

    def export_to_json(self, result: ValidationResult) -> str:
        """
        Export a validation result to JSON in the UI shape.

        Args:
            result: Validation result

        Returns:
            JSON string
        """
        return json.dumps(result.to_ui_dict(), indent=2, ensure_ascii=False)

    def export_batch_to_json(self, batch: BatchValidationResult) -> str:
        """Export a batch result to JSON in the UI shape."""
        return json.dumps(batch.to_ui_dict(), indent=2, ensure_ascii=False)


# Singleton instance for global access
_compliance_reporter_instance = None


def get_compliance_reporter() -> ComplianceReporter:
    """
    Get singleton instance of ComplianceReporter.

    Returns:
        ComplianceReporter instance
    """
    global _compliance_reporter_instance
    if _compliance_reporter_instance is None:
        _compliance_reporter_instance = ComplianceReporter()
    return _compliance_reporter_instance
