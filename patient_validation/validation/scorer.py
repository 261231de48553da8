"""
Completeness & Compliance Scorer

Turns the Validator's raw tally into the completeness and compliance
blocks of a ValidationResult.

Completeness is the share of applicable error-severity required rules
that are satisfied, rounded half-up to a whole percentage. Compliance is
one flag per category: true while no error-severity rule in that
category failed.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from ..config.constants import ENGINE_INTERNAL_CATEGORY
from ..models.validation_result import CompletenessReport, ValidationResult
from .rule_catalog import RuleCatalog
from .validator import RawValidation


def _unique(names: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


class Scorer:
    """Derives completeness percentage and compliance flags."""

    def __init__(self, catalog: RuleCatalog):
        """
        Initialize the Scorer.

        Args:
            catalog: Rule catalog (provides the category list)
        """
        self.catalog = catalog

    @staticmethod
    def completeness_percentage(applied_required: int, failed_required: int) -> int:
        """
        Percentage of applicable required rules satisfied.

        Args:
            applied_required: Applicable error-severity required rules
            failed_required: How many of them failed

        Returns:
            Whole percentage in [0, 100]; 100 when nothing applied
        """
        if applied_required <= 0:
            return 100
        ratio = Decimal(100 * (applied_required - failed_required)) / Decimal(applied_required)
        percentage = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return max(0, min(100, percentage))

    def completeness(self, raw: RawValidation) -> CompletenessReport:
        return CompletenessReport(
            percentage=self.completeness_percentage(
                raw.applied_required_rules, raw.failed_required_count
            ),
            missing_fields=_unique(raw.missing_field_names),
            optional_fields=_unique(raw.optional_missing_names)
        )

    def compliance(self, raw: RawValidation) -> Dict[str, bool]:
        """
        One flag per declared category plus EngineInternal.

        Categories with no applicable rules are compliant.
        """
        flags = {
            category: raw.per_category_failure_counts.get(category, 0) == 0
            for category in self.catalog.categories
        }
        flags[ENGINE_INTERNAL_CATEGORY] = raw.internal_error_count == 0
        return flags

    def score(
        self,
        raw: RawValidation,
        validated_at: Optional[datetime] = None
    ) -> ValidationResult:
        """
        Build the reported ValidationResult.

        Args:
            raw: Validator tally
            validated_at: Timestamp supplied by the caller

        Returns:
            ValidationResult
        """
        return ValidationResult(
            record_id=raw.record_id,
            is_valid=not raw.errors,
            errors=list(raw.errors),
            warnings=list(raw.warnings),
            completeness=self.completeness(raw),
            compliance=self.compliance(raw),
            last_validated=validated_at,
            content_hash=raw.content_hash
        )
