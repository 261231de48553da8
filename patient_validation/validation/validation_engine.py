"""
Validation Engine

Public entry point for validating a single patient record.
Coordinates the Validator (rule evaluation) and the Scorer
(completeness and compliance) over one immutable rule catalog.
"""

import time
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Union

from ..config.settings import Settings, get_settings
from ..models.patient_record import PatientRecord
from ..models.validation_result import ValidationResult
from ..utils.logger import get_logger
from .result_cache import ResultCache
from .rule_catalog import RuleCatalog, load_default_catalog
from .scorer import Scorer
from .validator import Validator


logger = get_logger(__name__)


class PatientValidationEngine:
    """
    Validates patient demographics records against a rule catalog.

    The engine can only be constructed from an already-loaded catalog,
    so validation never runs before the catalog is in place. It keeps no
    per-record state and is safe to share across threads and tasks.
    """

    def __init__(self, catalog: RuleCatalog, cache: Optional[ResultCache] = None):
        """
        Initialize the PatientValidationEngine.

        Args:
            catalog: Loaded rule catalog
            cache: Optional result cache keyed by content hash
        """
        if not isinstance(catalog, RuleCatalog):
            raise TypeError(
                f"PatientValidationEngine needs a loaded RuleCatalog, got {type(catalog).__name__}"
            )
        self.catalog = catalog
        self.validator = Validator(catalog)
        self.scorer = Scorer(catalog)
        self.cache = cache

    def validate_record(
        self,
        record: PatientRecord,
        as_of: date,
        validated_at: Optional[datetime] = None
    ) -> ValidationResult:
        """
        Validate one record against the catalog.

        Args:
            record: Record snapshot
            as_of: Reference date for date-relative rules
            validated_at: Timestamp copied into lastValidated

        Returns:
            ValidationResult
        """
        start_time = time.time()

        content_hash = record.content_hash() if self.cache is not None else None
        if content_hash is not None:
            cached = self.cache.get(
                content_hash, as_of, record_id=record.patient_id, validated_at=validated_at
            )
            if cached is not None:
                logger.debug("Result cache hit", record_id=record.patient_id)
                return cached

        raw = self.validator.validate(record, as_of)
        result = self.scorer.score(raw, validated_at=validated_at)

        if content_hash is not None:
            self.cache.put(content_hash, as_of, result)

        logger.log_validation(
            record_id=result.record_id,
            is_valid=result.is_valid,
            completeness=result.completeness.percentage,
            error_count=len(result.errors),
            warning_count=len(result.warnings)
        )
        if raw.internal_error_count:
            logger.warning(
                "Record had rule evaluation failures",
                record_id=result.record_id,
                failures=raw.internal_error_count
            )
        logger.log_performance("validate_record", time.time() - start_time)

        return result

    def validate_one(
        self,
        record: Union[PatientRecord, Mapping[str, Any]],
        *,
        as_of: Optional[date] = None,
        validated_at: Optional[datetime] = None
    ) -> ValidationResult:
        """
        Validate one record supplied by the caller.

        Args:
            record: PatientRecord or a plain mapping of its fields
            as_of: Reference date (defaults to the date of validated_at)
            validated_at: Invocation timestamp (defaults to now, UTC)

        Returns:
            ValidationResult

        Raises:
            pydantic.ValidationError: If a mapping cannot be coerced to a record
        """
        if not isinstance(record, PatientRecord):
            record = PatientRecord.from_mapping(record)
        if validated_at is None:
            validated_at = datetime.now(timezone.utc)
        if as_of is None:
            as_of = validated_at.date()
        return self.validate_record(record, as_of, validated_at)


def build_engine(settings: Optional[Settings] = None) -> PatientValidationEngine:
    """
    Load the configured catalog and build an engine around it.

    Args:
        settings: Settings instance (reads the environment if None)

    Returns:
        PatientValidationEngine

    Raises:
        CatalogConfigurationError: If the catalog cannot be loaded
    """
    settings = settings or get_settings()
    catalog = load_default_catalog(settings)
    cache = ResultCache(settings.result_cache_size) if settings.result_cache_size else None
    return PatientValidationEngine(catalog, cache=cache)
