"""
Batch Orchestrator

Validates a list of record ids: fetches each record from the record
store with bounded concurrency, validates it with the engine and folds
the outcomes into one BatchValidationResult.

A record that cannot be fetched or validated becomes an
InfrastructureFailure for that id only; the rest of the batch is
unaffected. The result does not depend on the concurrency degree.
"""

import asyncio
import time
from collections import Counter
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..config.settings import Settings
from ..models.patient_record import PatientRecord
from ..models.validation_result import (
    BatchSummary,
    BatchValidationResult,
    InfrastructureFailure,
    ValidationResult,
)
from ..utils.error_handler import (
    ErrorCode,
    ErrorHandler,
    RecordFetchError,
    ValidationEngineError,
    malformed_record_error,
    record_not_found_error,
)
from ..utils.logger import get_logger
from ..validation.validation_engine import PatientValidationEngine
from .record_store import RecordStore


logger = get_logger(__name__)

BatchEntry = Union[ValidationResult, InfrastructureFailure]


def _failure_reason(error: ValidationEngineError) -> str:
    if isinstance(error, RecordFetchError):
        return error.reason
    return error.message


def summarize(results: Mapping[str, BatchEntry]) -> BatchSummary:
    """
    Aggregate per-record results into batch counts and compliance rates.

    Compliance rate per category is compliant / validated, rounded to 4
    places. Records that were never validated do not count toward it.

    Args:
        results: Record id to ValidationResult or InfrastructureFailure

    Returns:
        BatchSummary
    """
    validated = [r for r in results.values() if isinstance(r, ValidationResult)]
    failed = len(results) - len(validated)
    valid = sum(1 for r in validated if r.is_valid)

    compliant: Counter = Counter()
    seen: Counter = Counter()
    for result in validated:
        for category, flag in result.compliance.items():
            seen[category] += 1
            if flag:
                compliant[category] += 1

    rates = {
        category: round(compliant[category] / seen[category], 4)
        for category in seen
    }

    return BatchSummary(
        total=len(results),
        valid=valid,
        invalid=len(validated) - valid,
        infrastructure_failed=failed,
        compliance_rates=rates
    )


class BatchOrchestrator:
    """
    Runs the validation engine over many records.

    Fetches are concurrent, capped at max_concurrency in-flight calls to
    the record store. Validation itself is synchronous.
    """

    def __init__(
        self,
        engine: PatientValidationEngine,
        record_store: RecordStore,
        max_concurrency: Optional[int] = None,
        error_handler: Optional[ErrorHandler] = None
    ):
        """
        Initialize the BatchOrchestrator.

        Args:
            engine: Validation engine
            record_store: Record store adapter
            max_concurrency: In-flight fetch cap (PDV_BATCH_CONCURRENCY if None)
            error_handler: ErrorHandler used to capture per-record failures
        """
        if max_concurrency is None:
            max_concurrency = Settings().batch_concurrency
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")

        self.engine = engine
        self.record_store = record_store
        self.max_concurrency = max_concurrency
        self.error_handler = error_handler or ErrorHandler(logger)

    async def _fetch(self, record_id: str) -> PatientRecord:
        payload = await self.record_store.fetch_record(record_id)

        if payload is None:
            raise record_not_found_error(record_id)
        if isinstance(payload, PatientRecord):
            return payload
        if not isinstance(payload, Mapping):
            raise malformed_record_error(
                record_id, TypeError(f"unsupported payload type {type(payload).__name__}")
            )
        try:
            return PatientRecord.from_mapping(payload)
        except ValidationError as e:
            raise malformed_record_error(record_id, e)

    async def _process_record(
        self,
        record_id: str,
        semaphore: asyncio.Semaphore,
        as_of: date,
        validated_at: datetime
    ) -> BatchEntry:
        async with semaphore:
            fetched = await self.error_handler.wrap_async(
                self._fetch, record_id, error_code=ErrorCode.RECORD_FETCH_FAILED
            )

        if not fetched.success:
            return InfrastructureFailure(
                record_id=record_id,
                reason=_failure_reason(fetched.error)
            )

        validated = self.error_handler.wrap_operation(
            self.engine.validate_record,
            fetched.value,
            as_of,
            validated_at,
            error_code=ErrorCode.RECORD_VALIDATION_FAILED
        )
        if not validated.success:
            return InfrastructureFailure(
                record_id=record_id,
                reason=validated.error.message,
                error_type="RecordValidationError"
            )

        result = validated.value
        if result.record_id != record_id:
            result = result.model_copy(update={'record_id': record_id})
        return result

    async def validate_batch(
        self,
        record_ids: Iterable[str],
        *,
        as_of: Optional[date] = None,
        validated_at: Optional[datetime] = None
    ) -> BatchValidationResult:
        """
        Validate a batch of records by id.

        Duplicate ids are fetched and validated once. Every result is
        stamped with the batch start time.

        Args:
            record_ids: Record identifiers
            as_of: Reference date (defaults to the date of validated_at)
            validated_at: Batch invocation time (defaults to now, UTC)

        Returns:
            BatchValidationResult keyed by record id in input order
        """
        start_time = time.time()
        started_at = validated_at or datetime.now(timezone.utc)
        as_of = as_of or started_at.date()

        unique_ids: List[str] = list(dict.fromkeys(record_ids))
        semaphore = asyncio.Semaphore(self.max_concurrency)

        logger.info(
            "Batch validation started",
            records=len(unique_ids),
            max_concurrency=self.max_concurrency
        )

        tasks = [
            self._process_record(record_id, semaphore, as_of, started_at)
            for record_id in unique_ids
        ]
        entries = await asyncio.gather(*tasks)

        results: Dict[str, BatchEntry] = dict(zip(unique_ids, entries))
        summary = summarize(results)

        logger.info(
            "Batch validation complete",
            total=summary.total,
            valid=summary.valid,
            invalid=summary.invalid,
            infrastructure_failed=summary.infrastructure_failed
        )
        logger.log_performance(
            "validate_batch",
            time.time() - start_time,
            details={'records': summary.total}
        )

        return BatchValidationResult(
            results=results,
            summary=summary,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc)
        )

    def run_batch(
        self,
        record_ids: Iterable[str],
        *,
        as_of: Optional[date] = None,
        validated_at: Optional[datetime] = None
    ) -> BatchValidationResult:
        """
        Blocking wrapper around validate_batch.

        Must not be called from inside a running event loop.
        """
        return asyncio.run(
            self.validate_batch(record_ids, as_of=as_of, validated_at=validated_at)
        )
