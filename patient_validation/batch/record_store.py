"""
Record Store Port

Abstract contract the batch orchestrator uses to fetch patient records,
plus an in-memory adapter for tests and embedding.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Union

from ..models.patient_record import PatientRecord
from ..utils.error_handler import record_not_found_error


RecordPayload = Union[PatientRecord, Mapping[str, Any]]


class RecordStore(ABC):
    """Abstract contract for fetching patient records by id.

    Adapters return a PatientRecord or a plain mapping of its fields and
    raise on any failure (RecordFetchError for known conditions such as
    a missing record; anything else is treated as an infrastructure
    failure by the orchestrator).
    """

    @abstractmethod
    async def fetch_record(self, record_id: str) -> RecordPayload:
        """Fetch one record.

        Parameters:
            record_id: Record identifier

        Returns:
            PatientRecord or mapping of record fields

        Raises:
            RecordFetchError: If the record cannot be fetched
        """
        pass


class InMemoryRecordStore(RecordStore):
    """Record store backed by a dictionary."""

    def __init__(
        self,
        records: Optional[Mapping[str, RecordPayload]] = None,
        failures: Optional[Mapping[str, BaseException]] = None
    ):
        """
        Initialize the store.

        Args:
            records: Record id to record (or mapping of record fields)
            failures: Record id to the exception raised when it is fetched
        """
        self._records: Dict[str, RecordPayload] = dict(records or {})
        self._failures: Dict[str, BaseException] = dict(failures or {})
        self.fetch_count = 0

    def add(self, record_id: str, record: RecordPayload) -> None:
        self._records[record_id] = record

    def fail_with(self, record_id: str, error: BaseException) -> None:
        """Make every fetch of record_id raise error."""
        self._failures[record_id] = error

    async def fetch_record(self, record_id: str) -> RecordPayload:
        self.fetch_count += 1
        if record_id in self._failures:
            raise self._failures[record_id]
        if record_id not in self._records:
            raise record_not_found_error(record_id)
        return self._records[record_id]

    def __len__(self) -> int:
        return len(self._records)
