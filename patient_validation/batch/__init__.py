"""
Batch Module

Validates many records fetched from a record store.

Components:
- record_store.py: RecordStore port and in-memory adapter
- orchestrator.py: Bounded-concurrency batch validation
"""

from .record_store import RecordStore, InMemoryRecordStore
from .orchestrator import BatchOrchestrator, summarize

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "BatchOrchestrator",
    "summarize",
]
