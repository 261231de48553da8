"""
Result Cache

In-memory LRU cache of validation results keyed by record content hash
and reference date. Identical content validated against the same date
always yields the same result, so the cached copy is reused and only
re-stamped with the caller's record id and timestamp. Entries are
stored and handed out as deep copies; callers own what they receive.
"""

import threading
from collections import OrderedDict
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from ..config.constants import DEFAULT_RESULT_CACHE_SIZE
from ..models.validation_result import ValidationResult
from ..utils.logger import get_logger


logger = get_logger(__name__)

CacheKey = Tuple[str, date]


class ResultCache:
    """Bounded, thread-safe cache of ValidationResults."""

    def __init__(self, max_size: int = DEFAULT_RESULT_CACHE_SIZE):
        """
        Initialize the cache.

        Args:
            max_size: Entries kept before the least recently used is
                evicted (0 disables caching)
        """
        if max_size < 0:
            raise ValueError(f"max_size cannot be negative, got {max_size}")
        self.max_size = max_size
        self._entries: "OrderedDict[CacheKey, ValidationResult]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self.max_size > 0

    def get(
        self,
        content_hash: str,
        as_of: date,
        record_id: Optional[str] = None,
        validated_at: Optional[datetime] = None
    ) -> Optional[ValidationResult]:
        """
        Look up a cached result.

        Args:
            content_hash: Hash of the record content
            as_of: Reference date the result was computed for
            record_id: Record id to stamp on the returned copy
            validated_at: Timestamp to stamp on the returned copy

        Returns:
            A re-stamped copy of the cached result, or None
        """
        if not self.enabled:
            return None

        key = (content_hash, as_of)
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1

        return cached.model_copy(
            update={'record_id': record_id, 'last_validated': validated_at},
            deep=True
        )

    def put(self, content_hash: str, as_of: date, result: ValidationResult) -> None:
        """
        Store a result.

        Args:
            content_hash: Hash of the record content
            as_of: Reference date the result was computed for
            result: Result to cache
        """
        if not self.enabled:
            return

        key = (content_hash, as_of)
        with self._lock:
            self._entries[key] = result.model_copy(deep=True)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        """Drop every cached result."""
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
        logger.info("Result cache cleared")

    def __len__(self) -> int:
        return len(self._entries)

    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cache.

        Returns:
            Dictionary with cache statistics
        """
        lookups = self.hits + self.misses
        return {
            'entries': len(self._entries),
            'max_size': self.max_size,
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': round(self.hits / lookups, 4) if lookups else 0.0
        }
