"""
Abstract record store shared by the SQL and in-memory backends
"""
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import List

from app.models import ErrorFilters, ErrorRecordRead, ErrorReport, RetryEntry, RetryOutcome


class StorageMode(str, Enum):
    """How durable the data served by a store is"""

    DURABLE = "durable"
    MEMORY = "memory"
    DEMO = "demo"


class RecordStore(ABC):
    """
    Persistent collection of error records

    Every mutation is a single atomic operation at the store level, so
    concurrent retries or resolves of one record never lose updates.
    Read methods return detached ErrorRecordRead snapshots.
    """

    mode: StorageMode = StorageMode.DURABLE

    @property
    def is_durable(self) -> bool:
        return self.mode == StorageMode.DURABLE

    @abstractmethod
    async def create(self, report: ErrorReport) -> ErrorRecordRead:
        """
        Persist a new, unresolved record with an empty retry history

        Args:
            report: Validated error report

        Returns:
            The stored record with its assigned id and timestamps
        """
        pass

    @abstractmethod
    async def import_records(self, records: List[ErrorRecordRead]) -> int:
        """
        Insert fully formed records, history included

        Used for seeding example data.

        Returns:
            Number of records inserted
        """
        pass

    @abstractmethod
    async def get(self, record_id: str) -> ErrorRecordRead:
        """
        Fetch one record

        Raises:
            NotFoundError: If no record has this id
        """
        pass

    @abstractmethod
    async def list(self, owner: str, filters: ErrorFilters) -> List[ErrorRecordRead]:
        """
        Owner's records matching all filters, newest occurrence first

        At most filters.limit records are returned.
        """
        pass

    @abstractmethod
    async def list_between(self, owner: str, start: datetime, end: datetime) -> List[ErrorRecordRead]:
        """Owner's records with start <= occurred_at <= end, resolved or not"""
        pass

    @abstractmethod
    async def distinct_values(self, owner: str, field: str) -> List[str]:
        """
        Distinct values of integration_name or error_type for an owner

        Raises:
            ValueError: For any other field name
        """
        pass

    @abstractmethod
    async def append_retry(self, record_id: str, outcome: RetryOutcome) -> RetryEntry:
        """
        Record one retry attempt atomically

        Increments retry_count, sets last_retry_at and appends the history
        entry as one unit. The entry timestamp is assigned while the
        record is locked and is strictly later than the previous attempt.

        Raises:
            NotFoundError: If no record has this id

        Returns:
            The appended history entry
        """
        pass

    @abstractmethod
    async def mark_resolved(self, record_id: str) -> ErrorRecordRead:
        """
        Set resolved and stamp resolved_at with the current time

        Raises:
            NotFoundError: If no record has this id
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Total number of stored records across all owners"""
        pass

    async def health_check(self) -> bool:
        """Check that the store can serve requests"""
        return True

    async def close(self) -> None:
        """Release any held resources"""
        return None


DISTINCT_FIELDS = ("integration_name", "error_type")
