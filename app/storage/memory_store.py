"""
Non-durable in-process record store, also used for demo mode
"""
import asyncio
from datetime import datetime, timedelta
from typing import Dict, List
from uuid import UUID, uuid4

from app.exceptions import NotFoundError
from app.logging_config import logger
from app.models import ErrorFilters, ErrorRecordRead, ErrorReport, RetryEntry, RetryOutcome
from app.storage.base import DISTINCT_FIELDS, RecordStore, StorageMode
from app.time_utils import ensure_utc, utcnow


class MemoryRecordStore(RecordStore):
    """Record store holding records in a dict guarded by an asyncio lock"""

    def __init__(self, mode: StorageMode = StorageMode.MEMORY):
        """
        Initialize in-memory record store

        Args:
            mode: MEMORY when chosen by configuration, DEMO when standing
                in for an unreachable database
        """
        self.mode = mode
        self._records: Dict[str, ErrorRecordRead] = {}
        self._lock = asyncio.Lock()
        logger.info(f"In-memory record store initialized in {mode.value} mode")

    def _require(self, record_id: str) -> ErrorRecordRead:
        record = self._records.get(str(record_id))
        if record is None:
            raise NotFoundError(record_id)
        return record

    async def create(self, report: ErrorReport) -> ErrorRecordRead:
        now = utcnow()
        record = ErrorRecordRead(
            id=str(uuid4()),
            owner=report.owner,
            occurred_at=report.occurred_at,
            integration_name=report.integration_name,
            error_type=report.error_type,
            error_message=report.error_message,
            raw_payload=report.raw_payload,
            created_at=now,
            updated_at=now
        )
        async with self._lock:
            self._records[record.id] = record.model_copy(deep=True)
        return record

    async def import_records(self, records: List[ErrorRecordRead]) -> int:
        async with self._lock:
            for record in records:
                UUID(record.id)
                self._records[record.id] = record.model_copy(deep=True)
        return len(records)

    async def get(self, record_id: str) -> ErrorRecordRead:
        async with self._lock:
            return self._require(record_id).model_copy(deep=True)

    async def list(self, owner: str, filters: ErrorFilters) -> List[ErrorRecordRead]:
        start = ensure_utc(filters.start_date)
        end = ensure_utc(filters.end_date)

        async with self._lock:
            matches = [
                record for record in self._records.values()
                if record.owner == owner
                and (filters.show_resolved or not record.resolved)
                and (filters.integration is None or record.integration_name == filters.integration)
                and (filters.error_type is None or record.error_type == filters.error_type)
                and (start is None or record.occurred_at >= start)
                and (end is None or record.occurred_at <= end)
            ]
            matches.sort(key=lambda record: record.occurred_at, reverse=True)
            return [record.model_copy(deep=True) for record in matches[:filters.limit]]

    async def list_between(self, owner: str, start: datetime, end: datetime) -> List[ErrorRecordRead]:
        start, end = ensure_utc(start), ensure_utc(end)

        async with self._lock:
            matches = [
                record for record in self._records.values()
                if record.owner == owner and start <= record.occurred_at <= end
            ]
            matches.sort(key=lambda record: record.occurred_at, reverse=True)
            return [record.model_copy(deep=True) for record in matches]

    async def distinct_values(self, owner: str, field: str) -> List[str]:
        if field not in DISTINCT_FIELDS:
            raise ValueError(f"Unsupported distinct field: {field}")

        async with self._lock:
            return list({
                getattr(record, field)
                for record in self._records.values()
                if record.owner == owner
            })

    async def append_retry(self, record_id: str, outcome: RetryOutcome) -> RetryEntry:
        async with self._lock:
            record = self._require(record_id)

            timestamp = utcnow()
            if record.last_retry_at is not None and timestamp <= record.last_retry_at:
                timestamp = record.last_retry_at + timedelta(microseconds=1)

            entry = RetryEntry(timestamp=timestamp, **outcome.model_dump())
            record.retry_history.append(entry)
            record.retry_count += 1
            record.last_retry_at = timestamp
            record.updated_at = timestamp
            return entry.model_copy(deep=True)

    async def mark_resolved(self, record_id: str) -> ErrorRecordRead:
        async with self._lock:
            record = self._require(record_id)
            now = utcnow()
            record.resolved = True
            record.resolved_at = now
            record.updated_at = now
            return record.model_copy(deep=True)

    async def count(self) -> int:
        async with self._lock:
            return len(self._records)
