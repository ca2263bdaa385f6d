"""
Record store backed by SQLModel tables on an async SQLAlchemy engine
"""
from contextlib import asynccontextmanager, nullcontext
from datetime import datetime, timedelta
from typing import AsyncGenerator, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.database import DatabaseManager
from app.exceptions import NotFoundError, StorageError
from app.logging_config import logger
from app.models import (
    ErrorFilters,
    ErrorRecord,
    ErrorRecordRead,
    ErrorReport,
    RetryAttempt,
    RetryEntry,
    RetryOutcome,
)
from app.storage.base import DISTINCT_FIELDS, RecordStore, StorageMode
from app.time_utils import ensure_utc, utcnow


def _parse_id(record_id: str) -> UUID:
    try:
        return UUID(str(record_id))
    except ValueError:
        raise NotFoundError(record_id)


def _to_entry(attempt: RetryAttempt) -> RetryEntry:
    return RetryEntry(
        timestamp=ensure_utc(attempt.timestamp),
        success=attempt.success,
        message=attempt.message,
        response=attempt.response
    )


def _to_read(row: ErrorRecord, history: Optional[List[RetryAttempt]] = None) -> ErrorRecordRead:
    attempts = row.retry_history if history is None else history
    return ErrorRecordRead(
        id=str(row.id),
        owner=row.owner,
        occurred_at=ensure_utc(row.occurred_at),
        integration_name=row.integration_name,
        error_type=row.error_type,
        error_message=row.error_message,
        raw_payload=row.raw_payload if row.raw_payload is not None else {},
        resolved=row.resolved,
        resolved_at=ensure_utc(row.resolved_at),
        retry_count=row.retry_count,
        last_retry_at=ensure_utc(row.last_retry_at),
        retry_history=[_to_entry(attempt) for attempt in attempts],
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at)
    )


class SQLRecordStore(RecordStore):
    """Durable record store on any SQLAlchemy async database"""

    mode = StorageMode.DURABLE

    def __init__(self, db: DatabaseManager):
        """
        Initialize SQL record store

        Args:
            db: Database manager owning the engine and session factory
        """
        self.db = db

    @asynccontextmanager
    async def _session(self, action: str, write: bool = False) -> AsyncGenerator[AsyncSession, None]:
        """
        Session that turns SQLAlchemy failures into StorageError

        Writing sessions hold the database write lock until they commit.
        """
        guard = self.db.writer() if write else nullcontext()
        try:
            async with guard:
                async with self.db.get_session() as session:
                    yield session
        except SQLAlchemyError as e:
            logger.error(f"Database error while trying to {action}: {str(e)}", exc_info=True)
            raise StorageError(f"Failed to {action}") from e

    async def create(self, report: ErrorReport) -> ErrorRecordRead:
        now = utcnow()
        row = ErrorRecord(
            id=uuid4(),
            owner=report.owner,
            occurred_at=report.occurred_at,
            integration_name=report.integration_name,
            error_type=report.error_type,
            error_message=report.error_message,
            raw_payload=report.raw_payload,
            created_at=now,
            updated_at=now
        )
        async with self._session("save error record", write=True) as session:
            session.add(row)

        logger.debug(f"Stored error record {row.id}")
        return _to_read(row, history=[])

    async def import_records(self, records: List[ErrorRecordRead]) -> int:
        async with self._session("import error records", write=True) as session:
            for record in records:
                record_id = UUID(record.id)
                session.add(ErrorRecord(
                    id=record_id,
                    owner=record.owner,
                    occurred_at=record.occurred_at,
                    integration_name=record.integration_name,
                    error_type=record.error_type,
                    error_message=record.error_message,
                    raw_payload=record.raw_payload,
                    resolved=record.resolved,
                    resolved_at=record.resolved_at,
                    retry_count=record.retry_count,
                    last_retry_at=record.last_retry_at,
                    created_at=record.created_at,
                    updated_at=record.updated_at
                ))
                for sequence, entry in enumerate(record.retry_history, start=1):
                    session.add(RetryAttempt(
                        error_id=record_id,
                        sequence=sequence,
                        timestamp=entry.timestamp,
                        success=entry.success,
                        message=entry.message,
                        response=entry.response
                    ))
        return len(records)

    async def get(self, record_id: str) -> ErrorRecordRead:
        key = _parse_id(record_id)
        async with self._session("load error record") as session:
            result = await session.execute(select(ErrorRecord).where(ErrorRecord.id == key))
            row = result.scalar_one_or_none()
            if row is None:
                raise NotFoundError(record_id)
            return _to_read(row)

    async def list(self, owner: str, filters: ErrorFilters) -> List[ErrorRecordRead]:
        query = select(ErrorRecord).where(ErrorRecord.owner == owner)

        if not filters.show_resolved:
            query = query.where(ErrorRecord.resolved == False)  # noqa: E712

        if filters.integration:
            query = query.where(ErrorRecord.integration_name == filters.integration)

        if filters.error_type:
            query = query.where(ErrorRecord.error_type == filters.error_type)

        if filters.start_date:
            query = query.where(ErrorRecord.occurred_at >= ensure_utc(filters.start_date))

        if filters.end_date:
            query = query.where(ErrorRecord.occurred_at <= ensure_utc(filters.end_date))

        query = query.order_by(ErrorRecord.occurred_at.desc()).limit(filters.limit)

        async with self._session("list error records") as session:
            result = await session.execute(query)
            return [_to_read(row) for row in result.scalars().all()]

    async def list_between(self, owner: str, start: datetime, end: datetime) -> List[ErrorRecordRead]:
        query = (
            select(ErrorRecord)
            .where(ErrorRecord.owner == owner)
            .where(ErrorRecord.occurred_at >= ensure_utc(start))
            .where(ErrorRecord.occurred_at <= ensure_utc(end))
            .order_by(ErrorRecord.occurred_at.desc())
        )
        async with self._session("load error window") as session:
            result = await session.execute(query)
            return [_to_read(row) for row in result.scalars().all()]

    async def distinct_values(self, owner: str, field: str) -> List[str]:
        if field not in DISTINCT_FIELDS:
            raise ValueError(f"Unsupported distinct field: {field}")

        column = getattr(ErrorRecord, field)
        query = select(column).where(ErrorRecord.owner == owner).distinct()

        async with self._session(f"load distinct {field} values") as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def append_retry(self, record_id: str, outcome: RetryOutcome) -> RetryEntry:
        key = _parse_id(record_id)

        async with self._session("record retry", write=True) as session:
            # The increment comes first so the row stays write-locked
            # until the history entry is committed
            result = await session.execute(
                update(ErrorRecord)
                .where(ErrorRecord.id == key)
                .values(retry_count=ErrorRecord.retry_count + 1)
                .returning(ErrorRecord.retry_count, ErrorRecord.last_retry_at)
                .execution_options(synchronize_session=False)
            )
            locked = result.first()
            if locked is None:
                raise NotFoundError(record_id)

            sequence, previous = locked
            timestamp = utcnow()
            previous = ensure_utc(previous)
            if previous is not None and timestamp <= previous:
                timestamp = previous + timedelta(microseconds=1)

            await session.execute(
                update(ErrorRecord)
                .where(ErrorRecord.id == key)
                .values(last_retry_at=timestamp, updated_at=timestamp)
                .execution_options(synchronize_session=False)
            )
            session.add(RetryAttempt(
                error_id=key,
                sequence=sequence,
                timestamp=timestamp,
                success=outcome.success,
                message=outcome.message,
                response=outcome.response
            ))

        return RetryEntry(timestamp=timestamp, **outcome.model_dump())

    async def mark_resolved(self, record_id: str) -> ErrorRecordRead:
        key = _parse_id(record_id)
        now = utcnow()

        async with self._session("resolve error record", write=True) as session:
            result = await session.execute(
                update(ErrorRecord)
                .where(ErrorRecord.id == key)
                .values(resolved=True, resolved_at=now, updated_at=now)
                .returning(ErrorRecord.id)
                .execution_options(synchronize_session=False)
            )
            if result.first() is None:
                raise NotFoundError(record_id)

            # Same transaction, so the row reflects the update above
            result = await session.execute(
                select(ErrorRecord)
                .where(ErrorRecord.id == key)
                .execution_options(populate_existing=True)
            )
            return _to_read(result.scalar_one())

    async def count(self) -> int:
        async with self._session("count error records") as session:
            result = await session.execute(select(func.count()).select_from(ErrorRecord))
            return result.scalar_one()

    async def health_check(self) -> bool:
        return await self.db.health_check()

    async def close(self) -> None:
        await self.db.close()
