"""
Retry simulation and resolution of stored errors
"""
from typing import Optional

from app.logging_config import logger
from app.models import ErrorRecordRead, RetryEntry
from app.services.retry_simulator import RetrySimulator
from app.storage.base import RecordStore


class MutationService:
    """Applies retry and resolve transitions to stored records"""

    def __init__(self, store: RecordStore, simulator: Optional[RetrySimulator] = None):
        """
        Initialize mutation service

        Args:
            store: Record store holding the records
            simulator: Retry outcome generator (defaults to configured probabilities)
        """
        self.store = store
        self.simulator = simulator or RetrySimulator()

    async def simulate_retry(self, record_id: str) -> RetryEntry:
        """
        Simulate a retry and append it to the record's history

        Args:
            record_id: Id of the record to retry

        Returns:
            The history entry that was appended

        Raises:
            NotFoundError: If the record does not exist
        """
        record = await self.store.get(record_id)
        outcome = self.simulator.simulate(record.error_type)
        entry = await self.store.append_retry(record_id, outcome)

        logger.info(
            f"Retry of {record_id} ({record.error_type}) "
            f"{'succeeded' if entry.success else 'failed'}: {entry.message}"
        )
        return entry

    async def resolve(self, record_id: str) -> ErrorRecordRead:
        """
        Mark a record resolved

        Resolving twice moves resolved_at to the latest call.

        Raises:
            NotFoundError: If the record does not exist
        """
        record = await self.store.mark_resolved(record_id)
        logger.info(f"Error {record_id} marked as resolved")
        return record
