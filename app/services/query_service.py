"""
Read-side queries for the dashboard: listings, filter options and statistics
"""
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional

from app.config import settings
from app.logging_config import logger
from app.models import ErrorFilters, ErrorRecordRead, ErrorStats, FilterOptions
from app.storage.base import RecordStore
from app.time_utils import utcnow


NO_ERROR_TYPE = "None"


def most_common(values: List[str]) -> str:
    """
    Most frequent value, ties going to the lexicographically smallest

    Returns "None" for an empty list.
    """
    if not values:
        return NO_ERROR_TYPE

    counts = Counter(values)
    return min(counts, key=lambda value: (-counts[value], value))


class QueryService:
    """Answers listing, distinct-value and statistics requests for one owner"""

    def __init__(
        self,
        store: RecordStore,
        list_limit: Optional[int] = None,
        stats_window_days: Optional[int] = None
    ):
        self.store = store
        self.list_limit = list_limit or settings.list_limit
        self.stats_window_days = stats_window_days or settings.stats_window_days

    async def list_errors(self, owner: str, filters: Optional[ErrorFilters] = None) -> List[ErrorRecordRead]:
        """
        List an owner's errors matching the filters, newest first

        Args:
            owner: Owner whose records are listed
            filters: Listing filters (unresolved only by default)

        Returns:
            At most list_limit records
        """
        filters = filters or ErrorFilters()
        filters = filters.model_copy(update={"limit": min(filters.limit, self.list_limit)})

        records = await self.store.list(owner, filters)
        logger.debug(f"Found {len(records)} error logs for {owner}")
        return records

    async def filter_options(self, owner: str) -> FilterOptions:
        """Sorted distinct integrations and error types for an owner"""
        integrations = await self.store.distinct_values(owner, "integration_name")
        error_types = await self.store.distinct_values(owner, "error_type")
        return FilterOptions(
            integrations=sorted(integrations),
            error_types=sorted(error_types)
        )

    async def stats(self, owner: str, now: Optional[datetime] = None) -> ErrorStats:
        """
        Summary of an owner's errors that occurred in the trailing window

        Args:
            owner: Owner whose records are counted
            now: End of the window (defaults to the current time)

        Returns:
            Total errors, most common error type and distinct integration count
        """
        end = now or utcnow()
        start = end - timedelta(days=self.stats_window_days)

        records = await self.store.list_between(owner, start, end)

        return ErrorStats(
            total_errors=len(records),
            most_common_error_type=most_common([record.error_type for record in records]),
            total_integrations=len({record.integration_name for record in records})
        )
