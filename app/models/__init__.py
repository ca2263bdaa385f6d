# Database and API models package
from .error_record import ErrorRecord, RetryAttempt
from .schemas import (
    ErrorFilters,
    ErrorRecordRead,
    ErrorReport,
    ErrorStats,
    FilterOptions,
    RetryEntry,
    RetryOutcome,
)

__all__ = [
    "ErrorRecord",
    "RetryAttempt",
    "ErrorFilters",
    "ErrorRecordRead",
    "ErrorReport",
    "ErrorStats",
    "FilterOptions",
    "RetryEntry",
    "RetryOutcome",
]
