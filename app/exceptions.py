"""
Exception types raised by the record store and the services
"""
from typing import List, Optional


class ErrorCueError(Exception):
    """Base class for application errors"""


class ValidationError(ErrorCueError):
    """An incoming error report is missing required fields or has unparseable values"""

    def __init__(
        self,
        missing_fields: Optional[List[str]] = None,
        invalid_fields: Optional[List[str]] = None
    ):
        self.missing_fields = list(missing_fields or [])
        self.invalid_fields = list(invalid_fields or [])

        parts = []
        if self.missing_fields:
            parts.append(f"Missing required fields: {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            parts.append(f"Invalid fields: {', '.join(self.invalid_fields)}")
        super().__init__("; ".join(parts) or "Invalid error report")

    def to_detail(self) -> dict:
        """Response body for a rejected request"""
        return {
            "error": str(self),
            "missing_fields": self.missing_fields,
            "invalid_fields": self.invalid_fields
        }


class NotFoundError(ErrorCueError):
    """No error record exists with the requested id"""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Error log not found: {record_id}")


class StorageError(ErrorCueError):
    """The record store failed or is unavailable"""


class NotifierError(ErrorCueError):
    """A notification could not be delivered"""
