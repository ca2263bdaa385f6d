"""
Read and request models shared by the record stores, services and routes
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.time_utils import isoformat, parse_timestamp


class ErrorReport(BaseModel):
    """Incoming webhook report, before it is persisted"""

    owner: str = Field(
        validation_alias=AliasChoices("owner", "userId", "user_id")
    )
    occurred_at: datetime = Field(
        validation_alias=AliasChoices("occurredAt", "timestamp", "occurred_at")
    )
    integration_name: str = Field(
        validation_alias=AliasChoices("integrationName", "integration_name")
    )
    error_type: str = Field(
        validation_alias=AliasChoices("errorType", "error_type")
    )
    error_message: str = Field(
        validation_alias=AliasChoices("errorMessage", "error_message")
    )
    raw_payload: Any = Field(
        default=None,
        validate_default=True,
        validation_alias=AliasChoices("rawPayload", "raw_payload")
    )

    @field_validator("owner", "integration_name", "error_type", "error_message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("occurred_at", mode="before")
    @classmethod
    def _parse_occurred_at(cls, value: Any) -> datetime:
        return parse_timestamp(value)

    @field_validator("raw_payload")
    @classmethod
    def _default_payload(cls, value: Any) -> Any:
        return {} if value is None else value


class RetryOutcome(BaseModel):
    """Result of one simulated retry"""

    success: bool
    message: str
    response: Optional[Any] = None


class RetryEntry(RetryOutcome):
    """One element of a record's retry history"""

    timestamp: datetime

    def to_api(self) -> Dict[str, Any]:
        return {
            "timestamp": isoformat(self.timestamp),
            "success": self.success,
            "message": self.message,
            "response": self.response
        }


class ErrorRecordRead(BaseModel):
    """Detached snapshot of a stored error record"""

    id: str
    owner: str
    occurred_at: datetime
    integration_name: str
    error_type: str
    error_message: str
    raw_payload: Any = Field(default_factory=dict)
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    retry_count: int = 0
    last_retry_at: Optional[datetime] = None
    retry_history: List[RetryEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def to_api(self) -> Dict[str, Any]:
        """
        Serialize with the snake_case field names the dashboard reads

        Returns:
            JSON-ready dictionary
        """
        return {
            "id": self.id,
            "user_id": self.owner,
            "timestamp": isoformat(self.occurred_at),
            "integration_name": self.integration_name,
            "error_type": self.error_type,
            "error_message": self.error_message,
            "raw_payload": self.raw_payload,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
            "resolved": self.resolved,
            "resolved_at": isoformat(self.resolved_at),
            "retry_count": self.retry_count,
            "last_retry_at": isoformat(self.last_retry_at),
            "retry_results": [entry.to_api() for entry in self.retry_history]
        }


class ErrorFilters(BaseModel):
    """Listing filters; None means no constraint"""

    integration: Optional[str] = None
    error_type: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    show_resolved: bool = False
    limit: int = 100

    @field_validator("integration", "error_type")
    @classmethod
    def _wildcard(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "" or value == "all":
            return None
        return value


class ErrorStats(BaseModel):
    total_errors: int
    most_common_error_type: str
    total_integrations: int

    def to_api(self) -> Dict[str, Any]:
        return {
            "totalErrors": self.total_errors,
            "mostCommonErrorType": self.most_common_error_type,
            "totalIntegrations": self.total_integrations
        }


class FilterOptions(BaseModel):
    integrations: List[str]
    error_types: List[str]

    def to_api(self) -> Dict[str, Any]:
        return {
            "integrations": self.integrations,
            "errorTypes": self.error_types
        }
