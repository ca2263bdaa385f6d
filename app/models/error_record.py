from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Index, UniqueConstraint
from sqlmodel import Field, SQLModel, Column, JSON, Relationship

from app.time_utils import utcnow


class RetryAttempt(SQLModel, table=True):
    __tablename__ = "retry_attempts"
    __table_args__ = (UniqueConstraint("error_id", "sequence"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    error_id: UUID = Field(foreign_key="error_records.id", index=True, nullable=False)
    sequence: int = Field(nullable=False)
    timestamp: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    success: bool = Field(nullable=False)
    message: str = Field(nullable=False)
    response: Optional[Any] = Field(default=None, sa_column=Column(JSON))


class ErrorRecord(SQLModel, table=True):
    __tablename__ = "error_records"
    __table_args__ = (
        Index("ix_error_records_owner_occurred_at", "owner", "occurred_at"),
        Index("ix_error_records_owner_integration_name", "owner", "integration_name"),
    )

    id: Optional[UUID] = Field(default_factory=uuid4, primary_key=True)
    owner: str = Field(index=True, nullable=False)
    occurred_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))
    integration_name: str = Field(index=True, nullable=False)
    error_type: str = Field(index=True, nullable=False)
    error_message: str = Field(nullable=False)
    raw_payload: Optional[Any] = Field(default_factory=dict, sa_column=Column(JSON))
    resolved: bool = Field(default=False, index=True)
    resolved_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    retry_count: int = Field(default=0)
    last_retry_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True)))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))

    retry_history: List[RetryAttempt] = Relationship(
        sa_relationship_kwargs={
            "lazy": "selectin",
            "order_by": "RetryAttempt.sequence",
        }
    )
