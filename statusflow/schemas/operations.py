"""Operations API schemas (event store and execution log maintenance)."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventStatsResponse(BaseModel):
    total: int
    pending: int
    processing: int
    completed: int
    failed: int
    by_type: dict[str, int]


class ExecutionWindowResponse(BaseModel):
    total: int
    completed: int
    failed: int
    skipped: int


class ExecutionStatsResponse(BaseModel):
    last_24h: ExecutionWindowResponse
    last_week: ExecutionWindowResponse


class DomainEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    event_type: str
    event_source: str
    payload: dict[str, Any]
    status: str
    attempt_count: int
    correlation_id: str | None
    causation_id: str | None
    error_message: str | None
    created_at: datetime
    processed_at: datetime | None
    failed_at: datetime | None


class ReplayRequest(BaseModel):
    limit: int = Field(default=100, ge=1, le=1000)


class ReplayResponse(BaseModel):
    replayed: int


class CleanupRequest(BaseModel):
    older_than_days: int | None = Field(default=None, ge=0)
    batch_size: int | None = Field(default=None, ge=1, le=10_000)


class CleanupResponse(BaseModel):
    deleted: int
    has_more: bool
