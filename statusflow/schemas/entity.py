"""Entity status API schemas."""

from pydantic import BaseModel, Field


class StatusUpdateRequest(BaseModel):
    status: str = Field(..., min_length=1)


class StatusUpdateResponse(BaseModel):
    entity_type: str
    entity_id: str
    old_status: str | None
    new_status: str
    changed: bool
    event_id: str | None
