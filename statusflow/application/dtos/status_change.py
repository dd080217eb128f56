"""entity.status_changed payload as a tagged union keyed by entity type.

Each variant pins old/new values to that entity's status vocabulary, so a
payload naming a status the entity does not have fails validation instead
of reaching the executor. Stored keys are camelCase
({entityType, entityId, field, oldValue, newValue, metadata}).
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from statusflow.domain.enums import (
    ClientStatus,
    InvoiceStatus,
    ProjectStatus,
    QuoteStatus,
    TaskStatus,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class CascadeMetadata(_CamelModel):
    """Carried by events that an automation action produced."""

    execution_chain: list[str] = Field(default_factory=list)
    recursion_depth: int = Field(default=0, ge=0)
    is_cascade: bool = False


class _StatusChangeBase(_CamelModel):
    entity_id: str = Field(min_length=1)
    field: Literal["status"] = "status"
    metadata: CascadeMetadata | None = None


class ClientStatusChange(_StatusChangeBase):
    entity_type: Literal["client"]
    old_value: ClientStatus | None = None
    new_value: ClientStatus


class ProjectStatusChange(_StatusChangeBase):
    entity_type: Literal["project"]
    old_value: ProjectStatus | None = None
    new_value: ProjectStatus


class QuoteStatusChange(_StatusChangeBase):
    entity_type: Literal["quote"]
    old_value: QuoteStatus | None = None
    new_value: QuoteStatus


class InvoiceStatusChange(_StatusChangeBase):
    entity_type: Literal["invoice"]
    old_value: InvoiceStatus | None = None
    new_value: InvoiceStatus


class TaskStatusChange(_StatusChangeBase):
    entity_type: Literal["task"]
    old_value: TaskStatus | None = None
    new_value: TaskStatus


StatusChangePayload = Annotated[
    ClientStatusChange
    | ProjectStatusChange
    | QuoteStatusChange
    | InvoiceStatusChange
    | TaskStatusChange,
    Field(discriminator="entity_type"),
]

_payload_adapter: TypeAdapter[StatusChangePayload] = TypeAdapter(StatusChangePayload)


def parse_status_change(payload: dict[str, Any]) -> StatusChangePayload:
    """Validate a stored payload. Raises pydantic.ValidationError when malformed."""
    return _payload_adapter.validate_python(payload)


def build_status_change(
    entity_type: str,
    entity_id: str,
    old_status: str | None,
    new_status: str,
    metadata: CascadeMetadata | None = None,
) -> dict[str, Any]:
    """Validated payload in its stored (camelCase, JSON-ready) form."""
    model = _payload_adapter.validate_python(
        {
            "entityType": entity_type,
            "entityId": entity_id,
            "field": "status",
            "oldValue": old_status,
            "newValue": new_status,
            "metadata": metadata.model_dump(by_alias=True) if metadata else None,
        }
    )
    return model.model_dump(mode="json", by_alias=True)
