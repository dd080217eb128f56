"""Automation API schemas.

Request bodies accept camelCase (the stored node document keys) or
snake_case. Nodes are stored and returned in their camelCase document form.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from statusflow.domain.enums import (
    ActionTargetType,
    ActionType,
    ConditionOperator,
    EntityType,
    NodeType,
)


class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConditionSchema(_RequestModel):
    field: str = Field(..., min_length=1)
    operator: ConditionOperator
    value: Any = None


class ActionSchema(_RequestModel):
    target_type: ActionTargetType
    action_type: ActionType = ActionType.UPDATE_STATUS
    new_status: str = Field(..., min_length=1)


class NodeSchema(_RequestModel):
    id: str = Field(..., min_length=1, max_length=128)
    type: NodeType
    condition: ConditionSchema | None = None
    action: ActionSchema | None = None
    next_node_id: str | None = None
    else_node_id: str | None = None

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TriggerSchema(_RequestModel):
    object_type: EntityType
    from_status: str | None = None
    to_status: str = Field(..., min_length=1)


class AutomationCreateRequest(_RequestModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    trigger: TriggerSchema
    nodes: list[NodeSchema]
    is_active: bool = False


class AutomationUpdateRequest(_RequestModel):
    """Partial update."""

    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    trigger: TriggerSchema | None = None
    nodes: list[NodeSchema] | None = None
    is_active: bool | None = None


class TriggerResponse(BaseModel):
    object_type: str
    from_status: str | None
    to_status: str


class AutomationResponse(BaseModel):
    id: str
    org_id: str
    name: str
    description: str | None
    is_active: bool
    trigger: TriggerResponse
    nodes: list[dict[str, Any]]
    created_by: str | None
    last_triggered_at: datetime | None
    trigger_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, automation: Any) -> "AutomationResponse":
        return cls(
            id=automation.id,
            org_id=automation.org_id,
            name=automation.name,
            description=automation.description,
            is_active=automation.is_active,
            trigger=TriggerResponse(
                object_type=automation.trigger_object_type,
                from_status=automation.trigger_from_status,
                to_status=automation.trigger_to_status,
            ),
            nodes=list(automation.nodes or []),
            created_by=automation.created_by,
            last_triggered_at=automation.last_triggered_at,
            trigger_count=automation.trigger_count,
            created_at=automation.created_at,
            updated_at=automation.updated_at,
        )


class ExecutionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    org_id: str
    automation_id: str
    triggered_by: str
    triggered_at: datetime
    status: str
    nodes_executed: list[dict[str, Any]]
    execution_chain: list[str]
    recursion_depth: int
    completed_at: datetime | None
    error: str | None
