"""Shared enumerations for statusflow.

Cross-cutting enums used by application and infrastructure (event bus
state, execution audit). Business vocabularies (entity types, per-entity
statuses, node and operator kinds) live in statusflow.domain.enums.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class DomainEventStatus(_ValuesMixin, str, Enum):
    """Processing state of a domain event in the event store."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class EventType(_ValuesMixin, str, Enum):
    """Domain event types routed by the event bus."""

    ENTITY_STATUS_CHANGED = "entity.status_changed"
    AUTOMATION_TRIGGERED = "automation.triggered"
    AUTOMATION_COMPLETED = "automation.completed"
    AUTOMATION_FAILED = "automation.failed"


class ExecutionStatus(_ValuesMixin, str, Enum):
    """Workflow execution lifecycle status."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class NodeResult(_ValuesMixin, str, Enum):
    """Outcome recorded for a single node in WorkflowExecution.nodes_executed."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"
