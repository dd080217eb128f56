"""Domain enumerations for statusflow.

Entity types, the per-entity status vocabularies an automation may write,
and the node / operator / target kinds of the automation graph.
"""

from enum import Enum


class _ValuesEnum(str, Enum):
    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class EntityType(_ValuesEnum):
    """Business object kinds that emit status changes and can be automation targets."""

    CLIENT = "client"
    PROJECT = "project"
    QUOTE = "quote"
    INVOICE = "invoice"
    TASK = "task"


class ClientStatus(_ValuesEnum):
    LEAD = "lead"
    PROSPECT = "prospect"
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class ProjectStatus(_ValuesEnum):
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class QuoteStatus(_ValuesEnum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    DECLINED = "declined"
    EXPIRED = "expired"


class InvoiceStatus(_ValuesEnum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class TaskStatus(_ValuesEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


STATUS_VOCABULARY: dict[EntityType, type[_ValuesEnum]] = {
    EntityType.CLIENT: ClientStatus,
    EntityType.PROJECT: ProjectStatus,
    EntityType.QUOTE: QuoteStatus,
    EntityType.INVOICE: InvoiceStatus,
    EntityType.TASK: TaskStatus,
}


def is_valid_status(entity_type: EntityType | str, status: str) -> bool:
    """Return whether status belongs to the vocabulary of entity_type."""
    vocabulary = STATUS_VOCABULARY.get(EntityType(entity_type))
    return vocabulary is not None and status in vocabulary.values()


# (entity type, terminal status) -> timestamp column stamped when a status
# change first reaches that value.
STATUS_STAMP_FIELDS: dict[tuple[EntityType, str], str] = {
    (EntityType.PROJECT, ProjectStatus.COMPLETED.value): "completed_at",
    (EntityType.TASK, TaskStatus.COMPLETED.value): "completed_at",
    (EntityType.QUOTE, QuoteStatus.APPROVED.value): "approved_at",
    (EntityType.INVOICE, InvoiceStatus.PAID.value): "paid_at",
    (EntityType.CLIENT, ClientStatus.ARCHIVED.value): "archived_at",
}

# Entity types whose per-status counters are kept in entity_status_count.
AGGREGATED_ENTITY_TYPES = frozenset(
    {EntityType.PROJECT, EntityType.QUOTE, EntityType.INVOICE}
)


class NodeType(_ValuesEnum):
    CONDITION = "condition"
    ACTION = "action"


class ConditionOperator(_ValuesEnum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    EXISTS = "exists"


class ActionTargetType(_ValuesEnum):
    """Which object an action node writes to, relative to the triggering object."""

    SELF = "self"
    PROJECT = "project"
    CLIENT = "client"
    QUOTE = "quote"
    INVOICE = "invoice"


class ActionType(_ValuesEnum):
    UPDATE_STATUS = "update_status"
