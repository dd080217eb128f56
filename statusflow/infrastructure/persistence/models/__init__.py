"""Persistence models: ORM entities and mixins."""

from statusflow.infrastructure.persistence.models.automation import (
    WorkflowAutomation,
    WorkflowExecution,
)
from statusflow.infrastructure.persistence.models.client import Client
from statusflow.infrastructure.persistence.models.domain_event import DomainEvent
from statusflow.infrastructure.persistence.models.entity_status_count import (
    EntityStatusCount,
)
from statusflow.infrastructure.persistence.models.invoice import Invoice
from statusflow.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationMixin,
    OrgScopedModel,
    TimestampMixin,
)
from statusflow.infrastructure.persistence.models.organization import Organization
from statusflow.infrastructure.persistence.models.project import Project
from statusflow.infrastructure.persistence.models.quote import Quote
from statusflow.infrastructure.persistence.models.task import Task

__all__ = [
    "Client",
    "CuidMixin",
    "DomainEvent",
    "EntityStatusCount",
    "Invoice",
    "OrgScopedModel",
    "Organization",
    "OrganizationMixin",
    "Project",
    "Quote",
    "Task",
    "TimestampMixin",
    "WorkflowAutomation",
    "WorkflowExecution",
]
