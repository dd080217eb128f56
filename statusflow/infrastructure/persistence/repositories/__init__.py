"""Repositories: data access per aggregate."""

from statusflow.infrastructure.persistence.repositories.automation_repo import (
    AutomationRepository,
)
from statusflow.infrastructure.persistence.repositories.base import BaseRepository
from statusflow.infrastructure.persistence.repositories.domain_event_repo import (
    DomainEventRepository,
)
from statusflow.infrastructure.persistence.repositories.entity_repo import (
    ENTITY_MODELS,
    EntityRepository,
    snapshot,
)
from statusflow.infrastructure.persistence.repositories.execution_repo import (
    ExecutionRepository,
)
from statusflow.infrastructure.persistence.repositories.status_count_repo import (
    StatusCountRepository,
)

__all__ = [
    "AutomationRepository",
    "BaseRepository",
    "DomainEventRepository",
    "ENTITY_MODELS",
    "EntityRepository",
    "ExecutionRepository",
    "StatusCountRepository",
    "snapshot",
]
