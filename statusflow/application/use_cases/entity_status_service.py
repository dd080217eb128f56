"""The canonical entity status mutation.

Patches the status of a client, project, quote, invoice or task and, when
the status actually changed, publishes entity.status_changed in the same
transaction. The mutation never waits on (or fails because of) the
automations that the event may start.
"""

from dataclasses import dataclass

from statusflow.domain.enums import EntityType, is_valid_status
from statusflow.domain.exceptions import (
    InvalidStatusValueException,
    ResourceNotFoundException,
    ValidationException,
)
from statusflow.infrastructure.persistence.repositories.entity_repo import EntityRepository
from statusflow.infrastructure.persistence.repositories.status_count_repo import (
    StatusCountRepository,
)
from statusflow.infrastructure.scheduling.jobs import JobContext
from statusflow.infrastructure.services.event_bus import EventBus
from statusflow.infrastructure.services.status_writer import apply_status


@dataclass(frozen=True)
class StatusUpdateResult:
    entity_type: str
    entity_id: str
    old_status: str | None
    new_status: str
    event_id: str | None


class EntityStatusService:
    def __init__(self, ctx: JobContext, bus: EventBus | None = None) -> None:
        self.ctx = ctx
        self.bus = bus or EventBus(ctx)
        self.entities = EntityRepository(ctx.db)
        self.counters = StatusCountRepository(ctx.db)

    async def update_status(
        self,
        org_id: str,
        entity_type: str,
        entity_id: str,
        new_status: str,
        source: str,
        correlation_id: str | None = None,
    ) -> StatusUpdateResult:
        if entity_type not in EntityType.values():
            raise ValidationException(f"Unknown entity type: {entity_type}", field="entity_type")
        if not is_valid_status(entity_type, new_status):
            error = InvalidStatusValueException(entity_type, new_status)
            raise ValidationException(error.message, field="status")

        entity = await self.entities.get_in_org(entity_type, entity_id, org_id)
        if entity is None:
            raise ResourceNotFoundException(entity_type, entity_id)

        patch = await apply_status(entity, entity_type, new_status, self.ctx.now(), self.counters)
        event_id = None
        if patch.changed:
            event_id = await self.bus.emit_status_change_event(
                org_id,
                entity_type,
                entity_id,
                patch.old_status,
                patch.new_status,
                source,
                correlation_id=correlation_id,
            )
        return StatusUpdateResult(
            entity_type=entity_type,
            entity_id=entity_id,
            old_status=patch.old_status,
            new_status=patch.new_status,
            event_id=event_id,
        )
