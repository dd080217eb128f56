"""Applies a status change to a business entity row.

Shared by the executor (automation actions) and EntityStatusService (direct
mutations) so both stamp timestamps and move aggregates the same way.
"""

from dataclasses import dataclass
from datetime import datetime

from statusflow.domain.enums import AGGREGATED_ENTITY_TYPES, STATUS_STAMP_FIELDS, EntityType
from statusflow.infrastructure.persistence.repositories.entity_repo import StatusEntity
from statusflow.infrastructure.persistence.repositories.status_count_repo import (
    StatusCountRepository,
)


@dataclass(frozen=True)
class StatusPatch:
    entity_type: EntityType
    entity_id: str
    old_status: str | None
    new_status: str

    @property
    def changed(self) -> bool:
        return self.old_status != self.new_status


async def apply_status(
    entity: StatusEntity,
    entity_type: EntityType | str,
    new_status: str,
    now: datetime,
    counters: StatusCountRepository,
) -> StatusPatch:
    """Set entity.status, stamp the matching timestamp, move aggregate counters.

    The stamp column (completed_at, approved_at, paid_at, archived_at) is
    only written when the entity was not already in that status.
    """
    entity_type = EntityType(entity_type)
    old_status = entity.status
    entity.status = new_status
    stamp_field = STATUS_STAMP_FIELDS.get((entity_type, new_status))
    if stamp_field is not None and old_status != new_status:
        setattr(entity, stamp_field, now)
    if entity_type in AGGREGATED_ENTITY_TYPES and old_status != new_status:
        await counters.move(entity.org_id, entity_type.value, old_status, new_status)
    await counters.db.flush()
    return StatusPatch(
        entity_type=entity_type,
        entity_id=entity.id,
        old_status=old_status,
        new_status=new_status,
    )
