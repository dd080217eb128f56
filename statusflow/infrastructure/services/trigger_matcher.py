"""Trigger matcher: which active automations does a status change activate?"""

from statusflow.domain.entities.automation import AutomationEntity, AutomationTrigger
from statusflow.infrastructure.persistence.models.automation import WorkflowAutomation
from statusflow.infrastructure.persistence.repositories.automation_repo import (
    AutomationRepository,
)


def to_entity(row: WorkflowAutomation) -> AutomationEntity:
    return AutomationEntity.from_documents(
        id=row.id,
        org_id=row.org_id,
        name=row.name,
        is_active=row.is_active,
        trigger=AutomationTrigger(
            object_type=row.trigger_object_type,
            from_status=row.trigger_from_status,
            to_status=row.trigger_to_status,
        ),
        nodes=row.nodes or [],
    )


async def find_matching_automations(
    automations: AutomationRepository,
    org_id: str,
    object_type: str,
    from_status: str | None,
    to_status: str,
) -> list[AutomationEntity]:
    """Active automations of the org whose trigger matches. No side effects."""
    rows = await automations.find_matching(org_id, object_type, from_status, to_status)
    matched = [to_entity(row) for row in rows]
    return [a for a in matched if a.trigger.matches(object_type, from_status, to_status)]
