"""Automation management: create, update, toggle, delete, list, executions."""

from dataclasses import replace

from statusflow.application.dtos.automation import AutomationCreate, AutomationUpdate
from statusflow.application.services.automation_validator import (
    validate_nodes,
    validate_trigger,
)
from statusflow.domain.entities.automation import AutomationTrigger
from statusflow.domain.exceptions import (
    AuthorizationException,
    ResourceNotFoundException,
    ValidationException,
)
from statusflow.infrastructure.persistence.models.automation import (
    WorkflowAutomation,
    WorkflowExecution,
)
from statusflow.infrastructure.persistence.repositories.automation_repo import (
    AutomationRepository,
)
from statusflow.infrastructure.persistence.repositories.execution_repo import (
    ExecutionRepository,
)
from statusflow.infrastructure.scheduling.jobs import JobContext
from statusflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _clean_trigger(trigger: AutomationTrigger) -> AutomationTrigger:
    return replace(
        trigger,
        object_type=trigger.object_type.strip(),
        to_status=trigger.to_status.strip(),
        from_status=_clean(trigger.from_status),
    )


class AutomationService:
    """Organization-scoped automation CRUD. Writes run in the caller's transaction."""

    def __init__(self, ctx: JobContext) -> None:
        self.ctx = ctx
        self.automations = AutomationRepository(ctx.db)
        self.executions = ExecutionRepository(ctx.db)

    async def get(self, org_id: str, automation_id: str) -> WorkflowAutomation:
        """Return the automation or raise (not found / other organization)."""
        automation = await self.automations.get_by_id(automation_id)
        if automation is None:
            raise ResourceNotFoundException("automation", automation_id)
        if automation.org_id != org_id:
            raise AuthorizationException(
                "Automation does not belong to your organization", resource="automation"
            )
        return automation

    async def list_automations(self, org_id: str, active_only: bool = False) -> list[WorkflowAutomation]:
        return await self.automations.list_by_org(org_id, active_only=active_only)

    async def create(
        self, org_id: str, created_by: str | None, data: AutomationCreate
    ) -> WorkflowAutomation:
        name = _clean(data.name)
        if not name:
            raise ValidationException("Automation name is required", field="name")
        trigger = _clean_trigger(data.trigger)
        validate_trigger(trigger.object_type, trigger.to_status)
        validate_nodes(data.nodes)

        automation = await self.automations.create(
            WorkflowAutomation(
                org_id=org_id,
                name=name,
                description=_clean(data.description),
                is_active=data.is_active,
                trigger_object_type=trigger.object_type,
                trigger_from_status=trigger.from_status,
                trigger_to_status=trigger.to_status,
                nodes=[dict(node) for node in data.nodes],
                created_by=created_by,
                trigger_count=0,
            )
        )
        logger.info("Created automation %s (%s) in org %s", automation.id, name, org_id)
        return automation

    async def update(
        self, org_id: str, automation_id: str, data: AutomationUpdate
    ) -> WorkflowAutomation:
        if data.is_empty():
            raise ValidationException("No valid updates provided")
        automation = await self.get(org_id, automation_id)

        if data.name is not None:
            name = _clean(data.name)
            if not name:
                raise ValidationException("Automation name is required", field="name")
            automation.name = name
        if data.description is not None:
            automation.description = _clean(data.description)
        if data.trigger is not None:
            trigger = _clean_trigger(data.trigger)
            validate_trigger(trigger.object_type, trigger.to_status)
            automation.trigger_object_type = trigger.object_type
            automation.trigger_from_status = trigger.from_status
            automation.trigger_to_status = trigger.to_status
        if data.nodes is not None:
            validate_nodes(data.nodes)
            automation.nodes = [dict(node) for node in data.nodes]
        if data.is_active is not None:
            automation.is_active = data.is_active
        automation.updated_at = self.ctx.now()
        return await self.automations.update(automation)

    async def toggle_active(self, org_id: str, automation_id: str) -> WorkflowAutomation:
        automation = await self.get(org_id, automation_id)
        automation.is_active = not automation.is_active
        automation.updated_at = self.ctx.now()
        logger.info(
            "Automation %s %s", automation.id, "activated" if automation.is_active else "deactivated"
        )
        return await self.automations.update(automation)

    async def delete(self, org_id: str, automation_id: str) -> None:
        """Delete the automation and its execution history."""
        automation = await self.get(org_id, automation_id)
        removed = await self.executions.delete_for_automation(automation.id)
        await self.automations.delete(automation)
        logger.info("Deleted automation %s (%d executions)", automation_id, removed)

    async def get_executions(
        self, org_id: str, automation_id: str, limit: int = 50
    ) -> list[WorkflowExecution]:
        """Newest first."""
        await self.get(org_id, automation_id)
        return await self.executions.list_for_automation(automation_id, limit)
