"""Automation management API: thin routes delegating to AutomationService."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from statusflow.api.v1.dependencies import OrgId, get_automation_service, get_user_id
from statusflow.application.dtos.automation import AutomationCreate, AutomationUpdate
from statusflow.application.use_cases.automation_service import AutomationService
from statusflow.domain.entities.automation import AutomationTrigger
from statusflow.schemas.automation import (
    AutomationCreateRequest,
    AutomationResponse,
    AutomationUpdateRequest,
    ExecutionResponse,
    TriggerSchema,
)

router = APIRouter()

Service = Annotated[AutomationService, Depends(get_automation_service)]


def _trigger(schema: TriggerSchema) -> AutomationTrigger:
    return AutomationTrigger(
        object_type=schema.object_type.value,
        from_status=schema.from_status,
        to_status=schema.to_status,
    )


@router.post("", response_model=AutomationResponse, status_code=201)
async def create_automation(
    body: AutomationCreateRequest,
    org_id: OrgId,
    service: Service,
    user_id: Annotated[str | None, Depends(get_user_id)] = None,
):
    automation = await service.create(
        org_id,
        user_id,
        AutomationCreate(
            name=body.name,
            description=body.description,
            trigger=_trigger(body.trigger),
            nodes=[node.to_document() for node in body.nodes],
            is_active=body.is_active,
        ),
    )
    return AutomationResponse.from_model(automation)


@router.get("", response_model=list[AutomationResponse])
async def list_automations(
    org_id: OrgId,
    service: Service,
    active_only: bool = Query(False),
):
    automations = await service.list_automations(org_id, active_only=active_only)
    return [AutomationResponse.from_model(a) for a in automations]


@router.get("/{automation_id}", response_model=AutomationResponse)
async def get_automation(automation_id: str, org_id: OrgId, service: Service):
    return AutomationResponse.from_model(await service.get(org_id, automation_id))


@router.patch("/{automation_id}", response_model=AutomationResponse)
async def update_automation(
    automation_id: str,
    body: AutomationUpdateRequest,
    org_id: OrgId,
    service: Service,
):
    automation = await service.update(
        org_id,
        automation_id,
        AutomationUpdate(
            name=body.name,
            description=body.description,
            trigger=_trigger(body.trigger) if body.trigger is not None else None,
            nodes=(
                [node.to_document() for node in body.nodes] if body.nodes is not None else None
            ),
            is_active=body.is_active,
        ),
    )
    return AutomationResponse.from_model(automation)


@router.post("/{automation_id}/toggle", response_model=AutomationResponse)
async def toggle_automation(automation_id: str, org_id: OrgId, service: Service):
    return AutomationResponse.from_model(await service.toggle_active(org_id, automation_id))


@router.delete("/{automation_id}", status_code=204)
async def delete_automation(automation_id: str, org_id: OrgId, service: Service) -> Response:
    await service.delete(org_id, automation_id)
    return Response(status_code=204)


@router.get("/{automation_id}/executions", response_model=list[ExecutionResponse])
async def get_automation_executions(
    automation_id: str,
    org_id: OrgId,
    service: Service,
    limit: int = Query(50, ge=1, le=500),
):
    """Execution history for an automation, newest first."""
    executions = await service.get_executions(org_id, automation_id, limit)
    return [ExecutionResponse.model_validate(e) for e in executions]
