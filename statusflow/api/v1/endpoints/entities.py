"""Entity status API: the canonical status mutation for business objects."""

from typing import Annotated

from fastapi import APIRouter, Depends

from statusflow.api.v1.dependencies import (
    OrgId,
    get_client_correlation_id,
    get_entity_status_service,
)
from statusflow.application.use_cases.entity_status_service import EntityStatusService
from statusflow.schemas.entity import StatusUpdateRequest, StatusUpdateResponse

router = APIRouter()


@router.patch("/{entity_type}/{entity_id}/status", response_model=StatusUpdateResponse)
async def update_entity_status(
    entity_type: str,
    entity_id: str,
    body: StatusUpdateRequest,
    org_id: OrgId,
    service: Annotated[EntityStatusService, Depends(get_entity_status_service)],
    correlation_id: Annotated[str | None, Depends(get_client_correlation_id)] = None,
):
    """Set an entity's status. Automations it triggers run after the response."""
    result = await service.update_status(
        org_id,
        entity_type,
        entity_id,
        body.status,
        source=f"api.entities.{entity_type}",
        correlation_id=correlation_id,
    )
    return StatusUpdateResponse(
        entity_type=result.entity_type,
        entity_id=result.entity_id,
        old_status=result.old_status,
        new_status=result.new_status,
        changed=result.old_status != result.new_status,
        event_id=result.event_id,
    )
