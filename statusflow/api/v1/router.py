"""API v1 router aggregation."""

from fastapi import APIRouter

from statusflow.api.v1.endpoints import automations, entities, health, operations

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(automations.router, prefix="/automations", tags=["automations"])
api_router.include_router(entities.router, prefix="/entities", tags=["entities"])
api_router.include_router(operations.router, prefix="/operations", tags=["operations"])
