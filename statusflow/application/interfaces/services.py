"""Service interfaces (ports) for the application layer."""

from __future__ import annotations

from typing import Protocol


class IStatusChangeEmitter(Protocol):
    """What an entity mutation needs from the event bus."""

    async def emit_status_change_event(
        self,
        org_id: str,
        entity_type: str,
        entity_id: str,
        old_status: str | None,
        new_status: str,
        source: str,
        correlation_id: str | None = None,
    ) -> str:
        """Record an entity.status_changed event and schedule processing; return its id."""
        ...


class IStatusAggregates(Protocol):
    """Per-status counters kept for some entity types."""

    async def move(
        self, org_id: str, entity_type: str, old_status: str | None, new_status: str
    ) -> None: ...
