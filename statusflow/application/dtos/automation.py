"""DTOs for automation management."""

from dataclasses import dataclass
from typing import Any

from statusflow.domain.entities.automation import AutomationTrigger


@dataclass(frozen=True)
class AutomationCreate:
    """Input for creating an automation. nodes are stored node documents."""

    name: str
    trigger: AutomationTrigger
    nodes: list[dict[str, Any]]
    description: str | None = None
    is_active: bool = False


@dataclass(frozen=True)
class AutomationUpdate:
    """Partial update; None means "leave unchanged"."""

    name: str | None = None
    description: str | None = None
    trigger: AutomationTrigger | None = None
    nodes: list[dict[str, Any]] | None = None
    is_active: bool | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.name, self.description, self.trigger, self.nodes, self.is_active)
        )
