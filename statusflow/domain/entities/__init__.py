"""Domain entities (persistence-independent)."""

from statusflow.domain.entities.automation import (
    ActionSpec,
    AutomationEntity,
    AutomationNode,
    AutomationTrigger,
    ConditionSpec,
)
from statusflow.domain.entities.domain_event import (
    ensure_event_transition,
    is_valid_event_transition,
)

__all__ = [
    "ActionSpec",
    "AutomationEntity",
    "AutomationNode",
    "AutomationTrigger",
    "ConditionSpec",
    "ensure_event_transition",
    "is_valid_event_transition",
]
