"""Domain event lifecycle rules.

pending -> processing -> completed | failed, with processing -> pending for
a scheduled retry and failed -> pending only through an explicit replay.
"""

from statusflow.domain.exceptions import InvalidEventTransitionException
from statusflow.shared.enums import DomainEventStatus

_ALLOWED_TRANSITIONS: dict[DomainEventStatus, frozenset[DomainEventStatus]] = {
    DomainEventStatus.PENDING: frozenset({DomainEventStatus.PROCESSING}),
    DomainEventStatus.PROCESSING: frozenset(
        {
            DomainEventStatus.COMPLETED,
            DomainEventStatus.FAILED,
            DomainEventStatus.PENDING,
        }
    ),
    DomainEventStatus.FAILED: frozenset({DomainEventStatus.PENDING}),
    DomainEventStatus.COMPLETED: frozenset(),
}


def is_valid_event_transition(current: str, target: str) -> bool:
    """Return whether an event may move from current to target status."""
    try:
        allowed = _ALLOWED_TRANSITIONS[DomainEventStatus(current)]
        return DomainEventStatus(target) in allowed
    except ValueError:
        return False


def ensure_event_transition(event_id: str, current: str, target: str) -> None:
    """Raise InvalidEventTransitionException unless current -> target is allowed."""
    if not is_valid_event_transition(current, target):
        raise InvalidEventTransitionException(event_id, current, target)
