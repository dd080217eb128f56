"""Domain exceptions for statusflow.

Two families live here. API-facing errors (validation, not found,
permission) are raised to callers and mapped to HTTP responses in
statusflow.core.exception_handlers. Engine errors (target resolution,
status vocabulary, guards) are raised and caught inside the event bus
and executor; their messages end up in the execution audit log and are
never re-raised into the entity mutation that produced the event.
"""

from typing import Any


class StatusflowException(Exception):
    """Base exception for all statusflow errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error bodies."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(StatusflowException):
    """Raised when input validation fails (e.g. malformed automation definition)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthorizationException(StatusflowException):
    """Raised when a caller touches a resource of another organization."""

    def __init__(self, message: str = "Permission denied", resource: str | None = None) -> None:
        details = {"resource": resource} if resource else {}
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(StatusflowException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'automation', 'project').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class TargetNotFoundException(StatusflowException):
    """Soft failure: an action's target could not be resolved; the node is skipped."""

    def __init__(self, target_type: str, reason: str) -> None:
        super().__init__(
            f"Target {target_type} not resolved: {reason}",
            "TARGET_NOT_FOUND",
            {"target_type": target_type, "reason": reason},
        )


class InvalidStatusValueException(StatusflowException):
    """Hard failure: the action writes a status outside the target's vocabulary."""

    def __init__(self, entity_type: str, status: str) -> None:
        super().__init__(
            f'Invalid status "{status}" for {entity_type}',
            "INVALID_STATUS_VALUE",
            {"entity_type": entity_type, "status": status},
        )


class MissingAutomationException(StatusflowException):
    """Hard failure: the automation of a scheduled execution no longer exists."""

    def __init__(self, automation_id: str) -> None:
        super().__init__(
            "Automation not found",
            "AUTOMATION_NOT_FOUND",
            {"automation_id": automation_id},
        )


class MissingTriggerObjectException(StatusflowException):
    """Hard failure: the object that triggered an execution no longer exists."""

    def __init__(self, object_type: str, object_id: str) -> None:
        super().__init__(
            "Triggering object not found",
            "TRIGGER_OBJECT_NOT_FOUND",
            {"object_type": object_type, "object_id": object_id},
        )


class TransientDispatchException(StatusflowException):
    """Raised by a subscriber to request a bus-level retry of the event."""

    def __init__(self, event_type: str, reason: str) -> None:
        super().__init__(
            f"Dispatch of {event_type} failed: {reason}",
            "DISPATCH_FAILED",
            {"event_type": event_type},
        )


class LoopDetectedException(StatusflowException):
    """Soft: the automation is already part of the current cascade chain."""

    def __init__(self, automation_id: str, chain: list[str]) -> None:
        super().__init__(
            "Skipped: Automation loop detected",
            "LOOP_DETECTED",
            {"automation_id": automation_id, "execution_chain": list(chain)},
        )


class RecursionLimitExceededException(StatusflowException):
    """Soft: the cascade reached the maximum recursion depth; nothing is scheduled."""

    def __init__(self, depth: int, max_depth: int) -> None:
        super().__init__(
            f"Automation recursion limit reached (depth: {depth}, max: {max_depth})",
            "RECURSION_LIMIT_EXCEEDED",
            {"depth": depth, "max_depth": max_depth},
        )


class RateLimitExceededException(StatusflowException):
    """Soft: the organization used up its execution budget for the trailing window."""

    def __init__(self, org_id: str, count: int, limit: int) -> None:
        super().__init__(
            f"Automation rate limit reached: {count} executions in window (limit {limit})",
            "RATE_LIMIT_EXCEEDED",
            {"org_id": org_id, "count": count, "limit": limit},
        )


class NodeCycleDetectedException(StatusflowException):
    """Hard: a walk re-entered a node it already visited in the same execution."""

    def __init__(self, node_id: str) -> None:
        super().__init__(
            f"Node cycle detected at node {node_id}",
            "NODE_CYCLE_DETECTED",
            {"node_id": node_id},
        )


class InvalidEventTransitionException(StatusflowException):
    """Raised when the bus tries an event status move the lifecycle does not allow."""

    def __init__(self, event_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Event {event_id} cannot move from {current} to {target}",
            "INVALID_EVENT_TRANSITION",
            {"event_id": event_id, "current": current, "target": target},
        )
