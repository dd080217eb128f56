"""Tests for domain exceptions (error_code, message, details)."""

from statusflow.domain.exceptions import (
    AuthorizationException,
    InvalidEventTransitionException,
    InvalidStatusValueException,
    LoopDetectedException,
    MissingAutomationException,
    MissingTriggerObjectException,
    NodeCycleDetectedException,
    RateLimitExceededException,
    RecursionLimitExceededException,
    ResourceNotFoundException,
    StatusflowException,
    TargetNotFoundException,
    ValidationException,
)


def test_statusflow_exception_default_error_code() -> None:
    """Base StatusflowException uses class name as error_code when not provided."""
    exc = StatusflowException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "StatusflowException"
    assert exc.details == {}
    assert str(exc) == "Something failed"


def test_to_dict_shape() -> None:
    exc = StatusflowException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {"error": "CUSTOM", "message": "Oops", "details": {"key": "value"}}


def test_validation_exception_field() -> None:
    exc = ValidationException("Bad name", field="name")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "name"}
    assert ValidationException("Bad").details == {}


def test_authorization_exception_defaults() -> None:
    exc = AuthorizationException()
    assert exc.message == "Permission denied"
    assert exc.error_code == "PERMISSION_DENIED"


def test_resource_not_found() -> None:
    exc = ResourceNotFoundException("automation", "a1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.message == "automation not found: a1"
    assert exc.details == {"resource_type": "automation", "resource_id": "a1"}


def test_audit_messages() -> None:
    """Messages recorded on execution rows."""
    assert InvalidStatusValueException("project", "bogus").message == (
        'Invalid status "bogus" for project'
    )
    assert MissingAutomationException("a1").message == "Automation not found"
    assert MissingTriggerObjectException("task", "t1").message == "Triggering object not found"
    assert LoopDetectedException("a1", ["a1"]).message == "Skipped: Automation loop detected"
    assert NodeCycleDetectedException("n1").message == "Node cycle detected at node n1"


def test_guard_exceptions_carry_details() -> None:
    recursion = RecursionLimitExceededException(5, 5)
    assert recursion.details == {"depth": 5, "max_depth": 5}
    rate = RateLimitExceededException("org-1", 100, 100)
    assert rate.error_code == "RATE_LIMIT_EXCEEDED"
    assert rate.details["limit"] == 100
    target = TargetNotFoundException("client", "no client reference")
    assert target.error_code == "TARGET_NOT_FOUND"
    loop = LoopDetectedException("a2", ["a1", "a2"])
    assert loop.details["execution_chain"] == ["a1", "a2"]


def test_invalid_event_transition() -> None:
    exc = InvalidEventTransitionException("e1", "completed", "processing")
    assert exc.error_code == "INVALID_EVENT_TRANSITION"
    assert "completed" in exc.message and "processing" in exc.message
