"""Tests for the domain event lifecycle rules."""

import pytest

from statusflow.domain.entities.domain_event import (
    ensure_event_transition,
    is_valid_event_transition,
)
from statusflow.domain.exceptions import InvalidEventTransitionException


@pytest.mark.parametrize(
    ("current", "target"),
    [
        ("pending", "processing"),
        ("processing", "completed"),
        ("processing", "failed"),
        ("processing", "pending"),
        ("failed", "pending"),
    ],
)
def test_allowed_transitions(current: str, target: str) -> None:
    assert is_valid_event_transition(current, target) is True


@pytest.mark.parametrize(
    ("current", "target"),
    [
        ("pending", "completed"),
        ("pending", "failed"),
        ("completed", "pending"),
        ("completed", "processing"),
        ("failed", "processing"),
        ("failed", "completed"),
        ("unknown", "pending"),
        ("pending", "unknown"),
    ],
)
def test_rejected_transitions(current: str, target: str) -> None:
    assert is_valid_event_transition(current, target) is False


def test_ensure_raises_on_invalid_transition() -> None:
    with pytest.raises(InvalidEventTransitionException) as exc_info:
        ensure_event_transition("evt-1", "completed", "pending")
    assert exc_info.value.details == {
        "event_id": "evt-1",
        "current": "completed",
        "target": "pending",
    }


def test_ensure_passes_on_valid_transition() -> None:
    ensure_event_transition("evt-1", "pending", "processing")
