"""Results returned by the event bus and the automation executor."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TriggerOutcome:
    """Result of evaluating one status change against the org's automations."""

    triggered: int = 0
    skipped: int = 0
    recursion_limited: bool = False
    rate_limited: bool = False


@dataclass(frozen=True)
class ProcessEventsResult:
    processed: int = 0
    succeeded: int = 0
    retried: int = 0
    failed: int = 0
    has_more: bool = False


@dataclass(frozen=True)
class NodeOutcome:
    """One entry of WorkflowExecution.nodes_executed."""

    node_id: str
    result: str
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"nodeId": self.node_id, "result": self.result}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ExecutionResult:
    execution_id: str
    status: str
    nodes_executed: list[NodeOutcome] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class CleanupResult:
    deleted: int
    has_more: bool


@dataclass(frozen=True)
class EventStats:
    total: int
    pending: int
    processing: int
    completed: int
    failed: int
    by_type: dict[str, int]


@dataclass(frozen=True)
class ExecutionWindowStats:
    total: int
    completed: int
    failed: int
    skipped: int


@dataclass(frozen=True)
class ExecutionStats:
    last_24h: ExecutionWindowStats
    last_week: ExecutionWindowStats
