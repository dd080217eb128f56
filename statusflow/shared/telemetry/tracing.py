"""Tracing helpers on top of the OpenTelemetry API.

Only the API package is used here; spans are no-ops until the host process
installs and configures an OpenTelemetry SDK.
"""

from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

_TRACER_NAME = "statusflow"

# Allowlist of kwarg names recorded as span attributes (case-insensitive).
# Payloads and trigger objects never go on spans.
_SAFE_SPAN_ATTR_KEYS = frozenset({
    "job", "org_id", "entity_type", "entity_id", "object_type", "object_id",
    "automation_id", "execution_id", "event_id", "correlation_id",
    "recursion_depth", "attempt", "limit", "batch_size", "older_than_days", "status",
})


def _set_safe_span_attrs(span: trace.Span, kwargs: dict[str, Any]) -> None:
    """Set span attributes from kwargs; only allowlisted keys are recorded."""
    for key, value in kwargs.items():
        if value is None or key.startswith("_"):
            continue
        if key.lower() in _SAFE_SPAN_ATTR_KEYS:
            span.set_attribute(f"arg.{key}", str(value))


def _mark(span: trace.Span, error: BaseException | None) -> None:
    if error is None:
        span.set_status(Status(StatusCode.OK))
    else:
        span.set_status(Status(StatusCode.ERROR, str(error)))
        span.record_exception(error)


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


class TracedOperation:
    """Async context manager that runs a block inside a named span."""

    def __init__(self, operation_name: str, attributes: dict[str, Any] | None = None) -> None:
        self.operation_name = operation_name
        self.attributes = attributes or {}
        self._cm: Any = None
        self.span: trace.Span | None = None

    async def __aenter__(self) -> "TracedOperation":
        tracer = trace.get_tracer(_TRACER_NAME)
        self._cm = tracer.start_as_current_span(self.operation_name)
        self.span = self._cm.__enter__()
        _set_safe_span_attrs(self.span, self.attributes)
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        if self.span is not None:
            _mark(self.span, exc_val)
        self._cm.__exit__(exc_type, exc_val, exc_tb)
