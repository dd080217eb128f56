"""Shared telemetry: logging setup and tracing helpers."""

from statusflow.shared.telemetry.logging import get_logger, setup_logging
from statusflow.shared.telemetry.tracing import TracedOperation, add_span_attributes

__all__ = [
    "setup_logging",
    "get_logger",
    "add_span_attributes",
    "TracedOperation",
]
