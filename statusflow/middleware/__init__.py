"""ASGI middleware."""

from statusflow.middleware.correlation_id import CorrelationIDMiddleware

__all__ = ["CorrelationIDMiddleware"]
