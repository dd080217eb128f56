"""Correlation ID middleware (raw ASGI).

Echoes X-Correlation-ID on the response, generating one when the client
sent none. Only a client-supplied id is exposed as
scope["state"]["client_correlation_id"]; status changes made by that
request carry it into their events, otherwise the event bus builds its
own per-entity id.
"""

import uuid
from typing import Callable


def _get_header(scope: dict, name: str) -> str | None:
    """Return first header value for name (case-insensitive)."""
    want = name.lower().encode()
    for k, v in scope.get("headers", []):
        if k.lower() == want:
            return v.decode("utf-8", errors="replace")
    return None


def CorrelationIDMiddleware(app: Callable, header_name: str = "X-Correlation-ID") -> Callable:
    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        supplied = _get_header(scope, header_name)
        correlation_id = supplied or str(uuid.uuid4())
        state = scope.setdefault("state", {})
        state["correlation_id"] = correlation_id
        if supplied:
            state["client_correlation_id"] = supplied

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((header_name.encode(), correlation_id.encode()))
                message["headers"] = headers
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
