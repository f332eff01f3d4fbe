"""Request timing for error responses."""
import time

from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send


class RequestTimingMiddleware:
    """Stamp each HTTP request with its start time in request state."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            scope.setdefault("state", {})["started_at"] = time.perf_counter()
        await self.app(scope, receive, send)


def elapsed_ms(request: Request) -> int:
    """Milliseconds since the request started, or 0 if it was never stamped."""
    started_at = getattr(request.state, "started_at", None)
    if started_at is None:
        return 0
    return int((time.perf_counter() - started_at) * 1000)
