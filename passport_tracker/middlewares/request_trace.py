import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from passport_tracker.core.logging import get_audit_logger


class RequestTraceMiddleware:
    """Emit one audit-stream line per authenticated request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self.logger = get_audit_logger()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status_holder: dict[str, int] = {}

        async def send_with_status(message: Message) -> None:
            if message["type"] == "http.response.start":
                status_holder["status"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            self._emit(scope, status_holder.get("status", 500), started)

    def _emit(self, scope: Scope, status_code: int, started: float) -> None:
        state = scope.get("state") or {}
        actor_id = state.get("actor_id")
        if not actor_id:
            return
        client = scope.get("client")
        self.logger.info(
            "%s %s -> %s",
            scope.get("method"),
            scope.get("path"),
            status_code,
            extra={
                "trace": {
                    "actor_id": actor_id,
                    "method": scope.get("method"),
                    "path": scope.get("path"),
                    "status": status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "client": client[0] if client else None,
                }
            },
        )
