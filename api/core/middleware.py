"""ASGI middleware: security headers and per-request canonical log lines."""

from __future__ import annotations

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.logger import bind_contextvars, clear_contextvars, get_logger
from core.wide_event import clear_wide_event, get_wide_event, init_wide_event

logger = get_logger("core.request")

SERVICE_NAME = "notice-service"

# Requests slower than this are always logged at WARNING
SLOW_REQUEST_THRESHOLD_MS = 1000


class SecurityHeadersMiddleware:
    """Adds security headers (HSTS, X-Frame-Options, etc.)."""

    SECURITY_HEADERS: list[tuple[bytes, bytes]] = [
        (b"x-content-type-options", b"nosniff"),
        (b"x-frame-options", b"DENY"),
        (b"referrer-policy", b"strict-origin-when-cross-origin"),
        (b"content-security-policy", b"default-src 'none'; frame-ancestors 'none'"),
        (b"strict-transport-security", b"max-age=31536000; includeSubDomains"),
    ]

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message.get("type") == "http.response.start":
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                headers.extend(self.SECURITY_HEADERS)
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)


class RequestTimingMiddleware:
    """Times each request and emits its wide event at request end.

    One log line per request (canonical log line) with method, route,
    status, duration and whatever services added along the way.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        path = scope.get("path", "")
        client = scope.get("client")
        request_id = str(uuid.uuid4())

        wide_event = init_wide_event()
        wide_event["service_name"] = SERVICE_NAME
        wide_event["request_id"] = request_id
        wide_event["http_method"] = scope.get("method", "UNKNOWN")
        wide_event["http_path"] = path
        wide_event["http_client_ip"] = client[0] if client else "unknown"

        # Every log line emitted while handling this request carries its id
        bind_contextvars(request_id=request_id)

        response_status: int | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal response_status

            if message.get("type") == "http.response.start":
                response_status = int(message.get("status", 0))
                headers: list[tuple[bytes, bytes]] = list(message.get("headers", []))
                duration_ms = (time.perf_counter() - start_time) * 1000
                headers.append(
                    (b"x-request-duration-ms", f"{duration_ms:.2f}".encode())
                )
                headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = headers

            elif message.get("type") == "http.response.body" and not message.get(
                "more_body", False
            ):
                _emit(scope, path, response_status, start_time)

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            clear_wide_event()
            clear_contextvars()


def _emit(scope: Scope, path: str, status_code: int | None, start_time: float) -> None:
    duration_ms = (time.perf_counter() - start_time) * 1000
    route = scope.get("route")

    event = get_wide_event()
    event["http_route"] = getattr(route, "path", None) or path
    event["http_status_code"] = status_code
    event["duration_ms"] = round(duration_ms, 2)
    event["outcome"] = "success" if status_code and status_code < 400 else "error"

    if status_code is not None and status_code >= 500:
        logger.error("request.completed", **event)
    elif duration_ms > SLOW_REQUEST_THRESHOLD_MS:
        logger.warning("request.completed", **event)
    else:
        logger.info("request.completed", **event)
