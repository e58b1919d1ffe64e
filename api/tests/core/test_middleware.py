"""Unit tests for core.middleware module.

Tests ASGI middleware:
- SecurityHeadersMiddleware adds security headers to HTTP responses
- RequestTimingMiddleware adds timing headers and emits one log line
- Both skip non-HTTP scopes
"""

from unittest.mock import patch

import pytest
import structlog

from core.middleware import RequestTimingMiddleware, SecurityHeadersMiddleware
from core.wide_event import get_wide_event, set_wide_event_fields


async def _noop_receive():
    return {"type": "http.request", "body": b""}


async def _make_app_that_sends_response(scope, receive, send):
    """Simulate an ASGI app that sends a response."""
    set_wide_event_fields(notice_action="create")
    await send({"type": "http.response.start", "status": 201, "headers": []})
    await send({"type": "http.response.body", "body": b"OK"})


@pytest.mark.unit
class TestSecurityHeadersMiddleware:
    """Test SecurityHeadersMiddleware adds expected headers."""

    async def test_adds_security_headers(self):
        middleware = SecurityHeadersMiddleware(_make_app_that_sends_response)
        scope = {"type": "http", "path": "/api/notices"}
        sent_messages = []

        async def mock_send(message):
            sent_messages.append(message)

        await middleware(scope, _noop_receive, mock_send)

        header_names = {h[0] for h in sent_messages[0]["headers"]}
        assert b"x-content-type-options" in header_names
        assert b"x-frame-options" in header_names
        assert b"strict-transport-security" in header_names

    async def test_skips_non_http_scope(self):
        called = []

        async def inner(scope, receive, send):
            called.append(scope["type"])

        middleware = SecurityHeadersMiddleware(inner)
        await middleware({"type": "lifespan"}, _noop_receive, None)

        assert called == ["lifespan"]


@pytest.mark.unit
class TestRequestTimingMiddleware:
    """Test RequestTimingMiddleware headers and canonical log line."""

    async def test_adds_timing_headers_and_logs_once(self):
        middleware = RequestTimingMiddleware(_make_app_that_sends_response)
        scope = {
            "type": "http",
            "method": "POST",
            "path": "/api/notices",
            "client": ("10.0.0.1", 1234),
        }
        sent_messages = []

        async def mock_send(message):
            sent_messages.append(message)

        with patch("core.middleware.logger") as mock_logger:
            await middleware(scope, _noop_receive, mock_send)

        header_names = {h[0] for h in sent_messages[0]["headers"]}
        assert b"x-request-duration-ms" in header_names
        assert b"x-request-id" in header_names

        mock_logger.info.assert_called_once()
        event_name = mock_logger.info.call_args.args[0]
        fields = mock_logger.info.call_args.kwargs
        assert event_name == "request.completed"
        assert fields["http_status_code"] == 201
        assert fields["http_method"] == "POST"
        assert fields["notice_action"] == "create"
        assert fields["outcome"] == "success"

    async def test_binds_request_id_for_log_lines(self):
        seen = {}

        async def app(scope, receive, send):
            seen.update(structlog.contextvars.get_contextvars())
            await send({"type": "http.response.start", "status": 200, "headers": []})
            await send({"type": "http.response.body", "body": b"OK"})

        middleware = RequestTimingMiddleware(app)
        scope = {"type": "http", "method": "GET", "path": "/api/notices"}
        sent_messages = []

        async def mock_send(message):
            sent_messages.append(message)

        with patch("core.middleware.logger"):
            await middleware(scope, _noop_receive, mock_send)

        headers = dict(sent_messages[0]["headers"])
        assert seen["request_id"] == headers[b"x-request-id"].decode()
        assert structlog.contextvars.get_contextvars() == {}

    async def test_clears_wide_event_afterwards(self):
        middleware = RequestTimingMiddleware(_make_app_that_sends_response)
        scope = {"type": "http", "method": "GET", "path": "/api/notices"}

        async def mock_send(message):
            pass

        with patch("core.middleware.logger"):
            await middleware(scope, _noop_receive, mock_send)

        assert get_wide_event() == {}
