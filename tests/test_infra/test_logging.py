"""Tests for structured logging setup."""

import pytest
import structlog

from category_engine.config import settings
from category_engine.infra.logging import (
    SERVICE_NAME,
    add_service_context,
    bind_request_context,
    build_processors,
    clear_request_context,
)


class TestServiceContext:
    """Tests for add_service_context."""

    def test_stamps_service_and_environment(self):
        event = add_service_context(None, "info", {"event": "Category created"})

        assert event["service"] == SERVICE_NAME
        assert event["environment"] == settings.environment

    def test_keeps_explicit_values(self):
        event = add_service_context(None, "info", {"event": "x", "service": "seed-script"})

        assert event["service"] == "seed-script"


class TestProcessors:
    """Tests for build_processors."""

    @pytest.mark.parametrize(
        "use_json, renderer",
        [
            (True, structlog.processors.JSONRenderer),
            (False, structlog.dev.ConsoleRenderer),
        ],
    )
    def test_renderer_last(self, use_json, renderer):
        processors = build_processors(use_json)

        assert isinstance(processors[-1], renderer)
        assert processors[0] is structlog.contextvars.merge_contextvars
        assert add_service_context in processors


class TestRequestContext:
    """Tests for request-scoped context binding."""

    def test_bind_then_clear(self):
        clear_request_context()
        bind_request_context(method="POST", path="/categories", user_id="user-1")

        context = structlog.contextvars.get_contextvars()
        assert context == {"method": "POST", "path": "/categories", "user_id": "user-1"}

        clear_request_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_bound_fields_reach_events(self):
        bind_request_context(path="/categories/tech")
        try:
            event = structlog.contextvars.merge_contextvars(None, "info", {"event": "Category moved"})
        finally:
            clear_request_context()

        assert event["path"] == "/categories/tech"
