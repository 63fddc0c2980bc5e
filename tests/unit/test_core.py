import json
import logging
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI

from trustfeed.config.logging import JsonFormatter
from trustfeed.core.exceptions import (
    AuthenticationError,
    DataStoreError,
    FeedGenerationError,
    NotApplicableError,
    NotFoundError,
    ValidationError,
)
from trustfeed.core.telemetry import get_tracer, setup_telemetry


class TestExceptions:
    @pytest.mark.parametrize(
        "exc, status_code, error_code",
        [
            (ValidationError("bad input"), 400, "VALIDATION_ERROR"),
            (AuthenticationError(), 401, "AUTHENTICATION_REQUIRED"),
            (NotFoundError("Recommendation", "rec_1"), 404, "NOT_FOUND"),
            (NotApplicableError("self comparison"), 404, "NOT_APPLICABLE"),
            (DataStoreError("select", "timeout"), 502, "DATA_STORE_ERROR"),
            (FeedGenerationError("no graph"), 500, "FEED_GENERATION_FAILED"),
        ],
    )
    def test_status_and_code(self, exc, status_code, error_code):
        assert exc.status_code == status_code
        assert exc.to_dict()["error"]["code"] == error_code

    def test_to_dict_shape(self):
        exc = NotFoundError("Recommendation", "rec_1")

        assert exc.to_dict() == {
            "error": {
                "code": "NOT_FOUND",
                "message": "Recommendation not found: rec_1",
                "details": {"resource": "Recommendation", "identifier": "rec_1"},
            }
        }

    def test_validation_error_defaults_details(self):
        assert ValidationError("bad input").details == {}


class TestJsonFormatter:
    def _record(self, **extra):
        record = logging.LogRecord(
            name="trustfeed.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Feed generated for %s",
            args=("user_alice",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_basic_fields(self):
        payload = json.loads(JsonFormatter().format(self._record()))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "trustfeed.test"
        assert payload["message"] == "Feed generated for user_alice"
        assert "user_id" not in payload

    def test_context_fields_included(self):
        record = self._record(user_id="user_alice", source="trending", unrelated="x")

        payload = json.loads(JsonFormatter().format(record))

        assert payload["user_id"] == "user_alice"
        assert payload["source"] == "trending"
        assert "unrelated" not in payload


class TestTelemetry:
    def test_tracer_available_without_provider(self):
        with get_tracer().start_as_current_span("test.span") as span:
            span.set_attribute("items", 3)

    @patch("trustfeed.core.telemetry.get_settings")
    @patch("trustfeed.core.telemetry.Instrumentator")
    def test_setup_telemetry_prometheus_enabled(self, mock_instrumentator, mock_get_settings):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = True
        mock_settings.ENABLE_OTEL = False
        mock_get_settings.return_value = mock_settings

        app = FastAPI()
        setup_telemetry(app)

        mock_instrumentator.assert_called_once()
        mock_instrumentator.return_value.instrument.assert_called_once_with(app)

    @patch("trustfeed.core.telemetry.get_settings")
    @patch("trustfeed.core.telemetry.trace")
    @patch("trustfeed.core.telemetry.OTLPSpanExporter")
    @patch("trustfeed.core.telemetry.BatchSpanProcessor")
    @patch("trustfeed.core.telemetry.FastAPIInstrumentor")
    def test_setup_telemetry_otel_enabled(
        self, mock_fastapi_instr, mock_processor, mock_exporter, mock_trace, mock_get_settings
    ):
        mock_settings = MagicMock()
        mock_settings.ENABLE_PROMETHEUS = False
        mock_settings.ENABLE_OTEL = True
        mock_settings.APP_NAME = "test"
        mock_settings.APP_VERSION = "1.0"
        mock_settings.DEBUG = False
        mock_settings.DATA_BACKEND = "memory"
        mock_get_settings.return_value = mock_settings

        app = FastAPI()
        setup_telemetry(app)

        mock_fastapi_instr.instrument_app.assert_called_once()
        mock_processor.assert_called_once_with(mock_exporter.return_value)
        mock_trace.set_tracer_provider.assert_called_once()
