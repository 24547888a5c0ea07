"""Unit tests for Logfire monitoring helpers.

Monitoring is opt-in; these tests patch the module-level flags instead of
the environment because they are read once at import time.
"""

from unittest.mock import MagicMock, patch

from fastapi import FastAPI

from gclub.core import monitoring
from gclub.core.monitoring import initialize_logfire, log_api_request, log_domain_event, log_error

MODULE = "gclub.core.monitoring"


class TestInitializeLogfire:
    @patch(f"{MODULE}.LOGFIRE_ENABLED", False)
    @patch(f"{MODULE}.logfire")
    def test_disabled(self, mock_logfire):
        assert initialize_logfire() is False
        mock_logfire.configure.assert_not_called()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "")
    @patch(f"{MODULE}.logger")
    def test_missing_token(self, mock_logger):
        assert initialize_logfire() is False
        mock_logger.warning.assert_called_once()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_SERVICE_NAME", "gclub-test")
    @patch(f"{MODULE}.LOGFIRE_ENVIRONMENT", "test")
    @patch(f"{MODULE}.LOGFIRE_TRACE_SQLALCHEMY", True)
    @patch(f"{MODULE}.LOGFIRE_TRACE_HTTPX", False)
    @patch(f"{MODULE}.LOGFIRE_TRACE_FASTAPI", True)
    @patch(f"{MODULE}.logfire")
    def test_configures_and_instruments(self, mock_logfire):
        app = FastAPI()

        assert initialize_logfire(app) is True

        kwargs = mock_logfire.configure.call_args[1]
        assert kwargs["token"] == "test-token"
        assert kwargs["service_name"] == "gclub-test"
        assert kwargs["environment"] == "test"
        mock_logfire.instrument_sqlalchemy.assert_called_once()
        mock_logfire.instrument_httpx.assert_not_called()
        mock_logfire.instrument_fastapi.assert_called_once_with(app=app)

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_TRACE_FASTAPI", True)
    @patch(f"{MODULE}.logfire")
    def test_fastapi_skipped_without_app(self, mock_logfire):
        initialize_logfire()

        mock_logfire.instrument_fastapi.assert_not_called()

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.logfire")
    def test_configure_failure(self, mock_logfire):
        mock_logfire.configure.side_effect = RuntimeError("bad token")

        assert initialize_logfire() is False

    @patch(f"{MODULE}.LOGFIRE_ENABLED", True)
    @patch(f"{MODULE}.LOGFIRE_TOKEN", "test-token")
    @patch(f"{MODULE}.LOGFIRE_TRACE_SQLALCHEMY", True)
    @patch(f"{MODULE}.logfire")
    def test_instrumentation_failure_is_not_fatal(self, mock_logfire):
        mock_logfire.instrument_sqlalchemy.side_effect = RuntimeError("no engine")

        assert initialize_logfire() is True


class TestLogHelpers:
    @patch(f"{MODULE}.logfire")
    def test_api_request(self, mock_logfire):
        log_api_request("GET", "/api/v1/games", 200, 12.5)

        mock_logfire.info.assert_called_once_with(
            "API request completed", method="GET", path="/api/v1/games", status_code=200, duration_ms=12.5
        )

    @patch(f"{MODULE}.logfire")
    def test_domain_event(self, mock_logfire):
        log_domain_event("waiting.promoted", game_post_id=7, user_id="mina")

        _, kwargs = mock_logfire.info.call_args
        assert kwargs == {"event_name": "waiting.promoted", "game_post_id": 7, "user_id": "mina"}

    @patch(f"{MODULE}.logfire")
    def test_domain_event_with_event_attribute(self, mock_logfire):
        log_domain_event("notification.sent", event="MEMBER_JOIN", receipts=2)

        _, kwargs = mock_logfire.info.call_args
        assert kwargs == {"event_name": "notification.sent", "event": "MEMBER_JOIN", "receipts": 2}

    @patch(f"{MODULE}.logfire")
    def test_error(self, mock_logfire):
        log_error("ValueError", "bad input", {"path": "/api/v1/notices"})

        mock_logfire.error.assert_called_once_with("ValueError: bad input", path="/api/v1/notices")

    def test_helpers_never_raise(self):
        broken = MagicMock()
        broken.info.side_effect = RuntimeError("exporter down")
        broken.error.side_effect = RuntimeError("exporter down")

        with patch.object(monitoring, "logfire", broken):
            log_api_request("GET", "/", 500, 1.0)
            log_domain_event("jobs.time_waiting", released=0)
            log_error("RuntimeError", "boom")
