"""
Unit tests for server exception handlers.

Tests cover domain error rendering, the catch-all handler and their
registration on a FastAPI application.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from gclub.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    GClubError,
    GoneError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from gclub.server.exception_handlers import setup_exception_handlers
from gclub.server.exception_handlers.global_handler import gclub_error_handler, global_exception_handler


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/game-posts"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestGClubErrorHandler:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error_type, status",
        [
            (BadRequestError, 400),
            (UnauthorizedError, 401),
            (ForbiddenError, 403),
            (NotFoundError, 404),
            (ConflictError, 409),
            (GoneError, 410),
            (ServiceUnavailableError, 503),
        ],
    )
    async def test_status_and_detail(self, mock_request, error_type, status):
        response = await gclub_error_handler(mock_request, error_type("Nope"))

        assert response.status_code == status
        assert json.loads(response.body) == {"detail": "Nope"}

    @pytest.mark.asyncio
    async def test_headers_are_forwarded(self, mock_request):
        exc = ConflictError("Game is full", headers={"X-Requires-Waiting": "true"})

        response = await gclub_error_handler(mock_request, exc)

        assert response.headers["X-Requires-Waiting"] == "true"

    @pytest.mark.asyncio
    async def test_server_side_errors_are_logged(self, mock_request):
        with patch("gclub.server.exception_handlers.global_handler.logger") as mock_logger:
            await gclub_error_handler(mock_request, ServiceUnavailableError("Jobs are disabled"))
            await gclub_error_handler(mock_request, NotFoundError("Game post not found"))

        mock_logger.error.assert_called_once()
        mock_logger.debug.assert_called_once()


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_logs_and_returns_500(self, mock_request):
        exc = ValueError("Test error")

        with patch("gclub.server.exception_handlers.global_handler.logger") as mock_logger, patch(
            "gclub.server.exception_handlers.global_handler.log_error"
        ) as mock_log_error:
            response = await global_exception_handler(mock_request, exc)

        assert response.status_code == 500
        call_args = mock_logger.error.call_args
        assert "Unhandled exception" in call_args[0][0]
        assert call_args[1]["extra"]["error_type"] == "ValueError"
        mock_log_error.assert_called_once()
        body = json.loads(response.body)
        assert body["detail"] == "Internal server error"
        assert body["error_id"] == id(exc)

    @pytest.mark.asyncio
    async def test_request_without_client(self, mock_request):
        mock_request.client = None

        with patch("gclub.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, RuntimeError("boom"))

        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"


class TestSetupExceptionHandlers:
    def _app(self) -> FastAPI:
        app = FastAPI()
        setup_exception_handlers(app)

        @app.get("/missing")
        async def missing():
            raise NotFoundError("Channel not found")

        @app.get("/broken")
        async def broken():
            raise RuntimeError("database exploded")

        return app

    def test_handlers_registered(self):
        app = self._app()

        assert GClubError in app.exception_handlers
        assert Exception in app.exception_handlers

    def test_domain_error_through_app(self):
        client = TestClient(self._app())

        response = client.get("/missing")

        assert response.status_code == 404
        assert response.json() == {"detail": "Channel not found"}

    def test_unhandled_error_through_app(self):
        client = TestClient(self._app(), raise_server_exceptions=False)

        response = client.get("/broken")

        assert response.status_code == 500
        assert response.json()["error_type"] == "RuntimeError"
