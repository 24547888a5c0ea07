"""
Domain errors raised by services and repositories.

Each error carries the HTTP status it maps to; the handler registered in
``gclub.server.exception_handlers`` turns them into ``{"detail": ...}``
responses.
"""

from __future__ import annotations

from typing import Dict, Optional


class GClubError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 400

    def __init__(self, detail: str, headers: Optional[Dict[str, str]] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.headers = headers


class BadRequestError(GClubError):
    status_code = 400


class UnauthorizedError(GClubError):
    status_code = 401


class ForbiddenError(GClubError):
    status_code = 403


class NotFoundError(GClubError):
    status_code = 404


class ConflictError(GClubError):
    status_code = 409


class GoneError(GClubError):
    status_code = 410


class ServiceUnavailableError(GClubError):
    status_code = 503
