"""
Health Check Endpoints.

This module provides basic system status endpoints (health, version)
used for monitoring and deployment verification.
"""

from fastapi import APIRouter
from sqlalchemy import text

from gclub.core.logging_config import get_logger
from gclub.server.core import constant
from gclub.server.services.deps import ReposDep

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server and its database connection.",
    response_description="Status object.",
)
async def health_check(repos: ReposDep):
    """
    Health check endpoint.

    Returns a simple status indicator to confirm the server is running and reachable.
    The ``database`` field reports whether a trivial query succeeded.
    """
    try:
        await repos.session.execute(text("SELECT 1"))
        database = "ok"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        database = "unavailable"
    return {"status": "ok", "database": database}


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    """
    Get API version.

    Returns the current semantic version of the API and supported schema version.
    """
    return {"version": constant.VERSION, "schema_version": constant.SCHEMA_VERSION}
