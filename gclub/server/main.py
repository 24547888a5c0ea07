"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request timing), registers the exception handlers and includes all API
routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gclub.core.database import async_session_maker, init_db
from gclub.core.logging_config import get_logger, setup_logging
from gclub.core.monitoring import initialize_logfire

from .api.v1 import (
    admin,
    boards,
    game_posts,
    games,
    health,
    jobs,
    notices,
    notifications,
    profile,
    users,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware
from .services.scheduler import MaintenanceScheduler

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates the schema (when auto-create is on) on startup and runs the
    in-process maintenance scheduler while the app is up if it is enabled.
    """
    # Startup
    try:
        logger.info("Starting up G-Club Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    scheduler = None
    if settings.jobs.scheduler_enabled:
        scheduler = MaintenanceScheduler(async_session_maker, settings.jobs.scheduler_interval_seconds)
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    # Shutdown
    logger.info("Shutting down G-Club Server...")
    if scheduler is not None:
        await scheduler.stop()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    G-Club Community Server API

    Backend for the G-Club gaming community: channel boards, game-mate recruitment
    posts with capacity and waiting lists, notices and in-app notifications.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

initialize_logfire(app)

app.add_middleware(LogfireMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=settings.cors.allow_methods,
    allow_headers=settings.cors.allow_headers,
)

setup_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(profile.router, prefix=f"{constant.API_V1_STR}/profile", tags=["profile"])
app.include_router(users.router, prefix=f"{constant.API_V1_STR}/users", tags=["users"])
app.include_router(games.router, prefix=f"{constant.API_V1_STR}/games", tags=["games"])
app.include_router(game_posts.router, prefix=f"{constant.API_V1_STR}/game-posts", tags=["game-posts"])
app.include_router(notices.router, prefix=f"{constant.API_V1_STR}/notices", tags=["notices"])
app.include_router(notifications.router, prefix=f"{constant.API_V1_STR}/notifications", tags=["notifications"])
app.include_router(boards.router, prefix=constant.API_V1_STR, tags=["boards"])
app.include_router(admin.router, prefix=f"{constant.API_V1_STR}/admin", tags=["admin"])
app.include_router(jobs.router, prefix=f"{constant.API_V1_STR}/jobs", tags=["jobs"])
