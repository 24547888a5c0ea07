"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class DatabaseConfig(BaseModel):
    """Relational database configuration."""

    url: str = Field(
        default="sqlite+aiosqlite:///./gclub.db",
        alias="DATABASE_URL",
        description="Async database connection URL (postgres URLs are normalized to asyncpg)",
    )
    auto_create: bool = Field(
        default=True,
        alias="DATABASE_AUTO_CREATE",
        description="Create missing tables and seed defaults on startup (disable when Alembic owns the schema)",
    )

    model_config = {"populate_by_name": True}


class AuthConfig(BaseModel):
    """Bearer token verification configuration."""

    jwt_secret: str = Field(
        default="change-me", alias="AUTH_JWT_SECRET", description="Shared secret used to verify access tokens"
    )
    jwt_algorithm: str = Field(default="HS256", alias="AUTH_JWT_ALGORITHM", description="Token signing algorithm")
    jwt_audience: Optional[str] = Field(
        default=None, alias="AUTH_JWT_AUDIENCE", description="Expected token audience (skipped when unset)"
    )

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )
    allow_methods: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_METHODS", description="Allowed HTTP methods (use * for all)"
    )
    allow_headers: list[str] = Field(
        default=["*"], alias="CORS_ALLOW_HEADERS", description="Allowed HTTP headers (use * for all)"
    )

    model_config = {"populate_by_name": True}


class GameMateConfig(BaseModel):
    """Game-mate recruitment rules."""

    min_participants: int = Field(
        default=2, alias="GAME_POST_MIN_PARTICIPANTS", description="Smallest allowed participant cap"
    )
    max_participants: int = Field(
        default=100, alias="GAME_POST_MAX_PARTICIPANTS", description="Largest allowed participant cap"
    )
    stale_hours: int = Field(
        default=6,
        alias="GAME_POST_STALE_HOURS",
        description="Hours after start time before an OPEN post expires or an IN_PROGRESS post completes",
    )

    model_config = {"populate_by_name": True}


class JobsConfig(BaseModel):
    """Maintenance job configuration."""

    cron_secret: Optional[str] = Field(
        default=None, alias="CRON_SECRET", description="Bearer secret required by the job trigger endpoints"
    )
    scheduler_enabled: bool = Field(
        default=False, alias="SCHEDULER_ENABLED", description="Run maintenance jobs periodically inside the server"
    )
    scheduler_interval_seconds: int = Field(
        default=60, alias="SCHEDULER_INTERVAL_SECONDS", description="Seconds between periodic job runs"
    )

    model_config = {"populate_by_name": True}


class NotificationConfig(BaseModel):
    """Notification delivery configuration."""

    timezone: str = Field(
        default="UTC",
        alias="NOTIFICATION_TIMEZONE",
        description="IANA zone used to evaluate do-not-disturb windows",
    )
    retention_days: int = Field(
        default=30, alias="NOTIFICATION_RETENTION_DAYS", description="Days to keep notifications before cleanup"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # =====================================================================
    # G-Club Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="G-Club server host address to bind to",
        alias="GCLUB_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="G-Club server port number",
        alias="GCLUB_SERVER_PORT",
    )
    log_level: str = Field(
        default="INFO",
        description="G-Club server logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="GCLUB_LOG_LEVEL",
    )

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./gclub.db",
        description="Async database connection URL for application database",
        alias="DATABASE_URL",
    )
    database_auto_create: bool = Field(
        default=True,
        description="Create tables and seed defaults on startup",
        alias="DATABASE_AUTO_CREATE",
    )

    # =====================================================================
    # Auth Configuration
    # =====================================================================
    auth_jwt_secret: str = Field(default="change-me", alias="AUTH_JWT_SECRET")
    auth_jwt_algorithm: str = Field(default="HS256", alias="AUTH_JWT_ALGORITHM")
    auth_jwt_audience: Optional[str] = Field(default=None, alias="AUTH_JWT_AUDIENCE")

    # =====================================================================
    # CORS Configuration
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["*"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    # =====================================================================
    # Game-mate Configuration
    # =====================================================================
    game_post_min_participants: int = Field(default=2, alias="GAME_POST_MIN_PARTICIPANTS")
    game_post_max_participants: int = Field(default=100, alias="GAME_POST_MAX_PARTICIPANTS")
    game_post_stale_hours: int = Field(default=6, alias="GAME_POST_STALE_HOURS")

    # =====================================================================
    # Maintenance Jobs Configuration
    # =====================================================================
    cron_secret: Optional[str] = Field(default=None, alias="CRON_SECRET")
    scheduler_enabled: bool = Field(default=False, alias="SCHEDULER_ENABLED")
    scheduler_interval_seconds: int = Field(default=60, alias="SCHEDULER_INTERVAL_SECONDS")

    # =====================================================================
    # Notification Configuration
    # =====================================================================
    notification_timezone: str = Field(default="UTC", alias="NOTIFICATION_TIMEZONE")
    notification_retention_days: int = Field(default=30, alias="NOTIFICATION_RETENTION_DAYS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def database(self) -> DatabaseConfig:
        """Get database configuration from environment variables."""
        return DatabaseConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def auth(self) -> AuthConfig:
        """Get token verification configuration from environment variables."""
        return AuthConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def game_mate(self) -> GameMateConfig:
        """Get game-mate recruitment rules from environment variables."""
        return GameMateConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def jobs(self) -> JobsConfig:
        """Get maintenance job configuration from environment variables."""
        return JobsConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def notifications(self) -> NotificationConfig:
        """Get notification delivery configuration from environment variables."""
        return NotificationConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
