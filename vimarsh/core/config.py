"""
Configuration loader for the Code Vimarsh API.

Loads configuration from config.yaml and environment variables using pydantic-settings.
Non-secret tuning lives in the database/auth/events/images sections; credentials
are read from the environment (or .env) only.
"""

from contextvars import ContextVar
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# YAML file read by the settings instance under construction.
_config_file: ContextVar[Optional[Path]] = ContextVar("config_file", default=None)


class DatabaseProvider(str, Enum):
    """Supported document stores."""

    MONGO = "mongo"
    MEMORY = "memory"


class DatabaseConfig(BaseModel):
    """
    Document store configuration.

    Note: the connection string is a secret and is NOT stored here.
    Use the MONGODB_URI environment variable.
    """

    provider: DatabaseProvider = Field(
        default=DatabaseProvider.MONGO,
        description="Document store backing the repositories",
    )
    name: str = Field(
        default="codevimarsh",
        description="Database name inside the MongoDB deployment",
    )


class AuthConfig(BaseModel):
    """Session token and credential lifetimes."""

    jwt_algorithm: str = Field(
        default="HS256",
        description="Signing algorithm for session tokens",
    )
    access_token_expire_minutes: int = Field(
        default=7 * 24 * 60,
        gt=0,
        description="Lifetime of member session tokens",
    )
    admin_token_expire_minutes: int = Field(
        default=12 * 60,
        gt=0,
        description="Lifetime of admin session tokens",
    )
    password_hash_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt cost factor for local account passwords",
    )
    otp_ttl_minutes: int = Field(
        default=10,
        gt=0,
        description="Validity window of emailed one-time passcodes",
    )
    reset_token_ttl_minutes: int = Field(
        default=10,
        gt=0,
        description="Validity window of password reset tokens",
    )


class EventsConfig(BaseModel):
    """Event catalog configuration."""

    seed_default_events: bool = Field(
        default=False,
        description="Insert the default event catalog at startup when missing",
    )


class ImagesConfig(BaseModel):
    """Image host (Cloudinary) configuration."""

    upload_folder: str = Field(
        default="codevimarsh",
        description="Folder signed uploads are placed in",
    )
    api_base_url: str = Field(
        default="https://api.cloudinary.com/v1_1",
        description="Cloudinary REST API base URL",
    )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and config.yaml.

    Priority (highest to lowest):
    1. Environment variables (from .env file or system)
    2. config.yaml file
    3. Default values

    Secrets (loaded from .env only - NEVER commit to git):
        - MONGODB_URI: MongoDB connection string
        - JWT_SECRET: signing key for member and admin session tokens
        - SUPABASE_URL / SUPABASE_ANON_KEY / SUPABASE_SERVICE_KEY
        - ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME
        - CLOUDINARY_CLOUD_NAME / CLOUDINARY_API_KEY / CLOUDINARY_API_SECRET
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = Field(
        default="Code Vimarsh API",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Debug mode; exposes error details in 500 responses",
        alias="APP_DEBUG",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:8080"],
        description="Browser origins allowed to call the API",
    )
    cors_origin_regex: Optional[str] = Field(
        default=None,
        description="Additional origin pattern (preview deployments)",
    )
    frontend_url: str = Field(
        default="",
        description="Deployed frontend origin, appended to cors_origins",
    )

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug_bool(cls, v):
        """Handle empty string as False for boolean debug field."""
        if v == "" or v is None:
            return False
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return v

    # Secrets (from .env)
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    jwt_secret: str = Field(
        default="",
        description="Session token signing key",
    )
    supabase_url: str = Field(
        default="",
        description="Supabase project URL",
    )
    supabase_anon_key: str = Field(
        default="",
        description="Supabase anonymous key",
    )
    supabase_service_key: str = Field(
        default="",
        description="Supabase service role key",
    )
    admin_email: str = Field(
        default="",
        description="Fixed admin login email",
    )
    admin_password: str = Field(
        default="",
        description="Fixed admin login password",
    )
    admin_name: str = Field(
        default="",
        description="Display name embedded in admin tokens",
    )
    cloudinary_cloud_name: str = Field(default="", description="Cloudinary cloud name")
    cloudinary_api_key: str = Field(default="", description="Cloudinary API key")
    cloudinary_api_secret: str = Field(default="", description="Cloudinary API secret")

    # Configuration sections (from config.yaml)
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="Document store configuration",
    )
    auth: AuthConfig = Field(
        default_factory=AuthConfig,
        description="Session and credential configuration",
    )
    events: EventsConfig = Field(
        default_factory=EventsConfig,
        description="Event catalog configuration",
    )
    images: ImagesConfig = Field(
        default_factory=ImagesConfig,
        description="Image host configuration",
    )

    def get_jwt_secret(self) -> str:
        """
        Get the session token signing key.

        Raises:
            ValueError: If JWT_SECRET is not configured.
        """
        if not self.jwt_secret:
            raise ValueError(
                "JWT secret is not configured. Set JWT_SECRET in environment variables."
            )
        return self.jwt_secret

    def get_allowed_origins(self) -> list[str]:
        """Return CORS origins with the deployed frontend URL normalized and appended."""
        origins = [origin.strip().rstrip("/") for origin in self.cors_origins if origin.strip()]
        frontend = self.frontend_url.strip().rstrip("/")
        if frontend and frontend not in origins:
            origins.append(frontend)
        return origins

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Place config.yaml below the environment and .env, above defaults."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=_config_file.get()),
            file_secret_settings,
        )

    @classmethod
    def from_yaml(cls, config_path: Path | str | None = None) -> "Settings":
        """
        Load settings from a YAML configuration file.

        Args:
            config_path: Path to config.yaml file. If None, looks for config.yaml
                        in the current directory and project root.

        Returns:
            Settings instance with values from YAML merged with env vars.
        """
        if config_path is None:
            search_paths = [
                Path.cwd() / "config.yaml",
                Path(__file__).parent.parent.parent / "config.yaml",
            ]
            for path in search_paths:
                if path.exists():
                    config_path = path
                    break

        token = _config_file.set(Path(config_path) if config_path is not None else None)
        try:
            return cls()
        finally:
            _config_file.reset(token)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings.from_yaml()
