"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="n8n MCP SSE Bridge", description="Application name")
    app_version: str = Field(default="2.7.4", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")

    # MCP Protocol Configuration
    mcp_server_name: str = Field(
        default="n8n-documentation-mcp", description="Server name reported by initialize"
    )
    mcp_protocol_version: str = Field(
        default="2024-11-05", description="MCP protocol version reported by initialize"
    )

    # Security Configuration
    auth_token: Optional[str] = Field(
        default=None, description="Shared bearer token guarding /mcp routes"
    )
    cors_origin: str = Field(default="*", description="Allowed origin for SSE responses")

    # SSE Configuration
    sse_heartbeat_interval: float = Field(
        default=30.0, gt=0, description="SSE heartbeat interval in seconds"
    )
    sse_cleanup_interval: float = Field(
        default=60.0, gt=0, description="Stale session sweep interval in seconds"
    )
    sse_event_buffer_size: int = Field(
        default=256, ge=1, description="Maximum undelivered frames buffered per stream"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[str] = Field(default=None, description="Optional rotating log file path")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("auth_token")
    @classmethod
    def blank_token_disables_auth(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="N8N_MCP_",
        extra="ignore",
    )


class ManagementApiSettings(BaseSettings):
    """
    Credentials for the n8n management REST API.

    Read from ``N8N_API_URL`` / ``N8N_API_KEY``. Instances are built on demand
    rather than cached so a credential provisioned after startup is seen by
    the next ``tools/list``.
    """

    api_url: Optional[str] = Field(default=None, description="n8n instance base URL")
    api_key: Optional[str] = Field(default=None, description="n8n API key")
    api_timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None

    @property
    def configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="N8N_",
        extra="ignore",
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings


def get_management_api_settings() -> ManagementApiSettings:
    """Read the management API credentials from the current environment."""
    return ManagementApiSettings()
