"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
All values are loaded from environment variables and an optional .env file;
grouped views (database, protocol, executor, logging) are exposed as properties.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class DatabaseConfig(BaseModel):
    """Persistence configuration."""

    url: str = Field(
        default="sqlite+aiosqlite:///./action_relay.db",
        alias="ACTION_RELAY_DATABASE_URL",
        description="Async SQLAlchemy URL for the catalog and audit store",
    )
    echo: bool = Field(default=False, alias="ACTION_RELAY_DATABASE_ECHO", description="Echo SQL statements")

    model_config = {"populate_by_name": True}


class ProtocolConfig(BaseModel):
    """Tool-protocol (MCP) session configuration."""

    request_timeout_seconds: float = Field(
        default=30.0,
        alias="ACTION_RELAY_PROTOCOL_REQUEST_TIMEOUT",
        description="Per-request timeout for tool-protocol calls",
    )
    handshake_timeout_seconds: float = Field(
        default=10.0,
        alias="ACTION_RELAY_PROTOCOL_HANDSHAKE_TIMEOUT",
        description="Timeout for the initialize handshake",
    )
    protocol_version: str = Field(
        default="2024-11-05",
        alias="ACTION_RELAY_PROTOCOL_VERSION",
        description="Protocol version announced during the handshake",
    )
    client_name: str = Field(default="action-relay", alias="ACTION_RELAY_PROTOCOL_CLIENT_NAME")
    client_version: str = Field(default="0.1.0", alias="ACTION_RELAY_PROTOCOL_CLIENT_VERSION")

    model_config = {"populate_by_name": True}


class ExecutorConfig(BaseModel):
    """Executor limits."""

    http_timeout_seconds: float = Field(
        default=30.0, alias="ACTION_RELAY_HTTP_TIMEOUT", description="Timeout for outbound HTTP calls"
    )
    max_response_bytes: int = Field(
        default=10 * 1024,
        alias="ACTION_RELAY_MAX_RESPONSE_BYTES",
        description="Cap for response bodies persisted on action records",
    )
    max_summary_chars: int = Field(
        default=500,
        alias="ACTION_RELAY_MAX_SUMMARY_CHARS",
        description="Cap for success summaries handed to the reasoning collaborator",
    )
    max_error_chars: int = Field(
        default=2048,
        alias="ACTION_RELAY_MAX_ERROR_CHARS",
        description="Cap for error details handed to the reasoning collaborator",
    )

    model_config = {"populate_by_name": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", alias="ACTION_RELAY_LOG_LEVEL")
    format: str = Field(default="detailed", alias="ACTION_RELAY_LOG_FORMAT")
    enable_file: bool = Field(default=False, alias="ACTION_RELAY_LOG_TO_FILE")
    file_dir: str = Field(default="logs", alias="ACTION_RELAY_LOG_DIR")

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="ACTION_RELAY_CORS_ORIGINS")

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Server Configuration
    # =====================================================================
    server_host: str = Field(default="0.0.0.0", alias="ACTION_RELAY_SERVER_HOST")
    server_port: int = Field(default=8000, alias="ACTION_RELAY_SERVER_PORT")

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(default="sqlite+aiosqlite:///./action_relay.db", alias="ACTION_RELAY_DATABASE_URL")
    database_echo: bool = Field(default=False, alias="ACTION_RELAY_DATABASE_ECHO")

    # =====================================================================
    # Protocol Sessions
    # =====================================================================
    protocol_request_timeout: float = Field(default=30.0, alias="ACTION_RELAY_PROTOCOL_REQUEST_TIMEOUT")
    protocol_handshake_timeout: float = Field(default=10.0, alias="ACTION_RELAY_PROTOCOL_HANDSHAKE_TIMEOUT")
    protocol_version: str = Field(default="2024-11-05", alias="ACTION_RELAY_PROTOCOL_VERSION")
    protocol_client_name: str = Field(default="action-relay", alias="ACTION_RELAY_PROTOCOL_CLIENT_NAME")
    protocol_client_version: str = Field(default="0.1.0", alias="ACTION_RELAY_PROTOCOL_CLIENT_VERSION")

    # =====================================================================
    # Executor
    # =====================================================================
    http_timeout: float = Field(default=30.0, alias="ACTION_RELAY_HTTP_TIMEOUT")
    max_response_bytes: int = Field(default=10 * 1024, alias="ACTION_RELAY_MAX_RESPONSE_BYTES")
    max_summary_chars: int = Field(default=500, alias="ACTION_RELAY_MAX_SUMMARY_CHARS")
    max_error_chars: int = Field(default=2048, alias="ACTION_RELAY_MAX_ERROR_CHARS")

    # =====================================================================
    # Logging
    # =====================================================================
    log_level: str = Field(default="INFO", alias="ACTION_RELAY_LOG_LEVEL")
    log_format: str = Field(default="detailed", alias="ACTION_RELAY_LOG_FORMAT")
    log_to_file: bool = Field(default=False, alias="ACTION_RELAY_LOG_TO_FILE")
    log_dir: str = Field(default="logs", alias="ACTION_RELAY_LOG_DIR")

    cors_origins: list[str] = Field(default=["*"], alias="ACTION_RELAY_CORS_ORIGINS")
    admin_role: Optional[str] = Field(
        default="admin",
        alias="ACTION_RELAY_ADMIN_ROLE",
        description="Principal role allowed to confirm, reject or redo actions requested by others",
    )

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def database(self) -> DatabaseConfig:
        """Get database configuration."""
        return DatabaseConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def protocol(self) -> ProtocolConfig:
        """Get tool-protocol session configuration."""
        return ProtocolConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def executor(self) -> ExecutorConfig:
        """Get executor limits."""
        return ExecutorConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return LoggingConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
