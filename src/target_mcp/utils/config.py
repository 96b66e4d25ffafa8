"""
Configuration management for Target MCP.

This module provides centralized configuration using Pydantic settings
with support for environment variables and .env files.
"""

import logging
from pathlib import Path

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from target_mcp.utils.errors import ConfigurationError

BUILTIN_TOOLS_DIRECTORY = Path(__file__).resolve().parent.parent / "tools"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


class ValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = []
    warnings: list[str] = []


class TargetMCPSettings(BaseSettings):
    """Target MCP configuration settings."""

    # Application
    app_name: str = "target-mcp"

    # MCP server settings
    server_name: str = Field(default="generated-mcp-server")
    server_version: str = Field(default="0.1.0")

    # HTTP (SSE) transport settings
    host: str = Field(default="0.0.0.0", description="Interface the SSE server binds to")
    port: int = Field(
        default=3001,
        validation_alias=AliasChoices("PORT", "TARGET_MCP_PORT", "port"),
        description="Port the SSE server listens on",
    )
    sse_path: str = Field(default="/sse", description="Path that opens an event stream session")
    messages_path: str = Field(default="/messages", description="Path that receives client messages")

    # Tool discovery
    tools_directory: str = Field(default="", description="Directory scanned for tool modules (empty: built-in tools)")

    # Adobe Target API settings
    # External (non-TARGET_MCP_) envs supported via validation_alias
    adobe_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ADOBE_API_KEY", "adobe_api_key"),
    )
    adobe_access_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ADOBE_ACCESS_TOKEN", "adobe_access_token"),
        description="Bearer token; the API key is used when unset",
    )
    adobe_base_url: str = Field(default="https://mc.adobe.io")
    adobe_activity_id: str = Field(default="168816", description="Activity updated when a call names none")
    http_timeout_seconds: float = Field(default=30.0, description="Timeout for upstream API requests (seconds)")

    # Logging settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_structured: bool = Field(default=False, description="Emit JSON log records")
    log_file: str = Field(default="", description="Optional log file path")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="TARGET_MCP_",
        extra="ignore",
        populate_by_name=True,
    )

    def get_tools_directory(self) -> Path:
        """Get the tool discovery root as a Path object."""
        if self.tools_directory:
            return Path(self.tools_directory).expanduser().resolve()
        return BUILTIN_TOOLS_DIRECTORY

    def get_log_file_path(self) -> Path | None:
        """Get log file path as Path object, or None when file logging is off."""
        if not self.log_file:
            return None
        return Path(self.log_file).expanduser().resolve()

    def get_access_token(self) -> str | None:
        """Bearer token for Adobe Target requests."""
        return self.adobe_access_token or self.adobe_api_key

    def validate_settings(self) -> ValidationResult:
        """Validate settings and return status information."""
        status = ValidationResult()

        if not (0 < self.port < 65536):
            status.errors.append(f"Port must be between 1 and 65535, got {self.port}")
            status.valid = False

        if self.log_level.upper() not in _LOG_LEVELS:
            status.errors.append(f"Unknown log level: {self.log_level}")
            status.valid = False

        tools_directory = self.get_tools_directory()
        if not tools_directory.is_dir():
            status.errors.append(f"Tools directory is not a directory: {tools_directory}")
            status.valid = False

        if not self.adobe_api_key:
            status.warnings.append("ADOBE_API_KEY is not set. Adobe Target tools will be rejected upstream.")

        if status.errors:
            logging.getLogger(__name__).debug("Settings validation failed: %s", status.errors)

        return status

    def require_valid(self) -> ValidationResult:
        """Validate settings, raising when any error is found.

        Returns:
            The validation result, which may still carry warnings

        Raises:
            ConfigurationError: If validation reports errors
        """
        status = self.validate_settings()
        if not status.valid:
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(status.errors)}",
                suggestions=["Check the TARGET_MCP_* environment variables and the .env file"],
                context={"errors": list(status.errors)},
            )
        return status


# Global settings instance
settings = TargetMCPSettings()


def get_settings() -> TargetMCPSettings:
    """Get the global settings instance."""
    return settings


def reload_settings() -> TargetMCPSettings:
    """Reload settings from environment and return new instance."""
    global settings
    settings = TargetMCPSettings()
    return settings
