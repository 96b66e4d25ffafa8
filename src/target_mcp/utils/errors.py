"""
Custom exception classes for Target MCP.
"""

from typing import Any


class TargetMCPError(Exception):
    """Base exception for all Target MCP errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        suggestions: list[str] | None = None,
        context: dict[str, Any] | None = None
    ):
        """Initialize error with enhanced information.
        
        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            suggestions: List of suggested remediation steps
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.error_code = error_code or self.__class__.__name__.upper()
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigurationError(TargetMCPError):
    """Raised when there is an issue with the application configuration."""
    pass


class DiscoveryError(TargetMCPError):
    """Raised when the tool directory cannot be scanned at all."""
    pass


class ToolContractError(TargetMCPError):
    """Raised when a candidate tool does not satisfy the tool contract."""
    pass


class ServiceError(TargetMCPError):
    """Base exception for errors occurring in service layers."""
    pass


class AdobeTargetAPIError(ServiceError):
    """Raised when the Adobe Target API rejects a request or is unreachable."""

    def __init__(self, message: str, status: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status = status
