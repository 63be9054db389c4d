"""
Custom exception classes for the PR deployment bot.

Two failure kinds exist: configuration problems detected before any
network call, and transport problems raised by the API clients.
"""

from typing import Optional, Dict, Any, List


class DeployBotError(Exception):
    """
    Base exception for the PR deployment bot.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary representation."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ConfigError(DeployBotError):
    """
    Raised when required input is missing or invalid.

    Always raised synchronously, before any request is sent.
    """

    def __init__(
        self,
        message: str,
        missing: Optional[List[str]] = None,
        config_key: Optional[str] = None
    ):
        """Initialize configuration error."""
        details: Dict[str, Any] = {}
        if missing:
            details["missing"] = list(missing)
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            error_code="CONFIG_ERROR",
            details=details
        )

    @property
    def missing(self) -> List[str]:
        return self.details.get("missing", [])


class TransportError(DeployBotError):
    """
    Raised when a call to the deployment host or the code host fails.

    This covers non-success status codes, connection failures and
    response bodies that do not have the expected shape.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        response_body: Optional[str] = None
    ):
        """Initialize transport error."""
        details: Dict[str, Any] = {}
        if status_code:
            details["status_code"] = status_code
        if endpoint:
            details["endpoint"] = endpoint
        if response_body:
            details["response_body"] = response_body

        super().__init__(
            message=message,
            error_code="TRANSPORT_ERROR",
            details=details
        )

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")
