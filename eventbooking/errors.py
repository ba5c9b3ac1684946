"""
Service-layer exceptions.

Services raise these instead of HTTP errors so the same rules can be driven
from scripts and tests. ``main.py`` maps each one to a response.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for all service-layer errors."""

    status_code = 500
    error_code = "service_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ServiceError):
    """Raised when input is malformed or breaks a business rule."""

    status_code = 400
    error_code = "validation_error"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        if field:
            self.details.setdefault("field", field)


class NotFoundError(ServiceError):
    """Raised when a requested resource does not exist."""

    status_code = 404
    error_code = "not_found"

    def __init__(self, resource_type: str, identifier: Any) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found")
        self.resource_type = resource_type
        self.identifier = identifier


class AuthenticationError(ServiceError):
    """Raised when credentials or tokens are missing or invalid."""

    status_code = 401
    error_code = "authentication_failed"

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class AuthorizationError(ServiceError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        required_roles: Optional[tuple[str, ...]] = None,
    ) -> None:
        super().__init__(message)
        self.required_roles = required_roles or ()


class StorageError(ServiceError):
    """
    Raised when the data store is unreachable or rejects an operation.

    Carries the operation name and entity id for logs. The driver message is
    kept on ``__cause__`` and never put in the public message.
    """

    error_code = "storage_error"

    def __init__(
        self,
        operation: str,
        entity_id: Optional[Any] = None,
        retryable: bool = False,
    ) -> None:
        target = f" ({entity_id})" if entity_id is not None else ""
        super().__init__(f"Storage operation '{operation}' failed{target}")
        self.operation = operation
        self.entity_id = entity_id
        self.retryable = retryable
        self.details["retryable"] = retryable

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return 503 if self.retryable else 500


class ConfigurationError(ServiceError):
    """Raised when the data store is not configured. Never retried."""

    status_code = 500
    error_code = "configuration_error"


class RateLimitError(ServiceError):
    """Raised when a client exceeds a request budget."""

    status_code = 429
    error_code = "rate_limited"

    def __init__(self, retry_after: int) -> None:
        super().__init__("Too many requests. Please try again later.")
        self.retry_after = retry_after
