"""
Exception hierarchy for the media studio service.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class StudioException(Exception):
    """Base exception for all media studio errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging

        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(StudioException):
    """Raised when required runtime configuration is missing."""

    def __init__(self, missing: list[str], details: dict[str, Any] | None = None) -> None:
        """
        Initialize configuration error.

        Args:
            missing: Names of the settings that are not set
            details: Additional context
        """
        details = details or {}
        details["missing"] = missing
        self.missing = missing
        super().__init__(
            "Server misconfigured: missing required settings "
            f"({', '.join(missing)}). Check the deployment environment.",
            details,
        )


class RequestValidationError(StudioException):
    """Raised when a request is missing a required field or has a bad value."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


class ProviderError(StudioException):
    """Raised when the generation provider answers with a non-success result."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize provider error.

        Args:
            message: Error message (provider's own message when it sent one)
            status_code: HTTP status returned by the provider
            operation: Provider operation that failed (text_to_image, tasks, ...)
            details: Additional context
        """
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        if operation:
            details["operation"] = operation
        self.status_code = status_code
        self.operation = operation
        super().__init__(message, details)


class RelayError(StudioException):
    """Raised when finished output cannot be copied into the object store."""

    def __init__(
        self,
        message: str,
        task_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize relay error.

        Args:
            message: Error message
            task_id: Provider task whose output failed to relay
            details: Additional context
        """
        details = details or {}
        if task_id:
            details["task_id"] = task_id
        self.task_id = task_id
        super().__init__(message, details)


class ObjectStoreError(StudioException):
    """Raised when an object store write fails."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if key:
            details["key"] = key
        self.key = key
        super().__init__(message, details)


class JobRecordNotFoundError(StudioException):
    """Raised when a succeeded task has no job record to reconcile against."""

    def __init__(self, task_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize job record not found error.

        Args:
            task_id: Provider task id with no record
            details: Additional context
        """
        details = details or {}
        details["task_id"] = task_id
        self.task_id = task_id
        super().__init__(f"Could not find destination for task {task_id}.", details)


class JobRecordStoreError(StudioException):
    """Raised when the job metadata store cannot be read or written."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if operation:
            details["operation"] = operation
        self.operation = operation
        super().__init__(message, details)
