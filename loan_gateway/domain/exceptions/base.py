"""Base domain exceptions."""

from typing import Any, List


class DomainException(Exception):
    """
    Base exception for all domain-level errors.

    Domain exceptions represent business rule violations or
    domain-specific error conditions.
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    @property
    def details(self) -> dict[str, Any] | None:
        """Structured data exposed alongside the message, if any."""
        return None


class ValidationException(DomainException):
    """Raised when input is malformed or out of range."""

    def __init__(self, message: str, errors: List[str] | None = None):
        super().__init__(message=message, code="VALIDATION_ERROR")
        self.errors = errors or [message]

    @property
    def details(self) -> dict[str, Any]:
        return {"errors": self.errors}


class NotFoundException(DomainException):
    """Raised when a referenced entity does not exist."""

    def __init__(self, resource: str, resource_id: str, code: str = "NOT_FOUND"):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            code=code,
        )
        self.resource = resource
        self.resource_id = resource_id


class ConflictException(DomainException):
    """
    Raised when an operation conflicts with the current state of an entity.

    ``current_status`` lets callers reconcile against the actual state.
    """

    def __init__(
        self,
        message: str,
        current_status: str | None = None,
        code: str = "CONFLICT",
    ):
        super().__init__(message=message, code=code)
        self.current_status = current_status

    @property
    def details(self) -> dict[str, Any] | None:
        if self.current_status is None:
            return None
        return {"current_status": self.current_status}


class PolicyViolationException(DomainException):
    """
    Raised when a lending policy rejects a request.

    Always carries every violated rule, never only the first one.
    """

    def __init__(
        self,
        message: str,
        reasons: List[str],
        code: str = "POLICY_VIOLATION",
    ):
        super().__init__(message=message, code=code)
        self.reasons = list(reasons)

    @property
    def details(self) -> dict[str, Any]:
        return {"reasons": self.reasons}


class ExternalDependencyException(DomainException):
    """Raised when an external provider fails. Callers may retry."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        code: str = "EXTERNAL_DEPENDENCY_ERROR",
    ):
        super().__init__(message=message, code=code)
        self.provider = provider
        self.status_code = status_code
