"""
Base error taxonomy.

Every error carries a stable machine `code` and a JSON-safe `details`
mapping; `careflow.api.exception_handlers` maps the code to an HTTP status.
Scheduling-specific errors subclass these in
`careflow.domains.scheduling.domain.exceptions`.
"""

from typing import Any


class DomainException(Exception):
    """Business rule violation with a machine-readable code."""

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or type(self).__name__.upper()
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class ValidationException(DomainException):
    """Input that can never be valid, whatever the current state."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        self.field = field
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, "VALIDATION_ERROR", details)


class EntityNotFoundException(DomainException):
    def __init__(self, entity_type: str, entity_id: Any, message: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            message or f"{entity_type} {entity_id} not found",
            "ENTITY_NOT_FOUND",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )


class InvalidOperationException(DomainException):
    """Valid input, but not allowed in the record's current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None, code: str = "INVALID_OPERATION"):
        self.operation = operation
        self.current_state = current_state
        super().__init__(
            message or f"Cannot {operation} while {current_state}",
            code,
            {"operation": operation, "current_state": current_state},
        )


class ConcurrencyException(DomainException):
    """A versioned write lost against a concurrent writer."""

    def __init__(self, entity_type: str, entity_id: Any, expected_version: int, actual_version: int | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        found = "a newer version" if actual_version is None else f"version {actual_version}"
        super().__init__(
            f"{entity_type} {entity_id} changed concurrently: expected version {expected_version}, found {found}",
            "CONCURRENCY_CONFLICT",
            {
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class AuthorizationException(DomainException):
    """The acting user may not perform the operation (permission denied)."""

    def __init__(self, operation: str, resource: str | None = None, user_id: str | None = None):
        self.operation = operation
        self.resource = resource
        self.user_id = user_id
        target = f" on {resource}" if resource else ""
        super().__init__(
            f"Not allowed to {operation}{target}",
            "AUTHORIZATION_ERROR",
            {"operation": operation, "resource": resource},
        )


class DuplicateEntityException(DomainException):
    def __init__(self, entity_type: str, field: str, value: Any, code: str = "DUPLICATE_ENTITY"):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(
            f"{entity_type} with {field}={value!r} already exists",
            code,
            {"entity_type": entity_type, "field": field, "value": str(value)},
        )


class PaymentException(DomainException):
    """Payment gateway or payment bookkeeping failure. Reported to clients without details."""

    def __init__(self, message: str, payment_id: str | None = None, reason: str | None = None, code: str = "PAYMENT_ERROR"):
        self.payment_id = payment_id
        self.reason = reason
        details = {key: value for key, value in (("payment_id", payment_id), ("reason", reason)) if value}
        super().__init__(message, code, details)


class IntegrationException(DomainException):
    """An external service (notifications, storage) failed."""

    def __init__(self, service: str, message: str, original_error: Exception | None = None):
        self.service = service
        self.original_error = original_error
        details: dict[str, Any] = {"service": service}
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(message, "INTEGRATION_ERROR", details)
