"""Error types raised by the category store.

Every failure surfaced by the services is one of these:
- ValidationError: malformed or missing input (labels, names, identifiers)
- InvalidReference: a referenced event or parent category cannot be used
- NotFoundError: the target of an operation does not exist
- InvariantViolation: the operation would break forest acyclicity
- BackendError: the database failed (including integrity rejections)
- OperationTimeout: the call ran past its deadline and was rolled back

Callers branch on the class or on ``code``; messages are for humans only.
"""

from typing import Any, Dict, Optional


class StoreError(Exception):
    """Base exception for all category store errors.

    Attributes:
        message: Error message.
        code: Stable error code for programmatic handling.
        details: Additional error context.
    """

    code = "STORE_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(StoreError):
    """Input failed validation.

    Raised when:
    - A label or event name is missing or blank
    - An identifier is not an integer
    - A referenced event does not exist
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message, details={"field": field_name})
        self.field_name = field_name


class InvalidReference(ValidationError):
    """A parent reference does not resolve, or points into another event."""

    code = "INVALID_REFERENCE"


class NotFoundError(StoreError):
    """The event or category an operation targets does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity.capitalize()} with ID {entity_id} not found",
            details={"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvariantViolation(StoreError):
    """The requested change would create a cycle in the category forest."""

    code = "INVARIANT_VIOLATION"


class BackendError(StoreError):
    """The database rejected or failed an operation.

    The original exception is chained and kept on ``cause`` so callers can
    decide whether a retry makes sense.
    """

    code = "BACKEND_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, details={"cause": repr(cause) if cause else None})
        self.cause = cause


class OperationTimeout(BackendError):
    """The operation exceeded its deadline and was rolled back."""

    code = "TIMEOUT"
