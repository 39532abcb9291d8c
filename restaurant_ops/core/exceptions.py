"""
Domain Exceptions

Every error the order engine and the dashboard raise on purpose derives
from RestaurantError. The API layer turns them into ErrorResponse
payloads using the status_code and error_code carried by each class;
anything else is reported as a generic internal error.
"""

from typing import Any, Optional


class RestaurantError(Exception):
    """Base class for expected, caller-facing failures."""

    status_code: int = 400
    error_code: str = "restaurant_error"

    def __init__(self, message: str, detail: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": False,
            "error": self.error_code,
            "detail": self.message,
        }


class ValidationError(RestaurantError):
    """Malformed input, e.g. an order without items."""

    status_code = 422
    error_code = "validation_error"


class NotFoundError(RestaurantError):
    """An order, customer, table or address id that does not exist."""

    status_code = 404
    error_code = "not_found"

    def __init__(self, entity: str, identifier: Optional[Any] = None):
        if identifier is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {identifier!r} not found"
        super().__init__(message)
        self.entity = entity
        self.identifier = identifier


class InvalidValueError(RestaurantError):
    """A value that cannot be parsed, such as an unknown status name."""

    status_code = 400
    error_code = "invalid_value"

    def __init__(self, entity: str, field: str, value: Any):
        super().__init__(f"Invalid {entity} {field}: {value!r}")
        self.entity = entity
        self.field = field
        self.value = value


class InvalidOperationError(RestaurantError):
    """A well-formed request the current state does not allow."""

    status_code = 409
    error_code = "invalid_operation"


class AccessDeniedError(RestaurantError):
    """A customer acting on another customer's order."""

    status_code = 403
    error_code = "access_denied"


class CatalogTimeoutError(RestaurantError):
    """The catalog did not answer within the configured timeout."""

    status_code = 504
    error_code = "catalog_timeout"
