"""
Core module initialization.
Exports configuration, logging and error types.
"""

from restaurant_ops.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from restaurant_ops.core.exceptions import (
    RestaurantError,
    ValidationError,
    NotFoundError,
    InvalidValueError,
    InvalidOperationError,
    AccessDeniedError,
    CatalogTimeoutError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "RestaurantError",
    "ValidationError",
    "NotFoundError",
    "InvalidValueError",
    "InvalidOperationError",
    "AccessDeniedError",
    "CatalogTimeoutError",
]
