"""
Standardized Error Handling for Vintner

The scoring engine itself is pure and raises nothing of its own; these
exceptions belong to the collaborators around it (reference lookups,
batch persistence, rule files).
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

logger = logging.getLogger(__name__)


class VintnerError(Exception):
    """Base exception for Vintner."""
    pass


class UnknownGrapeError(VintnerError):
    """Grape variety not present in the reference data."""

    def __init__(self, variety: str):
        super().__init__(f"Unknown grape variety: {variety!r}")
        self.variety = variety


class UnknownRegionError(VintnerError):
    """Country/region pair not present in the reference data."""

    def __init__(self, country: str, region: str):
        super().__init__(f"Unknown region: {region!r} ({country!r})")
        self.country = country
        self.region = region


class BatchNotFoundError(VintnerError):
    """No wine batch stored under the requested id."""

    def __init__(self, batch_id: str):
        super().__init__(f"Wine batch not found: {batch_id!r}")
        self.batch_id = batch_id


class DataValidationError(VintnerError):
    """Persisted data or a rule file failed validation."""
    pass


def wrap_validation_error(error: ValidationError, operation: str) -> DataValidationError:
    """
    Convert a pydantic ValidationError into a DataValidationError.

    Args:
        error: Validation error raised by pydantic
        operation: Description of operation

    Returns:
        DataValidationError chained to the original error
    """
    logger.error(f"Validation failed during {operation}: {error.error_count()} error(s)")
    wrapped = DataValidationError(f"Invalid data during {operation}: {error}")
    wrapped.__cause__ = error
    return wrapped


class ErrorContext:
    """Context manager for consistent error handling."""

    def __init__(self, operation: str, fallback_value: Any = None):
        self.operation = operation
        self.fallback_value = fallback_value
        self.error: Optional[Exception] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.error = exc_val
            logger.error(f"Error in {self.operation}: {exc_type.__name__} - {exc_val}")

            # Suppress only when a fallback was provided
            if self.fallback_value is not None:
                return True
        return False


__all__ = [
    'VintnerError',
    'UnknownGrapeError',
    'UnknownRegionError',
    'BatchNotFoundError',
    'DataValidationError',
    'wrap_validation_error',
    'ErrorContext'
]
