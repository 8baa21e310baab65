"""
Errors raised by the feedback layer.

- ValidationError: submitted input broke one or more field rules
- PersistenceError: the storage backend could not complete an operation
"""

from typing import Optional


class FeedbackError(Exception):
    """Base class for feedback errors."""


class ValidationError(FeedbackError):
    """One or more field constraints were violated. Carries one message per field."""

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        summary = "; ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(f"Invalid feedback - {summary}")


class PersistenceError(FeedbackError):
    """The storage or network layer failed. The store is left unchanged."""

    def __init__(self, cause: str, operation: Optional[str] = None):
        self.cause = cause
        self.operation = operation
        prefix = f"{operation} failed" if operation else "Storage failure"
        super().__init__(f"{prefix}: {cause}")
