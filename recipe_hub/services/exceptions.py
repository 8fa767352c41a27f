"""Service layer exception classes for Recipe Hub.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the engine.

Exception Hierarchy:
    ServiceError (base)
    ├── AuthFailure
    ├── InvalidArgument
    │   ├── ValidationError
    │   ├── InvalidDuration
    │   ├── RecipeNotFound
    │   └── ReviewNotFound
    └── DatabaseError

Lookups that may legitimately find nothing (recipe by id, user by id,
analytics) return None instead of raising.
"""

from typing import List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors."""

    pass


class AuthFailure(ServiceError):
    """Raised when the actor is missing, unknown, inactive, or lacks rights.

    Covers ownership/authorship violations and self-targeting (self-follow,
    self-like) as well.

    Example:
        >>> raise AuthFailure("only the recipe author can delete it")
        AuthFailure: only the recipe author can delete it
    """

    pass


class InvalidArgument(ServiceError):
    """Raised for malformed input, out-of-range values, bad pagination or
    mismatched references."""

    pass


class ValidationError(InvalidArgument):
    """Raised when data validation fails; carries every failure message."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        error_msg = "; ".join(errors)
        super().__init__(f"Validation failed: {error_msg}")


class InvalidDuration(InvalidArgument):
    """Raised when a duration string is malformed, negative, or overflows.

    Args:
        value: The offending input
        reason: Short description of the failure
    """

    def __init__(self, value: Optional[str], reason: str = "malformed"):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid duration {value!r}: {reason}")


class RecipeNotFound(InvalidArgument):
    """Raised when an operation targets a recipe that does not exist."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class ReviewNotFound(InvalidArgument):
    """Raised when an operation targets a review that does not exist."""

    def __init__(self, review_id: int):
        self.review_id = review_id
        super().__init__(f"Review with ID {review_id} not found")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
