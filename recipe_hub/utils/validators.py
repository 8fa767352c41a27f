"""
Input validation functions for the Recipe Hub engine.

Each validator returns a ``(is_valid, error_message)`` tuple so callers can
collect several failures before raising a single ValidationError.
"""

from typing import Any, Optional, Tuple

from .constants import (
    ERROR_INVALID_GENDER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_RATING,
    ERROR_INVALID_SECRET,
    ERROR_REQUIRED_FIELD,
    MAX_NAME_LENGTH,
    MAX_RATING,
    MAX_SECRET_BYTES,
    MIN_RATING,
    VALID_GENDERS,
)


def has_text(value: Optional[str]) -> bool:
    """Return True if value is a string with at least one non-whitespace char."""
    return isinstance(value, str) and value.strip() != ""


def is_positive_id(value: Any) -> bool:
    """Return True if value is a positive int (bools are not ids)."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not has_text(value):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: Optional[str], max_length: int = MAX_NAME_LENGTH, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Args:
        value: The string value to validate
        max_length: Maximum allowed length
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, str) and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_positive_int(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive integer (bools are rejected).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_gender(value: Optional[str], field_name: str = "Gender") -> Tuple[bool, str]:
    """Validate that gender is one of the supported values (case-sensitive)."""
    if value not in VALID_GENDERS:
        return False, f"{field_name}: {ERROR_INVALID_GENDER}"
    return True, ""


def validate_rating(value: Any, field_name: str = "Rating") -> Tuple[bool, str]:
    """Validate that a review rating is an integer within [MIN_RATING, MAX_RATING]."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{field_name}: {ERROR_INVALID_RATING}"
    if value < MIN_RATING or value > MAX_RATING:
        return False, f"{field_name}: {ERROR_INVALID_RATING}"
    return True, ""


def validate_secret(value: Any, field_name: str = "Password") -> Tuple[bool, str]:
    """
    Validate a credential secret before hashing.

    None and "" are accepted (no credential is stored). Anything else must be
    a string whose UTF-8 encoding fits in MAX_SECRET_BYTES.
    """
    if value is None or value == "":
        return True, ""
    if not isinstance(value, str) or len(value.encode("utf-8")) > MAX_SECRET_BYTES:
        return False, f"{field_name}: {ERROR_INVALID_SECRET}"
    return True, ""
