"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across recipe, review and social
operations.

Usage:
    from recipe_hub.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    # Log successful operation
    log_operation(
        logger,
        operation="add_review",
        outcome="success",
        review_id=123,
        recipe_id=45,
    )

    # Log a rejected request
    log_operation(
        logger,
        operation="delete_recipe",
        outcome="not_owner",
        level=logging.WARNING,
        recipe_id=45,
        actor_id=7,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named 'recipe_hub.services.<module>'.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'recipe_hub.services.review_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"recipe_hub.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message is "<operation>: <outcome>"; the context fields are attached
    to the record via ``extra`` for structured handlers.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "toggle_follow", "update_times")
        outcome: Outcome description (e.g., "success", "not_owner")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields (entity IDs, counts, reasons)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
