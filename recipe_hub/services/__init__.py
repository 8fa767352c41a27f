"""Services package - Business logic layer for Recipe Hub.

This package contains all service modules that provide business logic
and database operations for the engine.

Architecture:
- Services: Stateless functions organized by domain (users, recipes, reviews, feed)
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before database operations

Service Modules:
- identity_service: Actor resolution and credential checks
- credential_service: Pluggable secret hashing (bcrypt by default)
- duration_converter: ISO-8601 duration parsing, addition and formatting
- social_graph_service: Follow edges and derived follow counts
- user_service: Registration, login, soft deletion, profiles
- recipe_service: Recipe catalog (create, lookup, search, timing, delete)
- review_service: Reviews, likes and the rating aggregate
- feed_service: Timeline of recipes by followed authors
- analytics_service: Ranking queries answered in SQL
- import_service: Bulk population of the core tables

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- logging_utils: Structured operation logging
"""

# Service modules
from . import (
    database,
    duration_converter,
    credential_service,
    identity_service,
    social_graph_service,
    user_service,
    recipe_service,
    review_service,
    feed_service,
    analytics_service,
    import_service,
)

# Exceptions
from .exceptions import (
    ServiceError,
    AuthFailure,
    InvalidArgument,
    ValidationError,
    InvalidDuration,
    RecipeNotFound,
    ReviewNotFound,
    DatabaseError,
)

# Database utilities
from .database import (
    get_session,
    session_scope,
    init_database,
    reset_database,
    close_connections,
)

__all__ = [
    # Modules
    "database",
    "duration_converter",
    "credential_service",
    "identity_service",
    "social_graph_service",
    "user_service",
    "recipe_service",
    "review_service",
    "feed_service",
    "analytics_service",
    "import_service",
    # Exceptions
    "ServiceError",
    "AuthFailure",
    "InvalidArgument",
    "ValidationError",
    "InvalidDuration",
    "RecipeNotFound",
    "ReviewNotFound",
    "DatabaseError",
    # Database
    "get_session",
    "session_scope",
    "init_database",
    "reset_database",
    "close_connections",
]
