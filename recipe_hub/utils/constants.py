"""
Constants for the Recipe Hub engine.

This module defines all system-wide constants including:
- Application metadata
- User profile enumerations
- Rating and pagination bounds
- Sort keys accepted by list/search operations
- Bulk import tuning
"""

from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Recipe Hub"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"
DATABASE_FILENAME = "recipe_hub.db"

# ============================================================================
# Users
# ============================================================================

GENDER_MALE = "Male"
GENDER_FEMALE = "Female"
VALID_GENDERS: List[str] = [GENDER_MALE, GENDER_FEMALE]

MAX_NAME_LENGTH = 255

# bcrypt only accepts secrets up to 72 bytes
MAX_SECRET_BYTES = 72

# ============================================================================
# Reviews
# ============================================================================

MIN_RATING = 1
MAX_RATING = 5

# Aggregated rating is stored with two decimal places
RATING_DECIMAL_PLACES = 2

# ============================================================================
# Pagination
# ============================================================================

FEED_MIN_PAGE_SIZE = 1
FEED_MAX_PAGE_SIZE = 200

# ============================================================================
# Sort Keys
# ============================================================================

SORT_RATING_DESC = "rating_desc"
SORT_DATE_DESC = "date_desc"
SORT_CALORIES_ASC = "calories_asc"
SORT_LIKES_DESC = "likes_desc"

RECIPE_SORT_KEYS: List[str] = [SORT_RATING_DESC, SORT_DATE_DESC, SORT_CALORIES_ASC]
REVIEW_SORT_KEYS: List[str] = [SORT_DATE_DESC, SORT_LIKES_DESC]

# ============================================================================
# Analytics
# ============================================================================

TOP_COMPLEX_RECIPES_LIMIT = 3

# ============================================================================
# Bulk Import
# ============================================================================

IMPORT_BATCH_SIZE = 2000

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_POSITIVE = "Must be a positive integer"
ERROR_INVALID_GENDER = f"Must be one of: {', '.join(VALID_GENDERS)}"
ERROR_INVALID_RATING = f"Must be an integer between {MIN_RATING} and {MAX_RATING}"
ERROR_INVALID_SECRET = f"Must be text of at most {MAX_SECRET_BYTES} bytes (UTF-8)"
