"""
Database models package.

This package contains all SQLAlchemy ORM models for the engine.
"""

from .base import Base, BaseModel
from .user import User
from .user_follow import UserFollow
from .recipe import Recipe, RecipeIngredient
from .review import Review, ReviewLike

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserFollow",
    "Recipe",
    "RecipeIngredient",
    "Review",
    "ReviewLike",
]
