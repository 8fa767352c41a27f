"""
Recipe models.

This module contains:
- Recipe: Main recipe model with timing, nutrition and rating aggregate
- RecipeIngredient: Set of ingredient parts per recipe (composite key)

aggregated_rating and review_count are maintained exclusively by the review
service's recompute step, inside the transaction of the triggering mutation.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base, BaseModel
from recipe_hub.utils.datetime_utils import utc_now


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        name: Recipe name (required)
        author_id: Owning user
        cook_time: ISO-8601 duration string as supplied
        prep_time: ISO-8601 duration string as supplied
        total_time: Canonical ISO-8601 string of cook + prep (derived)
        date_published: Publication timestamp (UTC)
        description: Free text
        category: Recipe category (exact-match filter key)
        calories ... protein_content: Nutrition values (nullable)
        servings: Number of servings
        recipe_yield: Free-text yield
        aggregated_rating: Two-decimal mean of review ratings, NULL if none
        review_count: Number of reviews
    """

    __tablename__ = "recipes"

    name = Column(String(500), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Durations
    cook_time = Column(String(50), nullable=True)
    prep_time = Column(String(50), nullable=True)
    total_time = Column(String(50), nullable=True)

    date_published = Column(DateTime, nullable=True, default=utc_now)
    description = Column(Text, nullable=True)
    category = Column(String(255), nullable=True)

    # Nutrition
    calories = Column(Float, nullable=True)
    fat_content = Column(Float, nullable=True)
    saturated_fat_content = Column(Float, nullable=True)
    cholesterol_content = Column(Float, nullable=True)
    sodium_content = Column(Float, nullable=True)
    carbohydrate_content = Column(Float, nullable=True)
    fiber_content = Column(Float, nullable=True)
    sugar_content = Column(Float, nullable=True)
    protein_content = Column(Float, nullable=True)
    servings = Column(Integer, nullable=True)
    recipe_yield = Column(String(100), nullable=True)

    # Derived rating aggregate
    aggregated_rating = Column(Numeric(3, 2), nullable=True)
    review_count = Column(Integer, nullable=False, default=0)

    author = relationship("User", lazy="joined", innerjoin=True)

    __table_args__ = (
        CheckConstraint(
            "aggregated_rating IS NULL OR (aggregated_rating >= 0 AND aggregated_rating <= 5)",
            name="ck_recipe_aggregated_rating_range",
        ),
        CheckConstraint("review_count >= 0", name="ck_recipe_review_count_non_negative"),
        Index("idx_recipe_author", "author_id"),
        Index("idx_recipe_category", "category"),
        Index("idx_recipe_date_published", "date_published"),
        Index("idx_recipe_calories", "calories"),
    )

    def __repr__(self) -> str:
        """String representation of recipe."""
        return f"Recipe(id={self.id}, name='{self.name}', category='{self.category}')"


class RecipeIngredient(Base):
    """
    One ingredient part of a recipe.

    The composite primary key makes the ingredient list a set: the same
    (recipe_id, ingredient_part) pair can be stored at most once.
    """

    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Integer, ForeignKey("recipes.id"), primary_key=True)
    ingredient_part = Column(String(500), primary_key=True)

    def __repr__(self) -> str:
        """String representation of recipe ingredient."""
        return f"RecipeIngredient(recipe_id={self.recipe_id}, part='{self.ingredient_part}')"
