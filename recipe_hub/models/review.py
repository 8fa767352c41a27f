"""
Review models.

This module contains:
- Review: A rating and text left by a user on a recipe
- ReviewLike: One user liking one review (composite key)
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from .base import Base, BaseModel
from recipe_hub.utils.datetime_utils import utc_now


class Review(BaseModel):
    """
    Review model.

    Attributes:
        recipe_id: Reviewed recipe
        author_id: Reviewing user
        rating: Integer rating 1-5
        text: Review body
        date_submitted: Creation timestamp
        date_modified: Last edit timestamp (equals date_submitted at creation)
    """

    __tablename__ = "reviews"

    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    text = Column(Text, nullable=True)
    date_submitted = Column(DateTime, nullable=True, default=utc_now)
    date_modified = Column(DateTime, nullable=True, default=utc_now)

    author = relationship("User", lazy="joined", innerjoin=True)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
        Index("idx_review_recipe", "recipe_id"),
        Index("idx_review_author", "author_id"),
    )

    def __repr__(self) -> str:
        """String representation of review."""
        return f"Review(id={self.id}, recipe_id={self.recipe_id}, rating={self.rating})"


class ReviewLike(Base):
    """A like on a review; unique per (review, user)."""

    __tablename__ = "review_likes"

    review_id = Column(Integer, ForeignKey("reviews.id"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)

    __table_args__ = (Index("idx_review_like_user", "user_id"),)

    def __repr__(self) -> str:
        """String representation of review like."""
        return f"ReviewLike(review_id={self.review_id}, user_id={self.user_id})"
