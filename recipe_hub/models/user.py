"""
User model for recipe authors and reviewers.

Follower and following counts are not columns: they are always derived from
the user_follows table so they can never drift from the edges themselves.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Integer, String

from .base import BaseModel


class User(BaseModel):
    """
    User model representing an account.

    Attributes:
        name: Display name (unique, non-empty)
        gender: "Male" or "Female"
        age: Age in whole years (positive)
        password_hash: Credential material produced by the credential hasher
        is_deleted: Soft-delete flag; deleted users keep their content
    """

    __tablename__ = "users"

    name = Column(String(255), nullable=False, unique=True)
    gender = Column(String(10), nullable=True)
    age = Column(Integer, nullable=True)
    password_hash = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)

    __table_args__ = (
        CheckConstraint("gender IN ('Male', 'Female')", name="ck_user_gender_valid"),
        CheckConstraint("age > 0", name="ck_user_age_positive"),
        Index("idx_user_name", "name"),
    )

    @property
    def is_active(self) -> bool:
        """True unless the account has been soft-deleted."""
        return not self.is_deleted

    def __repr__(self) -> str:
        """String representation of user."""
        return f"User(id={self.id}, name='{self.name}', is_deleted={self.is_deleted})"
