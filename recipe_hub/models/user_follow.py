"""
UserFollow model - directed follow edge between two users.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer

from .base import Base


class UserFollow(Base):
    """
    Follow edge (follower_id -> followee_id).

    Presence of the row is the whole state of the relation; there are no
    counters to keep in step with it.
    """

    __tablename__ = "user_follows"

    follower_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    followee_id = Column(Integer, ForeignKey("users.id"), primary_key=True)

    __table_args__ = (
        CheckConstraint("follower_id != followee_id", name="ck_user_follow_not_self"),
        Index("idx_user_follow_followee", "followee_id"),
    )

    def __repr__(self) -> str:
        """String representation of follow edge."""
        return f"UserFollow({self.follower_id} -> {self.followee_id})"
