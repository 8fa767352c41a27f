"""
Social Graph Service - follow edges between users.

The follow relation is stored only as rows in user_follows. Follower and
following counts are derived from those rows on every read, so there is no
counter that can drift from the edges.

All functions accept an optional session parameter to support being called
from other service functions that need to maintain transactional atomicity.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recipe_hub.models import User, UserFollow
from recipe_hub.services.database import run_in_session
from recipe_hub.services.dto import AuthInfo
from recipe_hub.services.exceptions import AuthFailure
from recipe_hub.services.identity_service import require_active_user
from recipe_hub.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


# ============================================================================
# Mutations
# ============================================================================


def toggle_follow(
    auth: Optional[AuthInfo], followee_id: int, session: Optional[Session] = None
) -> bool:
    """
    Follow a user if not already following, otherwise unfollow.

    Args:
        auth: Acting user (the follower)
        followee_id: User to follow or unfollow
        session: Optional database session

    Returns:
        True if the actor now follows followee_id, False if not

    Raises:
        AuthFailure: If the actor is invalid or inactive, the followee is
            unknown or inactive, or the actor targets themselves
    """

    def _impl(sess: Session) -> bool:
        follower = require_active_user(auth, session=sess)

        if followee_id == follower.id:
            log_operation(
                logger, "toggle_follow", "self_follow", level=logging.WARNING, user_id=follower.id
            )
            raise AuthFailure("users cannot follow themselves")

        followee = sess.query(User).filter(User.id == followee_id).first()
        if followee is None or not followee.is_active:
            log_operation(
                logger,
                "toggle_follow",
                "followee_unavailable",
                level=logging.WARNING,
                follower_id=follower.id,
                followee_id=followee_id,
            )
            raise AuthFailure(f"user {followee_id} cannot be followed")

        edge = (
            sess.query(UserFollow)
            .filter(
                UserFollow.follower_id == follower.id,
                UserFollow.followee_id == followee_id,
            )
            .first()
        )
        if edge is not None:
            sess.delete(edge)
            sess.flush()
            log_operation(
                logger,
                "toggle_follow",
                "unfollowed",
                follower_id=follower.id,
                followee_id=followee_id,
            )
            return False

        try:
            with sess.begin_nested():
                sess.add(UserFollow(follower_id=follower.id, followee_id=followee_id))
        except IntegrityError:
            log_operation(
                logger,
                "toggle_follow",
                "duplicate_absorbed",
                level=logging.DEBUG,
                follower_id=follower.id,
                followee_id=followee_id,
            )
        log_operation(
            logger, "toggle_follow", "followed", follower_id=follower.id, followee_id=followee_id
        )
        return True

    return run_in_session(_impl, session, f"Failed to toggle follow of user {followee_id}")


def cascade_on_soft_delete(user_id: int, session: Session) -> int:
    """
    Remove every follow edge that has user_id as either endpoint.

    Runs inside the caller's transaction (the account deletion), so the flag
    flip and the edge removal commit together.

    Args:
        user_id: The user being soft-deleted
        session: The caller's session (required)

    Returns:
        Number of edges removed
    """
    removed = (
        session.query(UserFollow)
        .filter(or_(UserFollow.follower_id == user_id, UserFollow.followee_id == user_id))
        .delete(synchronize_session=False)
    )
    log_operation(logger, "cascade_on_soft_delete", "success", user_id=user_id, edges_removed=removed)
    return removed


# ============================================================================
# Derived reads
# ============================================================================


def count_followers(user_id: int, session: Optional[Session] = None) -> int:
    """Number of users following user_id."""

    def _impl(sess: Session) -> int:
        return (
            sess.query(func.count())
            .select_from(UserFollow)
            .filter(UserFollow.followee_id == user_id)
            .scalar()
        )

    return run_in_session(_impl, session, f"Failed to read follow edges of user {user_id}")


def count_following(user_id: int, session: Optional[Session] = None) -> int:
    """Number of users that user_id follows."""

    def _impl(sess: Session) -> int:
        return (
            sess.query(func.count())
            .select_from(UserFollow)
            .filter(UserFollow.follower_id == user_id)
            .scalar()
        )

    return run_in_session(_impl, session, f"Failed to read follow edges of user {user_id}")


def list_follower_ids(user_id: int, session: Optional[Session] = None) -> List[int]:
    """Ids of users following user_id, ascending."""

    def _impl(sess: Session) -> List[int]:
        rows = (
            sess.query(UserFollow.follower_id)
            .filter(UserFollow.followee_id == user_id)
            .order_by(UserFollow.follower_id)
            .all()
        )
        return [row[0] for row in rows]

    return run_in_session(_impl, session, f"Failed to read follow edges of user {user_id}")


def list_following_ids(user_id: int, session: Optional[Session] = None) -> List[int]:
    """Ids of users that user_id follows, ascending."""

    def _impl(sess: Session) -> List[int]:
        rows = (
            sess.query(UserFollow.followee_id)
            .filter(UserFollow.follower_id == user_id)
            .order_by(UserFollow.followee_id)
            .all()
        )
        return [row[0] for row in rows]

    return run_in_session(_impl, session, f"Failed to read follow edges of user {user_id}")
