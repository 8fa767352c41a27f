"""
Review Service - reviews, likes and the recipe rating aggregate.

Every review mutation runs in one transaction that:
1. Locks the owning recipe row (SELECT ... FOR UPDATE where supported)
2. Performs the review write
3. Recomputes aggregated_rating and review_count from the live review rows

A reader therefore never sees a review row without the matching aggregate.
The aggregate is never incremented or decremented; it is always recomputed:

    review_count      = COUNT(reviews of the recipe)
    aggregated_rating = round_half_up(SUM(rating) / COUNT, 2), NULL if none

Likes are rows in review_likes; like counts are derived on read.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recipe_hub.models import Recipe, Review, ReviewLike
from recipe_hub.services.database import run_in_session
from recipe_hub.services.dto import AuthInfo, PageResult, RecipeRecord, ReviewRecord
from recipe_hub.services.dto_utils import mean_rating
from recipe_hub.services.exceptions import (
    AuthFailure,
    InvalidArgument,
    RecipeNotFound,
    ReviewNotFound,
)
from recipe_hub.services.identity_service import require_active_user
from recipe_hub.services.logging_utils import get_service_logger, log_operation
from recipe_hub.services.recipe_service import load_ingredient_parts, to_recipe_record
from recipe_hub.utils.constants import SORT_DATE_DESC, SORT_LIKES_DESC
from recipe_hub.utils.datetime_utils import to_utc, utc_now
from recipe_hub.utils.validators import validate_rating

logger = get_service_logger(__name__)


# ============================================================================
# Aggregate maintenance
# ============================================================================


def _lock_recipe(sess: Session, recipe_id: int) -> int:
    """Take the recipe row lock for the rest of the transaction."""
    row = sess.query(Recipe.id).filter(Recipe.id == recipe_id).with_for_update().first()
    if row is None:
        raise RecipeNotFound(recipe_id)
    return row[0]


def _refresh_aggregate(sess: Session, recipe_id: int) -> Recipe:
    """Recompute review_count and aggregated_rating from the review rows."""
    sess.flush()
    count, rating_sum = (
        sess.query(func.count(Review.id), func.coalesce(func.sum(Review.rating), 0))
        .filter(Review.recipe_id == recipe_id)
        .one()
    )
    recipe = sess.get(Recipe, recipe_id)
    recipe.review_count = count
    recipe.aggregated_rating = mean_rating(rating_sum, count)
    sess.flush()
    return recipe


def _require_rating(rating) -> None:
    is_valid, message = validate_rating(rating)
    if not is_valid:
        raise InvalidArgument(message)


def _load_review_for_author(
    sess: Session, auth: Optional[AuthInfo], recipe_id: int, review_id: int, operation: str
) -> Review:
    """Check order: active actor, review exists, review on recipe, actor is author."""
    actor = require_active_user(auth, session=sess)

    review = sess.query(Review).filter(Review.id == review_id).first()
    if review is None:
        raise ReviewNotFound(review_id)
    if review.recipe_id != recipe_id:
        raise InvalidArgument(f"Review {review_id} does not belong to recipe {recipe_id}")
    if review.author_id != actor.id:
        log_operation(
            logger,
            operation,
            "not_author",
            level=logging.WARNING,
            review_id=review_id,
            actor_id=actor.id,
        )
        raise AuthFailure(f"only the author can modify review {review_id}")
    return review


# ============================================================================
# Review mutations
# ============================================================================


def add_review(
    auth: Optional[AuthInfo],
    recipe_id: int,
    rating: int,
    text: Optional[str],
    session: Optional[Session] = None,
) -> int:
    """
    Add a review and recompute the recipe aggregate.

    Args:
        auth: Acting user
        recipe_id: Reviewed recipe
        rating: Integer rating 1-5
        text: Review body
        session: Optional database session

    Returns:
        The new review's id

    Raises:
        AuthFailure: If the actor is invalid or inactive
        RecipeNotFound: If the recipe does not exist
        InvalidArgument: If the rating is out of range
    """

    def _impl(sess: Session) -> int:
        actor = require_active_user(auth, session=sess)
        _lock_recipe(sess, recipe_id)
        _require_rating(rating)

        now = utc_now()
        review = Review(
            recipe_id=recipe_id,
            author_id=actor.id,
            rating=rating,
            text=text,
            date_submitted=now,
            date_modified=now,
        )
        sess.add(review)
        sess.flush()

        recipe = _refresh_aggregate(sess, recipe_id)
        log_operation(
            logger,
            "add_review",
            "success",
            review_id=review.id,
            recipe_id=recipe_id,
            review_count=recipe.review_count,
        )
        return review.id

    return run_in_session(_impl, session, f"Failed to add review to recipe {recipe_id}")


def edit_review(
    auth: Optional[AuthInfo],
    recipe_id: int,
    review_id: int,
    rating: int,
    text: Optional[str],
    session: Optional[Session] = None,
) -> None:
    """
    Edit the actor's own review and recompute the recipe aggregate.

    Raises:
        AuthFailure: If the actor is invalid, inactive, or not the author
        InvalidArgument: If the review is unknown, belongs to another
            recipe, or the rating is out of range
    """

    def _impl(sess: Session) -> None:
        review = _load_review_for_author(sess, auth, recipe_id, review_id, "edit_review")
        _require_rating(rating)
        _lock_recipe(sess, recipe_id)

        review.rating = rating
        review.text = text
        review.date_modified = utc_now()
        sess.flush()

        _refresh_aggregate(sess, recipe_id)
        log_operation(logger, "edit_review", "success", review_id=review_id, recipe_id=recipe_id)

    return run_in_session(_impl, session, f"Failed to edit review {review_id}")


def delete_review(
    auth: Optional[AuthInfo],
    recipe_id: int,
    review_id: int,
    session: Optional[Session] = None,
) -> None:
    """
    Delete the actor's own review (and its likes) and recompute the aggregate.

    Raises:
        AuthFailure: If the actor is invalid, inactive, or not the author
        InvalidArgument: If the review is unknown or belongs to another recipe
    """

    def _impl(sess: Session) -> None:
        review = _load_review_for_author(sess, auth, recipe_id, review_id, "delete_review")
        _lock_recipe(sess, recipe_id)

        likes_removed = (
            sess.query(ReviewLike)
            .filter(ReviewLike.review_id == review_id)
            .delete(synchronize_session=False)
        )
        sess.delete(review)
        sess.flush()

        recipe = _refresh_aggregate(sess, recipe_id)
        log_operation(
            logger,
            "delete_review",
            "success",
            review_id=review_id,
            recipe_id=recipe_id,
            likes_removed=likes_removed,
            review_count=recipe.review_count,
        )

    return run_in_session(_impl, session, f"Failed to delete review {review_id}")


def refresh_recipe_aggregate(recipe_id: int, session: Optional[Session] = None) -> RecipeRecord:
    """
    Recompute a recipe's aggregate from its reviews.

    Args:
        recipe_id: Recipe id
        session: Optional database session

    Returns:
        The refreshed recipe

    Raises:
        RecipeNotFound: If the recipe does not exist
    """

    def _impl(sess: Session) -> RecipeRecord:
        _lock_recipe(sess, recipe_id)
        recipe = _refresh_aggregate(sess, recipe_id)
        log_operation(
            logger,
            "refresh_recipe_aggregate",
            "success",
            level=logging.DEBUG,
            recipe_id=recipe_id,
            review_count=recipe.review_count,
        )
        return to_recipe_record(recipe, load_ingredient_parts(sess, [recipe_id])[recipe_id])

    return run_in_session(_impl, session, f"Failed to refresh aggregate of recipe {recipe_id}")


# ============================================================================
# Likes
# ============================================================================


def _like_count(sess: Session, review_id: int) -> int:
    return (
        sess.query(func.count())
        .select_from(ReviewLike)
        .filter(ReviewLike.review_id == review_id)
        .scalar()
    )


def like_review(
    auth: Optional[AuthInfo], review_id: int, session: Optional[Session] = None
) -> int:
    """
    Like a review. Repeating a like is a no-op.

    Returns:
        The review's like count after the operation

    Raises:
        AuthFailure: If the actor is invalid or inactive, or likes their own review
        ReviewNotFound: If the review does not exist
    """

    def _impl(sess: Session) -> int:
        actor = require_active_user(auth, session=sess)
        review = sess.query(Review).filter(Review.id == review_id).first()
        if review is None:
            raise ReviewNotFound(review_id)
        if review.author_id == actor.id:
            log_operation(
                logger, "like_review", "self_like", level=logging.WARNING, review_id=review_id
            )
            raise AuthFailure("users cannot like their own review")

        exists = (
            sess.query(ReviewLike)
            .filter(ReviewLike.review_id == review_id, ReviewLike.user_id == actor.id)
            .first()
        )
        if exists is None:
            try:
                with sess.begin_nested():
                    sess.add(ReviewLike(review_id=review_id, user_id=actor.id))
            except IntegrityError:
                log_operation(
                    logger,
                    "like_review",
                    "duplicate_absorbed",
                    level=logging.DEBUG,
                    review_id=review_id,
                    user_id=actor.id,
                )

        count = _like_count(sess, review_id)
        log_operation(logger, "like_review", "success", review_id=review_id, likes=count)
        return count

    return run_in_session(_impl, session, f"Failed to like review {review_id}")


def unlike_review(
    auth: Optional[AuthInfo], review_id: int, session: Optional[Session] = None
) -> int:
    """
    Remove the actor's like from a review. Removing an absent like is a no-op.

    Returns:
        The review's like count after the operation

    Raises:
        AuthFailure: If the actor is invalid or inactive
        ReviewNotFound: If the review does not exist
    """

    def _impl(sess: Session) -> int:
        actor = require_active_user(auth, session=sess)
        if sess.query(Review.id).filter(Review.id == review_id).first() is None:
            raise ReviewNotFound(review_id)

        removed = (
            sess.query(ReviewLike)
            .filter(ReviewLike.review_id == review_id, ReviewLike.user_id == actor.id)
            .delete(synchronize_session=False)
        )
        count = _like_count(sess, review_id)
        log_operation(
            logger,
            "unlike_review",
            "success" if removed else "not_liked",
            review_id=review_id,
            likes=count,
        )
        return count

    return run_in_session(_impl, session, f"Failed to unlike review {review_id}")


# ============================================================================
# Listing
# ============================================================================


def _load_likers(sess: Session, review_ids: List[int]) -> Dict[int, List[int]]:
    likers: Dict[int, List[int]] = {review_id: [] for review_id in review_ids}
    if not review_ids:
        return likers
    rows = (
        sess.query(ReviewLike.review_id, ReviewLike.user_id)
        .filter(ReviewLike.review_id.in_(review_ids))
        .order_by(ReviewLike.review_id, ReviewLike.user_id)
        .all()
    )
    for review_id, user_id in rows:
        likers[review_id].append(user_id)
    return likers


def list_reviews(
    recipe_id: int,
    page: Optional[int],
    size: Optional[int],
    sort: Optional[str] = None,
    session: Optional[Session] = None,
) -> PageResult[ReviewRecord]:
    """
    List a recipe's reviews.

    Args:
        recipe_id: Recipe id (unknown ids yield an empty page)
        page: 1-based page number
        size: Page size (> 0)
        sort: "date_desc" (last modified first), "likes_desc" (most liked
            first); anything else orders by ascending id. Ties break by id.
        session: Optional database session

    Returns:
        PageResult of ReviewRecord, each with its liker ids

    Raises:
        InvalidArgument: If page or size is missing or out of range
    """
    if page is None or size is None or page < 1 or size <= 0:
        raise InvalidArgument(f"invalid pagination page={page!r} size={size!r}")

    def _impl(sess: Session) -> PageResult[ReviewRecord]:
        total = (
            sess.query(func.count(Review.id)).filter(Review.recipe_id == recipe_id).scalar()
        )
        query = sess.query(Review).filter(Review.recipe_id == recipe_id)
        if sort == SORT_DATE_DESC:
            query = query.order_by(Review.date_modified.desc().nulls_last(), Review.id.asc())
        elif sort == SORT_LIKES_DESC:
            like_counts = (
                sess.query(ReviewLike.review_id, func.count().label("like_count"))
                .group_by(ReviewLike.review_id)
                .subquery()
            )
            query = query.outerjoin(like_counts, like_counts.c.review_id == Review.id).order_by(
                func.coalesce(like_counts.c.like_count, 0).desc(), Review.id.asc()
            )
        else:
            query = query.order_by(Review.id.asc())

        reviews = query.offset((page - 1) * size).limit(size).all()
        likers = _load_likers(sess, [review.id for review in reviews])
        items = [
            ReviewRecord(
                review_id=review.id,
                recipe_id=review.recipe_id,
                author_id=review.author_id,
                author_name=review.author.name if review.author is not None else None,
                rating=review.rating,
                text=review.text,
                date_submitted=to_utc(review.date_submitted),
                date_modified=to_utc(review.date_modified),
                likes=likers[review.id],
            )
            for review in reviews
        ]
        return PageResult(items=items, page=page, size=size, total=total)

    return run_in_session(_impl, session, f"Failed to list reviews of recipe {recipe_id}")
