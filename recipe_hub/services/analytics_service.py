"""
Analytics Service - ranking queries answered inside the database.

Each query is one SQL statement with deterministic tie-breaking; nothing
loads a full table into memory and nothing is cached.

Queries:
- closest_calorie_pair(): adjacent pairs in (calories, id) order via LEAD
- top_recipes_by_ingredient_count(): GROUP BY over recipe_ingredients
- highest_follow_ratio(): follower/following ratio derived from user_follows
"""

import logging
from typing import List, Optional

from sqlalchemy import Float, case, cast, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recipe_hub.models import Recipe, RecipeIngredient, User, UserFollow
from recipe_hub.services.database import session_scope
from recipe_hub.services.dto import CaloriePair, FollowRatio, IngredientComplexity
from recipe_hub.services.exceptions import DatabaseError
from recipe_hub.services.logging_utils import get_service_logger, log_operation
from recipe_hub.utils.constants import TOP_COMPLEX_RECIPES_LIMIT

logger = get_service_logger(__name__)


def closest_calorie_pair(session: Optional[Session] = None) -> Optional[CaloriePair]:
    """
    Find the two recipes whose calorie values are closest.

    Recipes are sorted by (calories, id); the minimal difference always
    occurs between neighbours in that order, so only adjacent pairs are
    compared. Ties on difference break by smaller lower id, then smaller
    higher id. Recipes without calories are ignored.

    Returns:
        CaloriePair (recipe_a is the smaller id), or None with fewer than
        two eligible recipes
    """
    window_order = (Recipe.calories, Recipe.id)
    ordered = (
        select(
            Recipe.id.label("recipe_id"),
            Recipe.calories.label("calories"),
            func.lead(Recipe.id).over(order_by=window_order).label("next_id"),
            func.lead(Recipe.calories).over(order_by=window_order).label("next_calories"),
        )
        .where(Recipe.calories.isnot(None))
        .subquery()
    )
    difference = func.abs(ordered.c.next_calories - ordered.c.calories)
    lower_id = case(
        (ordered.c.recipe_id < ordered.c.next_id, ordered.c.recipe_id), else_=ordered.c.next_id
    )
    higher_id = case(
        (ordered.c.recipe_id < ordered.c.next_id, ordered.c.next_id), else_=ordered.c.recipe_id
    )
    stmt = (
        select(
            ordered.c.recipe_id,
            ordered.c.calories,
            ordered.c.next_id,
            ordered.c.next_calories,
            difference.label("difference"),
        )
        .where(ordered.c.next_id.isnot(None))
        .order_by(difference, lower_id, higher_id)
        .limit(1)
    )

    def _impl(sess: Session) -> Optional[CaloriePair]:
        row = sess.execute(stmt).first()
        if row is None:
            return None
        recipe_id, calories, next_id, next_calories, diff = row
        if recipe_id > next_id:
            recipe_id, next_id = next_id, recipe_id
            calories, next_calories = next_calories, calories
        return CaloriePair(
            recipe_a=recipe_id,
            recipe_b=next_id,
            calories_a=calories,
            calories_b=next_calories,
            difference=float(diff),
        )

    return _query(_impl, session, "closest_calorie_pair")


def top_recipes_by_ingredient_count(
    limit: int = TOP_COMPLEX_RECIPES_LIMIT, session: Optional[Session] = None
) -> List[IngredientComplexity]:
    """
    Recipes with the most distinct ingredient parts.

    Ordered by count desc, then id asc. Recipes with no ingredient rows are
    excluded.

    Args:
        limit: Maximum number of results (default 3)
        session: Optional database session
    """
    ingredient_count = func.count(func.distinct(RecipeIngredient.ingredient_part))
    stmt = (
        select(Recipe.id, Recipe.name, ingredient_count.label("ingredient_count"))
        .join(RecipeIngredient, RecipeIngredient.recipe_id == Recipe.id)
        .group_by(Recipe.id, Recipe.name)
        .order_by(ingredient_count.desc(), Recipe.id.asc())
        .limit(limit)
    )

    def _impl(sess: Session) -> List[IngredientComplexity]:
        return [
            IngredientComplexity(recipe_id=recipe_id, name=name, ingredient_count=count)
            for recipe_id, name, count in sess.execute(stmt).all()
        ]

    return _query(_impl, session, "top_recipes_by_ingredient_count")


def highest_follow_ratio(session: Optional[Session] = None) -> Optional[FollowRatio]:
    """
    The active user with the highest followers/following ratio.

    Only users following at least one user are eligible. Both counts come
    from the follow edges. Ties break by smallest id.

    Returns:
        FollowRatio, or None if no user is eligible
    """
    follower_counts = (
        select(UserFollow.followee_id.label("user_id"), func.count().label("followers"))
        .group_by(UserFollow.followee_id)
        .subquery()
    )
    following_counts = (
        select(UserFollow.follower_id.label("user_id"), func.count().label("following"))
        .group_by(UserFollow.follower_id)
        .subquery()
    )
    ratio = cast(func.coalesce(follower_counts.c.followers, 0), Float) / cast(
        following_counts.c.following, Float
    )
    stmt = (
        select(User.id, User.name, ratio.label("ratio"))
        .join(following_counts, following_counts.c.user_id == User.id)
        .outerjoin(follower_counts, follower_counts.c.user_id == User.id)
        .where(User.is_deleted == False)  # noqa: E712
        .where(following_counts.c.following > 0)
        .order_by(ratio.desc(), User.id.asc())
        .limit(1)
    )

    def _impl(sess: Session) -> Optional[FollowRatio]:
        row = sess.execute(stmt).first()
        if row is None:
            return None
        user_id, user_name, value = row
        return FollowRatio(author_id=user_id, author_name=user_name, ratio=float(value))

    return _query(_impl, session, "highest_follow_ratio")


def _query(work, session: Optional[Session], operation: str):
    try:
        if session is not None:
            result = work(session)
        else:
            with session_scope() as sess:
                result = work(sess)
    except SQLAlchemyError as e:
        log_operation(logger, operation, "failed", level=logging.ERROR, error=str(e))
        raise DatabaseError(f"{operation} failed", e)

    log_operation(
        logger, operation, "empty" if not result else "success", level=logging.DEBUG
    )
    return result
