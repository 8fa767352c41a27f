"""
Recipe Service - Business logic for the recipe catalog.

This service provides:
- Recipe creation with ingredient normalization and derived total time
- Lookup by id (None for unknown or non-positive ids)
- Filtered, sorted, paginated search
- Owner-only timing updates (all-or-nothing)
- Owner-only hard delete with an explicit ordered cascade

No cascade is delegated to the database engine: deleting a recipe removes
likes, then reviews, then ingredient rows, then the recipe, inside one
transaction.
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recipe_hub.models import Recipe, RecipeIngredient, Review, ReviewLike
from recipe_hub.services import duration_converter
from recipe_hub.services.database import run_in_session, session_scope
from recipe_hub.services.dto import AuthInfo, PageResult, RecipeRecord
from recipe_hub.services.dto_utils import to_float
from recipe_hub.services.exceptions import (
    AuthFailure,
    DatabaseError,
    InvalidArgument,
    RecipeNotFound,
    ServiceError,
    ValidationError,
)
from recipe_hub.services.identity_service import require_active_user
from recipe_hub.services.logging_utils import get_service_logger, log_operation
from recipe_hub.utils.constants import SORT_CALORIES_ASC, SORT_DATE_DESC, SORT_RATING_DESC
from recipe_hub.utils.datetime_utils import to_storage_utc, to_utc, utc_now
from recipe_hub.utils.validators import (
    has_text,
    is_positive_id,
    validate_required_string,
    validate_string_length,
)

logger = get_service_logger(__name__)

NUTRITION_FIELDS = (
    "calories",
    "fat_content",
    "saturated_fat_content",
    "cholesterol_content",
    "sodium_content",
    "carbohydrate_content",
    "fiber_content",
    "sugar_content",
    "protein_content",
)


# ============================================================================
# Helpers
# ============================================================================


def normalize_ingredient_parts(parts: Optional[Iterable[str]]) -> List[str]:
    """
    Strip ingredient parts, drop blanks and collapse exact duplicates.

    First-seen order is kept; read paths apply the case-insensitive sort.

    Examples:
        >>> normalize_ingredient_parts([" salt", "Salt", "", "salt "])
        ['salt', 'Salt']
    """
    result = []
    seen = set()
    for part in parts or []:
        if part is None:
            continue
        cleaned = str(part).strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        result.append(cleaned)
    return result


def _ingredient_order():
    return (func.lower(RecipeIngredient.ingredient_part), RecipeIngredient.ingredient_part)


def load_ingredient_parts(sess: Session, recipe_ids: List[int]) -> Dict[int, List[str]]:
    """Ingredient parts per recipe, each list in case-insensitive order."""
    parts: Dict[int, List[str]] = {recipe_id: [] for recipe_id in recipe_ids}
    if not recipe_ids:
        return parts
    rows = (
        sess.query(RecipeIngredient.recipe_id, RecipeIngredient.ingredient_part)
        .filter(RecipeIngredient.recipe_id.in_(recipe_ids))
        .order_by(RecipeIngredient.recipe_id, *_ingredient_order())
        .all()
    )
    for recipe_id, part in rows:
        parts[recipe_id].append(part)
    return parts


def to_recipe_record(recipe: Recipe, ingredient_parts: List[str]) -> RecipeRecord:
    """Copy a Recipe row into a RecipeRecord."""
    return RecipeRecord(
        recipe_id=recipe.id,
        name=recipe.name,
        author_id=recipe.author_id,
        author_name=recipe.author.name if recipe.author is not None else None,
        cook_time=recipe.cook_time,
        prep_time=recipe.prep_time,
        total_time=recipe.total_time,
        date_published=to_utc(recipe.date_published),
        description=recipe.description,
        category=recipe.category,
        ingredient_parts=list(ingredient_parts),
        aggregated_rating=to_float(recipe.aggregated_rating),
        review_count=recipe.review_count or 0,
        calories=recipe.calories,
        fat_content=recipe.fat_content,
        saturated_fat_content=recipe.saturated_fat_content,
        cholesterol_content=recipe.cholesterol_content,
        sodium_content=recipe.sodium_content,
        carbohydrate_content=recipe.carbohydrate_content,
        fiber_content=recipe.fiber_content,
        sugar_content=recipe.sugar_content,
        protein_content=recipe.protein_content,
        servings=recipe.servings,
        recipe_yield=recipe.recipe_yield,
    )


def _require_owner(recipe: Recipe, actor_id: int, operation: str) -> None:
    if recipe.author_id != actor_id:
        log_operation(
            logger,
            operation,
            "not_owner",
            level=logging.WARNING,
            recipe_id=recipe.id,
            actor_id=actor_id,
        )
        raise AuthFailure(f"only the author can modify recipe {recipe.id}")


# ============================================================================
# CRUD Operations
# ============================================================================


def create_recipe(
    recipe_data: Dict, auth: Optional[AuthInfo], session: Optional[Session] = None
) -> int:
    """
    Create a new recipe owned by the actor.

    Args:
        recipe_data: Dictionary with recipe fields:
            - name: str (required)
            - description, category, recipe_yield: str (optional)
            - cook_time, prep_time: ISO-8601 duration strings (optional)
            - date_published: datetime (optional, defaults to now)
            - calories ... protein_content: float (optional)
            - servings: int (optional)
            - ingredient_parts: list of str (optional)
            Any total_time or rating/count values are ignored.
        auth: Acting user (becomes the author)
        session: Optional database session

    Returns:
        The new recipe's id

    Raises:
        AuthFailure: If the actor is invalid or inactive
        ValidationError: If the name is missing or too long
        InvalidDuration: If cook_time or prep_time is invalid
        DatabaseError: If the database operation fails
    """
    recipe_data = recipe_data or {}

    errors = []
    for is_valid, message in (
        validate_required_string(recipe_data.get("name"), "Name"),
        validate_string_length(recipe_data.get("name"), max_length=500, field_name="Name"),
    ):
        if not is_valid:
            errors.append(message)

    def _impl(sess: Session) -> int:
        actor = require_active_user(auth, session=sess)
        if errors:
            raise ValidationError(errors)

        cook_time = duration_converter.normalize_duration(recipe_data.get("cook_time"))
        prep_time = duration_converter.normalize_duration(recipe_data.get("prep_time"))
        total_time = duration_converter.derive_total(cook_time, prep_time)

        recipe = Recipe(
            name=recipe_data["name"].strip(),
            author_id=actor.id,
            cook_time=cook_time,
            prep_time=prep_time,
            total_time=total_time,
            date_published=to_storage_utc(recipe_data.get("date_published") or utc_now()),
            description=recipe_data.get("description"),
            category=recipe_data.get("category"),
            servings=recipe_data.get("servings"),
            recipe_yield=recipe_data.get("recipe_yield"),
            aggregated_rating=None,
            review_count=0,
            **{field: recipe_data.get(field) for field in NUTRITION_FIELDS},
        )
        sess.add(recipe)
        sess.flush()

        parts = normalize_ingredient_parts(recipe_data.get("ingredient_parts"))
        for part in parts:
            sess.add(RecipeIngredient(recipe_id=recipe.id, ingredient_part=part))
        sess.flush()

        log_operation(
            logger,
            "create_recipe",
            "success",
            recipe_id=recipe.id,
            author_id=actor.id,
            ingredient_count=len(parts),
        )
        return recipe.id

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)


def get_recipe(recipe_id: int, session: Optional[Session] = None) -> Optional[RecipeRecord]:
    """
    Retrieve a recipe by id.

    Args:
        recipe_id: Recipe id
        session: Optional database session

    Returns:
        RecipeRecord with sorted ingredient parts, or None for a non-positive
        or unknown id
    """
    if not is_positive_id(recipe_id):
        return None

    def _impl(sess: Session) -> Optional[RecipeRecord]:
        recipe = sess.query(Recipe).filter(Recipe.id == recipe_id).first()
        if recipe is None:
            return None
        parts = load_ingredient_parts(sess, [recipe.id])[recipe.id]
        return to_recipe_record(recipe, parts)

    return run_in_session(_impl, session, f"Failed to load recipe {recipe_id}")


def get_recipe_name(recipe_id: int, session: Optional[Session] = None) -> Optional[str]:
    """Return a recipe's name, or None if the id is unknown."""
    if not is_positive_id(recipe_id):
        return None

    def _impl(sess: Session) -> Optional[str]:
        row = sess.query(Recipe.name).filter(Recipe.id == recipe_id).first()
        return row[0] if row is not None else None

    return run_in_session(_impl, session, f"Failed to load recipe {recipe_id}")


# ============================================================================
# Search
# ============================================================================


def _search_order(sort: Optional[str]):
    if sort == SORT_RATING_DESC:
        return (
            Recipe.aggregated_rating.desc().nulls_last(),
            Recipe.date_published.desc().nulls_last(),
            Recipe.id.asc(),
        )
    if sort == SORT_DATE_DESC:
        return (Recipe.date_published.desc().nulls_last(), Recipe.id.asc())
    if sort == SORT_CALORIES_ASC:
        return (Recipe.calories.asc().nulls_last(), Recipe.id.asc())
    return (Recipe.id.asc(),)


def search_recipes(
    keyword: Optional[str],
    category: Optional[str],
    min_rating: Optional[float],
    page: Optional[int],
    size: Optional[int],
    sort: Optional[str] = None,
    session: Optional[Session] = None,
) -> PageResult[RecipeRecord]:
    """
    Search recipes with filtering, sorting and pagination.

    Args:
        keyword: Case-insensitive substring of name OR description (blank
            means no filter; LIKE wildcards are matched literally)
        category: Exact category (blank means no filter)
        min_rating: Inclusive lower bound on aggregated rating; unrated
            recipes never match
        page: 1-based page number
        size: Page size (> 0)
        sort: "rating_desc", "date_desc", "calories_asc"; anything else
            orders by ascending id
        session: Optional database session

    Returns:
        PageResult of RecipeRecord; total counts the whole filtered set

    Raises:
        InvalidArgument: If page or size is missing or out of range
    """
    if page is None or size is None or page < 1 or size <= 0:
        raise InvalidArgument(f"invalid pagination page={page!r} size={size!r}")

    filters = []
    if has_text(keyword):
        term = keyword.strip()
        filters.append(
            Recipe.name.icontains(term, autoescape=True)
            | Recipe.description.icontains(term, autoescape=True)
        )
    if has_text(category):
        filters.append(Recipe.category == category)
    if min_rating is not None:
        filters.append(Recipe.aggregated_rating >= min_rating)

    def _impl(sess: Session) -> PageResult[RecipeRecord]:
        total = sess.query(func.count(Recipe.id)).filter(*filters).scalar()
        recipes = (
            sess.query(Recipe)
            .filter(*filters)
            .order_by(*_search_order(sort))
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        parts = load_ingredient_parts(sess, [recipe.id for recipe in recipes])
        items = [to_recipe_record(recipe, parts[recipe.id]) for recipe in recipes]
        log_operation(
            logger,
            "search_recipes",
            "success",
            level=logging.DEBUG,
            total=total,
            page=page,
            size=size,
            sort=sort,
        )
        return PageResult(items=items, page=page, size=size, total=total)

    return run_in_session(_impl, session, "Failed to search recipes")


# ============================================================================
# Updates
# ============================================================================


def update_times(
    auth: Optional[AuthInfo],
    recipe_id: int,
    cook_time: Optional[str] = None,
    prep_time: Optional[str] = None,
    session: Optional[Session] = None,
) -> RecipeRecord:
    """
    Update cook and/or prep time and recompute the total.

    Both inputs are validated before anything is written, so an invalid
    string leaves all three timing fields unchanged.

    Args:
        auth: Acting user; must own the recipe
        recipe_id: Recipe to update
        cook_time: New cook duration, or None to keep the current value
        prep_time: New prep duration, or None to keep the current value
        session: Optional database session

    Returns:
        The updated recipe

    Raises:
        AuthFailure: If the actor is invalid, inactive, or not the owner
        RecipeNotFound: If the recipe does not exist
        InvalidDuration: If either duration string is invalid
    """

    def _impl(sess: Session) -> RecipeRecord:
        actor = require_active_user(auth, session=sess)
        recipe = sess.query(Recipe).filter(Recipe.id == recipe_id).first()
        if recipe is None:
            raise RecipeNotFound(recipe_id)
        _require_owner(recipe, actor.id, "update_times")

        new_cook = (
            duration_converter.normalize_duration(cook_time)
            if cook_time is not None
            else recipe.cook_time
        )
        new_prep = (
            duration_converter.normalize_duration(prep_time)
            if prep_time is not None
            else recipe.prep_time
        )
        new_total = duration_converter.derive_total(new_cook, new_prep)

        recipe.cook_time = new_cook
        recipe.prep_time = new_prep
        recipe.total_time = new_total
        sess.flush()

        log_operation(
            logger, "update_times", "success", recipe_id=recipe.id, total_time=new_total
        )
        parts = load_ingredient_parts(sess, [recipe.id])[recipe.id]
        return to_recipe_record(recipe, parts)

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update times of recipe {recipe_id}", e)


# ============================================================================
# Delete
# ============================================================================


def delete_recipe(
    recipe_id: int, auth: Optional[AuthInfo], session: Optional[Session] = None
) -> bool:
    """
    Hard-delete a recipe and everything that depends on it.

    Order: likes of the recipe's reviews, reviews, ingredient rows, recipe.

    Args:
        recipe_id: Recipe id
        auth: Acting user; must own the recipe
        session: Optional database session

    Returns:
        True if the recipe was deleted, False if no such recipe existed

    Raises:
        AuthFailure: If the actor is invalid, inactive, or not the owner
        DatabaseError: If the database operation fails
    """

    def _impl(sess: Session) -> bool:
        actor = require_active_user(auth, session=sess)
        recipe = sess.query(Recipe).filter(Recipe.id == recipe_id).first()
        if recipe is None:
            log_operation(
                logger, "delete_recipe", "not_found", level=logging.DEBUG, recipe_id=recipe_id
            )
            return False
        _require_owner(recipe, actor.id, "delete_recipe")

        review_ids = sess.query(Review.id).filter(Review.recipe_id == recipe_id)
        likes_removed = (
            sess.query(ReviewLike)
            .filter(ReviewLike.review_id.in_(review_ids.scalar_subquery()))
            .delete(synchronize_session=False)
        )
        reviews_removed = (
            sess.query(Review)
            .filter(Review.recipe_id == recipe_id)
            .delete(synchronize_session=False)
        )
        ingredients_removed = (
            sess.query(RecipeIngredient)
            .filter(RecipeIngredient.recipe_id == recipe_id)
            .delete(synchronize_session=False)
        )
        sess.delete(recipe)
        sess.flush()

        log_operation(
            logger,
            "delete_recipe",
            "success",
            recipe_id=recipe_id,
            likes_removed=likes_removed,
            reviews_removed=reviews_removed,
            ingredients_removed=ingredients_removed,
        )
        return True

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete recipe {recipe_id}", e)
