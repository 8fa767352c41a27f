"""
Import Service - bulk population of the core tables.

import_data() takes already-parsed record sets and inserts them in one
transaction, in dependency order:

    users -> recipes -> ingredient parts -> reviews -> review likes -> follow edges

Rules:
- Rows whose key already exists are skipped, so re-running an import is a no-op
- Rows referencing an unknown parent (author, recipe, review, user) are skipped
  with a warning
- Self-follows, self-likes and follow edges touching soft-deleted users are skipped
- Secrets are hashed with the active credential hasher
- Imported counters (followers/following, review_count, aggregated_rating,
  total_time) are ignored; totals are derived and every touched recipe's
  aggregate is recomputed at the end
- Inserts go out in batches of IMPORT_BATCH_SIZE
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import func, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recipe_hub.models import Recipe, RecipeIngredient, Review, ReviewLike, User, UserFollow
from recipe_hub.services import duration_converter
from recipe_hub.services.credential_service import hash_secret
from recipe_hub.services.database import session_scope
from recipe_hub.services.dto import RecipeImportRecord, ReviewImportRecord, UserImportRecord
from recipe_hub.services.dto_utils import mean_rating
from recipe_hub.services.exceptions import DatabaseError, InvalidDuration
from recipe_hub.services.logging_utils import get_service_logger, log_operation
from recipe_hub.services.recipe_service import NUTRITION_FIELDS, normalize_ingredient_parts
from recipe_hub.utils.constants import IMPORT_BATCH_SIZE
from recipe_hub.utils.datetime_utils import to_storage_utc, utc_now
from recipe_hub.utils.validators import (
    has_text,
    validate_gender,
    validate_positive_int,
    validate_rating,
    validate_secret,
)

logger = get_service_logger(__name__)


# ============================================================================
# Result tracking
# ============================================================================


class ImportResult:
    """Result of an import operation with per-entity tracking."""

    def __init__(self):
        self.total_records = 0
        self.successful = 0
        self.skipped = 0
        self.failed = 0
        self.errors = []
        self.warnings = []
        self.entity_counts: Dict[str, Dict[str, int]] = {}
        self.recomputed_recipes = 0

    def add_success(self, entity_type: str, count: int = 1):
        """Record successfully imported rows."""
        self.successful += count
        self.total_records += count
        self._ensure_entity(entity_type)
        self.entity_counts[entity_type]["imported"] += count

    def add_skip(self, record_type: str, record_name: str, reason: str):
        """Record a skipped row (already present or unresolvable)."""
        self.skipped += 1
        self.total_records += 1
        self._ensure_entity(record_type)
        self.entity_counts[record_type]["skipped"] += 1
        self.warnings.append(
            {
                "record_type": record_type,
                "record_name": record_name,
                "warning_type": "skipped",
                "message": reason,
            }
        )

    def add_error(self, record_type: str, record_name: str, error: str):
        """Record a row rejected for invalid data."""
        self.failed += 1
        self.total_records += 1
        self._ensure_entity(record_type)
        self.entity_counts[record_type]["errors"] += 1
        self.errors.append(
            {
                "record_type": record_type,
                "record_name": record_name,
                "error_type": "import_error",
                "message": error,
            }
        )

    def add_warning(self, record_type: str, record_name: str, message: str):
        """Record a non-fatal issue on an imported row."""
        self.warnings.append(
            {
                "record_type": record_type,
                "record_name": record_name,
                "warning_type": "warning",
                "message": message,
            }
        )

    def imported(self, entity_type: str) -> int:
        """Number of imported rows of an entity type."""
        return self.entity_counts.get(entity_type, {}).get("imported", 0)

    def skipped_count(self, entity_type: str) -> int:
        """Number of skipped rows of an entity type."""
        return self.entity_counts.get(entity_type, {}).get("skipped", 0)

    def _ensure_entity(self, entity_type: str):
        if entity_type not in self.entity_counts:
            self.entity_counts[entity_type] = {"imported": 0, "skipped": 0, "errors": 0}

    def get_summary(self) -> str:
        """Get a summary string of the import results."""
        lines = ["=" * 60, "Import Summary", "=" * 60]

        for entity, counts in self.entity_counts.items():
            parts = []
            if counts["imported"] > 0:
                parts.append(f"{counts['imported']} imported")
            if counts["skipped"] > 0:
                parts.append(f"{counts['skipped']} skipped")
            if counts["errors"] > 0:
                parts.append(f"{counts['errors']} errors")
            if parts:
                lines.append(f"  {entity}: {', '.join(parts)}")
        if self.entity_counts:
            lines.append("")

        lines.extend(
            [
                f"Total Records: {self.total_records}",
                f"Successful:    {self.successful}",
                f"Skipped:       {self.skipped}",
                f"Failed:        {self.failed}",
                f"Recomputed:    {self.recomputed_recipes} recipe aggregates",
            ]
        )

        if self.errors:
            lines.append("\nErrors:")
            for error in self.errors:
                lines.append(f"  - {error['record_type']}: {error['record_name']}")
                lines.append(f"    {error['message']}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ============================================================================
# Helpers
# ============================================================================


def _chunks(items: Sequence, size: int = IMPORT_BATCH_SIZE) -> Iterable[Sequence]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _existing_ids(sess: Session, column, ids: Iterable[int]) -> Set[int]:
    """Subset of ids already present in the column, queried batch by batch."""
    found: Set[int] = set()
    unique_ids = list(dict.fromkeys(ids))
    for batch in _chunks(unique_ids):
        found.update(row[0] for row in sess.query(column).filter(column.in_(batch)).all())
    return found


def _insert_rows(sess: Session, model, rows: List[Dict]) -> None:
    for batch in _chunks(rows):
        sess.execute(insert(model), list(batch))


# ============================================================================
# Per-entity import steps
# ============================================================================


def _import_users(sess: Session, users: Sequence[UserImportRecord], result: ImportResult) -> None:
    existing = _existing_ids(sess, User.id, (u.author_id for u in users))
    taken_names = set()
    for batch in _chunks([u.author_name for u in users if has_text(u.author_name)]):
        taken_names.update(row[0] for row in sess.query(User.name).filter(User.name.in_(batch)))

    now = utc_now()
    rows = []
    for user in users:
        label = str(user.author_id)
        if user.author_id in existing:
            result.add_skip("user", label, "user already exists")
            continue
        errors = [
            message
            for is_valid, message in (
                validate_positive_int(user.author_id, "AuthorId"),
                validate_gender(user.gender),
                validate_positive_int(user.age, "Age"),
                validate_secret(user.password),
            )
            if not is_valid
        ]
        if not has_text(user.author_name):
            errors.append("AuthorName: This field is required")
        elif user.author_name in taken_names:
            errors.append(f"AuthorName: '{user.author_name}' is already registered")
        if errors:
            result.add_error("user", label, "; ".join(errors))
            continue

        existing.add(user.author_id)
        taken_names.add(user.author_name)
        rows.append(
            {
                "id": user.author_id,
                "name": user.author_name,
                "gender": user.gender,
                "age": user.age,
                "password_hash": hash_secret(user.password),
                "is_deleted": bool(user.is_deleted),
                "created_at": now,
                "updated_at": now,
            }
        )

    _insert_rows(sess, User, rows)
    result.add_success("user", len(rows))


def _import_durations(
    recipe: RecipeImportRecord, result: ImportResult
) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Validated cook/prep strings and the derived total; invalid values become None."""
    values = []
    for field_name, text in (("cook_time", recipe.cook_time), ("prep_time", recipe.prep_time)):
        if text is None or not str(text).strip():
            values.append(None)
            continue
        try:
            values.append(duration_converter.normalize_duration(text))
        except InvalidDuration as e:
            result.add_warning("recipe", str(recipe.recipe_id), f"{field_name} dropped: {e}")
            values.append(None)

    cook, prep = values
    try:
        total = duration_converter.derive_total(cook, prep)
    except InvalidDuration as e:
        result.add_warning("recipe", str(recipe.recipe_id), f"total_time not derived: {e}")
        total = None
    return cook, prep, total


def _import_recipes(
    sess: Session, recipes: Sequence[RecipeImportRecord], result: ImportResult
) -> Set[int]:
    existing = _existing_ids(sess, Recipe.id, (r.recipe_id for r in recipes))
    known_authors = _existing_ids(sess, User.id, (r.author_id for r in recipes))

    now = utc_now()
    recipe_rows = []
    ingredient_rows = []
    imported_ids: Set[int] = set()
    for recipe in recipes:
        label = str(recipe.recipe_id)
        if recipe.recipe_id in existing:
            result.add_skip("recipe", label, "recipe already exists")
            continue
        is_valid, message = validate_positive_int(recipe.recipe_id, "RecipeId")
        if not is_valid:
            result.add_error("recipe", label, message)
            continue
        if not has_text(recipe.name):
            result.add_error("recipe", label, "Name: This field is required")
            continue
        if recipe.author_id not in known_authors:
            result.add_skip("recipe", label, f"unknown author {recipe.author_id}")
            continue

        cook, prep, total = _import_durations(recipe, result)
        existing.add(recipe.recipe_id)
        imported_ids.add(recipe.recipe_id)
        recipe_rows.append(
            {
                "id": recipe.recipe_id,
                "name": recipe.name.strip(),
                "author_id": recipe.author_id,
                "cook_time": cook,
                "prep_time": prep,
                "total_time": total,
                "date_published": to_storage_utc(recipe.date_published or now),
                "description": recipe.description,
                "category": recipe.category,
                "servings": recipe.servings,
                "recipe_yield": recipe.recipe_yield,
                "aggregated_rating": None,
                "review_count": 0,
                "created_at": now,
                "updated_at": now,
                **{field: getattr(recipe, field) for field in NUTRITION_FIELDS},
            }
        )
        for part in normalize_ingredient_parts(recipe.ingredient_parts):
            ingredient_rows.append({"recipe_id": recipe.recipe_id, "ingredient_part": part})

    _insert_rows(sess, Recipe, recipe_rows)
    _insert_rows(sess, RecipeIngredient, ingredient_rows)
    result.add_success("recipe", len(recipe_rows))
    result.add_success("recipe_ingredient", len(ingredient_rows))
    return imported_ids


def _import_reviews(
    sess: Session, reviews: Sequence[ReviewImportRecord], result: ImportResult
) -> Set[int]:
    """Insert reviews and their likes; returns the ids of recipes touched."""
    existing = _existing_ids(sess, Review.id, (r.review_id for r in reviews))
    known_recipes = _existing_ids(sess, Recipe.id, (r.recipe_id for r in reviews))
    known_users = _existing_ids(
        sess,
        User.id,
        [r.author_id for r in reviews] + [liker for r in reviews for liker in (r.likes or [])],
    )

    now = utc_now()
    review_rows = []
    touched: Set[int] = set()
    likers_by_review: Dict[int, Tuple[int, List[int]]] = {}
    for review in reviews:
        label = str(review.review_id)
        if review.review_id in existing:
            result.add_skip("review", label, "review already exists")
            continue
        is_valid, message = validate_positive_int(review.review_id, "ReviewId")
        if not is_valid:
            result.add_error("review", label, message)
            continue
        if review.recipe_id not in known_recipes:
            result.add_skip("review", label, f"unknown recipe {review.recipe_id}")
            continue
        if review.author_id not in known_users:
            result.add_skip("review", label, f"unknown author {review.author_id}")
            continue
        rating = review.rating
        if isinstance(rating, float) and rating.is_integer():
            rating = int(rating)
        is_valid, message = validate_rating(rating)
        if not is_valid:
            result.add_error("review", label, message)
            continue

        existing.add(review.review_id)
        touched.add(review.recipe_id)
        submitted = to_storage_utc(review.date_submitted or now)
        review_rows.append(
            {
                "id": review.review_id,
                "recipe_id": review.recipe_id,
                "author_id": review.author_id,
                "rating": rating,
                "text": review.text,
                "date_submitted": submitted,
                "date_modified": to_storage_utc(review.date_modified) or submitted,
                "created_at": now,
                "updated_at": now,
            }
        )
        likers_by_review[review.review_id] = (review.author_id, list(review.likes or []))

    _insert_rows(sess, Review, review_rows)
    result.add_success("review", len(review_rows))

    like_rows = []
    for review_id, (author_id, likers) in likers_by_review.items():
        for liker_id in dict.fromkeys(likers):
            if liker_id == author_id:
                result.add_skip("review_like", f"{review_id}:{liker_id}", "self-like")
            elif liker_id not in known_users:
                result.add_skip("review_like", f"{review_id}:{liker_id}", "unknown user")
            else:
                like_rows.append({"review_id": review_id, "user_id": liker_id})
    _insert_rows(sess, ReviewLike, like_rows)
    result.add_success("review_like", len(like_rows))
    return touched


def _import_follows(
    sess: Session, users: Sequence[UserImportRecord], result: ImportResult
) -> None:
    edges: Dict[Tuple[int, int], None] = {}
    for user in users:
        for followee_id in user.following_users or []:
            edges[(user.author_id, followee_id)] = None
        for follower_id in user.follower_users or []:
            edges[(follower_id, user.author_id)] = None

    endpoint_ids = {endpoint for edge in edges for endpoint in edge}
    active: Set[int] = set()
    for batch in _chunks(list(endpoint_ids)):
        active.update(
            row[0]
            for row in sess.query(User.id)
            .filter(User.id.in_(batch), User.is_deleted == False)  # noqa: E712
            .all()
        )

    existing: Set[Tuple[int, int]] = set()
    follower_ids = list({follower for follower, _ in edges})
    for batch in _chunks(follower_ids):
        existing.update(
            (follower_id, followee_id)
            for follower_id, followee_id in sess.query(
                UserFollow.follower_id, UserFollow.followee_id
            )
            .filter(UserFollow.follower_id.in_(batch))
            .all()
        )

    rows = []
    for follower_id, followee_id in edges:
        label = f"{follower_id}->{followee_id}"
        if follower_id == followee_id:
            result.add_skip("user_follow", label, "self-follow")
        elif follower_id not in active or followee_id not in active:
            result.add_skip("user_follow", label, "unknown or deleted endpoint")
        elif (follower_id, followee_id) in existing:
            result.add_skip("user_follow", label, "edge already exists")
        else:
            rows.append({"follower_id": follower_id, "followee_id": followee_id})

    _insert_rows(sess, UserFollow, rows)
    result.add_success("user_follow", len(rows))


def _recompute_aggregates(sess: Session, recipe_ids: Set[int]) -> int:
    """Recompute review_count and aggregated_rating for the given recipes."""
    ordered = sorted(recipe_ids)
    for batch in _chunks(ordered):
        stats = defaultdict(lambda: (0, 0))
        for recipe_id, count, rating_sum in (
            sess.query(Review.recipe_id, func.count(Review.id), func.sum(Review.rating))
            .filter(Review.recipe_id.in_(batch))
            .group_by(Review.recipe_id)
            .all()
        ):
            stats[recipe_id] = (count, rating_sum)

        for recipe in sess.query(Recipe).filter(Recipe.id.in_(batch)).all():
            count, rating_sum = stats[recipe.id]
            recipe.review_count = count
            recipe.aggregated_rating = mean_rating(rating_sum, count)
        sess.flush()
    return len(ordered)


# ============================================================================
# Entry point
# ============================================================================


def import_data(
    reviews: Optional[Sequence[ReviewImportRecord]] = None,
    users: Optional[Sequence[UserImportRecord]] = None,
    recipes: Optional[Sequence[RecipeImportRecord]] = None,
    session: Optional[Session] = None,
) -> ImportResult:
    """
    Populate the core tables from record sets.

    Args:
        reviews: Review records (with liker ids)
        users: User records (with follower/following id lists)
        recipes: Recipe records (with ingredient parts)
        session: Optional database session

    Returns:
        ImportResult with per-entity imported/skipped/error counts

    Raises:
        DatabaseError: If the database operation fails (nothing is committed)
    """
    reviews = list(reviews or [])
    users = list(users or [])
    recipes = list(recipes or [])

    def _impl(sess: Session) -> ImportResult:
        result = ImportResult()
        _import_users(sess, users, result)
        imported_recipes = _import_recipes(sess, recipes, result)
        touched = _import_reviews(sess, reviews, result)
        _import_follows(sess, users, result)
        sess.flush()
        result.recomputed_recipes = _recompute_aggregates(sess, imported_recipes | touched)
        return result

    try:
        if session is not None:
            result = _impl(session)
        else:
            with session_scope() as sess:
                result = _impl(sess)
    except SQLAlchemyError as e:
        log_operation(logger, "import_data", "failed", level=logging.ERROR, error=str(e))
        raise DatabaseError("Failed to import data", e)

    log_operation(
        logger,
        "import_data",
        "success",
        users=result.imported("user"),
        recipes=result.imported("recipe"),
        reviews=result.imported("review"),
        skipped=result.skipped,
        failed=result.failed,
    )
    return result
