"""Feed Service - the actor's timeline of recipes by followed authors.

Page and size are clamped rather than rejected: page to at least 1, size to
[FEED_MIN_PAGE_SIZE, FEED_MAX_PAGE_SIZE]. An actor who follows nobody gets an
empty page with total 0.
"""

import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from recipe_hub.models import Recipe, User, UserFollow
from recipe_hub.services.database import run_in_session
from recipe_hub.services.dto import AuthInfo, FeedItem, PageResult
from recipe_hub.services.dto_utils import to_float
from recipe_hub.services.identity_service import require_active_user
from recipe_hub.services.logging_utils import get_service_logger, log_operation
from recipe_hub.utils.constants import FEED_MAX_PAGE_SIZE, FEED_MIN_PAGE_SIZE
from recipe_hub.utils.datetime_utils import to_utc
from recipe_hub.utils.validators import has_text

logger = get_service_logger(__name__)


def clamp_page(page: Optional[int]) -> int:
    """Clamp a page number to at least 1."""
    if page is None or page < 1:
        return 1
    return page


def clamp_size(size: Optional[int]) -> int:
    """Clamp a page size to [FEED_MIN_PAGE_SIZE, FEED_MAX_PAGE_SIZE]."""
    if size is None or size < FEED_MIN_PAGE_SIZE:
        return FEED_MIN_PAGE_SIZE
    return min(size, FEED_MAX_PAGE_SIZE)


def feed(
    auth: Optional[AuthInfo],
    page: Optional[int],
    size: Optional[int],
    category: Optional[str] = None,
    session: Optional[Session] = None,
) -> PageResult[FeedItem]:
    """
    Recipes authored by users the actor follows, newest first.

    Args:
        auth: Acting user
        page: 1-based page (clamped)
        size: Page size (clamped)
        category: Exact category filter; blank or None means all
        session: Optional database session

    Returns:
        PageResult of FeedItem ordered by date_published desc, then id desc

    Raises:
        AuthFailure: If the actor is invalid or inactive
    """
    page = clamp_page(page)
    size = clamp_size(size)

    def _impl(sess: Session) -> PageResult[FeedItem]:
        actor = require_active_user(auth, session=sess)

        followee_ids = (
            sess.query(UserFollow.followee_id)
            .filter(UserFollow.follower_id == actor.id)
            .scalar_subquery()
        )
        filters = [Recipe.author_id.in_(followee_ids)]
        if has_text(category):
            filters.append(Recipe.category == category)

        total = sess.query(func.count(Recipe.id)).filter(*filters).scalar()
        rows = (
            sess.query(
                Recipe.id,
                Recipe.name,
                Recipe.author_id,
                User.name,
                Recipe.date_published,
                Recipe.aggregated_rating,
                Recipe.review_count,
            )
            .join(User, User.id == Recipe.author_id)
            .filter(*filters)
            .order_by(Recipe.date_published.desc().nulls_last(), Recipe.id.desc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )

        items = [
            FeedItem(
                recipe_id=recipe_id,
                name=name,
                author_id=author_id,
                author_name=author_name,
                date_published=to_utc(date_published),
                aggregated_rating=to_float(rating),
                review_count=review_count or 0,
            )
            for recipe_id, name, author_id, author_name, date_published, rating, review_count in rows
        ]
        log_operation(
            logger,
            "feed",
            "success",
            level=logging.DEBUG,
            user_id=actor.id,
            total=total,
            page=page,
            size=size,
        )
        return PageResult(items=items, page=page, size=size, total=total)

    return run_in_session(_impl, session, "Failed to assemble feed")
