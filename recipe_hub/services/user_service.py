"""
User Service - account lifecycle and profile lookups.

This service provides:
- Registration with validation and hashed credential storage
- Login (never raises; failure is a None result)
- Soft deletion with follow-edge cascade in one transaction
- Profile lookup with derived follower/following data
- Profile updates (gender, age)
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recipe_hub.models import User
from recipe_hub.services import social_graph_service
from recipe_hub.services.credential_service import hash_secret
from recipe_hub.services.database import run_in_session, session_scope
from recipe_hub.services.dto import AuthInfo, RegisterUserRequest, UserRecord
from recipe_hub.services.exceptions import (
    AuthFailure,
    DatabaseError,
    InvalidArgument,
    ServiceError,
    ValidationError,
)
from recipe_hub.services.identity_service import require_active_user, verify_credentials
from recipe_hub.services.logging_utils import get_service_logger, log_operation
from recipe_hub.utils.datetime_utils import utc_now, years_between
from recipe_hub.utils.validators import (
    validate_gender,
    validate_positive_int,
    validate_required_string,
    validate_secret,
    validate_string_length,
)

logger = get_service_logger(__name__)


# ============================================================================
# Registration and login
# ============================================================================


def _validate_registration(request: Optional[RegisterUserRequest]) -> List[str]:
    if request is None:
        return ["Request: This field is required"]

    errors = []
    for is_valid, message in (
        validate_required_string(request.name, "Name"),
        validate_string_length(request.name, field_name="Name"),
        validate_gender(request.gender),
        validate_secret(request.password),
    ):
        if not is_valid:
            errors.append(message)

    try:
        birthday = date.fromisoformat(request.birthday.strip())
    except (AttributeError, ValueError):
        errors.append("Birthday: Must be an ISO date (YYYY-MM-DD)")
    else:
        is_valid, message = validate_positive_int(
            years_between(birthday, utc_now().date()), "Age"
        )
        if not is_valid:
            errors.append(message)

    return errors


def register(request: RegisterUserRequest, session: Optional[Session] = None) -> int:
    """
    Register a new user.

    Args:
        request: Name, gender, ISO birthday and password
        session: Optional database session

    Returns:
        The new user's id (current maximum id + 1)

    Raises:
        ValidationError: If any field is invalid or the name is taken
        DatabaseError: If the database operation fails
    """
    errors = _validate_registration(request)
    if errors:
        log_operation(logger, "register", "invalid", level=logging.WARNING, errors=errors)
        raise ValidationError(errors)

    name = request.name.strip()
    age = years_between(date.fromisoformat(request.birthday.strip()), utc_now().date())

    def _impl(sess: Session) -> int:
        if sess.query(User.id).filter(User.name == name).first() is not None:
            log_operation(
                logger, "register", "name_taken", level=logging.WARNING, user_name=name
            )
            raise ValidationError([f"Name: '{name}' is already registered"])

        next_id = (sess.query(func.max(User.id)).scalar() or 0) + 1
        user = User(
            id=next_id,
            name=name,
            gender=request.gender,
            age=age,
            password_hash=hash_secret(request.password),
            is_deleted=False,
        )
        sess.add(user)
        sess.flush()
        log_operation(logger, "register", "success", user_id=user.id)
        return user.id

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to register user", e)


def login(auth: Optional[AuthInfo], session: Optional[Session] = None) -> Optional[int]:
    """
    Check credentials.

    Args:
        auth: User id and password
        session: Optional database session

    Returns:
        The user id on success, None on any failure (never raises)
    """
    try:
        user = verify_credentials(auth, session=session)
    except SQLAlchemyError as e:
        log_operation(logger, "login", "database_error", level=logging.ERROR, error=str(e))
        return None

    if user is None:
        log_operation(logger, "login", "rejected", level=logging.DEBUG)
        return None

    log_operation(logger, "login", "success", user_id=user.id)
    return user.id


# ============================================================================
# Account management
# ============================================================================


def delete_account(
    auth: Optional[AuthInfo], user_id: int, session: Optional[Session] = None
) -> bool:
    """
    Soft-delete an account and remove its follow edges.

    The user's recipes, reviews and likes are kept. The flag flip and the
    edge removal commit together.

    Args:
        auth: Acting user; must be the account owner
        user_id: Account to delete
        session: Optional database session

    Returns:
        True

    Raises:
        AuthFailure: If the actor is invalid or inactive, or is not user_id
    """

    def _impl(sess: Session) -> bool:
        actor = require_active_user(auth, session=sess)
        if actor.id != user_id:
            log_operation(
                logger,
                "delete_account",
                "not_owner",
                level=logging.WARNING,
                actor_id=actor.id,
                user_id=user_id,
            )
            raise AuthFailure("users can only delete their own account")

        actor.is_deleted = True
        sess.flush()
        removed = social_graph_service.cascade_on_soft_delete(actor.id, sess)
        log_operation(
            logger, "delete_account", "success", user_id=actor.id, edges_removed=removed
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
        raise DatabaseError(f"Failed to delete account {user_id}", e)


def update_profile(
    auth: Optional[AuthInfo],
    gender: Optional[str] = None,
    age: Optional[int] = None,
    session: Optional[Session] = None,
) -> UserRecord:
    """
    Update the actor's gender and/or age.

    Args:
        auth: Acting user
        gender: New gender, or None to leave unchanged
        age: New age, or None to leave unchanged
        session: Optional database session

    Returns:
        The updated profile

    Raises:
        AuthFailure: If the actor is invalid or inactive
        InvalidArgument: If gender or age is invalid
    """

    def _impl(sess: Session) -> UserRecord:
        user = require_active_user(auth, session=sess)

        if gender is not None:
            is_valid, message = validate_gender(gender)
            if not is_valid:
                raise InvalidArgument(message)
        if age is not None:
            is_valid, message = validate_positive_int(age, "Age")
            if not is_valid:
                raise InvalidArgument(message)

        if gender is not None:
            user.gender = gender
        if age is not None:
            user.age = age
        sess.flush()

        log_operation(logger, "update_profile", "success", user_id=user.id)
        return _to_record(user, sess)

    return run_in_session(_impl, session, "Failed to update profile")


# ============================================================================
# Lookups
# ============================================================================


def _to_record(user: User, sess: Session) -> UserRecord:
    follower_ids = social_graph_service.list_follower_ids(user.id, session=sess)
    following_ids = social_graph_service.list_following_ids(user.id, session=sess)
    return UserRecord(
        author_id=user.id,
        author_name=user.name,
        gender=user.gender,
        age=user.age,
        followers=len(follower_ids),
        following=len(following_ids),
        follower_users=follower_ids,
        following_users=following_ids,
        is_deleted=bool(user.is_deleted),
    )


def get_user(user_id: int, session: Optional[Session] = None) -> Optional[UserRecord]:
    """
    Look up a user profile.

    Soft-deleted users are still returned (with is_deleted set).

    Args:
        user_id: User id
        session: Optional database session

    Returns:
        UserRecord with derived follow data, or None if no such user
    """

    def _impl(sess: Session) -> Optional[UserRecord]:
        user = sess.query(User).filter(User.id == user_id).first()
        if user is None:
            return None
        return _to_record(user, sess)

    return run_in_session(_impl, session, f"Failed to load user {user_id}")
