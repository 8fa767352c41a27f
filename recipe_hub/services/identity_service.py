"""Identity Guard - resolves the acting user for every mutating operation.

Two checks with different failure policies:

- require_active_user(): identity only (id names an existing, non-deleted
  user). Raises AuthFailure. Used by every operation that acts on behalf of
  a user.
- verify_credentials(): identity plus secret. Used only by login; it never
  raises and collapses every failure to None. The reason is logged at DEBUG.

All functions accept an optional session parameter so they can run inside
the caller's transaction.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from recipe_hub.models import User
from recipe_hub.services.credential_service import verify_secret
from recipe_hub.services.database import run_in_session, session_scope
from recipe_hub.services.dto import AuthInfo
from recipe_hub.services.exceptions import AuthFailure
from recipe_hub.services.logging_utils import get_service_logger, log_operation
from recipe_hub.utils.validators import is_positive_id

logger = get_service_logger(__name__)


def require_active_user(auth: Optional[AuthInfo], session: Optional[Session] = None) -> User:
    """
    Resolve the actor to an active user.

    Args:
        auth: Actor reference
        session: Optional database session

    Returns:
        The active User

    Raises:
        AuthFailure: If auth is missing, the id is not positive, no user has
            the id, or the user is soft-deleted
    """
    if not isinstance(auth, AuthInfo):
        raise AuthFailure("missing actor")
    if not is_positive_id(auth.author_id):
        raise AuthFailure(f"invalid actor id {auth.author_id!r}")

    def _impl(sess: Session) -> User:
        user = sess.query(User).filter(User.id == auth.author_id).first()
        if user is None:
            raise AuthFailure(f"unknown user {auth.author_id}")
        if not user.is_active:
            raise AuthFailure(f"user {auth.author_id} is deleted")
        return user

    return run_in_session(_impl, session, "Failed to resolve actor")


def verify_credentials(
    auth: Optional[AuthInfo], session: Optional[Session] = None
) -> Optional[User]:
    """
    Check identity and secret.

    Args:
        auth: Actor reference carrying a password
        session: Optional database session

    Returns:
        The active User whose stored credential matches, otherwise None
    """

    def _reject(reason: str) -> None:
        log_operation(logger, "verify_credentials", "rejected", level=logging.DEBUG, reason=reason)
        return None

    if not isinstance(auth, AuthInfo):
        return _reject("missing_auth")
    if not is_positive_id(auth.author_id):
        return _reject("invalid_id")
    if not isinstance(auth.password, str):
        return _reject("malformed_secret")
    if not auth.password:
        return _reject("empty_secret")

    def _impl(sess: Session) -> Optional[User]:
        user = sess.query(User).filter(User.id == auth.author_id).first()
        if user is None:
            return _reject("unknown_user")
        if not user.is_active:
            return _reject("inactive_user")
        try:
            matched = verify_secret(auth.password, user.password_hash)
        except (ValueError, TypeError, AttributeError):
            return _reject("verifier_error")
        if not matched:
            return _reject("wrong_secret")
        return user

    if session is not None:
        return _impl(session)
    with session_scope() as sess:
        return _impl(sess)
