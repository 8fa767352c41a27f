"""
Credential hashing and verification.

The service layer never stores or compares raw secrets; it goes through the
active CredentialHasher. The default is bcrypt-based. Tests install a cheap
hasher with set_credential_hasher() to keep fixtures fast.
"""

from typing import Optional, Protocol

import bcrypt


class CredentialHasher(Protocol):
    """Pluggable credential scheme."""

    def hash(self, secret: str) -> str:
        ...

    def verify(self, secret: str, stored: str) -> bool:
        ...


class BcryptHasher:
    """bcrypt-based hasher (salted, adaptive cost)."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, secret: str) -> str:
        return bcrypt.hashpw(secret.encode(), bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, secret: str, stored: str) -> bool:
        return bcrypt.checkpw(secret.encode(), stored.encode())


_hasher: Optional[CredentialHasher] = None


def get_credential_hasher() -> CredentialHasher:
    """Return the active hasher, creating the bcrypt default on first use."""
    global _hasher
    if _hasher is None:
        _hasher = BcryptHasher()
    return _hasher


def set_credential_hasher(hasher: Optional[CredentialHasher]) -> None:
    """Install a hasher; None restores the bcrypt default on next use."""
    global _hasher
    _hasher = hasher


def hash_secret(secret: Optional[str]) -> Optional[str]:
    """Hash a secret with the active hasher; empty or missing secrets store None."""
    if not secret:
        return None
    return get_credential_hasher().hash(secret)


def verify_secret(secret: Optional[str], stored: Optional[str]) -> bool:
    """
    Check a secret against stored credential material.

    Returns False for an empty secret or missing stored material. Errors
    raised by the hasher (e.g. malformed stored hash) propagate to the caller.
    """
    if not secret or not stored:
        return False
    return get_credential_hasher().verify(secret, stored)
