"""
auth/passwords.py -- Password hashing and credential validation.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper), fixed cost factor of
       10 rounds. The salt and cost are embedded in the stored hash, so
       verify_password() needs nothing but the hash itself.

       bcrypt only reads the first 72 bytes of its input and current releases
       raise on longer input. Both hash and verify truncate identically, so a
       password longer than 72 bytes still round-trips.

  Timing: _DUMMY_HASH enables timing equalization in authenticate_user() so
       response time does not reveal whether a username exists [C1].

Never log or echo the plaintext argument of any function in this module.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("portal.auth")

BCRYPT_ROUNDS = 10
_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed or empty hash returns False rather than raising, so callers
    cannot tell "corrupt record" apart from "wrong password".
    """
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("portal_timing_dummy")


def authenticate_user(store: UserStore, username: str, password: str) -> User | None:
    """Validate a username/password pair with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash

    Returns the full User (including hashed_password) on success, None on any
    failure. Deactivated accounts fail like a wrong password.
    """
    user = store.find_by_username(username)
    if user is None:
        # Do NOT return before running bcrypt [C1]
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        logger.info("Login refused for inactive account %s", user.username)
        return None
    return user
