"""
auth/registration.py -- Public self-registration flow.

Thin orchestration over the store, the hasher, and the token issuer:
validate shape -> create with role forced to "user" -> issue a token
(auto-login). Shape validation happens before the store is touched, so an
invalid request never causes a write.

The privileged provisioning path (main.py create-admin, POST /api/users) calls
UserStore.create_user() with an explicit role and never goes through here.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

import logging

from email_validator import EmailNotValidError, validate_email

from auth.models import NewUser, Role, User
from auth.store import UserStore
from auth.tokens import create_access_token
from core.errors import ValidationError

logger = logging.getLogger("portal.auth")

USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128


def validate_candidate(candidate: NewUser) -> None:
    """Raise ValidationError if any field of candidate is malformed."""
    if not USERNAME_MIN_LEN <= len(candidate.username) <= USERNAME_MAX_LEN:
        raise ValidationError(f"Username must be {USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} characters.")
    if candidate.username != candidate.username.strip():
        raise ValidationError("Username must not start or end with whitespace.")
    if not PASSWORD_MIN_LEN <= len(candidate.password) <= PASSWORD_MAX_LEN:
        raise ValidationError(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.")
    try:
        # Same syntax rule as EmailStr on the request models; no DNS lookup.
        validate_email(candidate.email, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError("Email address is not valid.", detail=str(e)) from e


def register_user(store: UserStore, candidate: NewUser) -> tuple[User, str]:
    """Create a self-registered account and return (user, access_token).

    Raises ValidationError for malformed input and DuplicateKeyError when the
    username or email is taken. The role is always Role.user.
    """
    validate_candidate(candidate)
    user = store.create_user(candidate, role=Role.user)
    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return user, create_access_token(user)
