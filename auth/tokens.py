"""
auth/tokens.py -- Access token issue and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       exactly id, username, email, role, and exp. Verification returns None
       on any failure -- the gate turns that into a 401.

  Signature encoding: the signature segment must be canonical base64url, so
       flipping any of its bits, including unused padding bits, is refused.

  Claim shape: a valid signature is not enough. decode_access_token() also
       rejects payloads whose fields are missing, mistyped, or carry a role
       outside the Role enum, so only a well-formed TokenClaims ever leaves
       this module [T1].

  Revocation: tokens are self-contained and are not revocable before their
       natural expiry. require_admin() re-checks the store for privileged
       operations (see auth/dependencies.py).

Layer rule: no imports from api/ or content/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from auth.models import Role, TokenClaims, User
from core.config import get_settings

logger = logging.getLogger("portal.auth")

_ALGORITHM = "HS256"

_CLAIM_FIELDS = ("id", "username", "email", "role", "exp")


def create_access_token(user: User, expire_seconds: int = 0, issued_at: datetime | None = None) -> str:
    """Encode a signed JWT certifying the user's identity and role.

    Args:
        user:           Persisted user (id must be set).
        expire_seconds: Lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds (24 hours).
        issued_at:      Issue instant; defaults to now. The expiry is
                        measured from here.
    """
    settings = get_settings()
    duration = expire_seconds if expire_seconds > 0 else settings.token_expire_seconds
    issued = issued_at or datetime.now(timezone.utc)
    payload = {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": Role(user.role).value,
        "exp": issued + timedelta(seconds=duration),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims | None:
    """Verify a JWT and return its claims, or None on any failure.

    Fails on: bad signature, structurally malformed token, expiry passed,
    or a payload that does not match the TokenClaims shape [T1].
    """
    if not token or not _canonical_signature(token):
        return None
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    return _claims_from_payload(payload)


def _canonical_signature(token: str) -> bool:
    """True if the signature segment is canonical unpadded base64url.

    The last character of an HS256 signature carries 4 unused bits. The
    decoder ignores them, so a re-encode must reproduce the segment exactly
    or a token with flipped padding bits would still verify.
    """
    signature = token.rpartition(".")[2].encode("ascii", "replace")
    try:
        return base64url_encode(base64url_decode(signature)) == signature
    except ValueError:
        return False


def _claims_from_payload(payload: dict) -> TokenClaims | None:
    if not isinstance(payload, dict) or set(payload) != set(_CLAIM_FIELDS):
        return None
    user_id = payload["id"]
    # bool is a subclass of int; a token with "id": true is not an id.
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id < 1:
        return None
    if not isinstance(payload["username"], str) or not isinstance(payload["email"], str):
        return None
    try:
        role = Role(payload["role"])
    except (ValueError, TypeError):
        logger.warning("Rejected token with unknown role for user id %s", user_id)
        return None
    if not isinstance(payload["exp"], (int, float)) or isinstance(payload["exp"], bool):
        return None
    return TokenClaims(
        id=user_id,
        username=payload["username"],
        email=payload["email"],
        role=role,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
