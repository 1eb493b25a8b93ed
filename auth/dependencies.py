"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Credentials are read from exactly one place, chosen by the deployment mode
stored on app.state.auth_mode at startup:
  bearer  -- Authorization: Bearer <token> header (serverless deployments).
  session -- signed session cookie holding a session id, resolved through
             app.state.sessions (long-running server deployments).

Per-request state machine:
  Unauthenticated -> (valid credentials) -> Authenticated -> (role check) -> Authorized
Unauthenticated and Forbidden are terminal: they raise before the route
handler runs, so no mutation can happen.

try_get_claims() is the soft variant (returns None on failure).
get_current_user() wraps it and raises Unauthenticated (401).
require_admin() wraps get_current_user() and raises Forbidden (403).

Layer rule: no imports from api/ or content/.
  auth/dependencies.py may import from fastapi because this module is part of
  the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Role, TokenClaims
from auth.store import UserStore
from auth.tokens import decode_access_token
from core.errors import Forbidden, Unauthenticated

SESSION_KEY = "sid"


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _session_id(request: Request) -> str | None:
    # request.session is only present when SessionMiddleware is installed.
    if "session" not in request.scope:
        return None
    sid = request.session.get(SESSION_KEY)
    return sid if isinstance(sid, str) and sid else None


def _has_credentials(request: Request) -> bool:
    if request.app.state.auth_mode == "session":
        return _session_id(request) is not None
    return _bearer_token(request) is not None


def try_get_claims(request: Request) -> TokenClaims | None:
    """Return the verified identity behind this request, or None. Never raises."""
    if request.app.state.auth_mode == "session":
        sid = _session_id(request)
        return request.app.state.sessions.get(sid) if sid else None
    token = _bearer_token(request)
    return decode_access_token(token) if token else None


def get_current_user(request: Request) -> TokenClaims:
    """Require authentication. Raises Unauthenticated (401) otherwise.

    On success the claims are also attached to request.state.user for
    downstream handlers.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: TokenClaims = Depends(get_current_user)): ...
    """
    claims = try_get_claims(request)
    if claims is None:
        if _has_credentials(request):
            raise Unauthenticated("Invalid or expired credentials.", code="invalid_token")
        raise Unauthenticated("Not authenticated.")
    request.state.user = claims
    return claims


def require_admin(request: Request) -> TokenClaims:
    """Require an authenticated admin. Raises Forbidden (403) for other roles.

    Tokens are not revocable before expiry, so the claims alone could outlive
    a deletion, deactivation, or demotion. Privileged operations therefore
    also re-derive the account from the store:
      - missing or inactive account -> Unauthenticated
      - role no longer admin        -> Forbidden
    """
    claims = get_current_user(request)
    if claims.role is not Role.admin:
        raise Forbidden("Admin access required.")
    user_store: UserStore = request.app.state.user_store
    user = user_store.find_by_id(claims.id)
    if user is None or not user.is_active:
        raise Unauthenticated("Account no longer active.", code="account_inactive")
    if user.role is not Role.admin:
        raise Forbidden("Admin access required.")
    return claims
