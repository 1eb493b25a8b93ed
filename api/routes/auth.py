"""
api/routes/auth.py -- Registration, login, and profile REST endpoints.

Routes:
  POST /api/auth/register   -- self-registration; always role "user"; auto-login
  POST /api/auth/login      -- password login; returns identity and token
  POST /api/auth/logout     -- ends the server-side session (session mode)
  GET  /api/auth/profile    -- identity of the current user (requires auth)
  POST /api/auth/password   -- change own password (requires auth)

Security:
  [H2] register and login are rate-limited per IP (LOGIN_RATE_LIMIT).
  [C1] authenticate_user() provides timing equalization -- use it, never inline.
  [M5] Cache-Control: no-store on responses that carry a token.
  Session fixation: a login or registration in session mode always discards
  the previous session id and issues a new one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import auth_rate_limit, limiter
from api.models import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    PasswordChangeRequest,
    ProfileResponse,
    RegisterRequest,
    UserIdentity,
)
from auth.dependencies import SESSION_KEY, get_current_user
from auth.models import NewUser, TokenClaims, User
from auth.passwords import authenticate_user
from auth.registration import register_user
from auth.store import UserStore
from auth.tokens import create_access_token
from core.config import get_settings
from core.errors import Forbidden, Unauthenticated, ValidationError

logger = logging.getLogger("portal.api.auth")

# Auth policy:
# - POST /api/auth/register:  public (unless SELF_REGISTRATION_ENABLED=false)
# - POST /api/auth/login:     public
# - POST /api/auth/logout:    public -- ending a session needs no prior auth
# - GET  /api/auth/profile:   requires auth (get_current_user)
# - POST /api/auth/password:  requires auth (get_current_user)
router = APIRouter()


# ---------------------------------------------------------------------------
# Session helpers (session mode only)
# ---------------------------------------------------------------------------


def _start_session(request: Request, user: User) -> None:
    if request.app.state.auth_mode != "session":
        return
    old_sid = request.session.get(SESSION_KEY)
    if old_sid:
        request.app.state.sessions.destroy(old_sid)
    request.session.clear()
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=get_settings().token_expire_seconds)
    sid = request.app.state.sessions.create(TokenClaims.for_user(user, expires_at))
    request.session[SESSION_KEY] = sid


def _end_session(request: Request) -> bool:
    if request.app.state.auth_mode != "session":
        return False
    sid = request.session.get(SESSION_KEY)
    request.session.clear()
    return bool(sid) and request.app.state.sessions.destroy(sid)


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(auth_rate_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, response: Response, body: RegisterRequest) -> AuthResponse:
    """Create an account with role "user" and log it in.

    Any role supplied in the body is ignored by the request model; only the
    admin provisioning routes can create admins.
    """
    if not get_settings().self_registration_enabled:
        raise Forbidden("Self-registration is disabled.", code="registration_disabled")

    user_store: UserStore = request.app.state.user_store
    candidate = NewUser(
        username=body.username,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    user, token = register_user(user_store, candidate)
    _start_session(request, user)
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return AuthResponse(user=_identity(user), token=token)


@limiter.limit(auth_rate_limit)  # [H2]
@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, response: Response, body: LoginRequest) -> AuthResponse:
    """Authenticate with username and password.

    Uses authenticate_user() which includes timing equalization [C1].
    Returns the same generic error for wrong username, wrong password, and
    disabled account ("bad_credentials") so usernames cannot be enumerated.
    """
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, body.username, body.password)
    if user is None:
        logger.info("Failed login for username %r", body.username)
        raise Unauthenticated("Invalid username or password.", code="bad_credentials")

    token = create_access_token(user)
    _start_session(request, user)
    logger.info("User %s (id=%s) logged in", user.username, user.id)
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return AuthResponse(user=_identity(user), token=token)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request) -> MessageResponse:
    """End the current session.

    In bearer mode there is no server-side state; the client discards its
    token and the token lapses at its expiry.
    """
    if _end_session(request):
        logger.info("Session ended")
    return MessageResponse(message="Logged out.")


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/profile", response_model=ProfileResponse)
def profile(current_user: TokenClaims = Depends(get_current_user)) -> ProfileResponse:
    """Return identity information for the currently authenticated user."""
    return ProfileResponse(user=UserIdentity.from_claims(current_user))


@router.post("/auth/password", response_model=MessageResponse)
def change_password(
    request: Request,
    body: PasswordChangeRequest,
    current_user: TokenClaims = Depends(get_current_user),
) -> MessageResponse:
    """Replace the caller's password after re-checking the current one."""
    user_store: UserStore = request.app.state.user_store
    user = authenticate_user(user_store, current_user.username, body.current_password)
    if user is None or user.id != current_user.id:
        raise ValidationError("Current password is incorrect.", code="bad_credentials")
    if body.new_password == body.current_password:
        raise ValidationError("New password must differ from the current password.")
    user_store.set_password(user.id, body.new_password)
    logger.info("User %s (id=%s) changed password", user.username, user.id)
    return MessageResponse(message="Password updated.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _identity(user: User) -> UserIdentity:
    return UserIdentity(id=user.id, username=user.username, email=user.email, role=user.role)
