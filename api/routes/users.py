"""
api/routes/users.py -- User administration REST endpoints (admin only).

Routes:
  GET    /api/users          -- list all users, password hashes stripped
  POST   /api/users          -- provision a user with an explicit role
  PATCH  /api/users/{id}     -- change role and/or active flag
  DELETE /api/users/{id}     -- delete a user; 204

Every route depends on require_admin, so a non-admin caller is rejected
before the handler runs and nothing is read or written.

Security:
  [M4] PATCH blocks self-deactivation, self-demotion, and removing the last
       active admin. DELETE blocks self-deletion.
  Revocation: in session mode, deleting, deactivating, or changing the role of
  a user also destroys that user's server-side sessions.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from api.models import UserCreate, UserPatch, UserResponse
from auth.dependencies import require_admin
from auth.models import NewUser, Role, TokenClaims
from auth.registration import validate_candidate
from auth.store import UserStore
from core.errors import NotFound, ValidationError

logger = logging.getLogger("portal.api.users")

router = APIRouter()


@router.get("/users", response_model=list[UserResponse])
def list_users(request: Request, current_user: TokenClaims = Depends(require_admin)) -> list[UserResponse]:
    """List all user accounts. Admin only."""
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_user(u) for u in user_store.list_users()]


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    request: Request,
    body: UserCreate,
    current_user: TokenClaims = Depends(require_admin),
) -> UserResponse:
    """Create a user account with the requested role. Admin only."""
    user_store: UserStore = request.app.state.user_store
    candidate = NewUser(
        username=body.username,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    validate_candidate(candidate)
    user = user_store.create_user(candidate, role=body.role)
    logger.info("Admin %s created user %s (id=%s, role=%s)", current_user.username, user.username, user.id, user.role.value)
    return UserResponse.from_user(user)


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: int,
    body: UserPatch,
    current_user: TokenClaims = Depends(require_admin),
) -> UserResponse:
    """Update a user's role or active status. Admin only."""
    user_store: UserStore = request.app.state.user_store

    target = user_store.find_by_id(user_id)
    if target is None:
        raise NotFound("User not found.")

    if body.role is None and body.is_active is None:
        raise ValidationError("No fields to update.", code="no_changes")

    removes_admin = target.role is Role.admin and target.is_active and (
        body.is_active is False or (body.role is not None and body.role is not Role.admin)
    )
    if target.id == current_user.id:
        # [M4] An admin cannot lock themselves out.
        if body.is_active is False:
            raise ValidationError("You cannot deactivate your own account.", code="self_deactivation")
        if body.role is not None and body.role is not Role.admin:
            raise ValidationError("You cannot remove your own admin role.", code="self_demotion")
    if removes_admin and user_store.count_active_admins() <= 1:
        raise ValidationError("Cannot remove the last active admin account.", code="last_admin")

    user_store.update_user(user_id, role=body.role, is_active=body.is_active)
    if body.is_active is False or (body.role is not None and body.role is not target.role):
        # Session claims carry the old role; the user logs in again to pick up the new one.
        request.app.state.sessions.destroy_user(user_id)
    logger.info("Admin %s updated user id=%s", current_user.username, user_id)

    updated = user_store.find_by_id(user_id)
    if updated is None:
        raise NotFound("User not found.")
    return UserResponse.from_user(updated)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: int,
    current_user: TokenClaims = Depends(require_admin),
) -> Response:
    """Delete a user account. Admin only; an admin cannot delete themselves."""
    if user_id == current_user.id:
        raise ValidationError("You cannot delete your own account.", code="self_deletion")
    user_store: UserStore = request.app.state.user_store
    if not user_store.delete_user(user_id):
        raise NotFound("User not found.")
    request.app.state.sessions.destroy_user(user_id)
    logger.info("Admin %s deleted user id=%s", current_user.username, user_id)
    return Response(status_code=204)
