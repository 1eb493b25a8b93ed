"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). The stores and route
handlers do the work; these own the domain shape.

Layer rule: no imports from api/ or content/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Closed set of authorization levels. Exactly one per user."""

    user = "user"
    admin = "admin"


@dataclass
class NewUser:
    """A registration or provisioning candidate, before it reaches the store.

    Has no role field. The store's create_user() takes the role as a separate
    argument that only privileged callers pass, so nothing parsed from a
    public request body can elevate an account.
    """

    username: str
    email: str
    password: str
    first_name: str | None = None
    last_name: str | None = None


@dataclass
class User:
    """A persisted identity record.

    hashed_password always holds a bcrypt hash, never the original secret.
    Callers must strip it before anything is sent to a client.
    """

    username: str
    email: str
    hashed_password: str
    role: Role = Role.user
    id: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool = True
    created_at: str | None = None  # ISO 8601, set by the store on insert


@dataclass(frozen=True)
class TokenClaims:
    """The identity certified by a verified access token or live session."""

    id: int
    username: str
    email: str
    role: Role
    expires_at: datetime

    @classmethod
    def for_user(cls, user: User, expires_at: datetime) -> TokenClaims:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            expires_at=expires_at,
        )

    def identity(self) -> dict:
        """Return the public identity fields (no expiry)."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value,
        }
