"""
API request and response models for the research portal REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are separate from the dataclasses in auth/models.py and
content/models.py, which own the internal domain representation. Route
handlers map between the two.

Wire format: JSON keys are camelCase (imageUrl, firstName, isActive) to match
the front end; Python attributes stay snake_case. Request models accept both.

Unknown request fields are ignored. In particular a "role" key in a public
registration body is dropped before it reaches any handler.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from auth.models import Role, TokenClaims, User
from auth.registration import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from content.models import GalleryItem, NewsItem, SliderItem

# ---------------------------------------------------------------------------
# Base classes
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    """Request model: camelCase or snake_case keys accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _ContentInput(_WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class _WireResponse(BaseModel):
    """Response model: serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True, frozen=True)


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(_WireModel):
    """Request body for POST /api/auth/register. There is no role field."""

    username: str = Field(min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(_WireModel):
    """Request body for POST /api/auth/login."""

    username: str = Field(min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class PasswordChangeRequest(_WireModel):
    """Request body for POST /api/auth/password."""

    current_password: str = Field(min_length=1, max_length=PASSWORD_MAX_LEN)
    new_password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class UserCreate(RegisterRequest):
    """Request body for POST /api/users (admin provisioning). May set the role."""

    role: Role = Role.user


class UserPatch(_WireModel):
    """Request body for PATCH /api/users/{id}."""

    role: Optional[Role] = None
    is_active: Optional[bool] = None


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class UserIdentity(_WireResponse):
    """The identity fields carried by a token. Never includes the password hash."""

    id: int
    username: str
    email: str
    role: Role

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "UserIdentity":
        return cls(id=claims.id, username=claims.username, email=claims.email, role=claims.role)


class AuthResponse(_WireResponse):
    """Response for register and login: identity plus a fresh access token.

    The token is always issued so the body has one shape in both auth modes.
    With AUTH_MODE=session the server ignores Authorization headers and
    authenticates by the session cookie alone; clients in that mode can
    discard the token.
    """

    user: UserIdentity
    token: str


class ProfileResponse(_WireResponse):
    user: UserIdentity


class UserResponse(_WireResponse):
    """One user in the admin listing (password hash stripped)."""

    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role
    is_active: bool
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at or "",
        )


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Content -- requests
# ---------------------------------------------------------------------------


class NewsCreate(_ContentInput):
    """Request body for POST /api/news. date defaults to now (UTC)."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    summary: str = Field(min_length=1, max_length=1000)
    image_url: str = Field(min_length=1, max_length=2048)
    category: str = Field(min_length=1, max_length=100)
    date: Optional[datetime] = None


class GalleryCreate(_ContentInput):
    title: str = Field(min_length=1, max_length=255)
    image_url: str = Field(min_length=1, max_length=2048)
    category: str = Field(min_length=1, max_length=100)


class SliderCreate(_ContentInput):
    title: str = Field(min_length=1, max_length=255)
    subtitle: str = Field(min_length=1, max_length=1000)
    image_url: str = Field(min_length=1, max_length=2048)
    cta_text: str = Field(min_length=1, max_length=100)
    cta_link: str = Field(min_length=1, max_length=2048)
    secondary_cta_text: Optional[str] = Field(default=None, max_length=100)
    secondary_cta_link: Optional[str] = Field(default=None, max_length=2048)


# ---------------------------------------------------------------------------
# Content -- responses
# ---------------------------------------------------------------------------


class NewsResponse(_WireResponse):
    id: int
    title: str
    content: str
    summary: str
    image_url: str
    category: str
    date: str

    @classmethod
    def from_item(cls, item: NewsItem) -> "NewsResponse":
        return cls.model_validate(item)


class GalleryResponse(_WireResponse):
    id: int
    title: str
    image_url: str
    category: str

    @classmethod
    def from_item(cls, item: GalleryItem) -> "GalleryResponse":
        return cls.model_validate(item)


class SliderResponse(_WireResponse):
    id: int
    title: str
    subtitle: str
    image_url: str
    cta_text: str
    cta_link: str
    secondary_cta_text: Optional[str] = None
    secondary_cta_link: Optional[str] = None

    @classmethod
    def from_item(cls, item: SliderItem) -> "SliderResponse":
        return cls.model_validate(item)


# ---------------------------------------------------------------------------
# Envelope and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    timestamp: str
