"""
API request and response models for the marketplace auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Route handlers map between the two.

Wire format: response fields are camelCase (accessToken, expiresIn,
profileCompleted) to match the existing web and mobile clients. Models are
built with snake_case names and dumped with by_alias=True.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

from auth.models import AuthResult, Role, SessionClaims, UserView

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_PASSWORD_LENGTH = 6
# Upper bound keeps request bodies small; PBKDF2 itself has no length limit.
MAX_PASSWORD_LENGTH = 255


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/auth/sign-up.

    role must be exactly "producer" or "buyer"; anything else is a 422.
    Only name is trimmed; the password is hashed exactly as sent so log-in
    with the same string verifies.
    """

    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    role: Role


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/log-in."""

    email: EmailStr
    password: str = Field(max_length=MAX_PASSWORD_LENGTH)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class UserResponse(_CamelModel):
    """Public view of a credential record. Never carries the password hash."""

    id: int
    email: str
    name: str
    role: Role
    profile_completed: bool

    @classmethod
    def from_view(cls, view: UserView) -> "UserResponse":
        return cls(
            id=view.id,
            email=view.email,
            name=view.name,
            role=view.role,
            profile_completed=view.profile_completed,
        )


class AuthResponse(_CamelModel):
    """Response for sign-up and log-in: {accessToken, expiresIn, user}."""

    access_token: str
    expires_in: int
    user: UserResponse

    @classmethod
    def from_result(cls, result: AuthResult) -> "AuthResponse":
        return cls(
            access_token=result.access_token,
            expires_in=result.expires_in,
            user=UserResponse.from_view(result.user),
        )


class MeResponse(_CamelModel):
    """Response for GET /api/v1/auth/me -- the caller's session claims."""

    id: int
    email: str
    name: str
    role: Role
    issued_at: int
    expires_at: int

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> "MeResponse":
        return cls(
            id=claims.subject_id,
            email=claims.email,
            name=claims.name,
            role=claims.role,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )


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
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
