"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Stores and the
service do the work; these classes own domain shape.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """The only two account roles. Any other value is rejected at construction."""

    producer = "producer"
    buyer = "buyer"


@dataclass
class User:
    """One persisted credential record.

    email is stored lower-cased by UserStore, which makes the UNIQUE index
    case-insensitive in effect. password_hash is the opaque string produced by
    auth.passwords.hash_password() and is never exposed outside the service.

    profile_completed starts False; only the profile service flips it, through
    UserStore.mark_profile_completed().
    """

    email: str
    password_hash: str
    role: Role
    name: str = ""
    id: int | None = None
    profile_completed: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    def __post_init__(self) -> None:
        # Raises ValueError for anything outside the closed set.
        self.role = Role(self.role)


@dataclass(frozen=True)
class UserView:
    """Public projection of a User -- everything except the hash."""

    id: int
    email: str
    name: str
    role: Role
    profile_completed: bool

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name or "",
            role=user.role,
            profile_completed=user.profile_completed,
        )


@dataclass(frozen=True)
class SessionClaims:
    """Facts carried inside a bearer token. Never persisted.

    issued_at and expires_at are integer epoch seconds (JWT iat / exp).
    """

    subject_id: int
    email: str
    name: str
    role: Role
    issued_at: int = 0
    expires_at: int = 0


@dataclass(frozen=True)
class AuthResult:
    """What signup and login hand back to the caller."""

    access_token: str
    expires_in: int
    user: UserView
