"""
auth/service.py -- Signup and login orchestration.

AuthService holds no mutable state of its own: the store handle, signing
secret and TTL are fixed at construction. All durable state lives in the
UserStore, which is the only point of shared mutation between requests.

Security:
  Login raises the same InvalidCredentials for an unknown email and for a
  wrong password. The unknown-email branch still runs a full PBKDF2 derivation
  against DUMMY_HASH so the two branches cost the same.

  Signup checks for an existing email and then inserts. The gap between the
  two is closed by UNIQUE(email): IntegrityError from the insert is reported
  as DuplicateUser, exactly like the pre-check.

  Plaintext passwords and tokens are never logged. Log records carry user ids
  and failure class names only.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateUser, InvalidCredentials, Unauthenticated
from auth.models import AuthResult, Role, SessionClaims, User, UserView
from auth.passwords import DUMMY_HASH, hash_password, verify_password
from auth.store import UserStore
from auth.tokens import DEFAULT_TTL_SECONDS, issue_token, verify_token

logger = logging.getLogger("marketplace.auth")


class AuthService:
    """Signup, login and bearer-token authentication over a UserStore.

    Usage:
        service = AuthService(store, secret=settings.jwt_secret)
        result = service.signup("a@x.com", "secret123", "Alice", Role.producer)
        claims = service.authenticate(result.access_token)
    """

    def __init__(self, store: UserStore, secret: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self.store = store
        self._secret = secret
        self.ttl_seconds = ttl_seconds

    def signup(self, email: str, password: str, name: str, role: Role | str) -> AuthResult:
        """Create a credential record and open a session for it.

        Raises:
            DuplicateUser: the email is already registered, either found by
                the pre-check or rejected by the store's UNIQUE constraint.
            ValueError: role is not one of the Role values.
        """
        role = Role(role)
        if self.store.find_by_email(email) is not None:
            raise DuplicateUser()

        user = User(
            email=email,
            password_hash=hash_password(password),
            role=role,
            name=name,
            profile_completed=False,
        )
        try:
            created = self.store.insert(user)
        except IntegrityError as exc:
            # A concurrent signup for the same email won the race.
            logger.info("Signup lost uniqueness race")
            raise DuplicateUser() from exc

        logger.info("Signup succeeded for user id=%s", created.id)
        return self._auth_result(created)

    def login(self, email: str, password: str) -> AuthResult:
        """Verify an email/password pair and open a session.

        Raises:
            InvalidCredentials: unknown email or wrong password. The two cases
                are deliberately indistinguishable.
        """
        user = self.store.find_by_email(email)
        if user is None:
            verify_password(password, DUMMY_HASH)
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentials()

        logger.info("Login succeeded for user id=%s", user.id)
        return self._auth_result(user)

    def authenticate(self, token: str) -> SessionClaims:
        """Return the claims of a bearer token, or raise an Unauthenticated subclass."""
        try:
            return verify_token(token, self._secret)
        except Unauthenticated as exc:
            logger.info("Token rejected: %s", type(exc).__name__)
            raise

    def _auth_result(self, user: User) -> AuthResult:
        token = issue_token(
            subject_id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            secret=self._secret,
            ttl_seconds=self.ttl_seconds,
        )
        return AuthResult(
            access_token=token,
            expires_in=self.ttl_seconds,
            user=UserView.from_user(user),
        )
