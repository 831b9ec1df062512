"""
auth/errors.py -- Closed set of authentication failures.

Callers match these with except/isinstance, never by message text. Each class
carries a stable `code` that the API layer copies into its error envelope.

MalformedToken, TokenExpired and InvalidSignature share the Unauthenticated
base: callers collapse them into a single 401, while logs keep the class name.

Messages never include a password, a password hash, or a raw token.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure raised by the auth package."""

    code = "auth_error"
    message = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class DuplicateUser(AuthError):
    code = "user_exists"
    message = "User already exists."


class InvalidCredentials(AuthError):
    """Raised for an unknown email AND for a wrong password, with one message."""

    code = "invalid_credentials"
    message = "Invalid email or password."


class Unauthenticated(AuthError):
    code = "unauthorized"
    message = "Authentication required."


class MalformedToken(Unauthenticated):
    message = "Token is malformed."


class TokenExpired(Unauthenticated):
    message = "Token has expired."


class InvalidSignature(Unauthenticated):
    message = "Token signature is invalid."


class StoreUnavailable(AuthError):
    """The credential store could not be reached. Not retried inside the core."""

    code = "store_unavailable"
    message = "Credential store unavailable."
