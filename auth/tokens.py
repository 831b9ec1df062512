"""
auth/tokens.py -- Signed session tokens (HS256 JWT via python-jose).

Security design decisions:
  Signing: HMAC-SHA256 with a symmetric secret supplied by the caller. The
       secret comes from core.config.get_settings().jwt_secret in production,
       which is validated at startup (required, >= 32 characters).

  Claims: sub (user id as a string, per RFC 7519), email, name, role, iat, exp.
       Nothing is stored server-side; a token is valid purely by signature and
       expiry at verification time.

  Failure kinds: verify_token() raises MalformedToken, InvalidSignature or
       TokenExpired. All three are Unauthenticated -- the route layer turns
       any of them into a 401 -- but the class name is kept for logging.

       Classification order matters. The structure and claim set are checked
       on the unverified payload first (MalformedToken). jwt.decode() then
       checks the signature before the expiry, so a tampered token that is
       also expired is reported as InvalidSignature.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import InvalidSignature, MalformedToken, TokenExpired
from auth.models import Role, SessionClaims

_ALGORITHM = "HS256"

# 24 hours.
DEFAULT_TTL_SECONDS = 24 * 60 * 60

_REQUIRED_CLAIMS = frozenset({"sub", "email", "name", "role", "iat", "exp"})


def issue_token(
    subject_id: int,
    email: str,
    name: str,
    role: Role | str,
    secret: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    now: datetime | None = None,
) -> str:
    """Encode a signed JWT for one user session.

    Args:
        subject_id:  Credential record id.
        email:       Account email.
        name:        Display name ("" when absent).
        role:        Role enum member or its string value.
        secret:      HMAC signing secret.
        ttl_seconds: Session duration. Defaults to 24 hours.
        now:         Issue time; defaults to the current UTC time.
    """
    issued = now or datetime.now(timezone.utc)
    expires = issued + timedelta(seconds=ttl_seconds)
    payload = {
        "sub": str(subject_id),
        "email": email,
        "name": name or "",
        "role": Role(role).value,
        "iat": int(issued.timestamp()),
        "exp": int(expires.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def verify_token(token: str, secret: str) -> SessionClaims:
    """Verify a JWT and return its claims.

    Raises:
        MalformedToken:   not a compact JWS, undecodable payload, or a claim
                          set that does not match what issue_token() writes.
        InvalidSignature: the HMAC does not match (wrong secret or tampering).
        TokenExpired:     current time is past the exp claim.
    """
    try:
        unverified = jwt.get_unverified_claims(token)
    except (JWTError, AttributeError, TypeError) as exc:
        raise MalformedToken() from exc
    if not _REQUIRED_CLAIMS.issubset(unverified):
        raise MalformedToken()

    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTClaimsError as exc:
        raise MalformedToken() from exc
    except JWTError as exc:
        raise InvalidSignature() from exc

    try:
        return SessionClaims(
            subject_id=int(payload["sub"]),
            email=payload["email"],
            name=payload["name"],
            role=Role(payload["role"]),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )
    except (TypeError, ValueError) as exc:
        raise MalformedToken() from exc
