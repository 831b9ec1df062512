"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer-token auth.

Sessions are stateless: the token alone proves the session. There is no
cookie and no server-side session list, so the only accepted carrier is the
`Authorization: Bearer <token>` header.

try_get_current_claims() is the soft variant (returns None on failure).
get_current_claims() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: auth/dependencies.py may import from fastapi because it is part of
the FastAPI dependency injection system. It does not import from api/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.errors import Unauthenticated
from auth.models import SessionClaims
from auth.service import AuthService

_BEARER_PREFIX = "Bearer "


def try_get_current_claims(request: Request) -> SessionClaims | None:
    """Return the caller's session claims, or None for a missing or bad token.

    Malformed, expired and badly signed tokens all yield None. AuthService
    logs which of the three it was.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        return None
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    if not token:
        return None

    service: AuthService = request.app.state.auth_service
    try:
        return service.authenticate(token)
    except Unauthenticated:
        return None


def get_current_claims(request: Request) -> SessionClaims:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: SessionClaims = Depends(get_current_claims)): ...
    """
    claims = try_get_current_claims(request)
    if claims is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims
