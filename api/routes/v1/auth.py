"""
api/routes/v1/auth.py -- Signup, login and session identity endpoints.

Routes:
  POST /api/v1/auth/sign-up   -- create an account; returns a bearer token
  POST /api/v1/auth/log-in    -- password login; returns a bearer token
  GET  /api/v1/auth/me        -- claims of the current bearer token (requires auth)

Security:
  Sign-up and log-in are plain `def` handlers. FastAPI runs them on its worker
  thread pool, so the PBKDF2 derivation does not block the event loop.
  Log-in returns one generic error for unknown email and wrong password.
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import AuthResponse, ErrorDetail, ErrorResponse, LoginRequest, MeResponse, SignupRequest
from auth.dependencies import get_current_claims
from auth.errors import DuplicateUser, InvalidCredentials
from auth.models import AuthResult, SessionClaims
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/sign-up: public
# - POST /api/v1/auth/log-in:  public
# - GET  /api/v1/auth/me:      requires auth (get_current_claims)
router = APIRouter()


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump(exclude_none=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _token_response(result: AuthResult) -> JSONResponse:
    resp = JSONResponse(
        status_code=200,
        content=AuthResponse.from_result(result).model_dump(mode="json", by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/sign-up", response_model=AuthResponse)
def sign_up(request: Request, body: SignupRequest) -> JSONResponse:
    """Register a producer or buyer account and return a session token.

    409 if the email is already registered (including a concurrent signup
    that won the race on the UNIQUE index).
    """
    service: AuthService = request.app.state.auth_service
    try:
        result = service.signup(str(body.email), body.password, body.name, body.role)
    except DuplicateUser as exc:
        return _error(409, exc.code, exc.message)
    return _token_response(result)


@router.post("/auth/log-in", response_model=AuthResponse)
def log_in(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and return a session token."""
    service: AuthService = request.app.state.auth_service
    try:
        result = service.login(str(body.email), body.password)
    except InvalidCredentials as exc:
        return _error(401, exc.code, exc.message)
    return _token_response(result)


@router.get("/auth/me", response_model=MeResponse, response_model_by_alias=True)
async def me(claims: SessionClaims = Depends(get_current_claims)) -> MeResponse:
    """Return the identity carried by the caller's bearer token."""
    return MeResponse.from_claims(claims)
