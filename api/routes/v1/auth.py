"""
api/routes/v1/auth.py -- Registration, login, and current-identity endpoints.

Routes:
  POST /api/v1/auth/register   -- create account; returns token + account (201)
  POST /api/v1/auth/login      -- password login; returns token + account
  GET  /api/v1/auth/me         -- current account (requires auth)

Security:
  Login answers unknown email and wrong password with the same 401
  "invalid_credentials" body; AccountService.authenticate() equalizes timing.
  Cache-Control: no-store on every register/login response, so tokens are
  not kept by intermediaries.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import AccountResponse, AuthResponse, ErrorDetail, ErrorResponse, LoginRequest, RegisterRequest
from auth.dependencies import get_current_identity
from auth.models import TokenIdentity
from auth.service import AccountService, AuthResult
from core.errors import InvalidCredentials

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public
# - GET  /api/v1/auth/me:       requires auth (get_current_identity)
router = APIRouter()


def _auth_response(request: Request, result: AuthResult, status_code: int) -> JSONResponse:
    accounts: AccountService = request.app.state.account_service
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(
            token=result.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=accounts.tokens.expires_in,
            user=AccountResponse.from_account(result.account),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and sign the new user in.

    Duplicate email -> 409, password below the configured minimum -> 400.
    """
    accounts: AccountService = request.app.state.account_service
    result = accounts.register(body.first_name, body.last_name, body.email, body.password)
    return _auth_response(request, result, 201)


@router.post("/auth/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a bearer token.

    Returns the same generic error for unknown email and wrong password to
    avoid leaking which emails are registered.
    """
    accounts: AccountService = request.app.state.account_service
    try:
        result = accounts.login(body.email, body.password)
    except InvalidCredentials as exc:
        resp = JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=ErrorDetail(code=exc.code, message=InvalidCredentials.message)).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp
    return _auth_response(request, result, 200)


@router.get("/auth/me", response_model=AccountResponse)
def me(request: Request, caller: TokenIdentity = Depends(get_current_identity)) -> AccountResponse:
    """Return the account behind the current bearer token."""
    accounts: AccountService = request.app.state.account_service
    return AccountResponse.from_account(accounts.current_account(caller))
