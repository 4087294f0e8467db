"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Protected routes authenticate with an Authorization: Bearer <token> header.
The token is validated by the TokenService on app.state and its subject must
still exist in the AccountStore. Only then does it yield a TokenIdentity, which
is all downstream code needs to scope data access.

try_get_current_identity() is the soft variant (returns None on failure).
get_current_identity() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: no imports from api/ or library/.
  auth/dependencies.py may import from fastapi (for Request/HTTPException)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.models import TokenIdentity
from auth.store import AccountStore
from auth.tokens import TokenService

logger = logging.getLogger("digitallibrary.auth")

_BEARER_PREFIX = "bearer "


def bearer_token(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None if absent or not Bearer."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header[: len(_BEARER_PREFIX)].lower() != _BEARER_PREFIX:
        return None
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    return token or None


def try_get_current_identity(request: Request) -> TokenIdentity | None:
    """Attempt to authenticate the request from its bearer token.

    Returns the caller's TokenIdentity on success, None on any failure.
    A valid token whose account has since been deleted is a failure too, so a
    deleted account can neither read nor write through a token it still holds.
    Never raises -- callers that need a hard 401 should use get_current_identity().
    """
    token = bearer_token(request)
    if token is None:
        return None
    tokens: TokenService = request.app.state.token_service
    identity = tokens.validate(token)
    if identity is None:
        return None
    accounts: AccountStore = request.app.state.account_store
    if accounts.find_by_id(identity.subject_id) is None:
        logger.info("Rejected token for missing account %d", identity.subject_id)
        return None
    return identity


def get_current_identity(request: Request) -> TokenIdentity:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(caller: TokenIdentity = Depends(get_current_identity)): ...
    """
    identity = try_get_current_identity(request)
    if identity is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
