"""
api/routes/v1/account.py -- Self-service endpoints for the authenticated account.

Routes:
  PUT    /api/v1/account/profile    -- replace name and email
  PUT    /api/v1/account/password   -- change password (current password required)
  DELETE /api/v1/account            -- delete account and its books (password required)
  GET    /api/v1/users/{id}         -- own account only, 403 otherwise
  PATCH  /api/v1/users/{id}         -- partial update of own account, 403 otherwise
  DELETE /api/v1/users/{id}         -- delete own account (password required), 403 otherwise

A valid token is not enough for password change or deletion: both re-prove
the current password and answer 401 invalid_credentials when it is wrong.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import (
    AccountPatch,
    AccountResponse,
    ChangePasswordRequest,
    DeleteAccountRequest,
    MessageResponse,
    UpdateProfileRequest,
)
from auth.dependencies import get_current_identity
from auth.models import TokenIdentity
from auth.service import AccountService

# Every route here requires a bearer token.
router = APIRouter(dependencies=[Depends(get_current_identity)])


def _accounts(request: Request) -> AccountService:
    return request.app.state.account_service


# ---------------------------------------------------------------------------
# /account -- always the caller's own account
# ---------------------------------------------------------------------------


@router.put("/account/profile", response_model=AccountResponse)
def update_profile(
    request: Request,
    body: UpdateProfileRequest,
    caller: TokenIdentity = Depends(get_current_identity),
) -> AccountResponse:
    """Replace the caller's name and email. 409 if the email belongs to another account."""
    account = _accounts(request).update_profile(caller, body.first_name, body.last_name, body.email)
    return AccountResponse.from_account(account)


@router.put("/account/password", response_model=MessageResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    caller: TokenIdentity = Depends(get_current_identity),
) -> MessageResponse:
    _accounts(request).change_password(caller, body.current_password, body.new_password)
    return MessageResponse(message="Password updated.")


@router.delete("/account", status_code=204)
def delete_account(
    request: Request,
    body: DeleteAccountRequest,
    caller: TokenIdentity = Depends(get_current_identity),
) -> Response:
    """Delete the caller's account and all of its books."""
    _accounts(request).delete_account(caller, body.password)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# /users/{id} -- addressed by id, so the id must be the caller's
# ---------------------------------------------------------------------------


@router.get("/users/{account_id}", response_model=AccountResponse)
def get_user(
    request: Request,
    account_id: int,
    caller: TokenIdentity = Depends(get_current_identity),
) -> AccountResponse:
    return AccountResponse.from_account(_accounts(request).get_account(caller, account_id))


@router.patch("/users/{account_id}", response_model=AccountResponse)
def patch_user(
    request: Request,
    account_id: int,
    body: AccountPatch,
    caller: TokenIdentity = Depends(get_current_identity),
) -> AccountResponse:
    """Update only the fields present in the body."""
    account = _accounts(request).patch_account(caller, account_id, body.model_dump(exclude_unset=True))
    return AccountResponse.from_account(account)


@router.delete("/users/{account_id}", status_code=204)
def delete_user(
    request: Request,
    account_id: int,
    body: DeleteAccountRequest,
    caller: TokenIdentity = Depends(get_current_identity),
) -> Response:
    _accounts(request).delete_account_by_id(caller, account_id, body.password)
    return Response(status_code=204)
