"""
auth/service.py -- Registration, login, and account self-service.

Security design decisions:
  Login runs a key derivation whether or not the email exists. Unknown email
      verifies against DUMMY_CREDENTIAL, so response time does not reveal which
      emails are registered. Both failures raise InvalidCredentials; the reason
      is logged server-side and never returned.

  Sensitive operations re-prove the password. change_password() and
      delete_account() call verify_password() on the current password even
      though the caller already holds a valid token.

  Account deletion removes the account row first, then its books through
      purge_owned().

  Email uniqueness is checked before create and update (DuplicateEmail), and
      the store's UNIQUE constraint is the backstop for concurrent writes.

  Account-addressed operations (get_account / patch_account /
      delete_account_by_id) go through require_self(), which answers Forbidden
      when the id is not the caller's.

Layer rule: no imports from api/ or library/. Owned data elsewhere (books) is
removed through the purge_owned callback wired up in api/main.py.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError

from auth.guard import apply_patch, require_self
from auth.models import Account, TokenIdentity
from auth.passwords import DUMMY_CREDENTIAL, hash_password, verify_password
from auth.store import AccountStore, normalize_email
from auth.tokens import TokenService
from core.errors import DuplicateEmail, InvalidCredentials, NotFound, Unauthenticated, ValidationFailure

logger = logging.getLogger("digitallibrary.auth")

PROFILE_FIELDS = ("first_name", "last_name", "email")


@dataclass
class AuthResult:
    """A freshly issued token and the account it speaks for."""

    token: str
    account: Account


class AccountService:
    """Account lifecycle on top of an AccountStore and a TokenService.

    Usage:
        service = AccountService(AccountStore(url), TokenService(config))
        result = service.register("Ada", "Lovelace", "ada@x.com", "secret1")
        result = service.login("ada@x.com", "secret1")
    """

    def __init__(
        self,
        accounts: AccountStore,
        tokens: TokenService,
        password_min_length: int = 6,
        purge_owned: Callable[[int], Any] | None = None,
    ) -> None:
        self.accounts = accounts
        self.tokens = tokens
        self.password_min_length = password_min_length
        self.purge_owned = purge_owned

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def register(self, first_name: str, last_name: str, email: str, password: str) -> AuthResult:
        """Create an account and return a token for it.

        Raises DuplicateEmail if the email is taken, ValidationFailure if the
        password is shorter than the configured minimum.
        """
        self._check_password_length(password)
        if self.accounts.exists_by_email(email):
            raise DuplicateEmail()
        account = Account(
            first_name=first_name,
            last_name=last_name,
            email=normalize_email(email),
            hashed_password=hash_password(password),
        )
        try:
            account_id = self.accounts.create_account(account)
        except IntegrityError as exc:
            # A concurrent registration won the race for this email.
            raise DuplicateEmail() from exc
        created = self.accounts.find_by_id(account_id)
        logger.info("Registered account %d", account_id)
        return AuthResult(token=self._issue(created), account=created)

    def authenticate(self, email: str, password: str) -> Account:
        """Return the account for these credentials or raise InvalidCredentials.

        Always runs one key derivation, including for unknown emails.
        """
        account = self.accounts.find_by_email(email)
        if account is None:
            verify_password(password, DUMMY_CREDENTIAL)
            raise InvalidCredentials(reason="unknown_email")
        if not verify_password(password, account.hashed_password):
            raise InvalidCredentials(reason="wrong_password")
        return account

    def login(self, email: str, password: str) -> AuthResult:
        try:
            account = self.authenticate(email, password)
        except InvalidCredentials as exc:
            logger.info("Login failed (%s)", exc.reason)
            raise
        logger.info("Account %d logged in", account.id)
        return AuthResult(token=self._issue(account), account=account)

    # ------------------------------------------------------------------
    # Self-service
    # ------------------------------------------------------------------

    def current_account(self, caller: TokenIdentity) -> Account:
        """Return the caller's account.

        A valid token whose account has since been deleted is treated as
        unauthenticated: there is no identity left to act as.
        """
        account = self.accounts.find_by_id(caller.subject_id)
        if account is None:
            raise Unauthenticated()
        return account

    def get_account(self, caller: TokenIdentity, account_id: int) -> Account:
        require_self(account_id, caller)
        return self.current_account(caller)

    def update_profile(self, caller: TokenIdentity, first_name: str, last_name: str, email: str) -> Account:
        """Replace all profile fields of the caller's account."""
        return self.patch_account(
            caller,
            caller.subject_id,
            {"first_name": first_name, "last_name": last_name, "email": email},
        )

    def patch_account(self, caller: TokenIdentity, account_id: int, changes: Mapping[str, Any]) -> Account:
        """Apply a partial profile update to the caller's own account.

        Only keys present in changes are written. A new email that belongs to
        another account raises DuplicateEmail.
        """
        require_self(account_id, caller)
        account = self.current_account(caller)
        updates = apply_patch(changes, allowed=PROFILE_FIELDS, required=PROFILE_FIELDS)
        if "email" in updates:
            owner = self.accounts.find_by_email(updates["email"])
            if owner is not None and owner.id != account.id:
                raise DuplicateEmail()
        try:
            self.accounts.update_account(account.id, **updates)
        except IntegrityError as exc:
            raise DuplicateEmail() from exc
        return self.accounts.find_by_id(account.id)

    def change_password(self, caller: TokenIdentity, current_password: str, new_password: str) -> None:
        """Replace the caller's credential after re-proving the current password."""
        account = self.current_account(caller)
        if not verify_password(current_password, account.hashed_password):
            logger.info("Password change rejected for account %d (wrong current password)", account.id)
            raise InvalidCredentials(reason="wrong_password", message="Current password is incorrect.")
        self._check_password_length(new_password)
        self.accounts.update_account(account.id, hashed_password=hash_password(new_password))
        logger.info("Password changed for account %d", account.id)

    def delete_account(self, caller: TokenIdentity, password: str) -> None:
        """Delete the caller's account and everything it owns after re-proving the password.

        The account row goes first. Once it is gone no token can act for it, so
        books left behind by a failed purge are unreachable rather than attached
        to a live account that has lost them.
        """
        account = self.current_account(caller)
        if not verify_password(password, account.hashed_password):
            logger.info("Account deletion rejected for account %d (wrong password)", account.id)
            raise InvalidCredentials(reason="wrong_password", message="Password is incorrect.")
        if not self.accounts.delete_account(account.id):
            raise NotFound("Account not found.")
        if self.purge_owned is not None:
            self.purge_owned(account.id)
        logger.info("Deleted account %d", account.id)

    def delete_account_by_id(self, caller: TokenIdentity, account_id: int, password: str) -> None:
        require_self(account_id, caller)
        self.delete_account(caller, password)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _issue(self, account: Account) -> str:
        return self.tokens.issue(account.id, account.email, account.display_name)

    def _check_password_length(self, password: str) -> None:
        if len(password) < self.password_min_length:
            raise ValidationFailure(f"Password must be at least {self.password_min_length} characters.")
