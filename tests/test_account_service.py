"""Unit tests for auth/service.py and auth/store.py -- account lifecycle.

Covers:
- register stores a hashed credential and returns a token for the new id
- duplicate email (case-insensitive) raises DuplicateEmail
- login: unknown email and wrong password both raise InvalidCredentials,
  with distinguishable internal reasons
- password change requires the current password; old/new credential behaviour
- account deletion requires the password and removes owned books
- self-service surface: another account's id raises Forbidden
- partial profile update leaves omitted fields unchanged
"""

from __future__ import annotations

import pytest

from auth.models import TokenIdentity
from auth.passwords import verify_password
from auth.service import AccountService
from core.errors import DuplicateEmail, Forbidden, InvalidCredentials, Unauthenticated, ValidationFailure
from library.models import Book


def _identity(account) -> TokenIdentity:
    return TokenIdentity(subject_id=account.id, email=account.email, display_name=account.display_name)


class TestRegistration:
    def test_register_creates_account_and_token(self, account_service: AccountService) -> None:
        result = account_service.register("Ada", "Lovelace", "a@x.com", "secret1")
        assert result.account.id == 1
        assert result.account.email == "a@x.com"
        assert result.account.hashed_password != "secret1"
        assert verify_password("secret1", result.account.hashed_password)
        identity = account_service.tokens.validate(result.token)
        assert identity.subject_id == 1
        assert identity.display_name == "Ada Lovelace"

    def test_email_is_normalized(self, account_service: AccountService) -> None:
        result = account_service.register("Ada", "Lovelace", "  Ada@X.com ", "secret1")
        assert result.account.email == "ada@x.com"
        assert account_service.accounts.exists_by_email("ADA@x.com")

    def test_duplicate_email_rejected(self, account_service: AccountService) -> None:
        account_service.register("Ada", "Lovelace", "a@x.com", "secret1")
        with pytest.raises(DuplicateEmail):
            account_service.register("Other", "Person", "A@X.COM", "secret2")

    def test_short_password_rejected(self, account_service: AccountService) -> None:
        with pytest.raises(ValidationFailure):
            account_service.register("Ada", "Lovelace", "a@x.com", "12345")
        assert not account_service.accounts.exists_by_email("a@x.com")


class TestLogin:
    def test_login_success_returns_new_token(self, account_service: AccountService) -> None:
        registered = account_service.register("Ada", "Lovelace", "a@x.com", "secret1")
        logged_in = account_service.login("a@x.com", "secret1")
        assert logged_in.token != registered.token
        assert account_service.tokens.validate(logged_in.token).subject_id == registered.account.id

    def test_wrong_password(self, account_service: AccountService) -> None:
        account_service.register("Ada", "Lovelace", "a@x.com", "secret1")
        with pytest.raises(InvalidCredentials) as excinfo:
            account_service.login("a@x.com", "wrong")
        assert excinfo.value.reason == "wrong_password"

    def test_unknown_email(self, account_service: AccountService) -> None:
        with pytest.raises(InvalidCredentials) as excinfo:
            account_service.login("nobody@x.com", "secret1")
        assert excinfo.value.reason == "unknown_email"

    def test_public_message_is_identical(self, account_service: AccountService) -> None:
        account_service.register("Ada", "Lovelace", "a@x.com", "secret1")
        with pytest.raises(InvalidCredentials) as unknown:
            account_service.login("nobody@x.com", "secret1")
        with pytest.raises(InvalidCredentials) as wrong:
            account_service.login("a@x.com", "wrong")
        assert unknown.value.message == wrong.value.message
        assert unknown.value.code == wrong.value.code

    def test_corrupt_stored_credential_is_a_failed_login(self, account_service: AccountService) -> None:
        account = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        account_service.accounts.update_account(account.id, hashed_password="!!corrupt!!")
        with pytest.raises(InvalidCredentials):
            account_service.login("a@x.com", "secret1")


class TestPasswordChange:
    def test_wrong_current_password_keeps_old_credential(self, account_service: AccountService) -> None:
        account = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        with pytest.raises(InvalidCredentials):
            account_service.change_password(_identity(account), "not-it", "newsecret")
        stored = account_service.accounts.find_by_id(account.id)
        assert verify_password("secret1", stored.hashed_password)
        assert not verify_password("newsecret", stored.hashed_password)

    def test_correct_current_password_replaces_credential(self, account_service: AccountService) -> None:
        account = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        account_service.change_password(_identity(account), "secret1", "newsecret")
        stored = account_service.accounts.find_by_id(account.id)
        assert not verify_password("secret1", stored.hashed_password)
        assert verify_password("newsecret", stored.hashed_password)
        with pytest.raises(InvalidCredentials):
            account_service.login("a@x.com", "secret1")
        assert account_service.login("a@x.com", "newsecret").account.id == account.id

    def test_new_password_must_meet_minimum(self, account_service: AccountService) -> None:
        account = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        with pytest.raises(ValidationFailure):
            account_service.change_password(_identity(account), "secret1", "123")
        stored = account_service.accounts.find_by_id(account.id)
        assert verify_password("secret1", stored.hashed_password)


class TestDeletion:
    def test_wrong_password_keeps_account(self, account_service: AccountService) -> None:
        account = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        with pytest.raises(InvalidCredentials):
            account_service.delete_account(_identity(account), "wrong")
        assert account_service.accounts.find_by_id(account.id) is not None

    def test_delete_removes_account_and_books(self, account_service: AccountService, stores) -> None:
        _accounts, books = stores
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        b = account_service.register("Bob", "Builder", "b@x.com", "secret1").account
        books.create_book(Book(owner_id=a.id, title="Dune", author="Herbert", year=1965, rating=5))
        books.create_book(Book(owner_id=b.id, title="Emma", author="Austen", year=1815, rating=4))

        account_service.delete_account(_identity(a), "secret1")

        assert account_service.accounts.find_by_id(a.id) is None
        assert books.list_by_owner(a.id) == []
        assert [bk.title for bk in books.list_by_owner(b.id)] == ["Emma"]

    def test_token_for_deleted_account_is_unauthenticated(self, account_service: AccountService) -> None:
        account = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        identity = _identity(account)
        account_service.delete_account(identity, "secret1")
        with pytest.raises(Unauthenticated):
            account_service.current_account(identity)

    def test_account_row_is_gone_before_books_are_purged(self, stores, tokens) -> None:
        accounts, _books = stores
        seen = []

        def record_purge(owner_id: int) -> None:
            seen.append(accounts.find_by_id(owner_id))

        service = AccountService(accounts, tokens, purge_owned=record_purge)
        account = service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        service.delete_account(_identity(account), "secret1")
        assert seen == [None]

    def test_failed_purge_leaves_no_live_account(self, stores, tokens) -> None:
        accounts, _books = stores

        def broken_purge(owner_id: int) -> None:
            raise RuntimeError("purge failed")

        service = AccountService(accounts, tokens, purge_owned=broken_purge)
        account = service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        with pytest.raises(RuntimeError):
            service.delete_account(_identity(account), "secret1")
        assert accounts.find_by_id(account.id) is None

    def test_delete_other_account_by_id_is_forbidden(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        b = account_service.register("Bob", "Builder", "b@x.com", "secret1").account
        with pytest.raises(Forbidden):
            account_service.delete_account_by_id(_identity(a), b.id, "secret1")
        assert account_service.accounts.find_by_id(b.id) is not None


class TestSelfService:
    def test_get_own_account(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        assert account_service.get_account(_identity(a), a.id).email == "a@x.com"

    def test_get_other_account_is_forbidden(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        b = account_service.register("Bob", "Builder", "b@x.com", "secret1").account
        with pytest.raises(Forbidden):
            account_service.get_account(_identity(a), b.id)

    def test_patch_leaves_omitted_fields(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        updated = account_service.patch_account(_identity(a), a.id, {"first_name": "Augusta"})
        assert updated.first_name == "Augusta"
        assert updated.last_name == "Lovelace"
        assert updated.email == "a@x.com"
        assert verify_password("secret1", updated.hashed_password)

    def test_patch_ignores_credential_field(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        account_service.patch_account(_identity(a), a.id, {"hashed_password": "x", "id": 99})
        stored = account_service.accounts.find_by_id(a.id)
        assert stored.id == a.id
        assert verify_password("secret1", stored.hashed_password)

    def test_patch_null_required_field_rejected(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        with pytest.raises(ValidationFailure):
            account_service.patch_account(_identity(a), a.id, {"last_name": None})

    def test_patch_other_account_is_forbidden(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        b = account_service.register("Bob", "Builder", "b@x.com", "secret1").account
        with pytest.raises(Forbidden):
            account_service.patch_account(_identity(a), b.id, {"first_name": "Mallory"})
        assert account_service.accounts.find_by_id(b.id).first_name == "Bob"

    def test_profile_email_taken_by_other_account(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        account_service.register("Bob", "Builder", "b@x.com", "secret1")
        with pytest.raises(DuplicateEmail):
            account_service.update_profile(_identity(a), "Ada", "Lovelace", "B@x.com")

    def test_profile_keeping_own_email_is_allowed(self, account_service: AccountService) -> None:
        a = account_service.register("Ada", "Lovelace", "a@x.com", "secret1").account
        updated = account_service.update_profile(_identity(a), "Ada", "King", "a@x.com")
        assert updated.last_name == "King"
