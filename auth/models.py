"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in library/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: no imports from api/ or library/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """A registered library user.

    email is unique across accounts and stored normalized (stripped,
    lower-cased) so uniqueness checks are case-insensitive.

    hashed_password is the credential produced by auth.passwords.hash_password():
    base64 of salt || derived key. The plaintext is never stored.

    id is None before the record is written to the database.
    """

    first_name: str
    last_name: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class TokenIdentity:
    """The caller's identity, produced once when a bearer token validates.

    Downstream code reads these typed fields instead of looking claims up by
    name. subject_id is always a positive account id.
    """

    subject_id: int
    email: str
    display_name: str
