"""
API request and response models for Digital Library REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
library/models.py, which own the internal domain representation. Route
handlers map between the two.

Patch models (AccountPatch, BookPatch) make every field Optional. Routes call
model_dump(exclude_unset=True) so only fields the client actually sent reach
the service -- an omitted field is left unchanged.

No request model has an owner or account id field. Unknown keys in a body are
ignored, so a client cannot choose who owns a book.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from auth.models import Account
from library.models import Book

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Names and emails are trimmed. Passwords never are: every byte the client
# sends is part of the credential, at registration and at login alike.
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Email = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255, pattern=EMAIL_PATTERN)]


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Password length is checked by the account service against
    PASSWORD_MIN_LENGTH, not here, so the minimum stays configurable.
    """

    first_name: Name
    last_name: Name
    email: Email
    password: str = Field(min_length=1, max_length=255)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Account -- requests
# ---------------------------------------------------------------------------


class UpdateProfileRequest(BaseModel):
    """Request body for PUT /api/v1/account/profile. All fields required."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)


class AccountPatch(BaseModel):
    """Request body for PATCH /api/v1/users/{id}. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=255)
    new_password: str = Field(min_length=1, max_length=255)


class DeleteAccountRequest(BaseModel):
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Account -- responses
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    """Public view of an account. The credential is never included."""

    model_config = ConfigDict(frozen=True)

    id: int
    first_name: str
    last_name: str
    email: str
    display_name: str
    created_at: str

    @classmethod
    def from_account(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            display_name=account.display_name,
            created_at=account.created_at or "",
        )


class AuthResponse(BaseModel):
    """Response for register and login: a bearer token plus the account it belongs to."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: AccountResponse


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------


class BookCreate(BaseModel):
    """Request body for POST /api/v1/books."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    author: str = Field(min_length=1, max_length=200)
    year: int = Field(ge=1000, le=3000)
    rating: int = Field(ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=2000)
    cover_image_url: Optional[str] = Field(default=None, max_length=500)


class BookPatch(BaseModel):
    """Request body for PATCH/PUT /api/v1/books/{id}. Omitted fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    author: Optional[str] = Field(default=None, min_length=1, max_length=200)
    year: Optional[int] = Field(default=None, ge=1000, le=3000)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    review: Optional[str] = Field(default=None, max_length=2000)
    cover_image_url: Optional[str] = Field(default=None, max_length=500)


class BookResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: int
    title: str
    author: str
    year: int
    rating: int
    review: Optional[str]
    cover_image_url: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_book(cls, book: Book) -> "BookResponse":
        """Factory Method -- the mapping lives beside the output model, not in each route."""
        return cls(
            id=book.id,
            owner_id=book.owner_id,
            title=book.title,
            author=book.author,
            year=book.year,
            rating=book.rating,
            review=book.review,
            cover_image_url=book.cover_image_url,
            created_at=book.created_at,
            updated_at=book.updated_at,
        )
