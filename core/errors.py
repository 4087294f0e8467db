"""
core/errors.py -- Domain error taxonomy for Digital Library.

Services raise these; api/main.py maps every LibraryError subclass onto the
shared ErrorResponse envelope using its code and status_code. Route handlers
never build error JSON for these cases themselves.

Low-level failures (credential decoding, token signature checks) never show up
here: the hasher returns False and the token validator returns None, and the
caller decides which of these errors that means.

Layer rule: core/ is the kernel. No imports from api/, auth/, or library/.
"""

from __future__ import annotations


class LibraryError(Exception):
    """Base class for errors that map to a client-facing HTTP response."""

    code = "error"
    status_code = 400
    message = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class InvalidCredentials(LibraryError):
    """Unknown email or wrong password.

    reason is for server logs only ("unknown_email", "wrong_password"). The
    response never carries it, so callers cannot enumerate registered emails.
    """

    code = "invalid_credentials"
    status_code = 401
    message = "Invalid email or password."

    def __init__(self, reason: str = "", message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message)


class DuplicateEmail(LibraryError):
    code = "duplicate_email"
    status_code = 409
    message = "An account with that email already exists."


class Unauthenticated(LibraryError):
    code = "unauthorized"
    status_code = 401
    message = "Authentication required."


class Forbidden(LibraryError):
    """Authenticated but addressing another account on the self-service surface."""

    code = "forbidden"
    status_code = 403
    message = "You may only act on your own account."


class NotFound(LibraryError):
    """Missing resource -- or one owned by someone else. The two are never distinguished."""

    code = "not_found"
    status_code = 404
    message = "Resource not found."


class ValidationFailure(LibraryError):
    code = "validation_error"
    status_code = 400
    message = "Request validation failed."
