"""
auth/guard.py -- Ownership checks shared by every per-user data path.

Policy: for accounts A != B, nothing done as A may return, modify, or delete
a resource owned by B.

  require_owner() -- single-item reads/updates/deletes. A resource owned by
      someone else is reported as NotFound, word for word the same as a
      missing one, so ids belonging to other accounts cannot be probed.

  require_self() -- the account self-service surface (/users/{id}). There the
      addressed resource is an account, the same kind of thing as the caller,
      so a mismatch is an explicit Forbidden.

  apply_patch() -- merge semantics for partial updates: only keys present in
      the change set are written.

Collection reads do not go through this module; they filter by owner in SQL
(library/store.py list_by_owner / search).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from auth.models import TokenIdentity
from core.errors import Forbidden, NotFound, ValidationFailure

logger = logging.getLogger("digitallibrary.auth")


def require_owner(owner_id: int | None, caller: TokenIdentity, what: str = "Resource") -> None:
    """Raise NotFound unless the resource exists and belongs to caller.

    owner_id is None when the lookup found nothing.
    """
    if owner_id is None or owner_id != caller.subject_id:
        if owner_id is not None:
            logger.info("Account %d denied access to a %s owned by another account", caller.subject_id, what.lower())
        raise NotFound(f"{what} not found.")


def require_self(account_id: int, caller: TokenIdentity) -> None:
    """Raise Forbidden unless account_id is the caller's own account."""
    if account_id != caller.subject_id:
        logger.info("Account %d attempted to act on account %d", caller.subject_id, account_id)
        raise Forbidden()


def apply_patch(changes: Mapping[str, Any], allowed: Iterable[str], required: Iterable[str] = ()) -> dict[str, Any]:
    """Return the subset of changes to write, enforcing merge semantics.

    changes must hold only the fields the client actually sent (Pydantic
    model_dump(exclude_unset=True)). Keys outside allowed are dropped. An
    explicit null for a required field is a ValidationFailure rather than a
    silent clear.
    """
    allowed = set(allowed)
    required = set(required)
    updates = {k: v for k, v in changes.items() if k in allowed}
    nulled = sorted(k for k, v in updates.items() if v is None and k in required)
    if nulled:
        raise ValidationFailure(f"Field(s) cannot be null: {', '.join(nulled)}.")
    return updates
