"""
auth/identity.py -- Turn a validated claim set into a typed caller identity.

Tokens carry the subject id under two claim names: "user_id" (read first) and
the registered "sub" claim. Either is accepted; both are strings or ints on
the wire depending on the issuer.

A missing claim, a non-numeric value, and the sentinel 0 all mean "no usable
identity". Nothing downstream may proceed with subject id 0, so the resolver
reports None and the HTTP layer answers 401.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from auth.models import TokenIdentity

SUBJECT_CLAIMS = ("user_id", "sub")
NO_IDENTITY = 0


def resolve_subject_id(claims: Mapping[str, Any]) -> int | None:
    """Return the positive account id asserted by the claims, or None."""
    for name in SUBJECT_CLAIMS:
        raw = claims.get(name)
        if raw is None or isinstance(raw, bool):
            continue
        try:
            subject_id = int(str(raw).strip())
        except ValueError:
            return None
        if subject_id <= NO_IDENTITY:
            return None
        return subject_id
    return None


def identity_from_claims(claims: Mapping[str, Any]) -> TokenIdentity | None:
    subject_id = resolve_subject_id(claims)
    if subject_id is None:
        return None
    return TokenIdentity(
        subject_id=subject_id,
        email=str(claims.get("email") or ""),
        display_name=str(claims.get("name") or ""),
    )
