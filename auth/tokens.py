"""
auth/tokens.py -- Bearer token issuing and validation.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the configured secret
       and carry the account id (as both "sub" and "user_id"), email, display
       name, issuer, audience, issue time, expiry and a random jti. The jti
       makes two tokens minted for the same account in the same second differ.

  Validation checks signature, issuer, audience and expiry, then resolves the
       subject id. It returns None on any failure -- the route layer turns that
       into a 401. No partial trust: a token that fails any check yields no
       identity at all.

  Config is explicit: TokenService receives a TokenConfig at construction.
       Nothing in this module reads settings or environment variables, so the
       signing key is fixed for the service's lifetime and the service can be
       shared freely across concurrent requests.

  Tokens are never stored server-side and cannot be revoked before expiry.

Layer rule: no imports from api/ or library/. core/ may be imported (it is the
kernel and has no reverse dependencies).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from auth.identity import identity_from_claims
from auth.models import TokenIdentity

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("digitallibrary.auth")

ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenConfig:
    """Process-wide signing parameters, fixed after startup."""

    secret_key: str
    issuer: str
    audience: str
    expire_minutes: int = 60


class TokenService:
    """Mint and validate identity tokens for one TokenConfig.

    Usage:
        tokens = TokenService(TokenConfig(secret_key=..., issuer=..., audience=...))
        token = tokens.issue(42, "a@x.com", "Ada Lovelace")
        identity = tokens.validate(token)   # TokenIdentity(subject_id=42, ...) or None
    """

    def __init__(self, config: TokenConfig) -> None:
        self.config = config

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(
            TokenConfig(
                secret_key=settings.secret_key,
                issuer=settings.jwt_issuer,
                audience=settings.jwt_audience,
                expire_minutes=settings.token_expire_minutes,
            )
        )

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds, as reported to clients."""
        return self.config.expire_minutes * 60

    def issue(self, subject_id: int, email: str, display_name: str, now: datetime | None = None) -> str:
        """Encode a signed token asserting the given account identity.

        now defaults to the current UTC time; tests pass an earlier instant to
        produce already-expired tokens.
        """
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": str(subject_id),
            "user_id": str(subject_id),
            "email": email,
            "name": display_name,
            "iss": self.config.issuer,
            "aud": self.config.audience,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.config.expire_minutes),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(claims, self.config.secret_key, algorithm=ALGORITHM)

    def validate(self, token: str) -> TokenIdentity | None:
        """Verify a token and return the caller's identity, or None on any failure."""
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[ALGORITHM],
                audience=self.config.audience,
                issuer=self.config.issuer,
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            return None
        return identity_from_claims(claims)
