"""
auth/passwords.py -- Password hashing and verification.

Credential format:
  base64( salt[16] || PBKDF2-HMAC-SHA256(password, salt, 10_000 rounds)[32] )

  48 raw bytes, 64 base64 characters. The salt is random per call, so hashing
  the same password twice gives two different credentials that both verify.
  The encoding is reversible only as far as the salt; the password cannot be
  recovered.

Verification never raises. A credential that fails to decode, has the wrong
length, or trips the KDF is reported exactly like a wrong password: False.

Layer rule: stdlib only. No imports from api/, library/, or core/.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import secrets

logger = logging.getLogger("digitallibrary.auth")

SALT_BYTES = 16
KEY_BYTES = 32
ITERATIONS = 10_000
_PRF = "sha256"
_CREDENTIAL_BYTES = SALT_BYTES + KEY_BYTES


def _derive(plain: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac(_PRF, plain.encode("utf-8"), salt, ITERATIONS, dklen=KEY_BYTES)


def hash_password(plain: str) -> str:
    """Return a storable salted credential for the given plaintext password."""
    salt = secrets.token_bytes(SALT_BYTES)
    return base64.b64encode(salt + _derive(plain, salt)).decode("ascii")


def verify_password(plain: str, credential: str) -> bool:
    """Return True if the plaintext password matches the stored credential.

    The stored key and the freshly derived key are compared with
    hmac.compare_digest, which does not exit early on the first differing byte.
    """
    try:
        raw = base64.b64decode(credential.encode("ascii"), validate=True)
        if len(raw) != _CREDENTIAL_BYTES:
            logger.warning("Stored credential has unexpected length %d", len(raw))
            return False
        salt, stored_key = raw[:SALT_BYTES], raw[SALT_BYTES:]
        return hmac.compare_digest(_derive(plain, salt), stored_key)
    except Exception:
        logger.warning("Stored credential could not be decoded")
        return False


# Timing equalization dummy credential.
# Computed once at module load. Login runs verify_password() against it when
# the email is unknown, so both failure paths cost one key derivation and
# response time does not reveal whether an account exists.
DUMMY_CREDENTIAL: str = hash_password("digitallibrary_timing_dummy")
