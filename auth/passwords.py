"""
auth/passwords.py -- Salted password hashing (PBKDF2-HMAC-SHA256).

Stored format: standard base64 of salt || derived_key, a single printable
string of 64 characters (16 salt bytes + 32 key bytes = 48 bytes).

Security design decisions:
  Salt: 16 random bytes from the secrets module per hash, so identical
       passwords never share a stored value and precomputed tables are useless.

  Work factor: 100,000 PBKDF2 iterations. Parameters are module constants and
       are not recorded in the stored string (see DESIGN.md, open question on
       parameter versioning).

  Comparison: hmac.compare_digest, which does not exit at the first differing
       byte.

  Failure surface: verify_password() returns False for anything it cannot
       decode. A corrupt record looks exactly like a wrong password.

  DUMMY_HASH: computed once at import so AuthService.login() can run a full
       derivation when the email is unknown. Response time then does not reveal
       whether an email is registered.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import secrets

SALT_LENGTH = 16
ITERATIONS = 100_000
HASH_LENGTH = 32
_DIGEST = "sha256"


def _derive(plain: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac(_DIGEST, plain.encode("utf-8"), salt, ITERATIONS, dklen=HASH_LENGTH)


def hash_password(plain: str) -> str:
    """Return the encoded salt || PBKDF2 key for a plaintext password."""
    salt = secrets.token_bytes(SALT_LENGTH)
    return base64.b64encode(salt + _derive(plain, salt)).decode("ascii")


def verify_password(plain: str, stored: str) -> bool:
    """Return True if the plaintext password matches the stored hash.

    Never raises: an undecodable or wrongly sized stored value returns False.
    """
    try:
        combined = base64.b64decode(stored, validate=True)
    except (binascii.Error, ValueError, TypeError):
        return False
    if len(combined) != SALT_LENGTH + HASH_LENGTH:
        return False
    salt, expected = combined[:SALT_LENGTH], combined[SALT_LENGTH:]
    try:
        candidate = _derive(plain, salt)
    except (AttributeError, UnicodeEncodeError):
        return False
    return hmac.compare_digest(candidate, expected)


# Timing equalization for unknown emails.
DUMMY_HASH: str = hash_password("marketplace_timing_dummy")
