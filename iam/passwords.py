"""
iam/passwords.py -- Credential hashing and verification.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). The work factor comes
       from Settings.bcrypt_rounds (default 10) and is fixed at hash time --
       it is embedded in the hash, so raising it later only affects new hashes.

  Faults vs mismatches: bcrypt.checkpw raises ValueError for a hash it cannot
       parse (truncated record, wrong prefix). That is surfaced as
       CredentialFault so callers can log it separately; a plain mismatch is
       simply False.

  Timing equalization: dummy_verify() runs a full bcrypt check against a
       throwaway hash so a login for an unknown id costs the same as a login
       with a wrong password.

Layer rule: no imports from api/ or tasker/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import bcrypt

from core.config import get_settings
from iam.errors import CredentialFault

logger = logging.getLogger("nys.iam.passwords")

# bcrypt refuses (or, in older releases, silently truncates) longer input.
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError if the password exceeds MAX_PASSWORD_BYTES of UTF-8.
    The API models reject such input before it gets here.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A password over MAX_PASSWORD_BYTES can never have been hashed, so it is a
    plain mismatch. Raises CredentialFault if bcrypt cannot evaluate the hash.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError as exc:
        raise CredentialFault(f"Stored password hash could not be evaluated: {exc}") from exc


@lru_cache
def _dummy_hash() -> str:
    return hash_password("nys_timing_dummy")


def dummy_verify(plain: str) -> None:
    """Burn one bcrypt verification. The result is discarded."""
    verify_password(plain, _dummy_hash())
