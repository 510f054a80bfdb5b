"""Password hashing helpers (bcrypt through pwdlib)."""
from __future__ import annotations

from functools import lru_cache

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.bcrypt import BcryptHasher

from fintrack.config import get_settings

# bcrypt only looks at the first 72 bytes of a secret.
BCRYPT_MAX_BYTES = 72


@lru_cache
def _hasher(rounds: int) -> PasswordHash:
    return PasswordHash((BcryptHasher(rounds=rounds),))


def password_hasher() -> PasswordHash:
    """Return the hasher configured with ``PASSWORD_HASH_ROUNDS``."""

    return _hasher(get_settings().PASSWORD_HASH_ROUNDS)


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return _hasher(rounds).hash("dummy_password_for_timing_attack_prevention")


def fits_bcrypt(password: str) -> bool:
    return len(password.encode("utf-8")) <= BCRYPT_MAX_BYTES


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of ``password``."""

    return password_hasher().hash(password)


def verify_password(password: str, hashed: str) -> tuple[bool, str | None]:
    """Check ``password``; the second item is a fresh hash when the stored one is outdated."""

    if not fits_bcrypt(password):
        return False, None
    try:
        return password_hasher().verify_and_update(password, hashed)
    except UnknownHashError:
        return False, None


def verify_password_timing_safe(password: str, hashed: str | None) -> tuple[bool, str | None]:
    """Like :func:`verify_password` but still pays one hash check when no user matched."""

    if hashed is None:
        rounds = get_settings().PASSWORD_HASH_ROUNDS
        _hasher(rounds).verify("timing-only", _dummy_hash(rounds))
        return False, None
    return verify_password(password, hashed)


__all__ = [
    "BCRYPT_MAX_BYTES",
    "fits_bcrypt",
    "hash_password",
    "password_hasher",
    "verify_password",
    "verify_password_timing_safe",
]
