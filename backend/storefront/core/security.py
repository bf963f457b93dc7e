"""Password hashing (bcrypt over a SHA-256 pre-hash).

bcrypt truncates its input at 72 bytes; hashing the password with SHA-256
first gives a fixed-length input so long passphrases are not silently cut.
"""

from __future__ import annotations

import base64
import functools
import hashlib
import secrets

import bcrypt

MIN_BCRYPT_ROUNDS = 10
DEFAULT_BCRYPT_ROUNDS = 12


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return the bcrypt hash of ``password``; ``rounds`` is clamped to the floor cost."""
    salt = bcrypt.gensalt(rounds=max(int(rounds), MIN_BCRYPT_ROUNDS))
    return bcrypt.hashpw(_prehash(password), salt).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    """Return ``True`` if ``password`` matches ``hashed``; malformed hashes never match."""
    if not hashed:
        return False
    try:
        return bool(bcrypt.checkpw(_prehash(password), hashed.encode("utf-8")))
    except (ValueError, TypeError):
        return False


@functools.lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password(secrets.token_hex(16), rounds=rounds)


def verify_dummy_password(password: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> bool:
    """Spend one bcrypt check on a throwaway hash; always ``False``.

    Used when there is no stored hash so the response takes as long as a
    wrong password would.
    """
    verify_password(password, _dummy_hash(max(int(rounds), MIN_BCRYPT_ROUNDS)))
    return False
