"""Password hashing for player accounts.

Production uses bcrypt, run off the event loop with anyio.to_thread so a
burst of logins does not stall lobby polling. bcrypt ignores input past
72 bytes, which is why the auth service caps password length there.

The "simple" hasher is a salted SHA-256 used by the test suite.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Protocol, runtime_checkable

import bcrypt
from anyio import to_thread

BCRYPT_MAX_BYTES = 72


@runtime_checkable
class PasswordHasher(Protocol):
    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


class BcryptHasher:
    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    async def hash(self, plain: str) -> str:
        encoded = plain.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password longer than {BCRYPT_MAX_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return await to_thread.run_sync(lambda: bcrypt.hashpw(encoded, salt).decode("utf-8"))

    async def verify(self, plain: str, hashed: str) -> bool:
        """A malformed stored hash verifies as False."""
        encoded_plain = plain.encode("utf-8")
        encoded_hash = hashed.encode("utf-8")
        if len(encoded_plain) > BCRYPT_MAX_BYTES:
            return False
        try:
            return await to_thread.run_sync(lambda: bcrypt.checkpw(encoded_plain, encoded_hash))
        except ValueError:
            return False


_SIMPLE_PREFIX = "simple"


def _simple_digest(salt: str, plain: str) -> str:
    return hashlib.sha256(f"{salt}:{plain}".encode()).hexdigest()


class SimpleHasher:
    """Salted SHA-256, stored as ``simple$<salt>$<digest>``. Tests only."""

    async def hash(self, plain: str) -> str:
        salt = secrets.token_hex(8)
        return f"{_SIMPLE_PREFIX}${salt}${_simple_digest(salt, plain)}"

    async def verify(self, plain: str, hashed: str) -> bool:
        parts = hashed.split("$")
        if len(parts) != 3 or parts[0] != _SIMPLE_PREFIX:  # noqa: PLR2004
            return False
        _, salt, digest = parts
        return hmac.compare_digest(digest, _simple_digest(salt, plain))


def get_hasher(name: str = "bcrypt") -> PasswordHasher:
    if name == "bcrypt":
        return BcryptHasher()
    if name == "simple":
        return SimpleHasher()
    raise ValueError(f"Unknown password hasher: {name!r}")
