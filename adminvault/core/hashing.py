from __future__ import annotations

import base64
import hashlib
import secrets
from typing import Protocol

import bcrypt


# bcrypt only reads the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72

# bcrypt family marker ($2a$, $2b$, $2y$); anything else is treated as plaintext
HASH_PREFIX = "$2"


class PasswordHasher(Protocol):
    def hash(self, plaintext: str) -> str: ...

    def verify(self, plaintext: str, hashed: str) -> bool: ...


class BcryptHasher:
    def __init__(self, rounds: int = 12):
        self.rounds = int(rounds)

    @staticmethod
    def _secret(plaintext: str) -> bytes:
        raw = plaintext.encode("utf-8")
        if len(raw) <= BCRYPT_MAX_BYTES:
            return raw
        # longer input is pre-hashed; 44 base64 bytes always fit
        return base64.b64encode(hashlib.sha256(raw).digest())

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._secret(plaintext), salt).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        if not looks_like_password_hash(hashed):
            return False
        try:
            return bcrypt.checkpw(self._secret(plaintext), hashed.encode("utf-8"))
        except ValueError:
            return False


def looks_like_password_hash(value: object) -> bool:
    return isinstance(value, str) and value.startswith(HASH_PREFIX)


def gen_token() -> str:
    return secrets.token_urlsafe(16)


def gen_pin() -> str:
    return f"{secrets.randbelow(10_000):04d}"
