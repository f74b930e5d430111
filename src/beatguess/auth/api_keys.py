"""Machine-client API keys: ``sk-bg-`` followed by 64 hex characters.

Only an argon2id hash of the whole key is stored, next to its first
``PREFIX_LENGTH`` characters which serve as a non-secret lookup handle.
"""

from __future__ import annotations

import secrets
from typing import NamedTuple

import argon2

KEY_PREFIX = "sk-bg-"
PREFIX_LENGTH = 14
_SECRET_BYTES = 32

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=64 * 1024,
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)


class GeneratedKey(NamedTuple):
    full_key: str
    prefix: str
    key_hash: str


def key_lookup_prefix(full_key: str) -> str:
    """Stored, non-secret part of a key ("sk-bg-a1b2c3d4")."""
    return full_key[:PREFIX_LENGTH]


def generate_api_key() -> GeneratedKey:
    """New key material. The full key is handed out once and never stored."""
    full_key = KEY_PREFIX + secrets.token_hex(_SECRET_BYTES)
    return GeneratedKey(full_key, key_lookup_prefix(full_key), _hasher.hash(full_key))


def verify_api_key(full_key: str, stored_hash: str) -> bool:
    try:
        return _hasher.verify(stored_hash, full_key)
    except (argon2.exceptions.VerifyMismatchError, argon2.exceptions.InvalidHashError):
        return False
