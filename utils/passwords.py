from __future__ import annotations

import os

import bcrypt

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))


def _truncate(password: str) -> bytes:
    # Multi-byte safe truncation for bcrypt (max 72 bytes)
    safe_password = password.encode("utf-8")[:72].decode("utf-8", errors="ignore")
    return safe_password.encode("utf-8")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_truncate(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check against a bcrypt hash. False on mismatch or a malformed hash."""
    try:
        return bcrypt.checkpw(_truncate(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False
