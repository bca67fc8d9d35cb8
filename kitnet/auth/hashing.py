# =============================================================================
# Secret Hashing
# =============================================================================
#
# Passwords and bearer tokens are stored only as bcrypt hashes.
# Comparison goes through bcrypt.checkpw, never through ==.
#
# =============================================================================

from __future__ import annotations

import secrets

import bcrypt

# Work factor for every stored secret
BCRYPT_ROUNDS = 10

# bcrypt only reads this much input
MAX_SECRET_BYTES = 72

# Bearer tokens are 16 random bytes, hex encoded
TOKEN_BYTES = 16


def hash_secret(plaintext: str) -> str:
    """
    Hash a secret with a fresh random salt.

    Raises ValueError for secrets bcrypt cannot take (over 72 bytes).
    """
    secret = plaintext.encode("utf-8")
    if len(secret) > MAX_SECRET_BYTES:
        raise ValueError(f"Secret longer than {MAX_SECRET_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(secret, salt).decode("utf-8")


def verify_secret(plaintext: str, secret_hash: str | None) -> bool:
    """Check a secret against its hash. Missing or malformed hashes never match."""
    if not plaintext or not secret_hash:
        return False
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), secret_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_token() -> str:
    """Mint a new plaintext bearer token."""
    return secrets.token_hex(TOKEN_BYTES)
