"""
Round-key derivation: PBKDF2-HMAC-SHA256
========================================
Each round of the message chain gets its own AES-256 key, derived from
the room context and the round index.

    password = context + str(i)        e.g. "emerald_1a2b3c4d0"
    salt     = "round-" + str(i)       e.g. "round-0"
    key      = PBKDF2-SHA256(password, salt, 10 000 iterations, 32 bytes)

The derivation is deterministic. Changing ITERATIONS, KEY_SIZE or the
string layout above breaks every message already stored.
"""

import logging

from .providers import CryptoProvider, DEFAULT_CRYPTO

logger = logging.getLogger(__name__)

ITERATIONS = 10_000
KEY_SIZE   = 32   # AES-256


def derive_key(password: str, salt: str, crypto: CryptoProvider = None) -> bytes:
    """Return 32 bytes of AES-256 key material for (password, salt)."""
    crypto = crypto or DEFAULT_CRYPTO
    key = crypto.pbkdf2_sha256(
        password.encode("utf-8"),
        salt.encode("utf-8"),
        ITERATIONS,
        KEY_SIZE,
    )
    logger.debug(f"Derived key for salt={salt!r}: {len(key)}B")
    return key


def round_key(context: str, index: int, crypto: CryptoProvider = None) -> bytes:
    return derive_key(f"{context}{index}", f"round-{index}", crypto)
