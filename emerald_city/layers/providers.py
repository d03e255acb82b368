"""
Injected capabilities for the cipher layers.

RandomSource    - where random bytes come from (IVs, keystream seed).
CryptoProvider  - PBKDF2-SHA256, AES-256-GCM and SHA-256.

Production code uses the defaults below. Tests hand in a
SeededRandomSource so every IV and keystream draw is reproducible.

Dependencies: cryptography >= 41.0
"""

import hashlib
import os
import random

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..errors import PrimitiveFailure


class RandomSource:
    """System randomness (os.urandom)."""

    def random_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError("Cannot draw a negative number of bytes.")
        try:
            return os.urandom(n)
        except NotImplementedError as exc:
            raise PrimitiveFailure("System randomness unavailable.") from exc


class SeededRandomSource(RandomSource):
    """
    Deterministic substitute for tests.
    Not cryptographically secure - never wire this into a server.
    """

    def __init__(self, seed: int = 0):
        self._rng = random.Random(seed)

    def random_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError("Cannot draw a negative number of bytes.")
        return self._rng.randbytes(n)


class CryptoProvider:
    """Thin wrapper over the `cryptography` primitives the chain needs."""

    def pbkdf2_sha256(self, password: bytes, salt: bytes,
                      iterations: int, length: int) -> bytes:
        try:
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=length,
                salt=salt,
                iterations=iterations,
            )
            return kdf.derive(password)
        except UnsupportedAlgorithm as exc:
            raise PrimitiveFailure("PBKDF2-SHA256 unavailable.") from exc

    def aead_encrypt(self, key: bytes, iv: bytes, data: bytes) -> bytes:
        """AES-GCM. Returns ciphertext || tag(16)."""
        try:
            return AESGCM(key).encrypt(iv, data, None)
        except UnsupportedAlgorithm as exc:
            raise PrimitiveFailure("AES-GCM unavailable.") from exc

    def sha256(self, data: bytes) -> bytes:
        return hashlib.sha256(data).digest()


DEFAULT_RANDOM = RandomSource()
DEFAULT_CRYPTO = CryptoProvider()
