"""
EMRLD-Chain + QI-XOR message cipher
===================================
Three sequential rounds of AES-256-GCM, each with its own PBKDF2 round
key and a fresh 96-bit IV, followed by an XOR with a random 256-bit
keystream key.

Round i (i = 0, 1, 2):
    K_i  = round_key(context, i)
    IV_i = random(12)
    data = IV_i || AES-GCM(K_i, IV_i, data)      ciphertext || tag(16)

Final:
    Q    = generate_keystream_key(256)
    out  = data XOR Q (Q cycled)

Every round adds 12 + 16 = 28 bytes, so
    len(out) = len(utf8(plaintext)) + 3 * 28

Stored fields:
    encryptedData = base64(out)
    keyData       = base64(Q)
    algorithm     = "EMRLD-Chain + QI-XOR"

There is deliberately no decrypt here. The server only ever writes
ciphertext; see DESIGN.md before adding one.

Dependencies: cryptography >= 41.0
"""

import base64
import logging
import time
from dataclasses import dataclass

from .kdf import round_key
from .keystream import DEFAULT_BITS, generate_keystream_key, xor_with_key
from .providers import CryptoProvider, RandomSource, DEFAULT_CRYPTO, DEFAULT_RANDOM

logger = logging.getLogger(__name__)

ALGORITHM       = "EMRLD-Chain + QI-XOR"
ROUNDS          = 3
IV_SIZE         = 12
TAG_SIZE        = 16
ROUND_OVERHEAD  = IV_SIZE + TAG_SIZE
DEFAULT_CONTEXT = "default"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class EncryptedPayload:
    encrypted_data: bytes
    key_data: bytes
    algorithm: str = ALGORITHM
    rounds: int = ROUNDS
    timestamp: int = 0

    @property
    def encrypted_b64(self) -> str:
        return base64.b64encode(self.encrypted_data).decode("ascii")

    @property
    def key_b64(self) -> str:
        return base64.b64encode(self.key_data).decode("ascii")

    def to_dict(self) -> dict:
        return {
            "success": True,
            "encryptedData": self.encrypted_b64,
            "keyData": self.key_b64,
            "metadata": {
                "rounds": self.rounds,
                "algorithm": self.algorithm,
                "timestamp": self.timestamp,
            },
        }


class MessageCipher:
    """Write-only multi-round message encryption."""

    def __init__(self, rng: RandomSource = None, crypto: CryptoProvider = None,
                 clock=None):
        self._rng    = rng or DEFAULT_RANDOM
        self._crypto = crypto or DEFAULT_CRYPTO
        self._clock  = clock or _now_ms

    def encrypt(self, plaintext: str, context: str = DEFAULT_CONTEXT) -> EncryptedPayload:
        data = plaintext.encode("utf-8")
        for i in range(ROUNDS):
            key = round_key(context, i, self._crypto)
            iv  = self._rng.random_bytes(IV_SIZE)
            data = iv + self._crypto.aead_encrypt(key, iv, data)
            logger.debug(f"Round {i}: {len(data)}B")

        qkey = generate_keystream_key(DEFAULT_BITS, self._rng, self._crypto)
        return EncryptedPayload(
            encrypted_data=xor_with_key(data, qkey),
            key_data=qkey,
            algorithm=ALGORITHM,
            rounds=ROUNDS,
            timestamp=self._clock(),
        )


_default_cipher = MessageCipher()


def encrypt_message(plaintext: str, context: str = DEFAULT_CONTEXT) -> EncryptedPayload:
    return _default_cipher.encrypt(plaintext, context)
