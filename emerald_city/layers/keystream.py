"""
Keystream key ("QI" layer)
==========================
Final obfuscation layer of the chain. A fresh random buffer is pushed
through a fixed byte-mixing transform and hashed:

    R     = random(bit_length / 8)
    R[i] ^= (i * 37) mod 256
    R[i]  = (R[i] * 41 + 17) mod 256
    key   = SHA-256(R)                    always 32 bytes

The mixing is deterministic but R is drawn fresh on every call, so the
key can never be re-derived later. It is stored next to the ciphertext
as ``keyData``.
"""

from .providers import CryptoProvider, RandomSource, DEFAULT_CRYPTO, DEFAULT_RANDOM

DEFAULT_BITS = 256


def mix_bytes(buf: bytes) -> bytes:
    """Apply the positional XOR then the affine byte map."""
    out = bytearray(buf)
    for i in range(len(out)):
        out[i] ^= (i * 37) & 0xFF
    for i in range(len(out)):
        out[i] = (out[i] * 41 + 17) & 0xFF
    return bytes(out)


def generate_keystream_key(bit_length: int = DEFAULT_BITS,
                           rng: RandomSource = None,
                           crypto: CryptoProvider = None) -> bytes:
    if bit_length <= 0 or bit_length % 8:
        raise ValueError("bit_length must be a positive multiple of 8.")
    rng    = rng or DEFAULT_RANDOM
    crypto = crypto or DEFAULT_CRYPTO
    seed = rng.random_bytes(bit_length // 8)
    return crypto.sha256(mix_bytes(seed))


def xor_with_key(data: bytes, key: bytes) -> bytes:
    """XOR data with key, cycling the key to cover the whole buffer."""
    if not key:
        raise ValueError("Keystream key must not be empty.")
    klen = len(key)
    return bytes(b ^ key[i % klen] for i, b in enumerate(data))
