"""
emerald_city - cipher layer tests
=================================
Run with:  python -m pytest tests/ -v
       or:  python tests/test_layers.py
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import base64
import hashlib

import pytest
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from emerald_city.errors            import PrimitiveFailure
from emerald_city.layers            import providers
from emerald_city.layers.providers  import CryptoProvider, RandomSource, SeededRandomSource
from emerald_city.layers.kdf        import derive_key, round_key, ITERATIONS, KEY_SIZE
from emerald_city.layers.keystream  import generate_keystream_key, mix_bytes, xor_with_key
from emerald_city.layers.chain      import (MessageCipher, EncryptedPayload, encrypt_message,
                                            ALGORITHM, ROUNDS, ROUND_OVERHEAD, IV_SIZE)
from emerald_city.layers.passwords  import hash_password, verify_password

MSG     = "Meet at the Emerald City gates at dawn."
CONTEXT = "emerald_1a2b3c4d"


def peel(payload: EncryptedPayload, context: str) -> str:
    """Undo the chain by hand: XOR, then the AES-GCM rounds in reverse."""
    data = xor_with_key(payload.encrypted_data, payload.key_data)
    for i in reversed(range(payload.rounds)):
        iv, ct = data[:IV_SIZE], data[IV_SIZE:]
        data = AESGCM(round_key(context, i)).decrypt(iv, ct, None)
    return data.decode("utf-8")

# ── Key derivation ────────────────────────────────────────────────────────────
def test_derive_key_matches_pbkdf2_sha256():
    expected = hashlib.pbkdf2_hmac("sha256", b"ctx0", b"round-0", ITERATIONS, KEY_SIZE)
    assert derive_key("ctx0", "round-0") == expected

def test_derive_key_is_deterministic():
    assert derive_key("pw", "salt") == derive_key("pw", "salt")
    assert len(derive_key("pw", "salt")) == 32

def test_round_key_layout():
    assert round_key(CONTEXT, 2) == derive_key(CONTEXT + "2", "round-2")
    assert round_key(CONTEXT, 0) != round_key(CONTEXT, 1)

# ── Keystream ─────────────────────────────────────────────────────────────────
def test_mix_bytes_known_vector():
    assert mix_bytes(bytes(4)) == bytes([17, 254, 235, 216])
    # 0xFF ^ 37 = 218 -> (218 * 41 + 17) % 256 = 251
    assert mix_bytes(b"\x00\xff")[1] == 251

def test_keystream_key_is_hash_of_mixed_draw():
    seed = SeededRandomSource(42).random_bytes(32)
    key  = generate_keystream_key(256, rng=SeededRandomSource(42))
    assert key == hashlib.sha256(mix_bytes(seed)).digest()

def test_keystream_key_fresh_each_call():
    assert generate_keystream_key() != generate_keystream_key()

def test_keystream_key_always_32_bytes():
    assert len(generate_keystream_key(128)) == 32

@pytest.mark.parametrize("bits", [0, -8, 12])
def test_keystream_rejects_bad_bit_length(bits):
    with pytest.raises(ValueError):
        generate_keystream_key(bits)

def test_xor_cycles_key():
    assert xor_with_key(b"\x01\x02\x03\x04\x05", b"\x01\x02") == b"\x00\x00\x02\x06\x04"
    with pytest.raises(ValueError):
        xor_with_key(b"abc", b"")

# ── Message chain ─────────────────────────────────────────────────────────────
def test_chain_two_calls_differ():
    a = encrypt_message(MSG, CONTEXT)
    b = encrypt_message(MSG, CONTEXT)
    assert a.encrypted_b64 != b.encrypted_b64
    assert a.key_b64 != b.key_b64

@pytest.mark.parametrize("text", ["", "x", MSG, "héllo wörld ✓", "Z" * 5000])
def test_chain_length_is_plaintext_plus_overhead(text):
    p = encrypt_message(text, CONTEXT)
    assert len(p.encrypted_data) == len(text.encode("utf-8")) + ROUNDS * ROUND_OVERHEAD
    assert len(base64.b64decode(p.encrypted_b64)) == len(p.encrypted_data)

def test_chain_metadata():
    p = MessageCipher(clock=lambda: 1700000000000).encrypt(MSG)
    d = p.to_dict()
    assert d["success"] is True
    assert d["metadata"] == {"rounds": 3, "algorithm": ALGORITHM, "timestamp": 1700000000000}
    assert d["metadata"]["algorithm"] == "EMRLD-Chain + QI-XOR"
    assert base64.b64decode(d["keyData"]) == p.key_data
    assert len(p.key_data) == 32

def test_chain_layers_peel_back_to_plaintext():
    p = encrypt_message(MSG, CONTEXT)
    assert peel(p, CONTEXT) == MSG

def test_chain_default_context():
    p = encrypt_message(MSG)
    assert peel(p, "default") == MSG

def test_chain_wrong_context_fails_authentication():
    p = encrypt_message(MSG, CONTEXT)
    with pytest.raises(Exception):
        peel(p, "emerald_other")

def test_chain_seeded_source_is_reproducible():
    make = lambda: MessageCipher(rng=SeededRandomSource(7), clock=lambda: 1)
    assert make().encrypt(MSG, CONTEXT) == make().encrypt(MSG, CONTEXT)

def test_chain_primitive_failure_propagates():
    class BrokenCrypto(CryptoProvider):
        def aead_encrypt(self, key, iv, data):
            raise PrimitiveFailure("AES-GCM unavailable.")

    with pytest.raises(PrimitiveFailure):
        MessageCipher(crypto=BrokenCrypto()).encrypt(MSG, CONTEXT)

def test_unsupported_backend_becomes_primitive_failure(monkeypatch):
    def no_aes(key):
        raise UnsupportedAlgorithm("no AES here")

    monkeypatch.setattr(providers, "AESGCM", no_aes)
    with pytest.raises(PrimitiveFailure):
        CryptoProvider().aead_encrypt(bytes(32), bytes(12), b"data")

def test_random_source_rejects_negative():
    with pytest.raises(ValueError):
        RandomSource().random_bytes(-1)

# ── Passwords ─────────────────────────────────────────────────────────────────
def test_password_hash_is_base64_sha256():
    expected = base64.b64encode(hashlib.sha256(b"pw1").digest()).decode()
    assert hash_password("pw1") == expected
    assert verify_password("pw1", expected)
    assert not verify_password("pw2", expected)
    assert not verify_password("pw1", "")

# ── run directly ─────────────────────────────────────────────────────────────
if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
