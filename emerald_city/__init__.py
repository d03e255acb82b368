"""
emerald_city - Emerald City ephemeral messenger backend
=======================================================
Password-protected rooms with a capped, write-only encrypted message log.

Layers:
    KDF        - PBKDF2-HMAC-SHA256 round keys (10 000 iterations)
    KEYSTREAM  - mixed random buffer hashed to a 256-bit XOR key
    CHAIN      - 3 rounds of AES-256-GCM, then the keystream XOR
                 ("EMRLD-Chain + QI-XOR")

Around the cipher:
    RoomService  - create / join / send / list / delete over a key-value store
    create_app   - Flask JSON API with CORS and static asset serving

License: Apache 2.0
"""

__version__ = "1.0.0"
__project__ = "Emerald City"

from .errors            import (EmeraldError, NotFound, InvalidCredentials,
                                PrimitiveFailure, CaptchaRejected, BadRequest)
from .layers.providers  import RandomSource, SeededRandomSource, CryptoProvider
from .layers.kdf        import derive_key, round_key
from .layers.keystream  import generate_keystream_key, mix_bytes, xor_with_key
from .layers.chain      import MessageCipher, EncryptedPayload, encrypt_message, ALGORITHM
from .layers.passwords  import hash_password, verify_password
from .store             import KeyValueStore, MemoryStore, SqliteStore, open_store
from .rooms             import Room, Message, RoomService, MAX_MESSAGES
from .captcha           import CaptchaVerifier, AlwaysAccept, RemoteVerify, build_verifier
from .config            import Settings
from .app               import create_app

__all__ = [
    "EmeraldError",
    "NotFound",
    "InvalidCredentials",
    "PrimitiveFailure",
    "CaptchaRejected",
    "BadRequest",
    "RandomSource",
    "SeededRandomSource",
    "CryptoProvider",
    "derive_key",
    "round_key",
    "generate_keystream_key",
    "mix_bytes",
    "xor_with_key",
    "MessageCipher",
    "EncryptedPayload",
    "encrypt_message",
    "ALGORITHM",
    "hash_password",
    "verify_password",
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "open_store",
    "Room",
    "Message",
    "RoomService",
    "MAX_MESSAGES",
    "CaptchaVerifier",
    "AlwaysAccept",
    "RemoteVerify",
    "build_verifier",
    "Settings",
    "create_app",
]
