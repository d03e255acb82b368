"""
emerald_city - Live Demo: cipher layers + a room round trip
===========================================================
Run:  python examples/demo_emerald.py

Walks one message through every layer of the chain, then creates a
room in an in-memory store, sends to it and lists the log.
"""

import sys, os, time
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from emerald_city.layers.kdf        import round_key, ITERATIONS
from emerald_city.layers.keystream  import generate_keystream_key
from emerald_city.layers.chain      import MessageCipher, ROUNDS, ROUND_OVERHEAD
from emerald_city.rooms             import RoomService
from emerald_city.store             import MemoryStore

LINE = "═" * 70
MSG  = "Pay no attention to the man behind the curtain."

def header(step, name):
    print(f"\n{LINE}")
    print(f"  {step} - {name}")
    print(LINE)

def ok(label, value=""):
    print(f"  ✓  {label}{f': {value}' if value else ''}")

# ─────────────────────────────────────────────────────────────────────────────
print(f"\n{LINE}")
print("  emerald_city - EMRLD-Chain + QI-XOR Demo")
print(LINE)
print(f"  Message: {MSG}\n")

# ── KDF ──────────────────────────────────────────────────────────────────────
header("KDF", "PBKDF2-HMAC-SHA256 round keys")
t0 = time.perf_counter()
keys = [round_key("demo-room", i) for i in range(ROUNDS)]
elapsed = time.perf_counter() - t0
ok("Iterations", str(ITERATIONS))
ok("Round keys", ", ".join(k.hex()[:12] + "..." for k in keys))
ok("Derivation", f"{elapsed*1000:.1f} ms for {ROUNDS} keys")

# ── Keystream ────────────────────────────────────────────────────────────────
header("QI", "Keystream key")
q1, q2 = generate_keystream_key(), generate_keystream_key()
ok("Key size", f"{len(q1) * 8} bits")
ok("Fresh per call", str(q1 != q2))

# ── Chain ────────────────────────────────────────────────────────────────────
header("CHAIN", "3 x AES-256-GCM + XOR")
t0 = time.perf_counter()
payload = MessageCipher().encrypt(MSG, "demo-room")
elapsed = time.perf_counter() - t0
ok("Algorithm",  payload.algorithm)
ok("Plaintext",  f"{len(MSG.encode())} bytes")
ok("Ciphertext", f"{len(payload.encrypted_data)} bytes (+{ROUNDS} x {ROUND_OVERHEAD})")
ok("keyData",    payload.key_b64)
ok("Encrypt",    f"{elapsed*1000:.1f} ms")

# ── Rooms ────────────────────────────────────────────────────────────────────
header("ROOM", "create → send → list")
rooms   = RoomService(MemoryStore())
room_id = rooms.create_room("Oz", "ruby-slippers")
ok("Room",    room_id)
ok("Joined",  str(rooms.join_room(room_id, "ruby-slippers")))
msg = rooms.send_message(room_id, MSG, "dorothy")
ok("Sent",    f"{msg.id} by {msg.sender}")
ok("Log",     f"{len(rooms.get_messages(room_id))} message(s), ciphertext only")

print(f"\n{LINE}\n")
