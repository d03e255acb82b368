"""
Room lifecycle: create, join, send, list, delete.

A room is two store records, the room metadata and its message log.
The log keeps the MAX_MESSAGES most recent entries, oldest evicted
first, and messageCount mirrors its length after every send.

Record field names match the data already in production stores
(``created``, ``adminPassword``), so they differ from the attribute
names on the dataclasses below.
"""

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import BadRequest, CaptchaRejected, InvalidCredentials, NotFound
from .layers.chain import MessageCipher
from .layers.passwords import hash_password, verify_password
from .store import KeyValueStore, messages_key, room_key

logger = logging.getLogger(__name__)

MAX_MESSAGES = 100
ROOM_PREFIX  = "emerald_"
MSG_PREFIX   = "msg_"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _dumps(obj) -> bytes:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _loads(raw: bytes):
    return json.loads(raw.decode("utf-8"))


def _new_room_id() -> str:
    return ROOM_PREFIX + str(uuid.uuid4())[:8]


def _new_message_id() -> str:
    return MSG_PREFIX + str(uuid.uuid4())[:12]


def _require_str(name: str, value) -> str:
    if not isinstance(value, str):
        raise BadRequest(f"Missing or invalid field: {name}")
    return value


@dataclass
class Room:
    id: str
    name: str
    created_at: int
    password_hash: str
    message_count: int = 0

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "created": self.created_at,
            "adminPassword": self.password_hash,
            "messageCount": self.message_count,
        }

    @classmethod
    def from_record(cls, rec: dict) -> "Room":
        return cls(
            id=rec["id"],
            name=rec["name"],
            created_at=rec.get("created", 0),
            password_hash=rec.get("adminPassword", ""),
            message_count=rec.get("messageCount", 0),
        )

    def public(self) -> dict:
        """Metadata safe to hand to clients (no password hash)."""
        return {"id": self.id, "name": self.name, "messageCount": self.message_count}


@dataclass(frozen=True)
class Message:
    id: str
    sender: str
    timestamp: int
    encrypted_data: str
    key_data: str
    algorithm: str

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "sender": self.sender,
            "timestamp": self.timestamp,
            "encryptedData": self.encrypted_data,
            "keyData": self.key_data,
            "algorithm": self.algorithm,
        }

    @classmethod
    def from_record(cls, rec: dict) -> "Message":
        return cls(
            id=rec["id"],
            sender=rec.get("sender"),
            timestamp=rec.get("timestamp", 0),
            encrypted_data=rec["encryptedData"],
            key_data=rec["keyData"],
            algorithm=rec["algorithm"],
        )


class RoomService:
    """
    Room and message operations over an injected KeyValueStore.

    Nothing here locks. Two concurrent sends to one room both read the
    log, append, and write it back; the later write wins and the other
    message is lost.
    """

    def __init__(self, store: KeyValueStore, cipher: MessageCipher = None,
                 captcha=None, clock: Callable[[], int] = None):
        self.store   = store
        self.cipher  = cipher or MessageCipher()
        self.captcha = captcha
        self._clock  = clock or _now_ms

    # -- internals -------------------------------------------------------

    def _check_captcha(self, token: Optional[str], remote_ip: str) -> None:
        if self.captcha is None:
            return
        if not self.captcha.verify(token or "", remote_ip):
            raise CaptchaRejected("Turnstile verification failed")

    def _load_room(self, room_id: str) -> Room:
        raw = self.store.get(room_key(room_id))
        if raw is None:
            raise NotFound("Room not found")
        return Room.from_record(_loads(raw))

    def _load_log(self, room_id: str) -> list:
        raw = self.store.get(messages_key(room_id))
        return _loads(raw) if raw is not None else []

    # -- operations ------------------------------------------------------

    def create_room(self, name: str, password: str,
                    token: str = None, remote_ip: str = "") -> str:
        _require_str("roomName", name)
        _require_str("password", password)
        self._check_captcha(token, remote_ip)

        room = Room(
            id=_new_room_id(),
            name=name,
            created_at=self._clock(),
            password_hash=hash_password(password),
            message_count=0,
        )
        self.store.put(room_key(room.id), _dumps(room.to_record()))
        self.store.put(messages_key(room.id), _dumps([]))
        logger.info(f"Room created: {room.id}")
        return room.id

    def join_room(self, room_id: str, password: str,
                  token: str = None, remote_ip: str = "") -> dict:
        _require_str("roomId", room_id)
        _require_str("password", password)
        self._check_captcha(token, remote_ip)

        room = self._load_room(room_id)
        if not verify_password(password, room.password_hash):
            logger.info(f"Join rejected for {room_id}: bad password")
            raise InvalidCredentials("Invalid room password")
        logger.info(f"Room joined: {room_id}")
        return room.public()

    def send_message(self, room_id: str, text: str, sender: str) -> Message:
        _require_str("roomId", room_id)
        _require_str("message", text)
        room = self._load_room(room_id)

        payload = self.cipher.encrypt(text, room_id)
        message = Message(
            id=_new_message_id(),
            sender=sender,
            timestamp=self._clock(),
            encrypted_data=payload.encrypted_b64,
            key_data=payload.key_b64,
            algorithm=payload.algorithm,
        )

        log = self._load_log(room_id)
        log.append(message.to_record())
        if len(log) > MAX_MESSAGES:
            del log[:len(log) - MAX_MESSAGES]
        self.store.put(messages_key(room_id), _dumps(log))

        room.message_count = len(log)
        self.store.put(room_key(room_id), _dumps(room.to_record()))
        logger.info(f"Message {message.id} stored in {room_id} ({len(log)} in log)")
        return message

    def get_messages(self, room_id: str) -> List[Message]:
        return [Message.from_record(rec) for rec in self._load_log(room_id)]

    def delete_room(self, room_id: str, admin_password: str) -> None:
        _require_str("roomId", room_id)
        _require_str("adminPassword", admin_password)
        room = self._load_room(room_id)
        if not verify_password(admin_password, room.password_hash):
            logger.info(f"Delete rejected for {room_id}: bad admin password")
            raise InvalidCredentials("Invalid admin password")
        self.store.delete(room_key(room_id))
        self.store.delete(messages_key(room_id))
        logger.info(f"Room deleted: {room_id}")
