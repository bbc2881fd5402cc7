"""Registry of connected agents and visitors and the messages sent to them."""

from __future__ import annotations

import dataclasses
import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from .ratelimit import LimitQueue
from .visitors import find_visitors_online, update_visitor_status

__all__ = ["ChatUser", "ClientMessage", "Hub", "encode_message", "TIME_FORMAT"]

log = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_SEND_ERRORS = (OSError, RuntimeError, ValueError)


@dataclass(eq=False)
class ChatUser:
    """A live connection of an agent or a visitor.

    ``conn`` is any object with ``send(text)`` and ``close()`` methods; both
    raise on a broken connection.
    """

    conn: Any
    id: str = ""
    name: str = ""
    avator: str = ""
    to_id: str = ""
    role_id: str = ""
    update_time: datetime = field(default_factory=datetime.now)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


@dataclass
class ClientMessage:
    """The chat message payload pushed to clients."""

    name: str = ""
    avator: str = ""
    id: str = ""
    visitor_id: str = ""
    group: str = ""
    time: str = ""
    to_id: str = ""
    content: str = ""
    city: str = ""
    client_ip: str = ""
    refer: str = ""
    is_kefu: str = ""


def encode_message(msg_type: Any, data: Any = None) -> str:
    """Return the JSON text of a ``{"type": ..., "data": ...}`` envelope."""
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        data = dataclasses.asdict(data)
    return json.dumps({"type": msg_type, "data": data}, ensure_ascii=False, separators=(",", ":"))


def _as_text(payload: str | bytes) -> str:
    return payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload


class Hub:
    """Connected visitors (``clients``) and agents (``kefus``), keyed by id."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.clients: dict[str, ChatUser] = {}
        self.kefus: dict[str, ChatUser] = {}
        self._clock = clock or datetime.now

    def now(self) -> datetime:
        return self._clock()

    @staticmethod
    def _deliver(user: ChatUser, text: str) -> bool:
        with user.lock:
            try:
                user.conn.send(text)
            except _SEND_ERRORS as exc:
                log.warning("sending to %s failed: %s", user.id, exc)
                return False
        return True

    @staticmethod
    def _close(user: ChatUser) -> None:
        try:
            user.conn.close()
        except _SEND_ERRORS as exc:
            log.warning("closing %s failed: %s", user.id, exc)

    def add_kefu(self, kefu: ChatUser) -> None:
        """Register an agent connection, telling any older one for that agent to close."""
        old = self.kefus.get(kefu.id)
        if old is not None and not self._deliver(old, encode_message("close", kefu.id)):
            self._close(old)
        self.kefus[kefu.id] = kefu

    def send_to_kefu(self, to_id: str, payload: str | bytes) -> bool:
        """Send ``payload`` to the agent ``to_id``; return whether it went out."""
        kefu = self.kefus.get(to_id)
        if kefu is None:
            return False
        text = _as_text(payload)
        sent = self._deliver(kefu, text)
        log.debug("send_kefu_message %s %s", sent, text)
        return sent

    def kefu_message(self, visitor_id: str, content: str, kefu: Any) -> bool:
        """Echo an agent's message about ``visitor_id`` to the agent's own client."""
        message = ClientMessage(
            name=kefu.nickname,
            avator=kefu.avator,
            id=visitor_id,
            time=self.now().strftime(TIME_FORMAT),
            to_id=visitor_id,
            content=content,
            is_kefu="yes",
        )
        return self.send_to_kefu(kefu.name, encode_message("message", message))

    def ping_kefus(self) -> list[str]:
        """Ping every agent, dropping and returning those whose connection failed."""
        text = encode_message("many pong")
        dropped = []
        for kefu_id, kefu in list(self.kefus.items()):
            if kefu is None:
                continue
            if not self._deliver(kefu, text):
                log.info("agent %s did not answer the ping", kefu_id)
                del self.kefus[kefu_id]
                dropped.append(kefu_id)
        return dropped

    def update_visitor_user(self, visitor_id: str, to_id: str) -> None:
        """Point a connected visitor at another agent."""
        guest = self.clients.get(visitor_id)
        if guest is not None:
            guest.to_id = to_id

    def handle_incoming(self, conn: Any, raw: str | bytes, limiter: LimitQueue) -> None:
        """Act on a frame received from a client: answer pings, relay typing notices."""
        text = _as_text(raw)
        try:
            envelope = json.loads(text)
        except ValueError:
            return
        if not isinstance(envelope, dict):
            return
        msg_type = envelope.get("type")
        data = envelope.get("data")
        if not isinstance(msg_type, str) or data is None:
            return
        log.info("client: %s", text)
        if msg_type == "ping":
            try:
                conn.send(encode_message("pong"))
            except _SEND_ERRORS as exc:
                log.warning("pong failed: %s", exc)
        elif msg_type == "inputing":
            if not isinstance(data, dict):
                return
            sender, target = data.get("from"), data.get("to")
            if not isinstance(sender, str) or not isinstance(target, str):
                return
            if limiter.allow("inputing:" + sender, 1, 2):
                self.send_to_kefu(target, text)

    def sync_visitor_status(self, session: Session) -> list[str]:
        """Mark visitors stored as online but not connected offline, then ping agents.

        Returns the ids of the visitors marked offline.
        """
        offline = []
        for visitor in find_visitors_online(session):
            if not visitor.visitor_id or visitor.visitor_id in self.clients:
                continue
            update_visitor_status(session, visitor.visitor_id, 0)
            offline.append(visitor.visitor_id)
        self.ping_kefus()
        return offline