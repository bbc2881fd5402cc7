"""Visitor presence: joining, leaving, notices and automatic replies."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from .configs import find_config_by_user_id
from .hub import TIME_FORMAT, ChatUser, ClientMessage, Hub, encode_message
from .messages import create_message, find_last_message_by_visitor_id
from .replies import find_reply_item_by_user_id_title
from .settings import VISITOR_EXPIRE
from .visitors import update_visitor_status

__all__ = [
    "add_visitor",
    "remove_visitor_connection",
    "visitor_online",
    "visitor_offline",
    "visitor_notice",
    "visitor_message",
    "visitor_auto_reply",
    "clean_expired_visitors",
]

log = logging.getLogger(__name__)

_SEND_ERRORS = (OSError, RuntimeError, ValueError)


def _send(user: ChatUser, text: str) -> bool:
    with user.lock:
        try:
            user.conn.send(text)
        except _SEND_ERRORS as exc:
            log.warning("sending to %s failed: %s", user.id, exc)
            return False
    return True


def _close(user: ChatUser) -> None:
    try:
        user.conn.close()
    except _SEND_ERRORS as exc:
        log.warning("closing %s failed: %s", user.id, exc)


def _online_info(session: Session, visitor_id: str, name: str, avator: str) -> dict[str, str]:
    last = find_last_message_by_visitor_id(session, visitor_id)
    return {
        "uid": visitor_id,
        "username": name,
        "avator": avator,
        "last_message": (last.content if last is not None else "") or "new visitor",
    }


def add_visitor(hub: Hub, session: Session, user: ChatUser) -> dict[str, str]:
    """Register a visitor connection and tell its agent; return the online notice data."""
    old = hub.clients.get(user.id)
    if old is not None and not _send(old, encode_message("close", user.id)):
        _close(old)
        user.update_time = old.update_time
        del hub.clients[user.id]
    hub.clients[user.id] = user
    info = _online_info(session, user.id, user.name, user.avator)
    hub.send_to_kefu(user.to_id, encode_message("userOnline", info))
    return info


def remove_visitor_connection(hub: Hub, session: Session, conn: Any) -> list[str]:
    """Drop every visitor using ``conn``, marking each offline; return their ids."""
    removed = []
    for visitor in list(hub.clients.values()):
        if visitor.conn is not conn:
            continue
        log.info("removing visitor %s", visitor.id)
        hub.clients.pop(visitor.id, None)
        visitor_offline(hub, session, visitor.to_id, visitor.id, visitor.name)
        removed.append(visitor.id)
    return removed


def visitor_online(hub: Hub, session: Session, kefu_id: str, visitor: Any) -> bool:
    """Tell agent ``kefu_id`` that a stored visitor came online."""
    info = _online_info(session, visitor.visitor_id, visitor.name, visitor.avator)
    return hub.send_to_kefu(kefu_id, encode_message("userOnline", info))


def visitor_offline(hub: Hub, session: Session, kefu_id: str, visitor_id: str, visitor_name: str) -> bool:
    """Mark a visitor offline and tell agent ``kefu_id``."""
    update_visitor_status(session, visitor_id, 0)
    info = {"uid": visitor_id, "name": visitor_name}
    return hub.send_to_kefu(kefu_id, encode_message("userOffline", info))


def _to_visitor(hub: Hub, visitor_id: str, text: str) -> bool:
    visitor = hub.clients.get(visitor_id)
    if visitor is None or visitor.conn is None:
        return False
    return _send(visitor, text)


def visitor_notice(hub: Hub, visitor_id: str, notice: str) -> bool:
    """Send a notice to a connected visitor."""
    return _to_visitor(hub, visitor_id, encode_message("notice", notice))


def visitor_message(hub: Hub, visitor_id: str, content: str, kefu: Any) -> bool:
    """Send an agent's chat message to a connected visitor."""
    message = ClientMessage(
        name=kefu.nickname,
        avator=kefu.avator,
        id=kefu.name,
        time=hub.now().strftime(TIME_FORMAT),
        to_id=visitor_id,
        content=content,
        is_kefu="no",
    )
    return _to_visitor(hub, visitor_id, encode_message("message", message))


def visitor_auto_reply(
    hub: Hub,
    session: Session,
    visitor: Any,
    kefu: Any,
    content: str,
    delay: float = 1.0,
) -> list[str]:
    """Answer a visitor with a matching canned reply, or the agent's offline message.

    Returns the contents sent to the visitor.
    """
    sent = []
    kefu_online = hub.kefus.get(kefu.name) is not None
    reply = find_reply_item_by_user_id_title(session, kefu.name, content)
    reply_content = reply.content if reply is not None else ""
    if reply_content:
        time.sleep(delay)
        visitor_message(hub, visitor.visitor_id, reply_content, kefu)
        hub.kefu_message(visitor.visitor_id, reply_content, kefu)
        create_message(session, kefu.name, visitor.visitor_id, reply_content, "kefu")
        sent.append(reply_content)
    if not kefu_online:
        time.sleep(delay)
        config = find_config_by_user_id(session, kefu.name, "OfflineMessage")
        offline = config.conf_value if config is not None else ""
        if not offline or reply_content:
            return sent
        visitor_message(hub, visitor.visitor_id, offline, kefu)
        create_message(session, kefu.name, visitor.visitor_id, offline, "kefu")
        sent.append(offline)
    return sent


def clean_expired_visitors(
    hub: Hub, expire: float = VISITOR_EXPIRE, now: Optional[datetime] = None
) -> list[str]:
    """Tell visitors idle for ``expire`` seconds to close; drop those unreachable.

    Returns the ids of the expired visitors.
    """
    now = now or hub.now()
    expired = []
    for visitor_id, user in list(hub.clients.items()):
        if (now - user.update_time).total_seconds() < expire:
            continue
        if not _send(user, encode_message("auto_close", user.id)):
            _close(user)
            hub.clients.pop(visitor_id, None)
        log.info("%s: expired visitor handled", user.name)
        expired.append(visitor_id)
    return expired