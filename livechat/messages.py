"""Chat messages between visitors and agents."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, func, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base, ModelMixin
from .users import User
from .visitors import Visitor

__all__ = [
    "Message",
    "MessageView",
    "create_message",
    "find_messages_by_visitor_id",
    "read_messages_by_visitor_id",
    "count_unread_by_visitor_id",
    "find_last_messages",
    "find_last_message_by_visitor_id",
    "find_message_views",
    "count_messages",
    "find_message_page",
]

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class Message(ModelMixin, Base):
    """One chat message in a visitor's conversation."""

    __tablename__ = "message"

    kefu_id: Mapped[str] = mapped_column(String(255), default="", index=True)
    visitor_id: Mapped[str] = mapped_column(String(255), default="", index=True)
    content: Mapped[str] = mapped_column(Text, default="")
    mes_type: Mapped[str] = mapped_column(String(32), default="")
    status: Mapped[str] = mapped_column(String(32), default="")


@dataclass
class MessageView:
    """A message joined with the names and avatars of both sides."""

    id: int
    kefu_id: str
    visitor_id: str
    content: str
    mes_type: str
    status: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    visitor_name: str = ""
    visitor_avator: str = ""
    kefu_name: str = ""
    kefu_avator: str = ""
    create_time: str = ""


def _alive():
    return Message.deleted_at.is_(None)


def create_message(session: Session, kefu_id: str, visitor_id: str, content: str, mes_type: str) -> Message:
    """Store a new unread message."""
    message = Message(
        kefu_id=kefu_id, visitor_id=visitor_id, content=content, mes_type=mes_type, status="unread"
    )
    session.add(message)
    session.flush()
    return message


def find_messages_by_visitor_id(session: Session, visitor_id: str) -> list[Message]:
    """Return a visitor's messages, oldest first."""
    return list(
        session.scalars(
            select(Message).where(Message.visitor_id == visitor_id, _alive()).order_by(Message.id)
        ).all()
    )


def read_messages_by_visitor_id(session: Session, visitor_id: str) -> None:
    """Mark every message of a visitor as read."""
    session.execute(
        update(Message)
        .where(Message.visitor_id == visitor_id, _alive())
        .values(status="read", updated_at=datetime.now())
    )


def count_unread_by_visitor_id(session: Session, visitor_id: str) -> int:
    """Return how many of a visitor's messages are unread."""
    return (
        session.scalar(
            select(func.count())
            .select_from(Message)
            .where(Message.visitor_id == visitor_id, Message.status == "unread", _alive())
        )
        or 0
    )


def find_last_messages(session: Session, visitor_ids: list[str]) -> list[Message]:
    """Return the latest message of each of ``visitor_ids`` that has one."""
    if not visitor_ids:
        return []
    ids = session.scalars(
        select(func.max(Message.id))
        .where(Message.visitor_id.in_(visitor_ids), _alive())
        .group_by(Message.visitor_id)
    ).all()
    if not ids:
        return []
    return list(session.scalars(select(Message).where(Message.id.in_(ids)).order_by(Message.id)).all())


def find_last_message_by_visitor_id(session: Session, visitor_id: str) -> Optional[Message]:
    """Return a visitor's latest message, or None."""
    return session.scalars(
        select(Message)
        .where(Message.visitor_id == visitor_id, _alive())
        .order_by(Message.id.desc())
        .limit(1)
    ).first()


def _view_query():
    return (
        select(Message, Visitor.avator, Visitor.name, User.avator, User.nickname)
        .select_from(Message)
        .outerjoin(User, Message.kefu_id == User.name)
        .outerjoin(Visitor, Visitor.visitor_id == Message.visitor_id)
    )


def _to_view(row) -> MessageView:
    message, visitor_avator, visitor_name, kefu_avator, kefu_name = row
    return MessageView(
        id=message.id,
        kefu_id=message.kefu_id,
        visitor_id=message.visitor_id,
        content=message.content,
        mes_type=message.mes_type,
        status=message.status,
        created_at=message.created_at,
        updated_at=message.updated_at,
        visitor_name=visitor_name or "",
        visitor_avator=visitor_avator or "",
        kefu_name=kefu_name or "",
        kefu_avator=kefu_avator or "",
        create_time=message.created_at.strftime(_TIME_FORMAT) if message.created_at else "",
    )


def find_message_views(session: Session, visitor_id: str) -> list[MessageView]:
    """Return a visitor's messages with both sides' details, oldest first."""
    rows = session.execute(
        _view_query().where(Message.visitor_id == visitor_id).order_by(Message.id)
    ).all()
    return [_to_view(row) for row in rows]


def count_messages(session: Session, visitor_id: Optional[str] = None) -> int:
    """Return the number of messages, of one visitor when ``visitor_id`` is given."""
    query = select(func.count()).select_from(Message).where(_alive())
    if visitor_id is not None:
        query = query.where(Message.visitor_id == visitor_id)
    return session.scalar(query) or 0


def find_message_page(session: Session, page: int, pagesize: int, visitor_id: str) -> list[MessageView]:
    """Return one page of a visitor's messages with details, newest first."""
    rows = session.execute(
        _view_query()
        .where(Message.visitor_id == visitor_id)
        .order_by(Message.id.desc())
        .offset(max(page - 1, 0) * pagesize)
        .limit(pagesize)
    ).all()
    return [_to_view(row) for row in rows]