"""Welcome messages agents send to new visitors."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, String, Text, delete, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base

__all__ = [
    "Welcome",
    "create_welcome",
    "update_welcome",
    "find_welcome_by_user_id_key",
    "find_welcomes_by_user_id",
    "find_welcomes_by_keyword",
    "delete_welcome",
]


class Welcome(Base):
    """A keyword-tagged message owned by an agent."""

    __tablename__ = "welcome"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), default="", index=True)
    keyword: Mapped[str] = mapped_column(String(255), default="")
    content: Mapped[str] = mapped_column(Text, default="")
    is_default: Mapped[int] = mapped_column(default=0)
    ctime: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def create_welcome(session: Session, user_id: str, content: str) -> int:
    """Store a welcome message and return its id; 0 when a field is empty."""
    if not user_id or not content:
        return 0
    welcome = Welcome(user_id=user_id, content=content, ctime=datetime.now(), keyword="welcome")
    session.add(welcome)
    session.flush()
    return welcome.id


def update_welcome(session: Session, user_id: str, welcome_id: Any, content: str) -> int:
    """Replace the content of a message; return its id, or 0 when nothing changed."""
    ident = _as_int(welcome_id)
    if not user_id or not content or ident is None:
        return 0
    result = session.execute(
        update(Welcome).where(Welcome.user_id == user_id, Welcome.id == ident).values(content=content)
    )
    return ident if result.rowcount else 0


def find_welcome_by_user_id_key(session: Session, user_id: Any, keyword: Any) -> Optional[Welcome]:
    """Return the first message of ``user_id`` tagged ``keyword``, or None."""
    return session.scalars(
        select(Welcome)
        .where(Welcome.user_id == str(user_id), Welcome.keyword == str(keyword))
        .order_by(Welcome.id)
        .limit(1)
    ).first()


def find_welcomes_by_user_id(session: Session, user_id: Any) -> list[Welcome]:
    """Return every message of ``user_id``."""
    return list(
        session.scalars(select(Welcome).where(Welcome.user_id == str(user_id)).order_by(Welcome.id)).all()
    )


def find_welcomes_by_keyword(session: Session, user_id: Any, keyword: Any) -> list[Welcome]:
    """Return every message of ``user_id`` tagged ``keyword``."""
    return list(
        session.scalars(
            select(Welcome)
            .where(Welcome.user_id == str(user_id), Welcome.keyword == str(keyword))
            .order_by(Welcome.id)
        ).all()
    )


def delete_welcome(session: Session, user_id: Any, welcome_id: Any) -> None:
    """Delete a message owned by ``user_id``."""
    ident = _as_int(welcome_id)
    if ident is None:
        return
    session.execute(delete(Welcome).where(Welcome.user_id == str(user_id), Welcome.id == ident))