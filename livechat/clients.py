"""Push-notification client ids registered by agents."""

from datetime import datetime

from sqlalchemy import String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base

__all__ = ["UserClient", "create_user_client", "find_clients"]

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class UserClient(Base):
    """A device client id belonging to an agent."""

    __tablename__ = "user_client"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    kefu: Mapped[str] = mapped_column(String(255), default="", index=True)
    client_id: Mapped[str] = mapped_column(String(255), default="")
    created_at: Mapped[str] = mapped_column(String(32), default="")


def create_user_client(session: Session, kefu: str, client_id: str) -> int:
    """Register ``client_id`` for ``kefu`` and return the entry's id."""
    entry = UserClient(kefu=kefu, client_id=client_id, created_at=datetime.now().strftime(_TIME_FORMAT))
    session.add(entry)
    session.flush()
    return entry.id


def find_clients(session: Session, kefu: str) -> list[UserClient]:
    """Return the client ids registered for ``kefu``."""
    return list(
        session.scalars(select(UserClient).where(UserClient.kefu == kefu).order_by(UserClient.id)).all()
    )