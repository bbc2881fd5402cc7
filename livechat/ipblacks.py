"""Blocked client IP addresses."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, delete, func, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base

__all__ = [
    "Ipblack",
    "create_ipblack",
    "delete_ipblack_by_ip",
    "find_ip",
    "find_ips_by_kefu_id",
    "find_ips",
    "count_ips",
]


class Ipblack(Base):
    """An IP address that may not use the chat."""

    __tablename__ = "ipblack"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    ip: Mapped[str] = mapped_column(String(64), default="", index=True)
    kefu_id: Mapped[str] = mapped_column(String(255), default="")
    create_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)


def create_ipblack(session: Session, ip: str, kefu_id: str) -> int:
    """Block ``ip`` on behalf of ``kefu_id`` and return the entry's id."""
    entry = Ipblack(ip=ip, kefu_id=kefu_id, create_at=datetime.now())
    session.add(entry)
    session.flush()
    return entry.id


def delete_ipblack_by_ip(session: Session, ip: str) -> None:
    """Unblock ``ip``."""
    session.execute(delete(Ipblack).where(Ipblack.ip == ip))


def find_ip(session: Session, ip: str) -> Optional[Ipblack]:
    """Return the block entry for ``ip``, or None."""
    return session.scalars(select(Ipblack).where(Ipblack.ip == ip).order_by(Ipblack.id).limit(1)).first()


def find_ips_by_kefu_id(session: Session, kefu_id: str) -> list[Ipblack]:
    """Return the entries added by ``kefu_id``."""
    return list(
        session.scalars(select(Ipblack).where(Ipblack.kefu_id == kefu_id).order_by(Ipblack.id)).all()
    )


def find_ips(session: Session, page: int, pagesize: int) -> list[Ipblack]:
    """Return one page of block entries."""
    return list(
        session.scalars(
            select(Ipblack).order_by(Ipblack.id).offset(max(page - 1, 0) * pagesize).limit(pagesize)
        ).all()
    )


def count_ips(session: Session) -> int:
    """Return the number of block entries."""
    return session.scalar(select(func.count()).select_from(Ipblack)) or 0