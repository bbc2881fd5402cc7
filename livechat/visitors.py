"""Website visitors talking to agents."""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import String, func, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base, ModelMixin

__all__ = [
    "Visitor",
    "DayCount",
    "create_visitor",
    "find_visitor_by_visitor_id",
    "find_visitors",
    "find_visitors_by_kefu_id",
    "find_visitors_online",
    "update_visitor_status",
    "update_visitor",
    "update_visitor_kefu",
    "count_visitors",
    "count_visitors_by_kefu_id",
    "count_visitors_every_day",
]


class Visitor(ModelMixin, Base):
    """A visitor and the agent it is assigned to."""

    __tablename__ = "visitor"

    name: Mapped[str] = mapped_column(String(255), default="")
    avator: Mapped[str] = mapped_column(String(1024), default="")
    source_ip: Mapped[str] = mapped_column(String(64), default="")
    to_id: Mapped[str] = mapped_column(String(255), default="", index=True)
    visitor_id: Mapped[str] = mapped_column(String(255), default="", index=True)
    status: Mapped[int] = mapped_column(default=0)
    refer: Mapped[str] = mapped_column(String(2048), default="")
    city: Mapped[str] = mapped_column(String(255), default="")
    client_ip: Mapped[str] = mapped_column(String(64), default="")
    extra: Mapped[str] = mapped_column(String(2048), default="")


@dataclass
class DayCount:
    """Number of visitors that arrived on one day."""

    day: str
    num: int


def _alive():
    return Visitor.deleted_at.is_(None)


def _offset(page: int, pagesize: int) -> int:
    return max(page - 1, 0) * pagesize


def create_visitor(
    session: Session,
    name: str,
    avator: str,
    source_ip: str,
    to_id: str,
    visitor_id: str,
    refer: str,
    city: str,
    client_ip: str,
    extra: str,
) -> Visitor:
    """Store a new online visitor."""
    visitor = Visitor(
        name=name,
        avator=avator,
        source_ip=source_ip,
        to_id=to_id,
        visitor_id=visitor_id,
        status=1,
        refer=refer,
        city=city,
        client_ip=client_ip,
        extra=extra,
    )
    session.add(visitor)
    session.flush()
    return visitor


def find_visitor_by_visitor_id(session: Session, visitor_id: str) -> Visitor | None:
    """Return the visitor with ``visitor_id``, or None."""
    return session.scalars(
        select(Visitor)
        .where(Visitor.visitor_id == visitor_id, _alive())
        .order_by(Visitor.id)
        .limit(1)
    ).first()


def find_visitors(session: Session, page: int, pagesize: int) -> list[Visitor]:
    """Return one page of visitors, online and recently active first."""
    return list(
        session.scalars(
            select(Visitor)
            .where(_alive())
            .order_by(Visitor.status.desc(), Visitor.updated_at.desc())
            .offset(_offset(page, pagesize))
            .limit(pagesize)
        ).all()
    )


def find_visitors_by_kefu_id(session: Session, page: int, pagesize: int, kefu_id: str) -> list[Visitor]:
    """Return one page of an agent's visitors, most recently active first."""
    return list(
        session.scalars(
            select(Visitor)
            .where(Visitor.to_id == kefu_id, _alive())
            .order_by(Visitor.updated_at.desc())
            .offset(_offset(page, pagesize))
            .limit(pagesize)
        ).all()
    )


def find_visitors_online(session: Session) -> list[Visitor]:
    """Return every visitor marked online."""
    return list(session.scalars(select(Visitor).where(Visitor.status == 1, _alive())).all())


def update_visitor_status(session: Session, visitor_id: str, status: int) -> None:
    """Set the online status of ``visitor_id``."""
    session.execute(
        update(Visitor)
        .where(Visitor.visitor_id == visitor_id, _alive())
        .values(status=status, updated_at=datetime.now())
    )


def update_visitor(
    session: Session,
    name: str,
    avator: str,
    visitor_id: str,
    status: int,
    client_ip: str,
    source_ip: str,
    refer: str,
    extra: str,
) -> None:
    """Update the non-empty fields of ``visitor_id``; a zero status is left alone."""
    fields: dict[str, Any] = {
        "status": status,
        "client_ip": client_ip,
        "source_ip": source_ip,
        "refer": refer,
        "extra": extra,
        "name": name,
        "avator": avator,
    }
    values = {key: value for key, value in fields.items() if value}
    values["updated_at"] = datetime.now()
    session.execute(
        update(Visitor).where(Visitor.visitor_id == visitor_id, _alive()).values(**values)
    )


def update_visitor_kefu(session: Session, visitor_id: str, kefu_id: str) -> None:
    """Assign ``visitor_id`` to the agent ``kefu_id``."""
    session.execute(
        update(Visitor)
        .where(Visitor.visitor_id == visitor_id, _alive())
        .values(to_id=kefu_id, updated_at=datetime.now())
    )


def count_visitors(session: Session) -> int:
    """Return the number of visitors."""
    return session.scalar(select(func.count()).select_from(Visitor).where(_alive())) or 0


def count_visitors_by_kefu_id(session: Session, kefu_id: str) -> int:
    """Return the number of visitors assigned to ``kefu_id``."""
    return (
        session.scalar(
            select(func.count()).select_from(Visitor).where(Visitor.to_id == kefu_id, _alive())
        )
        or 0
    )


def count_visitors_every_day(session: Session, to_id: str) -> list[DayCount]:
    """Return visitor counts per "yy-mm-dd" day for ``to_id``, latest 30 days first."""
    created = session.scalars(select(Visitor.created_at).where(Visitor.to_id == to_id)).all()
    counts = Counter(ts.strftime("%y-%m-%d") for ts in created if ts is not None)
    return [DayCount(day, counts[day]) for day in sorted(counts, reverse=True)[:30]]