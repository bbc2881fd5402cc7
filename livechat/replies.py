"""Canned replies of agents, organised in groups."""

from typing import Any, Optional

from sqlalchemy import String, Text, delete, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base

__all__ = [
    "ReplyGroup",
    "ReplyItem",
    "find_reply_item_by_user_id_title",
    "find_replies_by_user_id",
    "find_reply_titles_by_user_id",
    "create_reply_group",
    "create_reply_content",
    "update_reply_content",
    "delete_reply_content",
    "delete_reply_group",
    "search_replies",
]


class ReplyGroup(Base):
    """A named group of canned replies."""

    __tablename__ = "reply_group"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    group_name: Mapped[str] = mapped_column(String(255), default="")
    user_id: Mapped[str] = mapped_column(String(255), default="", index=True)

    # Filled in by the lookups that gather items, never stored.
    items = ()


class ReplyItem(Base):
    """One canned reply."""

    __tablename__ = "reply_item"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, default="")
    group_id: Mapped[str] = mapped_column(String(64), default="", index=True)
    item_name: Mapped[str] = mapped_column(String(255), default="")
    user_id: Mapped[str] = mapped_column(String(255), default="", index=True)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _groups_with(session: Session, user_id: Any, items: list[ReplyItem]) -> list[ReplyGroup]:
    groups = list(
        session.scalars(
            select(ReplyGroup).where(ReplyGroup.user_id == str(user_id)).order_by(ReplyGroup.id)
        ).all()
    )
    by_id: dict[str, ReplyGroup] = {}
    for group in groups:
        group.items = []
        by_id[str(group.id)] = group
    for item in items:
        group = by_id.get(item.group_id)
        if group is not None:
            group.items.append(item)
    return groups


def find_reply_item_by_user_id_title(session: Session, user_id: Any, title: str) -> Optional[ReplyItem]:
    """Return the reply of ``user_id`` named ``title``, or None."""
    return session.scalars(
        select(ReplyItem)
        .where(ReplyItem.user_id == str(user_id), ReplyItem.item_name == title)
        .order_by(ReplyItem.id)
        .limit(1)
    ).first()


def find_replies_by_user_id(session: Session, user_id: Any) -> list[ReplyGroup]:
    """Return the groups of ``user_id`` with their replies in ``items``."""
    items = list(
        session.scalars(
            select(ReplyItem).where(ReplyItem.user_id == str(user_id)).order_by(ReplyItem.id)
        ).all()
    )
    return _groups_with(session, user_id, items)


def find_reply_titles_by_user_id(session: Session, user_id: Any) -> list[ReplyGroup]:
    """Return the groups of ``user_id`` whose items carry only name and group."""
    rows = session.execute(
        select(ReplyItem.item_name, ReplyItem.group_id)
        .where(ReplyItem.user_id == str(user_id))
        .order_by(ReplyItem.id)
    ).all()
    items = [
        ReplyItem(item_name=name, group_id=group_id, content="", user_id="")
        for name, group_id in rows
    ]
    return _groups_with(session, user_id, items)


def create_reply_group(session: Session, group_name: str, user_id: str) -> int:
    """Store a new group and return its id."""
    group = ReplyGroup(group_name=group_name, user_id=user_id)
    session.add(group)
    session.flush()
    return group.id


def create_reply_content(session: Session, group_id: Any, user_id: str, content: str, item_name: str) -> int:
    """Store a new reply in ``group_id`` and return its id."""
    item = ReplyItem(group_id=str(group_id), user_id=user_id, content=content, item_name=item_name)
    session.add(item)
    session.flush()
    return item.id


def update_reply_content(session: Session, item_id: Any, user_id: str, title: str, content: str) -> None:
    """Update the non-empty name and content of a reply owned by ``user_id``."""
    ident = _as_int(item_id)
    values = {key: value for key, value in (("item_name", title), ("content", content)) if value}
    if ident is None or not values:
        return
    session.execute(
        update(ReplyItem).where(ReplyItem.user_id == user_id, ReplyItem.id == ident).values(**values)
    )


def delete_reply_content(session: Session, item_id: Any, user_id: str) -> None:
    """Delete a reply owned by ``user_id``."""
    ident = _as_int(item_id)
    if ident is None:
        return
    session.execute(delete(ReplyItem).where(ReplyItem.user_id == user_id, ReplyItem.id == ident))


def delete_reply_group(session: Session, group_id: Any, user_id: str) -> None:
    """Delete a group owned by ``user_id`` together with its replies."""
    ident = _as_int(group_id)
    if ident is not None:
        session.execute(delete(ReplyGroup).where(ReplyGroup.user_id == user_id, ReplyGroup.id == ident))
    session.execute(
        delete(ReplyItem).where(ReplyItem.user_id == user_id, ReplyItem.group_id == str(group_id))
    )


def search_replies(session: Session, user_id: Any, search: str) -> list[ReplyGroup]:
    """Return the groups of ``user_id`` holding replies whose content contains ``search``."""
    items = list(
        session.scalars(
            select(ReplyItem)
            .where(ReplyItem.user_id == str(user_id), ReplyItem.content.like(f"%{search}%"))
            .order_by(ReplyItem.id)
        ).all()
    )
    return [group for group in _groups_with(session, user_id, items) if group.items]