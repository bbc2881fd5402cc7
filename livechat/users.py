"""Agent accounts, roles and the user-to-role links."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import String, delete, select, update
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base, ModelMixin

__all__ = [
    "User",
    "Role",
    "UserRole",
    "create_user",
    "update_user",
    "update_user_pass",
    "update_user_avator",
    "find_user",
    "find_user_by_id",
    "delete_user_by_id",
    "find_users",
    "find_user_role",
    "find_roles",
    "find_role",
    "save_role",
    "find_role_by_user_id",
    "create_user_role",
    "delete_role_by_user_id",
]


class User(ModelMixin, Base):
    """An agent account."""

    __tablename__ = "user"

    name: Mapped[str] = mapped_column(String(255), default="", index=True)
    password: Mapped[str] = mapped_column(String(255), default="")
    nickname: Mapped[str] = mapped_column(String(255), default="")
    avator: Mapped[str] = mapped_column(String(1024), default="")

    # Filled in by the joined lookups, never stored.
    role_name = ""
    role_id = ""


class Role(Base):
    """A named permission set."""

    __tablename__ = "role"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    method: Mapped[str] = mapped_column(String(255), default="")
    path: Mapped[str] = mapped_column(String(2048), default="")


class UserRole(Base):
    """Links a user to a role."""

    __tablename__ = "user_role"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), default="", index=True)
    role_id: Mapped[int] = mapped_column(default=0)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _alive():
    return User.deleted_at.is_(None)


def create_user(session: Session, name: str, password: str, avator: str, nickname: str) -> int:
    """Store a new user and return its id."""
    user = User(name=name, password=password, avator=avator, nickname=nickname)
    session.add(user)
    session.flush()
    return user.id


def update_user(session: Session, name: str, password: str, avator: str, nickname: str) -> None:
    """Update the non-empty fields of the user called ``name``."""
    values: dict[str, Any] = {"updated_at": datetime.now()}
    for key, value in (("avator", avator), ("nickname", nickname), ("password", password)):
        if value:
            values[key] = value
    session.execute(update(User).where(User.name == name, _alive()).values(**values))


def update_user_pass(session: Session, name: str, password: str) -> None:
    """Set the stored password hash of the user called ``name``."""
    session.execute(
        update(User)
        .where(User.name == name, _alive())
        .values(password=password, updated_at=datetime.now())
    )


def update_user_avator(session: Session, name: str, avator: str) -> None:
    """Set the avatar of the user called ``name``."""
    session.execute(
        update(User)
        .where(User.name == name, _alive())
        .values(avator=avator, updated_at=datetime.now())
    )


def find_user(session: Session, name: str) -> Optional[User]:
    """Return the user called ``name``, or None."""
    return session.scalars(
        select(User).where(User.name == name, _alive()).order_by(User.id).limit(1)
    ).first()


def _find_with_role(session: Session, user_id: Any) -> Optional[User]:
    ident = _as_int(user_id)
    if ident is None:
        return None
    row = session.execute(
        select(User, Role.name, Role.id)
        .join(UserRole, UserRole.user_id == User.id)
        .join(Role, UserRole.role_id == Role.id)
        .where(User.id == ident, _alive())
        .order_by(User.id)
        .limit(1)
    ).first()
    if row is None:
        return None
    user, role_name, role_id = row
    user.role_name = role_name or ""
    user.role_id = str(role_id)
    return user


def find_user_by_id(session: Session, user_id: Any) -> Optional[User]:
    """Return the user with ``user_id`` and its role, or None when either is missing."""
    return _find_with_role(session, user_id)


def find_user_role(session: Session, user_id: Any) -> Optional[User]:
    """Return the user with ``user_id`` carrying its role name, or None."""
    user = _find_with_role(session, user_id)
    if user is not None:
        user.role_id = ""
    return user


def delete_user_by_id(session: Session, user_id: Any) -> None:
    """Mark the user with ``user_id`` as deleted."""
    ident = _as_int(user_id)
    if ident is None:
        return
    session.execute(
        update(User).where(User.id == ident, _alive()).values(deleted_at=datetime.now())
    )


def find_users(session: Session) -> list[User]:
    """Return all users, newest first, each with its role name if any."""
    rows = session.execute(
        select(User, Role.name)
        .outerjoin(UserRole, UserRole.user_id == User.id)
        .outerjoin(Role, UserRole.role_id == Role.id)
        .where(_alive())
        .order_by(User.id.desc())
    ).all()
    users = []
    for user, role_name in rows:
        user.role_name = role_name or ""
        users.append(user)
    return users


def find_roles(session: Session) -> list[Role]:
    """Return every role, newest first."""
    return list(session.scalars(select(Role).order_by(Role.id.desc())).all())


def find_role(session: Session, role_id: Any) -> Optional[Role]:
    """Return the role with ``role_id``, or None."""
    ident = _as_int(role_id)
    if ident is None:
        return None
    return session.get(Role, ident)


def save_role(session: Session, role_id: Any, name: str, method: str, path: str) -> None:
    """Update the non-empty fields of the role with ``role_id``."""
    ident = _as_int(role_id)
    values = {key: value for key, value in (("name", name), ("method", method), ("path", path)) if value}
    if ident is None or not values:
        return
    session.execute(update(Role).where(Role.id == ident).values(**values))


def find_role_by_user_id(session: Session, user_id: Any) -> Optional[UserRole]:
    """Return the first role link of ``user_id``, or None."""
    return session.scalars(
        select(UserRole).where(UserRole.user_id == str(user_id)).order_by(UserRole.id).limit(1)
    ).first()


def create_user_role(session: Session, user_id: int, role_id: int) -> None:
    """Link ``user_id`` to ``role_id``."""
    session.add(UserRole(user_id=str(user_id), role_id=role_id))
    session.flush()


def delete_role_by_user_id(session: Session, user_id: Any) -> None:
    """Remove every role link of ``user_id``."""
    session.execute(delete(UserRole).where(UserRole.user_id == str(user_id)))