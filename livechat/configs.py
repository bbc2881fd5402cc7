"""Per-agent key/value configuration entries."""

from collections.abc import Iterable
from typing import Any, Optional

from sqlalchemy import String, Text, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from .db import Base

__all__ = [
    "Config",
    "update_config",
    "find_configs",
    "find_configs_by_user_id",
    "find_config_by_user_id",
    "find_config",
]


class Config(Base):
    """A configuration value owned by a user."""

    __tablename__ = "config"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    conf_name: Mapped[str] = mapped_column(String(255), default="")
    conf_key: Mapped[str] = mapped_column(String(255), default="", index=True)
    conf_value: Mapped[str] = mapped_column(Text, default="")
    user_id: Mapped[str] = mapped_column(String(255), default="", index=True)


def update_config(session: Session, user_id: Any, key: str, value: str) -> None:
    """Set ``key`` to ``value`` for ``user_id``, creating the entry if needed."""
    config = find_config_by_user_id(session, user_id, key)
    if config is not None:
        config.conf_value = value
    else:
        session.add(Config(conf_name="", conf_key=key, conf_value=value, user_id=str(user_id)))
    session.flush()


def find_configs(session: Session) -> list[Config]:
    """Return every configuration entry."""
    return list(session.scalars(select(Config).order_by(Config.id)).all())


def find_configs_by_user_id(session: Session, user_id: Any) -> list[Config]:
    """Return the configuration entries of ``user_id``."""
    return list(
        session.scalars(select(Config).where(Config.user_id == str(user_id)).order_by(Config.id)).all()
    )


def find_config_by_user_id(session: Session, user_id: Any, key: str) -> Optional[Config]:
    """Return the entry ``key`` of ``user_id``, or None."""
    return session.scalars(
        select(Config)
        .where(Config.user_id == str(user_id), Config.conf_key == key)
        .order_by(Config.id)
        .limit(1)
    ).first()


def find_config(custom_configs: Iterable[Config], key: str) -> str:
    """Return the value of the first loaded entry named ``key``, or ""."""
    return next((c.conf_value for c in custom_configs if c.conf_key == key), "")