"""Database engine, session handling and the shared model base."""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import DateTime, create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .settings import MysqlConfig

__all__ = ["Base", "ModelMixin", "Database", "connect"]


class Base(DeclarativeBase):
    """Declarative base shared by every table."""


class ModelMixin:
    """Common id and timestamp columns; a set ``deleted_at`` marks a row deleted."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, default=None, index=True)


class Database:
    """An engine together with a session factory."""

    def __init__(self, url: Union[str, URL], *, echo: bool = False) -> None:
        url = make_url(url)
        options: dict = {"echo": echo}
        if url.get_backend_name() == "sqlite":
            options["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                options["poolclass"] = StaticPool
        else:
            options.update(pool_size=10, max_overflow=90, pool_recycle=59, pool_pre_ping=True)
        self.engine = create_engine(url, **options)
        self._factory = sessionmaker(self.engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        session = self._factory()
        try:
            yield session
            session.commit()
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def execute(self, sql: str) -> None:
        """Run one raw SQL statement in its own transaction."""
        with self.engine.begin() as conn:
            conn.exec_driver_sql(sql)

    def create_all(self) -> None:
        """Create every table registered on :class:`Base`."""
        Base.metadata.create_all(self.engine)

    def close(self) -> None:
        """Release all pooled connections."""
        self.engine.dispose()


def connect(config: Union[MysqlConfig, str, URL]) -> Database:
    """Return a :class:`Database` for a MySQL configuration or a URL."""
    if isinstance(config, MysqlConfig):
        return Database(config.url())
    return Database(config)