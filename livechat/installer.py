"""Database initialisation from SQL script files."""

import logging
import os
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from .db import Database
from .textutil import is_file_exist, is_file_not_exist

__all__ = ["InstallError", "split_sql", "import_sql", "install"]

log = logging.getLogger(__name__)

LOCK_TEXT = "gofly live chat installation complete"


class InstallError(Exception):
    """Raised when the database cannot be initialised."""


def split_sql(text: str) -> list[str]:
    """Split a script on ";" into its non-blank, stripped statements."""
    return [statement.strip() for statement in text.split(";") if statement.strip()]


def _run_statements(database: Database, statements: list[str]) -> int:
    for statement in statements:
        try:
            database.execute(statement)
        except SQLAlchemyError as exc:
            raise InstallError(f"SQL execution failed: {statement}: {exc}") from exc
        log.info("executed successfully: %s", statement)
    return len(statements)


def import_sql(database: Database, sql_path: str | os.PathLike) -> int:
    """Run every statement of the script at ``sql_path``; return how many ran."""
    path = Path(sql_path)
    if not path.exists():
        raise InstallError(f"SQL file {path} does not exist")
    return _run_statements(database, split_sql(path.read_text(encoding="utf-8")))


def install(
    database: Database,
    sql_file: str | os.PathLike = "import.sql",
    lock_file: str | os.PathLike = "install.lock",
) -> int:
    """Initialise the database from ``sql_file`` once, guarded by ``lock_file``.

    Returns the number of statements run.
    """
    if not is_file_not_exist(lock_file):
        raise InstallError(f"please remove {lock_file} to reinstall")
    if not is_file_exist(sql_file):
        raise InstallError(f"database import file {sql_file} not found")
    try:
        text = Path(sql_file).read_text(encoding="utf-8")
    except OSError as exc:
        raise InstallError(f"failed to read SQL file {sql_file}: {exc}") from exc
    count = _run_statements(database, split_sql(text))
    try:
        Path(lock_file).write_text(LOCK_TEXT, encoding="utf-8")
    except OSError as exc:
        raise InstallError(f"failed to create lock file: {exc}") from exc
    log.info("database initialisation completed successfully")
    return count