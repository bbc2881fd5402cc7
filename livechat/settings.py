"""Application-wide settings and the MySQL connection configuration."""

import dataclasses
import json
import os
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.engine import URL

from .textutil import is_file_exist

__all__ = [
    "PAGE_SIZE",
    "VISITOR_PAGE_SIZE",
    "VERSION",
    "VISITOR_EXPIRE",
    "UPLOAD_DIR",
    "CONFIG_DIR",
    "MYSQL_CONF",
    "MysqlConfig",
    "load_mysql_config",
]

PAGE_SIZE = 10
VISITOR_PAGE_SIZE = 8
VERSION = "0.3.9"
VISITOR_EXPIRE = 600.0
UPLOAD_DIR = "static/upload/"
CONFIG_DIR = "config/"
MYSQL_CONF = CONFIG_DIR + "mysql.json"


@dataclass
class MysqlConfig:
    """Where and how to reach the MySQL database."""

    server: str = ""
    port: str = ""
    database: str = ""
    username: str = ""
    password: str = ""

    def dsn(self) -> str:
        """Return the connection string in the user:pass@tcp(host:port)/db form."""
        return (
            f"{self.username}:{self.password}@tcp({self.server}:{self.port})/"
            f"{self.database}?charset=utf8mb4&parseTime=True&loc=Local"
        )

    def url(self) -> str:
        """Return an SQLAlchemy URL for the pymysql driver."""
        port = None
        if self.port:
            if not self.port.isdigit():
                raise ValueError(f"port must be a number, got {self.port!r}")
            port = int(self.port)
        url = URL.create(
            "mysql+pymysql",
            username=self.username or None,
            password=self.password or None,
            host=self.server or None,
            port=port,
            database=self.database or None,
            query={"charset": "utf8mb4"},
        )
        return url.render_as_string(hide_password=False)


def load_mysql_config(path: str | os.PathLike = MYSQL_CONF) -> MysqlConfig:
    """Read the JSON configuration at ``path``; missing or bad files give an empty one."""
    if not is_file_exist(path):
        return MysqlConfig()
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return MysqlConfig()
    if not isinstance(raw, dict):
        return MysqlConfig()
    names = {field.name for field in dataclasses.fields(MysqlConfig)}
    values = {
        key.lower(): value
        for key, value in raw.items()
        if key.lower() in names and isinstance(value, str)
    }
    return MysqlConfig(**values)