"""DB-API driver adapters.

Each driver knows how to open a raw DB-API 2.0 connection for a
`DatabaseConfig` and how to rewrite ``?`` placeholders into its own
paramstyle. The rest of the package only ever talks to a `Driver`.
"""

from __future__ import annotations

import functools
import logging
import re
import sqlite3
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path
from types import ModuleType
from typing import Any

import pymysql

from .config import DatabaseConfig
from .errors import from_driver_error

logger = logging.getLogger(__name__)

# Quoted literals and identifiers (kept as text), bare placeholders, bare percents.
_PYFORMAT_TOKENS = re.compile(
    r"""
      '(?:[^'\\]|\\.)*'
    | "(?:[^"\\]|\\.)*"
    | `[^`]*`
    | \?
    | %
    """,
    re.VERBOSE | re.DOTALL,
)


def _convert_datetime(raw: bytes) -> datetime | str:
    text = raw.decode()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return text


def _convert_date(raw: bytes) -> date | str:
    text = raw.decode()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return text


@functools.cache
def _register_sqlite_types() -> None:
    """Round-trip date/datetime values through SQLite as ISO-8601 text.

    Converters are keyed by declared column type (PARSE_DECLTYPES) or by a
    ``"name [type]"`` column alias (PARSE_COLNAMES). Text that is not
    ISO-8601 is returned as a plain string.

    Note:
        `sqlite3` keeps adapters and converters in process-wide registries,
        so once the first SQLite connection is opened every other `sqlite3`
        user in the process sees them too.
    """
    sqlite3.register_adapter(datetime, lambda value: value.isoformat(" "))
    sqlite3.register_adapter(date, lambda value: value.isoformat())
    for decltype in ("DATETIME", "TIMESTAMP"):
        sqlite3.register_converter(decltype, _convert_datetime)
    sqlite3.register_converter("DATE", _convert_date)
    logger.debug("Registered sqlite3 date/datetime converters")


class Driver(ABC):
    """Base class for driver adapters."""

    name: str = ""
    module: ModuleType | None = None
    default_port: int | None = None

    def connect(self, config: DatabaseConfig, *, autocommit: bool) -> Any:
        """Open a raw connection, mapping driver failures to DatabaseError."""
        try:
            conn = self._connect(config, autocommit=autocommit)
        except Exception as exc:
            if self.module is not None and isinstance(exc, self.module.Error):
                logger.exception("Could not connect to %s", config.url)
                raise from_driver_error(exc, self.module) from exc
            raise
        logger.debug("Opened %s connection to %s (autocommit=%s)", self.name, config.url, autocommit)
        return conn

    @abstractmethod
    def _connect(self, config: DatabaseConfig, *, autocommit: bool) -> Any:
        """Open the raw DB-API connection."""

    def prepare(self, sql: str) -> str:
        """Rewrite ``?`` placeholders into the driver's paramstyle."""
        return sql


class SQLiteDriver(Driver):
    """Driver for the standard library `sqlite3` module."""

    name = "sqlite"
    module = sqlite3

    def _connect(self, config: DatabaseConfig, *, autocommit: bool) -> sqlite3.Connection:
        _register_sqlite_types()
        if config.db_name != ":memory:":
            Path(config.db_name).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(
            config.db_name,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            isolation_level=None if autocommit else "DEFERRED",
            check_same_thread=False,
            **config.driver_options,
        )
        conn.execute("PRAGMA foreign_keys = ON")
        return conn


class MySQLDriver(Driver):
    """Driver for MySQL/MariaDB through PyMySQL."""

    name = "mysql"
    module = pymysql
    default_port = 3306

    def _connect(self, config: DatabaseConfig, *, autocommit: bool) -> Any:
        return pymysql.connect(
            host=config.host,
            port=config.resolved_port or self.default_port,
            user=config.username,
            password=config.password,
            database=config.db_name,
            autocommit=autocommit,
            **config.driver_options,
        )

    def prepare(self, sql: str) -> str:
        """Rewrite ``?`` to ``%s`` outside quoted literals and identifiers.

        PyMySQL always %-formats the query when args are given, so every
        ``%`` is doubled, including those inside quotes. A ``?`` inside
        ``'...'``, ``"..."`` or backticks is left as text. Doubled-quote
        escapes (``'it''s'``) scan as two adjacent literals.
        """
        return _PYFORMAT_TOKENS.sub(_pyformat_token, sql)


def _pyformat_token(match: re.Match[str]) -> str:
    token = match.group(0)
    if token == "?":
        return "%s"
    return token.replace("%", "%%")


_DRIVERS: dict[str, Driver] = {
    driver.name: driver for driver in (SQLiteDriver(), MySQLDriver())
}


def get_driver(name: str) -> Driver:
    """Return the registered driver for ``name``.

    Raises:
        ValueError: If no driver is registered under that name.
    """
    try:
        return _DRIVERS[name]
    except KeyError:
        msg = f"Unsupported driver: {name!r}. Expected one of: {', '.join(sorted(_DRIVERS))}"
        raise ValueError(msg) from None
