"""Connection settings and environment-variable-based configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import quote, urlencode

from .. import global_config as g

MYSQL_DEFAULT_OPTIONS: Mapping[str, Any] = {"charset": "utf8mb4"}
_URL_SCHEMES = {"mysql": "mysql+pymysql"}


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{g.ENV_PREFIX}{name}", default)


def get_log_level() -> str:
    """Return the logging level from SIMPLEDB_LOG_LEVEL."""
    return _env("LOG_LEVEL", "WARNING").upper()


def is_dev_mode() -> bool:
    """Return True if SIMPLEDB_DEV_MODE is set to a truthy value."""
    return _env("DEV_MODE", "").lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class DatabaseConfig:
    """Endpoint description used to open connections.

    For the ``sqlite`` driver, ``db_name`` is the database file path and
    host, username and password are ignored.
    """

    host: str
    username: str
    password: str
    db_name: str
    driver: str = g.DEFAULT_DRIVER
    port: int | None = None
    options: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def sqlite(cls, path: Path | str) -> DatabaseConfig:
        """Build a config for an on-disk (or ``:memory:``) SQLite database."""
        return cls(host="", username="", password="", db_name=str(path), driver="sqlite")

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """Build a config from SIMPLEDB_* environment variables."""
        driver = _env("DRIVER", g.DEFAULT_DRIVER).lower()
        if driver == "sqlite":
            return cls.sqlite(_env("DB", str(g.DB_DIR / f"{g.PROJECT_NAME}-dev.sqlite")))
        port = _env("PORT", "")
        return cls(
            host=_env("HOST", "localhost"),
            username=_env("USER", "root"),
            password=_env("PASSWORD", ""),
            db_name=_env("DB", g.PROJECT_NAME),
            driver=driver,
            port=int(port) if port else None,
        )

    @property
    def resolved_port(self) -> int | None:
        return self.port if self.port is not None else g.DEFAULT_PORTS.get(self.driver)

    @property
    def driver_options(self) -> dict[str, Any]:
        """Options passed through to the driver's connect call."""
        if self.driver == "mysql":
            return {**MYSQL_DEFAULT_OPTIONS, **self.options}
        return dict(self.options)

    @property
    def url(self) -> str:
        """Connection URL for display and logging. The password is never included."""
        if self.driver == "sqlite":
            return f"sqlite:///{self.db_name}"
        query = urlencode(sorted(self.driver_options.items()))
        url = (
            f"{_URL_SCHEMES.get(self.driver, self.driver)}://{quote(self.username)}@"
            f"{self.host}:{self.resolved_port}/{self.db_name}"
        )
        return f"{url}?{query}" if query else url

    def __repr__(self) -> str:
        return f"DatabaseConfig(url={self.url!r})"
