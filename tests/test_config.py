"""Tests for DatabaseConfig and environment settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from simpledb import global_config as g
from simpledb.database import DatabaseConfig
from simpledb.database.config import get_log_level, is_dev_mode


@pytest.mark.unit
def test_mysql_url_omits_password() -> None:
    config = DatabaseConfig(host="db.local", username="app", password="hunter2", db_name="shop")
    assert config.url == "mysql+pymysql://app@db.local:3306/shop?charset=utf8mb4"
    assert "hunter2" not in repr(config)


@pytest.mark.unit
def test_mysql_url_with_custom_port_and_options() -> None:
    config = DatabaseConfig(
        host="db.local",
        username="app",
        password="",
        db_name="shop",
        port=3307,
        options={"connect_timeout": 5},
    )
    assert config.url == "mysql+pymysql://app@db.local:3307/shop?charset=utf8mb4&connect_timeout=5"
    assert config.driver_options == {"charset": "utf8mb4", "connect_timeout": 5}


@pytest.mark.unit
def test_sqlite_config(tmp_path: Path) -> None:
    config = DatabaseConfig.sqlite(tmp_path / "x.sqlite")
    assert config.driver == "sqlite"
    assert config.url == f"sqlite:///{tmp_path / 'x.sqlite'}"
    assert config.resolved_port is None
    assert config.driver_options == {}


@pytest.mark.unit
def test_from_env_defaults() -> None:
    config = DatabaseConfig.from_env()
    assert (config.driver, config.host, config.username, config.db_name) == (
        "mysql",
        "localhost",
        "root",
        "simpledb",
    )
    assert config.resolved_port == 3306


@pytest.mark.unit
def test_from_env_mysql(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIMPLEDB_HOST", "db.example")
    monkeypatch.setenv("SIMPLEDB_PORT", "3310")
    monkeypatch.setenv("SIMPLEDB_USER", "reader")
    monkeypatch.setenv("SIMPLEDB_PASSWORD", "pw")
    monkeypatch.setenv("SIMPLEDB_DB", "reports")
    config = DatabaseConfig.from_env()
    assert config == DatabaseConfig(
        host="db.example", username="reader", password="pw", db_name="reports", port=3310
    )


@pytest.mark.unit
def test_from_env_sqlite(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIMPLEDB_DRIVER", "SQLite")
    assert DatabaseConfig.from_env().db_name == str(g.DB_DIR / "simpledb-dev.sqlite")
    monkeypatch.setenv("SIMPLEDB_DB", "local.sqlite")
    assert DatabaseConfig.from_env() == DatabaseConfig.sqlite("local.sqlite")


@pytest.mark.unit
def test_log_level_and_dev_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    assert get_log_level() == "WARNING"
    assert is_dev_mode() is False
    monkeypatch.setenv("SIMPLEDB_LOG_LEVEL", "debug")
    monkeypatch.setenv("SIMPLEDB_DEV_MODE", "1")
    assert get_log_level() == "DEBUG"
    assert is_dev_mode() is True
