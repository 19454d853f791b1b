"""Connection and transaction management.

`SimpleDb` is the single source of truth for acquiring a connection
appropriate to the calling thread's transaction state. Outside a
transaction every caller gets a brand-new autocommit connection that it
must close; inside one, every statement on that thread shares the
transaction's connection until `commit` or `rollback` closes it.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator, Mapping
from typing import Any

import typer

from .config import DatabaseConfig, is_dev_mode
from .drivers import Driver, get_driver
from .errors import InvalidStateError, from_driver_error
from .queries import execute_update
from .statement import Sql

logger = logging.getLogger(__name__)


class SimpleDb:
    """Transaction-aware connection manager and `Sql` factory.

    Transactions are bound per thread: each thread sees only its own open
    transaction, never another thread's.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        db_name: str,
        *,
        driver: str = "mysql",
        port: int | None = None,
        options: Mapping[str, Any] | None = None,
        dev_mode: bool | None = None,
    ) -> None:
        self.config = DatabaseConfig(
            host=host,
            username=username,
            password=password,
            db_name=db_name,
            driver=driver,
            port=port,
            options=dict(options or {}),
        )
        self.driver: Driver = get_driver(driver)
        self.dev_mode = is_dev_mode() if dev_mode is None else dev_mode
        self._local = threading.local()

    @classmethod
    def from_config(cls, config: DatabaseConfig, *, dev_mode: bool | None = None) -> SimpleDb:
        """Build a manager around an existing `DatabaseConfig`."""
        return cls(
            config.host,
            config.username,
            config.password,
            config.db_name,
            driver=config.driver,
            port=config.port,
            options=config.options,
            dev_mode=dev_mode,
        )

    @property
    def url(self) -> str:
        return self.config.url

    def __repr__(self) -> str:
        return f"SimpleDb(url={self.url!r}, dev_mode={self.dev_mode})"

    def __enter__(self) -> SimpleDb:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Connection acquisition
    # ------------------------------------------------------------------

    def _open(self, *, autocommit: bool) -> Any:
        return self.driver.connect(self.config, autocommit=autocommit)

    def _tx_connection(self) -> Any | None:
        return getattr(self._local, "conn", None)

    def get_connection(self) -> Any:
        """Return a connection for the calling thread.

        Returns the thread's transaction connection when one is open (shared,
        must not be closed by the caller). Otherwise opens a new autocommit
        connection that the caller owns and must close.
        """
        conn = self._tx_connection()
        if conn is not None:
            return conn
        return self._open(autocommit=True)

    def is_in_transaction(self) -> bool:
        """Report whether the calling thread has an open transaction."""
        return self._tx_connection() is not None

    @contextlib.contextmanager
    def connection(self) -> Iterator[Any]:
        """Borrow a connection, closing it on exit unless it belongs to a transaction."""
        in_transaction = self.is_in_transaction()
        conn = self.get_connection()
        try:
            yield conn
        finally:
            if not in_transaction:
                self._close_quietly(conn)

    @staticmethod
    def _close_quietly(conn: Any) -> None:
        try:
            conn.close()
            logger.debug("Connection closed")
        except Exception:  # noqa: BLE001
            logger.warning("Failed to close connection", exc_info=True)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def gen_sql(self) -> Sql:
        """Return a new, empty statement builder bound to this manager."""
        return Sql(self)

    def run(self, sql: str, *params: Any) -> int:
        """Execute a fire-and-forget statement and return the affected row count.

        In dev mode the SQL text and, when given, each parameter as
        ``$<position> = <value>`` are echoed to stdout before execution.
        """
        self._echo(sql, params)
        with self.connection() as conn:
            return execute_update(conn, self.driver, sql, params)

    def _echo(self, sql: str, params: tuple[Any, ...]) -> None:
        logger.debug("SQL: %s | params: %r", sql, params)
        if not self.dev_mode:
            return
        typer.echo(f"SQL: {sql}")
        if params:
            typer.echo("  params: ")
            for position, value in enumerate(params, start=1):
                typer.echo(f"    ${position} = {value}")

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def start_transaction(self) -> None:
        """Open a transaction connection and bind it to the calling thread.

        Raises:
            InvalidStateError: If the thread already has an open transaction.
            DatabaseError: If the connection cannot be opened.
        """
        if self.is_in_transaction():
            raise InvalidStateError("A transaction is already in progress on this thread")
        self._local.conn = self._open(autocommit=False)
        logger.debug("Beginning transaction")

    def commit(self) -> None:
        """Commit and close the thread's transaction; no-op without one."""
        self._finish("commit")

    def rollback(self) -> None:
        """Roll back and close the thread's transaction; no-op without one."""
        self._finish("rollback")

    def _finish(self, action: str) -> None:
        conn = self._tx_connection()
        if conn is None:
            return
        try:
            getattr(conn, action)()
            logger.debug("Transaction %s", "committed" if action == "commit" else "rolled back")
        except self.driver.module.Error as exc:
            logger.exception("Transaction %s failed", action)
            raise from_driver_error(exc, self.driver.module) from exc
        finally:
            self._close_quietly(conn)
            del self._local.conn

    @contextlib.contextmanager
    def transaction(self) -> Iterator[SimpleDb]:
        """Context manager for a transactional block.

        Commits on success, rolls back and re-raises on error.
        """
        self.start_transaction()
        try:
            yield self
        except BaseException:
            logger.debug("Transaction rolled back due to error")
            self.rollback()
            raise
        self.commit()

    def close(self) -> None:
        """Roll back any transaction still open on the calling thread."""
        if self.is_in_transaction():
            logger.warning("Closing with an open transaction; rolling back")
            self.rollback()
