"""Basic query execution helpers.

These wrap low-level DB-API cursor operations with logging, error
mapping and typed return shapes used by the statement builder. They do
*not* open or close connections; the caller owns the connection and
its transaction boundaries. Cursors are always closed before returning.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator, Sequence
from typing import Any

from .drivers import Driver
from .errors import from_driver_error
from .mapping import Row, make_row

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def execute_query(
    conn: Any,
    driver: Driver,
    sql: str,
    params: Sequence[Any] = (),
) -> Iterator[Any]:
    """Execute a SQL statement and yield the cursor.

    The ``?`` placeholders in ``sql`` are rewritten for the driver and
    ``params`` are bound positionally, in order.

    Args:
        conn: Raw DB-API connection.
        driver: Driver that opened ``conn``.
        sql: SQL text with ``?`` placeholders.
        params: Positional parameter values.

    Yields:
        Cursor holding the statement's results.

    Raises:
        DatabaseError: If the driver fails, while executing or while the
            caller reads from the cursor.

    Logs:
        - DEBUG: "Executed query: {sql[:80]}" on success.
        - ERROR: "Query execution failed: {exc}" with exception details on failure.
    """
    cursor = None
    try:
        cursor = conn.cursor()
        cursor.execute(driver.prepare(sql), tuple(params))
        logger.debug("Executed query: %s", sql[:80])
        yield cursor
    except driver.module.Error as exc:
        logger.exception("Query execution failed: %s", exc)
        raise from_driver_error(exc, driver.module) from exc
    finally:
        if cursor is not None:
            cursor.close()


def column_labels(cursor: Any) -> list[str]:
    """Return the column labels (aliases when present) of a result set."""
    return [column[0] for column in cursor.description or ()]


def fetch_rows(
    conn: Any,
    driver: Driver,
    sql: str,
    params: Sequence[Any] = (),
) -> list[Row]:
    """Execute a query and return all rows as ordered dicts.

    Returns:
        List of rows keyed by column label. Empty list if no rows match.
    """
    with execute_query(conn, driver, sql, params) as cursor:
        labels = column_labels(cursor)
        return [make_row(labels, values) for values in cursor.fetchall()]


def fetch_value(
    conn: Any,
    driver: Driver,
    sql: str,
    params: Sequence[Any] = (),
) -> Any:
    """Execute a query and return the first column of the first row.

    Returns:
        The raw value, or None if the query produced no rows.
    """
    with execute_query(conn, driver, sql, params) as cursor:
        values = cursor.fetchone()
        if not values:
            return None
        return values[0]


def execute_update(
    conn: Any,
    driver: Driver,
    sql: str,
    params: Sequence[Any] = (),
) -> int:
    """Execute INSERT/UPDATE/DELETE and return number of affected rows.

    Logs:
        - DEBUG: "Update affected {rowcount} rows" on success.
    """
    with execute_query(conn, driver, sql, params) as cursor:
        rowcount = cursor.rowcount
        logger.debug("Update affected %s rows", rowcount)
        return rowcount


def execute_insert(
    conn: Any,
    driver: Driver,
    sql: str,
    params: Sequence[Any] = (),
) -> int:
    """Execute an INSERT and return the generated key.

    Returns:
        The generated key reported by the driver, or 0 when there is none.
    """
    with execute_query(conn, driver, sql, params) as cursor:
        generated = cursor.lastrowid
        logger.debug("Insert generated key %s", generated)
        return int(generated) if generated else 0
