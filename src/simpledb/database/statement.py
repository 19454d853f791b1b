"""Fluent SQL statement builder.

A `Sql` accumulates SQL text fragments and positional ``?`` parameters,
then runs exactly once through one of its terminal methods::

    article = (
        db.gen_sql()
        .append("SELECT * FROM article")
        .append("WHERE id = ?", 1)
        .select_row(Article)
    )

Every terminal borrows a connection from the owning `SimpleDb` and
closes it afterwards unless the calling thread is inside a transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar, overload

from . import mapping, queries
from .errors import InvalidArgumentError, InvalidStateError
from .mapping import Row

if TYPE_CHECKING:
    from .connection import SimpleDb

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Sql:
    """Mutable SQL text + parameter accumulator, consumed by one terminal call."""

    def __init__(self, db: SimpleDb) -> None:
        self._db = db
        self._fragments: list[str] = []
        self._params: list[Any] = []
        self._executed = False

    @property
    def sql(self) -> str:
        """The accumulated SQL text, fragments joined with single spaces."""
        return " ".join(self._fragments)

    @property
    def params(self) -> tuple[Any, ...]:
        """The recorded parameters, in binding order."""
        return tuple(self._params)

    def __repr__(self) -> str:
        return f"Sql(sql={self.sql!r}, params={self.params!r})"

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def append(self, text: str | None, *params: Any) -> Sql:
        """Append a SQL fragment and its parameters.

        Blank or ``None`` text is ignored, but any given parameters are
        still recorded.
        """
        if text is not None and text.strip():
            self._fragments.append(text)
        self._params.extend(params)
        return self

    def append_in(self, text: str | None, *params: Any) -> Sql:
        """Append an IN-clause fragment, expanding ``?`` to one placeholder per parameter.

        ``append_in("id IN (?)", 1, 2, 3)`` appends ``id IN (?, ?, ?)``.

        Raises:
            InvalidArgumentError: If ``text`` contains no ``?``.
        """
        if text is None or not text.strip():
            return self
        if "?" not in text:
            raise InvalidArgumentError(f"IN clause template has no '?' placeholder: {text!r}")
        placeholders = ", ".join("?" for _ in params)
        self._fragments.append(text.replace("?", placeholders))
        self._params.extend(params)
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _consume(self) -> str:
        if self._executed:
            raise InvalidStateError("This statement has already been executed")
        sql = self.sql
        if not sql.strip():
            raise InvalidStateError("SQL is empty. Build the query with append(...) first")
        self._executed = True
        return sql

    def _execute(self, operation: Callable[..., T]) -> T:
        """Run ``operation(conn, driver, sql, params)`` on a borrowed connection."""
        sql = self._consume()
        with self._db.connection() as conn:
            return operation(conn, self._db.driver, sql, self._params)

    def insert(self) -> int:
        """Execute an INSERT and return the generated key, or 0 if there is none."""
        return self._execute(queries.execute_insert)

    def update(self) -> int:
        """Execute an UPDATE and return the affected row count."""
        return self._execute(queries.execute_update)

    def delete(self) -> int:
        """Execute a DELETE and return the affected row count."""
        return self._execute(queries.execute_update)

    @overload
    def select_rows(self) -> list[Row]: ...

    @overload
    def select_rows(self, target_type: type[T]) -> list[T]: ...

    def select_rows(self, target_type: type[T] | None = None) -> list[Row] | list[T]:
        """Execute a query and return every row.

        Without ``target_type`` rows are ordered ``{label: value}`` dicts.
        With it, each row populates a new ``target_type()`` instance: column
        ``created_at`` fills field ``createdAt``, and columns without a
        matching field are skipped.

        Raises:
            ConversionError: If a value does not fit its field's type.
        """
        rows = self._execute(queries.fetch_rows)
        if target_type is None:
            return rows
        return [mapping.row_to_object(row, target_type) for row in rows]

    @overload
    def select_row(self) -> Row: ...

    @overload
    def select_row(self, target_type: type[T]) -> T | None: ...

    def select_row(self, target_type: type[T] | None = None) -> Row | T | None:
        """Return the first row, or ``{}`` (``None`` with ``target_type``) when there are none."""
        rows = self.select_rows() if target_type is None else self.select_rows(target_type)
        if rows:
            return rows[0]
        return {} if target_type is None else None

    def _select_value(self) -> Any:
        return self._execute(queries.fetch_value)

    def select_long(self) -> int | None:
        """Return the first column of the first row as ``int``.

        Returns:
            The value as ``int``, or None for no rows or SQL NULL.

        Raises:
            ConversionError: If the value is not a number.
        """
        return mapping.to_long(self._select_value())

    def select_string(self) -> str | None:
        """Return the first column of the first row as ``str``.

        Raises:
            ConversionError: If the value is present but not a string.
        """
        return mapping.to_string(self._select_value())

    def select_boolean(self) -> bool | None:
        """Return the first column of the first row as ``bool``.

        Numbers map to ``value != 0``.

        Raises:
            ConversionError: If the value is neither a boolean nor a number.
        """
        return mapping.to_boolean(self._select_value())

    def select_datetime(self) -> datetime | None:
        """Return the first column of the first row as ``datetime``.

        A ``date`` value is combined with midnight.

        Raises:
            ConversionError: If the value is not a date or datetime.
        """
        return mapping.to_datetime(self._select_value())

    def select_longs(self) -> list[int | None]:
        """Return the first column of every row as ``int``.

        SQL NULLs and rows without columns both yield ``None``.

        Raises:
            ConversionError: If a value is present but not a number.
        """
        result: list[int | None] = []
        for row in self.select_rows():
            if not row:
                result.append(None)
                continue
            result.append(mapping.to_long(next(iter(row.values()))))
        return result
