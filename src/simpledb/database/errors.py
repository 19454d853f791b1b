"""Database-specific exception types for the project.

Every failure raised by the underlying DB-API driver is re-raised as a
`DatabaseError` (or one of its tagged subclasses), so callers never need
to import driver modules to handle errors.
"""

from __future__ import annotations

from types import ModuleType
from typing import Any


class SimpleDbError(Exception):
    """Base exception for all errors raised by this package."""


class DatabaseError(SimpleDbError):
    """Raised when the underlying database driver fails."""


class IntegrityError(DatabaseError):
    """Raised when a constraint violation occurs."""


class OperationalError(DatabaseError):
    """Raised for connection, lock and timeout failures."""


class ProgrammingError(DatabaseError):
    """Raised for malformed SQL or a placeholder/parameter count mismatch."""


class InvalidStateError(SimpleDbError, RuntimeError):
    """Raised when an operation is called in the wrong lifecycle state."""


class InvalidArgumentError(SimpleDbError, ValueError):
    """Raised when a builder method receives a malformed argument."""


class ConversionError(SimpleDbError, TypeError):
    """Raised when a column value cannot be converted to the requested type."""

    def __init__(self, value: Any, target: Any, message: str | None = None) -> None:
        self.value = value
        self.target = target
        target_name = getattr(target, "__name__", str(target))
        super().__init__(
            message or f"Cannot convert {value!r} ({type(value).__name__}) to {target_name}"
        )


# Checked in order: the first matching DB-API class wins.
_TAGGED_ERRORS: tuple[tuple[str, type[DatabaseError]], ...] = (
    ("IntegrityError", IntegrityError),
    ("OperationalError", OperationalError),
    ("ProgrammingError", ProgrammingError),
)


def from_driver_error(error: Exception, module: ModuleType | None = None) -> DatabaseError:
    """Map a raw DB-API error to a project-level DatabaseError.

    Looks up the standard DB-API exception classes (IntegrityError,
    OperationalError, ProgrammingError) on the driver module and returns
    the matching tagged subclass. Everything else becomes a plain
    DatabaseError.

    Args:
        error: Driver exception to convert.
        module: DB-API module that raised it (sqlite3, pymysql, ...).

    Returns:
        DatabaseError subclass instance carrying the driver's message.
    """
    if isinstance(error, DatabaseError):
        return error
    if module is not None:
        for name, tagged in _TAGGED_ERRORS:
            driver_cls = getattr(module, name, None)
            if driver_cls is not None and isinstance(error, driver_cls):
                return tagged(str(error))
    return DatabaseError(str(error))
