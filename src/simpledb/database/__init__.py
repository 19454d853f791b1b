"""Public interface for the database package.

This module exposes the main primitives needed by callers: the
transaction-aware connection manager, the statement builder, connection
settings, and the error taxonomy.
"""

from .config import DatabaseConfig
from .connection import SimpleDb
from .drivers import Driver, get_driver
from .errors import (
    ConversionError,
    DatabaseError,
    IntegrityError,
    InvalidArgumentError,
    InvalidStateError,
    OperationalError,
    ProgrammingError,
    SimpleDbError,
)
from .mapping import Row, to_field_name
from .statement import Sql

__all__ = [
    "SimpleDb",
    "Sql",
    "Row",
    "DatabaseConfig",
    "Driver",
    "get_driver",
    "to_field_name",
    "SimpleDbError",
    "DatabaseError",
    "IntegrityError",
    "OperationalError",
    "ProgrammingError",
    "InvalidStateError",
    "InvalidArgumentError",
    "ConversionError",
]
