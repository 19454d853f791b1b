"""
simpledb core package.

A minimal, synchronous database-access layer:
- A transaction-aware connection manager (`simpledb.database.SimpleDb`)
- A fluent SQL statement builder with row/object mapping (`simpledb.database.Sql`)
- A small Typer-based developer CLI (`simpledb.cli`)

Configuration:
- Shared, project-wide constants live in `simpledb.global_config`.
- Connection settings read from the environment live in
  `simpledb.database.config`.
"""

from .database import DatabaseConfig, SimpleDb, Sql

__all__ = ["SimpleDb", "Sql", "DatabaseConfig"]
