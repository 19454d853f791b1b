"""CLI commands for running ad-hoc statements."""

from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from ..base import BaseCLI
from ...database import DatabaseConfig, SimpleDb

db_app = typer.Typer(help="Run statements against the configured database.")

DbPathOption = Annotated[
    Optional[Path],
    typer.Option(
        "--db-path",
        help="Use this SQLite database file instead of the SIMPLEDB_* settings",
    ),
]
DevOption = Annotated[
    bool,
    typer.Option("--dev", help="Echo SQL and bound parameters before execution"),
]
ParamsArgument = Annotated[
    Optional[list[str]],
    typer.Argument(help="Positional values bound to the ? placeholders"),
]


class DatabaseCLI(BaseCLI):
    """CLI helpers for statement execution."""

    def __init__(self) -> None:
        super().__init__("db")

    @staticmethod
    def open_db(*, db_path: Path | None, dev: bool) -> SimpleDb:
        config = DatabaseConfig.sqlite(db_path) if db_path else DatabaseConfig.from_env()
        return SimpleDb.from_config(config, dev_mode=dev or None)

    def run_statement(self, db: SimpleDb, sql: str, params: list[str]) -> dict[str, Any]:
        return self.handle_cli_operation(
            operation="db run",
            op_callable=lambda: {"success": True, "rowcount": db.run(sql, *params)},
        )

    def query(self, db: SimpleDb, sql: str, params: list[str]) -> dict[str, Any]:
        return self.handle_cli_operation(
            operation="db query",
            op_callable=lambda: {
                "success": True,
                "rows": db.gen_sql().append(sql, *params).select_rows(),
            },
        )

    def ping(self, db: SimpleDb) -> dict[str, Any]:
        return self.handle_cli_operation(
            operation="db ping",
            pre_message=f"Connecting to {db.url}...",
            op_callable=lambda: {
                "success": True,
                "value": db.gen_sql().append("SELECT 1").select_long(),
            },
        )


cli = DatabaseCLI()


@db_app.command("run")
def run_command(
    sql: Annotated[str, typer.Argument(help="Statement to execute")],
    params: ParamsArgument = None,
    db_path: DbPathOption = None,
    dev: DevOption = False,
) -> None:
    """Execute a statement and report the affected row count."""
    cli.run_statement(cli.open_db(db_path=db_path, dev=dev), sql, params or [])


@db_app.command("query")
def query_command(
    sql: Annotated[str, typer.Argument(help="Query to execute")],
    params: ParamsArgument = None,
    db_path: DbPathOption = None,
    dev: DevOption = False,
) -> None:
    """Execute a query and print every row."""
    cli.query(cli.open_db(db_path=db_path, dev=dev), sql, params or [])


@db_app.command("ping")
def ping_command(
    db_path: DbPathOption = None,
    dev: DevOption = False,
) -> None:
    """Check that the database answers ``SELECT 1``."""
    cli.ping(cli.open_db(db_path=db_path, dev=dev))


app = db_app
