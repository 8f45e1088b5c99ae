"""CLI commands: one module per area (db, ledger, reports, serve)."""

from typer import Typer

from stock_count.cli import db_commands, ledger_commands, report_commands, serve_command
from stock_count.utils.tracing import init_tracing

init_tracing()

app = Typer(help="Branch inventory counting and ERP reconciliation")


def register_commands() -> None:
    """Register all CLI commands on the global app."""
    app.command(name="init-db")(db_commands.init_db_command)
    app.command()(ledger_commands.count)
    app.command()(ledger_commands.reset)
    app.command()(ledger_commands.history)
    app.command()(report_commands.reconcile)
    app.command()(report_commands.snapshot)
    app.command()(report_commands.metrics)
    app.command()(serve_command.serve)


register_commands()
