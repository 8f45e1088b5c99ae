"""Shared CLI helpers: console, logger, principal options, error reporting, tables."""

from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from stock_count.config import OUTPUT_DIR
from stock_count.exceptions import StockCountError
from stock_count.models.identity import Principal
from stock_count.services.branch_resolver import BranchResolver
from stock_count.utils.logger import bind_context, get_logger

console = Console()
logger = get_logger("stock_count.cli")

UserOption = typer.Option("", "--user", "-u", envvar="STOCK_COUNT_USER", help="Acting user")
BranchOption = typer.Option(None, "--branch", "-b", envvar="STOCK_COUNT_BRANCH_ID", help="Branch id")


def resolver_for(user: str, branch_id: Optional[int]) -> tuple[Principal, BranchResolver]:
    """CLI principal is staff at --branch; no branch means MissingBranchContext on first use."""
    principal = Principal(user=(user or "").strip(), role="staff", branch_id=branch_id)
    bind_context(acting_user=principal.user or None, branch_id=branch_id)
    return principal, BranchResolver(principal.effective_branch_id)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Print StockCountError in red and exit 1."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except StockCountError as e:
            console.print(f"[red]{e.code}: {e}[/red]")
            logger.warning("cli.error", error=e.code, message=str(e))
            raise typer.Exit(1) from e

    return wrapper


def write_output(content: bytes, filename: str, output_dir: Optional[Path] = None) -> Path:
    path = (output_dir or OUTPUT_DIR) / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    logger.info("cli.write_output", path=str(path), size=len(content))
    return path


def print_table(title: str, columns: list[str], rows: list[list[Any]]) -> None:
    table = Table(title=title)
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*["" if v is None else str(v) for v in row])
    console.print(table)
