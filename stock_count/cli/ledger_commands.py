"""count / reset / history: ledger writes and movement history from the terminal."""

from typing import Optional

import typer

from stock_count.db.models import MovementType
from stock_count.db.repositories import product_repo
from stock_count.exceptions import ProductNotFound
from stock_count.models.ledger import MovementFilter
from stock_count.reconciliation_config import load_config
from stock_count.services.ledger import RESET_NOTES, InventoryLedger
from stock_count.services.movement_history import MovementHistoryReader
from stock_count.services.reconciliation import export_filename, movements_to_tabular

from .shared import BranchOption, UserOption, console, handle_errors, print_table, resolver_for, write_output


def _resolve_product(code: str) -> int:
    """Scanned code (Truper, then MRP), or a numeric product id prefixed with '#'."""
    code = (code or "").strip()
    if code.startswith("#") and code[1:].isdigit():
        return int(code[1:])
    product = product_repo.find_by_code(code)
    if product is None:
        raise ProductNotFound(code)
    return product.id


@handle_errors
def count(
    code: str = typer.Argument(..., help="Scanned product code, or #<product id>"),
    quantity: int = typer.Argument(..., help="Units counted (added to the stored total)"),
    user: str = UserOption,
    branch: Optional[int] = BranchOption,
    movement_type: MovementType = typer.Option(MovementType.COUNT, "--type", "-t"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n"),
) -> None:
    """Register a physical count for a product."""
    principal, resolver = resolver_for(user, branch)
    result = InventoryLedger(resolver).register_count(
        _resolve_product(code), None, quantity, principal.user, movement_type=movement_type, notes=notes
    )
    console.print(
        f"[green]{result.previous_quantity} + {result.added_quantity} = {result.new_quantity}[/green] "
        f"(movement {result.movement_id})"
    )


@handle_errors
def reset(
    code: str = typer.Argument(..., help="Scanned product code, or #<product id>"),
    user: str = UserOption,
    branch: Optional[int] = BranchOption,
    notes: str = typer.Option(RESET_NOTES, "--notes", "-n"),
) -> None:
    """Set a product's quantity at the branch to zero."""
    principal, resolver = resolver_for(user, branch)
    result = InventoryLedger(resolver).reset_to_zero(_resolve_product(code), None, principal.user, notes=notes)
    console.print(f"[yellow]{result.previous_quantity} -> 0[/yellow] (movement {result.movement_id})")


@handle_errors
def history(
    branch: Optional[int] = BranchOption,
    search: Optional[str] = typer.Option(None, "--search", "-s"),
    movement_type: Optional[str] = typer.Option(None, "--type", "-t"),
    date_range: str = typer.Option("all", "--range", "-r", help="day | week | month | all"),
    page: int = typer.Option(1, "--page", "-p", min=1),
    page_size: int = typer.Option(20, "--page-size", min=1, max=500),
    export: bool = typer.Option(False, "--export", help="Also write the page to output/ as xlsx"),
) -> None:
    """Show movement history for the branch, newest first."""
    _, resolver = resolver_for("", branch)
    filters = MovementFilter(
        movement_type=movement_type,
        date_range=date_range,
        search=search,
        page=page,
        page_size=page_size,
    )
    result = MovementHistoryReader(resolver).get_filtered(None, filters)
    print_table(
        "Movements",
        ["Date", "Code", "Description", "Type", "Prev", "New", "Diff", "User"],
        [
            [
                v.created_at.strftime("%Y-%m-%d %H:%M"),
                v.product_code,
                v.product_description,
                v.movement_type,
                v.previous_quantity,
                v.new_quantity,
                f"{v.difference:+d}",
                v.acting_user,
            ]
            for v in result.items
        ],
    )
    console.print(f"Page {result.page}/{max(result.total_pages, 1)}, {result.total_items} total")
    if export:
        filename = export_filename(load_config().export.movements_filename_prefix)
        path = write_output(movements_to_tabular(result.items), filename)
        console.print(f"[dim]Exported to {path}[/dim]")
