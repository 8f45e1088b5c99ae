"""reconcile / snapshot / metrics: ERP comparison, monthly archive and inventory metrics."""

from pathlib import Path
from typing import Optional

import typer

from stock_count.reconciliation_config import load_config
from stock_count.services import metrics as metrics_service
from stock_count.services.reconciliation import ReconciliationEngine, export_filename, to_tabular
from stock_count.services.snapshot import MonthlySnapshotService
from stock_count.utils.spreadsheet import read_workbook

from .shared import BranchOption, UserOption, console, handle_errors, logger, print_table, resolver_for, write_output

FileArgument = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="ERP export (.xlsx)")


def _reconcile_file(path: Path, branch: Optional[int], user: str = ""):
    principal, resolver = resolver_for(user, branch)
    headers, rows = read_workbook(path)
    log = logger.bind(command="reconcile", file=str(path))
    log.info("cli.reconcile.read", rows=len(rows))
    return principal, resolver, ReconciliationEngine(resolver).reconcile_table(None, headers, rows)


@handle_errors
def reconcile(
    file: Path = FileArgument,
    branch: Optional[int] = BranchOption,
    export: bool = typer.Option(False, "--export", help="Write the comparison report to output/ as xlsx"),
    limit: int = typer.Option(20, "--limit", help="Rows to print (largest variance first)"),
) -> None:
    """Compare an ERP export with the branch's physical counts."""
    _, _, result = _reconcile_file(file, branch)
    s = result.summary
    worst = sorted(result.rows, key=lambda r: abs(r.quantity_variance), reverse=True)[:limit]
    print_table(
        f"Reconciliation, branch {result.branch_id}",
        ["Code", "Description", "ERP", "Physical", "Diff", "Cost diff"],
        [
            [r.code, r.description, r.system_quantity, r.physical_quantity, r.quantity_variance, f"{r.cost_variance:.2f}"]
            for r in worst
        ],
    )
    console.print(
        f"Rows: {s.total_rows}  surplus: {s.positive_count}  shortage: {s.negative_count}  "
        f"even: {s.zero_count}  unmatched: {s.unmatched_count}  cost variance: {s.total_cost_variance:.2f}"
    )
    if s.ambiguous_codes:
        console.print(f"[yellow]Codes shared by several products: {', '.join(s.ambiguous_codes)}[/yellow]")
    if export:
        path = write_output(to_tabular(result.rows), export_filename(load_config().export.filename_prefix))
        console.print(f"[dim]Exported to {path}[/dim]")


@handle_errors
def snapshot(
    file: Path = FileArgument,
    user: str = UserOption,
    branch: Optional[int] = BranchOption,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Reconcile FILE, archive it as this month's report and reset the branch inventory to zero."""
    principal, resolver, result = _reconcile_file(file, branch, user)
    if not yes:
        typer.confirm(
            f"Archive {len(result.rows)} rows and reset all inventory of branch {result.branch_id} to zero?",
            abort=True,
        )
    snap = MonthlySnapshotService(resolver).create_snapshot_and_reset(result.branch_id, result.rows, principal.user)
    console.print(
        f"[green]Report {snap.report_id} saved for {snap.period}; "
        f"{snap.reset_count} records reset to zero.[/green]"
    )


@handle_errors
def metrics(
    branch: Optional[int] = BranchOption,
) -> None:
    """Inventory stats for a branch, or metrics for every branch when no branch is given."""
    if branch is not None:
        stats = metrics_service.inventory_stats(branch)
        console.print(f"Branch {stats.branch_id}: {stats.total_products} products, {stats.total_units} units")
        return
    print_table(
        "Branches",
        ["Branch", "Region", "Products", "Units", "With stock", "Low stock", "Stock %", "Moves (month)"],
        [
            [
                m.name,
                m.region,
                m.total_products,
                m.total_units,
                m.products_with_stock,
                m.low_stock_products,
                m.stock_percentage,
                m.movements_this_month,
            ]
            for m in metrics_service.branch_metrics()
        ],
    )
    g = metrics_service.global_metrics()
    console.print(
        f"{g.total_branches} branches, {g.total_products} products, {g.total_units} units "
        f"(avg {g.average_units_per_product}/product), {g.movements_this_month} movements this month"
    )
