"""init-db: create tables and optionally seed the catalog from data/*.csv."""

import typer

from stock_count.db import init_db, seed_database

from .shared import console, logger


def init_db_command(
    seed: bool = typer.Option(False, "--seed", help="Seed branches and products from data/*.csv if empty"),
) -> None:
    """Create database tables."""
    init_db()
    logger.info("cli.init_db")
    console.print("[green]Database ready.[/green]")
    if seed:
        if seed_database():
            console.print("[green]Catalog seeded from data/branches.csv and data/products.csv.[/green]")
        else:
            console.print("[dim]Catalog already has branches; seeding skipped.[/dim]")
