"""Load catalog seed data from CSV files."""

import csv
from pathlib import Path
from typing import Any

from stock_count.config import DATA_DIR


def _read_csv(path: Path) -> list[dict[str, Any]]:
    """Read a CSV file and return list of row dicts."""
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        return list(reader)


def load_branches(csv_path: Path | None = None) -> list[dict[str, Any]]:
    """Load branches (sucursales) from branches.csv."""
    path = csv_path or DATA_DIR / "branches.csv"
    return _read_csv(path)


def load_products(csv_path: Path | None = None) -> list[dict[str, Any]]:
    """Load product catalog from products.csv."""
    path = csv_path or DATA_DIR / "products.csv"
    return _read_csv(path)
