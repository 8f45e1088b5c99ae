"""Re-export all ORM models so Base.metadata has all tables."""

from stock_count.db.models.catalog import Branch, Product
from stock_count.db.models.inventory import InventoryRecord, Movement, MovementType
from stock_count.db.models.report import MonthlyReport

__all__ = [
    "Branch",
    "Product",
    "InventoryRecord",
    "Movement",
    "MovementType",
    "MonthlyReport",
]
