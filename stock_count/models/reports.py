"""Monthly snapshot results and inventory metrics."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class SnapshotResult(BaseModel):
    """Outcome of MonthlySnapshotService.create_snapshot_and_reset."""

    report_id: int
    branch_id: int
    month: int
    year: int
    period: str
    reset_count: int
    movement_count: int


class MonthlyReportView(BaseModel):
    id: int
    branch_id: int
    month: int
    year: int
    period: str
    created_by: str
    created_at: datetime
    total_products: int
    total_variance: float
    total_cost_variance: float
    rows: list[dict[str, Any]] = []


class InventoryStats(BaseModel):
    branch_id: int
    total_products: int
    total_units: int


class InventoryItemView(BaseModel):
    """Current-inventory row with stock and recency flags."""

    record_id: int
    product_id: int
    description: str
    brand: str
    code: str
    quantity: int
    last_counted_at: Optional[datetime] = None
    is_low_stock: bool
    is_out_of_stock: bool
    is_recently_counted: bool
    days_since_count: Optional[int] = None


class BranchMetrics(BaseModel):
    branch_id: int
    name: str
    region: Optional[str] = None
    total_products: int = 0
    total_units: int = 0
    products_with_stock: int = 0
    low_stock_products: int = 0
    last_movement_at: Optional[datetime] = None
    movements_this_month: int = 0
    stock_percentage: int = 0


class GlobalMetrics(BaseModel):
    total_branches: int
    total_products: int
    total_units: int
    average_units_per_product: int
    movements_this_month: int
