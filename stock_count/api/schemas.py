"""Request bodies for the HTTP API."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from stock_count.db.models import MovementType
from stock_count.models.reconciliation import ReconciliationRow


class CountRequest(BaseModel):
    """Register a physical count. Identify the product by id or by scanned code."""

    product_id: Optional[int] = None
    code: Optional[str] = None
    quantity: int
    branch_id: Optional[int] = None
    movement_type: MovementType = MovementType.COUNT
    notes: Optional[str] = None


class ResetRequest(BaseModel):
    product_id: Optional[int] = None
    code: Optional[str] = None
    branch_id: Optional[int] = None
    notes: Optional[str] = "manual reset"


class ReconciliationRequest(BaseModel):
    """ERP export already parsed into a header row and data rows."""

    branch_id: Optional[int] = None
    headers: list[Any]
    rows: list[list[Any]] = Field(default_factory=list)


class SnapshotRequest(BaseModel):
    branch_id: Optional[int] = None
    rows: list[ReconciliationRow]
