"""Ledger results and movement-history views."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class CountResult(BaseModel):
    """Outcome of InventoryLedger.register_count."""

    product_id: int
    branch_id: int
    previous_quantity: int
    added_quantity: int
    new_quantity: int
    movement_id: int
    attempts: int = 1


class ResetResult(BaseModel):
    """Outcome of InventoryLedger.reset_to_zero."""

    product_id: int
    branch_id: int
    previous_quantity: int
    new_quantity: int = 0
    movement_id: int


class MovementView(BaseModel):
    """Movement joined with its product, as shown in history screens and exports."""

    id: int
    branch_id: int
    product_id: int
    product_description: str
    product_brand: str
    product_code: str
    mrp_code: Optional[str] = None
    truper_code: Optional[str] = None
    movement_type: str
    previous_quantity: int
    new_quantity: int
    difference: int
    acting_user: str
    notes: Optional[str] = None
    created_at: datetime


DateRange = Literal["day", "week", "month", "all"]


class MovementFilter(BaseModel):
    """Filters for MovementHistoryReader.get_filtered; all applied before pagination."""

    movement_type: Optional[str] = None
    date_range: DateRange = "all"
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    search: Optional[str] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=500)


class MovementPage(BaseModel):
    items: list[MovementView]
    page: int
    page_size: int
    total_items: int
    total_pages: int
