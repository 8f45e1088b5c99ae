"""ERP reconciliation inputs and outputs."""

from typing import Optional

from pydantic import BaseModel


class ColumnMapping(BaseModel):
    """Header indexes located in an ERP export. Optional columns are None when absent."""

    product_code: int
    system_quantity: int
    description: Optional[int] = None
    unit_value: Optional[int] = None


class ExternalRow(BaseModel):
    """One system-of-record row, already extracted from the spreadsheet."""

    code: str
    system_quantity: float = 0
    description: Optional[str] = None
    unit_value: Optional[float] = None


class ReconciliationRow(BaseModel):
    """Physical count vs ERP quantity for one product code."""

    code: str
    description: str
    system_quantity: float
    physical_quantity: int
    quantity_variance: float
    unit_value: Optional[float] = None
    cost_variance: float = 0
    matched: bool = False


class ReconciliationSummary(BaseModel):
    total_rows: int = 0
    positive_count: int = 0
    negative_count: int = 0
    zero_count: int = 0
    matched_count: int = 0
    unmatched_count: int = 0
    total_cost_variance: float = 0
    total_abs_variance: float = 0
    ambiguous_codes: list[str] = []


class ReconciliationResult(BaseModel):
    branch_id: int
    rows: list[ReconciliationRow]
    summary: ReconciliationSummary
