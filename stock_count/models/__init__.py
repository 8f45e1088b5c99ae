"""Pydantic models for counting, history, reconciliation and reporting."""

from stock_count.models.identity import Principal
from stock_count.models.ledger import (
    CountResult,
    MovementFilter,
    MovementPage,
    MovementView,
    ResetResult,
)
from stock_count.models.reconciliation import (
    ColumnMapping,
    ExternalRow,
    ReconciliationResult,
    ReconciliationRow,
    ReconciliationSummary,
)
from stock_count.models.reports import (
    BranchMetrics,
    GlobalMetrics,
    InventoryItemView,
    InventoryStats,
    MonthlyReportView,
    SnapshotResult,
)

__all__ = [
    "Principal",
    "CountResult",
    "ResetResult",
    "MovementView",
    "MovementFilter",
    "MovementPage",
    "ColumnMapping",
    "ExternalRow",
    "ReconciliationRow",
    "ReconciliationSummary",
    "ReconciliationResult",
    "SnapshotResult",
    "MonthlyReportView",
    "InventoryStats",
    "InventoryItemView",
    "BranchMetrics",
    "GlobalMetrics",
]
