"""Typed exceptions for counting, reconciliation and monthly snapshots.

Every error carries a machine-readable ``code`` class attribute and its context
as attributes, so the API and CLI can branch on type instead of parsing messages.

    StockCountError
    +-- MissingBranchContext
    +-- InvalidQuantity
    +-- MissingActor
    +-- MissingRequiredColumn
    +-- InvalidSpreadsheet
    +-- DuplicatePeriod
    +-- EmptyReport
    +-- LostUpdateConflict        (retried by the ledger, then surfaced)
    +-- PartialSnapshotFailure    (never retried)
    +-- PersistenceFailure
    +-- BranchNotFound
    +-- ProductNotFound
    +-- DuplicateProductCode
    +-- ReportNotFound
"""

from typing import Optional


class StockCountError(Exception):
    """Base exception for all stock count errors."""

    code: str = "STOCK_COUNT_ERROR"
    retryable: bool = False
    # Flagged for an operator rather than a plain "try again"
    operator_attention: bool = False

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": str(self),
            "retryable": self.retryable,
            "operator_attention": self.operator_attention,
        }


class MissingBranchContext(StockCountError):
    """No branch could be resolved for the operation."""

    code: str = "MISSING_BRANCH_CONTEXT"

    def __init__(self) -> None:
        super().__init__("No branch assigned: pass a branch id or select a branch")


class InvalidQuantity(StockCountError):
    """Quantity is negative or not an integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid quantity: {value!r} (expected a non-negative integer)")


class MissingActor(StockCountError):
    """No acting user identity was supplied."""

    code: str = "MISSING_ACTOR"

    def __init__(self) -> None:
        super().__init__("Acting user is required")


class MissingRequiredColumn(StockCountError):
    """ERP export lacks one of the required columns."""

    code: str = "MISSING_REQUIRED_COLUMN"

    def __init__(self, column: str):
        self.column = column
        super().__init__(f'Column "{column}" not found. Check that the file has the expected structure.')


class DuplicatePeriod(StockCountError):
    """A monthly report already exists for the branch and period."""

    code: str = "DUPLICATE_PERIOD"

    def __init__(self, branch_id: int, month: int, year: int, report_id: Optional[int] = None):
        self.branch_id = branch_id
        self.month = month
        self.year = year
        self.report_id = report_id
        super().__init__(
            f"Monthly report for branch {branch_id} already exists for {year:04d}-{month:02d}"
            + (f" (report {report_id})" if report_id is not None else "")
        )


class EmptyReport(StockCountError):
    """Snapshot requested with no reconciliation rows."""

    code: str = "EMPTY_REPORT"

    def __init__(self) -> None:
        super().__init__("Cannot archive an empty reconciliation report")


class LostUpdateConflict(StockCountError):
    """Another writer changed the inventory record between read and write."""

    code: str = "LOST_UPDATE_CONFLICT"
    retryable: bool = True
    operator_attention: bool = True

    def __init__(self, product_id: int, branch_id: int, attempts: int = 1):
        self.product_id = product_id
        self.branch_id = branch_id
        self.attempts = attempts
        super().__init__(
            f"Concurrent update on product {product_id} at branch {branch_id} "
            f"(attempts: {attempts})"
        )


class PartialSnapshotFailure(StockCountError):
    """A monthly snapshot step failed; nothing past the failing step was kept."""

    code: str = "PARTIAL_SNAPSHOT_FAILURE"
    operator_attention: bool = True

    def __init__(
        self,
        step: str,
        completed_steps: list[str],
        rolled_back: bool = True,
        detail: str = "",
    ):
        self.step = step
        self.completed_steps = list(completed_steps)
        self.rolled_back = rolled_back
        self.detail = detail
        state = "rolled back" if rolled_back else "left committed"
        done = ", ".join(self.completed_steps) or "none"
        message = f"Snapshot failed at step {step!r}; completed steps [{done}] {state}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(step=self.step, completed_steps=self.completed_steps, rolled_back=self.rolled_back)
        return data


class PersistenceFailure(StockCountError):
    """Underlying storage error, wrapped with the operation context."""

    code: str = "PERSISTENCE_FAILURE"

    def __init__(
        self,
        operation: str,
        product_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        detail: str = "",
    ):
        self.operation = operation
        self.product_id = product_id
        self.branch_id = branch_id
        self.detail = detail
        super().__init__(
            f"{operation} failed (product={product_id}, branch={branch_id})"
            + (f": {detail}" if detail else "")
        )


class ProductNotFound(StockCountError):
    """No product matches the scanned code or id."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, key: object):
        self.key = key
        super().__init__(f"Product not found: {key}")


class DuplicateProductCode(StockCountError):
    """Catalog write would give one code to two products."""

    code: str = "DUPLICATE_PRODUCT_CODE"

    def __init__(self, code: str, product_id: Optional[int] = None):
        self.product_code = code
        self.product_id = product_id
        super().__init__(f"Code {code!r} already belongs to product {product_id}")


class ReportNotFound(StockCountError):
    code: str = "REPORT_NOT_FOUND"

    def __init__(self, report_id: int):
        self.report_id = report_id
        super().__init__(f"Monthly report not found: {report_id}")


class BranchNotFound(StockCountError):
    code: str = "BRANCH_NOT_FOUND"

    def __init__(self, branch_id: int):
        self.branch_id = branch_id
        super().__init__(f"Branch not found: {branch_id}")


class InvalidSpreadsheet(StockCountError):
    """Uploaded file is not a readable xlsx workbook."""

    code: str = "INVALID_SPREADSHEET"

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__("File is not a valid .xlsx workbook" + (f": {detail}" if detail else ""))
