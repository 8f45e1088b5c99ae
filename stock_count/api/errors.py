"""Map typed StockCountError subclasses to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stock_count.exceptions import (
    BranchNotFound,
    DuplicatePeriod,
    DuplicateProductCode,
    EmptyReport,
    InvalidQuantity,
    InvalidSpreadsheet,
    LostUpdateConflict,
    MissingActor,
    MissingBranchContext,
    MissingRequiredColumn,
    PartialSnapshotFailure,
    PersistenceFailure,
    ProductNotFound,
    ReportNotFound,
    StockCountError,
)
from stock_count.utils.logger import get_logger

logger = get_logger("stock_count.api.errors")

STATUS_BY_ERROR: dict[type[StockCountError], int] = {
    MissingBranchContext: 400,
    InvalidQuantity: 400,
    MissingActor: 400,
    MissingRequiredColumn: 400,
    InvalidSpreadsheet: 400,
    EmptyReport: 400,
    DuplicateProductCode: 400,
    ProductNotFound: 404,
    BranchNotFound: 404,
    ReportNotFound: 404,
    DuplicatePeriod: 409,
    LostUpdateConflict: 503,
    PersistenceFailure: 503,
    PartialSnapshotFailure: 500,
}


def status_for(exc: StockCountError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


async def stock_count_error_handler(request: Request, exc: StockCountError) -> JSONResponse:
    status = status_for(exc)
    log = logger.warning if status < 500 else logger.error
    log("api.error", path=request.url.path, error=exc.code, status=status, message=str(exc))
    return JSONResponse(status_code=status, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StockCountError, stock_count_error_handler)
