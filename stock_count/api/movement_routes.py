"""Movement history API: recent movements, filtered pages, xlsx export."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from stock_count.api.dependencies import get_resolver
from stock_count.config import HISTORY_LIMIT, MOVEMENTS_PAGE_SIZE
from stock_count.models.ledger import DateRange, MovementFilter, MovementPage, MovementView
from stock_count.reconciliation_config import load_config
from stock_count.services.branch_resolver import BranchResolver
from stock_count.services.movement_history import MovementHistoryReader
from stock_count.services.reconciliation import export_filename, movements_to_tabular

router = APIRouter(prefix="/movements", tags=["movements"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/recent", response_model=list[MovementView])
def recent_movements(
    branch_id: Optional[int] = Query(None),
    limit: int = Query(HISTORY_LIMIT, ge=1, le=500),
    resolver: BranchResolver = Depends(get_resolver),
) -> list[MovementView]:
    return MovementHistoryReader(resolver).get_recent(branch_id, limit)


@router.get("", response_model=None)
def filtered_movements(
    branch_id: Optional[int] = Query(None),
    movement_type: Optional[str] = Query(None),
    date_range: DateRange = Query("all"),
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(MOVEMENTS_PAGE_SIZE, ge=1, le=500),
    export: bool = Query(False, description="Return the current page as an xlsx file"),
    resolver: BranchResolver = Depends(get_resolver),
) -> MovementPage | Response:
    """Movements filtered by type, date window and search text, newest first, paginated."""
    filters = MovementFilter(
        movement_type=movement_type,
        date_range=date_range,
        since=since,
        until=until,
        search=search,
        page=page,
        page_size=page_size,
    )
    result = MovementHistoryReader(resolver).get_filtered(branch_id, filters)
    if not export:
        return result
    filename = export_filename(load_config().export.movements_filename_prefix)
    return Response(
        content=movements_to_tabular(result.items),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
