"""Reconciliation API: compare an ERP export with the branch's physical counts."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from stock_count.api.dependencies import get_resolver
from stock_count.api.movement_routes import XLSX_MEDIA_TYPE
from stock_count.api.schemas import ReconciliationRequest
from stock_count.models.reconciliation import ReconciliationResult
from stock_count.reconciliation_config import load_config
from stock_count.services.branch_resolver import BranchResolver
from stock_count.services.reconciliation import ReconciliationEngine, export_filename, to_tabular
from stock_count.utils.spreadsheet import read_workbook

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


def _respond(result: ReconciliationResult, export: bool) -> ReconciliationResult | Response:
    if not export:
        return result
    filename = export_filename(load_config().export.filename_prefix)
    return Response(
        content=to_tabular(result.rows),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=None)
def reconcile(
    body: ReconciliationRequest,
    export: bool = Query(False, description="Return the comparison as an xlsx file"),
    resolver: BranchResolver = Depends(get_resolver),
) -> ReconciliationResult | Response:
    """Reconcile an ERP table sent as JSON headers + rows."""
    result = ReconciliationEngine(resolver).reconcile_table(body.branch_id, body.headers, body.rows)
    return _respond(result, export)


def _reconcile_workbook(body: bytes, branch_id: Optional[int], export: bool, resolver: BranchResolver):
    headers, rows = read_workbook(body)
    return _respond(ReconciliationEngine(resolver).reconcile_table(branch_id, headers, rows), export)


@router.post("/upload", response_model=None)
async def reconcile_upload(
    request: Request,
    branch_id: Optional[int] = Query(None),
    export: bool = Query(False),
    resolver: BranchResolver = Depends(get_resolver),
) -> ReconciliationResult | Response:
    """Reconcile a raw .xlsx request body (first worksheet, header in row 1)."""
    body = await request.body()
    return await run_in_threadpool(_reconcile_workbook, body, branch_id, export, resolver)
