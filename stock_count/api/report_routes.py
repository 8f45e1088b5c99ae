"""Monthly report API: archive a reconciliation and reset the branch, list and fetch reports."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from stock_count.api.dependencies import get_principal, get_resolver
from stock_count.api.schemas import SnapshotRequest
from stock_count.models.identity import Principal
from stock_count.models.reports import MonthlyReportView, SnapshotResult
from stock_count.services.branch_resolver import BranchResolver
from stock_count.services.snapshot import MonthlySnapshotService

router = APIRouter(prefix="/reports/monthly", tags=["reports"])


@router.post("", response_model=SnapshotResult, status_code=201)
def create_monthly_report(
    body: SnapshotRequest,
    principal: Principal = Depends(get_principal),
    resolver: BranchResolver = Depends(get_resolver),
) -> SnapshotResult:
    """Archive the report for the current month and reset the branch inventory to zero."""
    return MonthlySnapshotService(resolver).create_snapshot_and_reset(body.branch_id, body.rows, principal.user)


@router.get("", response_model=list[MonthlyReportView])
def list_monthly_reports(
    branch_id: Optional[int] = Query(None),
    resolver: BranchResolver = Depends(get_resolver),
) -> list[MonthlyReportView]:
    return MonthlySnapshotService(resolver).list_reports(branch_id)


@router.get("/{report_id}", response_model=MonthlyReportView)
def get_monthly_report(
    report_id: int,
    branch_id: Optional[int] = Query(None),
    resolver: BranchResolver = Depends(get_resolver),
) -> MonthlyReportView:
    return MonthlySnapshotService(resolver).get_report(report_id, branch_id)
