"""Admin API: per-branch and global inventory metrics."""

from fastapi import APIRouter, Depends

from stock_count.api.dependencies import require_admin
from stock_count.models.reports import BranchMetrics, GlobalMetrics
from stock_count.services import metrics

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/branches/metrics", response_model=list[BranchMetrics])
def branch_metrics() -> list[BranchMetrics]:
    return metrics.branch_metrics()


@router.get("/metrics", response_model=GlobalMetrics)
def global_metrics() -> GlobalMetrics:
    return metrics.global_metrics()
