"""Inventory API: register counts, reset to zero, current inventory and stats."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from stock_count.api.dependencies import get_principal, get_resolver
from stock_count.api.schemas import CountRequest, ResetRequest
from stock_count.db.repositories import product_repo
from stock_count.exceptions import ProductNotFound
from stock_count.models.identity import Principal
from stock_count.models.ledger import CountResult, ResetResult
from stock_count.models.reports import InventoryItemView, InventoryStats
from stock_count.services import metrics
from stock_count.services.branch_resolver import BranchResolver
from stock_count.services.ledger import InventoryLedger

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _product_id(product_id: Optional[int], code: Optional[str]) -> int:
    """Product id from the body, else looked up by scanned code (Truper first, then MRP)."""
    if product_id is not None:
        return product_id
    product = product_repo.find_by_code(code or "")
    if product is None:
        raise ProductNotFound(code or "")
    return product.id


@router.post("/counts", response_model=CountResult)
def register_count(
    body: CountRequest,
    principal: Principal = Depends(get_principal),
    resolver: BranchResolver = Depends(get_resolver),
) -> CountResult:
    """Add a counted quantity to the stored total for (product, branch)."""
    ledger = InventoryLedger(resolver)
    return ledger.register_count(
        _product_id(body.product_id, body.code),
        body.branch_id,
        body.quantity,
        principal.user,
        movement_type=body.movement_type,
        notes=body.notes,
    )


@router.post("/resets", response_model=ResetResult)
def reset_to_zero(
    body: ResetRequest,
    principal: Principal = Depends(get_principal),
    resolver: BranchResolver = Depends(get_resolver),
) -> ResetResult:
    ledger = InventoryLedger(resolver)
    return ledger.reset_to_zero(
        _product_id(body.product_id, body.code),
        body.branch_id,
        principal.user,
        notes=body.notes,
    )


@router.get("/current", response_model=list[InventoryItemView])
def current_inventory(
    branch_id: Optional[int] = Query(None),
    resolver: BranchResolver = Depends(get_resolver),
) -> list[InventoryItemView]:
    return metrics.current_inventory(resolver.resolve(branch_id))


@router.get("/stats", response_model=InventoryStats)
def inventory_stats(
    branch_id: Optional[int] = Query(None),
    resolver: BranchResolver = Depends(get_resolver),
) -> InventoryStats:
    return metrics.inventory_stats(resolver.resolve(branch_id))
