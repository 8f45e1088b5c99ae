"""Inventory read models: branch stats, current inventory listing, admin metrics."""

from datetime import datetime, timedelta

from sqlalchemy import func, select

from stock_count.config import BRANCH_LOW_STOCK_THRESHOLD, LOW_STOCK_THRESHOLD
from stock_count.db import get_session
from stock_count.db.base import as_utc, to_db_time
from stock_count.db.models import Branch, InventoryRecord, Movement
from stock_count.models.reports import BranchMetrics, GlobalMetrics, InventoryItemView, InventoryStats
from stock_count.services.clock import SystemClock

RECENT_COUNT_WINDOW = timedelta(hours=24)


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def inventory_stats(branch_id: int) -> InventoryStats:
    """Distinct products with a record at the branch, and their total units."""
    with get_session() as session:
        total_products, total_units = session.execute(
            select(func.count(InventoryRecord.id), func.coalesce(func.sum(InventoryRecord.quantity), 0)).where(
                InventoryRecord.branch_id == branch_id
            )
        ).one()
    return InventoryStats(branch_id=branch_id, total_products=total_products or 0, total_units=int(total_units or 0))


def current_inventory(branch_id: int, clock=None) -> list[InventoryItemView]:
    """Branch records with product details, most recently counted first."""
    now = (clock or SystemClock()).now()
    with get_session() as session:
        records = session.scalars(
            select(InventoryRecord)
            .where(InventoryRecord.branch_id == branch_id)
            .order_by(InventoryRecord.last_counted_at.desc(), InventoryRecord.id.desc())
        ).all()
        items = []
        for record in records:
            product = record.product
            counted_at = as_utc(record.last_counted_at)
            age = now - counted_at if counted_at else None
            items.append(
                InventoryItemView(
                    record_id=record.id,
                    product_id=record.product_id,
                    description=(product.description or "") if product else "",
                    brand=(product.brand or "") if product else "",
                    code=product.display_code if product else "N/A",
                    quantity=record.quantity,
                    last_counted_at=counted_at,
                    is_low_stock=record.quantity <= LOW_STOCK_THRESHOLD,
                    is_out_of_stock=record.quantity == 0,
                    is_recently_counted=age is not None and age < RECENT_COUNT_WINDOW,
                    days_since_count=age.days if age is not None else None,
                )
            )
    return items


def branch_metrics(clock=None) -> list[BranchMetrics]:
    """Per-branch totals, stock coverage and movement activity, ordered by branch name."""
    since = to_db_time(_month_start((clock or SystemClock()).now()))
    with get_session() as session:
        branches = session.scalars(select(Branch).order_by(Branch.name)).all()
        out = []
        for branch in branches:
            quantities = list(
                session.scalars(select(InventoryRecord.quantity).where(InventoryRecord.branch_id == branch.id)).all()
            )
            total_products = len(quantities)
            with_stock = sum(1 for q in quantities if q > 0)
            last_movement = session.scalar(
                select(func.max(Movement.created_at)).where(Movement.branch_id == branch.id)
            )
            movements_this_month = session.scalar(
                select(func.count(Movement.id)).where(Movement.branch_id == branch.id, Movement.created_at >= since)
            )
            out.append(
                BranchMetrics(
                    branch_id=branch.id,
                    name=branch.name,
                    region=branch.region,
                    total_products=total_products,
                    total_units=sum(quantities),
                    products_with_stock=with_stock,
                    low_stock_products=sum(1 for q in quantities if 0 < q <= BRANCH_LOW_STOCK_THRESHOLD),
                    last_movement_at=as_utc(last_movement),
                    movements_this_month=movements_this_month or 0,
                    stock_percentage=round(with_stock / total_products * 100) if total_products else 0,
                )
            )
    return out


def global_metrics(clock=None) -> GlobalMetrics:
    since = to_db_time(_month_start((clock or SystemClock()).now()))
    with get_session() as session:
        total_branches = session.scalar(select(func.count(Branch.id))) or 0
        total_products, total_units = session.execute(
            select(func.count(InventoryRecord.id), func.coalesce(func.sum(InventoryRecord.quantity), 0))
        ).one()
        movements = session.scalar(select(func.count(Movement.id)).where(Movement.created_at >= since)) or 0
    total_products = total_products or 0
    total_units = int(total_units or 0)
    return GlobalMetrics(
        total_branches=total_branches,
        total_products=total_products,
        total_units=total_units,
        average_units_per_product=round(total_units / total_products) if total_products else 0,
        movements_this_month=movements,
    )
