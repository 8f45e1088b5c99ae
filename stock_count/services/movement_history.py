"""Movement history reader: recent movements and filtered, paginated listings for a branch."""

import math
from datetime import timedelta
from typing import Optional

from sqlalchemy import func, or_, select

from stock_count.config import HISTORY_LIMIT
from stock_count.db import get_session
from stock_count.db.base import as_utc, to_db_time
from stock_count.db.models import Movement, Product
from stock_count.models.ledger import MovementFilter, MovementPage, MovementView
from stock_count.services.branch_resolver import BranchResolver
from stock_count.services.clock import SystemClock

DATE_RANGES = {
    "day": timedelta(hours=24),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


def to_view(movement: Movement) -> MovementView:
    product = movement.product
    return MovementView(
        id=movement.id,
        branch_id=movement.branch_id,
        product_id=movement.product_id,
        product_description=(product.description if product else None) or "",
        product_brand=(product.brand if product else None) or "",
        product_code=product.display_code if product else "N/A",
        mrp_code=product.mrp_code if product else None,
        truper_code=product.truper_code if product else None,
        movement_type=movement.movement_type,
        previous_quantity=movement.previous_quantity,
        new_quantity=movement.new_quantity,
        difference=movement.delta,
        acting_user=movement.acting_user,
        notes=movement.notes,
        created_at=as_utc(movement.created_at),
    )


class MovementHistoryReader:
    def __init__(self, resolver: BranchResolver, clock=None):
        self._resolver = resolver
        self._clock = clock or SystemClock()

    def get_recent(self, branch_id: Optional[int] = None, limit: int = HISTORY_LIMIT) -> list[MovementView]:
        """Latest ``limit`` movements of the branch, newest first."""
        branch_id = self._resolver.resolve(branch_id)
        with get_session() as session:
            q = (
                select(Movement)
                .where(Movement.branch_id == branch_id)
                .order_by(Movement.created_at.desc(), Movement.id.desc())
                .limit(max(0, limit))
            )
            return [to_view(m) for m in session.scalars(q).all()]

    def get_filtered(self, branch_id: Optional[int] = None, filters: Optional[MovementFilter] = None) -> MovementPage:
        """Filter by type, date window and free-text search, then paginate.

        Search matches product description, MRP code, Truper code, brand and acting user
        (case-insensitive substring). All filtering happens in the query, before LIMIT/OFFSET.
        """
        branch_id = self._resolver.resolve(branch_id)
        filters = filters or MovementFilter()

        conditions = [Movement.branch_id == branch_id]
        if filters.movement_type and filters.movement_type != "all":
            conditions.append(Movement.movement_type == filters.movement_type)
        window = DATE_RANGES.get(filters.date_range)
        if window is not None:
            conditions.append(Movement.created_at >= to_db_time(self._clock.now() - window))
        if filters.since is not None:
            conditions.append(Movement.created_at >= to_db_time(filters.since))
        if filters.until is not None:
            conditions.append(Movement.created_at <= to_db_time(filters.until))
        term = (filters.search or "").strip()
        if term:
            pattern = f"%{term}%"
            conditions.append(
                or_(
                    Product.description.ilike(pattern),
                    Product.mrp_code.ilike(pattern),
                    Product.truper_code.ilike(pattern),
                    Product.brand.ilike(pattern),
                    Movement.acting_user.ilike(pattern),
                )
            )

        with get_session() as session:
            base = select(Movement.id).outerjoin(Product, Product.id == Movement.product_id).where(*conditions)
            total = session.scalar(select(func.count()).select_from(base.subquery())) or 0

            q = (
                select(Movement)
                .outerjoin(Product, Product.id == Movement.product_id)
                .where(*conditions)
                .order_by(Movement.created_at.desc(), Movement.id.desc())
                .offset((filters.page - 1) * filters.page_size)
                .limit(filters.page_size)
            )
            items = [to_view(m) for m in session.scalars(q).unique().all()]

        return MovementPage(
            items=items,
            page=filters.page,
            page_size=filters.page_size,
            total_items=total,
            total_pages=math.ceil(total / filters.page_size) if total else 0,
        )
