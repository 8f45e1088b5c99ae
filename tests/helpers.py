"""Test fixtures: unique branches/products so test modules can share one database."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from stock_count.db import get_session
from stock_count.db.base import utcnow
from stock_count.db.models import Branch, InventoryRecord, Movement, Product
from stock_count.db.repositories import branch_repo, product_repo


class FixedClock:
    """Clock frozen at a given instant; naive instants are taken as UTC."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant


def unique(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}"


def make_branch(region: str = "Test") -> Branch:
    return branch_repo.create(unique("Sucursal"), region)


def make_product(
    mrp_code: Optional[str] = "",
    truper_code: Optional[str] = "",
    brand: str = "Truper",
    description: str = "Martillo de uña",
) -> Product:
    """Empty string means generate a unique code; None means no code in that namespace."""
    return product_repo.create(
        mrp_code=unique("MRP") if mrp_code == "" else mrp_code,
        truper_code=unique("TRU") if truper_code == "" else truper_code,
        brand=brand,
        description=description,
    )


def insert_product_raw(mrp_code: Optional[str], truper_code: Optional[str], description: str = "") -> int:
    """Insert without the cross-namespace code check (simulates legacy catalog data)."""
    with get_session() as session:
        row = Product(mrp_code=mrp_code, truper_code=truper_code, brand="Legacy", description=description)
        session.add(row)
        session.flush()
        return row.id


def quantity_of(product_id: int, branch_id: int) -> Optional[int]:
    with get_session() as session:
        record = session.query(InventoryRecord).filter_by(product_id=product_id, branch_id=branch_id).first()
        return record.quantity if record is not None else None


def movements_for(product_id: int, branch_id: int) -> list[Movement]:
    """Movements for the pair, oldest first, detached."""
    with get_session() as session:
        rows = (
            session.query(Movement)
            .filter_by(product_id=product_id, branch_id=branch_id)
            .order_by(Movement.id)
            .all()
        )
        for row in rows:
            session.expunge(row)
        return rows


def add_movement(
    product_id: int,
    branch_id: int,
    previous: int,
    new: int,
    acting_user: str = "tester",
    movement_type: str = "count",
    created_at: Optional[datetime] = None,
) -> int:
    with get_session() as session:
        row = Movement(
            branch_id=branch_id,
            product_id=product_id,
            previous_quantity=previous,
            new_quantity=new,
            movement_type=movement_type,
            acting_user=acting_user,
            created_at=created_at or utcnow(),
        )
        session.add(row)
        session.flush()
        return row.id
