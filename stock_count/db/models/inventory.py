"""ORM models for the inventory ledger: InventoryRecord (running total), Movement (audit log)."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_count.db.base import Base, TimestampMixin, utcnow
from stock_count.db.models.catalog import Branch, Product


class MovementType(str, Enum):
    COUNT = "count"
    INITIAL_COUNT = "initial_count"
    ENTRY = "entry"
    EXIT = "exit"
    ADJUSTMENT = "adjustment"
    SHRINKAGE = "shrinkage"
    RETURN = "return"


class InventoryRecord(Base, TimestampMixin):
    """Current quantity for one (product, branch) pair. Never deleted; reset sets quantity to 0.

    ``version`` is SQLAlchemy's version counter: every flush of a changed record
    issues ``UPDATE ... WHERE id = :id AND version = :seen`` and raises
    StaleDataError when another transaction got there first.
    """

    __tablename__ = "inventory_records"
    __table_args__ = (
        UniqueConstraint("product_id", "branch_id", name="uq_inventory_product_branch"),
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False, index=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id"), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    last_counted_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    product: Mapped[Product] = relationship(Product, lazy="joined")
    branch: Mapped[Branch] = relationship(Branch)

    __mapper_args__ = {"version_id_col": version}


class Movement(Base):
    """Append-only audit row: new_quantity = previous_quantity + delta."""

    __tablename__ = "movements"
    __table_args__ = (Index("ix_movements_branch_created", "branch_id", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id"), nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False, index=True)
    previous_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    movement_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    acting_user: Mapped[str] = mapped_column(String(256), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    product: Mapped[Product] = relationship(Product, lazy="joined")

    @property
    def delta(self) -> int:
        return self.new_quantity - self.previous_quantity
