"""ORM models for reference data: Branch (sucursal), Product."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stock_count.db.base import Base, TimestampMixin


class Branch(Base, TimestampMixin):
    """Store location; scope of every inventory quantity."""

    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    region: Mapped[str | None] = mapped_column(String(128), nullable=True)


class Product(Base, TimestampMixin):
    """Catalog product, coded in two vendor namespaces (MRP and Truper)."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    mrp_code: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True, index=True)
    truper_code: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True, index=True)
    brand: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def codes(self) -> list[str]:
        """Trimmed, non-blank codes this product is known by."""
        return [c.strip() for c in (self.mrp_code, self.truper_code) if c and c.strip()]

    @property
    def display_code(self) -> str:
        return self.mrp_code or self.truper_code or "N/A"
