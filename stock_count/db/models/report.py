"""ORM model for archived monthly reconciliation reports."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_count.db.base import Base, utcnow


class MonthlyReport(Base):
    """Immutable reconciliation snapshot; one per (branch, month, year)."""

    __tablename__ = "monthly_reports"
    __table_args__ = (UniqueConstraint("branch_id", "month", "year", name="uq_monthly_report_period"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id"), nullable=False, index=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    rows: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    created_by: Mapped[str] = mapped_column(String(256), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    total_products: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_variance: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_cost_variance: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    @property
    def period(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
