"""Monthly snapshot: archive a reconciliation report and reset the branch's inventory to zero.

Archive, reset movements and the zeroing of records are one database
transaction. A step cursor tracks how far the run got so that a failure can be
reported with the failing step and the steps that were rolled back with it.
"""

from typing import Any, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stock_count.db import get_session
from stock_count.db.base import as_utc
from stock_count.db.models import InventoryRecord, MonthlyReport, Movement, MovementType
from stock_count.exceptions import (
    DuplicatePeriod,
    EmptyReport,
    MissingActor,
    PartialSnapshotFailure,
    ReportNotFound,
    StockCountError,
)
from stock_count.models.reconciliation import ReconciliationRow
from stock_count.models.reports import MonthlyReportView, SnapshotResult
from stock_count.services.branch_resolver import BranchResolver
from stock_count.services.clock import SystemClock
from stock_count.utils.logger import get_logger
from stock_count.utils.tracing import get_tracer

logger = get_logger("stock_count.snapshot")

STEP_CREATE_REPORT = "create_report"
STEP_LOAD_RECORDS = "load_records"
STEP_EMIT_RESET_MOVEMENTS = "emit_reset_movements"
STEP_RESET_RECORDS = "reset_records"
STEP_COMMIT = "commit"

ReportRow = Union[ReconciliationRow, dict[str, Any]]


def _row_dict(row: ReportRow) -> dict[str, Any]:
    if isinstance(row, ReconciliationRow):
        return row.model_dump(mode="json")
    return dict(row)


def _number(row: dict[str, Any], key: str) -> float:
    value = row.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def to_report_view(report: MonthlyReport, include_rows: bool = True) -> MonthlyReportView:
    return MonthlyReportView(
        id=report.id,
        branch_id=report.branch_id,
        month=report.month,
        year=report.year,
        period=report.period,
        created_by=report.created_by,
        created_at=as_utc(report.created_at),
        total_products=report.total_products,
        total_variance=report.total_variance,
        total_cost_variance=report.total_cost_variance,
        rows=list(report.rows or []) if include_rows else [],
    )


class MonthlySnapshotService:
    def __init__(self, resolver: BranchResolver, clock=None):
        self._resolver = resolver
        self._clock = clock or SystemClock()

    def create_snapshot_and_reset(
        self,
        branch_id: Optional[int],
        report_rows: Sequence[ReportRow],
        acting_user: str,
    ) -> SnapshotResult:
        """Archive ``report_rows`` for the current month and zero every record with quantity > 0.

        Raises MissingActor, EmptyReport, MissingBranchContext, DuplicatePeriod or
        PartialSnapshotFailure. Never retried.
        """
        actor = (acting_user or "").strip()
        if not actor:
            raise MissingActor()
        if not report_rows:
            raise EmptyReport()
        branch_id = self._resolver.resolve(branch_id)

        now = self._clock.now()
        month, year = now.month, now.year
        period = f"{year:04d}-{month:02d}"

        existing = self._find_report_id(branch_id, month, year)
        if existing is not None:
            raise DuplicatePeriod(branch_id, month, year, existing)

        rows = [_row_dict(r) for r in report_rows]
        completed: list[str] = []
        step = STEP_CREATE_REPORT
        with get_tracer().start_as_current_span("snapshot.create_and_reset") as span:
            span.set_attribute("branch_id", branch_id)
            span.set_attribute("period", period)
            try:
                with get_session() as session:
                    report = MonthlyReport(
                        branch_id=branch_id,
                        month=month,
                        year=year,
                        rows=rows,
                        created_by=actor,
                        created_at=now,
                        total_products=len(rows),
                        total_variance=sum(abs(_number(r, "quantity_variance")) for r in rows),
                        total_cost_variance=sum(_number(r, "cost_variance") for r in rows),
                    )
                    session.add(report)
                    session.flush()
                    report_id = report.id
                    completed.append(step)

                    step = STEP_LOAD_RECORDS
                    records = self._load_records(session, branch_id)
                    completed.append(step)

                    step = STEP_EMIT_RESET_MOVEMENTS
                    notes = f"Monthly snapshot {period} (report {report_id})"
                    movement_count = self._emit_reset_movements(session, records, actor, notes, now)
                    completed.append(step)

                    step = STEP_RESET_RECORDS
                    reset_count = self._reset_records(session, records, now)
                    if movement_count != reset_count:
                        raise self._failure(
                            step, completed, f"{movement_count} reset movements for {reset_count} reset records"
                        )
                    completed.append(step)

                    step = STEP_COMMIT
            except IntegrityError as e:
                if step == STEP_CREATE_REPORT:
                    logger.warning("snapshot.duplicate_period_race", branch_id=branch_id, period=period)
                    raise DuplicatePeriod(branch_id, month, year) from e
                raise self._failure(step, completed, e) from e
            except StockCountError:
                raise
            except Exception as e:
                raise self._failure(step, completed, e) from e

            span.set_attribute("reset_count", reset_count)

        logger.info(
            "snapshot.completed",
            report_id=report_id,
            branch_id=branch_id,
            period=period,
            reset_count=reset_count,
            movement_count=movement_count,
            acting_user=actor,
        )
        return SnapshotResult(
            report_id=report_id,
            branch_id=branch_id,
            month=month,
            year=year,
            period=period,
            reset_count=reset_count,
            movement_count=movement_count,
        )

    def list_reports(self, branch_id: Optional[int] = None) -> list[MonthlyReportView]:
        """Archived reports for the branch, newest period first, without their rows."""
        branch_id = self._resolver.resolve(branch_id)
        with get_session() as session:
            reports = session.scalars(
                select(MonthlyReport)
                .where(MonthlyReport.branch_id == branch_id)
                .order_by(MonthlyReport.year.desc(), MonthlyReport.month.desc())
            ).all()
            return [to_report_view(r, include_rows=False) for r in reports]

    def get_report(self, report_id: int, branch_id: Optional[int] = None) -> MonthlyReportView:
        """One archived report with its rows. A report of another branch is reported as not found."""
        branch_id = self._resolver.resolve(branch_id)
        with get_session() as session:
            report = session.get(MonthlyReport, report_id)
            if report is None or report.branch_id != branch_id:
                raise ReportNotFound(report_id)
            return to_report_view(report)

    def _find_report_id(self, branch_id: int, month: int, year: int) -> Optional[int]:
        with get_session() as session:
            return session.scalars(
                select(MonthlyReport.id).where(
                    MonthlyReport.branch_id == branch_id,
                    MonthlyReport.month == month,
                    MonthlyReport.year == year,
                )
            ).first()

    def _load_records(self, session: Session, branch_id: int) -> list[InventoryRecord]:
        return list(
            session.scalars(
                select(InventoryRecord)
                .where(InventoryRecord.branch_id == branch_id, InventoryRecord.quantity > 0)
                .order_by(InventoryRecord.product_id)
            ).all()
        )

    def _emit_reset_movements(
        self, session: Session, records: Sequence[InventoryRecord], actor: str, notes: str, now
    ) -> int:
        for record in records:
            session.add(
                Movement(
                    branch_id=record.branch_id,
                    product_id=record.product_id,
                    previous_quantity=record.quantity,
                    new_quantity=0,
                    movement_type=MovementType.ADJUSTMENT.value,
                    acting_user=actor,
                    notes=notes,
                    created_at=now,
                )
            )
        session.flush()
        return len(records)

    def _reset_records(self, session: Session, records: Sequence[InventoryRecord], now) -> int:
        for record in records:
            record.quantity = 0
            record.updated_at = now
        # Versioned UPDATEs: a concurrent count since load raises StaleDataError here
        session.flush()
        return len(records)

    def _failure(self, step: str, completed: list[str], error: object) -> PartialSnapshotFailure:
        logger.error(
            "snapshot.step_failed",
            step=step,
            completed_steps=list(completed),
            rolled_back=True,
            error=str(error),
        )
        return PartialSnapshotFailure(step, completed, rolled_back=True, detail=str(error))
