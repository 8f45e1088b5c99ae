"""Reconciliation engine: compare ERP (system-of-record) quantities with physical counts.

Products carry two vendor codes (MRP and Truper) and the ERP export may use
either, so the branch's counted quantities are indexed under both. Lookups are
exact on the trimmed code.
"""

import math
from datetime import date
from typing import Any, Optional, Sequence

from sqlalchemy import select

from stock_count.db import get_session
from stock_count.db.models import InventoryRecord
from stock_count.exceptions import MissingRequiredColumn
from stock_count.models.ledger import MovementView
from stock_count.models.reconciliation import (
    ColumnMapping,
    ExternalRow,
    ReconciliationResult,
    ReconciliationRow,
    ReconciliationSummary,
)
from stock_count.reconciliation_config import ReconciliationConfig, load_config
from stock_count.services.branch_resolver import BranchResolver
from stock_count.utils.logger import get_logger
from stock_count.utils.spreadsheet import write_workbook
from stock_count.utils.tracing import get_tracer

logger = get_logger("stock_count.reconciliation")

NO_DESCRIPTION = "Sin descripción"

EXPORT_COLUMNS = [
    "Código MRP",
    "Descripción",
    "Sistema ERP",
    "App/Físico",
    "Diferencia (Físico - Sistema)",
    "Valor Unitario",
    "Diferencia en Costo",
]
EXPORT_WIDTHS = [15, 30, 12, 12, 10, 12, 15]

MOVEMENT_EXPORT_COLUMNS = [
    "Fecha",
    "Código",
    "Descripción",
    "Marca",
    "Tipo",
    "Cantidad Anterior",
    "Cantidad Nueva",
    "Diferencia",
    "Usuario",
    "Observaciones",
]
MOVEMENT_EXPORT_WIDTHS = [20, 15, 30, 15, 14, 10, 10, 10, 20, 30]


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _to_number(value: Any) -> Optional[float]:
    """Parse a spreadsheet cell as a number; None if blank or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def identify_columns(headers: Sequence[Any], config: Optional[ReconciliationConfig] = None) -> ColumnMapping:
    """Locate the code, quantity, description and unit value columns.

    Required headers match exactly after trimming. The unit value column is the
    first header containing one of the configured keywords (case-insensitive).
    Raises MissingRequiredColumn.
    """
    config = config or load_config()
    names = [_cell_text(h) for h in headers]

    def index_of(name: Optional[str]) -> Optional[int]:
        if not name:
            return None
        return names.index(name) if name in names else None

    code_idx = index_of(config.columns.product_code)
    if code_idx is None:
        raise MissingRequiredColumn(config.columns.product_code)
    qty_idx = index_of(config.columns.system_quantity)
    if qty_idx is None:
        raise MissingRequiredColumn(config.columns.system_quantity)

    keywords = [k.lower() for k in config.unit_value_keywords if k]
    value_idx = next(
        (i for i, name in enumerate(names) if name and any(k in name.lower() for k in keywords)),
        None,
    )
    return ColumnMapping(
        product_code=code_idx,
        system_quantity=qty_idx,
        description=index_of(config.columns.description),
        unit_value=value_idx,
    )


def rows_from_table(
    headers: Sequence[Any],
    rows: Sequence[Sequence[Any]],
    config: Optional[ReconciliationConfig] = None,
) -> list[ExternalRow]:
    """Extract ExternalRows. Blank codes are skipped; a non-numeric quantity counts as 0."""
    mapping = identify_columns(headers, config)

    def cell(row: Sequence[Any], idx: Optional[int]) -> Any:
        if idx is None or idx >= len(row):
            return None
        return row[idx]

    out: list[ExternalRow] = []
    for row in rows:
        code = _cell_text(cell(row, mapping.product_code))
        if not code:
            continue
        unit_value = _to_number(cell(row, mapping.unit_value))
        description = _cell_text(cell(row, mapping.description)) if mapping.description is not None else NO_DESCRIPTION
        out.append(
            ExternalRow(
                code=code,
                system_quantity=_to_number(cell(row, mapping.system_quantity)) or 0,
                description=description,
                unit_value=unit_value if unit_value is not None and unit_value > 0 else None,
            )
        )
    return out


def summarize(rows: Sequence[ReconciliationRow], ambiguous_codes: Sequence[str] = ()) -> ReconciliationSummary:
    return ReconciliationSummary(
        total_rows=len(rows),
        positive_count=sum(1 for r in rows if r.quantity_variance > 0),
        negative_count=sum(1 for r in rows if r.quantity_variance < 0),
        zero_count=sum(1 for r in rows if r.quantity_variance == 0),
        matched_count=sum(1 for r in rows if r.matched),
        unmatched_count=sum(1 for r in rows if not r.matched),
        total_cost_variance=sum(r.cost_variance for r in rows),
        total_abs_variance=sum(abs(r.quantity_variance) for r in rows),
        ambiguous_codes=sorted(ambiguous_codes),
    )


class ReconciliationEngine:
    def __init__(self, resolver: BranchResolver):
        self._resolver = resolver

    def load_physical_quantities(self, branch_id: int) -> tuple[dict[str, int], set[str]]:
        """Map each trimmed MRP and Truper code to the branch's counted quantity.

        Records are walked by ascending product id; when two products share a code
        the first keeps it and the code is reported as ambiguous.
        """
        quantities: dict[str, int] = {}
        owners: dict[str, int] = {}
        ambiguous: set[str] = set()
        with get_session() as session:
            records = session.scalars(
                select(InventoryRecord)
                .where(InventoryRecord.branch_id == branch_id)
                .order_by(InventoryRecord.product_id)
            ).all()
            for record in records:
                product = record.product
                if product is None:
                    continue
                for code in product.codes():
                    owner = owners.get(code)
                    if owner is None:
                        owners[code] = product.id
                        quantities[code] = record.quantity or 0
                    elif owner != product.id:
                        ambiguous.add(code)
                        logger.warning(
                            "reconciliation.duplicate_code",
                            code=code,
                            branch_id=branch_id,
                            kept_product_id=owner,
                            ignored_product_id=product.id,
                        )
        return quantities, ambiguous

    def reconcile(self, branch_id: Optional[int], external_rows: Sequence[ExternalRow]) -> ReconciliationResult:
        """Compare ERP rows with physical counts. Unmatched codes get physical quantity 0."""
        branch_id = self._resolver.resolve(branch_id)
        with get_tracer().start_as_current_span("reconciliation.reconcile") as span:
            span.set_attribute("branch_id", branch_id)
            span.set_attribute("external_rows", len(external_rows))

            quantities, ambiguous = self.load_physical_quantities(branch_id)
            rows: list[ReconciliationRow] = []
            for ext in external_rows:
                code = (ext.code or "").strip()
                if not code:
                    continue
                matched = code in quantities
                physical = quantities.get(code, 0)
                variance = physical - ext.system_quantity
                unit = ext.unit_value
                rows.append(
                    ReconciliationRow(
                        code=code,
                        description=ext.description if ext.description is not None else NO_DESCRIPTION,
                        system_quantity=ext.system_quantity,
                        physical_quantity=physical,
                        quantity_variance=variance,
                        unit_value=unit,
                        cost_variance=variance * unit if unit and unit > 0 else 0,
                        matched=matched,
                    )
                )

            summary = summarize(rows, ambiguous)
            span.set_attribute("matched_count", summary.matched_count)
            span.set_attribute("unmatched_count", summary.unmatched_count)
            logger.info(
                "reconciliation.completed",
                branch_id=branch_id,
                total_rows=summary.total_rows,
                matched=summary.matched_count,
                unmatched=summary.unmatched_count,
                total_cost_variance=summary.total_cost_variance,
                ambiguous_codes=len(summary.ambiguous_codes),
            )
            return ReconciliationResult(branch_id=branch_id, rows=rows, summary=summary)

    def reconcile_table(
        self,
        branch_id: Optional[int],
        headers: Sequence[Any],
        rows: Sequence[Sequence[Any]],
        config: Optional[ReconciliationConfig] = None,
    ) -> ReconciliationResult:
        """identify_columns + rows_from_table + reconcile."""
        return self.reconcile(branch_id, rows_from_table(headers, rows, config))


def to_tabular(rows: Sequence[ReconciliationRow], config: Optional[ReconciliationConfig] = None) -> bytes:
    """Comparison report as xlsx bytes."""
    config = config or load_config()
    records = [
        {
            "Código MRP": r.code,
            "Descripción": r.description,
            "Sistema ERP": r.system_quantity,
            "App/Físico": r.physical_quantity,
            "Diferencia (Físico - Sistema)": r.quantity_variance,
            "Valor Unitario": r.unit_value or 0,
            "Diferencia en Costo": r.cost_variance,
        }
        for r in rows
    ]
    return write_workbook(records, config.export.sheet_name, EXPORT_WIDTHS, columns=EXPORT_COLUMNS)


def movements_to_tabular(views: Sequence[MovementView], config: Optional[ReconciliationConfig] = None) -> bytes:
    """Movement history as xlsx bytes."""
    config = config or load_config()
    records = [
        {
            "Fecha": v.created_at.strftime("%Y-%m-%d %H:%M"),
            "Código": v.product_code,
            "Descripción": v.product_description,
            "Marca": v.product_brand,
            "Tipo": v.movement_type,
            "Cantidad Anterior": v.previous_quantity,
            "Cantidad Nueva": v.new_quantity,
            "Diferencia": v.difference,
            "Usuario": v.acting_user,
            "Observaciones": v.notes or "",
        }
        for v in views
    ]
    return write_workbook(
        records, config.export.movements_sheet_name, MOVEMENT_EXPORT_WIDTHS, columns=MOVEMENT_EXPORT_COLUMNS
    )


def export_filename(prefix: str, ext: str = "xlsx", on: Optional[date] = None) -> str:
    """``<prefix>_<YYYY-MM-DD>.<ext>``."""
    day = on or date.today()
    return f"{prefix}_{day.isoformat()}.{ext.lstrip('.')}"
