"""xlsx adapters: read an ERP export into (headers, rows) and write records to a workbook."""

from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Sequence, Union
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from stock_count.exceptions import InvalidSpreadsheet
from stock_count.utils.logger import get_logger

logger = get_logger("stock_count.spreadsheet")

HEADER_FILL = PatternFill("solid", fgColor="1F4E78")
HEADER_FONT = Font(bold=True, color="FFFFFF")


def read_workbook(source: Union[str, Path, bytes]) -> tuple[list[str], list[list[Any]]]:
    """Read the first worksheet. Row 1 is the header; fully empty rows are dropped.

    Raises InvalidSpreadsheet when the source is not an xlsx workbook.
    """
    stream = BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        wb = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError) as e:
        logger.warning("spreadsheet.invalid", error=str(e))
        raise InvalidSpreadsheet(str(e)) from e
    try:
        ws = wb.worksheets[0]
        values = ws.iter_rows(values_only=True)
        first = next(values, None)
        if first is None or all(h is None for h in first):
            return [], []
        headers = ["" if h is None else str(h) for h in first]
        rows: list[list[Any]] = []
        for raw in values:
            row = list(raw)
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in row):
                continue
            if len(row) < len(headers):
                row.extend([None] * (len(headers) - len(row)))
            rows.append(row)
    finally:
        wb.close()
    logger.debug("spreadsheet.read", columns=len(headers), rows=len(rows))
    return headers, rows


def write_workbook(
    records: Sequence[dict[str, Any]],
    sheet_name: str,
    widths: Optional[Sequence[int]] = None,
    columns: Optional[Sequence[str]] = None,
) -> bytes:
    """Write dict records to a one-sheet workbook and return the xlsx bytes.

    Column order is ``columns`` if given, else the keys of the first record.
    """
    headers = list(columns) if columns is not None else (list(records[0].keys()) if records else [])
    wb = Workbook()
    ws = wb.active
    # Excel caps sheet titles at 31 chars
    ws.title = sheet_name[:31]

    ws.append(headers)
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    for record in records:
        ws.append([record.get(h) for h in headers])

    for i, w in enumerate(widths or [], start=1):
        ws.column_dimensions[get_column_letter(i)].width = w

    output = BytesIO()
    wb.save(output)
    logger.debug("spreadsheet.write", sheet=sheet_name, rows=len(records))
    return output.getvalue()
