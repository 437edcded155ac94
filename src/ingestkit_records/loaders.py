"""Workbook loading for the record parser.

Reader selection is by file extension: openpyxl for the OOXML family
(``.xlsx``, ``.xlsm``, ``.xltx``, ``.xltm``) and xlrd for legacy ``.xls``.
Formulas are never evaluated; openpyxl is opened with ``data_only=True`` so the
cached calculated values are read.

Three entry points:

* :func:`list_worksheet_info` / :func:`resolve_worksheet` -- lightweight
  metadata reads (sheet names and row/column counts).
* :func:`load_sheet` -- load one sheet, either whole or restricted to the
  cells accepted by a :class:`~ingestkit_records.read_filter.ReadWindowFilter`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import openpyxl
import xlrd
from openpyxl.worksheet._read_only import ReadOnlyWorksheet

from ingestkit_records.errors import (
    NoSheetsError,
    UnsupportedFormatError,
    WorksheetNotFoundError,
)
from ingestkit_records.models import SheetFormat, WorksheetInfo
from ingestkit_records.read_filter import ReadWindowFilter
from ingestkit_records.sheets import GridSheet, Sheet, WorksheetSheet

logger = logging.getLogger("ingestkit_records")

_EXTENSIONS: dict[str, SheetFormat] = {
    ".xlsx": SheetFormat.XLSX,
    ".xlsm": SheetFormat.XLSX,
    ".xltx": SheetFormat.XLSX,
    ".xltm": SheetFormat.XLSX,
    ".xls": SheetFormat.XLS,
}


def detect_format(file_path: str | Path) -> SheetFormat:
    """Map a file extension to a reader.

    Raises:
        UnsupportedFormatError: For any extension without a reader.
    """
    suffix = Path(file_path).suffix.lower()
    try:
        return _EXTENSIONS[suffix]
    except KeyError:
        raise UnsupportedFormatError(
            f"Unsupported spreadsheet extension '{suffix}' for {file_path}. "
            f"Supported: {', '.join(sorted(_EXTENSIONS))}."
        ) from None


def _check_exists(file_path: str | Path) -> None:
    if not Path(file_path).exists():
        raise FileNotFoundError(f"File not found: {file_path}")


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def list_worksheet_info(file_path: str | Path) -> list[WorksheetInfo]:
    """Return name and size of every data worksheet without loading cells."""
    _check_exists(file_path)
    if detect_format(file_path) is SheetFormat.XLS:
        return _xls_worksheet_info(file_path)

    wb = openpyxl.load_workbook(file_path, read_only=True, data_only=True)
    try:
        return [_xlsx_info(ws) for ws in wb.worksheets]
    finally:
        wb.close()


def resolve_worksheet(file_path: str | Path, worksheet: str | None = None) -> WorksheetInfo:
    """Metadata of the named worksheet, or of the default one.

    The default is the active sheet for OOXML workbooks and the first sheet
    for ``.xls`` workbooks.

    Raises:
        WorksheetNotFoundError: If *worksheet* is not in the workbook.
        NoSheetsError: If the workbook has no data worksheets.
    """
    _check_exists(file_path)
    if detect_format(file_path) is SheetFormat.XLS:
        infos = _xls_worksheet_info(file_path)
        return _pick(infos, worksheet)

    wb = openpyxl.load_workbook(file_path, read_only=True, data_only=True)
    try:
        return _xlsx_info(_select_openpyxl(wb, worksheet))
    finally:
        wb.close()


def _pick(infos: list[WorksheetInfo], worksheet: str | None) -> WorksheetInfo:
    if not infos:
        raise NoSheetsError()
    if worksheet is None:
        return infos[0]
    for info in infos:
        if info.name == worksheet:
            return info
    raise WorksheetNotFoundError(worksheet, [info.name for info in infos])


def _xlsx_info(ws: Any) -> WorksheetInfo:
    if isinstance(ws, ReadOnlyWorksheet) and (ws.max_row is None or ws.max_column is None):
        # Writers that omit the <dimension> element leave the sheet unsized.
        ws.calculate_dimension(force=True)
    return WorksheetInfo(
        name=ws.title,
        total_rows=ws.max_row or 0,
        total_columns=ws.max_column or 0,
    )


def _xls_worksheet_info(file_path: str | Path) -> list[WorksheetInfo]:
    book = xlrd.open_workbook(str(file_path), on_demand=True)
    try:
        infos: list[WorksheetInfo] = []
        for name in book.sheet_names():
            sheet = book.sheet_by_name(name)
            infos.append(
                WorksheetInfo(name=name, total_rows=sheet.nrows, total_columns=sheet.ncols)
            )
            book.unload_sheet(name)
        return infos
    finally:
        book.release_resources()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_sheet(
    file_path: str | Path,
    worksheet: str | None = None,
    read_filter: ReadWindowFilter | None = None,
) -> Sheet:
    """Load one worksheet.

    Without a filter the whole sheet is loaded; OOXML sheets are returned as a
    :class:`WorksheetSheet` over a regular (not read-only) workbook.  With a
    filter, only accepted cells are copied into a :class:`GridSheet` and the
    workbook is closed before returning.

    Raises:
        FileNotFoundError: If *file_path* does not exist.
        WorksheetNotFoundError: If *worksheet* is not in the workbook.
        NoSheetsError: If the workbook has no data worksheets.
    """
    _check_exists(file_path)
    if detect_format(file_path) is SheetFormat.XLS:
        return _load_xls(file_path, worksheet, read_filter)

    if read_filter is None:
        wb = openpyxl.load_workbook(file_path, data_only=True)
        ws = _select_openpyxl(wb, worksheet)
        logger.debug("Loaded worksheet '%s' from %s", ws.title, file_path)
        return WorksheetSheet(ws)

    wb = openpyxl.load_workbook(file_path, read_only=True, data_only=True)
    try:
        ws = _select_openpyxl(wb, worksheet)
        grid = GridSheet(title=ws.title, total_rows=ws.max_row or 0)
        for min_row, max_row in read_filter.row_ranges():
            index = min_row
            for cells in ws.iter_rows(min_row=min_row, max_row=max_row):
                for offset, cell in enumerate(cells):
                    if cell.value is None:
                        continue
                    if read_filter.read_cell(index, offset + 1, ws.title):
                        grid.set(index, offset, cell.value, bool(getattr(cell, "is_date", False)))
                index += 1
        return grid
    finally:
        wb.close()


def _select_openpyxl(wb: Any, worksheet: str | None) -> Any:
    worksheets = wb.worksheets
    if not worksheets:
        raise NoSheetsError()
    if worksheet is not None:
        for ws in worksheets:
            if ws.title == worksheet:
                return ws
        raise WorksheetNotFoundError(worksheet, [ws.title for ws in worksheets])
    active = wb.active
    if active is not None and active in worksheets:
        return active
    return worksheets[0]


def _load_xls(
    file_path: str | Path,
    worksheet: str | None,
    read_filter: ReadWindowFilter | None,
) -> GridSheet:
    book = xlrd.open_workbook(str(file_path), on_demand=True)
    try:
        names = book.sheet_names()
        if not names:
            raise NoSheetsError()
        if worksheet is not None and worksheet not in names:
            raise WorksheetNotFoundError(worksheet, names)
        name = worksheet if worksheet is not None else names[0]
        sheet = book.sheet_by_name(name)

        grid = GridSheet(title=name, total_rows=sheet.nrows)
        ranges = read_filter.row_ranges() if read_filter else [(1, None)]
        for min_row, max_row in ranges:
            last = sheet.nrows if max_row is None else min(max_row, sheet.nrows)
            for index in range(min_row, last + 1):
                for column in range(sheet.ncols):
                    if read_filter and not read_filter.read_cell(index, column + 1, name):
                        continue
                    value, is_date = _xls_value(sheet.cell(index - 1, column), book.datemode)
                    grid.set(index, column, value, is_date)
        book.unload_sheet(name)
        return grid
    finally:
        book.release_resources()


def _xls_value(cell: Any, datemode: int) -> tuple[Any, bool]:
    """Convert an xlrd cell to a Python value and a date flag."""
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
        return None, False
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate_as_datetime(cell.value, datemode), True
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value), False
    value = cell.value
    # xlrd stores every number as float
    if isinstance(value, float) and value.is_integer():
        return int(value), False
    return value, False
