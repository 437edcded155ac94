"""Tests for format detection, worksheet metadata, and sheet loading."""

from __future__ import annotations

import datetime
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import xlrd

from ingestkit_records.errors import NoSheetsError, UnsupportedFormatError, WorksheetNotFoundError
from ingestkit_records.loaders import (
    detect_format,
    list_worksheet_info,
    load_sheet,
    resolve_worksheet,
)
from ingestkit_records.models import SheetFormat
from ingestkit_records.read_filter import ReadWindowFilter
from ingestkit_records.sheets import GridSheet, WorksheetSheet


class TestDetectFormat:
    @pytest.mark.parametrize("name", ["a.xlsx", "a.XLSX", "a.xlsm", "a.xltx", "a.xltm"])
    def test_ooxml(self, name: str) -> None:
        assert detect_format(name) is SheetFormat.XLSX

    def test_xls(self) -> None:
        assert detect_format("legacy.xls") is SheetFormat.XLS

    @pytest.mark.parametrize("name", ["data.csv", "report.pdf", "noext"])
    def test_unsupported(self, name: str) -> None:
        with pytest.raises(UnsupportedFormatError):
            detect_format(name)


class TestWorksheetInfo:
    def test_lists_all_sheets(self, xlsx_factory) -> None:
        path = xlsx_factory(
            [["a", "b"], [1, 2], [3, 4]],
            extra_sheets={"Summary": [["x"]]},
        )
        infos = list_worksheet_info(path)
        assert [(i.name, i.total_rows, i.total_columns) for i in infos] == [
            ("Data", 3, 2),
            ("Summary", 1, 1),
        ]

    def test_resolve_default_is_active_sheet(self, xlsx_factory) -> None:
        path = xlsx_factory([["a"]], extra_sheets={"Other": [["x"]]})
        assert resolve_worksheet(path).name == "Data"

    def test_resolve_named(self, xlsx_factory) -> None:
        path = xlsx_factory([["a"]], extra_sheets={"Other": [["x"], ["y"]]})
        info = resolve_worksheet(path, "Other")
        assert info.name == "Other"
        assert info.total_rows == 2

    def test_resolve_unknown(self, xlsx_factory) -> None:
        path = xlsx_factory([["a"]])
        with pytest.raises(WorksheetNotFoundError) as exc_info:
            resolve_worksheet(path, "Missing")
        assert exc_info.value.available == ["Data"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            list_worksheet_info(tmp_path / "none.xlsx")

    def test_no_worksheets(self, xlsx_factory) -> None:
        path = xlsx_factory([["a"]])
        fake_wb = MagicMock()
        fake_wb.worksheets = []
        with patch("ingestkit_records.loaders.openpyxl.load_workbook", return_value=fake_wb):
            with pytest.raises(NoSheetsError):
                resolve_worksheet(path)
        fake_wb.close.assert_called_once()


class TestLoadSheetXlsx:
    def test_full_load_returns_worksheet_adapter(self, orders_xlsx: Path) -> None:
        sheet = load_sheet(orders_xlsx)
        assert isinstance(sheet, WorksheetSheet)
        assert sheet.title == "Data"
        assert sheet.cell(3, 0).value == "Name"

    def test_full_load_named_sheet(self, xlsx_factory) -> None:
        path = xlsx_factory([["a"]], extra_sheets={"Other": [["other"]]})
        assert load_sheet(path, "Other").cell(1, 0).value == "other"

    def test_full_load_unknown_sheet(self, orders_xlsx: Path) -> None:
        with pytest.raises(WorksheetNotFoundError):
            load_sheet(orders_xlsx, "Nope")

    def test_filtered_load_keeps_row_one_and_window(self, xlsx_factory) -> None:
        path = xlsx_factory([[f"r{i}", i] for i in range(1, 21)])
        read_filter = ReadWindowFilter()
        read_filter.set_worksheet("Data")
        read_filter.set_rows(11, 5)
        grid = load_sheet(path, "Data", read_filter)
        assert isinstance(grid, GridSheet)
        assert grid.cell(1, 0).value == "r1"
        assert grid.cell(2, 0) is None
        assert grid.cell(10, 0) is None
        assert [grid.cell(i, 0).value for i in range(11, 16)] == [f"r{i}" for i in range(11, 16)]
        assert grid.cell(16, 0) is None
        assert grid.max_row == 20

    def test_filtered_load_max_column(self, xlsx_factory) -> None:
        path = xlsx_factory([["a", "b", "c"], ["d", "e", "f"]])
        read_filter = ReadWindowFilter()
        read_filter.set_max_column(2)
        grid = load_sheet(path, None, read_filter)
        assert grid.row(2).values() == ["d", "e"]

    def test_filtered_load_dates(self, orders_xlsx: Path) -> None:
        read_filter = ReadWindowFilter()
        read_filter.set_rows(4, 2)
        grid = load_sheet(orders_xlsx, None, read_filter)
        cell = grid.cell(4, 3)
        assert cell.is_date is True
        assert cell.value == datetime.datetime(2024, 1, 1)


def _xls_cell(ctype: int, value) -> SimpleNamespace:
    return SimpleNamespace(ctype=ctype, value=value)


class _FakeXlsSheet:
    def __init__(self, grid: list[list[SimpleNamespace]]) -> None:
        self._grid = grid
        self.nrows = len(grid)
        self.ncols = max(len(r) for r in grid)

    def cell(self, row: int, column: int) -> SimpleNamespace:
        values = self._grid[row]
        if column >= len(values):
            return _xls_cell(xlrd.XL_CELL_EMPTY, "")
        return values[column]


@pytest.fixture()
def fake_xls_book() -> MagicMock:
    sheet = _FakeXlsSheet(
        [
            [_xls_cell(xlrd.XL_CELL_TEXT, "Name"), _xls_cell(xlrd.XL_CELL_TEXT, "Qty"),
             _xls_cell(xlrd.XL_CELL_TEXT, "When")],
            [_xls_cell(xlrd.XL_CELL_TEXT, "Widget"), _xls_cell(xlrd.XL_CELL_NUMBER, 3.0),
             _xls_cell(xlrd.XL_CELL_DATE, 45292.0)],
            [_xls_cell(xlrd.XL_CELL_TEXT, "Gadget"), _xls_cell(xlrd.XL_CELL_NUMBER, 2.5),
             _xls_cell(xlrd.XL_CELL_BLANK, "")],
        ]
    )
    book = MagicMock()
    book.sheet_names.return_value = ["Legacy"]
    book.sheet_by_name.return_value = sheet
    book.datemode = 0
    return book


class TestLoadSheetXls:
    def test_values_converted(self, tmp_path: Path, fake_xls_book: MagicMock) -> None:
        path = tmp_path / "legacy.xls"
        path.write_bytes(b"placeholder")
        with patch("ingestkit_records.loaders.xlrd.open_workbook", return_value=fake_xls_book):
            grid = load_sheet(path)
        assert grid.title == "Legacy"
        assert grid.cell(2, 1).value == 3
        assert isinstance(grid.cell(2, 1).value, int)
        assert grid.cell(3, 1).value == 2.5
        assert grid.cell(2, 2).is_date is True
        assert grid.cell(2, 2).value == datetime.datetime(2024, 1, 1)
        assert grid.cell(3, 2) is None
        fake_xls_book.release_resources.assert_called_once()

    def test_unknown_sheet(self, tmp_path: Path, fake_xls_book: MagicMock) -> None:
        path = tmp_path / "legacy.xls"
        path.write_bytes(b"placeholder")
        with patch("ingestkit_records.loaders.xlrd.open_workbook", return_value=fake_xls_book):
            with pytest.raises(WorksheetNotFoundError):
                load_sheet(path, "Other")

    def test_filtered(self, tmp_path: Path, fake_xls_book: MagicMock) -> None:
        path = tmp_path / "legacy.xls"
        path.write_bytes(b"placeholder")
        read_filter = ReadWindowFilter()
        read_filter.set_rows(3, 1)
        with patch("ingestkit_records.loaders.xlrd.open_workbook", return_value=fake_xls_book):
            grid = load_sheet(path, None, read_filter)
        assert grid.cell(1, 0).value == "Name"
        assert grid.cell(2, 0) is None
        assert grid.cell(3, 0).value == "Gadget"

    def test_metadata(self, tmp_path: Path, fake_xls_book: MagicMock) -> None:
        path = tmp_path / "legacy.xls"
        path.write_bytes(b"placeholder")
        with patch("ingestkit_records.loaders.xlrd.open_workbook", return_value=fake_xls_book):
            info = resolve_worksheet(path)
        assert (info.name, info.total_rows, info.total_columns) == ("Legacy", 3, 3)
