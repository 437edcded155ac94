"""Shared test fixtures for ingestkit-records tests.

Provides a ``base_config`` fixture and .xlsx file generators built with
openpyxl.  Every generator writes into pytest's ``tmp_path`` so tests never
share files.
"""

from __future__ import annotations

import datetime
import pathlib
from collections.abc import Callable
from typing import Any

import openpyxl
import pytest

from ingestkit_records.config import RecordParserConfig

# ---------------------------------------------------------------------------
# Field map used by most tests
# ---------------------------------------------------------------------------

FIELD_MAP = {
    "Name": "name",
    "Quantity": "quantity",
    "Price": "price",
    "Shipped": "shipped",
}


@pytest.fixture()
def base_config() -> RecordParserConfig:
    """Return a RecordParserConfig for the standard order sheet."""
    return RecordParserConfig(field_map=FIELD_MAP)


# ---------------------------------------------------------------------------
# Workbook builders
# ---------------------------------------------------------------------------


def write_xlsx(
    path: pathlib.Path,
    rows: list[list[Any]],
    title: str = "Data",
    start_row: int = 1,
    extra_sheets: dict[str, list[list[Any]]] | None = None,
) -> pathlib.Path:
    """Write *rows* into a new workbook; ``None`` leaves a cell absent."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title
    for offset, values in enumerate(rows):
        for column, value in enumerate(values, start=1):
            if value is not None:
                ws.cell(row=start_row + offset, column=column, value=value)
    for name, sheet_rows in (extra_sheets or {}).items():
        extra = wb.create_sheet(name)
        for values in sheet_rows:
            extra.append(values)
    wb.save(path)
    wb.close()
    return path


@pytest.fixture()
def xlsx_factory(tmp_path: pathlib.Path) -> Callable[..., pathlib.Path]:
    """Return a helper writing rows into ``tmp_path/<name>``."""

    def factory(rows: list[list[Any]], name: str = "book.xlsx", **kwargs: Any) -> pathlib.Path:
        return write_xlsx(tmp_path / name, rows, **kwargs)

    return factory


@pytest.fixture()
def orders_xlsx(xlsx_factory: Callable[..., pathlib.Path]) -> pathlib.Path:
    """Order sheet with a title, a blank row, then header and 5 data rows.

    Layout::

        row 1  B: "Order export"
        row 2  (blank)
        row 3  Name | Quantity | Price | Shipped | Notes
        row 4..8  data
        row 9  (blank)
        row 10 "Totals" footer
    """
    rows: list[list[Any]] = [
        [None, "Order export"],
        [],
        ["Name", "Quantity", "Price", "Shipped", "Notes"],
    ]
    for i in range(1, 6):
        rows.append(
            [f"Item-{i}", i * 10, round(i * 1.5, 2), datetime.datetime(2024, 1, i), f"note {i}"]
        )
    rows.append([])
    rows.append(["Totals", 150])
    return xlsx_factory(rows, name="orders.xlsx")


def large_sheet_rows(data_rows: int = 245, columns: int = 10) -> list[list[Any]]:
    """Four lead rows, one header row and *data_rows* rows of *columns* cells.

    Lead rows start in columns other than A, so the header in column A is
    found by alignment alone.
    """
    rows: list[list[Any]] = [
        [None, "Inventory report"],
        [],
        [None, None, None, "Generated 2024-03-01"],
        [],
        [f"Col{c}" for c in range(1, columns + 1)],
    ]
    for r in range(1, data_rows + 1):
        row: list[Any] = [f"row-{r}"]
        row.extend(r * columns + c for c in range(1, columns))
        rows.append(row)
    return rows


@pytest.fixture()
def large_xlsx(xlsx_factory: Callable[..., pathlib.Path]) -> pathlib.Path:
    """10-column, 250-row sheet: 4 lead rows, 1 header row, 245 data rows."""
    return xlsx_factory(large_sheet_rows(), name="large.xlsx")
