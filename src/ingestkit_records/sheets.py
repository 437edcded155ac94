"""Uniform row/cell view over the sheet objects the parser accepts.

Row sources and the three parse phases only ever talk to the :class:`Sheet`
protocol.  Three implementations cover the supported inputs:

* :class:`GridSheet` -- a sparse in-memory grid.  Chunk loads, ``.xls``
  workbooks and hand-built test sheets end up here.
* :class:`WorksheetSheet` -- a direct adapter over an openpyxl worksheet
  (regular or read-only), iterated without copying.
* :class:`DataFrameSheet` -- an adapter over a pandas ``DataFrame`` read with
  ``header=None``, so that frame row 0 is sheet row 1.

Rows are 1-based, columns are 0-based, matching the header-column map.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import pandas as pd
from openpyxl.worksheet._read_only import ReadOnlyWorksheet
from openpyxl.worksheet.worksheet import Worksheet


@dataclass
class SheetCell:
    """A single existing cell."""

    row: int  # 1-based
    column: int  # 0-based
    value: Any
    is_date: bool = False


@dataclass
class SheetRow:
    """One physical row, holding only the cells that exist, in column order."""

    index: int  # 1-based
    cells: list[SheetCell] = field(default_factory=list)

    def first_populated(self) -> SheetCell | None:
        """Return the first cell holding a non-null value, if any."""
        for cell in self.cells:
            if cell.value is not None:
                return cell
        return None

    def cell(self, column: int) -> SheetCell | None:
        for cell in self.cells:
            if cell.column == column:
                return cell
        return None

    def values(self) -> list[Any]:
        return [cell.value for cell in self.cells]


@runtime_checkable
class Sheet(Protocol):
    """Read interface shared by every sheet implementation."""

    @property
    def title(self) -> str:
        """Worksheet name."""
        ...

    @property
    def max_row(self) -> int:
        """Highest row index that may hold data."""
        ...

    def row(self, index: int) -> SheetRow:
        """Return the row at *index* (empty when the row has no cells)."""
        ...

    def iter_rows(self, min_row: int = 1) -> Iterator[SheetRow]:
        """Yield every row from *min_row* to ``max_row``, empty rows included."""
        ...

    def cell(self, row: int, column: int) -> SheetCell | None:
        """Return the cell at (*row*, *column*) or ``None`` when it does not exist."""
        ...


# ---------------------------------------------------------------------------
# GridSheet
# ---------------------------------------------------------------------------


class GridSheet:
    """Sparse in-memory sheet.

    Cells whose value is ``None`` are never stored.  ``max_row`` is the
    larger of the declared total row count and the highest stored row.
    """

    def __init__(self, title: str = "Sheet", total_rows: int = 0) -> None:
        self._title = title
        self._total_rows = total_rows
        self._rows: dict[int, dict[int, SheetCell]] = {}

    @classmethod
    def from_rows(
        cls, rows: list[list[Any]], title: str = "Sheet", start_row: int = 1
    ) -> GridSheet:
        """Build a grid from a list of row value lists.

        ``datetime``/``date``/``time`` values are flagged as dates.
        """
        sheet = cls(title=title)
        for offset, values in enumerate(rows):
            for column, value in enumerate(values):
                is_date = isinstance(
                    value, (datetime.datetime, datetime.date, datetime.time)
                )
                sheet.set(start_row + offset, column, value, is_date=is_date)
        return sheet

    @property
    def title(self) -> str:
        return self._title

    @property
    def max_row(self) -> int:
        highest = max(self._rows) if self._rows else 0
        return max(highest, self._total_rows)

    @property
    def cell_count(self) -> int:
        return sum(len(cells) for cells in self._rows.values())

    def set(self, row: int, column: int, value: Any, is_date: bool = False) -> None:
        if value is None:
            return
        self._rows.setdefault(row, {})[column] = SheetCell(row, column, value, is_date)

    def row(self, index: int) -> SheetRow:
        cells = self._rows.get(index, {})
        return SheetRow(index, [cells[c] for c in sorted(cells)])

    def iter_rows(self, min_row: int = 1) -> Iterator[SheetRow]:
        for index in range(min_row, self.max_row + 1):
            yield self.row(index)

    def cell(self, row: int, column: int) -> SheetCell | None:
        return self._rows.get(row, {}).get(column)

    def release(self) -> None:
        """Drop every stored cell."""
        self._rows.clear()


# ---------------------------------------------------------------------------
# WorksheetSheet (openpyxl)
# ---------------------------------------------------------------------------


class WorksheetSheet:
    """Adapter over an already-loaded openpyxl worksheet.

    The most recently produced row is cached so that per-cell lookups for the
    row being visited do not re-scan the worksheet, which matters for
    read-only worksheets.
    """

    def __init__(self, worksheet: Worksheet | ReadOnlyWorksheet) -> None:
        self._ws = worksheet
        self._cached: SheetRow | None = None

    @property
    def title(self) -> str:
        return self._ws.title

    @property
    def max_row(self) -> int:
        return self._ws.max_row or 0

    def row(self, index: int) -> SheetRow:
        if self._cached is not None and self._cached.index == index:
            return self._cached
        if index < 1 or index > self.max_row:
            return SheetRow(index)
        for row in self.iter_rows(min_row=index, max_row=index):
            return row
        return SheetRow(index)

    def iter_rows(self, min_row: int = 1, max_row: int | None = None) -> Iterator[SheetRow]:
        last = self.max_row if max_row is None else max_row
        if min_row > last:
            return
        index = min_row
        for cells in self._ws.iter_rows(min_row=min_row, max_row=last):
            row = SheetRow(index, _openpyxl_cells(index, cells))
            self._cached = row
            yield row
            index += 1

    def cell(self, row: int, column: int) -> SheetCell | None:
        return self.row(row).cell(column)


def _openpyxl_cells(index: int, cells: tuple) -> list[SheetCell]:
    result: list[SheetCell] = []
    for column, cell in enumerate(cells):
        value = cell.value
        if value is None:
            continue
        result.append(
            SheetCell(index, column, value, bool(getattr(cell, "is_date", False)))
        )
    return result


# ---------------------------------------------------------------------------
# DataFrameSheet (pandas)
# ---------------------------------------------------------------------------


class DataFrameSheet:
    """Adapter over a pandas ``DataFrame`` loaded with ``header=None``."""

    def __init__(self, frame: pd.DataFrame, title: str = "Sheet") -> None:
        self._frame = frame
        self._title = title

    @property
    def title(self) -> str:
        return self._title

    @property
    def max_row(self) -> int:
        return len(self._frame)

    def row(self, index: int) -> SheetRow:
        if index < 1 or index > self.max_row:
            return SheetRow(index)
        values = self._frame.iloc[index - 1].tolist()
        return SheetRow(index, _frame_cells(index, values))

    def iter_rows(self, min_row: int = 1) -> Iterator[SheetRow]:
        frame = self._frame.iloc[max(min_row, 1) - 1:]
        index = max(min_row, 1)
        for values in frame.itertuples(index=False, name=None):
            yield SheetRow(index, _frame_cells(index, list(values)))
            index += 1

    def cell(self, row: int, column: int) -> SheetCell | None:
        if row < 1 or row > self.max_row or column >= self._frame.shape[1]:
            return None
        cells = _frame_cells(row, [self._frame.iat[row - 1, column]], column)
        return cells[0] if cells else None


def _frame_cells(index: int, values: list[Any], first_column: int = 0) -> list[SheetCell]:
    cells: list[SheetCell] = []
    for offset, value in enumerate(values):
        if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
            continue
        is_date = False
        if isinstance(value, pd.Timestamp):
            value = value.to_pydatetime()
            is_date = True
        elif isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
            is_date = True
        elif hasattr(value, "item") and not isinstance(value, (str, bytes)):
            # numpy scalar
            value = value.item()
        cells.append(SheetCell(index, first_column + offset, value, is_date))
    return cells


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def coerce_sheet(source: Any) -> Sheet:
    """Wrap an openpyxl worksheet or pandas frame; pass ``Sheet`` objects through."""
    if isinstance(source, (Worksheet, ReadOnlyWorksheet)):
        return WorksheetSheet(source)
    if isinstance(source, pd.DataFrame):
        return DataFrameSheet(source)
    if isinstance(source, Sheet):
        return source
    raise TypeError(f"Unsupported sheet object: {type(source).__name__}")
