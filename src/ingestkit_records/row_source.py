"""Row sources: produce the rows of one sheet, in order, from a start row.

Every parse phase consumes rows through :meth:`RowSource.for_each_row`, so the
same header and record logic runs unchanged over an in-memory sheet or over a
workbook reloaded in bounded row windows.

The visitor is called as ``visitor(row, row_index, sheet)`` and may return
:attr:`RowControl.STOP` to end iteration.  Any other return value continues.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ingestkit_records.loaders import load_sheet, resolve_worksheet
from ingestkit_records.models import RowControl
from ingestkit_records.read_filter import ReadWindowFilter
from ingestkit_records.sheets import Sheet, SheetRow, coerce_sheet

logger = logging.getLogger("ingestkit_records")

RowVisitor = Callable[[SheetRow, int, Sheet], Any]


class RowSource(ABC):
    """Ordered row producer with a mutable 1-based ``start_row``."""

    def __init__(self) -> None:
        self.start_row = 1

    @property
    @abstractmethod
    def sheet_name(self) -> str:
        """Name of the worksheet being read."""

    @abstractmethod
    def for_each_row(self, visitor: RowVisitor) -> None:
        """Call *visitor* for every row at or after ``start_row``."""


class InMemoryRowSource(RowSource):
    """Pass-through over a sheet that is already fully loaded."""

    def __init__(self, sheet: Any) -> None:
        super().__init__()
        self._sheet = coerce_sheet(sheet)

    @property
    def sheet(self) -> Sheet:
        return self._sheet

    @property
    def sheet_name(self) -> str:
        return self._sheet.title

    def for_each_row(self, visitor: RowVisitor) -> None:
        for row in self._sheet.iter_rows(max(self.start_row, 1)):
            if visitor(row, row.index, self._sheet) is RowControl.STOP:
                break


class ChunkedRowSource(RowSource):
    """Reloads the workbook in windows of ``chunk_size`` rows.

    Spreadsheet readers generally cannot seek, so each window re-parses the
    file with a :class:`ReadWindowFilter` that materializes only row 1 and the
    window.  Each chunk is released before the next one is loaded, keeping
    peak memory near one chunk regardless of sheet size.

    Sheet name and total row count are read once at construction.
    """

    def __init__(
        self,
        file_path: str | Path,
        chunk_size: int,
        worksheet: str | None = None,
    ) -> None:
        super().__init__()
        if chunk_size <= 0:
            raise ValueError("chunk_size must be a positive integer")
        self._file_path = file_path
        self._chunk_size = chunk_size

        info = resolve_worksheet(file_path, worksheet)
        self._sheet_name = info.name
        self._total_rows = info.total_rows

        self._filter = ReadWindowFilter()
        self._filter.set_worksheet(self._sheet_name)
        self.chunks_loaded = 0

    @property
    def sheet_name(self) -> str:
        return self._sheet_name

    @property
    def total_rows(self) -> int:
        return self._total_rows

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def for_each_row(self, visitor: RowVisitor) -> None:
        current = max(self.start_row, 1)
        while current <= self._total_rows:
            self._filter.set_rows(current, self._chunk_size)
            load_start = time.monotonic()
            chunk = load_sheet(self._file_path, self._sheet_name, self._filter)
            self.chunks_loaded += 1
            logger.debug(
                "Loaded rows %d-%d of '%s' (%d cells) in %.3fs",
                current,
                min(current + self._chunk_size - 1, self._total_rows),
                self._sheet_name,
                chunk.cell_count,
                time.monotonic() - load_start,
            )

            stopped = False
            try:
                last = min(current + self._chunk_size - 1, self._total_rows)
                for index in range(current, last + 1):
                    if visitor(chunk.row(index), index, chunk) is RowControl.STOP:
                        stopped = True
                        break
            finally:
                chunk.release()

            if stopped:
                break
            current += self._chunk_size


def create_row_source(
    sheet: Any = None,
    file_path: str | Path | None = None,
    chunk_size: int | None = None,
    worksheet: str | None = None,
) -> RowSource:
    """Pick the row source for the given input.

    A loaded sheet always gets the in-memory source.  A file path gets the
    chunked source when *chunk_size* is set and is otherwise loaded once.
    """
    if sheet is not None:
        return InMemoryRowSource(sheet)
    if file_path is None:
        raise ValueError("Either sheet or file_path is required")
    if chunk_size:
        return ChunkedRowSource(file_path, chunk_size, worksheet)
    return InMemoryRowSource(load_sheet(file_path, worksheet))
