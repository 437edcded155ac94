"""Header-row location by column alignment.

The header row is the first populated row accepted by the header predicate.
The first data row is the next populated row starting in the same column as
the header; rows in between that start in another column (a second header
line, notes, a data row with an empty key column) are skipped.  Titles and
report dates above the header are tolerated when they are blank or rejected by
the predicate, e.g. :func:`looks_like_header_row`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ingestkit_records.errors import HeaderNotFoundError, HeaderScanLimitError
from ingestkit_records.models import HeaderLocation, RowControl
from ingestkit_records.row_source import RowSource
from ingestkit_records.sheets import Sheet, SheetRow

HeaderPredicate = Callable[[SheetRow], bool]


def accept_any_row(row: SheetRow) -> bool:
    """Default header predicate: every populated row qualifies."""
    return True


def looks_like_header_row(row: SheetRow, min_columns: int = 2) -> bool:
    """Header predicate that rejects titles and report lines.

    Accepts a row when:

    * at least *min_columns* cells are populated, **and**
    * every populated cell is a string, **and**
    * the span-based fill ratio (populated count / span from first to last
      populated cell) is ``>= 0.5``.
    """
    populated = [cell for cell in row.cells if cell.value is not None and cell.value != ""]
    if len(populated) < min_columns:
        return False
    if not all(isinstance(cell.value, str) for cell in populated):
        return False
    span = populated[-1].column - populated[0].column + 1
    return len(populated) / span >= 0.5


class HeaderLocator:
    """Find the header row and the first data row of a sheet.

    Scanning rules, applied to populated rows only:

    * The first row accepted by ``is_header_row`` is the header and fixes the
      header column.
    * After it, a row starting in the header column is the first data row;
      scanning stops.
    * A row starting in another column is a continuation or decoration row
      and is skipped.

    Parameters
    ----------
    is_header_row:
        Predicate deciding whether a row may be the header.  Pass
        :func:`looks_like_header_row` for sheets with titles above the header.
    max_scan_rows:
        When set, how many misaligned populated rows may follow the header
        before giving up with :class:`HeaderScanLimitError`.
    logger:
        Logger for phase messages; defaults to the package logger.
    """

    def __init__(
        self,
        is_header_row: HeaderPredicate | None = None,
        max_scan_rows: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._is_header_row = is_header_row or accept_any_row
        self._max_scan_rows = max_scan_rows
        self._logger = logger if logger is not None else logging.getLogger("ingestkit_records")

    def locate(self, source: RowSource) -> HeaderLocation:
        header_row_index: int | None = None
        header_column: int | None = None
        data_row_index: int | None = None
        unconfirmed = 0

        def visit(row: SheetRow, row_index: int, sheet: Sheet) -> RowControl:
            nonlocal header_row_index, header_column, data_row_index, unconfirmed
            first = row.first_populated()
            if first is None:
                return RowControl.CONTINUE

            if header_column is None:
                if self._is_header_row(row):
                    header_row_index, header_column = row_index, first.column
                return RowControl.CONTINUE

            if first.column == header_column:
                data_row_index = row_index
                return RowControl.STOP

            unconfirmed += 1
            if self._max_scan_rows is not None and unconfirmed > self._max_scan_rows:
                raise HeaderScanLimitError(header_row_index, self._max_scan_rows)
            self._logger.debug("Skipping misaligned row %d", row_index)
            return RowControl.CONTINUE

        source.start_row = 1
        source.for_each_row(visit)

        if header_row_index is None or header_column is None:
            raise HeaderNotFoundError()

        if data_row_index is None:
            # Header without data: an empty dataset, not an error.
            data_row_index = header_row_index + 1

        self._logger.info(
            "Found header row %d (column %d), first data row %d",
            header_row_index,
            header_column,
            data_row_index,
        )
        return HeaderLocation(
            header_row_index=header_row_index,
            data_row_index=data_row_index,
            header_column=header_column,
        )
