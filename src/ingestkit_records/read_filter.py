"""Cell read filter used by the chunked row source.

The chunked source reloads the workbook once per row window.  The filter tells
the loader which cells to materialize for the current window: row 1 is always
kept so sheet-level metadata stays available, plus the half-open window
``[start_row, start_row + chunk_size)``.
"""

from __future__ import annotations

from openpyxl.utils import column_index_from_string


class ReadWindowFilter:
    """Predicate over (row, column, worksheet) coordinates.

    An unconfigured filter (``start_row == 0``) accepts every cell of the
    selected worksheet.  ``max_column`` of 0 means no column bound.
    """

    def __init__(self) -> None:
        self.start_row = 0
        self.end_row = 0
        self.worksheet_name: str | None = None
        self.max_column = 0

    def set_rows(self, start_row: int, chunk_size: int) -> None:
        self.start_row = start_row
        self.end_row = start_row + chunk_size

    def set_worksheet(self, worksheet_name: str | None) -> None:
        self.worksheet_name = worksheet_name

    def set_max_column(self, max_column: int | str) -> None:
        """Bound columns; accepts a 1-based index or a column letter."""
        if isinstance(max_column, str):
            max_column = column_index_from_string(max_column)
        self.max_column = max_column

    def read_cell(self, row: int, column: int, worksheet_name: str | None = None) -> bool:
        """Whether the cell at 1-based *row* and 1-based *column* should be read."""
        if self.worksheet_name is not None and worksheet_name is not None:
            if worksheet_name != self.worksheet_name:
                return False
        if self.max_column and column > self.max_column:
            return False
        if self.start_row == 0 or row == 1:
            return True
        return self.start_row <= row < self.end_row

    def row_ranges(self) -> list[tuple[int, int | None]]:
        """Inclusive row spans a loader has to scan to satisfy the filter.

        ``None`` as an upper bound means "to the end of the sheet".
        """
        if self.start_row == 0:
            return [(1, None)]
        ranges: list[tuple[int, int | None]] = [(1, 1)]
        first = max(self.start_row, 2)
        if first < self.end_row:
            ranges.append((first, self.end_row - 1))
        return ranges
