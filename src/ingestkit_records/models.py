"""Pydantic data models and enumerations for ingestkit-records.

Defines the visitor control signal shared by every row source, the
workbook metadata returned by the loaders, the intermediate artifacts of the
header phases, and the public :class:`ParseResult`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel

from ingestkit_records.errors import IngestError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class RowControl(str, Enum):
    """Signal returned by row visitors and per-record callbacks.

    Anything other than ``STOP`` (including ``None``) means continue, so a
    visitor that returns nothing never ends iteration by accident.
    """

    CONTINUE = "continue"
    STOP = "stop"


class SheetFormat(str, Enum):
    """Spreadsheet container formats the loaders can read."""

    XLSX = "xlsx"
    XLS = "xls"


# ---------------------------------------------------------------------------
# Workbook metadata
# ---------------------------------------------------------------------------


class WorksheetInfo(BaseModel):
    """Lightweight sheet metadata read without materializing cells."""

    name: str
    total_rows: int
    total_columns: int


# ---------------------------------------------------------------------------
# Stage artifacts
# ---------------------------------------------------------------------------


class HeaderLocation(BaseModel):
    """Output of the header-location phase (1-based row positions)."""

    header_row_index: int
    data_row_index: int
    header_column: int


class HeaderMapping(BaseModel):
    """Output of the header-mapping phase."""

    header_columns: dict[str, int]
    missing_fields: list[str]
    extra_fields: list[str]
    found_fields: list[str]

    @property
    def parsed_header_labels(self) -> list[str]:
        """Logical field keys that ended up with a column."""
        return list(self.header_columns)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class ParseResult(BaseModel):
    """Outcome of one parse run.

    ``error`` is set at most once; when it is set the run failed and
    ``records`` is empty.  A stop requested by the per-record callback is a
    successful run.
    """

    sheet_name: str | None = None
    header_row_index: int | None = None
    data_row_index: int | None = None
    missing_fields: list[str] = []
    extra_fields: list[str] = []
    parsed_header_labels: list[str] = []
    records: list[Any] = []
    rows_processed: int = 0
    stopped_by_callback: bool = False
    error: str | None = None
    error_detail: IngestError | None = None

    @property
    def record_count(self) -> int:
        """Number of retained records."""
        return len(self.records)

    @property
    def success(self) -> bool:
        return self.error is None
