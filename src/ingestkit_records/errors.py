"""Normalized error codes, structured error model, and exceptions for ingestkit-records.

``ErrorCode`` holds stable string codes for every failure the record parser can
report.  ``IngestError`` is the structured copy stored on a
:class:`~ingestkit_records.models.ParseResult`.  The exception hierarchy is
rooted at :class:`RecordParseError`; every subclass carries its ``code`` so the
parser can convert a raised exception into an ``IngestError`` without a lookup
table.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Normalized error codes for the ingestkit-records pipeline.

    Values equal their names so they are stable strings suitable for metrics,
    alerting, and programmatic handling.
    """

    # Configuration errors (raised at setup, never stored on a result)
    E_CONFIG_INVALID = "E_CONFIG_INVALID"
    E_FORMAT_UNSUPPORTED = "E_FORMAT_UNSUPPORTED"

    # Workbook errors
    E_WORKSHEET_NOT_FOUND = "E_WORKSHEET_NOT_FOUND"
    E_NO_SHEETS = "E_NO_SHEETS"

    # Header errors
    E_HEADER_NOT_FOUND = "E_HEADER_NOT_FOUND"
    E_HEADER_SCAN_LIMIT = "E_HEADER_SCAN_LIMIT"
    E_COLUMNS_MISSING_REQUIRED = "E_COLUMNS_MISSING_REQUIRED"

    # Anything else raised while parsing
    E_PARSE_UNEXPECTED = "E_PARSE_UNEXPECTED"


class IngestError(BaseModel):
    """Structured error with code, message, and context.

    ``stage`` names the pipeline phase that failed (``load``,
    ``locate_header``, ``map_header`` or ``build_records``).
    """

    code: ErrorCode
    message: str
    sheet_name: str | None = None
    stage: str | None = None
    recoverable: bool = False


class RecordParseError(Exception):
    """Base class for every error raised by ingestkit-records."""

    code: ErrorCode = ErrorCode.E_PARSE_UNEXPECTED


class ConfigurationError(RecordParseError):
    """Invalid or missing setup options. Raised before any row is read."""

    code = ErrorCode.E_CONFIG_INVALID


class UnsupportedFormatError(ConfigurationError):
    """The file extension does not map to a known spreadsheet reader."""

    code = ErrorCode.E_FORMAT_UNSUPPORTED


class WorksheetNotFoundError(RecordParseError):
    """The requested worksheet name is not present in the workbook."""

    code = ErrorCode.E_WORKSHEET_NOT_FOUND

    def __init__(self, worksheet: str, available: list[str] | None = None) -> None:
        self.worksheet = worksheet
        self.available = list(available or [])
        message = f"Worksheet '{worksheet}' not found"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class NoSheetsError(RecordParseError):
    """The workbook has no readable sheets."""

    code = ErrorCode.E_NO_SHEETS

    def __init__(self, message: str = "No sheets with data were found.") -> None:
        super().__init__(message)


class HeaderNotFoundError(RecordParseError):
    """No row was accepted as a header row."""

    code = ErrorCode.E_HEADER_NOT_FOUND

    def __init__(
        self,
        message: str = "Invalid file layout: could not determine the header row.",
    ) -> None:
        super().__init__(message)


class HeaderScanLimitError(RecordParseError):
    """A header candidate was never confirmed within the configured row bound."""

    code = ErrorCode.E_HEADER_SCAN_LIMIT

    def __init__(self, header_row_index: int, limit: int) -> None:
        self.header_row_index = header_row_index
        self.limit = limit
        super().__init__(
            f"Header candidate at row {header_row_index} was not confirmed by an "
            f"aligned data row within {limit} populated rows."
        )


class MissingRequiredColumnsError(RecordParseError):
    """One or more required columns are absent from the header row."""

    code = ErrorCode.E_COLUMNS_MISSING_REQUIRED

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        super().__init__(
            "Missing the following required columns: " + ", ".join(self.fields)
        )
