"""ingestkit-records -- map spreadsheet rows onto structured records.

Public API exports for the parser, configuration, models, errors, row sources,
and the sheet adapters.
"""

from ingestkit_records.builder import Record, RecordBuilder
from ingestkit_records.config import RecordParserConfig
from ingestkit_records.errors import (
    ConfigurationError,
    ErrorCode,
    HeaderNotFoundError,
    HeaderScanLimitError,
    IngestError,
    MissingRequiredColumnsError,
    NoSheetsError,
    RecordParseError,
    UnsupportedFormatError,
    WorksheetNotFoundError,
)
from ingestkit_records.header import HeaderLocator, accept_any_row, looks_like_header_row
from ingestkit_records.loaders import list_worksheet_info, load_sheet
from ingestkit_records.mapper import FieldMapper
from ingestkit_records.models import (
    HeaderLocation,
    HeaderMapping,
    ParseResult,
    RowControl,
    SheetFormat,
    WorksheetInfo,
)
from ingestkit_records.parser import RecordParser, parse_records
from ingestkit_records.read_filter import ReadWindowFilter
from ingestkit_records.row_source import (
    ChunkedRowSource,
    InMemoryRowSource,
    RowSource,
    create_row_source,
)
from ingestkit_records.sheets import (
    DataFrameSheet,
    GridSheet,
    Sheet,
    SheetCell,
    SheetRow,
    WorksheetSheet,
)

__all__ = [
    # Parser
    "RecordParser",
    "parse_records",
    # Config
    "RecordParserConfig",
    # Models
    "RowControl",
    "SheetFormat",
    "WorksheetInfo",
    "HeaderLocation",
    "HeaderMapping",
    "ParseResult",
    "Record",
    # Phases
    "HeaderLocator",
    "accept_any_row",
    "looks_like_header_row",
    "FieldMapper",
    "RecordBuilder",
    # Row sources
    "RowSource",
    "InMemoryRowSource",
    "ChunkedRowSource",
    "ReadWindowFilter",
    "create_row_source",
    # Sheets
    "Sheet",
    "SheetCell",
    "SheetRow",
    "GridSheet",
    "WorksheetSheet",
    "DataFrameSheet",
    "list_worksheet_info",
    "load_sheet",
    # Errors
    "ErrorCode",
    "IngestError",
    "RecordParseError",
    "ConfigurationError",
    "UnsupportedFormatError",
    "WorksheetNotFoundError",
    "NoSheetsError",
    "HeaderNotFoundError",
    "HeaderScanLimitError",
    "MissingRequiredColumnsError",
]
