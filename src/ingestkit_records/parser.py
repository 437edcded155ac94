"""RecordParser -- orchestrator and public API for ingestkit-records.

Runs the three phases of a parse over one sheet:

1. Locate the header row and the first data row (:class:`HeaderLocator`).
2. Map header labels to logical field keys (:class:`FieldMapper`).
3. Build one record per data row (:class:`RecordBuilder`).

All three phases read rows through the same
:class:`~ingestkit_records.row_source.RowSource`, chosen once per parse: the
in-memory source for loaded sheets and unchunked files, the chunked source
when ``chunk_size`` is configured.

Setup problems raise :class:`ConfigurationError` from the constructor.  Any
exception raised while parsing is caught and returned as a failed
:class:`ParseResult` carrying only the error.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from ingestkit_records.builder import Record, RecordBuilder, RecordCallback, RecordFactory
from ingestkit_records.config import RecordParserConfig
from ingestkit_records.errors import (
    ConfigurationError,
    ErrorCode,
    IngestError,
    RecordParseError,
)
from ingestkit_records.header import HeaderLocator, HeaderPredicate
from ingestkit_records.loaders import detect_format
from ingestkit_records.mapper import FieldMapper, HeaderColumnsHook
from ingestkit_records.models import ParseResult
from ingestkit_records.row_source import RowSource, create_row_source
from ingestkit_records.sheets import Sheet, coerce_sheet


class RecordParser:
    """Parse one sheet into records.

    Parameters
    ----------
    config:
        Validated parser configuration.
    source:
        A file path (``.xlsx``/``.xlsm``/``.xltx``/``.xltm``/``.xls``) or an
        already-loaded sheet: an openpyxl worksheet, a pandas ``DataFrame``
        read with ``header=None``, or any
        :class:`~ingestkit_records.sheets.Sheet`.
    record_factory:
        ``factory(previous_record) -> record``.  Required unless
        *record_type* is given.
    record_type:
        Class instantiated with no arguments for every row when no factory is
        given.
    is_header_row:
        Header predicate; defaults to accepting every populated row.
    on_record:
        Per-record callback ``(record, row_index)``; returning
        :attr:`RowControl.STOP` ends the parse successfully.
    header_columns_hook:
        Transform applied once to the field -> column map.
    logger:
        Logger used for phase boundaries; defaults to ``ingestkit_records``.
    """

    def __init__(
        self,
        config: RecordParserConfig,
        source: str | Path | Any,
        record_factory: RecordFactory | None = None,
        record_type: type | None = None,
        is_header_row: HeaderPredicate | None = None,
        on_record: RecordCallback | None = None,
        header_columns_hook: HeaderColumnsHook | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if not isinstance(config, RecordParserConfig):
            raise ConfigurationError("config must be a RecordParserConfig")
        self._config = config
        self._logger = logger if logger is not None else logging.getLogger("ingestkit_records")

        if record_factory is None and record_type is None:
            raise ConfigurationError("record_factory or record_type is required")
        for name, value in (
            ("record_factory", record_factory),
            ("record_type", record_type),
            ("is_header_row", is_header_row),
            ("on_record", on_record),
            ("header_columns_hook", header_columns_hook),
        ):
            if value is not None and not callable(value):
                raise ConfigurationError(f"{name} must be callable")
        if record_factory is None:
            record_factory = _default_factory(record_type)

        self._file_path: Path | None = None
        self._sheet: Sheet | None = None
        if source is None:
            raise ConfigurationError("A file path or a loaded sheet is required")
        if isinstance(source, (str, Path)):
            detect_format(source)
            self._file_path = Path(source)
        else:
            try:
                self._sheet = coerce_sheet(source)
            except TypeError as exc:
                raise ConfigurationError(str(exc)) from exc
            if config.worksheet is not None:
                self._logger.warning(
                    "Config worksheet '%s' is ignored for an already-loaded sheet ('%s')",
                    config.worksheet,
                    self._sheet.title,
                )

        self._locator = HeaderLocator(
            is_header_row=is_header_row,
            max_scan_rows=config.max_header_scan_rows,
            logger=self._logger,
        )
        self._mapper = FieldMapper(
            field_map=config.field_map,
            required_fields=config.required_fields,
            header_columns_hook=header_columns_hook,
            logger=self._logger,
        )
        self._builder = RecordBuilder(
            record_factory=record_factory,
            on_record=on_record,
            write_null_values=config.write_null_values,
            retain_records=config.retain_records,
            log_sample_data=config.log_sample_data,
            logger=self._logger,
        )

    @property
    def config(self) -> RecordParserConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self) -> ParseResult:
        """Run locate -> map -> build and return a fresh result."""
        overall_start = time.monotonic()
        result = ParseResult()
        stage = "load"
        source_name = str(self._file_path) if self._file_path else "<sheet>"

        try:
            rows = self._create_row_source()
            result.sheet_name = rows.sheet_name

            stage = "locate_header"
            location = self._run_phase(stage, lambda: self._locator.locate(rows))
            result.header_row_index = location.header_row_index
            result.data_row_index = location.data_row_index

            stage = "map_header"
            mapping = self._run_phase(
                stage, lambda: self._mapper.map(rows, location.header_row_index)
            )
            result.missing_fields = mapping.missing_fields
            result.extra_fields = mapping.extra_fields
            result.parsed_header_labels = mapping.parsed_header_labels

            stage = "build_records"
            self._run_phase(
                stage,
                lambda: self._builder.build(
                    rows, location.data_row_index, mapping.header_columns, result
                ),
            )
        except Exception as exc:
            self._logger.exception(
                "Parse of %s failed during %s: %s", source_name, stage, exc
            )
            code = exc.code if isinstance(exc, RecordParseError) else ErrorCode.E_PARSE_UNEXPECTED
            return ParseResult(
                sheet_name=result.sheet_name,
                error=str(exc),
                error_detail=IngestError(
                    code=code,
                    message=str(exc),
                    sheet_name=result.sheet_name,
                    stage=stage,
                    recoverable=False,
                ),
            )

        self._logger.info(
            "Parsed %s sheet '%s': header=%d data=%d records=%d missing=%d extra=%d in %.3fs",
            source_name,
            result.sheet_name,
            result.header_row_index,
            result.data_row_index,
            result.rows_processed,
            len(result.missing_fields),
            len(result.extra_fields),
            time.monotonic() - overall_start,
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _create_row_source(self) -> RowSource:
        if self._sheet is not None:
            return create_row_source(sheet=self._sheet)
        return create_row_source(
            file_path=self._file_path,
            chunk_size=self._config.chunk_size,
            worksheet=self._config.worksheet,
        )

    def _run_phase(self, stage: str, phase: Any) -> Any:
        self._logger.debug("Begin %s", stage)
        start = time.monotonic()
        value = phase()
        self._logger.debug("End %s (%.3fs)", stage, time.monotonic() - start)
        return value


def _default_factory(record_type: type | None) -> RecordFactory:
    def factory(previous: Any) -> Any:
        return record_type()

    return factory


def parse_records(source: str | Path | Any, field_map: dict[str, str], **options: Any) -> ParseResult:
    """Parse *source* in one call.

    Keyword options are split between :class:`RecordParserConfig` fields and
    :class:`RecordParser` arguments.  Without ``record_factory`` or
    ``record_type``, records are :class:`~ingestkit_records.builder.Record`
    instances.
    """
    parser_keys = {
        "record_factory",
        "record_type",
        "is_header_row",
        "on_record",
        "header_columns_hook",
        "logger",
    }
    parser_kwargs = {k: v for k, v in options.items() if k in parser_keys}
    config_kwargs = {k: v for k, v in options.items() if k not in parser_keys}

    if "record_factory" not in parser_kwargs and "record_type" not in parser_kwargs:
        parser_kwargs["record_type"] = Record

    config = RecordParserConfig(field_map=field_map, **config_kwargs)
    return RecordParser(config, source, **parser_kwargs).parse()
