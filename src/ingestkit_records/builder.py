"""Record building from data rows.

One record is created per data row through the record factory, which receives
the previously built record so that continuation rows can carry values
forward.  When a numeric cell lands on a field that already holds a number,
the two are added: a logical record whose totals are split across several
physical rows sums up instead of keeping only the last row.
"""

from __future__ import annotations

import logging
import numbers
from decimal import Decimal
from collections.abc import Callable, MutableMapping
from typing import Any

from openpyxl.utils.datetime import from_excel

from ingestkit_records.models import ParseResult, RowControl
from ingestkit_records.row_source import RowSource
from ingestkit_records.sheets import Sheet, SheetCell, SheetRow

RecordFactory = Callable[[Any], Any]
RecordCallback = Callable[[Any, int], Any]


class Record:
    """Default record type: a plain attribute bag."""

    def __init__(self, **fields: Any) -> None:
        self.__dict__.update(fields)

    def as_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self.__dict__ == other.__dict__

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"Record({fields})"


def get_field(record: Any, key: str) -> Any:
    if isinstance(record, MutableMapping):
        return record.get(key)
    return getattr(record, key, None)


def set_field(record: Any, key: str, value: Any) -> None:
    if isinstance(record, MutableMapping):
        record[key] = value
    else:
        setattr(record, key, value)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Number) and not isinstance(value, bool)


def _add(existing: Any, value: Any) -> Any:
    """Sum two numbers; a Decimal mixed with a binary float is summed as float."""
    if (isinstance(existing, Decimal) and isinstance(value, float)) or (
        isinstance(existing, float) and isinstance(value, Decimal)
    ):
        return float(existing) + float(value)
    return existing + value


def _date_value(value: Any) -> Any:
    """Convert a date-formatted serial number; datetimes pass through."""
    if _is_number(value):
        return from_excel(value)
    return value


class RecordBuilder:
    """Turn data rows into records.

    Parameters
    ----------
    record_factory:
        Called with the previous record (``None`` for the first row); returns
        a new record.
    on_record:
        Optional callback ``(record, row_index)``.  Returning
        :attr:`RowControl.STOP` ends the build; that record is not retained.
    write_null_values:
        When ``False``, empty cells leave the field untouched.
    retain_records:
        Append accepted records to ``ParseResult.records``.
    """

    def __init__(
        self,
        record_factory: RecordFactory,
        on_record: RecordCallback | None = None,
        write_null_values: bool = True,
        retain_records: bool = True,
        log_sample_data: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._record_factory = record_factory
        self._on_record = on_record
        self._write_null_values = write_null_values
        self._retain_records = retain_records
        self._log_sample_data = log_sample_data
        self._logger = logger if logger is not None else logging.getLogger("ingestkit_records")

    def build(
        self,
        source: RowSource,
        data_row_index: int,
        header_columns: dict[str, int],
        result: ParseResult,
    ) -> None:
        """Build records from *data_row_index* on, filling *result* in place."""
        previous: Any = None

        def visit(row: SheetRow, row_index: int, sheet: Sheet) -> RowControl:
            nonlocal previous
            record = self._record_factory(previous)
            if not self.fill_record(record, row_index, sheet, header_columns):
                self._logger.debug("Row %d is empty; end of data", row_index)
                return RowControl.STOP
            previous = record

            if self._on_record is not None:
                if self._on_record(record, row_index) is RowControl.STOP:
                    self._logger.warning(
                        "Record callback requested stop at row %d", row_index
                    )
                    result.stopped_by_callback = True
                    return RowControl.STOP

            result.rows_processed += 1
            if self._retain_records:
                result.records.append(record)
            if self._log_sample_data:
                self._logger.debug("Row %d -> %r", row_index, record)
            return RowControl.CONTINUE

        source.start_row = data_row_index
        source.for_each_row(visit)

    def fill_record(
        self,
        record: Any,
        row_index: int,
        sheet: Sheet,
        header_columns: dict[str, int],
    ) -> bool:
        """Assign mapped cells of one row onto *record*.

        Returns whether any mapped cell held a value.
        """
        has_any_value = False
        for key, column in header_columns.items():
            cell = sheet.cell(row_index, column)
            value = cell.value if cell is not None else None
            has_value = value is not None and value != ""
            has_any_value = has_any_value or has_value

            if not (self._write_null_values or has_value):
                continue
            set_field(record, key, self._coerce(record, key, cell, value))
        return has_any_value

    @staticmethod
    def _coerce(record: Any, key: str, cell: SheetCell | None, value: Any) -> Any:
        if cell is not None and cell.is_date and value is not None:
            return _date_value(value)
        if _is_number(value):
            existing = get_field(record, key)
            if _is_number(existing):
                return _add(existing, value)
        return value
