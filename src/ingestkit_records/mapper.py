"""Header-row mapping: header cell text to logical field keys."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from ingestkit_records.config import normalize_label
from ingestkit_records.errors import MissingRequiredColumnsError
from ingestkit_records.models import HeaderMapping, RowControl
from ingestkit_records.row_source import RowSource
from ingestkit_records.sheets import Sheet, SheetRow

HeaderColumnsHook = Callable[[dict[str, int]], Mapping[str, int]]


def cell_label(value: Any) -> str:
    """Render a header cell value as a normalized label.

    Integral floats lose their ``.0`` so a numeric header ``2024.0`` matches
    the label ``"2024"``.
    """
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return normalize_label(value)


class FieldMapper:
    """Match the header row against a normalized field map.

    Parameters
    ----------
    field_map:
        Normalized label -> logical field key (see
        :class:`~ingestkit_records.config.RecordParserConfig`).
    required_fields:
        Normalized labels that must be present.
    header_columns_hook:
        Optional transform applied once to the column map, e.g. to add
        synthetic columns.
    """

    def __init__(
        self,
        field_map: dict[str, str],
        required_fields: list[str] | None = None,
        header_columns_hook: HeaderColumnsHook | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._field_map = field_map
        self._required_fields = list(required_fields or [])
        self._hook = header_columns_hook
        self._logger = logger if logger is not None else logging.getLogger("ingestkit_records")

    def map(self, source: RowSource, header_row_index: int) -> HeaderMapping:
        header_columns: dict[str, int] = {}
        extra_fields: list[str] = []
        found: set[str] = set()

        def visit(row: SheetRow, row_index: int, sheet: Sheet) -> RowControl:
            for cell in row.cells:
                label = cell_label(cell.value)
                if label in self._field_map:
                    header_columns[self._field_map[label]] = cell.column
                    found.add(label)
                else:
                    extra_fields.append(label)
            return RowControl.STOP

        source.start_row = header_row_index
        source.for_each_row(visit)

        missing_fields = [label for label in self._field_map if label not in found]
        required_missing = [f for f in missing_fields if f in self._required_fields]
        if required_missing:
            raise MissingRequiredColumnsError(required_missing)

        if missing_fields:
            self._logger.info("Columns not found in header: %s", ", ".join(missing_fields))
        if extra_fields:
            self._logger.info("Unmapped header columns: %s", ", ".join(extra_fields))

        if self._hook is not None:
            transformed = self._hook(dict(header_columns))
            if not isinstance(transformed, Mapping):
                raise TypeError(
                    "header_columns_hook must return a mapping, got "
                    f"{type(transformed).__name__}"
                )
            header_columns = dict(transformed)

        return HeaderMapping(
            header_columns=header_columns,
            missing_fields=missing_fields,
            extra_fields=extra_fields,
            found_fields=[label for label in self._field_map if label in found],
        )
