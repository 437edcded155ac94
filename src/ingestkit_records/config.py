"""Configuration model for the ingestkit-records pipeline.

Provides ``RecordParserConfig`` with every data-valued option of the record
parser.  Header labels are normalized once here (lower-cased and stripped) so
the rest of the pipeline can compare labels with a plain dict lookup.
Function-valued options (header predicate, record factory, per-record
callback, header-columns hook) are passed to
:class:`~ingestkit_records.parser.RecordParser` directly.

Supports loading from YAML or JSON files via the ``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ingestkit_records.errors import ConfigurationError


def normalize_label(label: object) -> str:
    """Lower-case and strip a header label."""
    return str(label).lower().strip()


class RecordParserConfig(BaseModel):
    """All tunable parameters of a record parse.

    Construction fails with :class:`ConfigurationError` on any invalid value,
    so a config that exists is always usable.
    """

    model_config = ConfigDict(extra="forbid")

    # --- Field mapping ---
    field_map: dict[str, str]
    required_fields: list[str] = []

    # --- Reading ---
    chunk_size: int | None = None
    worksheet: str | None = None
    max_header_scan_rows: int | None = None

    # --- Record building ---
    retain_records: bool = True
    write_null_values: bool = True

    # --- Logging / PII safety ---
    log_sample_data: bool = False

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    @field_validator("field_map")
    @classmethod
    def _normalize_field_map(cls, value: dict[str, str]) -> dict[str, str]:
        if not value:
            raise ValueError("field_map is required")
        normalized: dict[str, str] = {}
        for label, field in value.items():
            key = normalize_label(label)
            if not key:
                raise ValueError("field_map labels must not be blank")
            if not field:
                raise ValueError(f"field_map label '{label}' has no field name")
            if key in normalized:
                raise ValueError(f"field_map label '{label}' duplicates '{key}'")
            normalized[key] = field
        return normalized

    @field_validator("required_fields")
    @classmethod
    def _normalize_required(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for label in value:
            key = normalize_label(label)
            if key not in seen:
                seen.append(key)
        return seen

    @field_validator("chunk_size", "max_header_scan_rows")
    @classmethod
    def _positive(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @model_validator(mode="after")
    def _required_in_field_map(self) -> RecordParserConfig:
        unknown = [f for f in self.required_fields if f not in self.field_map]
        if unknown:
            raise ValueError(
                "required_fields not present in field_map: " + ", ".join(unknown)
            )
        return self

    @classmethod
    def from_file(cls, path: str) -> RecordParserConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ConfigurationError: If the extension is not recognized or the
                content is invalid.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ConfigurationError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping.")

        return cls(**data)
