"""Streaming readers for the tab-delimited source files.

This module turns source lines into typed records one line at a time.
Sources are restartable: each iteration reopens the file, so the same
source object can feed both the aggregation pass and the relational load.
"""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Any, Generic, Iterator, TypeVar

from core.constants import (
    DEFAULT_SOURCE_ENCODING,
    SOURCE_DELIMITER,
    UNKNOWN_REGION,
)
from core.errors import SourceUnavailableError
from core.types import AdditionalDataRecord, SampleRecord, ZipCodeRecord
from ingest.source_schema import (
    ADDITIONAL_DATA_SCHEMA,
    SAMPLE_SCHEMA,
    ZIP_CODE_SCHEMA,
    ColumnSpec,
    SourceSchema,
)

RecordT = TypeVar("RecordT")

_ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$")
_US_DATE_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})(?: .*)?$")


class MalformedFieldCounter:
    """Counts cells that were replaced with null during coercion."""

    def __init__(self) -> None:
        self.count = 0

    def record(self) -> None:
        """Count one malformed cell."""
        self.count += 1


def parse_optional_float(
    raw_value: str | None,
    counter: MalformedFieldCounter | None = None,
) -> float | None:
    """Parse a numeric cell permissively.

    Args:
        raw_value: Raw cell text.
        counter: Optional counter incremented for unparseable input.

    Returns:
        Parsed finite float, or ``None`` for empty and malformed cells.
    """
    text = (raw_value or "").strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        value = math.nan
    if math.isfinite(value):
        return value
    if counter is not None:
        counter.record()
    return None


def parse_optional_int(
    raw_value: str | None,
    counter: MalformedFieldCounter | None = None,
) -> int | None:
    """Parse an integer cell permissively, accepting ``7.0`` style input."""
    value = parse_optional_float(raw_value, counter)
    if value is None:
        return None
    if not value.is_integer():
        if counter is not None:
            counter.record()
        return None
    return int(value)


def normalize_date(
    raw_value: str | None,
    counter: MalformedFieldCounter | None = None,
) -> str | None:
    """Normalize a date cell to fixed-width ``YYYY-MM-DD``.

    Fixed width keeps plain string comparison chronological.

    Args:
        raw_value: Raw cell text.
        counter: Optional counter incremented for unrecognized formats.

    Returns:
        ISO date string, or ``None`` for empty and unrecognized input.
    """
    text = (raw_value or "").strip()
    if not text:
        return None
    iso_match = _ISO_DATE_PATTERN.match(text)
    if iso_match:
        year, month, day = iso_match.groups()
        return f"{year}-{month}-{day}"
    us_match = _US_DATE_PATTERN.match(text)
    if us_match:
        month, day, year = us_match.groups()
        return f"{year}-{int(month):02d}-{int(day):02d}"
    if counter is not None:
        counter.record()
    return None


class DelimitedRecordSource(Generic[RecordT]):
    """Restartable, line-streaming reader for one source file.

    The header line is checked against the schema arity and never emitted.
    Every following non-blank line becomes one record.
    """

    def __init__(
        self,
        path: str | Path,
        schema: SourceSchema,
        encoding: str = DEFAULT_SOURCE_ENCODING,
    ) -> None:
        self._path = Path(path).expanduser()
        self._schema = schema
        self._encoding = encoding
        self._counter = MalformedFieldCounter()

    @property
    def path(self) -> Path:
        """Source file path."""
        return self._path

    @property
    def malformed_field_count(self) -> int:
        """Malformed cells seen during the most recent iteration."""
        return self._counter.count

    def validate(self) -> None:
        """Check that the source exists and its header matches the schema.

        Raises:
            SourceUnavailableError: If the file is missing, unreadable, or mis-shaped.
        """
        self._ensure_exists()
        try:
            with self._path.open("r", encoding=self._encoding, newline="") as handle:
                self._check_header(handle.readline())
        except (OSError, UnicodeDecodeError) as error:
            raise self._read_error(error) from error

    def __iter__(self) -> Iterator[RecordT]:
        self._ensure_exists()
        self._counter = MalformedFieldCounter()
        try:
            with self._path.open("r", encoding=self._encoding, newline="") as handle:
                self._check_header(handle.readline())
                for line in handle:
                    stripped_line = line.rstrip("\r\n")
                    if not stripped_line.strip():
                        continue
                    yield self._build_record(self._map_fields(stripped_line))
        except (OSError, UnicodeDecodeError) as error:
            raise self._read_error(error) from error

    def _build_record(self, fields: dict[str, Any]) -> RecordT:
        raise NotImplementedError

    def _ensure_exists(self) -> None:
        if not self._path.is_file():
            raise SourceUnavailableError(
                f"Failed to read {self._schema.source_name} source at {self._path}: "
                "file does not exist. Provide the extracted UCMR text file."
            )

    def _check_header(self, header_line: str) -> None:
        header = header_line.rstrip("\r\n")
        if not header:
            raise SourceUnavailableError(
                f"Failed to read {self._schema.source_name} source at {self._path}: "
                "missing header line. Provide a non-empty tab-delimited file."
            )
        field_count = len(header.split(SOURCE_DELIMITER))
        if field_count != self._schema.arity:
            raise SourceUnavailableError(
                f"Unexpected {self._schema.source_name} header at {self._path}: "
                f"expected {self._schema.arity} tab-delimited fields, got {field_count}. "
                "Check that the file matches the published column layout."
            )

    def _map_fields(self, line: str) -> dict[str, Any]:
        cells = line.split(SOURCE_DELIMITER)
        return {column.name: self._coerce(column, cells) for column in self._schema.columns}

    def _coerce(self, column: ColumnSpec, cells: list[str]) -> Any:
        if column.position >= len(cells):
            self._counter.record()
            raw_value = None
        else:
            raw_value = cells[column.position]
        if column.kind == "float":
            return parse_optional_float(raw_value, self._counter)
        if column.kind == "int":
            return parse_optional_int(raw_value, self._counter)
        if column.kind == "date":
            return normalize_date(raw_value, self._counter)
        text = (raw_value or "").strip()
        if column.kind == "key":
            return text
        if column.kind == "region":
            return text.upper() or UNKNOWN_REGION
        return text or None

    def _read_error(self, error: Exception) -> SourceUnavailableError:
        return SourceUnavailableError(
            f"Failed to read {self._schema.source_name} source at {self._path}: {error}. "
            "Check file permissions and encoding, then rerun the build."
        )


class SampleRecordSource(DelimitedRecordSource[SampleRecord]):
    """Samples file reader yielding ``SampleRecord`` values."""

    def __init__(self, path: str | Path, encoding: str = DEFAULT_SOURCE_ENCODING) -> None:
        super().__init__(path, SAMPLE_SCHEMA, encoding)

    def _build_record(self, fields: dict[str, Any]) -> SampleRecord:
        return SampleRecord(**fields)


class ZipCodeRecordSource(DelimitedRecordSource[ZipCodeRecord]):
    """Postal code cross-reference reader."""

    def __init__(self, path: str | Path, encoding: str = DEFAULT_SOURCE_ENCODING) -> None:
        super().__init__(path, ZIP_CODE_SCHEMA, encoding)

    def _build_record(self, fields: dict[str, Any]) -> ZipCodeRecord:
        return ZipCodeRecord(**fields)


class AdditionalDataRecordSource(DelimitedRecordSource[AdditionalDataRecord]):
    """Supplementary data element reader."""

    def __init__(self, path: str | Path, encoding: str = DEFAULT_SOURCE_ENCODING) -> None:
        super().__init__(path, ADDITIONAL_DATA_SCHEMA, encoding)

    def _build_record(self, fields: dict[str, Any]) -> AdditionalDataRecord:
        return AdditionalDataRecord(**fields)
