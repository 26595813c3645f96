"""Positional column contracts for the UCMR source files.

Each source file is described by one named schema table so that column
positions live in a single place instead of inline indices.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ColumnKind = Literal["key", "text", "region", "float", "int", "date"]


@dataclass(frozen=True)
class ColumnSpec:
    """One mapped source column.

    Attributes:
        name: Target record field name.
        position: Zero-based column position in the delimited line.
        kind: Coercion applied to the raw cell.
    """

    name: str
    position: int
    kind: ColumnKind


@dataclass(frozen=True)
class SourceSchema:
    """Column contract for one delimited source file.

    Attributes:
        source_name: Human readable name used in errors and logs.
        arity: Expected number of header fields.
        columns: Mapped columns; unlisted positions are ignored.
    """

    source_name: str
    arity: int
    columns: tuple[ColumnSpec, ...]


SAMPLE_SCHEMA = SourceSchema(
    source_name="samples",
    arity=24,
    columns=(
        ColumnSpec("pwsid", 0, "key"),
        ColumnSpec("pws_name", 1, "key"),
        ColumnSpec("state", 2, "region"),
        ColumnSpec("epa_region", 3, "int"),
        ColumnSpec("contaminant", 4, "key"),
        ColumnSpec("result_value", 7, "float"),
        ColumnSpec("result_sign", 8, "text"),
        ColumnSpec("mrl", 9, "float"),
        ColumnSpec("units", 10, "text"),
        ColumnSpec("collection_date", 11, "date"),
        ColumnSpec("sample_id", 13, "text"),
        ColumnSpec("facility_id", 14, "text"),
        ColumnSpec("facility_name", 15, "text"),
        ColumnSpec("sample_point_id", 16, "text"),
        ColumnSpec("sample_point_name", 17, "text"),
        ColumnSpec("size", 21, "text"),
        ColumnSpec("monitoring_requirement", 22, "text"),
        ColumnSpec("method_id", 23, "text"),
    ),
)

ZIP_CODE_SCHEMA = SourceSchema(
    source_name="zip_codes",
    arity=2,
    columns=(
        ColumnSpec("pwsid", 0, "key"),
        ColumnSpec("zipcode", 1, "key"),
    ),
)

ADDITIONAL_DATA_SCHEMA = SourceSchema(
    source_name="additional_data",
    arity=7,
    columns=(
        ColumnSpec("pwsid", 0, "key"),
        ColumnSpec("facility_id", 1, "text"),
        ColumnSpec("sample_point_id", 2, "text"),
        ColumnSpec("sample_event_code", 3, "text"),
        ColumnSpec("data_element", 4, "text"),
        ColumnSpec("response", 5, "text"),
        ColumnSpec("other_text", 6, "text"),
    ),
)
