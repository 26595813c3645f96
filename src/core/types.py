"""Shared typed models.

This module defines immutable data models used by ingest, aggregation,
store, and query layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from core.constants import DEFAULT_QUERY_LIMIT, OUTPUT_FORMAT_BOTH


@dataclass(frozen=True)
class SampleRecord:
    """One parsed row of the samples file.

    Attributes:
        pwsid: Public water system id (facility id).
        pws_name: Water system display name.
        state: Region code used for sharding.
        epa_region: EPA region number when parseable.
        contaminant: Contaminant name.
        result_value: Analytical result, null when absent or malformed.
        result_sign: ``=`` for exact results, ``<`` for below reporting limit.
        mrl: Method reporting limit.
        units: Result units.
        collection_date: ISO ``YYYY-MM-DD`` collection date.
        sample_id: Sample identifier shared across contaminants.
        facility_id: Treatment facility identifier.
        facility_name: Treatment facility name.
        sample_point_id: Sample point identifier.
        sample_point_name: Sample point name.
        size: System size class.
        monitoring_requirement: Monitoring requirement code.
        method_id: Analytical method identifier.
    """

    pwsid: str
    pws_name: str
    state: str
    epa_region: int | None
    contaminant: str
    result_value: float | None
    result_sign: str | None
    mrl: float | None
    units: str | None
    collection_date: str | None
    sample_id: str | None
    facility_id: str | None = None
    facility_name: str | None = None
    sample_point_id: str | None = None
    sample_point_name: str | None = None
    size: str | None = None
    monitoring_requirement: str | None = None
    method_id: str | None = None


@dataclass(frozen=True)
class ZipCodeRecord:
    """One facility to postal code mapping row."""

    pwsid: str
    zipcode: str


@dataclass(frozen=True)
class AdditionalDataRecord:
    """One supplementary data element response row."""

    pwsid: str
    facility_id: str | None
    sample_point_id: str | None
    sample_event_code: str | None
    data_element: str | None
    response: str | None
    other_text: str | None


@dataclass(frozen=True)
class BuildOptions:
    """Build command options.

    Attributes:
        samples_path: Samples file path (required).
        zip_codes_path: Optional postal code cross-reference file path.
        additional_path: Optional supplementary response file path.
        output_format: ``documents``, ``relational``, or ``both``.
    """

    samples_path: str
    zip_codes_path: str | None = None
    additional_path: str | None = None
    output_format: str = OUTPUT_FORMAT_BOTH


@dataclass(frozen=True)
class BuildResult:
    """Summary of one completed pipeline run.

    Attributes:
        sample_rows: Number of sample rows folded.
        facility_count: Number of distinct facilities.
        region_count: Number of region shards.
        postal_code_count: Number of distinct postal codes indexed.
        malformed_field_count: Fields replaced with null during parsing.
        orphan_zip_code_count: Postal code pairs for unknown facilities.
        orphan_additional_count: Supplementary rows for unknown facilities.
        documents_dir: Published document directory, when written.
        database_path: Published relational snapshot, when written.
    """

    sample_rows: int
    facility_count: int
    region_count: int
    postal_code_count: int
    malformed_field_count: int
    orphan_zip_code_count: int
    orphan_additional_count: int
    documents_dir: str | None = None
    database_path: str | None = None


@dataclass(frozen=True)
class QueryParams:
    """Read-path filter and pagination parameters."""

    pwsid: str | None = None
    pws_name: str | None = None
    state: str | None = None
    zipcode: str | None = None
    limit: int = DEFAULT_QUERY_LIMIT
    offset: int = 0


@dataclass(frozen=True)
class QueryPage:
    """One page of read-path results.

    Attributes:
        water_systems: Summary payloads on this page.
        total: Total number of matching systems.
        limit: Requested page size.
        offset: Requested page offset.
        has_more: Whether results exist past this page.
    """

    water_systems: tuple[Mapping[str, Any], ...]
    total: int
    limit: int
    offset: int
    has_more: bool

    def to_payload(self) -> dict[str, Any]:
        """Render the page as a JSON-safe response body."""
        return {
            "water_systems": [dict(system) for system in self.water_systems],
            "pagination": {
                "total": self.total,
                "limit": self.limit,
                "offset": self.offset,
                "has_more": self.has_more,
            },
        }
