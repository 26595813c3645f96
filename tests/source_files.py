"""Helpers that build small UCMR-shaped sources and aggregates for tests."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

from aggregate.aggregation_context import AggregationContext
from aggregate.cross_reference import (
    CrossReferencedAggregate,
    collect_additional_data,
    finalize_aggregate,
    join_zip_codes,
)
from ingest.record_reader import (
    AdditionalDataRecordSource,
    SampleRecordSource,
    ZipCodeRecordSource,
)
from tests.fixture_paths import fixture_path

SAMPLE_HEADER = (
    "PWSID",
    "PWSName",
    "State",
    "Region",
    "Contaminant",
    "ContaminantGroup",
    "SampleEventCode",
    "AnalyticalResultValue",
    "AnalyticalResultsSign",
    "MRL",
    "Units",
    "CollectionDate",
    "SamplePointType",
    "SampleID",
    "FacilityID",
    "FacilityName",
    "SamplePointID",
    "SamplePointName",
    "FacilityWaterType",
    "AssociatedFacilityID",
    "AssociatedSamplePointID",
    "Size",
    "MonitoringRequirement",
    "MethodID",
)

_SAMPLE_POSITIONS = {
    "pwsid": 0,
    "pws_name": 1,
    "state": 2,
    "epa_region": 3,
    "contaminant": 4,
    "result_value": 7,
    "result_sign": 8,
    "mrl": 9,
    "units": 10,
    "collection_date": 11,
    "sample_id": 13,
    "facility_id": 14,
    "facility_name": 15,
    "sample_point_id": 16,
    "sample_point_name": 17,
    "size": 21,
    "monitoring_requirement": 22,
    "method_id": 23,
}

_SAMPLE_DEFAULTS = {
    "pws_name": "Test Water",
    "state": "MA",
    "epa_region": "1",
    "contaminant": "PFOA",
    "result_value": "",
    "result_sign": "<",
    "mrl": "4",
    "units": "ug/L",
    "collection_date": "2023-05-01",
    "sample_id": "S1",
    "size": "L",
}


def sample_line(**fields: str) -> str:
    """Build one 24-column samples line from named fields."""
    cells = [""] * len(SAMPLE_HEADER)
    for name, value in {**_SAMPLE_DEFAULTS, **fields}.items():
        cells[_SAMPLE_POSITIONS[name]] = value
    return "\t".join(cells)


def write_samples(path: Path, rows: Sequence[Mapping[str, str]]) -> Path:
    """Write a samples file with a header and one line per row."""
    lines = ["\t".join(SAMPLE_HEADER)] + [sample_line(**row) for row in rows]
    path.write_text("\n".join(lines) + "\n", encoding="latin-1")
    return path


def write_zip_codes(path: Path, pairs: Sequence[tuple[str, str]]) -> Path:
    """Write a postal code cross-reference file."""
    lines = ["PWSID\tZIPCODE"] + [f"{pwsid}\t{zipcode}" for pwsid, zipcode in pairs]
    path.write_text("\n".join(lines) + "\n", encoding="latin-1")
    return path


def build_fixture_aggregate(with_additional: bool = True) -> CrossReferencedAggregate:
    """Fold the bundled UCMR fixtures into a finished aggregate."""
    context = AggregationContext()
    context.fold_samples(SampleRecordSource(fixture_path("ucmr/samples.txt")))
    index = join_zip_codes(context, ZipCodeRecordSource(fixture_path("ucmr/zip_codes.txt")))
    supplementary = (
        collect_additional_data(
            context, AdditionalDataRecordSource(fixture_path("ucmr/additional.txt"))
        )
        if with_additional
        else None
    )
    return finalize_aggregate(context, index, supplementary)
