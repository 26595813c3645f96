"""Unit tests for streaming source readers."""

from __future__ import annotations

import pytest

from core.errors import SourceUnavailableError
from ingest.record_reader import (
    AdditionalDataRecordSource,
    MalformedFieldCounter,
    SampleRecordSource,
    ZipCodeRecordSource,
    normalize_date,
    parse_optional_float,
    parse_optional_int,
)
from tests.fixture_paths import fixture_path
from tests.source_files import write_samples


def test_sample_source_maps_positional_columns() -> None:
    """Sample rows should map named fields from fixed positions."""
    records = list(SampleRecordSource(fixture_path("ucmr/samples.txt")))

    first = records[0]
    assert len(records) == 7
    assert (first.pwsid, first.pws_name, first.state, first.epa_region) == (
        "MA0000001",
        "Springfield Water Dept",
        "MA",
        1,
    )
    assert (first.contaminant, first.result_value, first.result_sign, first.mrl) == (
        "PFOA",
        5.0,
        "=",
        4.0,
    )
    assert (first.units, first.collection_date, first.sample_id) == ("ug/L", "2023-05-01", "S1")
    assert (first.size, first.monitoring_requirement, first.method_id) == ("L", "AM", "533")
    assert first.facility_name == "Plant 1"


def test_sample_source_normalizes_state_and_dates() -> None:
    """Lower-case states are upper-cased and empty states become UNKNOWN."""
    source = SampleRecordSource(fixture_path("ucmr/samples.txt"))
    records = {record.pwsid: record for record in source}

    assert records["CT0000003"].state == "CT"
    assert records["CT0000003"].collection_date == "2023-06-01"
    assert records["XX0000004"].state == "UNKNOWN"
    assert records["XX0000004"].epa_region is None


def test_sample_source_counts_malformed_fields() -> None:
    """Unparseable numbers become null and are counted, rows are kept."""
    source = SampleRecordSource(fixture_path("ucmr/samples.txt"))

    records = list(source)

    hartford = [record for record in records if record.pwsid == "CT0000003"]
    assert hartford[0].result_value is None
    assert source.malformed_field_count == 1


def test_sample_source_is_restartable() -> None:
    """Iterating twice should reread the file and reset the counter."""
    source = SampleRecordSource(fixture_path("ucmr/samples.txt"))

    first_pass = list(source)
    second_pass = list(source)

    assert first_pass == second_pass
    assert source.malformed_field_count == 1


def test_sample_source_short_line_counts_missing_segments(tmp_path) -> None:
    """Missing trailing segments become null and count as malformed."""
    samples_path = write_samples(tmp_path / "samples.txt", [{"pwsid": "MA1"}])
    with samples_path.open("a", encoding="latin-1") as handle:
        handle.write("MA2\tShort Row\tMA\n\n")
    source = SampleRecordSource(samples_path)

    records = list(source)

    assert [record.pwsid for record in records] == ["MA1", "MA2"]
    assert records[1].contaminant == ""
    assert records[1].method_id is None
    assert source.malformed_field_count == 15


def test_sample_source_missing_file_raises_error(tmp_path) -> None:
    """Missing sources should fail before any record is produced."""
    source = SampleRecordSource(tmp_path / "missing.txt")

    with pytest.raises(SourceUnavailableError, match="does not exist"):
        source.validate()
    with pytest.raises(SourceUnavailableError):
        list(source)


def test_sample_source_header_arity_mismatch_raises_error() -> None:
    """A header with the wrong field count should fail fast."""
    source = SampleRecordSource(fixture_path("ucmr/bad_header_samples.txt"))

    with pytest.raises(SourceUnavailableError, match="expected 24"):
        source.validate()


def test_zip_code_source_reads_pairs() -> None:
    """Postal code pairs should be read as stripped strings."""
    records = list(ZipCodeRecordSource(fixture_path("ucmr/zip_codes.txt")))

    assert len(records) == 7
    assert (records[0].pwsid, records[0].zipcode) == ("MA0000001", "01101")


def test_additional_source_reads_optional_text() -> None:
    """Empty supplementary cells should become null."""
    records = list(AdditionalDataRecordSource(fixture_path("ucmr/additional.txt")))

    assert records[0].data_element == "Disinfectant Type"
    assert records[0].other_text is None
    assert records[1].other_text == "Granular activated carbon"


def test_parse_optional_float_handles_edge_values() -> None:
    """Empty cells are null silently; junk and non-finite values are counted."""
    counter = MalformedFieldCounter()

    assert parse_optional_float(" 0.25 ", counter) == 0.25
    assert parse_optional_float("", counter) is None
    assert parse_optional_float("n/a", counter) is None
    assert parse_optional_float("inf", counter) is None
    assert counter.count == 2


def test_parse_optional_int_rejects_fractions() -> None:
    """Whole floats are accepted and fractions are malformed."""
    counter = MalformedFieldCounter()

    assert parse_optional_int("7.0", counter) == 7
    assert parse_optional_int("7.5", counter) is None
    assert counter.count == 1


def test_normalize_date_produces_fixed_width_iso() -> None:
    """Supported date layouts normalize to ``YYYY-MM-DD``."""
    counter = MalformedFieldCounter()

    assert normalize_date("2023-05-01", counter) == "2023-05-01"
    assert normalize_date("2023-05-01T13:45:00", counter) == "2023-05-01"
    assert normalize_date("5/1/2023", counter) == "2023-05-01"
    assert normalize_date("May 1 2023", counter) is None
    assert counter.count == 1
