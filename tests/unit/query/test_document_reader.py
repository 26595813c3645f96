"""Unit tests for the document read adapter."""

from __future__ import annotations

import pytest

from core.errors import WaterQQueryError
from core.types import QueryParams
from query.document_reader import DocumentReader
from store.document_store import DocumentStore
from tests.source_files import build_fixture_aggregate


@pytest.fixture
def documents_dir(tmp_path):
    DocumentStore(tmp_path).write(build_fixture_aggregate())
    return tmp_path


def test_search_by_state(documents_dir) -> None:
    """State queries should return that shard ordered by name."""
    page = DocumentReader(documents_dir).search(QueryParams(state="ma"))

    assert [system["pwsid"] for system in page.water_systems] == ["MA0000002", "MA0000001"]
    assert page.total == 2


def test_search_by_zipcode_resolves_shared_codes(documents_dir) -> None:
    """A postal code served by two systems should return both."""
    page = DocumentReader(documents_dir).search(QueryParams(zipcode="01101"))

    assert [system["name"] for system in page.water_systems] == [
        "Boston Water",
        "Springfield Water Dept",
    ]


def test_search_by_zipcode_loads_only_referenced_shards(
    documents_dir,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Postal code queries should not read unrelated shards."""
    loaded: list[str] = []
    reader = DocumentReader(documents_dir)
    original_load = reader._load_shard

    def _recording_load(state: str) -> list[dict[str, object]]:
        loaded.append(state)
        return original_load(state)

    monkeypatch.setattr(reader, "_load_shard", _recording_load)

    reader.search(QueryParams(zipcode="06101"))

    assert loaded == ["CT"]


def test_search_orphan_zipcode_returns_no_systems(documents_dir) -> None:
    """Orphan postal codes resolve to no published system."""
    page = DocumentReader(documents_dir).search(QueryParams(zipcode="99999"))

    assert page.total == 0
    assert page.has_more is False


def test_search_by_name_substring_and_pwsid(documents_dir) -> None:
    """Name and id filters should combine with AND."""
    reader = DocumentReader(documents_dir)

    by_name = reader.search(QueryParams(pws_name="water"))
    by_both = reader.search(QueryParams(pws_name="water", pwsid="xx0000004"))

    assert by_name.total == 3
    assert [system["state"] for system in by_both.water_systems] == ["UNKNOWN"]


def test_search_without_documents_raises_error(tmp_path) -> None:
    """Missing artifacts should raise a query error."""
    with pytest.raises(WaterQQueryError, match="does not exist"):
        DocumentReader(tmp_path / "missing").search(QueryParams(state="MA"))
