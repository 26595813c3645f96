"""Unit tests for read-path validation and pagination."""

from __future__ import annotations

import pytest

from core.errors import WaterQQueryError
from core.types import QueryParams
from query.pagination import matches_filters, paginate, prepare_query


def _systems(count: int) -> list[dict[str, object]]:
    return [{"pwsid": f"MA{index:07d}", "name": f"System {index:02d}"} for index in range(count)]


def test_paginate_last_partial_page() -> None:
    """25 results with limit 10 and offset 20 should return 5 and stop."""
    page = paginate(_systems(25), QueryParams(state="MA", limit=10, offset=20))

    assert len(page.water_systems) == 5
    assert page.total == 25
    assert page.has_more is False


def test_paginate_middle_page() -> None:
    """25 results with limit 10 and offset 10 should return 10 and continue."""
    page = paginate(_systems(25), QueryParams(state="MA", limit=10, offset=10))

    assert len(page.water_systems) == 10
    assert page.water_systems[0]["pwsid"] == "MA0000010"
    assert page.has_more is True


def test_paginate_offset_past_end_returns_empty_page() -> None:
    """Offsets beyond the total return no rows and no further pages."""
    page = paginate(_systems(3), QueryParams(state="MA", limit=10, offset=30))

    assert page.water_systems == ()
    assert page.to_payload()["pagination"] == {
        "total": 3,
        "limit": 10,
        "offset": 30,
        "has_more": False,
    }


def test_prepare_query_requires_a_filter() -> None:
    """Queries with only blank filters should be rejected."""
    with pytest.raises(WaterQQueryError, match="at least one"):
        prepare_query(QueryParams(pws_name="   "))


@pytest.mark.parametrize(
    ("limit", "offset"),
    [(0, 0), (-1, 0), (10, -1)],
)
def test_prepare_query_rejects_invalid_pagination(limit: int, offset: int) -> None:
    """Limit must be positive and offset non-negative."""
    with pytest.raises(WaterQQueryError):
        prepare_query(QueryParams(state="MA", limit=limit, offset=offset))


def test_prepare_query_normalizes_ids_and_states() -> None:
    """Ids and states are upper-cased and trimmed."""
    prepared = prepare_query(QueryParams(pwsid=" ma0000001 ", state="ma", zipcode=" 01101"))

    assert (prepared.pwsid, prepared.state, prepared.zipcode) == ("MA0000001", "MA", "01101")


def test_matches_filters_combines_with_and() -> None:
    """All given filters must match, and name matching ignores case."""
    system = {
        "pwsid": "MA0000001",
        "name": "Springfield Water Dept",
        "state": "MA",
        "zip_codes": ["01101"],
    }

    assert matches_filters(system, QueryParams(pws_name="WATER", state="MA"))
    assert not matches_filters(system, QueryParams(pws_name="water", state="CT"))
    assert not matches_filters(system, QueryParams(zipcode="02108"))
