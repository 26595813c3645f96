"""Query validation and pagination helpers.

This module holds the read contract shared by both readers so that a
query behaves the same whichever output form is deployed.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Sequence

from core.errors import WaterQQueryError
from core.types import QueryPage, QueryParams


def prepare_query(params: QueryParams) -> QueryParams:
    """Normalize and validate read query parameters.

    Args:
        params: Raw query parameters.

    Returns:
        Parameters with ids and state codes upper-cased and blanks dropped.

    Raises:
        WaterQQueryError: If no filter is given or pagination is invalid.
    """
    prepared = replace(
        params,
        pwsid=_clean(params.pwsid, upper=True),
        pws_name=_clean(params.pws_name),
        state=_clean(params.state, upper=True),
        zipcode=_clean(params.zipcode),
    )
    if not any((prepared.pwsid, prepared.pws_name, prepared.state, prepared.zipcode)):
        raise WaterQQueryError(
            "Invalid query: no filter given. "
            "Provide at least one of pwsid, pws_name, state, or zipcode."
        )
    if prepared.limit < 1:
        raise WaterQQueryError(
            f"Invalid query limit: expected value >= 1, got {prepared.limit}. "
            "Use a positive page size."
        )
    if prepared.offset < 0:
        raise WaterQQueryError(
            f"Invalid query offset: expected value >= 0, got {prepared.offset}. "
            "Use a non-negative offset."
        )
    return prepared


def matches_filters(system: Mapping[str, Any], params: QueryParams) -> bool:
    """Return whether a summary payload satisfies every given filter."""
    if params.pwsid and system["pwsid"] != params.pwsid:
        return False
    if params.state and system["state"] != params.state:
        return False
    if params.pws_name and params.pws_name.lower() not in system["name"].lower():
        return False
    if params.zipcode and params.zipcode not in system["zip_codes"]:
        return False
    return True


def build_page(
    systems: Sequence[Mapping[str, Any]],
    total: int,
    params: QueryParams,
) -> QueryPage:
    """Wrap one page of payloads with pagination metadata."""
    return QueryPage(
        water_systems=tuple(systems),
        total=total,
        limit=params.limit,
        offset=params.offset,
        has_more=params.offset + params.limit < total,
    )


def paginate(systems: Sequence[Mapping[str, Any]], params: QueryParams) -> QueryPage:
    """Slice an already ordered result list into one page."""
    page = systems[params.offset : params.offset + params.limit]
    return build_page(page, len(systems), params)


def _clean(value: str | None, upper: bool = False) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    return cleaned.upper() if upper else cleaned
