"""Read adapter over the relational snapshot.

Contaminant maps are rebuilt with grouped queries over the raw sample
table and then run through the same dominance rule and payload builder
as the document form, so both readers return identical payloads.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError

from aggregate.contaminant_observation import ContaminantObservation, dominant_by_contaminant
from core.errors import WaterQQueryError
from core.types import QueryPage, QueryParams
from query.pagination import build_page, prepare_query
from store.relational_schema import PWS_SUMMARY, PWS_ZIPCODES, WATER_QUALITY
from store.relational_store import create_sqlite_engine, exact_detection_clause
from store.summary_payload import build_system_payload


class RelationalReader:
    """Answers read queries from a published SQLite snapshot."""

    def __init__(self, database_path: Path) -> None:
        self._database_path = database_path

    def search(self, params: QueryParams) -> QueryPage:
        """Resolve one filtered, paginated query.

        Args:
            params: Filters and pagination.

        Returns:
            Page of summary payloads ordered by name, then id.

        Raises:
            WaterQQueryError: If the query is invalid or the snapshot is missing.
        """
        prepared = prepare_query(params)
        if not self._database_path.is_file():
            raise WaterQQueryError(
                f"Failed to open relational snapshot at {self._database_path}: "
                "file does not exist. "
                "Run 'waterq build' with --format relational or both first."
            )
        engine = create_sqlite_engine(self._database_path)
        try:
            with engine.connect() as connection:
                conditions = _filter_conditions(prepared)
                total = connection.execute(
                    select(func.count()).select_from(PWS_SUMMARY).where(*conditions)
                ).scalar_one()
                summary_rows = connection.execute(
                    select(PWS_SUMMARY)
                    .where(*conditions)
                    .order_by(PWS_SUMMARY.c.pws_name, PWS_SUMMARY.c.pwsid)
                    .limit(prepared.limit)
                    .offset(prepared.offset)
                ).mappings().all()
                observations = _load_observations(
                    connection, [row["pwsid"] for row in summary_rows]
                )
        except SQLAlchemyError as error:
            raise WaterQQueryError(
                f"Failed to query relational snapshot at {self._database_path}: {error}. "
                "Rebuild the relational artifact."
            ) from error
        finally:
            engine.dispose()
        systems = [
            build_system_payload(
                pwsid=row["pwsid"],
                name=row["pws_name"],
                state=row["state"],
                region=row["epa_region"],
                size=row["size"],
                zip_codes=json.loads(row["zip_codes"]),
                contaminants=dominant_by_contaminant(observations.get(row["pwsid"], [])),
                contaminants_detected=row["contaminants_detected"],
                last_tested=row["last_tested"],
                total_samples=row["total_samples"],
            )
            for row in summary_rows
        ]
        return build_page(systems, total, prepared)


def _filter_conditions(params: QueryParams) -> list[Any]:
    """Translate query filters into AND-combined SQL conditions."""
    conditions: list[Any] = []
    if params.pwsid:
        conditions.append(PWS_SUMMARY.c.pwsid == params.pwsid)
    if params.state:
        conditions.append(PWS_SUMMARY.c.state == params.state)
    if params.pws_name:
        conditions.append(
            func.waterq_lower(PWS_SUMMARY.c.pws_name).like(
                f"%{_escape_like(params.pws_name.lower())}%", escape="\\"
            )
        )
    if params.zipcode:
        conditions.append(
            PWS_SUMMARY.c.pwsid.in_(
                select(PWS_ZIPCODES.c.pwsid).where(PWS_ZIPCODES.c.zipcode == params.zipcode)
            )
        )
    return conditions


def _load_observations(
    connection: Any,
    pwsids: list[str],
) -> dict[str, list[ContaminantObservation]]:
    """Group raw samples into observations for the given systems."""
    if not pwsids:
        return {}
    wq = WATER_QUALITY.c
    detected = exact_detection_clause()
    query = (
        select(
            wq.pwsid,
            wq.contaminant,
            wq.units,
            wq.mrl,
            func.max(case((detected, 1), else_=0)).label("detected"),
            func.max(case((detected, wq.result_value))).label("max_value"),
            func.count().label("test_count"),
            func.max(wq.collection_date).label("latest_test"),
        )
        .where(wq.pwsid.in_(pwsids))
        .group_by(wq.pwsid, wq.contaminant, wq.units, wq.mrl)
    )
    observations: dict[str, list[ContaminantObservation]] = {}
    for row in connection.execute(query).mappings():
        observations.setdefault(row["pwsid"], []).append(
            ContaminantObservation(
                contaminant=row["contaminant"],
                units=row["units"],
                mrl=row["mrl"],
                detected=bool(row["detected"]),
                max_value=row["max_value"],
                test_count=row["test_count"],
                latest_test=row["latest_test"],
            )
        )
    return observations


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
