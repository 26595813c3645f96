"""Relational snapshot materialization.

This module bulk-loads the raw sample rows into SQLite through SQLAlchemy
Core and derives the per-system summary table with grouped queries. It
is a parallel projection of the same sources the aggregate was built
from, not a transformation of the document form.
"""

from __future__ import annotations

from dataclasses import asdict
import json
from pathlib import Path
from typing import Any, Iterable, Mapping

from sqlalchemy import and_, case, create_engine, distinct, event, func, select, text
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement

from core.constants import DEFAULT_INSERT_BATCH_SIZE, RESULT_SIGN_EXACT
from core.errors import WriteFailureError
from core.logging_config import get_logger
from core.types import AdditionalDataRecord, SampleRecord, ZipCodeRecord
from store.relational_schema import (
    ADDITIONAL_DATA,
    METADATA,
    PWS_SUMMARY,
    PWS_ZIPCODES,
    SECONDARY_INDICES,
    WATER_QUALITY,
)

_LOGGER = get_logger(__name__)


def create_sqlite_engine(database_path: Path) -> Engine:
    """Create an engine bound to one SQLite database file.

    Every connection gets a ``waterq_lower`` SQL function that folds case
    with Python rules, since SQLite's own ``lower`` only folds ASCII.
    """
    engine = create_engine(f"sqlite:///{database_path}")
    event.listen(engine, "connect", _register_sql_functions)
    return engine


def _register_sql_functions(dbapi_connection: Any, connection_record: Any) -> None:
    dbapi_connection.create_function("waterq_lower", 1, _unicode_lower, deterministic=True)


def _unicode_lower(value: object) -> object:
    return value.lower() if isinstance(value, str) else value


def exact_detection_clause() -> ColumnElement[bool]:
    """SQL form of the exact-result-with-value detection test."""
    return and_(
        WATER_QUALITY.c.result_sign == RESULT_SIGN_EXACT,
        WATER_QUALITY.c.result_value.is_not(None),
    )


class RelationalStore:
    """Writes the relational snapshot into one SQLite file."""

    def __init__(
        self,
        database_path: Path,
        insert_batch_size: int = DEFAULT_INSERT_BATCH_SIZE,
    ) -> None:
        self._database_path = database_path
        self._insert_batch_size = insert_batch_size

    def write(
        self,
        samples: Iterable[SampleRecord],
        zip_codes: Iterable[ZipCodeRecord] | None = None,
        additional: Iterable[AdditionalDataRecord] | None = None,
        expected_facility_count: int | None = None,
    ) -> int:
        """Load every table, derive summaries, index, and compact.

        Args:
            samples: Sample rows, re-streamed from the source.
            zip_codes: Optional postal code pairs.
            additional: Optional supplementary rows.
            expected_facility_count: Facility count of the streaming aggregate.

        Returns:
            Number of rows in the summary table.

        Raises:
            WriteFailureError: If the database cannot be written.
            SourceUnavailableError: If a source fails while re-streaming.
        """
        engine = create_sqlite_engine(self._database_path)
        try:
            METADATA.create_all(engine)
            sample_rows = self._insert_batches(
                engine, WATER_QUALITY.insert(), (asdict(record) for record in samples)
            )
            zip_code_rows = 0
            if zip_codes is not None:
                zip_code_rows = self._insert_batches(
                    engine,
                    sqlite_insert(PWS_ZIPCODES).on_conflict_do_nothing(),
                    (
                        {"pwsid": record.pwsid, "zipcode": record.zipcode}
                        for record in zip_codes
                        if record.pwsid and record.zipcode
                    ),
                )
            additional_rows = 0
            if additional is not None:
                additional_rows = self._insert_batches(
                    engine,
                    ADDITIONAL_DATA.insert(),
                    (asdict(record) for record in additional),
                )
            facility_count = self._insert_batches(
                engine, PWS_SUMMARY.insert(), _summary_rows(engine)
            )
            _create_secondary_indices(engine)
            _compact(engine)
        except SQLAlchemyError as error:
            raise WriteFailureError(
                f"Failed to write relational snapshot at {self._database_path}: {error}. "
                "Check write permissions and available disk space."
            ) from error
        finally:
            engine.dispose()
        if expected_facility_count is not None and facility_count != expected_facility_count:
            _LOGGER.warning(
                "relational_facility_mismatch",
                relational=facility_count,
                aggregate=expected_facility_count,
            )
        _LOGGER.info(
            "relational_staged",
            database_path=str(self._database_path),
            sample_rows=sample_rows,
            zip_code_rows=zip_code_rows,
            additional_rows=additional_rows,
            facility_count=facility_count,
        )
        return facility_count

    def _insert_batches(
        self,
        engine: Engine,
        statement: Any,
        rows: Iterable[Mapping[str, Any]],
    ) -> int:
        """Insert rows in fixed-size batches, one transaction per batch."""
        inserted = 0
        batch: list[Mapping[str, Any]] = []
        for row in rows:
            batch.append(row)
            if len(batch) >= self._insert_batch_size:
                inserted += _execute_batch(engine, statement, batch)
                batch = []
        if batch:
            inserted += _execute_batch(engine, statement, batch)
        return inserted


def _execute_batch(engine: Engine, statement: Any, batch: list[Mapping[str, Any]]) -> int:
    with engine.begin() as connection:
        connection.execute(statement, batch)
    return len(batch)


def _summary_rows(engine: Engine) -> list[dict[str, Any]]:
    """Compute one summary row per system with grouped queries."""
    wq = WATER_QUALITY.c
    grouped = (
        select(
            wq.pwsid,
            func.min(wq.id).label("first_id"),
            func.count(
                distinct(case((exact_detection_clause(), wq.contaminant)))
            ).label("contaminants_detected"),
            func.max(wq.collection_date).label("last_tested"),
            func.count(distinct(wq.sample_id)).label("total_samples"),
        )
        .group_by(wq.pwsid)
        .subquery()
    )
    # Descriptive fields come from the first row loaded for each system.
    summary_query = (
        select(
            grouped.c.pwsid,
            wq.pws_name,
            wq.state,
            wq.epa_region,
            wq.size,
            grouped.c.contaminants_detected,
            grouped.c.last_tested,
            grouped.c.total_samples,
        )
        .join_from(grouped, WATER_QUALITY, wq.id == grouped.c.first_id)
        .order_by(grouped.c.pwsid)
    )
    zip_query = select(PWS_ZIPCODES.c.pwsid, PWS_ZIPCODES.c.zipcode).order_by(
        PWS_ZIPCODES.c.pwsid, PWS_ZIPCODES.c.zipcode
    )
    with engine.connect() as connection:
        zip_codes_by_system: dict[str, list[str]] = {}
        for pwsid, zipcode in connection.execute(zip_query):
            zip_codes_by_system.setdefault(pwsid, []).append(zipcode)
        rows = []
        for row in connection.execute(summary_query).mappings():
            summary = dict(row)
            summary["zip_codes"] = json.dumps(zip_codes_by_system.get(row["pwsid"], []))
            rows.append(summary)
    return rows


def _create_secondary_indices(engine: Engine) -> None:
    with engine.begin() as connection:
        for index_name, table_name, column_name in SECONDARY_INDICES:
            connection.execute(
                text(f"CREATE INDEX IF NOT EXISTS {index_name} ON {table_name} ({column_name})")
            )


def _compact(engine: Engine) -> None:
    """Reclaim space left by bulk loading."""
    with engine.connect().execution_options(isolation_level="AUTOCOMMIT") as connection:
        connection.execute(text("VACUUM"))
