"""Cross-reference joins over the finished sample aggregate.

This module folds the postal code and supplementary streams into the
aggregate and into independent indices. Orphan references (ids never
seen in the samples stream) stay in the indices but never touch a
system summary.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable

from aggregate.aggregation_context import AggregationContext, BuildStats, WaterSystemSummary
from core.logging_config import get_logger
from core.types import AdditionalDataRecord, ZipCodeRecord

_LOGGER = get_logger(__name__)

PostalCodeEntry = tuple[str, str | None]
RegionIndex = dict[str, int]


class PostalCodeIndex:
    """Many-to-many postal code to (system id, state) index."""

    def __init__(self) -> None:
        self._entries: dict[str, set[PostalCodeEntry]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, zipcode: str, pwsid: str, state: str | None) -> None:
        """Add one postal code pair; duplicates collapse."""
        self._entries.setdefault(zipcode, set()).add((pwsid, state))

    def lookup(self, zipcode: str) -> list[PostalCodeEntry]:
        """Return entries for one postal code ordered by system id."""
        return sorted(self._entries.get(zipcode, set()), key=_entry_sort_key)

    def to_payload(self) -> dict[str, list[dict[str, str | None]]]:
        """Serialize as postal code to sorted ``{pwsid, state}`` lists."""
        return {
            zipcode: [
                {"pwsid": pwsid, "state": state}
                for pwsid, state in sorted(self._entries[zipcode], key=_entry_sort_key)
            ]
            for zipcode in sorted(self._entries)
        }


class SupplementaryCollection:
    """Supplementary data element rows grouped by system id."""

    def __init__(self) -> None:
        self._records: dict[str, list[AdditionalDataRecord]] = {}

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())

    def add(self, record: AdditionalDataRecord) -> None:
        """Retain one supplementary row, in file order per system."""
        self._records.setdefault(record.pwsid, []).append(record)

    def records_for(self, pwsid: str) -> list[AdditionalDataRecord]:
        """Return supplementary rows for one system."""
        return list(self._records.get(pwsid, []))

    def to_payload(self) -> dict[str, list[dict[str, str | None]]]:
        """Serialize as system id to row payload lists."""
        payload: dict[str, list[dict[str, str | None]]] = {}
        for pwsid in sorted(self._records):
            rows = []
            for record in self._records[pwsid]:
                row = asdict(record)
                row.pop("pwsid")
                rows.append(row)
            payload[pwsid] = rows
        return payload


@dataclass(frozen=True)
class CrossReferencedAggregate:
    """Finished aggregate handed to the materializers.

    Attributes:
        summaries: System summaries ordered by name, then id.
        region_index: State to system count.
        postal_code_index: Postal code lookups, orphans included.
        supplementary: Supplementary rows, or ``None`` without a source.
        stats: Counters gathered while folding the sources.
    """

    summaries: tuple[WaterSystemSummary, ...]
    region_index: RegionIndex
    postal_code_index: PostalCodeIndex
    supplementary: SupplementaryCollection | None
    stats: BuildStats

    def summaries_by_region(self) -> dict[str, list[WaterSystemSummary]]:
        """Group summaries into per-state shards, preserving name order."""
        shards: dict[str, list[WaterSystemSummary]] = {}
        for summary in self.summaries:
            shards.setdefault(summary.state, []).append(summary)
        return {state: shards[state] for state in sorted(shards)}


def join_zip_codes(
    context: AggregationContext,
    records: Iterable[ZipCodeRecord],
) -> PostalCodeIndex:
    """Join postal code pairs into summaries and the postal code index.

    Args:
        context: Finished samples aggregate.
        records: Postal code pairs.

    Returns:
        Postal code index containing every pair, orphans included.
    """
    index = PostalCodeIndex()
    stats = context.stats
    for record in records:
        stats.zip_code_rows += 1
        if not record.pwsid or not record.zipcode:
            stats.skipped_zip_codes += 1
            continue
        summary = context.get(record.pwsid)
        if summary is None:
            stats.orphan_zip_codes += 1
            index.add(record.zipcode, record.pwsid, None)
            continue
        summary.zip_codes.add(record.zipcode)
        index.add(record.zipcode, record.pwsid, summary.state)
    _LOGGER.info(
        "zip_codes_joined",
        rows=stats.zip_code_rows,
        postal_codes=len(index),
        skipped=stats.skipped_zip_codes,
    )
    if stats.orphan_zip_codes:
        _LOGGER.info(
            "orphan_references_dropped",
            source="zip_codes",
            count=stats.orphan_zip_codes,
        )
    return index


def collect_additional_data(
    context: AggregationContext,
    records: Iterable[AdditionalDataRecord],
) -> SupplementaryCollection:
    """Fold supplementary rows into an auxiliary collection.

    Args:
        context: Finished samples aggregate, used to count orphans.
        records: Supplementary data element rows.

    Returns:
        Collection keyed by system id, orphans included.
    """
    collection = SupplementaryCollection()
    stats = context.stats
    for record in records:
        stats.additional_rows += 1
        if record.pwsid not in context:
            stats.orphan_additional += 1
        collection.add(record)
    _LOGGER.info("additional_data_collected", rows=stats.additional_rows)
    if stats.orphan_additional:
        _LOGGER.info(
            "orphan_references_dropped",
            source="additional_data",
            count=stats.orphan_additional,
        )
    return collection


def build_region_index(summaries: Iterable[WaterSystemSummary]) -> RegionIndex:
    """Count systems per state, keyed in sorted order."""
    counts: dict[str, int] = {}
    for summary in summaries:
        counts[summary.state] = counts.get(summary.state, 0) + 1
    return {state: counts[state] for state in sorted(counts)}


def finalize_aggregate(
    context: AggregationContext,
    postal_code_index: PostalCodeIndex,
    supplementary: SupplementaryCollection | None,
) -> CrossReferencedAggregate:
    """Freeze the run's aggregate for materialization."""
    summaries = tuple(context.summaries())
    return CrossReferencedAggregate(
        summaries=summaries,
        region_index=build_region_index(summaries),
        postal_code_index=postal_code_index,
        supplementary=supplementary,
        stats=context.stats,
    )


def _entry_sort_key(entry: PostalCodeEntry) -> tuple[str, str]:
    return (entry[0], entry[1] or "")
